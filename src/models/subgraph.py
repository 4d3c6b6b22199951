"""Pydantic models for the upstream subgraph payloads.

The analytics and farming subgraphs return every numeric as a decimal string.
Numerics are parsed here once; malformed or missing values degrade to zero, the
same as an absent record, so the APR kernel only ever sees plain floats/ints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def parse_float(value: Any) -> float:
    """Parse a subgraph decimal string as a float; failures yield 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_int(value: Any) -> int:
    """Parse a subgraph integer string (ticks, decimals); failures yield 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


class SubgraphModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def null_to_empty_string(cls, value: Any, info: ValidationInfo) -> Any:
        # JSON null on a string field reads as ""
        if value is None and cls.model_fields[info.field_name].annotation is str:
            return ""
        return value


class UpstreamToken(SubgraphModel):
    id: str = ""
    name: str = ""
    symbol: str = ""
    decimals: int = 0
    derived_matic: float = Field(0.0, alias="derivedMatic")

    @field_validator("decimals", mode="before")
    @classmethod
    def parse_decimals(cls, value: Any) -> int:
        return parse_int(value)

    @field_validator("derived_matic", mode="before")
    @classmethod
    def parse_price(cls, value: Any) -> float:
        return parse_float(value)


class UpstreamPool(SubgraphModel):
    id: str = ""
    tick: int = 0
    token0: UpstreamToken = Field(default_factory=UpstreamToken)
    token1: UpstreamToken = Field(default_factory=UpstreamToken)
    # Price of token0 in token1 units as reported by the subgraph
    token0_price: float = Field(0.0, alias="token0Price")
    liquidity: float = 0.0

    @field_validator("tick", mode="before")
    @classmethod
    def parse_tick(cls, value: Any) -> int:
        return parse_int(value)

    @field_validator("token0_price", "liquidity", mode="before")
    @classmethod
    def parse_numerics(cls, value: Any) -> float:
        return parse_float(value)

    @field_validator("token0", "token1", mode="before")
    @classmethod
    def default_tokens(cls, value: Any) -> Any:
        return {} if value is None else value


class TickRef(SubgraphModel):
    tick_idx: int = Field(0, alias="tickIdx")

    @field_validator("tick_idx", mode="before")
    @classmethod
    def parse_tick_idx(cls, value: Any) -> int:
        return parse_int(value)


class Position(SubgraphModel):
    id: str = ""
    liquidity: float = 0.0
    tick_lower: TickRef = Field(default_factory=TickRef, alias="tickLower")
    tick_upper: TickRef = Field(default_factory=TickRef, alias="tickUpper")
    # Snapshot of the containing pool embedded by the positions query
    pool: UpstreamPool = Field(default_factory=UpstreamPool)
    owner: str = ""

    @field_validator("liquidity", mode="before")
    @classmethod
    def parse_liquidity(cls, value: Any) -> float:
        return parse_float(value)

    @field_validator("tick_lower", "tick_upper", "pool", mode="before")
    @classmethod
    def default_nested(cls, value: Any) -> Any:
        return {} if value is None else value

    def in_range(self, tick: int) -> bool:
        """Strictly inside the position's range; bounds equal to `tick` do not count."""
        return self.tick_lower.tick_idx < tick < self.tick_upper.tick_idx


class PoolRef(SubgraphModel):
    id: str = ""


class PoolDayData(SubgraphModel):
    id: str = ""
    fees_token0: float = Field(0.0, alias="feesToken0")
    fees_token1: float = Field(0.0, alias="feesToken1")
    date: int = 0
    pool: PoolRef = Field(default_factory=PoolRef)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> int:
        return parse_int(value)

    @field_validator("fees_token0", "fees_token1", mode="before")
    @classmethod
    def parse_fees(cls, value: Any) -> float:
        return parse_float(value)

    @field_validator("pool", mode="before")
    @classmethod
    def default_pool(cls, value: Any) -> Any:
        return {} if value is None else value


class EternalFarming(SubgraphModel):
    id: str = ""
    reward_token: str = Field("", alias="rewardToken")
    bonus_reward_token: str = Field(ZERO_ADDRESS, alias="bonusRewardToken")
    reward_rate: float = Field(0.0, alias="rewardRate")
    bonus_reward_rate: float = Field(0.0, alias="bonusRewardRate")
    pool: str = ""

    @field_validator("reward_rate", "bonus_reward_rate", mode="before")
    @classmethod
    def parse_rates(cls, value: Any) -> float:
        return parse_float(value)

    @property
    def has_bonus_reward(self) -> bool:
        return bool(self.bonus_reward_token) and self.bonus_reward_token != ZERO_ADDRESS

    def reward_token_addresses(self) -> list[str]:
        """Reward token plus the bonus token unless it is the zero address."""
        out = [self.reward_token] if self.reward_token else []
        if self.has_bonus_reward:
            out.append(self.bonus_reward_token)
        return out


class FarmingDeposit(SubgraphModel):
    # The deposit id is the id of the deposited position
    position_id: str = Field("", alias="id")
    eternal_farming: str = Field("", alias="eternalFarming")


# Response envelopes (the `data` member of a GraphQL response)


class PoolsResponse(SubgraphModel):
    pools: list[UpstreamPool] = Field(default_factory=list)


class PositionsResponse(SubgraphModel):
    positions: list[Position] = Field(default_factory=list)


class PoolDayDatasResponse(SubgraphModel):
    pool_day_datas: list[PoolDayData] = Field(default_factory=list, alias="poolDayDatas")


class EternalFarmingsResponse(SubgraphModel):
    eternal_farmings: list[EternalFarming] = Field(default_factory=list, alias="eternalFarmings")


class DepositsResponse(SubgraphModel):
    deposits: list[FarmingDeposit] = Field(default_factory=list)


class TokensResponse(SubgraphModel):
    tokens: list[UpstreamToken] = Field(default_factory=list)
