"""APR kernel: turns a network snapshot into pool and farming APR figures.

Four passes, in this order:
1. pool last APR: yesterday's fees over the value of all in-range positions
2. pool max APR: the best in-range position's share of fees over its value
3. farming last APR (+ TVL): reward emission over the active deposited value
4. farming max APR: the best active position's share of rewards over its value

Pool values are denominated in token0 via `token0Price`; farming values are in
the network's native unit via each token's `derivedMatic`. Positions count only
when strictly in range (tick_lower < tick < tick_upper).

Everything here is pure and CPU-bound; persistence lives in the flow module.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from src.models.subgraph import EternalFarming, PoolDayData, Position, UpstreamPool, UpstreamToken
from src.pipelines.snapshot import NetworkSnapshot
from src.pipelines.tick_math import get_amounts

DAYS_PER_YEAR = 365
SECONDS_PER_YEAR = 60 * 60 * 24 * 365  # leap years ignored

# Farming last APR when nothing deposited is in range
INACTIVE_FARMING_APR = -1.0


@dataclass(frozen=True)
class PoolApr:
    address: str
    title: str
    last_apr: float
    max_apr: float


@dataclass(frozen=True)
class FarmingApr:
    hash: str
    tvl: float
    last_apr: float
    max_apr: float


@dataclass
class NetworkApr:
    pools: list[PoolApr] = field(default_factory=list)
    farmings: list[FarmingApr] = field(default_factory=list)


@dataclass
class KernelLookups:
    pool_day_by_pool_id: dict[str, PoolDayData]
    positions_by_pool_id: dict[str, list[Position]]
    positions_by_id: dict[str, Position]
    positions_by_farming_id: dict[str, list[Position]]


def build_lookups(snapshot: NetworkSnapshot) -> KernelLookups:
    """Index the snapshot for the four passes.

    A deposit whose position is missing from the analytics positions maps to a
    zero-valued `Position`, which never counts as in range.
    """
    pool_day_by_pool_id = {day.pool.id: day for day in snapshot.pool_day_datas}

    positions_by_pool_id: dict[str, list[Position]] = defaultdict(list)
    positions_by_id: dict[str, Position] = {}
    for position in snapshot.positions:
        positions_by_pool_id[position.pool.id].append(position)
        positions_by_id[position.id] = position

    positions_by_farming_id: dict[str, list[Position]] = defaultdict(list)
    for deposit in snapshot.deposits:
        positions_by_farming_id[deposit.eternal_farming].append(
            positions_by_id.get(deposit.position_id) or Position()
        )

    return KernelLookups(
        pool_day_by_pool_id=pool_day_by_pool_id,
        positions_by_pool_id=dict(positions_by_pool_id),
        positions_by_id=positions_by_id,
        positions_by_farming_id=dict(positions_by_farming_id),
    )


def _token_amounts(position: Position, tick: int, token0: UpstreamToken, token1: UpstreamToken) -> tuple[float, float]:
    amount0, amount1 = get_amounts(position.liquidity, position.tick_lower.tick_idx, position.tick_upper.tick_idx, tick)
    return amount0 / 10**token0.decimals, amount1 / 10**token1.decimals


# Pools


def pool_fees(pool: UpstreamPool, day: PoolDayData | None) -> float:
    """Yesterday's fees in token0 units; 0 without a day record."""
    if day is None:
        return 0.0
    return day.fees_token0 + day.fees_token1 * pool.token0_price


def position_pool_value(position: Position, pool: UpstreamPool) -> float:
    """Value of a position in token0 units at the pool's current tick."""
    amount0, amount1 = _token_amounts(position, pool.tick, pool.token0, pool.token1)
    return amount0 + amount1 * pool.token0_price


def pool_tvl(pool: UpstreamPool, positions: list[Position]) -> float:
    return sum(position_pool_value(p, pool) for p in positions if p.in_range(pool.tick))


def pool_last_apr(pool: UpstreamPool, positions: list[Position], day: PoolDayData | None) -> float:
    tvl = pool_tvl(pool, positions)
    if tvl > 0:
        return (pool_fees(pool, day) * DAYS_PER_YEAR / tvl) * 100
    return 0.0


def pool_max_apr(pool: UpstreamPool, positions: list[Position], day: PoolDayData | None) -> float:
    """Best APR among in-range positions, each earning fees pro rata to liquidity."""
    fees = pool_fees(pool, day)
    best = 0.0
    for position in positions:
        if not position.in_range(pool.tick):
            continue
        value = position_pool_value(position, pool)
        if value > 0 and pool.liquidity > 0:
            position_fees = fees * position.liquidity / pool.liquidity
            best = max(best, (position_fees * DAYS_PER_YEAR / value) * 100)
    return best


def pool_title(pool: UpstreamPool) -> str:
    return f"{pool.token0.name} : {pool.token1.name}"


# Farmings


def _native_rate(rate: float, token: UpstreamToken | None) -> float:
    if token is None:
        return 0.0
    return (rate / 10**token.decimals) * token.derived_matic


def farming_reward_rate(farming: EternalFarming, tokens: dict[str, UpstreamToken]) -> float:
    """Per-second reward emission in native units; unknown tokens contribute 0."""
    rate = _native_rate(farming.reward_rate, tokens.get(farming.reward_token))
    if farming.has_bonus_reward:
        rate += _native_rate(farming.bonus_reward_rate, tokens.get(farming.bonus_reward_token))
    return rate


def position_native_value(position: Position) -> float:
    """Value of a position in native units, priced off its embedded pool snapshot."""
    pool = position.pool
    amount0, amount1 = _token_amounts(position, pool.tick, pool.token0, pool.token1)
    return amount0 * pool.token0.derived_matic + amount1 * pool.token1.derived_matic


def farming_active_tvl(positions: list[Position]) -> float:
    return sum(position_native_value(p) for p in positions if p.in_range(p.pool.tick))


def farming_last_apr(reward_rate: float, active_tvl: float) -> float:
    if active_tvl > 0:
        return (reward_rate * SECONDS_PER_YEAR / active_tvl) * 100
    return INACTIVE_FARMING_APR


def farming_max_apr(reward_rate: float, positions: list[Position]) -> float:
    """Best APR among active positions, each earning rewards pro rata to liquidity."""
    active = [p for p in positions if p.in_range(p.pool.tick)]
    active_liquidity = sum(p.liquidity for p in active)

    best = 0.0
    for position in active:
        value = position_native_value(position)
        if value > 0 and active_liquidity > 0:
            position_rate = reward_rate * position.liquidity / active_liquidity
            best = max(best, (position_rate * SECONDS_PER_YEAR / value) * 100)
    return best


def compute_network_apr(snapshot: NetworkSnapshot) -> NetworkApr:
    """Run all four passes over a snapshot."""
    lookups = build_lookups(snapshot)
    result = NetworkApr()

    for pool in snapshot.pools:
        positions = lookups.positions_by_pool_id.get(pool.id, [])
        day = lookups.pool_day_by_pool_id.get(pool.id)
        result.pools.append(
            PoolApr(
                address=pool.id.lower(),
                title=pool_title(pool),
                last_apr=pool_last_apr(pool, positions, day),
                max_apr=pool_max_apr(pool, positions, day),
            )
        )

    for farming in snapshot.eternal_farmings:
        positions = lookups.positions_by_farming_id.get(farming.id, [])
        reward_rate = farming_reward_rate(farming, snapshot.tokens)
        tvl = farming_active_tvl(positions)
        result.farmings.append(
            FarmingApr(
                hash=farming.id,
                tvl=tvl,
                last_apr=farming_last_apr(reward_rate, tvl),
                max_apr=farming_max_apr(reward_rate, positions),
            )
        )

    return result
