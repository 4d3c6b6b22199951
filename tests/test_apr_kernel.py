"""Unit tests for the APR kernel passes (pure computation, no I/O)."""

from __future__ import annotations

import pytest

from src.models.subgraph import (
    ZERO_ADDRESS,
    EternalFarming,
    FarmingDeposit,
    PoolDayData,
    PoolRef,
    Position,
    TickRef,
    UpstreamPool,
    UpstreamToken,
)
from src.pipelines.apr_kernel import (
    INACTIVE_FARMING_APR,
    SECONDS_PER_YEAR,
    build_lookups,
    compute_network_apr,
    pool_fees,
)
from src.pipelines.snapshot import NetworkSnapshot
from src.pipelines.tick_math import get_amounts

REWARD = "0x00000000000000000000000000000000000000aa"
BONUS = "0x00000000000000000000000000000000000000bb"
LIQUIDITY = 1_000_000.0


def _pool(*, pool_id: str = "0xPOOL", tick: int = 1500, liquidity: float = LIQUIDITY, derived_matic: float = 1.0) -> UpstreamPool:
    return UpstreamPool(
        id=pool_id,
        tick=tick,
        token0=UpstreamToken(id="0xa", name="WMATIC", decimals=0, derived_matic=derived_matic),
        token1=UpstreamToken(id="0xb", name="USDC", decimals=0, derived_matic=derived_matic),
        token0_price=1.0,
        liquidity=liquidity,
    )


def _position(position_id: str, pool: UpstreamPool, *, liquidity: float = LIQUIDITY, lower: int = 1000, upper: int = 2000) -> Position:
    return Position(
        id=position_id,
        liquidity=liquidity,
        tick_lower=TickRef(tick_idx=lower),
        tick_upper=TickRef(tick_idx=upper),
        pool=pool,
    )


def _day(pool: UpstreamPool, fees0: float, fees1: float = 0.0) -> PoolDayData:
    return PoolDayData(id=f"{pool.id}-1", fees_token0=fees0, fees_token1=fees1, date=0, pool=PoolRef(id=pool.id))


def _value(liquidity: float = LIQUIDITY) -> float:
    amount0, amount1 = get_amounts(liquidity, 1000, 2000, 1500)
    return amount0 + amount1


# Pools


def test_pool_without_positions_or_fees_is_zero() -> None:
    pool = _pool()
    result = compute_network_apr(NetworkSnapshot(pools=[pool]))

    [apr] = result.pools
    assert apr.address == "0xpool"
    assert apr.title == "WMATIC : USDC"
    assert apr.last_apr == 0.0
    assert apr.max_apr == 0.0


def test_pool_fees_convert_token1_with_token0_price() -> None:
    pool = _pool().model_copy(update={"token0_price": 2.0})

    assert pool_fees(pool, _day(pool, 1.0, 3.0)) == 7.0
    assert pool_fees(pool, None) == 0.0


def test_pool_last_apr_single_position() -> None:
    pool = _pool()
    snapshot = NetworkSnapshot(pools=[pool], positions=[_position("1", pool)], pool_day_datas=[_day(pool, 10.0)])

    [apr] = compute_network_apr(snapshot).pools

    assert apr.last_apr == pytest.approx(10.0 * 365 / _value() * 100)
    # the only position owns all of the pool's liquidity
    assert apr.max_apr == pytest.approx(apr.last_apr)


def test_pool_ignores_out_of_range_and_boundary_positions() -> None:
    pool = _pool()
    positions = [
        _position("1", pool),
        _position("2", pool, liquidity=1e12, lower=2000, upper=3000),
        _position("3", pool, liquidity=1e12, lower=1500, upper=3000),
    ]
    snapshot = NetworkSnapshot(pools=[pool], positions=positions, pool_day_datas=[_day(pool, 10.0)])

    [apr] = compute_network_apr(snapshot).pools

    assert apr.last_apr == pytest.approx(10.0 * 365 / _value() * 100)


def test_pool_max_apr_is_at_least_last_apr() -> None:
    pool = _pool(liquidity=3 * LIQUIDITY)
    positions = [
        _position("1", pool, liquidity=LIQUIDITY),
        _position("2", pool, liquidity=2 * LIQUIDITY, lower=1400, upper=1600),
    ]
    snapshot = NetworkSnapshot(pools=[pool], positions=positions, pool_day_datas=[_day(pool, 10.0)])

    [apr] = compute_network_apr(snapshot).pools

    assert apr.last_apr > 0
    assert apr.max_apr >= apr.last_apr


def _wei_pool(tick: int) -> UpstreamPool:
    return UpstreamPool(
        id="0xPOOL",
        tick=tick,
        token0=UpstreamToken(id="0xa", name="A", decimals=18),
        token1=UpstreamToken(id="0xb", name="B", decimals=18),
        token0_price=2.0,
        liquidity=LIQUIDITY,
    )


def test_pool_apr_with_18_decimal_tokens_and_token0_price() -> None:
    pool = _wei_pool(1500)
    snapshot = NetworkSnapshot(pools=[pool], positions=[_position("1", pool)], pool_day_datas=[_day(pool, 100.0, 50.0)])

    [apr] = compute_network_apr(snapshot).pools

    assert pool_fees(pool, snapshot.pool_day_datas[0]) == 200.0
    tvl = 22905.02320845944e-18 + 26611.64071932465e-18 * 2
    assert apr.last_apr == pytest.approx(200 * 365 / tvl * 100, rel=1e-9)
    assert apr.max_apr == pytest.approx(apr.last_apr, rel=1e-9)


def test_pool_apr_with_no_in_range_value_is_zero() -> None:
    pool = _wei_pool(2500)
    snapshot = NetworkSnapshot(pools=[pool], positions=[_position("1", pool)], pool_day_datas=[_day(pool, 100.0, 50.0)])

    [apr] = compute_network_apr(snapshot).pools

    assert apr.last_apr == 0.0
    assert apr.max_apr == 0.0


def test_pool_max_apr_zero_pool_liquidity_is_zero() -> None:
    pool = _pool(liquidity=0.0)
    snapshot = NetworkSnapshot(pools=[pool], positions=[_position("1", pool)], pool_day_datas=[_day(pool, 10.0)])

    [apr] = compute_network_apr(snapshot).pools

    assert apr.max_apr == 0.0
    assert apr.last_apr > 0


# Farmings


def _farming(*, bonus_token: str = ZERO_ADDRESS, bonus_rate: float = 0.0) -> EternalFarming:
    return EternalFarming(
        id="0xfarm",
        reward_token=REWARD,
        bonus_reward_token=bonus_token,
        reward_rate=1.0,
        bonus_reward_rate=bonus_rate,
        pool="0xPOOL",
    )


def _tokens(*extra: str) -> dict[str, UpstreamToken]:
    out = {REWARD: UpstreamToken(id=REWARD, decimals=0, derived_matic=1.0)}
    for addr in extra:
        out[addr] = UpstreamToken(id=addr, decimals=0, derived_matic=1.0)
    return out


def _farming_snapshot(farming: EternalFarming, tokens: dict[str, UpstreamToken]) -> NetworkSnapshot:
    # Position worth exactly 10 native units
    pool = _pool(derived_matic=10.0 / _value())
    return NetworkSnapshot(
        pools=[pool],
        positions=[_position("1", pool)],
        eternal_farmings=[farming],
        deposits=[FarmingDeposit(position_id="1", eternal_farming=farming.id)],
        tokens=tokens,
    )


def test_farming_apr_one_native_per_second_over_ten() -> None:
    [apr] = compute_network_apr(_farming_snapshot(_farming(), _tokens())).farmings

    assert apr.hash == "0xfarm"
    assert apr.tvl == pytest.approx(10.0)
    assert apr.last_apr == pytest.approx(315_360_000.0)
    assert apr.last_apr == pytest.approx(SECONDS_PER_YEAR / 10 * 100)
    assert apr.max_apr == pytest.approx(apr.last_apr)


def test_farming_apr_with_18_decimal_reward_token() -> None:
    farming = _farming().model_copy(update={"reward_rate": 1e18})
    tokens = {REWARD: UpstreamToken(id=REWARD, decimals=18, derived_matic=1.0)}

    [apr] = compute_network_apr(_farming_snapshot(farming, tokens)).farmings

    assert apr.tvl == pytest.approx(10.0)
    assert apr.last_apr == pytest.approx(315_360_000.0)


def test_farming_zero_address_bonus_is_ignored() -> None:
    farming = _farming(bonus_token=ZERO_ADDRESS, bonus_rate=1e30)

    [apr] = compute_network_apr(_farming_snapshot(farming, _tokens(ZERO_ADDRESS))).farmings

    assert apr.last_apr == pytest.approx(315_360_000.0)


def test_farming_bonus_reward_adds_to_rate() -> None:
    farming = _farming(bonus_token=BONUS, bonus_rate=1.0)

    [apr] = compute_network_apr(_farming_snapshot(farming, _tokens(BONUS))).farmings

    assert apr.last_apr == pytest.approx(2 * 315_360_000.0)


def test_farming_unknown_reward_token_earns_nothing() -> None:
    [apr] = compute_network_apr(_farming_snapshot(_farming(), {})).farmings

    assert apr.tvl == pytest.approx(10.0)
    assert apr.last_apr == 0.0
    assert apr.max_apr == 0.0


def test_farming_without_deposits_is_inactive() -> None:
    snapshot = NetworkSnapshot(eternal_farmings=[_farming()], tokens=_tokens())

    [apr] = compute_network_apr(snapshot).farmings

    assert apr.tvl == 0.0
    assert apr.last_apr == INACTIVE_FARMING_APR
    assert apr.max_apr == 0.0


def test_farming_deposit_of_unknown_position_counts_as_zero() -> None:
    snapshot = NetworkSnapshot(
        eternal_farmings=[_farming()],
        deposits=[FarmingDeposit(position_id="404", eternal_farming="0xfarm")],
        tokens=_tokens(),
    )

    lookups = build_lookups(snapshot)
    assert lookups.positions_by_farming_id["0xfarm"] == [Position()]

    [apr] = compute_network_apr(snapshot).farmings
    assert apr.tvl == 0.0
    assert apr.last_apr == INACTIVE_FARMING_APR
    assert apr.max_apr == 0.0


def test_farming_out_of_range_position_is_inactive() -> None:
    snapshot = _farming_snapshot(_farming(), _tokens())
    snapshot.positions[0] = _position("1", snapshot.pools[0], lower=1600, upper=2000)

    [apr] = compute_network_apr(snapshot).farmings

    assert apr.tvl == 0.0
    assert apr.last_apr == INACTIVE_FARMING_APR
