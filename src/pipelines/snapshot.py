"""Per-network snapshot fetch from the analytics and farming subgraphs.

Each dataset is pulled with keyset pagination on `id`: pages of 1000 filtered by
`id_gt` against the last id of the previous page, stopping on an empty or short
page. Datasets are fetched one after another; any failure propagates to the
caller and aborts the network's cycle.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from src.models.subgraph import (
    DepositsResponse,
    EternalFarming,
    EternalFarmingsResponse,
    FarmingDeposit,
    PoolDayData,
    PoolDayDatasResponse,
    PoolsResponse,
    Position,
    PositionsResponse,
    TokensResponse,
    UpstreamPool,
    UpstreamToken,
)
from src.services import queries
from src.services.subgraph_client import SubgraphClient

T = TypeVar("T")

PAGE_SIZE = 1000
SECONDS_PER_DAY = 86400


@dataclass
class NetworkSnapshot:
    """Everything one APR cycle needs for a single network."""

    pools: list[UpstreamPool] = field(default_factory=list)
    pool_day_datas: list[PoolDayData] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)
    eternal_farmings: list[EternalFarming] = field(default_factory=list)
    deposits: list[FarmingDeposit] = field(default_factory=list)
    # Reward token metadata keyed by token address
    tokens: dict[str, UpstreamToken] = field(default_factory=dict)


def yesterday_timestamp(now: float | None = None) -> int:
    """Midnight UTC of the previous day, in seconds since epoch."""
    now = time.time() if now is None else now
    return int((now - SECONDS_PER_DAY) // SECONDS_PER_DAY) * SECONDS_PER_DAY


async def fetch_paginated(
    client: SubgraphClient,
    query: str,
    parse: Callable[[dict[str, Any]], list[T]],
    cursor: Callable[[T], str],
    *,
    variables: dict[str, Any] | None = None,
    page_size: int = PAGE_SIZE,
) -> list[T]:
    """Collect every page of a dataset.

    Args:
        client: Subgraph to query.
        query: GraphQL document taking `$first` and `$id_gt`.
        parse: Turns a response `data` payload into the page's records.
        cursor: Returns the pagination key of a record.
        variables: Extra variables sent with every page.
        page_size: Records per page.
    """
    out: list[T] = []
    last_id = "0"
    while True:
        page_vars = dict(variables or {})
        page_vars.update({"first": page_size, "id_gt": last_id})
        batch = parse(await client.execute(query, page_vars))
        if not batch:
            break
        out.extend(batch)
        last_id = cursor(batch[-1])
        if len(batch) < page_size:
            break
    return out


async def fetch_pools(client: SubgraphClient, *, page_size: int = PAGE_SIZE) -> list[UpstreamPool]:
    return await fetch_paginated(
        client,
        queries.POOLS_QUERY,
        lambda data: PoolsResponse.model_validate(data).pools,
        lambda pool: pool.id,
        page_size=page_size,
    )


async def fetch_pool_day_datas(
    client: SubgraphClient, *, date: int | None = None, page_size: int = PAGE_SIZE
) -> list[PoolDayData]:
    """Fee records for one day (yesterday by default)."""
    return await fetch_paginated(
        client,
        queries.POOL_DAY_DATAS_QUERY,
        lambda data: PoolDayDatasResponse.model_validate(data).pool_day_datas,
        lambda day: day.id,
        variables={"date": yesterday_timestamp() if date is None else date},
        page_size=page_size,
    )


async def fetch_positions(client: SubgraphClient, *, page_size: int = PAGE_SIZE) -> list[Position]:
    return await fetch_paginated(
        client,
        queries.POSITIONS_QUERY,
        lambda data: PositionsResponse.model_validate(data).positions,
        lambda position: position.id,
        page_size=page_size,
    )


async def fetch_eternal_farmings(client: SubgraphClient, *, page_size: int = PAGE_SIZE) -> list[EternalFarming]:
    return await fetch_paginated(
        client,
        queries.ETERNAL_FARMINGS_QUERY,
        lambda data: EternalFarmingsResponse.model_validate(data).eternal_farmings,
        lambda farming: farming.id,
        page_size=page_size,
    )


async def fetch_deposits(client: SubgraphClient, *, page_size: int = PAGE_SIZE) -> list[FarmingDeposit]:
    # Deposit ids are position ids, so the position id is the cursor.
    return await fetch_paginated(
        client,
        queries.DEPOSITS_QUERY,
        lambda data: DepositsResponse.model_validate(data).deposits,
        lambda deposit: deposit.position_id,
        page_size=page_size,
    )


def reward_token_addresses(farmings: list[EternalFarming]) -> list[str]:
    """Distinct reward and non-zero bonus reward token addresses, sorted."""
    return sorted({addr for farming in farmings for addr in farming.reward_token_addresses()})


async def fetch_tokens(client: SubgraphClient, addresses: list[str]) -> dict[str, UpstreamToken]:
    """Token metadata for `addresses` in a single request; empty input skips the call."""
    if not addresses:
        return {}
    data = await client.execute(queries.TOKENS_QUERY, {"addresses": addresses})
    return {token.id: token for token in TokensResponse.model_validate(data).tokens}


async def fetch_network_snapshot(analytics: SubgraphClient, farming: SubgraphClient) -> NetworkSnapshot:
    """Fetch all six datasets for a network, sequentially."""
    pools = await fetch_pools(analytics)
    pool_day_datas = await fetch_pool_day_datas(analytics)
    positions = await fetch_positions(analytics)
    eternal_farmings = await fetch_eternal_farmings(farming)
    deposits = await fetch_deposits(farming)
    tokens = await fetch_tokens(analytics, reward_token_addresses(eternal_farmings))

    return NetworkSnapshot(
        pools=pools,
        pool_day_datas=pool_day_datas,
        positions=positions,
        eternal_farmings=eternal_farmings,
        deposits=deposits,
        tokens=tokens,
    )
