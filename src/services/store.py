"""Postgres store for networks and the latest pool/farming APR figures.

Every write is a single-row `INSERT ... ON CONFLICT DO UPDATE` in its own
transaction, so concurrent cycles resolve as last-writer-wins per row. Metric
arguments left as `None` are not touched on existing rows.
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from src.core.database import AsyncSessionLocal
from src.models.apr import Farming, Network, Pool


def _provided(**values: float | None) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class AprStore:
    def __init__(self, session_factory: Callable[[], AsyncSession] = AsyncSessionLocal) -> None:
        self._session_factory = session_factory

    async def upsert_network(
        self,
        title: str,
        analytics_subgraph_url: str,
        farming_subgraph_url: str,
        api_key: str | None = None,
    ) -> int:
        """Create or update a network by title and return its id."""
        stmt = insert(Network).values(
            title=title,
            analytics_subgraph_url=analytics_subgraph_url,
            farming_subgraph_url=farming_subgraph_url,
            api_key=api_key,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Network.title],
            set_={
                "analytics_subgraph_url": stmt.excluded.analytics_subgraph_url,
                "farming_subgraph_url": stmt.excluded.farming_subgraph_url,
                "api_key": stmt.excluded.api_key,
                "updated_at": func.now(),
            },
        ).returning(Network.id)

        async with self._session_factory() as session:
            async with session.begin():
                return (await session.execute(stmt)).scalar_one()

    async def upsert_pool(
        self,
        network_id: int,
        address: str,
        title: str,
        *,
        last_apr: float | None = None,
        max_apr: float | None = None,
    ) -> None:
        """Create the pool with `title` on first sighting; otherwise update the given metrics."""
        metrics = _provided(last_apr=last_apr, max_apr=max_apr)
        stmt = insert(Pool).values(network_id=network_id, address=address, title=title, **metrics)
        index = [Pool.network_id, Pool.address]
        if metrics:
            stmt = stmt.on_conflict_do_update(index_elements=index, set_={**metrics, "updated_at": func.now()})
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=index)

        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(stmt)

    async def upsert_farming(
        self,
        network_id: int,
        hash: str,
        *,
        tvl: float | None = None,
        last_apr: float | None = None,
        max_apr: float | None = None,
    ) -> None:
        """Create the farming on first sighting; otherwise update the given metrics."""
        metrics = _provided(tvl=tvl, last_apr=last_apr, max_apr=max_apr)
        stmt = insert(Farming).values(network_id=network_id, hash=hash, **metrics)
        index = [Farming.network_id, Farming.hash]
        if metrics:
            stmt = stmt.on_conflict_do_update(index_elements=index, set_={**metrics, "updated_at": func.now()})
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=index)

        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(stmt)

    async def list_networks(self) -> list[Network]:
        async with self._session_factory() as session:
            result = await session.execute(select(Network).order_by(Network.id))
            return list(result.scalars().all())

    async def list_pools_by_network_name(self, name: str) -> list[Pool]:
        stmt = (
            select(Pool)
            .join(Network, Pool.network_id == Network.id)
            .where(Network.title == name)
            .order_by(Pool.id)
        )
        async with self._session_factory() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def list_farmings_by_network_name(self, name: str) -> list[Farming]:
        stmt = (
            select(Farming)
            .join(Network, Farming.network_id == Network.id)
            .where(Network.title == name)
            .order_by(Farming.id)
        )
        async with self._session_factory() as session:
            return list((await session.execute(stmt)).scalars().all())
