"""APR update cycle: fetch, compute and persist APR figures per network.

This module implements:
- One network cycle: snapshot fetch -> APR kernel -> per-row write-back
- The fan-out over every stored network (used by the in-process scheduler)
- A Prefect flow wrapping the same cycle for orchestrated deployments

Networks are isolated: a failing network is logged and skipped, the others
carry on. Within a network, write-back runs the four passes in order and a
failing row is logged without stopping the pass.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from prefect import flow, get_run_logger, task
from prefect.exceptions import MissingContextError
from sqlalchemy.exc import SQLAlchemyError

from src.models.apr import Network
from src.pipelines.apr_kernel import NetworkApr, compute_network_apr
from src.pipelines.snapshot import fetch_network_snapshot
from src.services.store import AprStore
from src.services.subgraph_client import SubgraphClient

# The network count is small (tens); the cap only guards against odd configs.
DEFAULT_MAX_CONCURRENCY = 16


def _get_logger() -> logging.Logger:
    """Return a logger usable both inside and outside Prefect contexts."""
    try:
        return get_run_logger()  # type: ignore[return-value]
    except MissingContextError:
        return logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkTarget:
    """Plain snapshot of a stored network, safe to hand across tasks."""

    id: int
    title: str
    analytics_subgraph_url: str
    farming_subgraph_url: str
    api_key: str | None = None

    @classmethod
    def from_model(cls, network: Network) -> "NetworkTarget":
        return cls(
            id=network.id,
            title=network.title,
            analytics_subgraph_url=network.analytics_subgraph_url,
            farming_subgraph_url=network.farming_subgraph_url,
            api_key=network.api_key or None,
        )


@dataclass
class WriteStats:
    written: int = 0
    failed: int = 0


async def _write_row(stats: WriteStats, what: str, coro: Any) -> None:
    try:
        await coro
        stats.written += 1
    except SQLAlchemyError as exc:
        stats.failed += 1
        _get_logger().error(f"Failed to upsert {what}: {exc}")


async def write_back(store: AprStore, network_id: int, result: NetworkApr) -> WriteStats:
    """Persist kernel output, one pass at a time in kernel order."""
    logger = _get_logger()
    stats = WriteStats()

    for pool in result.pools:
        await _write_row(
            stats, f"pool {pool.address} last APR",
            store.upsert_pool(network_id, pool.address, pool.title, last_apr=pool.last_apr),
        )
    for pool in result.pools:
        await _write_row(
            stats, f"pool {pool.address} max APR",
            store.upsert_pool(network_id, pool.address, pool.title, max_apr=pool.max_apr),
        )
    for farming in result.farmings:
        await _write_row(
            stats, f"farming {farming.hash} APR",
            store.upsert_farming(network_id, farming.hash, tvl=farming.tvl, last_apr=farming.last_apr),
        )
    for farming in result.farmings:
        await _write_row(
            stats, f"farming {farming.hash} max APR",
            store.upsert_farming(network_id, farming.hash, max_apr=farming.max_apr),
        )

    logger.info(f"Wrote {stats.written} APR rows for network {network_id} ({stats.failed} failed)")
    return stats


async def update_network_apr(
    network: NetworkTarget,
    store: AprStore,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NetworkApr:
    """Run one full APR cycle for a network.

    Raises:
        httpx.HTTPError, SubgraphError, pydantic.ValidationError: On any fetch
            or decode failure; nothing is written in that case.
    """
    logger = _get_logger()
    logger.info(f"Starting APR update for {network.title}")

    analytics = SubgraphClient(network.analytics_subgraph_url, network.api_key, transport=transport)
    farming = SubgraphClient(network.farming_subgraph_url, network.api_key, transport=transport)

    snapshot = await fetch_network_snapshot(analytics, farming)
    logger.info(
        f"Fetched {network.title}: pools={len(snapshot.pools)} positions={len(snapshot.positions)} "
        f"pool_day_datas={len(snapshot.pool_day_datas)} farmings={len(snapshot.eternal_farmings)} "
        f"deposits={len(snapshot.deposits)} reward_tokens={len(snapshot.tokens)}"
    )

    # CPU-bound; keep it off the event loop so the API stays responsive.
    result = await asyncio.to_thread(compute_network_apr, snapshot)
    await write_back(store, network.id, result)

    logger.info(f"Completed APR update for {network.title}")
    return result


async def list_targets(store: AprStore) -> list[NetworkTarget]:
    return [NetworkTarget.from_model(n) for n in await store.list_networks()]


async def run_apr_update(
    store: AprStore,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, bool]:
    """Update every stored network in parallel.

    Returns:
        Network title -> whether its cycle completed.
    """
    logger = _get_logger()
    targets = await list_targets(store)
    sem = asyncio.Semaphore(max_concurrency)

    async def _one(target: NetworkTarget) -> bool:
        async with sem:
            try:
                await update_network_apr(target, store, transport=transport)
                return True
            except Exception:
                logger.exception(f"Failed to update APR for {target.title}")
                return False

    outcomes = await asyncio.gather(*[_one(t) for t in targets])
    results = {t.title: ok for t, ok in zip(targets, outcomes)}
    logger.info(f"Completed APR update for {sum(results.values())}/{len(results)} networks")
    return results


@task(retries=2, retry_delay_seconds=[10, 30])
async def update_network_apr_task(network: NetworkTarget) -> int:
    """Prefect task wrapper for one network cycle; returns the pool count."""
    result = await update_network_apr(network, AprStore())
    return len(result.pools)


@flow(name="apr-update", log_prints=True)
async def apr_update_flow() -> dict[str, bool]:
    """Periodic: refresh pool and farming APR for every stored network."""
    logger = get_run_logger()
    targets = await list_targets(AprStore())

    outcomes = await asyncio.gather(*[update_network_apr_task(t) for t in targets], return_exceptions=True)
    results: dict[str, bool] = {}
    for target, outcome in zip(targets, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(f"APR update failed for {target.title}: {outcome}")
            results[target.title] = False
        else:
            results[target.title] = True

    logger.info(f"Completed APR update for {sum(results.values())}/{len(results)} networks")
    return results
