"""Read-only APR endpoints.

Every endpoint takes a `network` title (default "Polygon") and returns a flat
JSON object mapping pool address / farming hash to a number. Unset metrics are
reported as 0.0; the farming -1 "inactive" marker is passed through as stored.
An unknown network simply yields `{}`.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.services.store import AprStore

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "Polygon"

router = APIRouter(prefix="/api")


def get_store(request: Request) -> AprStore:
    return request.app.state.store


def metric_map(rows: Iterable[Any], key: str, metric: str) -> dict[str, float]:
    out: dict[str, float] = {}
    for row in rows:
        value = getattr(row, metric)
        out[getattr(row, key)] = float(value) if value is not None else 0.0
    return out


def _store_error(what: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": f"Failed to fetch {what}"})


async def _pools_metric(store: AprStore, network: str, metric: str):
    try:
        pools = await store.list_pools_by_network_name(network)
    except SQLAlchemyError:
        logger.exception("Failed to fetch pools")
        return _store_error("pools")
    return metric_map(pools, "address", metric)


async def _farmings_metric(store: AprStore, network: str, metric: str):
    try:
        farmings = await store.list_farmings_by_network_name(network)
    except SQLAlchemyError:
        logger.exception("Failed to fetch eternal farmings")
        return _store_error("eternal farmings")
    return metric_map(farmings, "hash", metric)


@router.get("/pools/apr")
async def get_pools_apr(network: str = DEFAULT_NETWORK, store: AprStore = Depends(get_store)):
    return await _pools_metric(store, network, "last_apr")


@router.get("/pools/max-apr")
async def get_pools_max_apr(network: str = DEFAULT_NETWORK, store: AprStore = Depends(get_store)):
    return await _pools_metric(store, network, "max_apr")


@router.get("/eternal-farmings/apr")
async def get_eternal_farmings_apr(network: str = DEFAULT_NETWORK, store: AprStore = Depends(get_store)):
    return await _farmings_metric(store, network, "last_apr")


@router.get("/eternal-farmings/max-apr")
async def get_eternal_farmings_max_apr(network: str = DEFAULT_NETWORK, store: AprStore = Depends(get_store)):
    return await _farmings_metric(store, network, "max_apr")


@router.get("/eternal-farmings/tvl")
async def get_eternal_farmings_tvl(network: str = DEFAULT_NETWORK, store: AprStore = Depends(get_store)):
    return await _farmings_metric(store, network, "tvl")
