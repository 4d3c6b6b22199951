"""Pytest configuration.

This project uses a `src/` package layout without an installed wheel.
For local test runs, we add the repository root to `sys.path` so imports like
`from src...` work under `pytest`.

Shared helpers:
- `FakeStore`: in-memory stand-in for `AprStore` with the same upsert semantics
- `SubgraphStub`: httpx MockTransport handler that serves paginated datasets
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from sqlalchemy.exc import SQLAlchemyError


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.models.subgraph import ZERO_ADDRESS  # noqa: E402
from src.services import queries  # noqa: E402


class FakeStore:
    """In-memory store mirroring `AprStore` (title on create, metrics only when given)."""

    def __init__(self) -> None:
        self.networks: dict[str, SimpleNamespace] = {}
        self.pools: dict[tuple[int, str], SimpleNamespace] = {}
        self.farmings: dict[tuple[int, str], SimpleNamespace] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_reads = False
        self.fail_writes_for: set[str] = set()

    async def upsert_network(self, title, analytics_subgraph_url, farming_subgraph_url, api_key=None) -> int:
        existing = self.networks.get(title)
        if existing is None:
            existing = SimpleNamespace(id=len(self.networks) + 1, title=title)
            self.networks[title] = existing
        existing.analytics_subgraph_url = analytics_subgraph_url
        existing.farming_subgraph_url = farming_subgraph_url
        existing.api_key = api_key
        return existing.id

    async def upsert_pool(self, network_id, address, title, *, last_apr=None, max_apr=None) -> None:
        if address in self.fail_writes_for:
            raise SQLAlchemyError(f"cannot write {address}")
        self.calls.append(("pool", (address, last_apr, max_apr)))
        row = self.pools.setdefault(
            (network_id, address),
            SimpleNamespace(network_id=network_id, address=address, title=title, last_apr=None, max_apr=None),
        )
        if last_apr is not None:
            row.last_apr = last_apr
        if max_apr is not None:
            row.max_apr = max_apr

    async def upsert_farming(self, network_id, hash, *, tvl=None, last_apr=None, max_apr=None) -> None:
        if hash in self.fail_writes_for:
            raise SQLAlchemyError(f"cannot write {hash}")
        self.calls.append(("farming", (hash, tvl, last_apr, max_apr)))
        row = self.farmings.setdefault(
            (network_id, hash),
            SimpleNamespace(network_id=network_id, hash=hash, tvl=None, last_apr=None, max_apr=None),
        )
        if tvl is not None:
            row.tvl = tvl
        if last_apr is not None:
            row.last_apr = last_apr
        if max_apr is not None:
            row.max_apr = max_apr

    async def list_networks(self):
        if self.fail_reads:
            raise SQLAlchemyError("database unavailable")
        return sorted(self.networks.values(), key=lambda n: n.id)

    def _network_id(self, name: str) -> int | None:
        network = self.networks.get(name)
        return network.id if network else None

    async def list_pools_by_network_name(self, name: str):
        if self.fail_reads:
            raise SQLAlchemyError("database unavailable")
        nid = self._network_id(name)
        return [row for (net, _), row in self.pools.items() if net == nid]

    async def list_farmings_by_network_name(self, name: str):
        if self.fail_reads:
            raise SQLAlchemyError("database unavailable")
        nid = self._network_id(name)
        return [row for (net, _), row in self.farmings.items() if net == nid]


# Query text -> response key
_DATASET_KEYS = {
    queries.POOLS_QUERY: "pools",
    queries.POSITIONS_QUERY: "positions",
    queries.POOL_DAY_DATAS_QUERY: "poolDayDatas",
    queries.ETERNAL_FARMINGS_QUERY: "eternalFarmings",
    queries.DEPOSITS_QUERY: "deposits",
}


class SubgraphStub:
    """Serve datasets the way a subgraph pages them: `id > id_gt`, ordered by id, `first` at most."""

    def __init__(self, **datasets: list[dict[str, Any]]) -> None:
        self.datasets = {key: list(datasets.get(key, [])) for key in _DATASET_KEYS.values()}
        self.tokens: list[dict[str, Any]] = list(datasets.get("tokens", []))
        self.requests: list[tuple[str, dict[str, Any], httpx.Headers]] = []
        self.fail_urls: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((str(request.url), body, request.headers))
        if str(request.url) in self.fail_urls:
            return httpx.Response(502, json={"error": "bad gateway"})

        variables = body.get("variables") or {}
        if body["query"] == queries.TOKENS_QUERY:
            wanted = set(variables.get("addresses") or [])
            return httpx.Response(200, json={"data": {"tokens": [t for t in self.tokens if t["id"] in wanted]}})

        key = _DATASET_KEYS[body["query"]]
        records = sorted(self.datasets[key], key=lambda r: r["id"])
        page = [r for r in records if r["id"] > variables["id_gt"]][: variables["first"]]
        return httpx.Response(200, json={"data": {key: page}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def queries_sent(self, key: str) -> list[dict[str, Any]]:
        query = next(q for q, k in _DATASET_KEYS.items() if k == key)
        return [body["variables"] for _, body, _ in self.requests if body["query"] == query]


def token(address: str, *, name: str = "", decimals: int = 18, derived_matic: str = "1") -> dict[str, Any]:
    return {
        "id": address,
        "name": name or address[-4:],
        "symbol": name or address[-4:],
        "decimals": str(decimals),
        "derivedMatic": derived_matic,
    }


def pool_payload(
    pool_id: str,
    *,
    tick: int,
    token0: dict[str, Any],
    token1: dict[str, Any],
    token0_price: str = "1",
    liquidity: str = "0",
) -> dict[str, Any]:
    return {
        "id": pool_id,
        "tick": str(tick),
        "token0": token0,
        "token1": token1,
        "token0Price": token0_price,
        "liquidity": liquidity,
    }


def position_payload(position_id: str, pool: dict[str, Any], *, liquidity: str, lower: int, upper: int) -> dict[str, Any]:
    return {
        "id": position_id,
        "owner": "0x000000000000000000000000000000000000beef",
        "liquidity": liquidity,
        "tickLower": {"tickIdx": str(lower)},
        "tickUpper": {"tickIdx": str(upper)},
        "pool": pool,
    }


REWARD_TOKEN = "0x00000000000000000000000000000000000000aa"


def sample_network_stub() -> SubgraphStub:
    """One pool with an in-range position, an active farming and an idle one."""
    token0 = token("0x0000000000000000000000000000000000000001", name="WMATIC", decimals=0)
    token1 = token("0x0000000000000000000000000000000000000002", name="USDC", decimals=0)
    pool = pool_payload("0xABC", tick=1500, token0=token0, token1=token1, liquidity="1000000")
    farming = {"rewardToken": REWARD_TOKEN, "bonusRewardToken": ZERO_ADDRESS, "rewardRate": "1", "bonusRewardRate": "0"}
    return SubgraphStub(
        pools=[pool],
        positions=[position_payload("1", pool, liquidity="1000000", lower=1000, upper=2000)],
        poolDayDatas=[{"id": "0xabc-19000", "feesToken0": "10", "feesToken1": "0", "pool": {"id": "0xABC"}}],
        eternalFarmings=[{"id": "0xfarm", **farming}, {"id": "0xidle", **farming}],
        deposits=[{"id": "1", "eternalFarming": "0xfarm"}],
        tokens=[token(REWARD_TOKEN, decimals=0)],
    )


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()
