import argparse
import asyncio
import os
import sys
from pathlib import Path


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run one APR update cycle for every stored network")
    p.add_argument(
        "--prefect",
        action="store_true",
        help="Run through the Prefect `apr-update` flow instead of calling the cycle directly.",
    )
    p.add_argument(
        "--use-prefect-api",
        action="store_true",
        help="With --prefect, use PREFECT_API_URL/PREFECT_API_KEY from the environment. Default is ephemeral.",
    )
    return p.parse_args()


def _maybe_set_ephemeral_prefect_env(use_prefect_api: bool) -> None:
    if use_prefect_api:
        return
    # Ensure local execution doesn't depend on Prefect server/cloud.
    os.environ.pop("PREFECT_API_URL", None)
    os.environ.pop("PREFECT_API_KEY", None)
    os.environ.setdefault("PREFECT_SERVER_ALLOW_EPHEMERAL_MODE", "true")


async def _run(use_flow: bool) -> int:
    from src.api.app import import_networks
    from src.core.config import settings
    from src.core.database import dispose_engine
    from src.pipelines.flows.apr_update import apr_update_flow, run_apr_update
    from src.services.store import AprStore

    store = AprStore()
    try:
        await import_networks(store, settings)
        results = await apr_update_flow() if use_flow else await run_apr_update(store)
    finally:
        await dispose_engine()

    for title, ok in sorted(results.items()):
        print(f"{title}: {'ok' if ok else 'FAILED'}")
    return 0 if all(results.values()) else 1


def main() -> int:
    args = _parse_args()

    # Ensure `import src...` works when running from the repo root.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    from src.core.config import settings
    from src.core.logging_setup import configure_logging

    configure_logging(settings.log_level)
    if args.prefect:
        _maybe_set_ephemeral_prefect_env(args.use_prefect_api)

    return asyncio.run(_run(use_flow=args.prefect))


if __name__ == "__main__":
    raise SystemExit(main())
