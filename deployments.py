#!/usr/bin/env python3
"""Create the Prefect deployment for the APR update flow.

Alternative to the in-process scheduler (`python -m src.main`): the same
per-network cycle runs as the `apr-update` flow on a Prefect work pool, every
`apr_update_minutes` minutes. Do not run both against the same database.

By default the flow is imported from local code; pass `--source` to deploy from
remote code storage instead:

	flow.from_source(source=..., entrypoint=...).deploy(...)
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from prefect.schedules import Interval

from src.core.config import settings


DEFAULT_SOURCE = os.getenv("PREFECT_DEPLOY_SOURCE")
ENTRYPOINT = "src/pipelines/flows/apr_update.py:apr_update_flow"


@dataclass(frozen=True)
class DeploymentSpec:
	name: str
	entrypoint: str
	interval: timedelta


def build_deployment_spec(minutes: int | None = None) -> DeploymentSpec:
	minutes = minutes or settings.apr_update_minutes
	return DeploymentSpec(
		name=f"apr-update-every-{minutes}m",
		entrypoint=ENTRYPOINT,
		interval=timedelta(minutes=minutes),
	)


def _build_source(source: str, ref: str | None) -> Any:
	"""Return a `source` value compatible with `flow.from_source`.

	A plain URL is used unless a git ref is requested.
	"""
	if not ref:
		return source

	from prefect.runner.storage import GitRepository

	return GitRepository(url=source, reference=ref)


def deploy(
	spec: DeploymentSpec,
	*,
	source: str | None,
	ref: str | None,
	work_pool_name: str,
	work_queue_name: str | None,
	image: str | None,
) -> None:
	if source:
		from prefect import flow

		deploy_flow = flow.from_source(source=_build_source(source, ref), entrypoint=spec.entrypoint)
	else:
		from src.pipelines.flows.apr_update import apr_update_flow

		deploy_flow = apr_update_flow

	deploy_kwargs: dict[str, Any] = {
		"name": spec.name,
		"work_pool_name": work_pool_name,
		"schedules": [Interval(spec.interval)],
	}
	if work_queue_name:
		deploy_kwargs["work_queue_name"] = work_queue_name

	# For managed pools, image is typically set in the pool's base job template.
	if image:
		deploy_kwargs["job_variables"] = {"image": image}

	deploy_flow.deploy(**deploy_kwargs)
	print(f"Deployed {spec.name}")


def main() -> None:
	p = argparse.ArgumentParser(description="Create the Prefect deployment for the APR update flow.")
	p.add_argument("--work-pool", required=True, help="Prefect work pool name")
	p.add_argument("--work-queue", default=None, help="Optional work queue name")
	p.add_argument(
		"--minutes",
		type=int,
		default=None,
		help="Schedule interval in minutes (default: apr_update_minutes from config)",
	)
	p.add_argument(
		"--source",
		default=DEFAULT_SOURCE,
		help="Remote code storage source (git URL, s3://, ...). Default: local code.",
	)
	p.add_argument("--ref", default=None, help="Optional git ref; used only with --source.")
	p.add_argument("--image", default=None, help="Optional image override via job variables.")
	args = p.parse_args()

	deploy(
		build_deployment_spec(args.minutes),
		source=args.source,
		ref=args.ref,
		work_pool_name=args.work_pool,
		work_queue_name=args.work_queue,
		image=args.image,
	)


if __name__ == "__main__":
	main()
