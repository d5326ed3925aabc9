# src/main.py — v3
"""CLI entry point — run, plan, manifest commands.

Usage:
    hubdeploy run --plan <file> [--tags a,b] [--network N]
    hubdeploy plan --plan <file> [--tags a,b] [--network N]
    hubdeploy manifest [--network N]

Exit status: 0 on full success, 1 if any step failed or was blocked,
2 on usage or configuration errors (nothing deployed).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from hubdeploy.core.errors import ConfigurationError
from hubdeploy.version import __version__

if TYPE_CHECKING:
    from hubdeploy.config.settings import Settings
    from hubdeploy.pipeline.step import Step

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STEP_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        settings = _load_settings(args)
        _setup_logging(settings, args.verbose)
        return asyncio.run(args.func(args, settings))
    except ValidationError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="hubdeploy",
        description=f"hubdeploy v{__version__} — dependency-ordered contract deployment",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-n", "--network", default=None,
        help="Network name (default: NETWORK setting)",
    )
    common.add_argument(
        "--manifest-dir", type=Path, default=None,
        help="Directory holding <network>_contracts.json",
    )

    planning = argparse.ArgumentParser(add_help=False)
    planning.add_argument(
        "-p", "--plan", type=Path, default=None,
        help="Plan file (JSON) declaring deployment steps",
    )
    planning.add_argument(
        "-t", "--tags", default=None,
        help="Comma-separated tags to run; dependencies are always included",
    )
    planning.add_argument(
        "--chain-state", type=Path, default=None,
        help="Local chain state file (JSON)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser(
        "run", parents=[common, planning], help="Deploy and migrate steps",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- plan ---
    p_plan = subparsers.add_parser(
        "plan", parents=[common, planning],
        help="Show resolved order and gate decisions without deploying",
    )
    p_plan.set_defaults(func=_cmd_plan)

    # --- manifest ---
    p_manifest = subparsers.add_parser(
        "manifest", parents=[common], help="Show recorded deployments",
    )
    p_manifest.set_defaults(func=_cmd_manifest)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    """Build Settings, applying CLI overrides over .env values."""
    from hubdeploy.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.network:
        overrides["network"] = args.network
    if args.manifest_dir:
        overrides["manifest_dir"] = args.manifest_dir
    if getattr(args, "plan", None):
        overrides["plan_file"] = args.plan
    if getattr(args, "chain_state", None):
        overrides["chain_state_file"] = args.chain_state
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return load_settings(**overrides)


def _select_steps(args: argparse.Namespace, settings: Settings) -> list[Step]:
    from hubdeploy.pipeline.registry import StepRegistry

    if settings.plan_file is None:
        raise ConfigurationError("No plan file given (use --plan or PLAN_FILE)")
    registry = StepRegistry.from_plan_file(settings.plan_file)

    if args.tags is not None:
        tags = [t.strip() for t in args.tags.split(",") if t.strip()]
    else:
        tags = settings.default_tags_list
    return registry.select(tags)


async def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute deployment run."""
    from hubdeploy.chain.chain_factory import create_chain
    from hubdeploy.manifest.store_factory import create_manifest_store
    from hubdeploy.pipeline.runner import OrchestratorRunner

    steps = _select_steps(args, settings)
    store = create_manifest_store(settings)
    manifest = await store.load()
    chain = create_chain(settings)

    runner = OrchestratorRunner(
        deployer=chain,
        registry=chain,
        parameter_source=chain,
        manifest_store=store,
    )
    result = await runner.run(steps, manifest)

    print(f"\nRun {result.run_id} on {settings.network}:")
    for outcome in result.outcomes.values():
        detail = outcome.address or ""
        if outcome.error:
            detail = outcome.error
        elif outcome.blocked_by:
            detail = "blocked by " + ", ".join(outcome.blocked_by)
        print(f"  {outcome.status.value:9s} {outcome.step_name:32s} {detail}")
    print(f"  Duration: {result.duration_ms}ms")
    return result.exit_code


async def _cmd_plan(args: argparse.Namespace, settings: Settings) -> int:
    """Print resolved order with gate decisions."""
    from hubdeploy.manifest.store_factory import create_manifest_store
    from hubdeploy.pipeline.runner import preview

    steps = _select_steps(args, settings)
    manifest = await create_manifest_store(settings).load()

    print(f"\nPlan for {settings.network}:")
    for idx, planned in enumerate(preview(steps, manifest), start=1):
        step = planned.step
        print(
            f"  {idx:3d}. {step.name:32s} {planned.decision.action.value:13s} "
            f"{planned.decision.reason}"
        )
    return EXIT_OK


async def _cmd_manifest(args: argparse.Namespace, settings: Settings) -> int:
    """Print recorded manifest entries."""
    from hubdeploy.manifest.store_factory import create_manifest_store

    manifest = await create_manifest_store(settings).load()
    if not len(manifest):
        print(f"\nNo deployments recorded for {settings.network}")
        return EXIT_OK

    print(f"\nDeployments on {settings.network}:")
    for name, entry in sorted(manifest.contracts.items()):
        print(
            f"  {name:32s} {entry.address}  v{entry.version or '-':8s} "
            f"{entry.implementation or ''}"
        )
    return EXIT_OK


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from hubdeploy.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
