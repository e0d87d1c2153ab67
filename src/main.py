# src/main.py — v2
"""CLI entry point: generate, resume, restore, backups and checkpoint commands.

Usage:
    vibecode generate "<task>" [--project DIR] [--force-new]
    vibecode resume [--project DIR]
    vibecode restore [NAME] [--project DIR]
    vibecode backups list|clean [--days N] [--project DIR]
    vibecode checkpoint show|clear [--project DIR]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from vibecode.config.settings import Settings, load_settings
from vibecode.core.errors import RunInProgress
from vibecode.logging.logger import setup_logging
from vibecode.version import __version__

logger = logging.getLogger("vibecode.cli")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else "INFO")

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
        _setup_logging(settings, args.verbose)
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except RunInProgress as exc:
        logger.error("%s", exc)
        return 2
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="vibecode",
        description=f"vibecode v{__version__} — document-driven code generation",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    project = argparse.ArgumentParser(add_help=False)
    project.add_argument(
        "--project", type=Path, default=None,
        help="Project root (default: PROJECT_ROOT or the current directory)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- generate ---
    p_generate = subparsers.add_parser(
        "generate", parents=[project], help="Generate files for a task",
    )
    p_generate.add_argument("task", help="Natural-language task")
    p_generate.add_argument(
        "--force-new", action="store_true",
        help="Ignore a pending checkpoint and start a fresh run",
    )
    p_generate.set_defaults(func=_cmd_generate)

    # --- resume ---
    p_resume = subparsers.add_parser(
        "resume", parents=[project], help="Resume the interrupted run",
    )
    p_resume.set_defaults(func=_cmd_resume)

    # --- restore ---
    p_restore = subparsers.add_parser(
        "restore", parents=[project], help="Restore a snapshot into the target dir",
    )
    p_restore.add_argument(
        "name", nargs="?", default=None,
        help="Snapshot name or part of it (default: newest known-good)",
    )
    p_restore.set_defaults(func=_cmd_restore)

    # --- backups ---
    p_backups = subparsers.add_parser(
        "backups", parents=[project], help="List or prune snapshots",
    )
    p_backups.add_argument("action", choices=["list", "clean"])
    p_backups.add_argument(
        "--days", type=int, default=None,
        help="Retention in days for 'clean' (default: BACKUP_RETENTION_DAYS)",
    )
    p_backups.set_defaults(func=_cmd_backups)

    # --- checkpoint ---
    p_checkpoint = subparsers.add_parser(
        "checkpoint", parents=[project], help="Inspect or clear the pending run",
    )
    p_checkpoint.add_argument("action", choices=["show", "clear"])
    p_checkpoint.set_defaults(func=_cmd_checkpoint)

    return parser


async def _cmd_generate(args: argparse.Namespace, settings: Settings) -> int:
    from vibecode.api.facade import generate

    result = await generate(args.task, settings, force_new=args.force_new)
    _print_run_summary(result)
    return 0 if result.success else 1


async def _cmd_resume(args: argparse.Namespace, settings: Settings) -> int:
    from vibecode.api.facade import resume

    result = await resume(settings)
    if result is None:
        print("Nothing to resume.")
        return 0
    _print_run_summary(result)
    return 0 if result.success else 1


async def _cmd_restore(args: argparse.Namespace, settings: Settings) -> int:
    from vibecode.api.facade import restore

    if not await restore(args.name, settings):
        logger.error("No snapshot to restore%s", f" matching {args.name!r}" if args.name else "")
        return 1
    print("Snapshot restored.")
    return 0


async def _cmd_backups(args: argparse.Namespace, settings: Settings) -> int:
    from vibecode.api.facade import clean_backups, list_backups

    if args.action == "clean":
        deleted = await clean_backups(args.days, settings)
        print(f"Deleted {deleted} snapshot(s).")
        return 0

    snapshots = list_backups(settings)
    if not snapshots:
        print("No snapshots.")
        return 0
    for snap in snapshots:
        print(
            f"  {snap.name:<48} {snap.created_at:%Y-%m-%d %H:%M}"
            f"  {len(snap.files):>4} file(s)  {snap.kind}"
        )
    return 0


async def _cmd_checkpoint(args: argparse.Namespace, settings: Settings) -> int:
    from vibecode.api.facade import clear_checkpoint, show_checkpoint

    if args.action == "clear":
        await clear_checkpoint(settings)
        print("Checkpoint cleared.")
        return 0

    run = await show_checkpoint(settings)
    if run is None:
        print("No checkpoint.")
        return 0
    print(f"\nPending run {run.id}:")
    print(f"  Task:       {run.task or '<default>'}")
    print(f"  Stage:      {run.stage}")
    if run.failed_stage:
        print(f"  Failed at:  {run.failed_stage}")
    if run.last_error:
        print(f"  Error:      {run.last_error.message}")
    print(f"  Generated:  {len(run.generated_files)}")
    print(f"  Saved:      {len(run.saved_files)}")
    unsaved = run.unsaved_paths()
    if unsaved:
        print(f"  Unsaved:    {', '.join(unsaved)}")
    return 0


def _print_run_summary(result: object) -> None:
    """Print a human-readable summary of a RunResult."""
    print(f"\nRun {'resumed' if result.resumed else 'complete'}: {result.run_id}")
    print(f"  Stage:      {result.stage}")
    print(f"  Generated:  {result.files_generated}")
    print(f"  Saved:      {len(result.files_saved)}")
    if result.skipped_files:
        print(f"  Skipped:    {len(result.skipped_files)} (already saved)")
    for failure in result.failed_files:
        print(f"  Failed:     {failure.path}: {failure.error}")
    if result.debug_artifact:
        print(f"  No files found; raw response in {result.debug_artifact}")
    if result.backup_name:
        print(f"  Snapshot:   {result.backup_name}")
    print(f"  Duration:   {result.duration_ms}ms")


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if getattr(args, "project", None) is not None:
        overrides["project_root"] = args.project
    return load_settings(**overrides)


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage from settings."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
