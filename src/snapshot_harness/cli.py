"""
Command-line interface for snapshot testing.

This module provides CLI commands for running the snapshot harness,
inspecting stored snapshots and managing configuration.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import formatting as fmt
from .comparator import Comparator
from .config import ConfigError, ConfigManager, HarnessConfig
from .generator import CallableGenerator, CommandGenerator, SnapshotGenerator
from .reporting import make_reporter
from .runner import SnapshotRunner
from .storage import EnumerationError, SnapshotStore

logger = logging.getLogger(__name__)


def build_generator(config: HarnessConfig) -> SnapshotGenerator:
    """Create the generator described by the configuration."""
    if config.command and config.callable:
        raise ConfigError("Configure either 'command' or 'callable', not both")
    if config.command:
        return CommandGenerator(config.command, timeout=config.timeout)
    if config.callable:
        return CallableGenerator.from_target(config.callable, timeout=config.timeout)
    raise ConfigError("No generator configured: set 'command' or 'callable'")


def select_tests(configured: list[str], names: Optional[list[str]]) -> list[str]:
    """Restrict the configured tests to ``names``, keeping configured order."""
    if not names:
        return list(configured)

    unknown = [name for name in names if name not in configured]
    if unknown:
        raise EnumerationError(f"Unknown snapshot tests: {', '.join(unknown)}")

    wanted = set(names)
    return [name for name in configured if name in wanted]


class SnapshotCLI:
    """Command-line interface for snapshot testing."""

    def __init__(self):
        self.config_manager: Optional[ConfigManager] = None
        self.config = HarnessConfig()

    def run(self, args: Optional[list[str]] = None) -> int:
        """Run the CLI with given arguments."""
        parser = self._create_parser()
        parsed_args = parser.parse_args(args)

        if not getattr(parsed_args, "func", None):
            parser.print_help()
            return 1

        try:
            self.config_manager = ConfigManager(parsed_args.config)
            self.config = self.config_manager.get_config()
            self._apply_output_options(parsed_args)
            return parsed_args.func(parsed_args)
        except KeyboardInterrupt:
            logger.info("\nInterrupted by user")
            return 1
        except Exception as e:
            logger.error(f"Error: {e}")
            if self.config.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="snapshot-harness",
            description="Snapshot testing harness for generated text artifacts",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument("--config", "-c", type=Path, help="Configuration file path")

        parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

        parser.add_argument("--quiet", "-q", action="store_true", help="Quiet output")

        parser.add_argument(
            "--no-color", action="store_true", help="Disable colored output"
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        # Run command
        run_parser = subparsers.add_parser("run", help="Run snapshot tests")
        run_parser.add_argument(
            "names", nargs="*", help="Only run these tests (default: all configured tests)"
        )
        run_parser.add_argument(
            "--update",
            action="store_true",
            help="Overwrite stored snapshots with the generated artifacts",
        )
        run_parser.add_argument(
            "--snapshot-dir", type=Path, help="Directory containing snapshots"
        )
        generator_group = run_parser.add_mutually_exclusive_group()
        generator_group.add_argument(
            "--command",
            dest="generator_command",
            help="Shell command producing the artifact; {name} is replaced by the test name",
        )
        generator_group.add_argument(
            "--callable",
            dest="generator_callable",
            metavar="MODULE:FUNCTION",
            help="Python function called with the test name",
        )
        run_parser.add_argument(
            "--timeout", type=float, help="Maximum generation time per test in seconds"
        )
        run_parser.add_argument(
            "--summary", type=Path, help="Path to write summary JSON file"
        )
        run_parser.set_defaults(func=self._run_command)

        # List command
        list_parser = subparsers.add_parser("list", help="List configured tests and snapshot state")
        list_parser.add_argument(
            "--snapshot-dir", type=Path, help="Directory containing snapshots"
        )
        list_parser.set_defaults(func=self._list_command)

        # Clean command
        clean_parser = subparsers.add_parser("clean", help="Delete snapshots of unconfigured tests")
        clean_parser.add_argument(
            "--snapshot-dir", type=Path, help="Directory containing snapshots"
        )
        clean_parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting",
        )
        clean_parser.set_defaults(func=self._clean_command)

        # Config command
        config_parser = subparsers.add_parser("config", help="Configuration management")
        config_parser.add_argument(
            "--init", action="store_true", help="Initialize default configuration file"
        )
        config_parser.add_argument("--show", action="store_true", help="Show current configuration")
        config_parser.set_defaults(func=self._config_command)

        return parser

    def _apply_output_options(self, args) -> None:
        from . import configure_logging

        if args.verbose:
            self.config.verbose = True
        if args.quiet:
            self.config.quiet = True
        if args.no_color:
            self.config.color = False

        configure_logging(logging.DEBUG if self.config.verbose else logging.INFO)

    def _store(self, args, tests: Optional[list[str]] = None) -> SnapshotStore:
        if getattr(args, "snapshot_dir", None):
            self.config.snapshot_dir = str(args.snapshot_dir)
        return SnapshotStore(
            self.config.get_snapshot_dir(),
            self.config.tests if tests is None else tests,
        )

    def _run_command(self, args) -> int:
        """Handle the run command."""
        self.config_manager.update_config(
            command=args.generator_command,
            callable=args.generator_callable,
            timeout=args.timeout,
        )
        if args.generator_command:
            self.config.callable = None
        if args.generator_callable:
            self.config.command = None

        tests = select_tests(self.config.tests, args.names)
        store = self._store(args, tests)
        generator = build_generator(self.config)
        reporter = make_reporter(self.config.color, quiet=self.config.quiet, stream=sys.stdout)

        logger.debug(f"Comparing against snapshots in {store.snapshot_dir}")
        if args.update:
            logger.debug("Update mode: stored snapshots will be overwritten")

        runner = SnapshotRunner(store, generator, reporter=reporter, update=args.update)
        results = runner.run()

        if args.summary:
            summary = results.to_dict()
            summary.update(
                {
                    "update": args.update,
                    "timestamp": datetime.now().isoformat(),
                    "snapshot_dir": str(store.snapshot_dir),
                }
            )
            try:
                with open(args.summary, "w", encoding="utf-8") as f:
                    json.dump(summary, f, indent=2)
                logger.info(f"\nSummary written to {args.summary}")
            except OSError as e:
                logger.warning(f"Failed to write summary to {args.summary}: {e}")

        return results.exit_code

    def _list_command(self, args) -> int:
        """Handle the list command."""
        store = self._store(args)
        comparator = Comparator()
        tests = store.list_tests()
        color = self.config.color
        if color is None:
            color = fmt.supports_color(sys.stdout)
        labels = {"stored": fmt.green, "missing": fmt.blue, "modified": fmt.red}

        logger.info(f"{len(tests)} snapshot tests in {store.snapshot_dir}:")

        for name in tests:
            expected = store.get_expected_snapshot(name)
            if expected is None:
                state = "missing"
            elif comparator.modification_reason(expected):
                state = "modified"
            else:
                state = "stored"
            logger.info(f"  {name} [{labels[state](state, color)}]")
            if self.config.verbose and expected is not None and expected.metadata:
                metadata = expected.metadata
                logger.debug(f"    Saved: {metadata.timestamp} ({metadata.git_commit or 'no commit'})")

        orphans = store.orphaned_snapshots()
        if orphans:
            logger.info(f"{len(orphans)} snapshots without a configured test:")
            for name in orphans:
                logger.info(f"  {name}")

        return 0

    def _clean_command(self, args) -> int:
        """Handle the clean command."""
        store = self._store(args)

        if not store.snapshot_dir.exists():
            logger.info(f"Snapshot directory {store.snapshot_dir} does not exist")
            return 0

        orphans = store.orphaned_snapshots()
        if not orphans:
            logger.info("No orphaned snapshots")
            return 0

        for name in orphans:
            if args.dry_run:
                logger.info(f"Would delete: {name}")
            else:
                store.delete_snapshot(name)
                logger.info(f"Deleted: {name}")

        if args.dry_run:
            logger.info("Dry run - no files were deleted")
        else:
            store.cleanup_empty_directories()

        return 0

    def _config_command(self, args) -> int:
        """Handle the config command."""
        if args.init:
            if self.config_manager.config_path.exists():
                logger.error(f"Configuration already exists at {self.config_manager.config_path}")
                return 1
            self.config_manager.create_default_config()
            return 0

        if args.show:
            logger.info("Current configuration:")
            config_dict = self.config.to_dict()
            for key, value in config_dict.items():
                logger.info(f"  {key}: {value}")
            return 0

        logger.info("Use --init to create default config or --show to display current config")
        return 0


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    cli = SnapshotCLI()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
