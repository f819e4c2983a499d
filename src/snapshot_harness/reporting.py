"""
Console reporting for snapshot runs.

Everything is written through the ``snapshot_harness.reporting`` logger so
that the package logging configuration decides where output goes.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from . import formatting as fmt

if TYPE_CHECKING:
    from .comparator import ComparisonResult
    from .runner import RunResults

logger = logging.getLogger(__name__)

UPDATE_COMMAND = "snapshot-harness run --update"


class ConsoleReporter:
    """Writes per-test status lines and the run summary."""

    def __init__(self, color: bool = False, quiet: bool = False, update_command: str = UPDATE_COMMAND):
        self.color = color
        self.quiet = quiet
        self.update_command = update_command

    def _status(self, name: str, status: str, *codes: str) -> str:
        return fmt.style(f"### {name}: {status}", fmt.BOLD, *codes, enabled=self.color)

    def run_started(self, count: int) -> None:
        logger.info(f"Running {count} snapshot tests.")

    def matches(self, name: str) -> None:
        if not self.quiet:
            logger.info(self._status(name, "matches", fmt.GREEN))

    def already_matches(self, name: str) -> None:
        if not self.quiet:
            logger.info(self._status(name, "already matches", fmt.GREEN))

    def updating(self, name: str) -> None:
        logger.info(self._status(name, "updating", fmt.BLUE))

    def saving_missing(self, name: str) -> None:
        logger.info(self._status(name, "missing data, saving generated snapshot", fmt.BLUE))

    def modified(self, name: str, comparison: "ComparisonResult") -> None:
        logger.error(self._status(name, "INPUT WAS MODIFIED", fmt.RED))
        if comparison.details:
            logger.error(fmt.red(comparison.details, self.color))
        logger.error("")

    def mismatch(self, name: str, expected: str, actual: str, comparison: "ComparisonResult") -> None:
        logger.error(self._status(name, "DOES NOT MATCH", fmt.RED))
        logger.error(fmt.red(f"EXPECTED:\n{expected}", self.color))
        logger.error(fmt.blue(f"GOT:\n{actual}", self.color))
        if comparison.diff:
            logger.debug("\n".join(comparison.diff))
        logger.error("")

    def error(self, name: str, error: BaseException) -> None:
        logger.error(self._status(name, "ERROR", fmt.RED))
        logger.error(fmt.red(str(error), self.color))
        logger.error("")

    def summary(self, results: "RunResults") -> None:
        from .runner import RunOutcome

        passed = results.by_outcome(RunOutcome.VALID)
        failed = results.by_outcome(RunOutcome.INVALID)
        modified = results.by_outcome(RunOutcome.INPUT_MODIFIED)
        updated = results.by_outcome(RunOutcome.UPDATED)

        logger.info("")
        logger.info(fmt.bold(" === SUMMARY ===", self.color))
        self._group("PASSED", passed, fmt.GREEN)
        self._group("FAILED", failed, fmt.RED)
        self._group("MODIFIED", modified, fmt.RED)
        self._group("UPDATED", updated, fmt.BLUE)

        if failed or modified:
            logger.info("")
            if modified:
                logger.info(
                    "One or more stored snapshots were modified outside the harness, "
                    "so their contents can no longer be trusted."
                )
            if failed:
                logger.info("If the behavior under test has changed, this failure is expected.")
            logger.info(f"Update snapshots with {fmt.bold(self.update_command, self.color)}")
            logger.info("Review the diff in version control, then commit the updated snapshot files.")

    def _group(self, label: str, names: list[str], code: str) -> None:
        if not names:
            return
        header = fmt.style(f"{label} {len(names)}", fmt.BOLD, code, enabled=self.color)
        logger.info(f"{header}{fmt.gray(' ' + ', '.join(names), self.color)}")


def make_reporter(color: Optional[bool] = None, quiet: bool = False, stream=None) -> ConsoleReporter:
    """Build a reporter, detecting color support when ``color`` is None."""
    if color is None:
        color = fmt.supports_color(stream)
    return ConsoleReporter(color=color, quiet=quiet)
