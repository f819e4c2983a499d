"""
Snapshot runner.

Evaluates every configured test in order: generate the actual artifact,
load the stored snapshot, compare, then either report or save depending on
the run mode. A failure in one test never stops the others.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .comparator import Comparator, ComparisonVerdict
from .generator import SnapshotGenerator
from .reporting import ConsoleReporter
from .storage import SnapshotStore

logger = logging.getLogger(__name__)


class RunOutcome(Enum):
    """Final status of one test after a run."""

    VALID = "VALID"
    INVALID = "INVALID"
    INPUT_MODIFIED = "INPUT_MODIFIED"
    UPDATED = "UPDATED"


FAILING_OUTCOMES = (RunOutcome.INVALID, RunOutcome.INPUT_MODIFIED)


@dataclass
class TestResult:
    """Outcome of a single snapshot test."""

    __test__ = False  # not a pytest test class

    test_name: str
    outcome: RunOutcome
    verdict: Optional[ComparisonVerdict] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "verdict": self.verdict.value if self.verdict else None,
            "error": self.error,
        }


class RunResults:
    """Ordered results of one run, keyed by test name."""

    def __init__(self):
        self._results: dict[str, TestResult] = {}

    def record(self, result: TestResult) -> None:
        if result.test_name in self._results:
            raise ValueError(f"Result for {result.test_name!r} already recorded")
        self._results[result.test_name] = result

    def __getitem__(self, name: str) -> TestResult:
        return self._results[name]

    def __len__(self) -> int:
        return len(self._results)

    def outcome(self, name: str) -> RunOutcome:
        return self._results[name].outcome

    def by_outcome(self, outcome: RunOutcome) -> list[str]:
        """Test names with the given outcome, in run order."""
        return [name for name, result in self._results.items() if result.outcome is outcome]

    @property
    def failed(self) -> bool:
        return any(result.outcome in FAILING_OUTCOMES for result in self._results.values())

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> dict[str, Any]:
        """Summary suitable for JSON serialization."""
        return {
            "total": len(self),
            "passed": len(self.by_outcome(RunOutcome.VALID)),
            "failed": len(self.by_outcome(RunOutcome.INVALID)),
            "modified": len(self.by_outcome(RunOutcome.INPUT_MODIFIED)),
            "updated": len(self.by_outcome(RunOutcome.UPDATED)),
            "tests": {name: result.to_dict() for name, result in self._results.items()},
        }


class SnapshotRunner:
    """Runs snapshot tests sequentially against a store."""

    def __init__(
        self,
        store: SnapshotStore,
        generator: SnapshotGenerator,
        reporter: Optional[ConsoleReporter] = None,
        update: bool = False,
        comparator: Optional[Comparator] = None,
    ):
        self.store = store
        self.generator = generator
        self.reporter = reporter or ConsoleReporter()
        self.update = update
        self.comparator = comparator or Comparator()

    def run(self) -> RunResults:
        """Run all tests to completion."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> RunResults:
        # Enumeration errors propagate and abort the whole run.
        tests = self.store.list_tests()
        self.reporter.run_started(len(tests))

        results = RunResults()
        for name in tests:
            results.record(await self.run_test(name))

        self.reporter.summary(results)
        return results

    async def run_test(self, name: str) -> TestResult:
        """Evaluate a single test; never raises for per-test failures."""
        try:
            return await self._evaluate(name)
        except Exception as e:
            logger.debug(f"Snapshot test {name} failed", exc_info=True)
            self.reporter.error(name, e)
            return TestResult(test_name=name, outcome=RunOutcome.INVALID, error=str(e))

    async def _evaluate(self, name: str) -> TestResult:
        actual = await self.generator.generate_actual_snapshot(name)
        expected = self.store.get_expected_snapshot(name)
        comparison = self.comparator.compare(expected, actual)
        verdict = comparison.verdict

        if self.update:
            if verdict is ComparisonVerdict.VALID:
                self.reporter.already_matches(name)
                return TestResult(name, RunOutcome.VALID, verdict)
            self.reporter.updating(name)
            self.store.save_snapshot(name, actual)
            return TestResult(name, RunOutcome.UPDATED, verdict)

        if verdict is ComparisonVerdict.VALID:
            self.reporter.matches(name)
            return TestResult(name, RunOutcome.VALID, verdict)

        if verdict is ComparisonVerdict.MODIFIED:
            self.reporter.modified(name, comparison)
            return TestResult(name, RunOutcome.INPUT_MODIFIED, verdict)

        if verdict is ComparisonVerdict.NO_PRIOR_SNAPSHOT:
            self.reporter.saving_missing(name)
            self.store.save_snapshot(name, actual)
            return TestResult(name, RunOutcome.UPDATED, verdict)

        self.reporter.mismatch(name, expected.content, actual, comparison)
        return TestResult(name, RunOutcome.INVALID, verdict)
