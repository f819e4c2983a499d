"""
Comparison engine for snapshot testing.

This module classifies a freshly generated artifact against the stored
snapshot. Stored snapshots carry the checksum written by the harness on
save; a snapshot whose checksum no longer matches was changed by hand and is
reported as modified rather than as a regression.
"""
from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .storage import ExpectedSnapshot, compute_checksum


class ComparisonVerdict(Enum):
    """Outcome of comparing a stored snapshot with a generated artifact."""

    VALID = "valid"
    MODIFIED = "modified"
    MISMATCH = "mismatch"
    NO_PRIOR_SNAPSHOT = "no_prior_snapshot"


@dataclass
class ComparisonResult:
    """Result of comparing two artifacts."""

    verdict: ComparisonVerdict
    details: Optional[str] = None
    diff: list[str] = field(default_factory=list)

    @property
    def match(self) -> bool:
        return self.verdict is ComparisonVerdict.VALID


class Comparator:
    """Compares stored snapshots with generated artifacts."""

    def __init__(self, diff_context: int = 3):
        self.diff_context = diff_context

    def compare(self, expected: Optional[ExpectedSnapshot], actual: str) -> ComparisonResult:
        """Compare ``actual`` with the stored snapshot ``expected``.

        Tampering is checked before equality, so a hand-edited snapshot is
        reported as modified even when it equals the new artifact.
        """
        if expected is None:
            return ComparisonResult(
                verdict=ComparisonVerdict.NO_PRIOR_SNAPSHOT,
                details="No snapshot has been saved for this test",
            )

        reason = self.modification_reason(expected)
        if reason is not None:
            return ComparisonResult(verdict=ComparisonVerdict.MODIFIED, details=reason)

        if expected.content == actual:
            return ComparisonResult(verdict=ComparisonVerdict.VALID)

        return ComparisonResult(
            verdict=ComparisonVerdict.MISMATCH,
            details="Generated artifact differs from stored snapshot",
            diff=self._unified_diff(expected.test_name, expected.content, actual),
        )

    def modification_reason(self, expected: ExpectedSnapshot) -> Optional[str]:
        """Describe why ``expected`` looks externally modified, or None."""
        if expected.content is None:
            return "Snapshot file is missing but its metadata exists"

        metadata = expected.metadata
        if metadata is None:
            return "Snapshot metadata is missing or unreadable"

        if metadata.test_name != expected.test_name:
            return (
                f"Snapshot metadata belongs to {metadata.test_name!r}, "
                f"not {expected.test_name!r}"
            )

        checksum = compute_checksum(expected.content)
        if metadata.checksum != checksum:
            return f"Checksum mismatch: recorded {metadata.checksum}, found {checksum}"

        return None

    def _unified_diff(self, name: str, expected: str, actual: str) -> list[str]:
        return list(
            difflib.unified_diff(
                expected.splitlines(),
                actual.splitlines(),
                fromfile=f"{name} (expected)",
                tofile=f"{name} (actual)",
                lineterm="",
                n=self.diff_context,
            )
        )


def compare_snapshots(expected: Optional[ExpectedSnapshot], actual: str) -> ComparisonVerdict:
    """Return the verdict for ``actual`` against ``expected``."""
    return Comparator().compare(expected, actual).verdict
