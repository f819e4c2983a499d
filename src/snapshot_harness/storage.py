"""
Snapshot storage and management system.

Each test owns one plain-text artifact under the snapshot directory plus a
JSON sidecar holding the checksum written by the last save, so that edits
made outside the harness can be detected later.

Layout::

    <snapshot_dir>/<test name>.snap       artifact text, UTF-8
    <snapshot_dir>/<test name>.snap.json  SnapshotMetadata
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import subprocess
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any, Optional

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".snap"
METADATA_SUFFIX = ".snap.json"


class EnumerationError(Exception):
    """The set of snapshot tests could not be determined."""


def compute_checksum(text: str) -> str:
    """Return the checksum recorded for an artifact."""
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass
class SnapshotMetadata:
    """Metadata written beside every saved snapshot."""

    test_name: str
    checksum: str
    timestamp: datetime
    git_commit: Optional[str] = None
    git_branch: Optional[str] = None
    python_version: Optional[str] = None
    platform: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SnapshotMetadata":
        """Create from dictionary."""
        data = dict(data)
        if isinstance(data.get("timestamp"), str):
            data["timestamp"] = datetime.fromisoformat(data["timestamp"])
        return cls(**data)


@dataclass
class ExpectedSnapshot:
    """A stored snapshot as found on disk.

    Either field may be None when only one of the two files exists.
    """

    test_name: str
    content: Optional[str]
    metadata: Optional[SnapshotMetadata]


class SnapshotStore:
    """Owns the persisted snapshots for a fixed, ordered set of tests."""

    def __init__(self, snapshot_dir: Path, tests: list[str]):
        self.snapshot_dir = Path(snapshot_dir)
        self.tests = list(tests)

    def list_tests(self) -> list[str]:
        """Return the configured test names in run order."""
        seen = set()
        for name in self.tests:
            self._validate_name(name)
            if name in seen:
                raise EnumerationError(f"Duplicate snapshot test name: {name!r}")
            seen.add(name)

        return list(self.tests)

    def snapshot_path(self, name: str) -> Path:
        self._validate_name(name)
        return self.snapshot_dir / f"{name}{SNAPSHOT_SUFFIX}"

    def metadata_path(self, name: str) -> Path:
        self._validate_name(name)
        return self.snapshot_dir / f"{name}{METADATA_SUFFIX}"

    def get_expected_snapshot(self, name: str) -> Optional[ExpectedSnapshot]:
        """Load the stored snapshot for ``name``.

        Returns None if nothing was ever saved for this test. I/O errors other
        than a missing file propagate.
        """
        snapshot_path = self.snapshot_path(name)
        metadata_path = self.metadata_path(name)

        content = self._read_artifact(snapshot_path)
        metadata = self._read_metadata(metadata_path)

        if content is None and metadata is None and not metadata_path.exists():
            return None

        return ExpectedSnapshot(test_name=name, content=content, metadata=metadata)

    def save_snapshot(self, name: str, artifact: str) -> Path:
        """Persist ``artifact`` as the expected snapshot for ``name``."""
        snapshot_path = self.snapshot_path(name)
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)

        snapshot_path.write_bytes(artifact.encode("utf-8"))

        metadata = SnapshotMetadata(
            test_name=name,
            checksum=compute_checksum(artifact),
            timestamp=datetime.now(),
            git_commit=self._get_git_commit(),
            git_branch=self._get_git_branch(),
            python_version=self._get_python_version(),
            platform=self._get_platform(),
        )
        with open(self.metadata_path(name), "w", encoding="utf-8") as f:
            json.dump(metadata.to_dict(), f, indent=2, sort_keys=True)
            f.write("\n")

        logger.debug(f"Saved snapshot {name} to {snapshot_path}")
        return snapshot_path

    def list_stored(self) -> list[str]:
        """List the test names of all artifacts present on disk."""
        if not self.snapshot_dir.exists():
            return []

        names = []
        for snap_file in self.snapshot_dir.rglob(f"*{SNAPSHOT_SUFFIX}"):
            relative = snap_file.relative_to(self.snapshot_dir).as_posix()
            names.append(relative[: -len(SNAPSHOT_SUFFIX)])
        return sorted(names)

    def orphaned_snapshots(self) -> list[str]:
        """Stored snapshots whose test is no longer configured."""
        configured = set(self.tests)
        return [name for name in self.list_stored() if name not in configured]

    def delete_snapshot(self, name: str) -> bool:
        """Delete a snapshot and its metadata."""
        snapshot_path = self.snapshot_path(name)
        metadata_path = self.metadata_path(name)

        deleted = False

        if snapshot_path.exists():
            snapshot_path.unlink()
            deleted = True

        if metadata_path.exists():
            metadata_path.unlink()

        return deleted

    def cleanup_empty_directories(self) -> None:
        """Remove empty directories in the snapshot tree."""
        if not self.snapshot_dir.exists():
            return
        for root, dirs, files in os.walk(self.snapshot_dir, topdown=False):
            for dir_name in dirs:
                dir_path = Path(root) / dir_name
                try:
                    if not any(dir_path.iterdir()):
                        dir_path.rmdir()
                except OSError:
                    pass  # Directory not empty or permission error

    def _validate_name(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise EnumerationError(f"Invalid snapshot test name: {name!r}")
        path = PurePosixPath(name)
        if path.is_absolute() or "\\" in name or any(part in ("..", ".") for part in path.parts):
            raise EnumerationError(f"Snapshot test name must be a relative path: {name!r}")
        # A directory named "x.snap" would collide with the files of test "x".
        if any(part.endswith((SNAPSHOT_SUFFIX, METADATA_SUFFIX)) for part in path.parts[:-1]):
            raise EnumerationError(
                f"Snapshot test directories may not end in {SNAPSHOT_SUFFIX!r}: {name!r}"
            )

    def _read_artifact(self, path: Path) -> Optional[str]:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        # Invalid UTF-8 can only come from an outside edit; decoding with
        # replacement makes the checksum fail instead of raising.
        return data.decode("utf-8", errors="replace")

    def _read_metadata(self, path: Path) -> Optional[SnapshotMetadata]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to parse snapshot metadata {path}: {e}")
            return None

        try:
            return SnapshotMetadata.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Invalid snapshot metadata {path}: {e}")
            return None

    def _get_git_commit(self) -> Optional[str]:
        """Get current git commit hash."""
        try:
            result = subprocess.run(
                ["git", "rev-parse", "HEAD"], capture_output=True, text=True, timeout=5
            )
            if result.returncode == 0:
                return result.stdout.strip()[:12]  # Short hash
        except (OSError, subprocess.SubprocessError):
            pass
        return None

    def _get_git_branch(self) -> Optional[str]:
        """Get current git branch."""
        try:
            result = subprocess.run(
                ["git", "branch", "--show-current"], capture_output=True, text=True, timeout=5
            )
            if result.returncode == 0:
                return result.stdout.strip() or None
        except (OSError, subprocess.SubprocessError):
            pass
        return None

    def _get_python_version(self) -> str:
        """Get Python version."""
        import sys

        return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

    def _get_platform(self) -> str:
        """Get platform information."""
        import platform

        return f"{platform.system()}-{platform.machine()}"
