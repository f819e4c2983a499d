"""
Pytest configuration and shared fixtures for snapshot_harness tests.
"""

import shutil
import tempfile
from pathlib import Path

import pytest

from snapshot_harness.generator import GenerationError, SnapshotGenerator


class FakeGenerator(SnapshotGenerator):
    """Generator returning canned artifacts; a stored exception is raised instead."""

    def __init__(self, outputs=None):
        self.outputs = dict(outputs or {})
        self.calls = []

    async def generate_actual_snapshot(self, name):
        self.calls.append(name)
        output = self.outputs[name]
        if isinstance(output, Exception):
            raise output
        return output


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture
def temp_snapshot_dir(temp_dir):
    """Create a temporary snapshot directory."""
    snapshot_path = temp_dir / ".snapshots"
    snapshot_path.mkdir(parents=True, exist_ok=True)
    return snapshot_path


@pytest.fixture
def fake_generator():
    """Factory for FakeGenerator instances."""
    return FakeGenerator


@pytest.fixture
def generation_error():
    """Factory for generation errors."""
    def make(name, message="boom"):
        return GenerationError(name, message)
    return make
