"""
Snapshot testing harness for generated text artifacts.

This package generates an artifact for each configured test, compares it
with the snapshot stored in version control and optionally rewrites the
snapshot in update mode.
"""

import logging
import sys

__version__ = "0.1.0"

# Configure logging for the package
def configure_logging(level=logging.INFO):
    """Configure logging for the snapshot_harness package."""
    # Configure the package-level logger
    logger = logging.getLogger('snapshot_harness')

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter('%(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger

# Configure logging by default
configure_logging()

# Import main classes for public API
from .cli import SnapshotCLI, main
from .comparator import Comparator, ComparisonResult, ComparisonVerdict, compare_snapshots
from .config import ConfigError, ConfigManager, HarnessConfig
from .generator import CallableGenerator, CommandGenerator, GenerationError, SnapshotGenerator
from .reporting import ConsoleReporter
from .runner import RunOutcome, RunResults, SnapshotRunner, TestResult
from .storage import (
    EnumerationError,
    ExpectedSnapshot,
    SnapshotMetadata,
    SnapshotStore,
    compute_checksum,
)

__all__ = [
    # Version
    "__version__",
    "configure_logging",
    # Storage
    "SnapshotStore",
    "SnapshotMetadata",
    "ExpectedSnapshot",
    "EnumerationError",
    "compute_checksum",
    # Comparator
    "Comparator",
    "ComparisonResult",
    "ComparisonVerdict",
    "compare_snapshots",
    # Generators
    "SnapshotGenerator",
    "CommandGenerator",
    "CallableGenerator",
    "GenerationError",
    # Runner
    "SnapshotRunner",
    "RunOutcome",
    "RunResults",
    "TestResult",
    # Reporting
    "ConsoleReporter",
    # Config
    "ConfigManager",
    "HarnessConfig",
    "ConfigError",
    # CLI
    "SnapshotCLI",
    "main",
]
