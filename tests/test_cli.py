"""
CLI tests for the snapshot harness.

Each test writes a configuration file and drives SnapshotCLI end to end:
run -> modify -> run --update.
"""
import json
import shlex
import sys

import pytest

from snapshot_harness import formatting as fmt
from snapshot_harness.cli import SnapshotCLI, build_generator, main, select_tests
from snapshot_harness.config import ConfigError, HarnessConfig
from snapshot_harness.generator import CallableGenerator, CommandGenerator
from snapshot_harness.storage import EnumerationError, SnapshotStore

PYTHON = shlex.quote(sys.executable)


def echo_command(prefix):
    """Command writing '<prefix><name>' to stdout."""
    return f"{PYTHON} -c \"import sys; sys.stdout.write('{prefix}' + sys.argv[1])\" {{name}}"


@pytest.fixture
def config_path(temp_dir):
    path = temp_dir / "snapshot_config.json"
    path.write_text(
        json.dumps(
            {
                "tests": ["A", "B"],
                "snapshot_dir": str(temp_dir / ".snapshots"),
                "command": echo_command("v1-"),
                "color": False,
            }
        )
    )
    return path


def run_cli(config_path, *args):
    return SnapshotCLI().run(["--config", str(config_path), *args])


class TestRunCommand:
    """Tests for the run command."""

    def test_first_run_creates_snapshots(self, config_path, temp_dir, caplog):
        assert run_cli(config_path, "run") == 0

        store = SnapshotStore(temp_dir / ".snapshots", ["A", "B"])
        assert store.get_expected_snapshot("A").content == "v1-A"
        assert store.get_expected_snapshot("B").content == "v1-B"
        assert "UPDATED 2 A, B" in caplog.text

    def test_second_run_passes(self, config_path, caplog):
        run_cli(config_path, "run")
        caplog.clear()

        assert run_cli(config_path, "run") == 0
        assert "PASSED 2 A, B" in caplog.text

    def test_changed_output_fails(self, config_path, caplog):
        run_cli(config_path, "run")
        caplog.clear()

        assert run_cli(config_path, "run", "--command", echo_command("v2-")) == 1
        assert "EXPECTED:\nv1-A" in caplog.text
        assert "GOT:\nv2-A" in caplog.text
        assert "FAILED 2 A, B" in caplog.text

    def test_update_accepts_changed_output(self, config_path, temp_dir):
        run_cli(config_path, "run")

        assert run_cli(config_path, "run", "--update", "--command", echo_command("v2-")) == 0

        store = SnapshotStore(temp_dir / ".snapshots", ["A"])
        assert store.get_expected_snapshot("A").content == "v2-A"
        assert run_cli(config_path, "run", "--command", echo_command("v2-")) == 0

    def test_hand_edited_snapshot_fails(self, config_path, temp_dir, caplog):
        run_cli(config_path, "run")
        (temp_dir / ".snapshots" / "A.snap").write_text("v1-A edited")
        caplog.clear()

        assert run_cli(config_path, "run") == 1
        assert "MODIFIED 1 A" in caplog.text
        assert "PASSED 1 B" in caplog.text

    def test_generator_failure(self, config_path, caplog):
        command = f"{PYTHON} -c \"import sys; sys.exit(sys.argv[1] == 'B')\" {{name}}"

        assert run_cli(config_path, "run", "--command", command) == 1
        assert "### B: ERROR" in caplog.text
        assert "UPDATED 1 A" in caplog.text

    def test_selected_names(self, config_path, temp_dir):
        assert run_cli(config_path, "run", "B") == 0

        store = SnapshotStore(temp_dir / ".snapshots", ["A", "B"])
        assert store.get_expected_snapshot("A") is None
        assert store.get_expected_snapshot("B") is not None

    def test_unknown_name(self, config_path, caplog):
        assert run_cli(config_path, "run", "Z") == 1
        assert "Unknown snapshot tests: Z" in caplog.text

    def test_snapshot_dir_override(self, config_path, temp_dir):
        other = temp_dir / "other"
        assert run_cli(config_path, "run", "--snapshot-dir", str(other)) == 0
        assert (other / "A.snap").exists()

    def test_summary_file(self, config_path, temp_dir):
        summary_path = temp_dir / "summary.json"
        run_cli(config_path, "run", "--summary", str(summary_path))

        summary = json.loads(summary_path.read_text())
        assert summary["total"] == 2
        assert summary["updated"] == 2
        assert summary["update"] is False
        assert summary["tests"]["A"]["outcome"] == "UPDATED"

    def test_no_tests_configured(self, temp_dir, caplog):
        path = temp_dir / "empty.json"
        path.write_text(json.dumps({"command": "true", "snapshot_dir": str(temp_dir)}))

        assert run_cli(path, "run") == 0
        assert "Running 0 snapshot tests." in caplog.text
        assert "FAILED" not in caplog.text

    @pytest.mark.parametrize("timeout", ["-1", "0"])
    def test_invalid_timeout_override(self, config_path, temp_dir, caplog, timeout):
        assert run_cli(config_path, "run", "--timeout", timeout) == 1
        assert "'timeout' must be a positive number" in caplog.text
        assert not (temp_dir / ".snapshots" / "A.snap").exists()

    def test_no_generator(self, temp_dir, caplog):
        path = temp_dir / "nogen.json"
        path.write_text(json.dumps({"tests": ["A"], "snapshot_dir": str(temp_dir)}))

        assert run_cli(path, "run") == 1
        assert "No generator configured" in caplog.text

    def test_main_entry_point(self, config_path):
        assert main(["--config", str(config_path), "run"]) == 0

    def test_no_command_prints_help(self, config_path):
        assert run_cli(config_path) == 1


class TestListAndClean:
    """Tests for the list and clean commands."""

    def test_list_states(self, config_path, temp_dir, caplog):
        run_cli(config_path, "run", "A")
        SnapshotStore(temp_dir / ".snapshots", ["old"]).save_snapshot("old", "x")
        caplog.clear()

        assert run_cli(config_path, "list") == 0
        assert "A [stored]" in caplog.text
        assert "B [missing]" in caplog.text
        assert "1 snapshots without a configured test" in caplog.text

    def test_list_modified(self, config_path, temp_dir, caplog):
        run_cli(config_path, "run")
        (temp_dir / ".snapshots" / "B.snap").write_text("tampered")
        caplog.clear()

        run_cli(config_path, "list")
        assert "B [modified]" in caplog.text

    def test_list_colors_states(self, config_path, temp_dir, caplog):
        data = json.loads(config_path.read_text())
        data["color"] = True
        config_path.write_text(json.dumps(data))
        run_cli(config_path, "run", "A")
        caplog.clear()

        run_cli(config_path, "list")
        assert f"A [{fmt.green('stored')}]" in caplog.text
        assert f"B [{fmt.blue('missing')}]" in caplog.text

    def test_clean_dry_run(self, config_path, temp_dir, caplog):
        store = SnapshotStore(temp_dir / ".snapshots", ["old"])
        store.save_snapshot("old", "x")

        assert run_cli(config_path, "clean", "--dry-run") == 0
        assert "Would delete: old" in caplog.text
        assert store.snapshot_path("old").exists()

    def test_clean(self, config_path, temp_dir):
        run_cli(config_path, "run")
        store = SnapshotStore(temp_dir / ".snapshots", ["nested/old"])
        store.save_snapshot("nested/old", "x")

        assert run_cli(config_path, "clean") == 0
        assert not (temp_dir / ".snapshots" / "nested").exists()
        assert (temp_dir / ".snapshots" / "A.snap").exists()


class TestConfigCommand:
    """Tests for the config command."""

    def test_init(self, temp_dir):
        path = temp_dir / "new_config.json"
        assert run_cli(path, "config", "--init") == 0

        data = json.loads(path.read_text())
        assert data["tests"] == []
        assert data["snapshot_dir"] == ".snapshots/"

    def test_init_refuses_overwrite(self, config_path):
        assert run_cli(config_path, "config", "--init") == 1

    def test_show(self, config_path, caplog):
        assert run_cli(config_path, "config", "--show") == 0
        assert "tests: ['A', 'B']" in caplog.text


class TestHelpers:
    """Tests for CLI helper functions."""

    def test_select_tests_keeps_configured_order(self):
        assert select_tests(["A", "B", "C"], ["C", "A"]) == ["A", "C"]

    def test_select_tests_all(self):
        assert select_tests(["A", "B"], []) == ["A", "B"]

    def test_select_tests_unknown(self):
        with pytest.raises(EnumerationError):
            select_tests(["A"], ["B"])

    def test_build_command_generator(self):
        generator = build_generator(HarnessConfig(tests=["A"], command="echo {name}", timeout=2))
        assert isinstance(generator, CommandGenerator)
        assert generator.timeout == 2

    def test_build_callable_generator(self):
        generator = build_generator(HarnessConfig(callable="os.path:basename"))
        assert isinstance(generator, CallableGenerator)

    def test_build_generator_conflict(self):
        with pytest.raises(ConfigError):
            build_generator(HarnessConfig(command="echo", callable="os:getcwd"))
