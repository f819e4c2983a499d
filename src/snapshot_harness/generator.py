"""
Artifact generators.

The harness never produces artifacts itself. A generator turns a test name
into the text that is compared against the stored snapshot, either by running
a shell command or by calling a Python function.
"""
from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
import os
import shlex
import signal
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Generating the actual artifact for a test failed."""

    def __init__(self, test_name: str, message: str):
        super().__init__(f"{test_name}: {message}")
        self.test_name = test_name
        self.message = message


class SnapshotGenerator:
    """Base class for artifact generators."""

    async def generate_actual_snapshot(self, name: str) -> str:
        raise NotImplementedError


class CommandGenerator(SnapshotGenerator):
    """Runs a shell command per test and uses its stdout as the artifact.

    ``{name}`` in the command template is replaced by the shell-quoted test
    name. A non-zero exit status, a timeout, or output that is not valid
    UTF-8 raise GenerationError.
    """

    def __init__(self, command: str, timeout: Optional[float] = None, cwd: Optional[Path] = None):
        self.command = command
        self.timeout = timeout
        self.cwd = cwd

    def build_command(self, name: str) -> str:
        return self.command.replace("{name}", shlex.quote(name))

    async def generate_actual_snapshot(self, name: str) -> str:
        command = self.build_command(name)
        logger.debug(f"Running generator command: {command}")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd) if self.cwd else None,
                start_new_session=True,
            )
        except OSError as e:
            raise GenerationError(name, f"Failed to start generator: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._kill_process_group(process)
            await process.wait()
            raise GenerationError(
                name, f"Generator timed out after {self.timeout} seconds"
            ) from None

        if process.returncode != 0:
            error_output = stderr.decode("utf-8", errors="replace").strip()
            message = f"Generator exited with status {process.returncode}"
            if error_output:
                message += f"\n{error_output}"
            raise GenerationError(name, message)

        try:
            return stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise GenerationError(name, f"Generator output is not valid UTF-8: {e}") from e

    def _kill_process_group(self, process) -> None:
        """Kill the shell and everything it started; they share one session."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass  # Already exited


class CallableGenerator(SnapshotGenerator):
    """Calls a Python function with the test name to produce the artifact.

    Coroutine functions are awaited; plain functions run in a worker thread
    so the event loop is not blocked. Python threads cannot be stopped, so a
    plain function that times out is abandoned and finishes in the background.
    """

    def __init__(self, func: Callable[[str], Any], timeout: Optional[float] = None):
        self.func = func
        self.timeout = timeout

    @classmethod
    def from_target(cls, target: str, timeout: Optional[float] = None) -> "CallableGenerator":
        """Load ``package.module:function``."""
        module_name, sep, attr_path = target.partition(":")
        if not sep or not module_name or not attr_path:
            raise ValueError(f"Generator target must look like 'module:function', got {target!r}")

        obj: Any = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            obj = getattr(obj, attr)

        if not callable(obj):
            raise ValueError(f"Generator target {target!r} is not callable")

        return cls(obj, timeout=timeout)

    async def generate_actual_snapshot(self, name: str) -> str:
        try:
            result = await self._call(name)
        except asyncio.TimeoutError:
            raise GenerationError(
                name, f"Generator timed out after {self.timeout} seconds"
            ) from None
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(name, f"{type(e).__name__}: {e}") from e

        if not isinstance(result, str):
            raise GenerationError(
                name, f"Generator returned {type(result).__name__}, expected str"
            )
        return result

    async def _call(self, name: str) -> Any:
        if inspect.iscoroutinefunction(self.func):
            return await asyncio.wait_for(self.func(name), timeout=self.timeout)

        # Private executor: asyncio.run() never waits for it at shutdown.
        executor = ThreadPoolExecutor(max_workers=1)
        loop = asyncio.get_running_loop()
        try:
            future = loop.run_in_executor(executor, self.func, name)
            try:
                result = await asyncio.wait_for(future, timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Generator call for {name} timed out and is left running in the background"
                )
                raise
        finally:
            executor.shutdown(wait=False)

        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=self.timeout)
        return result
