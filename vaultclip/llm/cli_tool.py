"""External CLI tool backend: pipes the prompt into a local generator program."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal as signal_module

from vaultclip.llm.base import ArticleBackend, BackendKind
from vaultclip.llm.models import ConfigError, ToolError
from vaultclip.llm.prompts import build_conversion_prompt

DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
_READ_CHUNK = 64 * 1024
_DRAIN_TIMEOUT = 5.0
# Tools run in their own session; a kill signals the whole process group.
_KILL_GROUP = hasattr(os, "killpg")

# Arguments appended after the configured command for each supported tool.
# Every variant reads the prompt from stdin and runs non-interactively.
CLI_TOOLS: dict[str, list[str]] = {
    "gemini": [],
    "claude": ["-p", "--output-format", "text"],
    "codex": ["exec", "--skip-git-repo-check", "-"],
}


class _OutputLimitExceeded(Exception):
    def __init__(self, captured: bytes) -> None:
        self.captured = captured
        super().__init__(f"output exceeded {len(captured)} bytes")


def _signal_name(returncode: int | None) -> str | None:
    if returncode is None or returncode >= 0:
        return None
    try:
        return signal_module.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


async def _read_capped(stream: asyncio.StreamReader, limit: int) -> bytes:
    buf = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
        if len(buf) > limit:
            raise _OutputLimitExceeded(bytes(buf[:limit]))


async def _read_tail(stream: asyncio.StreamReader, limit: int) -> bytes:
    """Read to EOF, keeping only the last `limit` bytes."""
    buf = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
        if len(buf) > limit:
            del buf[: len(buf) - limit]


async def _discard(stream: asyncio.StreamReader | None) -> None:
    if stream is None:
        return
    while await stream.read(_READ_CHUNK):
        pass


async def _feed_stdin(stream: asyncio.StreamWriter, data: bytes) -> None:
    # The child may exit without reading its input.
    try:
        stream.write(data)
        await stream.drain()
    except (BrokenPipeError, ConnectionResetError):
        pass
    finally:
        stream.close()


class CLIToolBackend(ArticleBackend):
    """Runs an installed generator CLI as a subprocess, one process per call."""

    kind = BackendKind.CLI

    def __init__(
        self,
        command: str | None,
        tool: str | None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        if not command or not command.strip():
            raise ConfigError(
                "cli_command is required for the CLI tool backend", field="cli_command"
            )
        if tool not in CLI_TOOLS:
            raise ConfigError(
                f"Invalid cli_tool: {tool}. Must be one of: {', '.join(CLI_TOOLS)}",
                field="cli_tool",
            )
        self.command = command
        self.tool = tool
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self.name = f"CLI:{tool}"
        self._argv = shlex.split(command) + CLI_TOOLS[tool]

    @property
    def argv(self) -> list[str]:
        return list(self._argv)

    async def convert(self, markup: str | None, source: str) -> str:
        prompt = build_conversion_prompt(markup)
        self.logger.info("converting %s with %s (%s)", source, self.name, self._argv[0])

        try:
            proc = await asyncio.create_subprocess_exec(
                *self._argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=_KILL_GROUP,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ToolError(
                f"{self.name}: cannot start {self._argv[0]!r}: {e}",
                reason="not_found",
                backend=self.name,
            ) from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                self._communicate(proc, prompt.encode("utf-8")),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            await self._kill(proc)
            raise ToolError(
                f"{self.name}: timed out after {self.timeout:g}s and was killed",
                reason="timeout",
                backend=self.name,
                exit_code=proc.returncode,
                signal=_signal_name(proc.returncode),
            ) from e
        except _OutputLimitExceeded as e:
            await self._kill(proc)
            raise ToolError(
                f"{self.name}: output exceeded {self.max_output_bytes} bytes and was killed",
                reason="output_limit",
                backend=self.name,
                exit_code=proc.returncode,
                signal=_signal_name(proc.returncode),
                stdout=e.captured.decode("utf-8", errors="replace"),
            ) from e

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            raise ToolError(
                f"{self.name}: command failed",
                reason="exit",
                backend=self.name,
                exit_code=proc.returncode,
                signal=_signal_name(proc.returncode),
                stdout=stdout,
                stderr=stderr,
            )

        if stderr.strip():
            self.logger.warning("%s wrote to stderr for %s: %s", self.name, source, stderr.strip()[:500])

        text = stdout.strip()
        if not text:
            raise ToolError(
                f"{self.name}: no content generated",
                reason="empty_output",
                backend=self.name,
                exit_code=proc.returncode,
                stderr=stderr,
            )
        return text

    async def _communicate(
        self, proc: asyncio.subprocess.Process, data: bytes
    ) -> tuple[bytes, bytes]:
        tasks = [
            asyncio.ensure_future(_read_capped(proc.stdout, self.max_output_bytes)),
            asyncio.ensure_future(_read_tail(proc.stderr, self.max_output_bytes)),
            asyncio.ensure_future(_feed_stdin(proc.stdin, data)),
        ]
        try:
            stdout, stderr, _ = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        await proc.wait()
        return stdout, stderr

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        try:
            if _KILL_GROUP:
                os.killpg(proc.pid, signal_module.SIGKILL)
            elif proc.returncode is None:
                proc.kill()
        except (ProcessLookupError, PermissionError):
            pass
        # Unread output can leave a pipe paused, and wait() needs both pipes at EOF.
        try:
            await asyncio.wait_for(
                asyncio.gather(_discard(proc.stdout), _discard(proc.stderr)),
                timeout=_DRAIN_TIMEOUT,
            )
        except asyncio.TimeoutError:
            self.logger.warning("%s: output pipes still open after kill", self.name)
        await proc.wait()
