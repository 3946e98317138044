"""Tests for the external CLI tool backend, using real subprocesses."""

import sys
import time

import pytest

from vaultclip.llm.base import BackendKind
from vaultclip.llm.cli_tool import CLI_TOOLS, CLIToolBackend
from vaultclip.llm.models import ConfigError, ToolError

HTML = "<h1>Test Title</h1><p>Test content</p>"
URL = "https://example.com/test"


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestCLIToolBackendInit:
    def test_name_and_kind(self):
        backend = CLIToolBackend("gemini", "gemini")
        assert backend.kind is BackendKind.CLI
        assert backend.name == "CLI:gemini"

    @pytest.mark.parametrize("command", [None, "", "   "])
    def test_requires_command(self, command):
        with pytest.raises(ConfigError) as exc_info:
            CLIToolBackend(command, "gemini")
        assert exc_info.value.field == "cli_command"

    @pytest.mark.parametrize("tool", [None, "", "gpt", "GEMINI"])
    def test_rejects_unknown_tool(self, tool):
        with pytest.raises(ConfigError) as exc_info:
            CLIToolBackend("some-tool", tool)
        assert exc_info.value.field == "cli_tool"
        assert "Must be one of: gemini, claude, codex" in str(exc_info.value)

    def test_argv_split_without_shell(self):
        backend = CLIToolBackend('my-tool --profile "work laptop"', "claude")
        assert backend.argv == ["my-tool", "--profile", "work laptop", "-p", "--output-format", "text"]

    def test_argv_is_a_copy(self):
        backend = CLIToolBackend("codex", "codex")
        backend.argv.append("--evil")
        assert backend.argv == ["codex"] + CLI_TOOLS["codex"]


# ---------------------------------------------------------------------------
# Running the tool
# ---------------------------------------------------------------------------


class TestCLIToolBackendConvert:
    @pytest.mark.asyncio
    async def test_prompt_is_piped_to_stdin(self, python_command, quiet_logger):
        code = "import sys; sys.stdout.write(sys.stdin.read())"
        backend = CLIToolBackend(python_command(code), "gemini", logger=quiet_logger)

        result = await backend.convert(HTML, URL)

        assert HTML in result
        assert result.startswith("Extract the main article content")
        assert result.endswith("Return only clean Markdown:")

    @pytest.mark.asyncio
    async def test_output_is_trimmed(self, python_command, quiet_logger):
        code = "import sys; sys.stdin.read(); print('\\n  # Title\\n\\nBody  \\n')"
        backend = CLIToolBackend(python_command(code), "gemini", logger=quiet_logger)
        assert await backend.convert(HTML, URL) == "# Title\n\nBody"

    @pytest.mark.asyncio
    async def test_tool_flags_are_appended(self, python_command, quiet_logger):
        code = "import sys; sys.stdin.read(); print(' '.join(sys.argv[1:]))"
        backend = CLIToolBackend(python_command(code), "codex", logger=quiet_logger)
        assert await backend.convert(HTML, URL) == "exec --skip-git-repo-check -"

    @pytest.mark.asyncio
    async def test_shell_metacharacters_are_not_interpreted(self, python_command, quiet_logger):
        code = "import sys; sys.stdin.read(); print(sys.argv[1:])"
        backend = CLIToolBackend(python_command(code) + " '$(echo pwned)'", "gemini", logger=quiet_logger)
        assert await backend.convert(HTML, URL) == "['$(echo pwned)']"

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, python_command, quiet_logger):
        code = "import sys; sys.stderr.write('quota exhausted'); sys.exit(3)"
        backend = CLIToolBackend(python_command(code), "gemini", logger=quiet_logger)

        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        err = exc_info.value
        assert err.reason == "exit"
        assert err.exit_code == 3
        assert err.signal is None
        assert err.stderr == "quota exhausted"
        assert "exit code: 3" in str(err)
        assert "quota exhausted" in str(err)
        assert err.backend == "CLI:gemini"

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, python_command, quiet_logger):
        code = "import time; time.sleep(30)"
        backend = CLIToolBackend(python_command(code), "gemini", timeout=0.5, logger=quiet_logger)

        started = time.monotonic()
        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        assert time.monotonic() - started < 10
        assert exc_info.value.reason == "timeout"
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_output_limit_is_distinct_from_timeout(self, python_command, quiet_logger):
        code = "import sys; sys.stdout.write('x' * 200000); sys.stdout.flush()"
        backend = CLIToolBackend(
            python_command(code), "gemini", max_output_bytes=1000, logger=quiet_logger
        )

        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        assert exc_info.value.reason == "output_limit"
        assert "1000 bytes" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_output(self, python_command, quiet_logger):
        code = "import sys; sys.stdin.read(); print('   ')"
        backend = CLIToolBackend(python_command(code), "gemini", logger=quiet_logger)

        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        assert exc_info.value.reason == "empty_output"
        assert exc_info.value.exit_code == 0
        assert "no content generated" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_stderr_on_success_is_a_warning(self, python_command, caplog):
        code = (
            "import sys; sys.stdin.read(); "
            "sys.stderr.write('deprecation notice'); print('# Fine')"
        )
        backend = CLIToolBackend(python_command(code), "gemini")

        with caplog.at_level("WARNING", logger="vaultclip.llm.cli_tool"):
            result = await backend.convert(HTML, URL)

        assert result == "# Fine"
        assert "deprecation notice" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_program(self, quiet_logger):
        backend = CLIToolBackend("/nonexistent/bin/vaultclip-no-such-tool", "gemini", logger=quiet_logger)

        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        assert exc_info.value.reason == "not_found"

    @pytest.mark.asyncio
    async def test_child_ignoring_stdin(self, python_command, quiet_logger):
        code = "print('# Ignored input')"
        backend = CLIToolBackend(python_command(code), "gemini", logger=quiet_logger)
        assert await backend.convert("<p>" + "x" * 200_000 + "</p>", URL) == "# Ignored input"

    @pytest.mark.asyncio
    async def test_calls_are_independent(self, python_command, quiet_logger):
        code = "import sys; data = sys.stdin.read(); print(len(data))"
        backend = CLIToolBackend(python_command(code), "gemini", logger=quiet_logger)
        first = await backend.convert("<p>a</p>", URL)
        second = await backend.convert("<p>a</p>", URL)
        assert first == second

    @pytest.mark.asyncio
    async def test_large_stderr_is_not_an_overflow(self, python_command, caplog):
        code = (
            "import sys; sys.stdin.read(); "
            "sys.stderr.write('e' * 5000); sys.stderr.flush(); print('# ok')"
        )
        backend = CLIToolBackend(python_command(code), "gemini", max_output_bytes=1000)

        with caplog.at_level("WARNING", logger="vaultclip.llm.cli_tool"):
            result = await backend.convert(HTML, URL)

        assert result == "# ok"
        assert "eeee" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_run_keeps_stderr_tail(self, python_command, quiet_logger):
        code = (
            "import sys; sys.stderr.write('x' * 5000 + 'final error line'); sys.exit(1)"
        )
        backend = CLIToolBackend(
            python_command(code), "gemini", max_output_bytes=1000, logger=quiet_logger
        )

        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        assert exc_info.value.reason == "exit"
        assert exc_info.value.stderr.endswith("final error line")
        assert len(exc_info.value.stderr) == 1000

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX-only")
    async def test_timeout_kills_spawned_helpers(self, python_command, quiet_logger):
        code = (
            "import subprocess, sys, time; "
            "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)']); "
            "time.sleep(30)"
        )
        backend = CLIToolBackend(python_command(code), "gemini", timeout=0.5, logger=quiet_logger)

        started = time.monotonic()
        with pytest.raises(ToolError) as exc_info:
            await backend.convert(HTML, URL)

        assert exc_info.value.reason == "timeout"
        assert time.monotonic() - started < 4
