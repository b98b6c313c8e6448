"""Local vault CLI execution.

Uses asyncio.create_subprocess_exec, never a shell. The argv is built by
build_safe_command and checked against the verb allowlist right before
the process is spawned. The child inherits the caller's environment so
the vault session token is visible to it.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel

from vaultbridge.security.allowlist import AllowlistDenied, check_command
from vaultbridge.security.encoder import build_safe_command
from vaultbridge.tools.base import (
    CliResult,
    DescribedTool,
    ToolResponse,
    normalize_cli_result,
    strip_ansi,
)

logger = structlog.get_logger()

UNSAFE_COMMAND_MESSAGE = "Invalid or unsafe command. Only Bitwarden CLI commands are allowed."


async def _reap(proc: asyncio.subprocess.Process) -> None:
    """Kill the child and wait for it to exit."""
    try:
        proc.kill()
    except ProcessLookupError:
        pass  # already exited
    await proc.wait()


class CliRunner:
    """Runs the vault CLI binary with a guarded argument vector."""

    def __init__(
        self,
        binary: str = "bw",
        timeout: float | None = 60,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            binary: Path or name of the CLI executable.
            timeout: Seconds before the child is killed. None waits forever.
            env: Extra variables layered over the parent environment.
        """
        self._binary = binary
        self._timeout = timeout
        self._env = dict(env or {})

    def use_session(self, session: str) -> None:
        """Pass ``session`` as BW_SESSION to every later invocation."""
        self._env["BW_SESSION"] = session
        logger.info("cli_session_replaced")

    async def run(self, command: Sequence[str], env: Mapping[str, str] | None = None) -> CliResult:
        """Execute the CLI with ``command`` as its arguments.

        Never raises: guard rejections, spawn failures, non-zero exits and
        timeouts all come back as a CliResult with error_output set. If the
        calling task is cancelled the child is killed and reaped before the
        cancellation propagates.

        Args:
            command: The argv after the binary name, verb first.
            env: Variables for this invocation only, layered last.

        Returns:
            CliResult with stdout as output and stderr as error_output.
        """
        try:
            check_command(command)
        except AllowlistDenied as e:
            logger.warning("cli_command_rejected", reason=str(e))
            return CliResult(error_output=UNSAFE_COMMAND_MESSAGE)

        verb = command[0]
        logger.debug("cli_command_started", verb=verb, argc=len(command))

        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **self._env, **(env or {})},
            )
        except FileNotFoundError:
            return CliResult(error_output=f"Command not found: {self._binary}")
        except PermissionError:
            return CliResult(error_output=f"Permission denied: {self._binary}")
        except OSError as e:
            return CliResult(error_output=f"Failed to start {self._binary}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            await _reap(proc)
            logger.warning("cli_command_timeout", verb=verb, timeout=self._timeout)
            return CliResult(error_output=f"Command timed out after {self._timeout}s")
        except asyncio.CancelledError:
            await _reap(proc)
            logger.warning("cli_command_cancelled", verb=verb)
            raise

        out = strip_ansi(stdout.decode("utf-8", errors="replace")).rstrip()
        err = strip_ansi(stderr.decode("utf-8", errors="replace")).rstrip()

        if proc.returncode != 0:
            logger.info("cli_command_failed", verb=verb, exit_code=proc.returncode)
            return CliResult(error_output=err or f"Command failed with exit code {proc.returncode}")

        logger.debug("cli_command_finished", verb=verb)
        return CliResult(output=out or None, error_output=err or None)


@dataclass(frozen=True)
class CliInvocation:
    """A logical CLI call: verb, parameters, and the text used when output is empty.

    ``env`` carries values that must stay out of the argv, such as a
    master password read by ``--passwordenv``.
    """

    subcommand: str
    parameters: Sequence[str] = ()
    fallback: str = "Operation completed successfully"
    env: Mapping[str, str] | None = None

    def argv(self) -> list[str]:
        """The guarded argv for this invocation.

        Raises:
            SanitizationError: If a parameter contains control bytes.
        """
        return build_safe_command(self.subcommand, self.parameters)


class CliTool(DescribedTool):
    """A tool that maps validated arguments to a single CLI invocation."""

    def __init__(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel],
        build: Callable[[Any], CliInvocation],
        runner: CliRunner,
    ) -> None:
        super().__init__(name, description, args_model)
        self._build = build
        self._runner = runner

    def invocation(self, args: BaseModel) -> CliInvocation:
        """The CLI call ``args`` translates to."""
        return self._build(args)

    async def execute(self, args: BaseModel) -> ToolResponse:
        invocation = self._build(args)
        result = await self._runner.run(invocation.argv(), env=invocation.env)
        return normalize_cli_result(result, invocation.fallback)


class CompositeCliTool(DescribedTool):
    """A CLI tool whose execution needs more than one invocation.

    ``steps`` receives the validated arguments and the runner and returns
    the final CliResult plus its fallback text.
    """

    def __init__(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel],
        steps: Callable[[Any, CliRunner], Awaitable[tuple[CliResult, str]]],
        runner: CliRunner,
    ) -> None:
        super().__init__(name, description, args_model)
        self._steps = steps
        self._runner = runner

    async def execute(self, args: BaseModel) -> ToolResponse:
        result, fallback = await self._steps(args, self._runner)
        return normalize_cli_result(result, fallback)
