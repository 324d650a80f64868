"""External command execution for ``RUN_COMMAND`` actions.

Commands are tokenised with :mod:`shlex` and spawned directly with
``asyncio.create_subprocess_exec``; no shell is involved.  By default the
child inherits the terminal so that tools like ``npx prisma generate`` can show
their own progress.  A few known interactive tools are fed canned answers on
stdin instead, looked up in ``INTERACTIVE_COMMANDS``.
"""

from __future__ import annotations

import asyncio
import os
import shlex
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from architech.errors import CommandFailed, InvalidAction
from architech.utils import console

# Exit code reported when the executable cannot be found, as a shell would.
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
EXIT_TIMED_OUT = -1


@dataclass
class CommandResult:
    """Outcome of one finished process."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class InteractiveCommand:
    """A tool/subcommand pair that prompts on stdin, and the answers to give it."""

    tool: str
    subcommand: str
    responses: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, argv: Sequence[str]) -> bool:
        """``npx shadcn@latest init`` matches ``("shadcn", "init")``."""
        has_tool = any(token == self.tool or token.startswith(f"{self.tool}@") for token in argv)
        return has_tool and self.subcommand in argv


INTERACTIVE_COMMANDS: tuple[InteractiveCommand, ...] = (
    InteractiveCommand("shadcn", "init", ("yes",)),
)


def interactive_responses(argv: Sequence[str]) -> tuple[str, ...]:
    """Return the canned stdin answers for *argv*, or ``()`` if it is not interactive."""
    for entry in INTERACTIVE_COMMANDS:
        if entry.matches(argv):
            return entry.responses
    return ()


def split_command(command: str) -> list[str]:
    """Tokenise *command* like a POSIX shell and expand ``$VAR`` in each token.

    Variables that are not set are left as written.

    Raises:
        InvalidAction: If the quoting is unbalanced.
    """
    try:
        tokens = shlex.split(command)
    except ValueError as exc:
        raise InvalidAction(f"Cannot parse command '{command}': {exc}") from exc
    return [os.path.expandvars(token) for token in tokens]


class CommandRunner:
    """Spawns external commands and waits for them to finish.

    Args:
        capture_output: Pipe stdout/stderr back into the result instead of
            letting the child write to the terminal.
        timeout: Default per-command timeout in seconds.  ``None`` waits
            indefinitely.
        quiet: Do not echo the command line to the console.
    """

    def __init__(
        self,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        quiet: bool = False,
    ) -> None:
        self.capture_output = capture_output
        self.timeout = timeout
        self.quiet = quiet

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: str | Path | None = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Run *command* (plus any extra *args*) in *cwd*.

        Returns:
            The finished process's result.  Only returned for exit code 0.

        Raises:
            CommandFailed: On a non-zero exit, a missing executable (exit code
                127), or a timeout.
            InvalidAction: If the command is empty or *cwd* does not exist.
        """
        argv = split_command(command) + list(args)
        if not argv:
            raise InvalidAction("Empty command")
        display = " ".join([command, *(shlex.quote(arg) for arg in args)])

        if cwd is not None and not Path(cwd).is_dir():
            raise InvalidAction(f"Working directory does not exist: {cwd}")

        responses = interactive_responses(argv)
        pipe = asyncio.subprocess.PIPE
        limit = timeout if timeout is not None else self.timeout

        if not self.quiet:
            console.print(f"  [dim]$ {display}[/dim]")

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd is not None else None,
                stdin=pipe if responses else None,
                stdout=pipe if self.capture_output else None,
                stderr=pipe if self.capture_output else None,
            )
        except FileNotFoundError:
            raise CommandFailed(display, EXIT_NOT_FOUND, f"{argv[0]}: command not found") from None
        except PermissionError:
            raise CommandFailed(display, EXIT_NOT_EXECUTABLE, f"{argv[0]}: permission denied") from None

        feed = ("\n".join(responses) + "\n").encode("utf-8") if responses else None
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(feed), timeout=limit)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise CommandFailed(display, EXIT_TIMED_OUT, f"Timed out after {limit}s") from None

        result = CommandResult(
            command=display,
            exit_code=process.returncode if process.returncode is not None else EXIT_TIMED_OUT,
            stdout=(stdout_bytes or b"").decode("utf-8", errors="replace"),
            stderr=(stderr_bytes or b"").decode("utf-8", errors="replace"),
            duration_seconds=time.monotonic() - start_time,
        )
        if not result.success:
            raise CommandFailed(display, result.exit_code, result.stderr)
        return result
