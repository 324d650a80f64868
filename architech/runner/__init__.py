"""Architech runner module.

Spawns the external commands requested by ``RUN_COMMAND`` actions.

Key classes:
    CommandRunner      - asyncio subprocess execution with optional timeout
    CommandResult      - exit code and captured output of one process
    InteractiveCommand - tools that are answered on stdin
"""

from .command_runner import (
    INTERACTIVE_COMMANDS,
    CommandResult,
    CommandRunner,
    InteractiveCommand,
    interactive_responses,
    split_command,
)

__all__ = [
    "CommandRunner",
    "CommandResult",
    "InteractiveCommand",
    "INTERACTIVE_COMMANDS",
    "interactive_responses",
    "split_command",
]
