#!/usr/bin/env python3
"""
Command execution for vshell.

This module connects the parser to the command registry and folds each
command's result into the running session state. It is the only place
where chain ordering and short-circuit rules live.

Design Principles:
- Callers pass a state snapshot in and get a result record out
- Nothing raises across execute_command / execute_chained_commands
- Clock and random source are injectable for deterministic output
"""

import logging
import random
from datetime import datetime
from typing import Optional

from .command_parser import CommandParser
from .commands import CommandContext, CommandRegistry
from .filesystem import create_default_filesystem
from .state import (
    DEFAULT_ALIASES, DEFAULT_ENVIRONMENT, ChainResult, CommandResult, SessionState
)

logger = logging.getLogger(__name__)


class CommandExecutor:
    """
    Executes command lines against session state snapshots.

    The executor holds no session state of its own. boot_time is the
    reference point for uptime and neofetch (defaults to the call's clock
    reading); rng drives fortune.
    """

    def __init__(self, registry: Optional[CommandRegistry] = None,
                 boot_time: Optional[datetime] = None,
                 rng: Optional[random.Random] = None):
        self.registry = registry or CommandRegistry()
        self.parser = CommandParser()
        self.boot_time = boot_time
        self.rng = rng or random.Random()

    def execute(self, command_line: str, state: SessionState,
                clock_now: Optional[datetime] = None) -> CommandResult:
        """
        Execute a single (unchained) command line.

        Aliases and variables are expanded against state before dispatch.
        Empty input succeeds with no output.
        """
        line = command_line.strip()
        if not line:
            return CommandResult()

        command = self.parser.parse(line, state.env, state.aliases)
        if command is None or not command.name:
            return CommandResult()

        clock = clock_now or datetime.now().astimezone()
        ctx = CommandContext(
            command=command,
            state=state,
            clock=clock,
            boot_time=self.boot_time or clock,
            rng=self.rng,
        )

        logger.debug("Dispatching %s with args %r", command.name, command.args)
        try:
            result = self.registry.execute(ctx)
        except Exception as e:
            logger.exception("Command %s raised unexpectedly", command.name)
            return CommandResult(output=f"{command.name}: {e}", success=False)

        if not result.success:
            logger.debug("%s failed (%s): %s", command.name, result.error, result.output)
        return result

    def execute_chain(self, command_line: str, state: SessionState,
                      clock_now: Optional[datetime] = None) -> ChainResult:
        """
        Execute a '&&' / ';' chained command line.

        An entry preceded by '&&' is skipped when the last executed entry
        failed; iteration continues with the entries after it. Each result
        is folded into the running state before the next entry runs. A
        clear request stops the chain immediately.
        """
        clock = clock_now or datetime.now().astimezone()
        chain = ChainResult(final_state=state)
        current = state
        last_success = True

        for entry in self.parser.parse_chain(command_line):
            if entry.require_success and not last_success:
                logger.debug("Skipping %r after failed predecessor", entry.command)
                continue

            result = self.execute(entry.command, current, clock)

            if result.clear:
                chain.clear_requested = True
                chain.success = True
                chain.final_state = current
                return chain

            if result.output:
                chain.outputs.append(result.output)

            last_success = result.success
            current = current.apply(result)
            chain.exit_requested = chain.exit_requested or result.exit_requested

        chain.success = last_success
        chain.final_state = current
        return chain


def execute_command(command_line: str, state: SessionState,
                    clock_now: Optional[datetime] = None) -> CommandResult:
    """Execute one command with a fresh executor."""
    return CommandExecutor().execute(command_line, state, clock_now)


def execute_chained_commands(command_line: str, state: SessionState,
                             clock_now: Optional[datetime] = None) -> ChainResult:
    """Execute a chained command line with a fresh executor."""
    return CommandExecutor().execute_chain(command_line, state, clock_now)


__all__ = [
    'CommandExecutor', 'execute_command', 'execute_chained_commands',
    'create_default_filesystem', 'DEFAULT_ENVIRONMENT', 'DEFAULT_ALIASES',
]
