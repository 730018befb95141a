#!/usr/bin/env python3
"""
Error taxonomy for vshell commands.

Failures never cross the interpreter boundary as exceptions. A handler
either returns a failed CommandResult tagged with an ErrorKind, or raises
CommandError, which the executor turns into the same kind of result.
"""

from enum import Enum


class ErrorKind(Enum):
    """Categories of command failure."""
    MISSING_OPERAND = 'missing_operand'
    NOT_FOUND = 'not_found'
    NOT_A_DIRECTORY = 'not_a_directory'
    IS_A_DIRECTORY = 'is_a_directory'
    ALREADY_EXISTS = 'already_exists'
    NOT_EMPTY = 'not_empty'
    INVALID_ARGUMENT = 'invalid_argument'
    UNKNOWN_COMMAND = 'unknown_command'
    EVALUATION_ERROR = 'evaluation_error'


class CommandError(Exception):
    """Raised inside a command handler to abort it with a failure message."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message
