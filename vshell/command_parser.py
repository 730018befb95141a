#!/usr/bin/env python3
"""
Command parser for the vshell interpreter.

This module turns raw input lines into structured commands. It does not
execute anything.

Parsing happens in two stages:
- Chain parsing splits a line on '&&' and ';' into chain entries
- Command parsing expands aliases, then variables, then tokenizes the
  entry and separates flags from positional operands

Design Principles:
- Single responsibility: parse commands, don't execute them
- Pure functions with predictable outputs
"""

import re
import shlex
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Set, Tuple


@dataclass
class ChainEntry:
    """
    One sub-command of a chained command line.

    require_success is True when the entry was preceded by '&&', meaning
    it only runs if the previous executed entry succeeded.
    """
    command: str
    require_success: bool = False


@dataclass
class Command:
    """
    A single parsed command.

    args holds every argument with quotes removed, in order. flags and
    operands are the same arguments split into flag names and positional
    (non-flag) arguments.
    """
    name: str
    args: List[str] = field(default_factory=list)
    flags: Set[str] = field(default_factory=set)
    operands: List[str] = field(default_factory=list)

    def has_flag(self, *names: str) -> bool:
        """Check whether any of the given flags is present."""
        return any(name in self.flags for name in names)

    def __str__(self) -> str:
        return ' '.join([self.name] + self.args)


class CommandParser:
    """
    Parser for vshell command syntax.

    This parser handles:
    - Command chaining ('&&' and ';')
    - Alias expansion of the leading word (exactly once)
    - $NAME and ${NAME} variable expansion
    - Single and double quoting
    - Short flags (-a, -la) and long flags (--all)
    """

    CHAIN_SEPARATORS = ('&&', ';')
    VARIABLE_PATTERN = re.compile(r'\$(\w+)', re.ASCII)
    BRACED_VARIABLE_PATTERN = re.compile(r'\$\{(\w+)\}', re.ASCII)

    def parse_chain(self, command_line: str) -> List[ChainEntry]:
        """
        Split a command line on '&&' and ';' boundaries.

        The earliest separator splits the line each time. Empty segments are
        dropped and every segment is trimmed.

        Example:
            >>> CommandParser().parse_chain('cd /tmp && ls')
            [ChainEntry(command='cd /tmp', require_success=False),
             ChainEntry(command='ls', require_success=True)]
        """
        entries = []
        remaining = command_line.strip()
        last_separator = ''

        while remaining:
            split_index, separator = self._find_separator(remaining)

            if split_index == -1:
                segment = remaining.strip()
                if segment:
                    entries.append(ChainEntry(segment, last_separator == '&&'))
                break

            segment = remaining[:split_index].strip()
            if segment:
                entries.append(ChainEntry(segment, last_separator == '&&'))
            last_separator = separator
            remaining = remaining[split_index + len(separator):]

        return entries

    def _find_separator(self, text: str) -> Tuple[int, str]:
        """Locate the earliest chain separator in text."""
        best_index, best_separator = -1, ''
        for separator in self.CHAIN_SEPARATORS:
            index = text.find(separator)
            if index != -1 and (best_index == -1 or index < best_index):
                best_index, best_separator = index, separator
        return best_index, best_separator

    def expand_aliases(self, command_line: str, aliases: Mapping[str, str]) -> str:
        """Replace the leading word with its alias text, once."""
        stripped = command_line.strip()
        if not stripped:
            return stripped
        first_word = stripped.split(None, 1)[0]
        substitution = aliases.get(first_word)
        if not substitution:
            return stripped
        return substitution + stripped[len(first_word):]

    def expand_variables(self, command_line: str, env: Mapping[str, str]) -> str:
        """Substitute $NAME and ${NAME} with environment values ('' if unset)."""
        def lookup(match: re.Match) -> str:
            return env.get(match.group(1)) or ''

        expanded = self.VARIABLE_PATTERN.sub(lookup, command_line)
        return self.BRACED_VARIABLE_PATTERN.sub(lookup, expanded)

    def tokenize(self, command_line: str) -> List[str]:
        """
        Split a line into quote-aware tokens.

        Quoted spans stay inside a single token and the quote characters are
        removed. Backslashes are kept literally so that echo can interpret
        '\\n' and '\\t' itself.
        """
        lexer = shlex.shlex(command_line, posix=True)
        lexer.whitespace_split = True
        lexer.commenters = ''
        lexer.escape = ''
        try:
            return list(lexer)
        except ValueError:
            # Unclosed quotes fall back to plain whitespace splitting
            return [self.unquote(token) for token in command_line.split()]

    @staticmethod
    def unquote(token: str) -> str:
        """Strip one leading and one trailing quote character."""
        if token[:1] in ('"', "'"):
            token = token[1:]
        if token[-1:] in ('"', "'"):
            token = token[:-1]
        return token

    def split_flags(self, args: List[str]) -> Tuple[Set[str], List[str]]:
        """
        Separate flags from positional operands.

        '--name' contributes the flag 'name'; '-abc' contributes 'a', 'b'
        and 'c'; a lone '-' and everything else are operands.
        """
        flags: Set[str] = set()
        operands: List[str] = []

        for arg in args:
            if arg.startswith('--'):
                flags.add(arg[2:])
            elif arg.startswith('-') and len(arg) > 1:
                flags.update(arg[1:])
            else:
                operands.append(arg)

        return flags, operands

    def parse(self, command_line: str, env: Optional[Mapping[str, str]] = None,
              aliases: Optional[Mapping[str, str]] = None) -> Optional[Command]:
        """
        Parse a single (unchained) command.

        Returns None when the line holds no tokens.
        """
        line = self.expand_aliases(command_line, aliases or {})
        line = self.expand_variables(line, env or {})
        tokens = self.tokenize(line)

        if not tokens:
            return None

        args = tokens[1:]
        flags, operands = self.split_flags(args)
        return Command(name=tokens[0].lower(), args=args, flags=flags, operands=operands)


_parser = CommandParser()


def parse_chained_commands(command_line: str) -> List[ChainEntry]:
    """Split a command line into chain entries using the default parser."""
    return _parser.parse_chain(command_line)
