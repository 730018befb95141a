#!/usr/bin/env python3
"""
Terminal front end for vshell.

This module is the host side of the interpreter: it owns one session
state, threads it through the executor, and provides the prompt, command
history, tab completion, slash commands and the interactive REPL.

Design Principles:
- The interpreter never persists anything; /save and /load live here
- The session is the only place where state is replaced
- Slash commands are handled before the interpreter sees the line
"""

import argparse
import json
import logging
import re
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

try:
    import readline
except ImportError:
    readline = None

from .commands import CommandRegistry
from .executor import CommandExecutor
from .filesystem import children
from .paths import HOME_DIR, format_size, get_prompt_path, resolve_path
from .state import SessionState

logger = logging.getLogger(__name__)

CLEAR_SCREEN = '\033[2J\033[H'


@dataclass
class TerminalConfig:
    """Configuration for terminal session."""
    user: str = 'user'
    hostname: str = 'zos'
    home_dir: str = HOME_DIR
    initial_dir: str = HOME_DIR
    prompt_format: str = '{user}@{hostname}:{cwd}$ '
    enable_colors: bool = True
    history_size: int = 1000
    state_file: str = 'vshell-state.json'


class CommandHistory:
    """
    Lines typed at the prompt, newest last, capped at max_size.

    Arrow-key navigation belongs to readline. This list is what the
    session hands back to readline when it starts or loads a saved state.
    """

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self.entries: List[str] = []

    def add(self, command: str):
        """Append a non-blank line, dropping the oldest beyond max_size."""
        if command and command.strip():
            self.entries.append(command)
            del self.entries[:-self.max_size]

    def replace(self, commands) -> None:
        """Replace every entry, e.g. with the history of a loaded session."""
        self.entries = [command for command in commands if command.strip()][-self.max_size:]

    def __len__(self) -> int:
        return len(self.entries)


class TabCompleter:
    """
    Provides tab completion for commands and virtual file paths.

    complete_line() is the pure form used by tests and non-readline
    hosts; complete() adapts it to readline's calling convention.
    """

    def __init__(self, registry: CommandRegistry, get_state: Callable[[], SessionState]):
        """Initialize with a registry and a callable returning the live state."""
        self.registry = registry
        self.get_state = get_state

    def _split_word(self, word: str) -> Tuple[str, str]:
        """Split a partial path into its directory part and name prefix."""
        cut = word.rfind('/') + 1
        return word[:cut], word[cut:]

    def candidates(self, word: str, is_command: bool) -> List[str]:
        """
        Return every completion of word.

        In command position this is every command and alias name; anywhere
        else it is the matching children of the word's directory part.
        Directory completions end in '/'.
        """
        state = self.get_state()

        if is_command and '/' not in word:
            names = set(self.registry.names()) | set(state.aliases)
            return sorted(name for name in names if name.startswith(word))

        directory, prefix = self._split_word(word)
        search_dir = resolve_path(state.cwd, directory, state.env.get('HOME', HOME_DIR))
        matches = []
        for name in children(state.fs, search_dir):
            if not name.startswith(prefix):
                continue
            completion = directory + name
            node = state.fs[resolve_path(state.cwd, completion, state.env.get('HOME', HOME_DIR))]
            matches.append(completion + '/' if node.is_dir() else completion)
        return matches

    def complete_line(self, line: str) -> Tuple[str, List[str]]:
        """
        Complete the last word of a line.

        Returns the (possibly) completed line and the names that matched.
        A single match replaces the word; several matches leave the line
        alone so the caller can list them.
        """
        parts = re.split(r'\s+', line)
        word = parts[-1]
        if not word:
            return line, []

        matches = self.candidates(word, is_command=len(parts) == 1)
        if len(matches) == 1:
            parts[-1] = matches[0]
            return ' '.join(parts), matches
        return line, [match.rstrip('/').rsplit('/', 1)[-1] for match in matches]

    def complete(self, text: str, state: int) -> Optional[str]:
        """
        Readline completion function.

        Called by readline to get completions.
        """
        line = readline.get_line_buffer()
        begin = readline.get_begidx()
        matches = self.candidates(text, is_command=not line[:begin].strip())

        try:
            return matches[state]
        except IndexError:
            return None


class TerminalSession:
    """
    Main terminal session manager.

    This class provides the REPL loop and manages the terminal session,
    including prompt display, command execution, and session state.
    """

    def __init__(self, config: Optional[TerminalConfig] = None,
                 state: Optional[SessionState] = None,
                 executor: Optional[CommandExecutor] = None):
        """Initialize terminal session."""
        self.config = config or TerminalConfig()
        self.executor = executor or CommandExecutor(boot_time=datetime.now().astimezone())
        self.state = state or self._initial_state()
        self.history = CommandHistory(self.config.history_size)
        self.history.replace(self.state.history)
        self.completer = TabCompleter(self.executor.registry, lambda: self.state)
        self.running = False
        self.clear_requested = False
        self.exit_message = ''
        self.last_success = True

    def _initial_state(self) -> SessionState:
        start = resolve_path(self.config.home_dir, self.config.initial_dir, self.config.home_dir)
        state = SessionState.default()
        node = state.fs.get(start)
        if node is None or not node.is_dir():
            logger.warning("Initial directory %s does not exist, using %s", start, HOME_DIR)
            return state
        return SessionState.default(cwd=start)

    def _execute_slash_command(self, command_line: str) -> str:
        """Execute a slash command."""
        parts = command_line[1:].split()
        if not parts:
            return "Error: empty slash command"

        cmd = parts[0].lower()
        args = parts[1:]

        handlers = {
            'save': self._slash_save,
            'load': self._slash_load,
            'status': self._slash_status,
            'help': self._slash_help,
        }

        handler = handlers.get(cmd)
        if handler:
            return handler(args)
        return f"Unknown slash command: /{cmd}\nType /help for available commands"

    def _slash_save(self, args: List[str]) -> str:
        """Save state to JSON file."""
        filepath = args[0] if args else self.config.state_file

        try:
            with open(filepath, 'w') as f:
                json.dump(self.state.to_dict(), f, indent=2)
        except OSError as e:
            logger.error("Could not save state to %s: %s", filepath, e)
            return f"Save failed: {e}"

        return f"State saved to {filepath}"

    def _slash_load(self, args: List[str]) -> str:
        """Load state from JSON file."""
        filepath = args[0] if args else self.config.state_file

        try:
            with open(filepath, 'r') as f:
                self.state = SessionState.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Could not load state from %s: %s", filepath, e)
            return f"Load failed: {e}"

        self.history.replace(self.state.history)
        self._sync_readline_history()

        return f"State loaded from {filepath}"

    def _slash_status(self, args: List[str]) -> str:
        """Show session status."""
        fs = self.state.fs
        files = [node for node in fs.values() if node.is_file()]
        dir_count = len(fs) - len(files)
        total_size = sum(node.display_size for node in files)

        return f"""Session Status:
  Total paths:     {len(fs)}
  Files:           {len(files)}
  Directories:     {dir_count}
  Total size:      {format_size(total_size)}
  Current dir:     {self.state.cwd}
  Variables:       {len(self.state.env)}
  Aliases:         {len(self.state.aliases)}
  History:         {len(self.state.history)} commands"""

    def _slash_help(self, args: List[str]) -> str:
        """Show slash command help."""
        return f"""Slash Commands:

State Management:
  /save [filename]                     Save state to JSON (default: {self.config.state_file})
  /load [filename]                     Load state from JSON file

Inspection:
  /status                              Show session statistics

Meta Commands:
  /help                                Show this help"""

    def get_prompt(self) -> str:
        """Generate the command prompt."""
        home = self.state.env.get('HOME', self.config.home_dir)
        display_cwd = get_prompt_path(self.state.cwd, home)

        if self.config.enable_colors:
            # Green for user@host, blue for path
            return (f'\033[32m{self.config.user}@{self.config.hostname}\033[0m:'
                    f'\033[34m{display_cwd}\033[0m$ ')

        return self.config.prompt_format.format(
            user=self.config.user,
            hostname=self.config.hostname,
            cwd=display_cwd,
            time=datetime.now().strftime('%H:%M:%S'),
        )

    def execute_command(self, command_line: str) -> Optional[str]:
        """
        Execute a command line and return the output.

        Returns None when the line asked the shell to exit.
        """
        if not command_line or command_line.strip() == '':
            return ''

        if command_line.strip().startswith('/'):
            return self._execute_slash_command(command_line.strip())

        self.state = self.state.record(command_line)
        chain = self.executor.execute_chain(command_line, self.state)
        self.state = chain.final_state
        self.clear_requested = chain.clear_requested
        self.last_success = chain.success

        if chain.exit_requested:
            self.exit_message = chain.output
            return None

        return chain.output

    def complete(self, line: str) -> str:
        """Complete a line the way the Tab key does, printing ambiguous matches."""
        completed, matches = self.completer.complete_line(line)
        if len(matches) > 1:
            print('  '.join(matches))
        return completed

    def _setup_readline(self):
        """Configure readline for our terminal."""
        readline.set_completer(self.completer.complete)
        readline.set_completer_delims(' \t\n;&')
        readline.parse_and_bind('tab: complete')
        readline.set_history_length(self.config.history_size)
        self._sync_readline_history()

    def _sync_readline_history(self):
        """Make readline's up/down history match the session's."""
        if readline is None or not self.running:
            return
        readline.clear_history()
        for line in self.history.entries:
            readline.add_history(line)

    def run_interactive(self):
        """Run the interactive REPL loop."""
        self.running = True
        if readline is not None:
            self._setup_readline()

        print("Welcome to zOS Terminal v1.0")
        print('Type "help" for available commands, "/help" for slash commands.')
        print()

        while self.running:
            try:
                command_line = input(self.get_prompt())
                self.history.add(command_line)

                output = self.execute_command(command_line)

                if output is None:
                    if self.exit_message:
                        print(self.exit_message)
                    break

                if self.clear_requested:
                    print(CLEAR_SCREEN, end='')
                    self.clear_requested = False

                if output:
                    print(output)

            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print()
                break

        self.running = False

    def run_command(self, command_line: str) -> str:
        """
        Run a single command and return output.

        This method is useful for non-interactive use.
        """
        output = self.execute_command(command_line)
        return output if output is not None else self.exit_message

    def run_script(self, script_lines: List[str]) -> List[str]:
        """
        Run a script (list of command lines) and return outputs.
        """
        outputs = []
        for line in script_lines:
            # Skip comments and empty lines
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            output = self.execute_command(line)
            if output is None:
                break
            outputs.append(output)

        return outputs


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the terminal."""
    parser = argparse.ArgumentParser(description='vshell virtual terminal')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('-u', '--user', help='Set prompt username', default='user')
    parser.add_argument('-d', '--directory', help='Set initial directory', default=HOME_DIR)
    parser.add_argument('--no-color', action='store_true', help='Disable prompt colors')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging verbosity (default: WARNING)')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
    )

    config = TerminalConfig(
        user=args.user,
        initial_dir=args.directory,
        enable_colors=not args.no_color and sys.stdout.isatty(),
    )
    session = TerminalSession(config=config)

    if args.command:
        session.history.add(args.command)
        output = session.execute_command(args.command)
        if output is None:
            output = session.exit_message
        if output:
            print(output)
        return 0 if session.last_success else 1

    session.run_interactive()
    return 0


if __name__ == '__main__':
    sys.exit(main())
