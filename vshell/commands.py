#!/usr/bin/env python3
"""
Builtin commands for the vshell interpreter.

Every command is a method taking a CommandContext and returning a
CommandResult. Commands never touch the session state they are given:
filesystem, environment and alias effects are returned as deltas, and the
executor decides whether and when to apply them.

Commands are looked up through a static dispatch table, so an unknown
name always falls through to the same 'command not found' result.
"""

import calendar
import fnmatch
import logging
import platform
import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from . import calculator
from .command_parser import Command, CommandParser
from .errors import CommandError, ErrorKind
from .filesystem import Node, children, descendants, dir_node, file_node, tree_size, walk
from .paths import HOME_DIR, basename, format_size, is_within, join_path, parent_path, resolve_path
from .state import DELETE, CommandResult, Delta, SessionState, Upsert

logger = logging.getLogger(__name__)

USER_NAME = 'user'
DEFAULT_SHELL = 'zsh'
DEFAULT_SEARCH_PATH = ['/bin', '/usr/bin', '/usr/local/bin']
DEFAULT_LISTING_DATE = 'Dec 25 10:00'
SHELL_BUILTINS = ['cd', 'pwd', 'echo', 'export', 'alias', 'history', 'exit',
                  'unset', 'unalias', 'source', 'type', 'set', 'true', 'false']

FORTUNES = [
    'You will have a great day!',
    'A journey of a thousand miles begins with a single step.',
    'The best time to plant a tree was 20 years ago. The second best time is now.',
    "Code is like humor. When you have to explain it, it's bad.",
    'First, solve the problem. Then, write the code.',
    'In theory, there is no difference between theory and practice. In practice, there is.',
]

HELP_TEXT = """zOS Terminal - Available Commands:

FILE OPERATIONS:
  ls [path]       List directory contents (-l, -a, -h, -R)
  cd [path]       Change directory
  pwd             Print working directory
  cat [file]      Display file contents
  head [file]     Display first lines (-n N)
  tail [file]     Display last lines (-n N)
  less [file]     View file (alias for cat)
  touch [file]    Create empty file
  mkdir [dir]     Create directory (-p for parents)
  rm [file]       Remove file (-r for recursive, -f for force)
  rmdir [dir]     Remove empty directory
  cp [src] [dst]  Copy file (-r for directories)
  mv [src] [dst]  Move/rename file

TEXT PROCESSING:
  echo [text]     Print text
  grep [pattern] [file]  Search for pattern (-i, -c, -n, -v)
  wc [file]       Word/line/char count (-l, -w, -c)
  sort [file]     Sort lines (-r, -n)
  uniq [file]     Remove duplicates

SYSTEM:
  whoami          Current username
  id              User/group IDs
  hostname        System hostname
  uname [-a]      System information
  date            Current date/time
  uptime          System uptime
  df [-h]         Disk space
  du [path]       Directory size
  ps              Process list
  which [cmd]     Locate command
  type [cmd]      Command type
  history         Command history

ENVIRONMENT:
  env             Show environment
  export [VAR=val] Set environment variable
  unset [VAR]     Unset variable
  alias [name=cmd] Set alias
  unalias [name]  Remove alias

SHELL:
  clear           Clear screen
  exit            Exit shell
  true            Return success
  false           Return failure
  test [expr]     Evaluate a condition

MISC:
  neofetch        System info display
  cowsay [text]   ASCII cow
  fortune         Random quote
  cal             Calendar
  bc              Calculator
  tree            Directory tree
  find [path]     Find files

Type 'help COMMAND' for details on a single command.
"""


@dataclass
class CommandContext:
    """Everything a command handler may read: the command and one snapshot."""
    command: Command
    state: SessionState
    clock: datetime
    boot_time: datetime
    rng: random.Random

    @property
    def name(self) -> str:
        return self.command.name

    @property
    def fs(self) -> Dict[str, Node]:
        return self.state.fs

    @property
    def env(self) -> Dict[str, str]:
        return self.state.env

    @property
    def cwd(self) -> str:
        return self.state.cwd

    def resolve(self, path: str) -> str:
        """Resolve a path against the session's working directory."""
        return resolve_path(self.cwd, path, HOME_DIR)

    def lookup(self, path: str) -> Optional[Node]:
        """Resolve a path and return its node, if any."""
        return self.fs.get(self.resolve(path))


Handler = Callable[[CommandContext], CommandResult]


def _elapsed_seconds(now: datetime, start: datetime) -> int:
    """Whole seconds between two datetimes, tolerating naive/aware mixes."""
    if (now.tzinfo is None) != (start.tzinfo is None):
        now, start = now.replace(tzinfo=None), start.replace(tzinfo=None)
    return max(0, int((now - start).total_seconds()))


def _leading_int(text: Optional[str]) -> Optional[int]:
    """Parse the leading integer of text, ignoring trailing garbage."""
    match = re.match(r'\s*([+-]?\d+)', text or '')
    return int(match.group(1)) if match else None


class CommandRegistry:
    """
    Name-to-handler table for every builtin command.

    The registry is constructed explicitly and passed to the executor;
    there is no module-level instance shared between sessions.
    """

    def __init__(self):
        """Build the dispatch table."""
        self._commands: Dict[str, Handler] = {
            'help': self.cmd_help,
            'clear': self.cmd_clear,
            'exit': self.cmd_exit,
            'pwd': self.cmd_pwd,
            'cd': self.cmd_cd,
            'ls': self.cmd_ls,
            'cat': self.cmd_cat,
            'head': self.cmd_head,
            'tail': self.cmd_tail,
            'less': self.cmd_less,
            'more': self.cmd_less,
            'touch': self.cmd_touch,
            'mkdir': self.cmd_mkdir,
            'rm': self.cmd_rm,
            'rmdir': self.cmd_rmdir,
            'cp': self.cmd_cp,
            'mv': self.cmd_mv,
            'echo': self.cmd_echo,
            'grep': self.cmd_grep,
            'wc': self.cmd_wc,
            'sort': self.cmd_sort,
            'uniq': self.cmd_uniq,
            'whoami': self.cmd_whoami,
            'id': self.cmd_id,
            'hostname': self.cmd_hostname,
            'uname': self.cmd_uname,
            'date': self.cmd_date,
            'uptime': self.cmd_uptime,
            'df': self.cmd_df,
            'du': self.cmd_du,
            'ps': self.cmd_ps,
            'which': self.cmd_which,
            'type': self.cmd_type,
            'history': self.cmd_history,
            'env': self.cmd_env,
            'export': self.cmd_export,
            'unset': self.cmd_unset,
            'alias': self.cmd_alias,
            'unalias': self.cmd_unalias,
            'set': self.cmd_set,
            'source': self.cmd_source,
            '.': self.cmd_source,
            'true': self.cmd_true,
            'false': self.cmd_false,
            'test': self.cmd_test,
            '[': self.cmd_test,
            'neofetch': self.cmd_neofetch,
            'cowsay': self.cmd_cowsay,
            'fortune': self.cmd_fortune,
            'cal': self.cmd_cal,
            'bc': self.cmd_bc,
            'find': self.cmd_find,
            'tree': self.cmd_tree,
        }

    def names(self) -> List[str]:
        """All registered command names, sorted."""
        return sorted(self._commands)

    def get(self, name: str) -> Optional[Handler]:
        """Return the handler for a command name, or None."""
        return self._commands.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def execute(self, ctx: CommandContext) -> CommandResult:
        """
        Dispatch a parsed command to its handler.

        Unknown names produce a '<shell>: command not found' failure.
        CommandError raised by a handler becomes a failed result.
        """
        handler = self.get(ctx.name)
        if handler is None:
            shell = basename(ctx.env.get('SHELL', '')) or DEFAULT_SHELL
            return CommandResult.failure(
                f"{shell}: command not found: {ctx.name}",
                ErrorKind.UNKNOWN_COMMAND)

        try:
            return handler(ctx)
        except CommandError as e:
            return CommandResult.failure(e.message, e.kind)

    # Shared helpers

    def _read_file(self, ctx: CommandContext, operand: str) -> str:
        """Return a file's content or raise CommandError for ctx's command."""
        node = ctx.lookup(operand)
        if node is None:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"{ctx.name}: {operand}: No such file or directory")
        if node.is_dir():
            raise CommandError(ErrorKind.IS_A_DIRECTORY,
                               f"{ctx.name}: {operand}: Is a directory")
        return node.text

    def _require_operand(self, ctx: CommandContext, message: str = 'missing file operand') -> str:
        """Return the first operand or raise a missing-operand error."""
        if not ctx.command.operands:
            raise CommandError(ErrorKind.MISSING_OPERAND, f"{ctx.name}: {message}")
        return ctx.command.operands[0]

    def _check_parent(self, ctx: CommandContext, path: str, operand: str,
                      pending: Optional[Dict[str, Node]] = None) -> None:
        """Raise unless the parent of path exists as a directory."""
        parent = parent_path(path)
        if parent is None:
            return
        node = (pending or {}).get(parent) or ctx.fs.get(parent)
        if node is None:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"{ctx.name}: {operand}: No such file or directory")
        if not node.is_dir():
            raise CommandError(ErrorKind.NOT_A_DIRECTORY,
                               f"{ctx.name}: {operand}: Not a directory")

    def _extract_docstring_sections(self, docstring: str) -> dict:
        """Extract the description, usage, options and examples of a docstring."""
        lines = docstring.strip().split('\n')
        sections = {
            'description': lines[0].strip(),
            'usage': '',
            'options': [],
            'examples': [],
        }

        current_section = None
        for line in lines[1:]:
            line = line.strip()
            if line.startswith('Usage:'):
                current_section = 'usage'
            elif line.startswith('Options:'):
                current_section = 'options'
            elif line.startswith('Examples:'):
                current_section = 'examples'
            elif line and current_section == 'usage':
                sections['usage'] = line
            elif line and current_section:
                sections[current_section].append(line)

        return sections

    def describe(self, name: str) -> Optional[str]:
        """Render help for one command from its handler's docstring."""
        handler = self.get(name)
        if handler is None:
            return None
        if not handler.__doc__:
            return f"{name} - No documentation available"

        sections = self._extract_docstring_sections(handler.__doc__)
        help_lines = [f"{name} - {sections['description']}", ""]

        if sections['usage']:
            help_lines += ["Usage:", f"    {sections['usage']}", ""]
        if sections['options']:
            help_lines.append("Options:")
            help_lines += [f"    {opt}" for opt in sections['options']]
            help_lines.append("")
        if sections['examples']:
            help_lines.append("Examples:")
            help_lines += [f"    {ex}" for ex in sections['examples']]
            help_lines.append("")

        return '\n'.join(help_lines).rstrip()

    # Shell commands

    def cmd_help(self, ctx: CommandContext) -> CommandResult:
        """Show the command overview or help for one command.

        Usage:
            help [COMMAND]

        Examples:
            help                   # List all commands
            help ls                # Show help for ls
        """
        if not ctx.command.operands:
            return CommandResult(output=HELP_TEXT)
        topic = ctx.command.operands[0]
        text = self.describe(topic)
        if text is None:
            return CommandResult.failure(f"help: no help available for '{topic}'",
                                         ErrorKind.NOT_FOUND)
        return CommandResult(output=text)

    def cmd_clear(self, ctx: CommandContext) -> CommandResult:
        """Clear the terminal screen."""
        return CommandResult(clear=True)

    def cmd_exit(self, ctx: CommandContext) -> CommandResult:
        """Exit the shell."""
        return CommandResult(output='logout\n[Process completed]', exit_requested=True)

    def cmd_true(self, ctx: CommandContext) -> CommandResult:
        """Return success."""
        return CommandResult()

    def cmd_false(self, ctx: CommandContext) -> CommandResult:
        """Return failure."""
        return CommandResult(success=False)

    def cmd_test(self, ctx: CommandContext) -> CommandResult:
        """Evaluate a conditional expression.

        Usage:
            test EXPRESSION
            [ EXPRESSION ]

        Options:
            -e PATH                True if PATH exists
            -f PATH                True if PATH is a file
            -d PATH                True if PATH is a directory
            -z STRING              True if STRING is empty
            -n STRING              True if STRING is not empty
            A = B, A != B          String comparison
            ! EXPRESSION           Negation

        Examples:
            test -d /tmp && echo yes
            [ -f ~/.zshrc ] && echo found
        """
        args = list(ctx.command.args)
        if ctx.name == '[':
            if not args or args[-1] != ']':
                raise CommandError(ErrorKind.INVALID_ARGUMENT, "[: missing ']'")
            args = args[:-1]
        return CommandResult(success=self._evaluate_test(ctx, args))

    def _evaluate_test(self, ctx: CommandContext, args: List[str]) -> bool:
        if not args:
            return False
        if args[0] == '!':
            return not self._evaluate_test(ctx, args[1:])
        if len(args) == 1:
            return args[0] != ''
        if len(args) == 2:
            op, operand = args
            if op == '-e':
                return ctx.lookup(operand) is not None
            if op == '-f':
                node = ctx.lookup(operand)
                return node is not None and node.is_file()
            if op == '-d':
                node = ctx.lookup(operand)
                return node is not None and node.is_dir()
            if op == '-z':
                return operand == ''
            if op == '-n':
                return operand != ''
        if len(args) == 3:
            left, op, right = args
            if op in ('=', '=='):
                return left == right
            if op == '!=':
                return left != right
        raise CommandError(ErrorKind.INVALID_ARGUMENT,
                           f"{ctx.name}: unknown condition: {' '.join(args)}")

    def cmd_source(self, ctx: CommandContext) -> CommandResult:
        """Read commands from a file (simulated)."""
        operand = self._require_operand(ctx, 'filename argument required')
        return CommandResult(output=f"sourced '{operand}' (simulated)")

    # Navigation

    def cmd_pwd(self, ctx: CommandContext) -> CommandResult:
        """Print working directory."""
        return CommandResult(output=ctx.cwd)

    def cmd_cd(self, ctx: CommandContext) -> CommandResult:
        """Change the current directory.

        Usage:
            cd [PATH]

        Options:
            PATH                   Directory to change to (default: ~)
            -                      Return to the previous directory

        Examples:
            cd                     # Go to home directory
            cd /usr/bin            # Go to /usr/bin
            cd ..                  # Go to parent directory
            cd ~/Documents         # Go to Documents in home
        """
        target = ctx.command.operands[0] if ctx.command.operands else '~'
        output = ''

        if target == '-':
            target = ctx.env.get('OLDPWD', '')
            if not target:
                raise CommandError(ErrorKind.NOT_FOUND, "cd: OLDPWD not set")
            output = target

        new_path = ctx.resolve(target)
        node = ctx.fs.get(new_path)

        if node is None:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"cd: no such file or directory: {target}")
        if not node.is_dir():
            raise CommandError(ErrorKind.NOT_A_DIRECTORY,
                               f"cd: not a directory: {target}")

        return CommandResult(
            output=output,
            new_cwd=new_path,
            env_changes={'PWD': Upsert(new_path), 'OLDPWD': Upsert(ctx.cwd)},
        )

    def cmd_ls(self, ctx: CommandContext) -> CommandResult:
        """List directory contents.

        Usage:
            ls [OPTIONS] [PATH]

        Options:
            -a, --all              Show hidden files (starting with .)
            -l                     Use long listing format
            -h                     Human-readable sizes (with -l)
            -R                     List subdirectories recursively
            PATH                   Directory to list (default: current)

        Examples:
            ls                     # List current directory
            ls /usr                # List /usr directory
            ls -la /tmp            # Long format with hidden files
        """
        operand = ctx.command.operands[0] if ctx.command.operands else None
        target = ctx.resolve(operand) if operand else ctx.cwd
        node = ctx.fs.get(target)

        if node is None:
            raise CommandError(
                ErrorKind.NOT_FOUND,
                f"ls: cannot access '{operand or target}': No such file or directory")

        if node.is_file():
            return CommandResult(output=operand or basename(target))

        if not ctx.command.has_flag('R'):
            return CommandResult(output=self._list_directory(ctx, target))

        blocks = []
        for path in walk(ctx.fs, target):
            if not ctx.fs[path].is_dir() or not self._visible(ctx, path, target):
                continue
            blocks.append(f"{path}:\n{self._list_directory(ctx, path)}")
        return CommandResult(output='\n\n'.join(blocks))

    def _visible(self, ctx: CommandContext, path: str, root: str) -> bool:
        """Check that no segment below root is hidden, unless -a was given."""
        if ctx.command.has_flag('a', 'all'):
            return True
        relative = path[len(root):] if root != '/' else path
        return not any(part.startswith('.') for part in relative.split('/'))

    def _list_directory(self, ctx: CommandContext, path: str) -> str:
        names = children(ctx.fs, path)
        if not ctx.command.has_flag('a', 'all'):
            names = [name for name in names if not name.startswith('.')]

        if not ctx.command.has_flag('l'):
            return '  '.join(names)

        lines = []
        for name in names:
            child = ctx.fs[join_path(path, name)]
            perms = child.permissions or ('drwxr-xr-x' if child.is_dir() else '-rw-r--r--')
            owner = child.owner or USER_NAME
            group = child.group or 'staff'
            size = child.size or 0
            size_text = format_size(size) if ctx.command.has_flag('h') else str(size)
            date = child.modified.strftime('%b %d %H:%M') if child.modified else DEFAULT_LISTING_DATE
            lines.append(f"{perms}  1 {owner:<6} {group:<6} {size_text:>8} {date} {name}")
        return '\n'.join(lines)

    # Reading files

    def cmd_cat(self, ctx: CommandContext) -> CommandResult:
        """Concatenate and display files.

        Usage:
            cat FILE...

        Examples:
            cat file.txt           # Display contents of file.txt
            cat f1.txt f2.txt      # Concatenate multiple files
        """
        self._require_operand(ctx)
        outputs = []
        error = None

        for operand in ctx.command.operands:
            try:
                outputs.append(self._read_file(ctx, operand))
            except CommandError as e:
                outputs.append(e.message)
                error = error or e.kind

        if error:
            return CommandResult.failure('\n'.join(outputs), error)
        return CommandResult(output='\n'.join(outputs))

    def cmd_less(self, ctx: CommandContext) -> CommandResult:
        """View a file (same as cat for a single file)."""
        operand = self._require_operand(ctx)
        return CommandResult(output=self._read_file(ctx, operand))

    def _line_window(self, ctx: CommandContext):
        """Return (count, file operand) for head/tail, honouring -n N."""
        operands = ctx.command.operands
        if ctx.command.has_flag('n'):
            count = _leading_int(operands[0] if operands else None) or 10
            operand = operands[1] if len(operands) > 1 else None
        else:
            count, operand = 10, operands[0] if operands else None
        if operand is None:
            raise CommandError(ErrorKind.MISSING_OPERAND, f"{ctx.name}: missing file operand")
        return count, operand

    def cmd_head(self, ctx: CommandContext) -> CommandResult:
        """Output the first part of a file.

        Usage:
            head [-n N] FILE

        Options:
            -n N                   Number of lines (default: 10)

        Examples:
            head /etc/hosts
            head -n 3 notes.md
        """
        count, operand = self._line_window(ctx)
        lines = self._read_file(ctx, operand).split('\n')
        return CommandResult(output='\n'.join(lines[:count]))

    def cmd_tail(self, ctx: CommandContext) -> CommandResult:
        """Output the last part of a file.

        Usage:
            tail [-n N] FILE

        Options:
            -n N                   Number of lines (default: 10)

        Examples:
            tail /var/log/system.log
            tail -n 1 notes.md
        """
        count, operand = self._line_window(ctx)
        lines = self._read_file(ctx, operand).split('\n')
        return CommandResult(output='\n'.join(lines[-count:]))

    # Writing files

    def cmd_touch(self, ctx: CommandContext) -> CommandResult:
        """Create empty files.

        Usage:
            touch FILE...

        Examples:
            touch newfile.txt      # Create empty file
            touch /tmp/marker      # Create file with absolute path
        """
        self._require_operand(ctx)
        changes: Delta = {}

        for operand in ctx.command.operands:
            path = ctx.resolve(operand)
            if path in ctx.fs:
                continue
            self._check_parent(ctx, path, operand)
            changes[path] = Upsert(file_node('', size=0, modified=ctx.clock))

        return CommandResult(fs_changes=changes or None)

    def cmd_mkdir(self, ctx: CommandContext) -> CommandResult:
        """Create directories.

        Usage:
            mkdir [-p] DIRECTORY...

        Options:
            -p                     Create parent directories as needed

        Examples:
            mkdir mydir            # Create directory
            mkdir -p a/b/c         # Create nested directories
        """
        self._require_operand(ctx, 'missing operand')
        parents = ctx.command.has_flag('p')
        created: Dict[str, Node] = {}
        messages = []
        error = None

        for operand in ctx.command.operands:
            path = ctx.resolve(operand)
            existing = created.get(path) or ctx.fs.get(path)
            try:
                if existing is not None:
                    if parents and existing.is_dir():
                        continue
                    raise CommandError(ErrorKind.ALREADY_EXISTS,
                                       f"mkdir: {operand}: File exists")
                if parents:
                    self._make_ancestors(ctx, path, operand, created)
                else:
                    self._check_parent(ctx, path, operand, created)
                created[path] = dir_node(modified=ctx.clock)
            except CommandError as e:
                messages.append(e.message)
                error = error or e.kind

        changes: Delta = {path: Upsert(node) for path, node in created.items()}
        return CommandResult(output='\n'.join(messages), success=error is None,
                             fs_changes=changes or None, error=error)

    def _make_ancestors(self, ctx: CommandContext, path: str, operand: str,
                        created: Dict[str, Node]) -> None:
        ancestors = []
        parent = parent_path(path)
        while parent is not None:
            ancestors.append(parent)
            parent = parent_path(parent)

        for ancestor in reversed(ancestors):
            node = created.get(ancestor) or ctx.fs.get(ancestor)
            if node is None:
                created[ancestor] = dir_node(modified=ctx.clock)
            elif not node.is_dir():
                raise CommandError(ErrorKind.NOT_A_DIRECTORY,
                                   f"mkdir: {operand}: Not a directory")

    def cmd_rm(self, ctx: CommandContext) -> CommandResult:
        """Remove files or directories.

        Usage:
            rm [OPTIONS] FILE...

        Options:
            -r, -R                 Remove directories recursively
            -f                     Ignore nonexistent files
            (note)                 Removing '/' is always refused, even with -r

        Examples:
            rm file.txt            # Remove a file
            rm -r mydir            # Remove directory recursively
            rm -rf /tmp/cache      # Force remove directory
        """
        self._require_operand(ctx, 'missing operand')
        recursive = ctx.command.has_flag('r', 'R')
        force = ctx.command.has_flag('f')
        changes: Delta = {}
        messages = []
        error = None

        for operand in ctx.command.operands:
            path = ctx.resolve(operand)
            node = ctx.fs.get(path)

            if node is None:
                if not force:
                    messages.append(f"rm: {operand}: No such file or directory")
                    error = error or ErrorKind.NOT_FOUND
                continue
            if node.is_dir() and not recursive:
                messages.append(f"rm: {operand}: is a directory")
                error = error or ErrorKind.IS_A_DIRECTORY
                continue
            if path == '/':
                messages.append("rm: it is dangerous to operate recursively on '/'")
                error = error or ErrorKind.INVALID_ARGUMENT
                continue

            changes[path] = DELETE
            if recursive:
                for key in descendants(ctx.fs, path):
                    changes[key] = DELETE

        return CommandResult(output='\n'.join(messages), success=error is None,
                             fs_changes=changes or None, error=error)

    def cmd_rmdir(self, ctx: CommandContext) -> CommandResult:
        """Remove empty directories."""
        self._require_operand(ctx, 'missing operand')
        changes: Delta = {}
        messages = []
        error = None

        for operand in ctx.command.operands:
            path = ctx.resolve(operand)
            node = ctx.fs.get(path)
            if node is None:
                messages.append(f"rmdir: {operand}: No such file or directory")
                error = error or ErrorKind.NOT_FOUND
            elif not node.is_dir():
                messages.append(f"rmdir: {operand}: Not a directory")
                error = error or ErrorKind.NOT_A_DIRECTORY
            elif children(ctx.fs, path):
                messages.append(f"rmdir: {operand}: Directory not empty")
                error = error or ErrorKind.NOT_EMPTY
            else:
                changes[path] = DELETE

        return CommandResult(output='\n'.join(messages), success=error is None,
                             fs_changes=changes or None, error=error)

    def _transfer_target(self, ctx: CommandContext, source: str, operand: str) -> str:
        """Resolve a cp/mv destination, placing the source inside existing directories."""
        destination = ctx.resolve(operand)
        node = ctx.fs.get(destination)
        if node is not None and node.is_dir() and destination != source:
            destination = join_path(destination, basename(source))
        return destination

    def _subtree(self, ctx: CommandContext, source: str, destination: str) -> Dict[str, Node]:
        """Map every node at and below source onto destination."""
        mapped = {destination: ctx.fs[source]}
        for key in descendants(ctx.fs, source):
            mapped[destination + key[len(source):]] = ctx.fs[key]
        return mapped

    def cmd_cp(self, ctx: CommandContext) -> CommandResult:
        """Copy files or directories.

        Usage:
            cp [-r] SOURCE DEST

        Options:
            -r, -R                 Copy directories recursively

        Examples:
            cp notes.md backup.md  # Copy a file
            cp notes.md /tmp       # Copy into a directory
            cp -r projects /tmp    # Copy a directory tree
        """
        operands = ctx.command.operands
        if len(operands) < 2:
            raise CommandError(ErrorKind.MISSING_OPERAND, "cp: missing destination file operand")

        source = ctx.resolve(operands[0])
        node = ctx.fs.get(source)
        if node is None:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"cp: {operands[0]}: No such file or directory")
        if node.is_dir() and not ctx.command.has_flag('r', 'R'):
            raise CommandError(ErrorKind.IS_A_DIRECTORY,
                               f"cp: {operands[0]}: is a directory (not copied)")

        destination = self._transfer_target(ctx, source, operands[1])
        self._check_transfer(ctx, node, source, destination, operands)

        changes: Delta = {path: Upsert(child)
                          for path, child in self._subtree(ctx, source, destination).items()}
        return CommandResult(fs_changes=changes)

    def cmd_mv(self, ctx: CommandContext) -> CommandResult:
        """Move or rename files and directories.

        Usage:
            mv SOURCE DEST

        Examples:
            mv old.txt new.txt     # Rename a file
            mv notes.md /tmp       # Move into a directory
        """
        operands = ctx.command.operands
        if len(operands) < 2:
            raise CommandError(ErrorKind.MISSING_OPERAND, "mv: missing destination file operand")

        source = ctx.resolve(operands[0])
        node = ctx.fs.get(source)
        if node is None:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"mv: {operands[0]}: No such file or directory")

        destination = self._transfer_target(ctx, source, operands[1])
        if destination == source:
            return CommandResult()
        self._check_transfer(ctx, node, source, destination, operands)

        changes: Delta = {source: DELETE}
        for key in descendants(ctx.fs, source):
            changes[key] = DELETE
        for path, child in self._subtree(ctx, source, destination).items():
            changes[path] = Upsert(child)
        return CommandResult(fs_changes=changes)

    def _check_transfer(self, ctx: CommandContext, node: Node, source: str,
                        destination: str, operands: List[str]) -> None:
        if node.is_dir() and is_within(destination, source):
            verb = 'copy' if ctx.name == 'cp' else 'move'
            raise CommandError(
                ErrorKind.INVALID_ARGUMENT,
                f"{ctx.name}: cannot {verb} '{operands[0]}' into a subdirectory of itself")
        existing = ctx.fs.get(destination)
        if node.is_dir() and existing is not None and existing.is_file():
            raise CommandError(
                ErrorKind.NOT_A_DIRECTORY,
                f"{ctx.name}: {operands[1]}: cannot overwrite non-directory with directory")
        if node.is_file() and existing is not None and existing.is_dir():
            raise CommandError(
                ErrorKind.IS_A_DIRECTORY,
                f"{ctx.name}: {operands[1]}: cannot overwrite directory with non-directory")
        self._check_parent(ctx, destination, operands[1])

    # Text processing

    def cmd_echo(self, ctx: CommandContext) -> CommandResult:
        """Display a line of text.

        Usage:
            echo [STRING...]

        Examples:
            echo "Hello World"     # Print Hello World
            echo $USER             # Print environment variable
            echo "a\\nb"            # Print two lines
        """
        text = ' '.join(ctx.command.args)
        return CommandResult(output=text.replace('\\n', '\n').replace('\\t', '\t'))

    def cmd_grep(self, ctx: CommandContext) -> CommandResult:
        """Search for a pattern in a file.

        Usage:
            grep [OPTIONS] PATTERN FILE

        Options:
            -i                     Ignore case
            -c                     Print only a count of matching lines
            -n                     Prefix lines with their line number
            -v                     Select non-matching lines

        Examples:
            grep alias .zshrc
            grep -i ZOS .zshrc
            grep -c TODO notes.md
        """
        operands = ctx.command.operands
        if len(operands) < 2:
            raise CommandError(ErrorKind.MISSING_OPERAND, "grep: usage: grep [pattern] [file]")

        pattern, operand = operands[0], operands[1]
        lines = self._read_file(ctx, operand).split('\n')
        flags = re.IGNORECASE if ctx.command.has_flag('i') else 0
        try:
            regex = re.compile(pattern, flags)
        except re.error as e:
            logger.debug("grep: invalid pattern %r (%s), matching literally", pattern, e)
            regex = re.compile(re.escape(pattern), flags)

        invert = ctx.command.has_flag('v')
        matches = [(number, line) for number, line in enumerate(lines, 1)
                   if bool(regex.search(line)) != invert]

        if ctx.command.has_flag('c'):
            return CommandResult(output=str(len(matches)))
        if ctx.command.has_flag('n'):
            return CommandResult(output='\n'.join(f"{number}:{line}" for number, line in matches))
        return CommandResult(output='\n'.join(line for _, line in matches))

    def cmd_wc(self, ctx: CommandContext) -> CommandResult:
        """Print line, word and character counts.

        Usage:
            wc [-l | -w | -c] FILE

        Examples:
            wc notes.md
            wc -l notes.md
        """
        operand = self._require_operand(ctx)
        content = self._read_file(ctx, operand)
        lines = len(content.split('\n'))
        words = len(content.split())
        chars = len(content)

        if ctx.command.has_flag('l'):
            return CommandResult(output=str(lines))
        if ctx.command.has_flag('w'):
            return CommandResult(output=str(words))
        if ctx.command.has_flag('c'):
            return CommandResult(output=str(chars))
        return CommandResult(output=f"  {lines}  {words}  {chars} {operand}")

    def cmd_sort(self, ctx: CommandContext) -> CommandResult:
        """Sort the lines of a file (-r reverse, -n numeric)."""
        operand = self._require_operand(ctx)
        lines = self._read_file(ctx, operand).split('\n')
        if ctx.command.has_flag('n'):
            lines.sort(key=lambda line: _leading_int(line) or 0)
        else:
            lines.sort()
        if ctx.command.has_flag('r'):
            lines.reverse()
        return CommandResult(output='\n'.join(lines))

    def cmd_uniq(self, ctx: CommandContext) -> CommandResult:
        """Collapse adjacent duplicate lines."""
        operand = self._require_operand(ctx)
        lines = self._read_file(ctx, operand).split('\n')
        unique = [line for i, line in enumerate(lines) if i == 0 or line != lines[i - 1]]
        return CommandResult(output='\n'.join(unique))

    # System information

    def cmd_whoami(self, ctx: CommandContext) -> CommandResult:
        """Print the current user name."""
        return CommandResult(output=USER_NAME)

    def cmd_id(self, ctx: CommandContext) -> CommandResult:
        """Print user and group IDs."""
        return CommandResult(
            output='uid=501(user) gid=20(staff) groups=20(staff),12(everyone),61(localaccounts)')

    def cmd_hostname(self, ctx: CommandContext) -> CommandResult:
        """Print the system hostname."""
        return CommandResult(output=ctx.env.get('HOSTNAME') or 'zos.local')

    def cmd_uname(self, ctx: CommandContext) -> CommandResult:
        """Print system information (-a, -s, -r, -m)."""
        if ctx.command.has_flag('a'):
            output = 'zOS Darwin 23.0.0 zOS Kernel Version 23.0.0 x86_64'
        elif ctx.command.has_flag('r'):
            output = '23.0.0'
        elif ctx.command.has_flag('m'):
            output = 'x86_64'
        else:
            output = 'zOS'
        return CommandResult(output=output)

    def cmd_date(self, ctx: CommandContext) -> CommandResult:
        """Print the current date and time (-u for UTC)."""
        if ctx.command.has_flag('u'):
            utc = ctx.clock.astimezone(timezone.utc)
            return CommandResult(output=utc.strftime('%a, %d %b %Y %H:%M:%S GMT'))
        parts = [ctx.clock.strftime('%a %b %d %H:%M:%S'), ctx.clock.strftime('%Z'),
                 ctx.clock.strftime('%Y')]
        return CommandResult(output=' '.join(part for part in parts if part))

    def cmd_uptime(self, ctx: CommandContext) -> CommandResult:
        """Show how long the session has been running."""
        seconds = _elapsed_seconds(ctx.clock, ctx.boot_time)
        hours, minutes = seconds // 3600, (seconds % 3600) // 60
        return CommandResult(
            output=f" {ctx.clock.strftime('%H:%M:%S')}  up {hours}:{minutes:02d},"
                   f"  1 user,  load averages: 0.42 0.38 0.35")

    def cmd_df(self, ctx: CommandContext) -> CommandResult:
        """Report disk space usage (-h for human-readable)."""
        if ctx.command.has_flag('h'):
            output = """Filesystem      Size   Used  Avail Capacity  Mounted on
/dev/disk1s1   500G   250G   250G    50%     /
/dev/disk1s2   500G   100G   400G    20%     /System/Volumes/Data"""
        else:
            output = """Filesystem     1K-blocks      Used Available Capacity  Mounted on
/dev/disk1s1   524288000 262144000 262144000    50%     /
/dev/disk1s2   524288000 104857600 419430400    20%     /System/Volumes/Data"""
        return CommandResult(output=output)

    def cmd_du(self, ctx: CommandContext) -> CommandResult:
        """Estimate space used by a path.

        Usage:
            du [-h] [PATH]

        Options:
            -h                     Human-readable size instead of 1K blocks

        Examples:
            du Pictures
            du -h /bin
        """
        operand = ctx.command.operands[0] if ctx.command.operands else None
        path = ctx.resolve(operand) if operand else ctx.cwd
        if path not in ctx.fs:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"du: {operand or path}: No such file or directory")

        total = tree_size(ctx.fs, path)
        if ctx.command.has_flag('h'):
            size = format_size(total)
        else:
            size = str(-(-total // 1024))
        return CommandResult(output=f"{size}\t{path}")

    def cmd_ps(self, ctx: CommandContext) -> CommandResult:
        """List processes."""
        return CommandResult(output="""  PID TTY          TIME CMD
    1 ttys000  0:00.01 /sbin/launchd
  501 ttys000  0:00.05 -zsh
  502 ttys000  0:00.02 node
  503 ttys000  0:00.01 ps""")

    def _search_path(self, ctx: CommandContext) -> List[str]:
        value = ctx.env.get('PATH')
        if not value:
            return DEFAULT_SEARCH_PATH
        return [directory for directory in value.split(':') if directory]

    def _locate(self, ctx: CommandContext, name: str) -> Optional[str]:
        for directory in self._search_path(ctx):
            path = join_path(directory, name)
            node = ctx.fs.get(path)
            if node is not None and node.is_file():
                return path
        return None

    def cmd_which(self, ctx: CommandContext) -> CommandResult:
        """Locate a command in $PATH.

        Usage:
            which COMMAND...

        Examples:
            which ls               # /bin/ls
        """
        found, error = [], None
        for name in ctx.command.operands:
            location = self._locate(ctx, name)
            if location:
                found.append(location)
            else:
                found.append(f"{name} not found")
                error = ErrorKind.NOT_FOUND
        return CommandResult(output='\n'.join(found), success=error is None, error=error)

    def cmd_type(self, ctx: CommandContext) -> CommandResult:
        """Describe how a command name would be interpreted."""
        if not ctx.command.operands:
            return CommandResult()
        name = ctx.command.operands[0]
        if name in SHELL_BUILTINS:
            return CommandResult(output=f"{name} is a shell builtin")
        if name in ctx.state.aliases:
            return CommandResult(output=f"{name} is aliased to '{ctx.state.aliases[name]}'")
        location = self._locate(ctx, name)
        if location:
            return CommandResult(output=f"{name} is {location}")
        if name in self:
            return CommandResult(output=f"{name} is /usr/bin/{name}")
        raise CommandError(ErrorKind.NOT_FOUND, f"type: {name}: not found")

    def cmd_history(self, ctx: CommandContext) -> CommandResult:
        """Show command history."""
        lines = [f"  {i:>4}  {line}" for i, line in enumerate(ctx.state.history, 1)]
        return CommandResult(output='\n'.join(lines))

    # Environment and aliases

    def cmd_env(self, ctx: CommandContext) -> CommandResult:
        """Print the environment."""
        return CommandResult(output='\n'.join(f"{k}={v}" for k, v in ctx.env.items()))

    def cmd_set(self, ctx: CommandContext) -> CommandResult:
        """Print shell variables."""
        lines = [f"{k}={v}" for k, v in ctx.env.items()]
        lines.append(f"_={ctx.name}")
        return CommandResult(output='\n'.join(lines))

    def cmd_export(self, ctx: CommandContext) -> CommandResult:
        """Set environment variables.

        Usage:
            export [NAME=VALUE...]

        Options:
            (none)                 Print all variables as declarations

        Examples:
            export EDITOR=nano
            export GREETING="hello world"
        """
        if not ctx.command.operands:
            return CommandResult(output='\n'.join(
                f'declare -x {k}="{v}"' for k, v in ctx.env.items()))

        changes: Delta = {}
        for arg in ctx.command.operands:
            key, sep, value = arg.partition('=')
            if not key:
                continue
            if sep or key not in ctx.env:
                changes[key] = Upsert(value)
        return CommandResult(env_changes=changes or None)

    def cmd_unset(self, ctx: CommandContext) -> CommandResult:
        """Remove environment variables."""
        changes: Delta = {name: DELETE for name in ctx.command.operands}
        return CommandResult(env_changes=changes or None)

    def cmd_alias(self, ctx: CommandContext) -> CommandResult:
        """Define or list aliases.

        Usage:
            alias [NAME=COMMAND...]

        Examples:
            alias                  # List aliases
            alias gs='git status'  # Define an alias
            alias ll               # Show one alias
        """
        aliases = ctx.state.aliases
        if not ctx.command.operands:
            return CommandResult(output='\n'.join(f"alias {k}='{v}'" for k, v in aliases.items()))

        changes: Delta = {}
        shown = []
        error = None
        for arg in ctx.command.operands:
            name, sep, command = arg.partition('=')
            if not sep:
                if name in aliases:
                    shown.append(f"alias {name}='{aliases[name]}'")
                else:
                    shown.append(f"alias: {name}: not found")
                    error = ErrorKind.NOT_FOUND
                continue
            command = CommandParser.unquote(command)
            if name and command:
                changes[name] = Upsert(command)

        return CommandResult(output='\n'.join(shown), success=error is None,
                             alias_changes=changes or None, error=error)

    def cmd_unalias(self, ctx: CommandContext) -> CommandResult:
        """Remove aliases."""
        changes: Delta = {}
        missing = []
        for name in ctx.command.operands:
            if name in ctx.state.aliases:
                changes[name] = DELETE
            else:
                missing.append(f"unalias: {name}: not found")
        if missing:
            return CommandResult(output='\n'.join(missing), success=False,
                                 alias_changes=changes or None, error=ErrorKind.NOT_FOUND)
        return CommandResult(alias_changes=changes or None)

    # Novelty commands

    def cmd_neofetch(self, ctx: CommandContext) -> CommandResult:
        """Display system information with a logo."""
        minutes = _elapsed_seconds(ctx.clock, ctx.boot_time) // 60
        return CommandResult(output=f"""
       .:'                    {USER_NAME}@zos
    _ :'_                     --------
 .'  `'  '.                   OS: zOS 1.0.0
:  .-''-. .:                  Host: Web Browser
:  :    :  :                  Kernel: Python {platform.python_version()}
 '.  `--'  .'                 Uptime: {minutes} mins
   `:____:'                   Shell: zsh 5.9
                              Terminal: zOS Terminal
                              CPU: Multi-core Python Interpreter
                              Memory: 64M / Unlimited""")

    def cmd_cowsay(self, ctx: CommandContext) -> CommandResult:
        """Draw an ASCII cow saying something."""
        text = ' '.join(ctx.command.args) or 'moo'
        border = '_' * (len(text) + 2)
        return CommandResult(output=f""" {border}
< {text} >
 {'-' * (len(text) + 2)}
        \\   ^__^
         \\  (oo)\\_______
            (__)\\       )\\/\\
                ||----w |
                ||     ||""")

    def cmd_fortune(self, ctx: CommandContext) -> CommandResult:
        """Print a random adage."""
        return CommandResult(output=ctx.rng.choice(FORTUNES))

    def cmd_cal(self, ctx: CommandContext) -> CommandResult:
        """Display a calendar for the current month."""
        text = calendar.TextCalendar(calendar.SUNDAY).formatmonth(ctx.clock.year, ctx.clock.month)
        return CommandResult(output='\n'.join(line.rstrip() for line in text.rstrip('\n').split('\n')))

    def cmd_bc(self, ctx: CommandContext) -> CommandResult:
        """Evaluate an arithmetic expression.

        Usage:
            bc EXPRESSION

        Options:
            EXPRESSION             Numbers with + - * / % and parentheses

        Examples:
            bc "2 + 3 * 4"         # 14
            bc "(1 + 2) / 4"       # 0.75
        """
        if not ctx.command.args:
            return CommandResult(output='bc: interactive mode not supported. Usage: bc "expression"')
        expression = ' '.join(ctx.command.args)
        try:
            value = calculator.evaluate(expression)
            return CommandResult(output=calculator.format_number(value))
        except (calculator.EvaluationError, OverflowError) as e:
            logger.debug("bc: cannot evaluate %r: %s", expression, e)
            raise CommandError(ErrorKind.EVALUATION_ERROR, 'bc: syntax error')

    def cmd_find(self, ctx: CommandContext) -> CommandResult:
        """Search for files in a directory hierarchy.

        Usage:
            find [PATH] [-name PATTERN] [-type f|d]

        Options:
            -name PATTERN          Match base names against a glob pattern
            -type f|d              Only files (f) or directories (d)

        Examples:
            find /bin              # Everything under /bin
            find . -name "*.md"    # Markdown files below the current directory
            find / -type d         # Every directory
        """
        start, name_pattern, kind = None, None, None
        args = iter(ctx.command.args)
        for arg in args:
            if arg == '-name':
                name_pattern = next(args, None)
            elif arg == '-type':
                kind = next(args, None)
            elif not arg.startswith('-') and start is None:
                start = arg

        start = start or '.'
        root = ctx.resolve(start)
        if root not in ctx.fs:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"find: {start}: No such file or directory")

        results = []
        for path in walk(ctx.fs, root):
            node = ctx.fs[path]
            if name_pattern and not fnmatch.fnmatch(basename(path), name_pattern):
                continue
            if kind == 'f' and not node.is_file():
                continue
            if kind == 'd' and not node.is_dir():
                continue
            results.append(path)
        return CommandResult(output='\n'.join(results))

    def cmd_tree(self, ctx: CommandContext) -> CommandResult:
        """Display a directory tree.

        Usage:
            tree [PATH]

        Examples:
            tree                   # Tree of the current directory
            tree Documents         # Tree of Documents
        """
        operand = ctx.command.operands[0] if ctx.command.operands else None
        target = ctx.resolve(operand) if operand else ctx.cwd
        if target not in ctx.fs:
            raise CommandError(ErrorKind.NOT_FOUND,
                               f"tree: {operand}: No such file or directory")

        lines = [target]
        self._build_tree(ctx, target, '', lines)
        return CommandResult(output='\n'.join(lines))

    def _build_tree(self, ctx: CommandContext, path: str, prefix: str, lines: List[str]) -> None:
        names = children(ctx.fs, path)
        for i, name in enumerate(names):
            is_last = i == len(names) - 1
            child_path = join_path(path, name)
            lines.append(prefix + ('└── ' if is_last else '├── ') + name)
            if ctx.fs[child_path].is_dir():
                self._build_tree(ctx, child_path, prefix + ('    ' if is_last else '│   '), lines)
