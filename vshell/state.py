#!/usr/bin/env python3
"""
Session state, command results and deltas.

Session state is never mutated. A command reads one snapshot and
describes its effects as deltas on the result record; the executor folds
those deltas into a new snapshot.

A delta is a sparse mapping from key to a change:
- Upsert(value)  insert or overwrite the key
- DELETE         remove the key (a tombstone)
- KEEP           leave the key alone (same as not mentioning it)
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar, Union

from .errors import ErrorKind
from .filesystem import FileStore, Node, create_default_filesystem
from .paths import HOME_DIR

T = TypeVar('T')


@dataclass(frozen=True)
class Upsert(Generic[T]):
    """Insert or overwrite a key."""
    value: T


@dataclass(frozen=True)
class Delete:
    """Remove a key."""


@dataclass(frozen=True)
class Keep:
    """Leave a key untouched."""


DELETE = Delete()
KEEP = Keep()

Change = Union[Upsert, Delete, Keep]
Delta = Dict[str, Change]


def apply_delta(mapping: Mapping[str, T], delta: Optional[Mapping[str, Change]]) -> Dict[str, T]:
    """Return a new dict with delta applied to mapping."""
    result = dict(mapping)
    if not delta:
        return result
    for key, change in delta.items():
        if isinstance(change, Upsert):
            result[key] = change.value
        elif isinstance(change, Delete):
            result.pop(key, None)
    return result


DEFAULT_ENVIRONMENT: Dict[str, str] = {
    'HOME': HOME_DIR,
    'USER': 'user',
    'SHELL': '/bin/zsh',
    'PATH': '/usr/local/bin:/usr/bin:/bin:/usr/sbin:/sbin',
    'PWD': HOME_DIR,
    'TERM': 'xterm-256color',
    'LANG': 'en_US.UTF-8',
    'EDITOR': 'vim',
    'HOSTNAME': 'zos.local',
    'LOGNAME': 'user',
    'TMPDIR': '/tmp',
    'PS1': '%n@%m:%~$ ',
}

DEFAULT_ALIASES: Dict[str, str] = {
    'll': 'ls -la',
    'la': 'ls -a',
    'l': 'ls -CF',
    '..': 'cd ..',
    '...': 'cd ../..',
    'cls': 'clear',
    'h': 'history',
    'md': 'mkdir',
    'rd': 'rmdir',
}


@dataclass
class CommandResult:
    """
    Represents the result of a single command execution.

    Output is plain text. State effects are carried as deltas and an
    optional working directory override; nothing here has been applied.
    """
    output: str = ''
    success: bool = True
    clear: bool = False
    exit_requested: bool = False
    new_cwd: Optional[str] = None
    fs_changes: Optional[Delta] = None
    env_changes: Optional[Delta] = None
    alias_changes: Optional[Delta] = None
    error: Optional[ErrorKind] = None

    @classmethod
    def failure(cls, output: str, kind: ErrorKind) -> 'CommandResult':
        """Create a failed result tagged with an error kind."""
        return cls(output=output, success=False, error=kind)

    @property
    def exit_code(self) -> int:
        """Shell-style exit status derived from success and error kind."""
        if self.success:
            return 0
        if self.error is ErrorKind.UNKNOWN_COMMAND:
            return 127
        return 1

    def __str__(self) -> str:
        return self.output


@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of an interactive session.

    Holds the filesystem store, environment, aliases, working directory
    and command history. Use apply() and record() to derive new snapshots.
    """
    fs: FileStore
    env: Dict[str, str]
    aliases: Dict[str, str]
    cwd: str = HOME_DIR
    history: Tuple[str, ...] = ()

    @classmethod
    def default(cls, cwd: str = HOME_DIR) -> 'SessionState':
        """Create a fresh session over the default filesystem fixture."""
        return cls(
            fs=create_default_filesystem(),
            env=dict(DEFAULT_ENVIRONMENT, PWD=cwd),
            aliases=dict(DEFAULT_ALIASES),
            cwd=cwd,
        )

    def apply(self, result: CommandResult) -> 'SessionState':
        """Fold a command's cwd override and deltas into a new snapshot."""
        changes: Dict[str, Any] = {}
        if result.new_cwd:
            changes['cwd'] = result.new_cwd
        if result.fs_changes:
            changes['fs'] = apply_delta(self.fs, result.fs_changes)
        if result.env_changes:
            changes['env'] = apply_delta(self.env, result.env_changes)
        if result.alias_changes:
            changes['aliases'] = apply_delta(self.aliases, result.alias_changes)
        if not changes:
            return self
        return replace(self, **changes)

    def record(self, command_line: str) -> 'SessionState':
        """Return a snapshot with command_line appended to the history."""
        if not command_line or not command_line.strip():
            return self
        return replace(self, history=self.history + (command_line,))

    def to_dict(self) -> dict:
        """Convert the session to a JSON-serializable dictionary."""
        return {
            'fs': {path: node.to_dict() for path, node in self.fs.items()},
            'env': dict(self.env),
            'aliases': dict(self.aliases),
            'cwd': self.cwd,
            'history': list(self.history),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionState':
        """Rebuild a session from to_dict() output."""
        return cls(
            fs={path: Node.from_dict(node) for path, node in data['fs'].items()},
            env=dict(data.get('env', {})),
            aliases=dict(data.get('aliases', {})),
            cwd=data.get('cwd', HOME_DIR),
            history=tuple(data.get('history', [])),
        )


@dataclass
class ChainResult:
    """Aggregate result of running a '&&' / ';' chained command line."""
    outputs: List[str] = field(default_factory=list)
    success: bool = True
    final_state: Optional[SessionState] = None
    clear_requested: bool = False
    exit_requested: bool = False

    @property
    def output(self) -> str:
        """All collected outputs joined by newlines."""
        return '\n'.join(self.outputs)
