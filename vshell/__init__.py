"""
vshell - A virtual POSIX-like shell interpreter over an in-memory filesystem

This package provides a flat, path-keyed virtual filesystem, a command
interpreter with aliases, variables, quoting and '&&' / ';' chaining, and
a terminal front end. Commands never mutate the session state they are
given; they return deltas that the executor folds into a new snapshot.
"""

__version__ = "0.1.0"

from .paths import (
    HOME_DIR,
    resolve_path,
    get_prompt_path,
    format_size,
)

from .filesystem import (
    Node,
    NodeKind,
    create_default_filesystem,
    children,
)

from .state import (
    Upsert,
    Delete,
    DELETE,
    KEEP,
    apply_delta,
    CommandResult,
    ChainResult,
    SessionState,
    DEFAULT_ENVIRONMENT,
    DEFAULT_ALIASES,
)

from .errors import (
    ErrorKind,
    CommandError,
)

from .command_parser import (
    ChainEntry,
    Command,
    CommandParser,
    parse_chained_commands,
)

from .commands import (
    CommandContext,
    CommandRegistry,
)

from .executor import (
    CommandExecutor,
    execute_command,
    execute_chained_commands,
)

from .terminal import (
    TerminalSession,
    TerminalConfig,
    CommandHistory,
    TabCompleter,
)

__all__ = [
    # Paths
    "HOME_DIR",
    "resolve_path",
    "get_prompt_path",
    "format_size",

    # Filesystem store
    "Node",
    "NodeKind",
    "create_default_filesystem",
    "children",

    # State and deltas
    "Upsert",
    "Delete",
    "DELETE",
    "KEEP",
    "apply_delta",
    "CommandResult",
    "ChainResult",
    "SessionState",
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_ALIASES",

    # Errors
    "ErrorKind",
    "CommandError",

    # Parser
    "ChainEntry",
    "Command",
    "CommandParser",
    "parse_chained_commands",

    # Execution
    "CommandContext",
    "CommandRegistry",
    "CommandExecutor",
    "execute_command",
    "execute_chained_commands",

    # Terminal
    "TerminalSession",
    "TerminalConfig",
    "CommandHistory",
    "TabCompleter",

    # Version info
    "__version__",
]
