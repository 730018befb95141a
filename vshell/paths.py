#!/usr/bin/env python3
"""
Path handling for the vshell virtual filesystem.

Every path in the store is a canonical absolute path: it starts with '/',
has no trailing slash (except the root itself) and no '.' or '..'
segments. The helpers here are purely syntactic. They never look at the
store, so callers are responsible for existence checks.
"""

from typing import Optional

HOME_DIR = '/Users/user'


def resolve_path(cwd: str, path: str, home: str = HOME_DIR) -> str:
    """
    Resolve a path against the current working directory.

    Handles:
    - empty input (returns cwd unchanged)
    - home expansion ('~' and '~/rest')
    - absolute paths (trailing slashes stripped)
    - relative paths with '.' and '..' segments

    Examples:
        >>> resolve_path('/Users/user/Documents/projects', '../..')
        '/Users/user'
        >>> resolve_path('/Users/user', '/tmp/')
        '/tmp'
    """
    if not path:
        return cwd

    if path == '~':
        return home
    if path.startswith('~/'):
        path = home + path[1:]

    if path.startswith('/'):
        return path.rstrip('/') or '/'

    parts = [part for part in cwd.split('/') if part]

    for part in path.split('/'):
        if part == '..':
            # Popping past the root is a no-op
            if parts:
                parts.pop()
        elif part and part != '.':
            parts.append(part)

    return '/' + '/'.join(parts) if parts else '/'


def join_path(directory: str, name: str) -> str:
    """Join a canonical directory path and a child name."""
    if directory == '/':
        return '/' + name
    return f'{directory}/{name}'


def parent_path(path: str) -> Optional[str]:
    """Return the parent of a canonical path, or None for the root."""
    if path == '/':
        return None
    return path.rsplit('/', 1)[0] or '/'


def basename(path: str) -> str:
    """Return the last segment of a canonical path ('/' for the root)."""
    if path == '/':
        return '/'
    return path.rsplit('/', 1)[-1]


def is_within(path: str, ancestor: str) -> bool:
    """Check whether path equals ancestor or lives somewhere below it."""
    if ancestor == '/':
        return True
    return path == ancestor or path.startswith(ancestor + '/')


def get_prompt_path(cwd: str, home: str = HOME_DIR) -> str:
    """Abbreviate the home tree with '~' for display in a prompt."""
    if cwd == home:
        return '~'
    if cwd.startswith(home + '/'):
        return '~' + cwd[len(home):]
    return cwd


def format_size(size: int) -> str:
    """
    Format a byte count the way `ls -h` and `du -h` do.

    Sizes below 1K are printed as plain integers, larger ones with one
    decimal and a K/M/G suffix.
    """
    if size >= 1024 ** 3:
        return f'{size / 1024 ** 3:.1f}G'
    if size >= 1024 ** 2:
        return f'{size / 1024 ** 2:.1f}M'
    if size >= 1024:
        return f'{size / 1024:.1f}K'
    return str(size)
