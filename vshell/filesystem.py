#!/usr/bin/env python3
"""
vshell filesystem - a flat, path-keyed virtual filesystem store.

Core philosophy:
- The store is a plain mapping from canonical absolute path to Node
- Hierarchy is derived from path prefixes, never from node references
- Nodes are immutable; changes are expressed as deltas (see state.py)
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional

from .paths import join_path


class NodeKind(str, Enum):
    """Type tag for a filesystem entry."""
    FILE = 'file'
    DIR = 'dir'


@dataclass(frozen=True)
class Node:
    """
    A single filesystem entry.

    Permissions, owner, group, size and modified are display fields only;
    nothing in the interpreter enforces them.
    """
    kind: NodeKind
    content: Optional[str] = None
    permissions: Optional[str] = None
    owner: Optional[str] = None
    group: Optional[str] = None
    size: Optional[int] = None
    modified: Optional[datetime] = None

    def is_file(self) -> bool:
        """Check if this is a regular file."""
        return self.kind is NodeKind.FILE

    def is_dir(self) -> bool:
        """Check if this is a directory."""
        return self.kind is NodeKind.DIR

    @property
    def text(self) -> str:
        """File body, empty when absent."""
        return self.content or ''

    @property
    def display_size(self) -> int:
        """Size used by listings: the recorded size, else the content length."""
        if self.size is not None:
            return self.size
        return len(self.text.encode('utf-8'))

    def to_dict(self) -> dict:
        """Convert node to dictionary for serialization."""
        d = asdict(self)
        d['kind'] = self.kind.value
        if self.modified is not None:
            d['modified'] = self.modified.isoformat()
        return {k: v for k, v in d.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> 'Node':
        """Rebuild a node from its serialized form."""
        data = dict(data)
        data['kind'] = NodeKind(data['kind'])
        if data.get('modified'):
            data['modified'] = datetime.fromisoformat(data['modified'])
        return cls(**data)


# A filesystem store: canonical absolute path -> Node
FileStore = Dict[str, Node]


def file_node(content: str = '', *, permissions: str = '-rw-r--r--',
              owner: str = 'user', group: str = 'staff',
              size: Optional[int] = None,
              modified: Optional[datetime] = None) -> Node:
    """Create a regular file node with user defaults."""
    return Node(NodeKind.FILE, content=content, permissions=permissions,
                owner=owner, group=group, size=size, modified=modified)


def dir_node(*, permissions: str = 'drwxr-xr-x', owner: str = 'user',
             group: str = 'staff', modified: Optional[datetime] = None) -> Node:
    """Create a directory node with user defaults."""
    return Node(NodeKind.DIR, permissions=permissions, owner=owner,
                group=group, modified=modified)


def _system_dir(permissions: str = 'drwxr-xr-x', group: str = 'wheel') -> Node:
    return dir_node(permissions=permissions, owner='root', group=group)


def _binary(size: int) -> Node:
    return Node(NodeKind.FILE, permissions='-rwxr-xr-x', owner='root',
                group='wheel', size=size)


def _device() -> Node:
    return Node(NodeKind.FILE, permissions='crw-rw-rw-', owner='root',
                group='wheel', size=0)


def create_default_filesystem() -> FileStore:
    """
    Seed the default filesystem fixture.

    The layout mimics a small macOS-style machine: the /Users/user home
    tree with sample documents and dotfiles, /Applications, /bin, /usr,
    /etc, /tmp, /var/log and /dev. A fresh dict is returned on every call.
    """
    return {
        '/': _system_dir(),
        '/Users': _system_dir(),
        '/Users/user': dir_node(),
        '/Users/user/Desktop': dir_node(),
        '/Users/user/Desktop/README.txt': file_node(
            'Welcome to zOS!\n\nThis is a simulated macOS-style desktop environment.\n'
            'Built with React and TypeScript.\n\nEnjoy exploring!',
            size=142),
        '/Users/user/Documents': dir_node(),
        '/Users/user/Documents/notes.md': file_node(
            '# Notes\n\n## TODO\n- Build zOS\n- Add more features\n- Ship it!\n\n'
            '## Ideas\n- Virtual file system\n- More apps\n- Cloud sync',
            size=128),
        '/Users/user/Documents/projects': dir_node(),
        '/Users/user/Documents/projects/zos': dir_node(),
        '/Users/user/Documents/projects/hanzo': dir_node(),
        '/Users/user/Documents/projects/lux': dir_node(),
        '/Users/user/Downloads': dir_node(),
        '/Users/user/Music': dir_node(),
        '/Users/user/Music/playlist.m3u': file_node(
            '#EXTM3U\n#EXTINF:180,Track 1\ntrack1.mp3\n#EXTINF:240,Track 2\ntrack2.mp3',
            size=89),
        '/Users/user/Pictures': dir_node(),
        '/Users/user/Pictures/wallpaper.png': file_node('[binary image data]', size=2048576),
        '/Users/user/Pictures/screenshot.png': file_node('[binary image data]', size=1024000),
        '/Users/user/Videos': dir_node(),
        '/Users/user/.zshrc': file_node(
            '# zOS zshrc\nexport PATH="/usr/local/bin:$PATH"\nexport EDITOR=vim\n'
            'alias ll="ls -la"\nalias la="ls -a"\nalias l="ls -CF"\n\n'
            '# Prompt\nPS1="%n@%m:%~$ "',
            size=186),
        '/Users/user/.bashrc': file_node(
            '# zOS bashrc\nexport PATH="/usr/local/bin:$PATH"\nalias ll="ls -la"',
            size=78),
        '/Users/user/.profile': file_node(
            '# zOS profile\n[ -f ~/.zshrc ] && source ~/.zshrc',
            size=52),
        '/Applications': _system_dir(group='admin'),
        '/Applications/Safari.app': _system_dir(),
        '/Applications/Terminal.app': _system_dir(),
        '/Applications/Finder.app': _system_dir(),
        '/Applications/Mail.app': _system_dir(),
        '/System': _system_dir(),
        '/System/Library': _system_dir(),
        '/Library': _system_dir(),
        '/Library/Preferences': _system_dir(),
        '/bin': _system_dir(),
        '/bin/ls': _binary(51856),
        '/bin/cat': _binary(23648),
        '/bin/echo': _binary(14432),
        '/bin/pwd': _binary(14416),
        '/bin/cd': _binary(14400),
        '/bin/mkdir': _binary(18528),
        '/bin/rm': _binary(18560),
        '/bin/cp': _binary(26752),
        '/bin/mv': _binary(26736),
        '/bin/zsh': _binary(1296464),
        '/bin/bash': _binary(1296464),
        '/usr': _system_dir(),
        '/usr/bin': _system_dir(),
        '/usr/bin/vim': _binary(3145728),
        '/usr/bin/grep': _binary(163024),
        '/usr/bin/find': _binary(108800),
        '/usr/bin/which': _binary(14416),
        '/usr/local': _system_dir(),
        '/usr/local/bin': _system_dir(),
        '/etc': _system_dir(),
        '/etc/hosts': file_node(
            '##\n# Host Database\n##\n127.0.0.1\tlocalhost\n'
            '255.255.255.255\tbroadcasthost\n::1\tlocalhost',
            owner='root', group='wheel', size=89),
        '/etc/passwd': file_node(
            'root:*:0:0:System Administrator:/var/root:/bin/zsh\n'
            'user:*:501:20:User:/Users/user:/bin/zsh',
            owner='root', group='wheel', size=94),
        '/etc/shells': file_node(
            '/bin/bash\n/bin/zsh\n/bin/sh',
            owner='root', group='wheel', size=27),
        '/tmp': _system_dir(permissions='drwxrwxrwt'),
        '/var': _system_dir(),
        '/var/log': _system_dir(),
        '/var/log/system.log': file_node(
            'Dec 25 10:00:00 zos kernel[0]: zOS initialized\n'
            'Dec 25 10:00:01 zos kernel[0]: All systems operational',
            permissions='-rw-r-----', owner='root', group='wheel', size=104),
        '/dev': _system_dir(),
        '/dev/null': _device(),
        '/dev/zero': _device(),
        '/dev/random': _device(),
        '/proc': _system_dir(permissions='dr-xr-xr-x'),
    }


def children(fs: Mapping[str, Node], path: str) -> List[str]:
    """
    List the names of the immediate children of a directory path.

    A child is any stored key that extends the directory's path by exactly
    one segment. The result is sorted and includes dotfiles.
    """
    prefix = '/' if path == '/' else path + '/'
    names = []
    for key in fs:
        if key == path or not key.startswith(prefix):
            continue
        rest = key[len(prefix):]
        if rest and '/' not in rest:
            names.append(rest)
    return sorted(names)


def descendants(fs: Mapping[str, Node], path: str) -> List[str]:
    """Return every stored key strictly below path, sorted."""
    prefix = '/' if path == '/' else path + '/'
    return sorted(key for key in fs if key != path and key.startswith(prefix))


def walk(fs: Mapping[str, Node], path: str) -> Iterator[str]:
    """
    Yield path and everything below it in depth-first, name-sorted order.

    Only directory nodes are descended into.
    """
    yield path
    node = fs.get(path)
    if node is None or not node.is_dir():
        return
    for name in children(fs, path):
        yield from walk(fs, join_path(path, name))


def tree_size(fs: Mapping[str, Node], path: str) -> int:
    """Total display size of a node and all of its descendants."""
    node = fs.get(path)
    if node is None:
        return 0
    total = node.display_size if node.is_file() else 0
    for key in descendants(fs, path):
        child = fs[key]
        if child.is_file():
            total += child.display_size
    return total
