#!/usr/bin/env python3
"""
Tests for the flat filesystem store and the default fixture.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
from datetime import datetime

import pytest
from vshell.filesystem import (
    Node, NodeKind, children, create_default_filesystem, descendants,
    dir_node, file_node, tree_size, walk
)
from vshell.paths import parent_path


@pytest.fixture
def small_fs():
    """A tiny store with a hidden file and a nested directory."""
    return {
        '/': dir_node(),
        '/Users': dir_node(),
        '/Users/user': dir_node(),
        '/Users/user/.hidden': file_node('secret'),
        '/Users/user/Documents': dir_node(),
        '/Users/user/Documents/deep.txt': file_node('deep', size=10),
        '/Users/user/file.txt': file_node('hello'),
        '/empty': dir_node(),
    }


class TestChildren:
    """Test child enumeration by prefix matching."""

    def test_immediate_children_sorted_with_dotfiles(self, small_fs):
        assert children(small_fs, '/Users/user') == ['.hidden', 'Documents', 'file.txt']

    def test_root_children(self):
        fs = create_default_filesystem()
        names = children(fs, '/')
        assert 'Users' in names
        assert 'tmp' in names
        assert 'user' not in names

    def test_children_are_sorted(self):
        fs = create_default_filesystem()
        names = children(fs, '/bin')
        assert names == sorted(names)

    def test_empty_directory(self, small_fs):
        assert children(small_fs, '/empty') == []

    def test_sibling_prefix_not_included(self):
        fs = {'/': dir_node(), '/a': dir_node(), '/ab': dir_node(), '/a/x': file_node()}
        assert children(fs, '/a') == ['x']

    def test_restartable(self, small_fs):
        assert children(small_fs, '/Users/user') == children(small_fs, '/Users/user')


class TestTraversal:
    """Test descendants, walk and tree_size."""

    def test_descendants(self, small_fs):
        assert descendants(small_fs, '/Users/user/Documents') == ['/Users/user/Documents/deep.txt']
        assert '/Users/user' not in descendants(small_fs, '/Users/user')

    def test_walk_is_depth_first(self, small_fs):
        assert list(walk(small_fs, '/Users/user')) == [
            '/Users/user',
            '/Users/user/.hidden',
            '/Users/user/Documents',
            '/Users/user/Documents/deep.txt',
            '/Users/user/file.txt',
        ]

    def test_walk_file_yields_itself(self, small_fs):
        assert list(walk(small_fs, '/Users/user/file.txt')) == ['/Users/user/file.txt']

    def test_tree_size_uses_size_then_content_length(self, small_fs):
        # 'secret' (6) + recorded size 10 + 'hello' (5)
        assert tree_size(small_fs, '/Users/user') == 21

    def test_tree_size_missing_path(self, small_fs):
        assert tree_size(small_fs, '/nope') == 0


class TestNode:
    """Test node helpers and serialization."""

    def test_kind_checks(self):
        assert file_node().is_file()
        assert not file_node().is_dir()
        assert dir_node().is_dir()

    def test_text_defaults_to_empty(self):
        assert Node(NodeKind.FILE).text == ''

    def test_display_size(self):
        assert file_node('héllo').display_size == 6
        assert file_node('x', size=100).display_size == 100

    def test_dict_round_trip(self):
        node = file_node('data', size=4, modified=datetime(2026, 10, 19, 12, 0))
        data = node.to_dict()
        assert data['kind'] == 'file'
        assert data['modified'] == '2026-10-19T12:00:00'
        json.dumps(data)
        assert Node.from_dict(data) == node

    def test_to_dict_drops_missing_fields(self):
        data = Node(NodeKind.DIR).to_dict()
        assert data == {'kind': 'dir'}


class TestDefaultFilesystem:
    """Test the seeded fixture."""

    def test_fresh_store_each_call(self):
        first = create_default_filesystem()
        second = create_default_filesystem()
        del first['/tmp']
        assert '/tmp' in second

    def test_paths_are_canonical(self):
        for path in create_default_filesystem():
            assert path.startswith('/')
            assert path == '/' or not path.endswith('/')
            assert '//' not in path
            assert '/./' not in path and '/../' not in path

    def test_every_parent_is_a_directory(self):
        fs = create_default_filesystem()
        for path in fs:
            parent = parent_path(path)
            if parent is not None:
                assert fs[parent].is_dir(), path

    def test_expected_layout(self):
        fs = create_default_filesystem()
        for path in ['/Users/user', '/bin', '/etc', '/usr', '/tmp', '/var/log']:
            assert fs[path].is_dir()
        assert fs['/Users/user/Desktop/README.txt'].text.startswith('Welcome to zOS!')
        assert fs['/etc/shells'].text == '/bin/bash\n/bin/zsh\n/bin/sh'
        assert fs['/tmp'].permissions == 'drwxrwxrwt'
