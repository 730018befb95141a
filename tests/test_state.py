#!/usr/bin/env python3
"""
Tests for deltas, results and session snapshots.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

import pytest
from vshell.errors import ErrorKind
from vshell.filesystem import dir_node, file_node
from vshell.paths import HOME_DIR
from vshell.state import (
    DEFAULT_ALIASES, DEFAULT_ENVIRONMENT, DELETE, KEEP, ChainResult,
    CommandResult, SessionState, Upsert, apply_delta
)


@pytest.fixture
def state():
    """Create a fresh default session for each test."""
    return SessionState.default()


class TestApplyDelta:
    """Test the Upsert / Delete / KEEP delta application."""

    def test_upsert_delete_keep(self):
        original = {'a': 1, 'b': 2}
        result = apply_delta(original, {'a': DELETE, 'b': KEEP, 'c': Upsert(3)})
        assert result == {'b': 2, 'c': 3}

    def test_input_not_mutated(self):
        original = {'a': 1}
        apply_delta(original, {'a': Upsert(5), 'b': Upsert(6)})
        assert original == {'a': 1}

    def test_missing_key_delete_is_noop(self):
        assert apply_delta({'a': 1}, {'zzz': DELETE}) == {'a': 1}

    def test_none_delta_copies(self):
        original = {'a': 1}
        result = apply_delta(original, None)
        assert result == original
        assert result is not original

    def test_upsert_can_store_falsy_values(self):
        assert apply_delta({}, {'EMPTY': Upsert('')}) == {'EMPTY': ''}


class TestCommandResult:
    """Test result records."""

    def test_defaults(self):
        result = CommandResult()
        assert result.success
        assert result.output == ''
        assert result.exit_code == 0

    def test_failure(self):
        result = CommandResult.failure('cat: x: No such file or directory', ErrorKind.NOT_FOUND)
        assert not result.success
        assert result.error is ErrorKind.NOT_FOUND
        assert result.exit_code == 1
        assert str(result) == 'cat: x: No such file or directory'

    def test_unknown_command_exit_code(self):
        result = CommandResult.failure('zsh: command not found: x', ErrorKind.UNKNOWN_COMMAND)
        assert result.exit_code == 127


class TestSessionState:
    """Test snapshot derivation."""

    def test_default_session(self, state):
        assert state.cwd == HOME_DIR
        assert state.env == DEFAULT_ENVIRONMENT
        assert state.aliases == DEFAULT_ALIASES
        assert state.history == ()
        assert state.fs['/Users/user'].is_dir()

    def test_default_with_cwd_sets_pwd(self):
        state = SessionState.default(cwd='/tmp')
        assert state.cwd == '/tmp'
        assert state.env['PWD'] == '/tmp'

    def test_defaults_are_copies(self, state):
        state.env['X'] = '1'
        assert 'X' not in DEFAULT_ENVIRONMENT

    def test_apply_without_changes_returns_same_snapshot(self, state):
        assert state.apply(CommandResult(output='hi')) is state

    def test_apply_folds_all_deltas(self, state):
        result = CommandResult(
            new_cwd='/tmp',
            fs_changes={'/tmp/a.txt': Upsert(file_node('a')), '/Users/user/.zshrc': DELETE},
            env_changes={'FOO': Upsert('bar'), 'EDITOR': DELETE},
            alias_changes={'ll': DELETE},
        )
        new_state = state.apply(result)

        assert new_state.cwd == '/tmp'
        assert new_state.fs['/tmp/a.txt'].text == 'a'
        assert '/Users/user/.zshrc' not in new_state.fs
        assert new_state.env['FOO'] == 'bar'
        assert 'EDITOR' not in new_state.env
        assert 'll' not in new_state.aliases

        # The original snapshot is untouched
        assert state.cwd == HOME_DIR
        assert '/Users/user/.zshrc' in state.fs
        assert 'FOO' not in state.env
        assert 'll' in state.aliases

    def test_record(self, state):
        recorded = state.record('ls -la')
        assert recorded.history == ('ls -la',)
        assert state.history == ()
        assert recorded.record('   ') is recorded

    def test_dict_round_trip(self, state):
        state = state.apply(CommandResult(
            fs_changes={'/tmp/new': Upsert(dir_node())})).record('mkdir /tmp/new')
        data = json.loads(json.dumps(state.to_dict()))
        restored = SessionState.from_dict(data)
        assert restored == state


class TestChainResult:
    """Test aggregate chain results."""

    def test_output_joins_lines(self):
        chain = ChainResult(outputs=['one', 'two'])
        assert chain.output == 'one\ntwo'

    def test_defaults(self):
        chain = ChainResult()
        assert chain.outputs == []
        assert chain.success
        assert not chain.clear_requested
