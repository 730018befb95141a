#!/usr/bin/env python3
"""
Tests for the terminal host: history, prompt, completion and slash commands.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

import pytest
import vshell.terminal as terminal
from vshell.paths import HOME_DIR
from vshell.state import SessionState
from vshell.terminal import CommandHistory, TerminalConfig, TerminalSession, main


@pytest.fixture
def session():
    """Create a terminal session with plain prompts."""
    return TerminalSession(config=TerminalConfig(enable_colors=False))


class FakeReadline:
    """Stand-in for the readline line buffer and history."""

    def __init__(self, line=''):
        self.line = line
        self.history_lines = []

    def clear_history(self):
        self.history_lines = []

    def add_history(self, line):
        self.history_lines.append(line)

    def get_line_buffer(self):
        return self.line

    def get_begidx(self):
        return self.line.rfind(' ') + 1


class TestCommandHistory:
    """Test the prompt line history handed to readline."""

    def test_add(self):
        history = CommandHistory()
        history.add('ls')
        history.add('pwd')
        assert history.entries == ['ls', 'pwd']
        assert len(history) == 2

    def test_blank_lines_ignored(self):
        history = CommandHistory()
        history.add('   ')
        assert history.entries == []

    def test_max_size(self):
        history = CommandHistory(max_size=2)
        for command in ['a', 'b', 'c']:
            history.add(command)
        assert history.entries == ['b', 'c']

    def test_replace(self):
        history = CommandHistory(max_size=2)
        history.add('old')
        history.replace(['x', ' ', 'y', 'z'])
        assert history.entries == ['y', 'z']

    def test_session_starts_from_state_history(self):
        state = SessionState.default().record('ls').record('pwd')
        session = TerminalSession(config=TerminalConfig(enable_colors=False), state=state)
        assert session.history.entries == ['ls', 'pwd']


class TestPrompt:
    """Test prompt rendering."""

    def test_home_is_abbreviated(self, session):
        assert session.get_prompt() == 'user@zos:~$ '

    def test_follows_cwd(self, session):
        session.execute_command('cd Documents')
        assert session.get_prompt() == 'user@zos:~/Documents$ '
        session.execute_command('cd /tmp')
        assert session.get_prompt() == 'user@zos:/tmp$ '

    def test_colors(self):
        session = TerminalSession(config=TerminalConfig(enable_colors=True))
        prompt = session.get_prompt()
        assert '\033[32muser@zos\033[0m' in prompt
        assert prompt.endswith('$ ')

    def test_initial_directory(self):
        session = TerminalSession(config=TerminalConfig(initial_dir='/tmp'))
        assert session.state.cwd == '/tmp'

    def test_missing_initial_directory_falls_back(self):
        session = TerminalSession(config=TerminalConfig(initial_dir='/nope'))
        assert session.state.cwd == HOME_DIR


class TestSessionExecution:
    """Test that the session threads state between lines."""

    def test_state_persists_between_lines(self, session):
        session.execute_command('mkdir demo')
        session.execute_command('cd demo')
        assert session.execute_command('pwd') == '/Users/user/demo'

    def test_history_includes_current_line(self, session):
        session.execute_command('echo hi')
        output = session.execute_command('history')
        assert output == '     1  echo hi\n     2  history'

    def test_empty_line(self, session):
        assert session.execute_command('   ') == ''
        assert session.state.history == ()

    def test_clear(self, session):
        assert session.execute_command('echo a ; clear') == 'a'
        assert session.clear_requested

    def test_exit(self, session):
        assert session.execute_command('exit') is None
        assert session.exit_message == 'logout\n[Process completed]'

    def test_run_command_on_exit(self, session):
        assert session.run_command('exit') == 'logout\n[Process completed]'

    def test_last_success(self, session):
        session.execute_command('cat missing.txt')
        assert not session.last_success
        session.execute_command('true')
        assert session.last_success

    def test_run_script(self, session):
        outputs = session.run_script([
            '# set up a project',
            '',
            'mkdir demo',
            'cd demo',
            'pwd',
            'exit',
            'echo never',
        ])
        assert outputs == ['', '', '/Users/user/demo']


class TestCompletion:
    """Test tab completion of commands and paths."""

    def test_command_name(self, session):
        assert session.completer.complete_line('ec') == ('echo', ['echo'])

    def test_alias_names(self, session):
        assert 'll' in session.completer.candidates('l', is_command=True)

    def test_directory_gets_slash(self, session):
        assert session.completer.complete_line('cd Doc') == ('cd Documents/', ['Documents/'])

    def test_nested_path(self, session):
        line, _ = session.completer.complete_line('ls Documents/pro')
        assert line == 'ls Documents/projects/'

    def test_file_has_no_slash(self, session):
        line, _ = session.completer.complete_line('cat Documents/no')
        assert line == 'cat Documents/notes.md'

    def test_ambiguous_lists_names(self, session):
        line, matches = session.completer.complete_line('cd D')
        assert line == 'cd D'
        assert matches == ['Desktop', 'Documents', 'Downloads']

    def test_complete_prints_matches(self, session, capsys):
        assert session.complete('cd D') == 'cd D'
        assert capsys.readouterr().out == 'Desktop  Documents  Downloads\n'

    def test_no_matches(self, session):
        assert session.completer.complete_line('cat zzz') == ('cat zzz', [])

    def test_readline_adapter(self, session, monkeypatch):
        monkeypatch.setattr(terminal, 'readline', FakeReadline('cd Do'))
        assert session.completer.complete('Do', 0) == 'Documents/'
        assert session.completer.complete('Do', 1) == 'Downloads/'
        assert session.completer.complete('Do', 2) is None


class TestSlashCommands:
    """Test host-side slash commands."""

    def test_save_and_load(self, session, tmp_path):
        path = tmp_path / 'state.json'
        session.execute_command('mkdir saved && cd saved')

        assert session.execute_command(f'/save {path}') == f'State saved to {path}'
        data = json.loads(path.read_text())
        assert data['cwd'] == '/Users/user/saved'

        session.execute_command('cd / && rm -r /Users/user/saved')
        assert session.execute_command(f'/load {path}') == f'State loaded from {path}'
        assert session.state.cwd == '/Users/user/saved'
        assert session.state.fs['/Users/user/saved'].is_dir()

    def test_load_restores_prompt_history(self, session, tmp_path, monkeypatch):
        path = tmp_path / 'state.json'
        session.execute_command('echo hi')
        session.execute_command(f'/save {path}')

        fake = FakeReadline()
        fake.history_lines = ['stale']
        monkeypatch.setattr(terminal, 'readline', fake)
        fresh = TerminalSession(config=TerminalConfig(enable_colors=False))
        fresh.running = True
        fresh.execute_command(f'/load {path}')

        assert fresh.history.entries == ['echo hi']
        assert fake.history_lines == ['echo hi']

    def test_load_missing_file(self, session, tmp_path):
        output = session.execute_command(f'/load {tmp_path / "missing.json"}')
        assert output.startswith('Load failed:')
        assert session.state.cwd == HOME_DIR

    def test_load_invalid_json(self, session, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text('{not json')
        assert session.execute_command(f'/load {path}').startswith('Load failed:')

    def test_status(self, session):
        output = session.execute_command('/status')
        assert 'Current dir:     /Users/user' in output
        assert 'Aliases:' in output

    def test_help(self, session):
        assert '/save [filename]' in session.execute_command('/help')

    def test_unknown(self, session):
        assert session.execute_command('/bogus').startswith('Unknown slash command: /bogus')

    def test_slash_commands_not_recorded(self, session):
        session.execute_command('/status')
        assert session.state.history == ()


class TestMain:
    """Test the command line entry point."""

    def test_single_command(self, capsys):
        assert main(['-c', 'echo hello && echo world']) == 0
        assert capsys.readouterr().out == 'hello\nworld\n'

    def test_failure_exit_status(self, capsys):
        assert main(['-c', 'cd /nonexistent']) == 1
        assert 'no such file or directory' in capsys.readouterr().out

    def test_initial_directory(self, capsys):
        assert main(['-d', '/tmp', '-c', 'pwd']) == 0
        assert capsys.readouterr().out == '/tmp\n'

    def test_exit_message(self, capsys):
        assert main(['-c', 'exit']) == 0
        assert capsys.readouterr().out == 'logout\n[Process completed]\n'
