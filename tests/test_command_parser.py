#!/usr/bin/env python3
"""
Tests for chain parsing, expansion and tokenization.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest
from vshell.command_parser import ChainEntry, CommandParser, parse_chained_commands


class TestChainParsing(unittest.TestCase):
    """Test splitting on '&&' and ';'."""

    def test_single_command(self):
        self.assertEqual(parse_chained_commands('ls'), [ChainEntry('ls', False)])

    def test_and_chain(self):
        self.assertEqual(parse_chained_commands('cd /tmp && ls'), [
            ChainEntry('cd /tmp', False),
            ChainEntry('ls', True),
        ])

    def test_semicolon_chain(self):
        self.assertEqual(parse_chained_commands('echo a; echo b'), [
            ChainEntry('echo a', False),
            ChainEntry('echo b', False),
        ])

    def test_mixed_chain(self):
        self.assertEqual(parse_chained_commands('cmd1 && cmd2 ; cmd3 && cmd4'), [
            ChainEntry('cmd1', False),
            ChainEntry('cmd2', True),
            ChainEntry('cmd3', False),
            ChainEntry('cmd4', True),
        ])

    def test_multiple_and(self):
        self.assertEqual(parse_chained_commands('a && b && c'), [
            ChainEntry('a', False),
            ChainEntry('b', True),
            ChainEntry('c', True),
        ])

    def test_whitespace_trimmed(self):
        self.assertEqual(parse_chained_commands('  echo a   &&   echo b  '), [
            ChainEntry('echo a', False),
            ChainEntry('echo b', True),
        ])

    def test_empty_segments_dropped(self):
        self.assertEqual(parse_chained_commands('; ; echo a ;; echo b ;'), [
            ChainEntry('echo a', False),
            ChainEntry('echo b', False),
        ])

    def test_flag_follows_previous_separator(self):
        """A dropped empty segment still passes its separator on."""
        self.assertEqual(parse_chained_commands('a && && b'), [
            ChainEntry('a', False),
            ChainEntry('b', True),
        ])

    def test_empty_line(self):
        self.assertEqual(parse_chained_commands('   '), [])


class TestExpansion(unittest.TestCase):
    """Test alias and variable expansion."""

    def setUp(self):
        self.parser = CommandParser()

    def test_alias_replaces_leading_word(self):
        self.assertEqual(self.parser.expand_aliases('ll /tmp', {'ll': 'ls -la'}), 'ls -la /tmp')

    def test_alias_only_leading_word(self):
        self.assertEqual(self.parser.expand_aliases('echo ll', {'ll': 'ls -la'}), 'echo ll')

    def test_alias_expands_once(self):
        self.assertEqual(self.parser.expand_aliases('ls', {'ls': 'ls -a'}), 'ls -a')

    def test_alias_requires_whole_word(self):
        self.assertEqual(self.parser.expand_aliases('lls', {'l': 'ls -CF'}), 'lls')

    def test_variables(self):
        env = {'HOME': '/Users/user', 'USER': 'user'}
        self.assertEqual(self.parser.expand_variables('echo $HOME ${USER}', env),
                         'echo /Users/user user')

    def test_unset_variable_is_empty(self):
        self.assertEqual(self.parser.expand_variables('echo [$NOPE]', {}), 'echo []')

    def test_variable_name_boundary(self):
        self.assertEqual(self.parser.expand_variables('$USER.txt', {'USER': 'bob'}), 'bob.txt')


class TestTokenize(unittest.TestCase):
    """Test quote-aware tokenization and flag separation."""

    def setUp(self):
        self.parser = CommandParser()

    def test_simple(self):
        self.assertEqual(self.parser.tokenize('ls -la /tmp'), ['ls', '-la', '/tmp'])

    def test_double_quotes(self):
        self.assertEqual(self.parser.tokenize('echo "hello   world"'), ['echo', 'hello   world'])

    def test_single_quotes(self):
        self.assertEqual(self.parser.tokenize("alias gs='git status'"), ['alias', 'gs=git status'])

    def test_backslash_kept(self):
        self.assertEqual(self.parser.tokenize('echo a\\nb'), ['echo', 'a\\nb'])

    def test_unclosed_quote_falls_back(self):
        self.assertEqual(self.parser.tokenize('echo "oops'), ['echo', 'oops'])

    def test_split_flags(self):
        flags, operands = self.parser.split_flags(['-la', '--all', 'dir', '-', 'x'])
        self.assertEqual(flags, {'l', 'a', 'all'})
        self.assertEqual(operands, ['dir', '-', 'x'])

    def test_parse_command(self):
        command = self.parser.parse('LS -l Documents', env={}, aliases={})
        self.assertEqual(command.name, 'ls')
        self.assertEqual(command.args, ['-l', 'Documents'])
        self.assertEqual(command.operands, ['Documents'])
        self.assertTrue(command.has_flag('l'))
        self.assertFalse(command.has_flag('a', 'all'))

    def test_parse_order_alias_then_variable(self):
        command = self.parser.parse('go', env={'DIR': '/tmp'}, aliases={'go': 'cd $DIR'})
        self.assertEqual(command.name, 'cd')
        self.assertEqual(command.operands, ['/tmp'])

    def test_parse_empty(self):
        self.assertIsNone(self.parser.parse('   '))
        self.assertIsNone(self.parser.parse('$NOTHING', env={}))


if __name__ == '__main__':
    unittest.main()
