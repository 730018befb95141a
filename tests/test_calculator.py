#!/usr/bin/env python3
"""
Tests for the bc arithmetic evaluator.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from vshell.calculator import EvaluationError, evaluate, format_number, tokenize


class TestEvaluate:
    """Test expression evaluation."""

    @pytest.mark.parametrize('expression,expected', [
        ('1 + 2', 3),
        ('2 + 3 * 4', 14),
        ('(2 + 3) * 4', 20),
        ('10 - 4 - 3', 3),
        ('10 / 4', 2.5),
        ('7 % 3', 1),
        ('-7 % 3', -1),
        ('-(2 + 3)', -5),
        ('+4', 4),
        ('2 * -3', -6),
        ('.5 + 1.25', 1.75),
    ])
    def test_arithmetic(self, expression, expected):
        assert evaluate(expression) == expected

    @pytest.mark.parametrize('expression', [
        '',
        '1 +',
        '(1 + 2',
        '1 + 2)',
        '* 3',
        '1 / 0',
        '5 % 0',
        '2 ** 3',
        "__import__('os')",
        'abs(1)',
        '1e5',
        '(' * 2000 + '1' + ')' * 2000,
        '-' * 5000 + '1',
        '1' * 5000 + ' + 1',
    ])
    def test_rejects(self, expression):
        with pytest.raises(EvaluationError):
            evaluate(expression)

    def test_tokenize(self):
        assert tokenize(' 12*(3.5-1) ') == ['12', '*', '(', '3.5', '-', '1', ')']


class TestFormatNumber:
    """Test result rendering."""

    def test_integers(self):
        assert format_number(14) == '14'
        assert format_number(4 / 2) == '2'

    def test_fractions(self):
        assert format_number(0.75) == '0.75'
        assert format_number(1 / 3) == '0.3333333333333333'

    def test_non_finite(self):
        with pytest.raises(EvaluationError):
            format_number(float('inf'))

    def test_result_too_long(self):
        with pytest.raises(EvaluationError):
            format_number(10 ** 1000)
        assert format_number(10 ** 999) == '1' + '0' * 999
