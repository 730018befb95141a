#!/usr/bin/env python3
"""
Arithmetic evaluator used by the bc command.

Supports numbers, + - * / %, unary signs and parentheses. There is no
access to names, calls or attributes, so input can never run code.

Grammar:
    expr   := term (('+' | '-') term)*
    term   := factor (('*' | '/' | '%') factor)*
    factor := ('+' | '-') factor | NUMBER | '(' expr ')'
"""

import math
import re
from typing import List, Tuple, Union

Number = Union[int, float]

TOKEN_PATTERN = re.compile(r'\s*(?:(\d+\.?\d*|\.\d+)|(.))')

# Longest number accepted in input or produced as a result
MAX_DIGITS = 1000
INTEGER_LIMIT = 10 ** MAX_DIGITS


class EvaluationError(ValueError):
    """Raised when an expression cannot be evaluated."""


def tokenize(text: str) -> List[str]:
    """Convert an arithmetic expression into tokens."""
    tokens = []
    for number, symbol in TOKEN_PATTERN.findall(text):
        if number:
            tokens.append(number)
        elif symbol in '+-*/%()':
            tokens.append(symbol)
        elif not symbol.isspace():
            raise EvaluationError(f"unexpected character: {symbol!r}")
    return tokens


def parse_number(token: str) -> Number:
    """Parse a numeric token, preferring int."""
    if len(token.replace('.', '')) > MAX_DIGITS:
        raise EvaluationError(f"number longer than {MAX_DIGITS} digits")
    if '.' in token:
        return float(token)
    return int(token)


def evaluate(text: str) -> Number:
    """
    Evaluate an arithmetic expression.

    Raises:
        EvaluationError: On malformed or oversized input, or division by zero.
    """
    tokens = tokenize(text)
    if not tokens:
        raise EvaluationError("empty expression")

    def parse_expr(idx: int) -> Tuple[Number, int]:
        value, idx = parse_term(idx)
        while idx < len(tokens) and tokens[idx] in '+-':
            op = tokens[idx]
            right, idx = parse_term(idx + 1)
            value = value + right if op == '+' else value - right
        return value, idx

    def parse_term(idx: int) -> Tuple[Number, int]:
        value, idx = parse_factor(idx)
        while idx < len(tokens) and tokens[idx] in '*/%':
            op = tokens[idx]
            right, idx = parse_factor(idx + 1)
            value = _apply(op, value, right)
        return value, idx

    def parse_factor(idx: int) -> Tuple[Number, int]:
        if idx >= len(tokens):
            raise EvaluationError("unexpected end of expression")
        token = tokens[idx]
        if token == '-':
            value, idx = parse_factor(idx + 1)
            return -value, idx
        if token == '+':
            return parse_factor(idx + 1)
        if token == '(':
            value, idx = parse_expr(idx + 1)
            if idx >= len(tokens) or tokens[idx] != ')':
                raise EvaluationError("missing ')'")
            return value, idx + 1
        if token in '*/%)':
            raise EvaluationError(f"unexpected {token!r}")
        return parse_number(token), idx + 1

    try:
        value, idx = parse_expr(0)
    except RecursionError:
        raise EvaluationError("expression nested too deeply") from None
    if idx != len(tokens):
        raise EvaluationError(f"unexpected {tokens[idx]!r}")
    return value


def _apply(op: str, left: Number, right: Number) -> Number:
    if op == '*':
        return left * right
    if right == 0:
        raise EvaluationError("division by zero")
    if op == '/':
        return left / right
    # Remainder takes the sign of the dividend
    remainder = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(remainder)
    return remainder


def format_number(value: Number) -> str:
    """Render a result without a trailing '.0' for integral values."""
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EvaluationError("result is not finite")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if abs(value) >= INTEGER_LIMIT:
        raise EvaluationError(f"result longer than {MAX_DIGITS} digits")
    return str(value)
