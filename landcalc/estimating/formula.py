"""Quantity formula evaluation.

Formulas are small arithmetic expressions over named inputs, e.g.
``(area*0.25)/27``. Evaluation is two-step:

1. every whole-word input key is replaced by its numeric literal;
2. the remaining text must be pure arithmetic (numbers, ``+ - * /``,
   parentheses, whitespace) and is evaluated by a recursive-descent parser.

No general-purpose evaluator is involved, so a formula can never run code.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal

from landcalc.exceptions import InvalidFormula

_RESIDUAL_SYMBOL = re.compile(r"[A-Za-z_]")
_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(\S))")


def _literal(value: float) -> str:
    """Plain decimal literal (never scientific notation)."""
    text = format(Decimal(repr(float(value))), "f")
    return f"({text})" if text.startswith("-") else text


def substitute(formula: str, inputs: Mapping[str, float]) -> str:
    """Replace each whole-word input key in ``formula`` with its value."""
    expr = formula
    for key, value in inputs.items():
        expr = re.sub(rf"\b{re.escape(key)}\b", _literal(value), expr)
    return expr


def _tokenize(expr: str, formula: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = expr.rstrip()
    while pos < len(stripped):
        match = _TOKEN.match(stripped, pos)
        if match is None:  # pragma: no cover - the pattern accepts any non-space char
            raise InvalidFormula(formula)
        number, symbol = match.groups()
        if number is not None:
            tokens.append(number)
        elif symbol in "+-*/()":
            tokens.append(symbol)
        else:
            raise InvalidFormula(formula, f"Unexpected character {symbol!r}")
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser for ``+ - * / ( )`` over float literals.

    Grammar:
        expr    := term (("+" | "-") term)*
        term    := unary (("*" | "/") unary)*
        unary   := ("+" | "-") unary | primary
        primary := NUMBER | "(" expr ")"
    """

    def __init__(self, tokens: list[str], formula: str):
        self.tokens = tokens
        self.formula = formula
        self.pos = 0

    def parse(self) -> float:
        if not self.tokens:
            raise InvalidFormula(self.formula, "Empty formula")
        value = self._expr()
        if self.pos != len(self.tokens):
            raise InvalidFormula(self.formula, f"Unexpected token {self.tokens[self.pos]!r}")
        return value

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise InvalidFormula(self.formula, "Unexpected end of formula")
        self.pos += 1
        return token

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._next() == "+":
                value += self._term()
            else:
                value -= self._term()
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ("*", "/"):
            if self._next() == "*":
                value *= self._unary()
            else:
                value /= self._unary()
        return value

    def _unary(self) -> float:
        if self._peek() == "+":
            self._next()
            return self._unary()
        if self._peek() == "-":
            self._next()
            return -self._unary()
        return self._primary()

    def _primary(self) -> float:
        token = self._next()
        if token == "(":
            value = self._expr()
            if self._next() != ")":
                raise InvalidFormula(self.formula, "Unbalanced parentheses")
            return value
        if token in "+-*/)":
            raise InvalidFormula(self.formula, f"Unexpected token {token!r}")
        return float(token)


def evaluate(formula: str, inputs: Mapping[str, float]) -> float:
    """Evaluate a quantity formula against named numeric inputs.

    Args:
        formula: Arithmetic expression referencing input keys, e.g. ``area/100``
        inputs: Input values keyed by name

    Returns:
        The result, or 0.0 when it is not finite (e.g. division by zero)

    Raises:
        InvalidFormula: If an unknown identifier remains after substitution,
            or the expression is not well-formed arithmetic
    """
    expr = substitute(formula, inputs)
    if _RESIDUAL_SYMBOL.search(expr):
        raise InvalidFormula(formula)

    parser = _Parser(_tokenize(expr, formula), formula)
    try:
        result = parser.parse()
    except (ZeroDivisionError, OverflowError):
        return 0.0
    except RecursionError as e:
        raise InvalidFormula(formula, "Expression nested too deeply") from e
    return result if math.isfinite(result) else 0.0


def apply_waste(qty: float, waste_pct: float) -> float:
    """Inflate a quantity by a waste fraction (0.07 = 7%). Not clamped."""
    return qty * (1 + waste_pct)
