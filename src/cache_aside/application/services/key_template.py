# src/cache_aside/application/services/key_template.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""
Key Template Language

Purpose:
    Restricted expression language for custom cache keys, parsed once into a
    closure over argument positions. There is no general-purpose evaluator
    and no access to anything but the call's own arguments.

Grammar:
    expr     := operand ("+" operand)*
    operand  := variable | STRING | NUMBER | "(" expr ")"
    variable := "#" NAME ("." NAME | "[" (STRING | NUMBER) "]")*

Semantics:
    - ``#name`` is the value bound to the parameter ``name``.
    - ``.attr`` reads a mapping key for mappings, an attribute otherwise.
    - ``+`` adds when both operands are numbers and concatenates the ``str()``
      forms otherwise, left to right: ``#id + ':' + #status`` -> ``"42:active"``
      while ``#a + #b`` with ``a=1, b=2`` -> ``"3"``.
    - Strings use single or double quotes; a doubled quote escapes itself.

Layer: application/services
"""
from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal
from functools import lru_cache
from typing import Any, NoReturn

from cache_aside.domain.exceptions.caching import KeyResolutionError

__all__ = ["KeyTemplate", "compile_key_template"]

KeyTemplate = Callable[[Sequence[Any]], str]
_Node = Callable[[Sequence[Any]], Any]

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<var>\#[A-Za-z_]\w*)
      | (?P<num>\d+(?:\.\d+)?)
      | (?P<str>'(?:[^']|'')*'|"(?:[^"]|"")*")
      | (?P<name>[A-Za-z_]\w*)
      | (?P<op>[+.\[\]()])
    )
    """,
    re.VERBOSE,
)


def _tokenize(expression: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    end = len(expression.rstrip())
    while pos < end:
        match = _TOKEN_RE.match(expression, pos)
        if match is None or match.end() == pos:
            raise KeyResolutionError(
                f"Unexpected character {expression[pos:pos + 1]!r} at position {pos}",
                details={"expression": expression, "position": pos},
            )
        kind = str(match.lastgroup)
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def _string_literal(token: str) -> str:
    quote = token[0]
    return token[1:-1].replace(quote * 2, quote)


def _number_literal(token: str) -> int | Decimal:
    return Decimal(token) if "." in token else int(token)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float | Decimal) and not isinstance(value, bool)


def _plus(left: Any, right: Any) -> Any:
    if _is_number(left) and _is_number(right):
        return left + right
    return f"{left}{right}"


def _member(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        if name not in value:
            raise KeyResolutionError(f"Key {name!r} not found while evaluating cache key")
        return value[name]
    try:
        return getattr(value, name)
    except AttributeError as exc:
        raise KeyResolutionError(
            f"{type(value).__name__!s} has no attribute {name!r}"
        ) from exc


def _index(value: Any, index: Any) -> Any:
    try:
        return value[index]
    except (KeyError, IndexError, TypeError) as exc:
        raise KeyResolutionError(
            f"Cannot index {type(value).__name__} with {index!r}"
        ) from exc


class _Parser:
    """Recursive-descent parser producing evaluation closures."""

    def __init__(self, expression: str, argument_names: Sequence[str]) -> None:
        self._expression = expression
        self._tokens = _tokenize(expression)
        self._pos = 0
        self._positions = {name: i for i, name in enumerate(argument_names)}

    def parse(self) -> _Node:
        if not self._tokens:
            self._fail("Empty key expression")
        node = self._expr()
        if self._pos != len(self._tokens):
            self._fail(f"Unexpected token {self._tokens[self._pos][1]!r}")
        return node

    def _fail(self, message: str) -> NoReturn:
        raise KeyResolutionError(message, details={"expression": self._expression})

    def _peek(self) -> tuple[str, str] | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _take(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            self._fail("Unexpected end of key expression")
        self._pos += 1
        return token

    def _accept_op(self, op: str) -> bool:
        if self._peek() == ("op", op):
            self._pos += 1
            return True
        return False

    def _expr(self) -> _Node:
        node = self._operand()
        while self._accept_op("+"):
            left, right = node, self._operand()
            node = lambda args, left=left, right=right: _plus(left(args), right(args))  # noqa: E731
        return node

    def _operand(self) -> _Node:
        kind, text = self._take()
        if kind == "var":
            return self._variable(text[1:])
        if kind == "str":
            literal = _string_literal(text)
            return lambda _args: literal
        if kind == "num":
            number = _number_literal(text)
            return lambda _args: number
        if (kind, text) == ("op", "("):
            node = self._expr()
            if not self._accept_op(")"):
                self._fail("Missing closing parenthesis")
            return node
        self._fail(f"Unexpected token {text!r}")

    def _variable(self, name: str) -> _Node:
        if name not in self._positions:
            self._fail(f"Unknown variable #{name}")
        position = self._positions[name]
        node: _Node = lambda args: args[position]  # noqa: E731
        while True:
            if self._accept_op("."):
                kind, attr = self._take()
                if kind != "name":
                    self._fail(f"Expected attribute name after '.', got {attr!r}")
                node = lambda args, inner=node, attr=attr: _member(inner(args), attr)  # noqa: E731
            elif self._accept_op("["):
                kind, text = self._take()
                if kind == "str":
                    index: Any = _string_literal(text)
                elif kind == "num" and "." not in text:
                    index = int(text)
                else:
                    self._fail(f"Expected string or integer subscript, got {text!r}")
                if not self._accept_op("]"):
                    self._fail("Missing closing bracket")
                node = lambda args, inner=node, index=index: (  # noqa: E731
                    _index(inner(args), index)
                )
            else:
                return node


@lru_cache(maxsize=1024)
def compile_key_template(expression: str, argument_names: tuple[str, ...]) -> KeyTemplate:
    """Compile ``expression`` against the ordered parameter names of a callable.

    Args:
        expression: Key template source.
        argument_names: Parameter names, aligned with the values the returned
            template is later called with.

    Returns:
        KeyTemplate: Callable mapping argument values to the key suffix.

    Raises:
        KeyResolutionError: On syntax errors or unknown variables.
    """
    node = _Parser(expression, argument_names).parse()

    def evaluate(argument_values: Sequence[Any]) -> str:
        try:
            return str(node(argument_values))
        except KeyResolutionError:
            raise
        except (TypeError, ArithmeticError) as exc:
            raise KeyResolutionError(
                f"Cache key expression failed: {exc}",
                details={"expression": expression},
            ) from exc

    return evaluate
