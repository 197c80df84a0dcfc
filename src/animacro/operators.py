"""Operator table: source operator tokens -> engine function names."""

from __future__ import annotations

import ast
from typing import Literal

OperatorKind = Literal["unary", "binary"]

UNARY_OPS: dict[str, str] = {
	"not": "not_",
}

BINARY_OPS: dict[str, str] = {
	"==": "eq",
	"+": "add",
	"or": "or_",
	"-": "sub",
	"**": "pow",
	"*": "multiply",
	"/": "divide",
	"<": "lessThan",
	"%": "modulo",
	">": "greaterThan",
	"<=": "lessOrEq",
	">=": "greaterOrEq",
	"!=": "neq",
	"and": "and_",
}

# Names the lowering pass may emit, in import order. Value is the
# mutable-cell constructor used for early-return sentinels.
EMITTED_NAMES: tuple[str, ...] = (
	"Value",
	"cond",
	"set",
	"defined",
	"block",
	*UNARY_OPS.values(),
	*BINARY_OPS.values(),
)

# Python operator node -> source token. Covers every operator Python can
# parse so unsupported ones can still be named in errors.
BINOP_TOKENS: dict[type[ast.operator], str] = {
	ast.Add: "+",
	ast.Sub: "-",
	ast.Mult: "*",
	ast.Div: "/",
	ast.FloorDiv: "//",
	ast.Mod: "%",
	ast.Pow: "**",
	ast.MatMult: "@",
	ast.LShift: "<<",
	ast.RShift: ">>",
	ast.BitOr: "|",
	ast.BitXor: "^",
	ast.BitAnd: "&",
}

CMPOP_TOKENS: dict[type[ast.cmpop], str] = {
	ast.Eq: "==",
	ast.NotEq: "!=",
	ast.Lt: "<",
	ast.LtE: "<=",
	ast.Gt: ">",
	ast.GtE: ">=",
	ast.Is: "is",
	ast.IsNot: "is not",
	ast.In: "in",
	ast.NotIn: "not in",
}

BOOLOP_TOKENS: dict[type[ast.boolop], str] = {
	ast.And: "and",
	ast.Or: "or",
}

UNARYOP_TOKENS: dict[type[ast.unaryop], str] = {
	ast.Not: "not",
	ast.USub: "-",
	ast.UAdd: "+",
	ast.Invert: "~",
}

# Unary minus stays native negation instead of becoming an engine call.
NEGATION = "-"


def lookup(kind: OperatorKind, token: str) -> str | None:
	"""Engine function name for an operator token, or None if unsupported."""
	if kind == "unary":
		return UNARY_OPS.get(token)
	return BINARY_OPS.get(token)
