from __future__ import annotations

import ast
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeAlias, override

# =============================================================================
# Base classes
# =============================================================================


class Node(ABC):
	"""Base class for all IR nodes."""

	__slots__: tuple[str, ...] = ()

	@abstractmethod
	def emit(self, out: list[str]) -> None:
		"""Emit this node as Python source into the output buffer."""


class Expr(Node, ABC):
	"""Base class for expression nodes."""

	__slots__: tuple[str, ...] = ()

	def precedence(self) -> int:
		"""Operator precedence (higher = binds tighter). Default: primary (20)."""
		return 20


class Stmt(Node, ABC):
	"""Base class for statement nodes."""

	__slots__: tuple[str, ...] = ()


# =============================================================================
# Expression Nodes
# =============================================================================


@dataclass(slots=True)
class Identifier(Expr):
	"""Name reference: x, offset_x, _cond"""

	name: str

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.name)


@dataclass(slots=True)
class Literal(Expr):
	"""Constant: 42, 1.5, "hello", True, None"""

	value: int | float | str | bool | None

	@override
	def precedence(self) -> int:
		if (
			isinstance(self.value, (int, float))
			and not isinstance(self.value, bool)
			and self.value < 0
			and math.isfinite(self.value)
		):
			return _PRECEDENCE["-u"]
		return 20

	@override
	def emit(self, out: list[str]) -> None:
		value = self.value
		if isinstance(value, float) and not math.isfinite(value):
			# repr() gives inf/nan, which would parse back as names
			out.append(f"float({str(value)!r})")
			return
		out.append(repr(value))


@dataclass(slots=True)
class Member(Expr):
	"""Attribute access: obj.prop"""

	obj: Expr
	prop: str

	@override
	def emit(self, out: list[str]) -> None:
		_emit_primary(self.obj, out)
		out.append(".")
		out.append(self.prop)


@dataclass(slots=True)
class Subscript(Expr):
	"""Subscript access: obj[key]"""

	obj: Expr
	key: Expr

	@override
	def emit(self, out: list[str]) -> None:
		_emit_primary(self.obj, out)
		out.append("[")
		self.key.emit(out)
		out.append("]")


@dataclass(slots=True)
class Call(Expr):
	"""Function call: fn(args)"""

	callee: Expr
	args: Sequence[Expr]

	@override
	def emit(self, out: list[str]) -> None:
		_emit_primary(self.callee, out)
		out.append("(")
		for i, a in enumerate(self.args):
			if i > 0:
				out.append(", ")
			a.emit(out)
		out.append(")")


@dataclass(slots=True)
class Array(Expr):
	"""List display: [a, b, c]"""

	elements: Sequence[Expr]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("[")
		for i, e in enumerate(self.elements):
			if i > 0:
				out.append(", ")
			e.emit(out)
		out.append("]")


@dataclass(slots=True)
class Unary(Expr):
	"""Unary expression: -x, not x"""

	op: str
	operand: Expr

	@override
	def precedence(self) -> int:
		if self.op == "not":
			return _PRECEDENCE["not"]
		if self.op == "*":
			return 20
		return _PRECEDENCE["-u"]

	@override
	def emit(self, out: list[str]) -> None:
		out.append(self.op)
		if self.op == "not":
			out.append(" ")
		if self.operand.precedence() < self.precedence():
			out.append("(")
			self.operand.emit(out)
			out.append(")")
		else:
			self.operand.emit(out)


@dataclass(slots=True)
class Binary(Expr):
	"""Binary, comparison or boolean expression: x + y, a == b, a and b"""

	left: Expr
	op: str
	right: Expr

	@override
	def precedence(self) -> int:
		return _PRECEDENCE.get(self.op, 0)

	@override
	def emit(self, out: list[str]) -> None:
		_emit_paren(self.left, self.op, "left", out)
		out.append(" ")
		out.append(self.op)
		out.append(" ")
		_emit_paren(self.right, self.op, "right", out)


@dataclass(slots=True)
class Ternary(Expr):
	"""Conditional expression: then if test else else_"""

	test: Expr
	then: Expr
	else_: Expr

	@override
	def precedence(self) -> int:
		return _PRECEDENCE["if"]

	@override
	def emit(self, out: list[str]) -> None:
		_emit_paren(self.then, "if", "left", out)
		out.append(" if ")
		_emit_paren(self.test, "if", "left", out)
		out.append(" else ")
		self.else_.emit(out)


@dataclass(slots=True)
class Pattern(Expr):
	"""Destructuring target: [a, b] = pair"""

	elements: Sequence[Expr]

	@override
	def emit(self, out: list[str]) -> None:
		out.append("[")
		for i, e in enumerate(self.elements):
			if i > 0:
				out.append(", ")
			e.emit(out)
		out.append("]")


@dataclass(slots=True)
class Assign(Expr):
	"""Assignment: target = value, or target op= value when op is set.

	An expression node so that an assignment nested inside another
	expression (a walrus) survives until lowering rejects it.
	"""

	target: Expr
	value: Expr
	op: str | None = None

	@override
	def precedence(self) -> int:
		return _PRECEDENCE[":="]

	@override
	def emit(self, out: list[str]) -> None:
		# Expression position: only plain assignment has a spelling
		self.target.emit(out)
		out.append(" := ")
		self.value.emit(out)

	def emit_stmt(self, out: list[str]) -> None:
		self.target.emit(out)
		out.append(f" {self.op}= " if self.op else " = ")
		self.value.emit(out)


@dataclass(slots=True)
class Raw(Expr):
	"""Host expression emitted as written: exec_(a + b) -> (a + b)"""

	node: ast.expr

	@override
	def emit(self, out: list[str]) -> None:
		src = ast.unparse(self.node)
		if isinstance(self.node, _PRIMARY_HOST_NODES):
			out.append(src)
		else:
			out.append(f"({src})")


AssignTarget: TypeAlias = Identifier | Member | Subscript | Pattern


# =============================================================================
# Statement Nodes
# =============================================================================


@dataclass(slots=True)
class ExprStmt(Stmt):
	"""Expression statement: expr"""

	expr: Expr

	@override
	def emit(self, out: list[str]) -> None:
		if isinstance(self.expr, Assign):
			self.expr.emit_stmt(out)
		else:
			self.expr.emit(out)


@dataclass(slots=True)
class Return(Stmt):
	"""Return statement: return value"""

	value: Expr

	@override
	def emit(self, out: list[str]) -> None:
		out.append("return ")
		self.value.emit(out)


@dataclass(slots=True)
class Block(Stmt):
	"""A sequence of statements."""

	body: Sequence[Stmt]

	@override
	def emit(self, out: list[str]) -> None:
		if not self.body:
			out.append("pass")
			return
		for i, stmt in enumerate(self.body):
			if i > 0:
				out.append("\n")
			stmt.emit(out)


@dataclass(slots=True)
class If(Stmt):
	"""If statement. An If alternate is an elif branch."""

	test: Expr
	consequent: Block
	alternate: Block | If | None = None

	@override
	def emit(self, out: list[str]) -> None:
		out.append("if ")
		self.test.emit(out)
		out.append(":\n")
		_emit_suite(self.consequent, out)
		if isinstance(self.alternate, If):
			out.append("\nel")
			self.alternate.emit(out)
		elif self.alternate is not None:
			out.append("\nelse:\n")
			_emit_suite(self.alternate, out)


# =============================================================================
# Emit logic
# =============================================================================


def emit(node: Node) -> str:
	"""Emit a node as Python source."""
	out: list[str] = []
	node.emit(out)
	return "".join(out)


# Python operator precedence (higher = binds tighter)
_PRECEDENCE: dict[str, int] = {
	":=": -1,
	"if": 0,
	"or": 1,
	"and": 2,
	"not": 3,
	"==": 4,
	"!=": 4,
	"<": 4,
	"<=": 4,
	">": 4,
	">=": 4,
	"is": 4,
	"is not": 4,
	"in": 4,
	"not in": 4,
	"|": 5,
	"^": 6,
	"&": 7,
	"<<": 8,
	">>": 8,
	"+": 9,
	"-": 9,
	"*": 10,
	"/": 10,
	"//": 10,
	"%": 10,
	"@": 10,
	"-u": 11,
	"**": 12,
}

_RIGHT_ASSOC = {"**"}
# Comparisons chain in Python, so equal precedence always needs parens
_NON_ASSOC = {op for op, prec in _PRECEDENCE.items() if prec == 4}

_INDENT = "    "

_PRIMARY_HOST_NODES = (
	ast.Name,
	ast.Constant,
	ast.Attribute,
	ast.Subscript,
	ast.Call,
	ast.List,
	ast.Tuple,
)


def _emit_paren(node: Expr, parent_op: str, side: str, out: list[str]) -> None:
	"""Emit child with parens if needed for precedence."""
	child_prec = node.precedence()
	parent_prec = _PRECEDENCE.get(parent_op, 0)
	needs_parens = False
	if child_prec < parent_prec:
		needs_parens = True
	elif child_prec == parent_prec:
		if parent_op in _NON_ASSOC or parent_op == "if":
			needs_parens = True
		elif parent_op in _RIGHT_ASSOC:
			needs_parens = side == "left"
		else:
			needs_parens = side == "right"

	if needs_parens:
		out.append("(")
		node.emit(out)
		out.append(")")
	else:
		node.emit(out)


def _emit_primary(node: Expr, out: list[str]) -> None:
	"""Emit with parens if not primary precedence."""
	# 5.real lexes as a malformed float
	if node.precedence() < 20 or _is_int_literal(node):
		out.append("(")
		node.emit(out)
		out.append(")")
	else:
		node.emit(out)


def _is_int_literal(node: Expr) -> bool:
	return (
		isinstance(node, Literal)
		and isinstance(node.value, int)
		and not isinstance(node.value, bool)
	)


def _emit_suite(block: Block, out: list[str]) -> None:
	"""Emit an indented statement suite."""
	inner: list[str] = []
	block.emit(inner)
	lines = "".join(inner).split("\n")
	out.append("\n".join(_INDENT + line for line in lines))
