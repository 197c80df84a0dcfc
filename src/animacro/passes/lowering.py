"""Lowering: statements and operators -> engine function calls."""

from __future__ import annotations

from animacro.errors import (
	MisplacedAssignmentError,
	UnsupportedOperatorError,
	UnsupportedPatternError,
)
from animacro.imports import ImportBindings
from animacro.nodes import (
	Array,
	Assign,
	Binary,
	Block,
	Call,
	Expr,
	ExprStmt,
	Identifier,
	If,
	Literal,
	Member,
	Node,
	Pattern,
	Raw,
	Return,
	Subscript,
	Ternary,
	Unary,
)
from animacro.operators import NEGATION, lookup


def lower(node: Node, bindings: ImportBindings) -> Expr:
	"""Lower a return-free, linearized statement or expression to a call tree.

	Children are lowered before their parents, so every node handed to an
	engine call is already an expression.
	"""
	if isinstance(node, ExprStmt):
		# Statement position is the only place an assignment may appear
		if isinstance(node.expr, Assign):
			return _lower_assign(node.expr, bindings)
		return lower_expr(node.expr, bindings)

	if isinstance(node, Block):
		return Call(
			bindings.ref("block"),
			[Array([lower(stmt, bindings) for stmt in node.body])],
		)

	if isinstance(node, If):
		args = [lower_expr(node.test, bindings), lower(node.consequent, bindings)]
		if node.alternate is not None:
			args.append(lower(node.alternate, bindings))
		return Call(bindings.ref("cond"), args)

	if isinstance(node, Return):
		# Whatever encloses a return already denotes "the value of this"
		return lower_expr(node.value, bindings)

	if isinstance(node, Expr):
		return lower_expr(node, bindings)

	raise TypeError(f"Cannot lower {type(node).__name__}")


def lower_expr(node: Expr, bindings: ImportBindings) -> Expr:
	"""Lower an expression."""
	if isinstance(node, (Identifier, Literal, Raw)):
		return node

	if isinstance(node, Binary):
		name = lookup("binary", node.op)
		if name is None:
			raise UnsupportedOperatorError(node.op)
		return Call(
			bindings.ref(name),
			[lower_expr(node.left, bindings), lower_expr(node.right, bindings)],
		)

	if isinstance(node, Unary):
		if node.op == NEGATION:
			return Unary(NEGATION, lower_expr(node.operand, bindings))
		name = lookup("unary", node.op)
		if name is None:
			raise UnsupportedOperatorError(node.op)
		return Call(bindings.ref(name), [lower_expr(node.operand, bindings)])

	if isinstance(node, Ternary):
		return Call(
			bindings.ref("cond"),
			[
				lower_expr(node.test, bindings),
				lower_expr(node.then, bindings),
				lower_expr(node.else_, bindings),
			],
		)

	if isinstance(node, Call):
		return Call(
			lower_expr(node.callee, bindings),
			[lower_expr(a, bindings) for a in node.args],
		)

	if isinstance(node, Member):
		return Member(lower_expr(node.obj, bindings), node.prop)

	if isinstance(node, Subscript):
		return Subscript(lower_expr(node.obj, bindings), lower_expr(node.key, bindings))

	if isinstance(node, Array):
		return Array([lower_expr(e, bindings) for e in node.elements])

	if isinstance(node, Assign):
		raise MisplacedAssignmentError("Assignments must not be used as expressions.")

	if isinstance(node, Pattern):
		raise UnsupportedPatternError("Patterns not supported.")

	raise TypeError(f"Cannot lower {type(node).__name__}")


def _lower_assign(node: Assign, bindings: ImportBindings) -> Expr:
	if isinstance(node.target, Pattern):
		raise UnsupportedPatternError("Patterns not supported.")

	target = lower_expr(node.target, bindings)
	value = lower_expr(node.value, bindings)

	# x += y -> set(x, add(x, y))
	if node.op is not None:
		name = lookup("binary", node.op)
		if name is None:
			raise UnsupportedOperatorError(f"{node.op}=")
		value = Call(bindings.ref(name), [target, value])

	return Call(bindings.ref("set"), [target, value])
