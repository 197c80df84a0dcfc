"""
Python AST -> IR conversion for macro bodies.

Accepts the restricted statement subset a define() body may contain:
if/elif/else, plain and augmented assignment, return, and expressions built
from names, constants, attribute/subscript access, calls and operators.
Operators are recorded by source token; whether the engine supports them is
decided later by lowering, so every parseable operator converts here.
"""

from __future__ import annotations

import ast

from animacro.errors import UnsupportedPatternError, UnsupportedSyntaxError
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
	Pattern,
	Raw,
	Return,
	Stmt,
	Subscript,
	Ternary,
	Unary,
)
from animacro.operators import (
	BINOP_TOKENS,
	BOOLOP_TOKENS,
	CMPOP_TOKENS,
	UNARYOP_TOKENS,
)


class Verbatim(ast.expr):
	"""Marks a host expression to keep as written. Produced for exec_() arguments."""

	_fields = ("value",)
	value: ast.expr


# Statements with no runtime effect on the emitted tree
_SKIPPED_STMTS = (ast.Pass, ast.Global, ast.Nonlocal)


def body_to_ir(body: list[ast.stmt]) -> Block:
	"""Convert a function body, skipping a leading docstring."""
	if (
		body
		and isinstance(body[0], ast.Expr)
		and isinstance(body[0].value, ast.Constant)
		and isinstance(body[0].value.value, str)
	):
		body = body[1:]
	return _block(body)


def _block(body: list[ast.stmt]) -> Block:
	stmts: list[Stmt] = []
	for s in body:
		stmt = stmt_to_ir(s)
		if stmt is not None:
			stmts.append(stmt)
	return Block(stmts)


def stmt_to_ir(node: ast.stmt) -> Stmt | None:
	"""Convert a statement. Returns None for statements that emit nothing."""
	if isinstance(node, _SKIPPED_STMTS):
		return None

	if isinstance(node, ast.Return):
		value = expr_to_ir(node.value) if node.value else Literal(None)
		return Return(value)

	if isinstance(node, ast.Expr):
		return ExprStmt(expr_to_ir(node.value))

	if isinstance(node, ast.Assign):
		if len(node.targets) != 1:
			raise UnsupportedPatternError(
				"Multiple assignment targets not supported"
			).at(node)
		target = target_to_ir(node.targets[0])
		return ExprStmt(Assign(target, expr_to_ir(node.value)))

	if isinstance(node, ast.AugAssign):
		target = target_to_ir(node.target)
		token = BINOP_TOKENS[type(node.op)]
		return ExprStmt(Assign(target, expr_to_ir(node.value), op=token))

	if isinstance(node, ast.AnnAssign):
		# Bare annotations declare nothing at run time
		if node.value is None:
			return None
		target = target_to_ir(node.target)
		return ExprStmt(Assign(target, expr_to_ir(node.value)))

	if isinstance(node, ast.If):
		return _if(node)

	raise UnsupportedSyntaxError(
		f"Unsupported statement: {type(node).__name__}"
	).at(node)


def _if(node: ast.If) -> If:
	test = expr_to_ir(node.test)
	consequent = _block(node.body)
	alternate: Block | If | None = None
	if len(node.orelse) == 1 and isinstance(node.orelse[0], ast.If):
		# elif, or an else holding a single if
		alternate = _if(node.orelse[0])
	elif node.orelse:
		alternate = _block(node.orelse)
	return If(test, consequent, alternate)


def target_to_ir(node: ast.expr) -> Expr:
	"""Convert an assignment target. Tuple/list targets become Patterns."""
	if isinstance(node, ast.Name):
		return Identifier(node.id)
	if isinstance(node, (ast.Tuple, ast.List)):
		return Pattern([target_to_ir(e) for e in node.elts])
	if isinstance(node, ast.Starred):
		return Unary("*", target_to_ir(node.value))
	if isinstance(node, (ast.Attribute, ast.Subscript)):
		return expr_to_ir(node)
	raise UnsupportedSyntaxError(
		f"Unsupported assignment target: {type(node).__name__}"
	).at(node)


def expr_to_ir(node: ast.expr) -> Expr:
	"""Convert an expression."""
	if isinstance(node, Verbatim):
		return Raw(node.value)

	if isinstance(node, ast.Constant):
		return _constant(node)

	if isinstance(node, ast.Name):
		return Identifier(node.id)

	if isinstance(node, ast.Attribute):
		return Member(expr_to_ir(node.value), node.attr)

	if isinstance(node, ast.Subscript):
		if isinstance(node.slice, ast.Slice):
			raise UnsupportedSyntaxError("Slices not supported").at(node)
		return Subscript(expr_to_ir(node.value), expr_to_ir(node.slice))

	if isinstance(node, ast.Call):
		return _call(node)

	if isinstance(node, (ast.List, ast.Tuple)):
		return Array([expr_to_ir(e) for e in node.elts])

	if isinstance(node, ast.BinOp):
		return Binary(
			expr_to_ir(node.left),
			BINOP_TOKENS[type(node.op)],
			expr_to_ir(node.right),
		)

	if isinstance(node, ast.BoolOp):
		# a and b and c -> Binary(Binary(a, and, b), and, c)
		op = BOOLOP_TOKENS[type(node.op)]
		values = [expr_to_ir(v) for v in node.values]
		result = values[0]
		for v in values[1:]:
			result = Binary(result, op, v)
		return result

	if isinstance(node, ast.Compare):
		return _compare(node)

	if isinstance(node, ast.UnaryOp):
		return Unary(UNARYOP_TOKENS[type(node.op)], expr_to_ir(node.operand))

	if isinstance(node, ast.IfExp):
		return Ternary(
			expr_to_ir(node.test),
			expr_to_ir(node.body),
			expr_to_ir(node.orelse),
		)

	if isinstance(node, ast.NamedExpr):
		return Assign(Identifier(node.target.id), expr_to_ir(node.value))

	raise UnsupportedSyntaxError(
		f"Unsupported expression: {type(node).__name__}"
	).at(node)


def _constant(node: ast.Constant) -> Literal:
	v = node.value
	if v is None or isinstance(v, (bool, int, float, str)):
		return Literal(v)
	raise UnsupportedSyntaxError(
		f"Unsupported constant type: {type(v).__name__}"
	).at(node)


def _call(node: ast.Call) -> Call:
	if node.keywords:
		raise UnsupportedSyntaxError("Keyword arguments not supported").at(node)
	if any(isinstance(a, ast.Starred) for a in node.args):
		raise UnsupportedSyntaxError("Star arguments not supported").at(node)
	return Call(expr_to_ir(node.func), [expr_to_ir(a) for a in node.args])


def _compare(node: ast.Compare) -> Expr:
	"""a < b < c -> (a < b) and (b < c); operands are pure, so repeating b is safe."""
	operands = [expr_to_ir(e) for e in [node.left, *node.comparators]]
	parts: list[Expr] = [
		Binary(operands[i], CMPOP_TOKENS[type(op)], operands[i + 1])
		for i, op in enumerate(node.ops)
	]
	result = parts[0]
	for part in parts[1:]:
		result = Binary(result, "and", part)
	return result
