"""Compile live function objects without expanding a whole module.

	def offset():
		if x == 30:
			return 22
		return 88

	compile_function(offset)  # Call(_block, [...])
"""

from __future__ import annotations

import ast
import inspect
import textwrap
import types as pytypes
from collections.abc import Callable
from typing import Any

from animacro.env import MacroConfig
from animacro.errors import MacroUsageError, TransformError
from animacro.expander import compile_block, compile_expression, has_params
from animacro.frontend import body_to_ir, expr_to_ir
from animacro.imports import ImportBindings
from animacro.nodes import Expr, Identifier
from animacro.scope import Scope


def compile_function(
	fn: Callable[[], Any], config: MacroConfig | None = None
) -> Expr:
	"""Compile a zero-parameter function or lambda into an engine call tree.

	Engine names and the sentinel are bound to identifiers that collide with
	nothing in the function's globals or code.
	"""
	config = config or MacroConfig()
	if not isinstance(fn, pytypes.FunctionType):
		raise MacroUsageError(f"Expected a function, got {type(fn).__name__}")

	try:
		src = inspect.getsource(fn)
	except OSError as exc:
		raise MacroUsageError(f"Source of {fn.__qualname__} is not available") from exc
	src = textwrap.dedent(src)
	filename = fn.__code__.co_filename
	lineno = fn.__code__.co_firstlineno
	try:
		module = ast.parse(src)
	except SyntaxError as exc:
		raise MacroUsageError(
			f"Cannot parse the source of {fn.__qualname__}",
			filename=filename,
			lineno=lineno,
		) from exc

	node = _find_definition(module, fn)
	ast.increment_lineno(node, lineno - 1)
	if has_params(node.args):
		raise MacroUsageError(f"{fn.__qualname__}() must take no parameters").at(
			node, filename
		)

	scope = Scope.from_tree(module)
	for name in (*fn.__globals__, *fn.__code__.co_names, *fn.__code__.co_varnames):
		scope.reserve(name)
	bindings = ImportBindings(config.engine, scope)

	try:
		if isinstance(node, ast.Lambda):
			return compile_expression(expr_to_ir(node.body), bindings)
		sentinel = Identifier(scope.fresh(config.sentinel))
		return compile_block(body_to_ir(node.body), sentinel, bindings)
	except TransformError as exc:
		raise exc.at(node, filename)


def _find_definition(
	module: ast.Module, fn: pytypes.FunctionType
) -> ast.FunctionDef | ast.Lambda:
	if fn.__name__ == "<lambda>":
		# getsource() returns the whole line(s) around a lambda
		lambdas = [n for n in ast.walk(module) if isinstance(n, ast.Lambda)]
		if len(lambdas) != 1:
			raise MacroUsageError(
				f"Cannot locate the lambda among {len(lambdas)} on its source line"
			)
		return lambdas[0]

	for node in module.body:
		if isinstance(node, ast.AsyncFunctionDef):
			raise MacroUsageError(f"{fn.__qualname__} must not be async")
		if isinstance(node, ast.FunctionDef):
			return node
	raise MacroUsageError("No function definition found in source")

