"""
Macro expansion for Python modules.

Finds `define` / `exec_` call sites imported from the macro module, compiles
each define() body into an engine call tree, and splices the result back in
place of the call. The engine import is injected once per file.

	from animacro.macro import define

	@define
	def offset():
		if x == 30:
			return 22
		return 88

becomes

	from reanimated import Value as _Value, cond as _cond, ...

	_earlyReturn = _Value()
	offset = _block([
		_block([
			_cond(_eq(x, 30), _block([_set(_earlyReturn, 22)])),
			_cond(_defined(_earlyReturn), _block([_earlyReturn]), _block([_set(_earlyReturn, 88)])),
		]),
		_earlyReturn,
	])
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, override

from animacro.env import MacroConfig
from animacro.errors import MacroUsageError, TransformError
from animacro.frontend import Verbatim, body_to_ir, expr_to_ir
from animacro.imports import ImportBindings
from animacro.nodes import Block, Expr, Identifier, Node, Return, emit
from animacro.passes import linearize_block, lower, lower_expr, normalize_returns
from animacro.scope import Scope

logger = logging.getLogger(__name__)

MacroKind = Literal["define", "exec"]

# Exported marker name -> macro kind
MACRO_EXPORTS: dict[str, MacroKind] = {
	"define": "define",
	"exec_": "exec",
}

Stage = tuple[str, Node]


@dataclass(slots=True)
class CallSiteTrace:
	"""IR snapshots of one define() body after each pass."""

	name: str
	lineno: int
	stages: list[Stage] = field(default_factory=list)


@dataclass(slots=True)
class ExpansionResult:
	tree: ast.Module
	references: int
	call_sites: int
	injected: bool
	traces: list[CallSiteTrace] = field(default_factory=list)

	@property
	def changed(self) -> bool:
		return self.references > 0


# =============================================================================
# Per call site pipeline
# =============================================================================


def compile_block(
	block: Block,
	sentinel: Identifier,
	bindings: ImportBindings,
	stages: list[Stage] | None = None,
) -> Expr:
	"""Normalize returns, linearize, then lower a block-bodied macro body.

	A final `return sentinel` makes the sentinel's value the value of the
	whole tree.
	"""
	if stages is not None:
		stages.append(("frontend", block))
	block, _ = normalize_returns(block, sentinel)
	if stages is not None:
		stages.append(("normalize", block))
	block, _ = linearize_block(block, sentinel, bindings)
	block = Block([*block.body, Return(sentinel)])
	if stages is not None:
		stages.append(("linearize", block))
	result = lower(block, bindings)
	if stages is not None:
		stages.append(("lower", result))
	return result


def compile_expression(
	expr: Expr,
	bindings: ImportBindings,
	stages: list[Stage] | None = None,
) -> Expr:
	"""Lower an expression-bodied macro body. No sentinel is needed."""
	if stages is not None:
		stages.append(("frontend", expr))
	result = lower_expr(expr, bindings)
	if stages is not None:
		stages.append(("lower", result))
	return result


def to_host(expr: Expr, location: ast.AST | None = None) -> ast.expr:
	"""Emit an IR expression and parse it back as a host AST expression.

	Every produced node takes the position of `location` when given, so
	tracebacks point at the call site.
	"""
	result = ast.parse(emit(expr), mode="eval").body
	if location is not None:
		for node in ast.walk(result):
			ast.copy_location(node, location)
	return result


# =============================================================================
# Module expansion
# =============================================================================


def expand_module(
	tree: ast.Module,
	config: MacroConfig | None = None,
	filename: str = "<string>",
	*,
	trace: bool = False,
) -> ExpansionResult:
	"""Expand every macro call site in a module tree, in place."""
	expander = MacroExpander(tree, config or MacroConfig(), filename, trace=trace)
	return expander.run()


def expand_source(
	source: str,
	filename: str = "<string>",
	config: MacroConfig | None = None,
) -> str:
	"""Expand a module's source. Source without macro references is returned as is."""
	tree = ast.parse(source, filename=filename)
	result = expand_module(tree, config, filename)
	if not result.changed:
		return source
	return ast.unparse(result.tree) + "\n"


class MacroExpander(ast.NodeTransformer):
	"""Rewrites the macro call sites of one module.

	Holds the per-file state: the scope used for fresh identifiers and the
	import bindings, created on the first define reference.
	"""

	tree: ast.Module
	config: MacroConfig
	filename: str
	scope: Scope
	bindings: ImportBindings | None
	call_sites: int
	traces: list[CallSiteTrace] | None
	_names: dict[str, MacroKind]
	_modules: set[str]
	_references: int
	_pending: list[ast.stmt]

	def __init__(
		self,
		tree: ast.Module,
		config: MacroConfig,
		filename: str = "<string>",
		*,
		trace: bool = False,
	) -> None:
		self.tree = tree
		self.config = config
		self.filename = filename
		self.scope = Scope.from_tree(tree)
		self.bindings = None
		self.call_sites = 0
		self.traces = [] if trace else None
		self._names = {}
		self._modules = set()
		self._references = 0
		self._pending = []
		self._collect_references()

	def run(self) -> ExpansionResult:
		injected = False
		if "define" in {*self._names.values(), *self._module_kinds()}:
			self.bindings = ImportBindings(self.config.engine, self.scope)
			injected = self.bindings.inject(self.tree)
			logger.info(
				"%s: injected engine import from %s", self.filename, self.config.engine
			)
		self.visit(self.tree)
		ast.fix_missing_locations(self.tree)
		logger.debug("%s: expanded %d call site(s)", self.filename, self.call_sites)
		return ExpansionResult(
			tree=self.tree,
			references=self._references,
			call_sites=self.call_sites,
			injected=injected,
			traces=self.traces or [],
		)

	# --- Macro references ---------------------------------------------------

	def _collect_references(self) -> None:
		macro_module = self.config.macro_module
		for node in ast.walk(self.tree):
			if isinstance(node, ast.ImportFrom) and self._is_macro_import_from(node):
				for alias in node.names:
					if alias.name == "*":
						raise MacroUsageError(
							f"Star imports from {macro_module} not supported"
						).at(node, self.filename)
					kind = MACRO_EXPORTS.get(alias.name)
					if kind is None:
						raise MacroUsageError(
							f"{macro_module} has no macro named {alias.name}"
						).at(node, self.filename)
					self._names[alias.asname or alias.name] = kind
					self._references += 1
			elif isinstance(node, ast.Import):
				for alias in node.names:
					if alias.name == macro_module:
						self._modules.add(alias.asname or alias.name)
						self._references += 1

	def _is_macro_import_from(self, node: ast.ImportFrom) -> bool:
		return node.level == 0 and node.module == self.config.macro_module

	def _module_kinds(self) -> set[MacroKind]:
		# A module import can reach every macro
		return set(MACRO_EXPORTS.values()) if self._modules else set()

	def macro_kind(self, node: ast.expr) -> MacroKind | None:
		"""Which macro, if any, an expression refers to."""
		if isinstance(node, ast.Name):
			return self._names.get(node.id)
		if isinstance(node, ast.Attribute) and _dotted(node.value) in self._modules:
			return MACRO_EXPORTS.get(node.attr)
		return None

	# --- Traversal -----------------------------------------------------------

	@override
	def generic_visit(self, node: ast.AST) -> ast.AST:
		for name, old_value in ast.iter_fields(node):
			if isinstance(old_value, list):
				if old_value and isinstance(old_value[0], ast.stmt):
					setattr(node, name, self._visit_body(old_value))  # pyright: ignore[reportUnknownArgumentType]
					continue
				new_values: list[Any] = []
				for value in old_value:  # pyright: ignore[reportUnknownVariableType]
					if isinstance(value, ast.AST):
						value = self.visit(value)
						if value is None:
							continue
						if not isinstance(value, ast.AST):
							new_values.extend(value)
							continue
					new_values.append(value)
				old_value[:] = new_values
			elif isinstance(old_value, ast.AST):
				new_node = self.visit(old_value)
				if new_node is None:
					delattr(node, name)
				else:
					setattr(node, name, new_node)
		return node

	def _visit_body(self, stmts: Sequence[ast.stmt]) -> list[ast.stmt]:
		"""Visit a statement list, placing sentinel declarations before their statement."""
		out: list[ast.stmt] = []
		for stmt in stmts:
			saved, self._pending = self._pending, []
			result = self.visit(stmt)
			out.extend(self._pending)
			self._pending = saved
			if result is None:
				continue
			if isinstance(result, ast.AST):
				out.append(result)  # pyright: ignore[reportArgumentType]
			else:
				out.extend(result)
		# Removing a macro import can empty a suite
		return out or [ast.Pass()]

	def visit_ImportFrom(self, node: ast.ImportFrom) -> ast.ImportFrom | None:
		if self._is_macro_import_from(node):
			return None
		return node

	def visit_Import(self, node: ast.Import) -> ast.Import | None:
		names = [a for a in node.names if a.name != self.config.macro_module]
		if not names:
			return None
		node.names = names
		return node

	def visit_Call(self, node: ast.Call) -> ast.AST:
		kind = self.macro_kind(node.func)
		if kind is None:
			return self.generic_visit(node)
		if kind == "exec":
			# Escape hatch: the argument is kept as written
			if len(node.args) != 1 or node.keywords:
				raise MacroUsageError("exec_() takes exactly one argument").at(
					node, self.filename
				)
			return self.visit(node.args[0])
		return self._expand_lambda(node)

	def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST | list[ast.stmt]:
		if any(self.macro_kind(d) == "define" for d in node.decorator_list):
			return self._expand_decorated(node)
		return self.generic_visit(node)

	def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.AST:
		if any(self.macro_kind(d) is not None for d in node.decorator_list):
			raise MacroUsageError("define cannot decorate an async function").at(
				node, self.filename
			)
		return self.generic_visit(node)

	def visit_Name(self, node: ast.Name) -> ast.Name:
		if node.id in self._names:
			raise MacroUsageError(
				f"{node.id} must be called or used as a decorator"
			).at(node, self.filename)
		return node

	def visit_Attribute(self, node: ast.Attribute) -> ast.AST:
		if self.macro_kind(node) is not None:
			raise MacroUsageError(
				f"{_dotted(node)} must be called or used as a decorator"
			).at(node, self.filename)
		return self.generic_visit(node)

	# --- Call site expansion ------------------------------------------------

	def _expand_lambda(self, node: ast.Call) -> ast.expr:
		if len(node.args) != 1 or node.keywords:
			raise MacroUsageError("define() takes exactly one argument").at(
				node, self.filename
			)
		fn = node.args[0]
		if not isinstance(fn, ast.Lambda):
			raise MacroUsageError(
				"define() expects a lambda; use @define on a def for statement bodies"
			).at(node, self.filename)
		if has_params(fn.args):
			raise MacroUsageError("define() expects a zero-parameter lambda").at(
				fn, self.filename
			)
		bindings = self._require_bindings()
		stages = self._start_trace("<lambda>", node)
		body = _MacroBodyRewriter(self.macro_kind, self.filename).visit(fn.body)
		try:
			expr = compile_expression(expr_to_ir(body), bindings, stages)
		except TransformError as exc:
			raise exc.at(node, self.filename)
		self.call_sites += 1
		logger.debug("%s:%d: expanded define(lambda)", self.filename, node.lineno)
		return to_host(expr, node)

	def _expand_decorated(self, node: ast.FunctionDef) -> list[ast.stmt]:
		if len(node.decorator_list) != 1:
			raise MacroUsageError(
				"@define cannot be combined with other decorators"
			).at(node, self.filename)
		if has_params(node.args):
			raise MacroUsageError(
				f"@define function {node.name}() must take no parameters"
			).at(node, self.filename)
		bindings = self._require_bindings()
		stages = self._start_trace(node.name, node)
		rewriter = _MacroBodyRewriter(self.macro_kind, self.filename)
		body = [rewriter.visit(s) for s in node.body]
		sentinel = Identifier(self.scope.fresh(self.config.sentinel))
		try:
			expr = compile_block(body_to_ir(body), sentinel, bindings, stages)
		except TransformError as exc:
			raise exc.at(node, self.filename)

		# Nearest enclosing statement list gets the sentinel cell
		decl = ast.Assign(
			targets=[ast.Name(sentinel.name, ast.Store())],
			value=ast.Call(ast.Name(bindings["Value"], ast.Load()), [], []),
		)
		self._pending.append(ast.copy_location(decl, node))
		self.call_sites += 1
		logger.debug(
			"%s:%d: expanded @define %s() with sentinel %s",
			self.filename,
			node.lineno,
			node.name,
			sentinel.name,
		)
		assign = ast.Assign(
			targets=[ast.Name(node.name, ast.Store())],
			value=to_host(expr, node),
		)
		return [ast.copy_location(assign, node)]

	def _require_bindings(self) -> ImportBindings:
		if self.bindings is None:
			raise TransformError("define used without a define import")
		return self.bindings

	def _start_trace(self, name: str, node: ast.stmt | ast.expr) -> list[Stage] | None:
		if self.traces is None:
			return None
		trace = CallSiteTrace(name, node.lineno)
		self.traces.append(trace)
		return trace.stages


class _MacroBodyRewriter(ast.NodeTransformer):
	"""Marks exec_() arguments inside a define body and rejects nested defines."""

	macro_kind: Callable[[ast.expr], MacroKind | None]
	filename: str
	verbatim: bool

	def __init__(
		self, macro_kind: Callable[[ast.expr], MacroKind | None], filename: str
	) -> None:
		self.macro_kind = macro_kind
		self.filename = filename
		self.verbatim = False

	def visit_Call(self, node: ast.Call) -> ast.AST:
		kind = self.macro_kind(node.func)
		if kind == "define":
			raise MacroUsageError("define() cannot be nested").at(node, self.filename)
		if kind == "exec":
			if len(node.args) != 1 or node.keywords:
				raise MacroUsageError("exec_() takes exactly one argument").at(
					node, self.filename
				)
			if self.verbatim:
				return self.visit(node.args[0])
			self.verbatim = True
			try:
				value = self.visit(node.args[0])
			finally:
				self.verbatim = False
			return ast.copy_location(Verbatim(value=value), node)
		return self.generic_visit(node)


def has_params(args: ast.arguments) -> bool:
	return bool(
		args.posonlyargs or args.args or args.kwonlyargs or args.vararg or args.kwarg
	)


def _dotted(node: ast.expr) -> str | None:
	"""`a.b.c` -> "a.b.c"; None for anything that is not a plain dotted name."""
	if isinstance(node, ast.Name):
		return node.id
	if isinstance(node, ast.Attribute):
		base = _dotted(node.value)
		return f"{base}.{node.attr}" if base else None
	return None
