"""Per-file import bindings for engine functions."""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable

from animacro.nodes import Identifier
from animacro.operators import EMITTED_NAMES
from animacro.scope import Scope

logger = logging.getLogger(__name__)


class ImportBindings:
	"""Maps each engine name to a scope-unique local identifier.

	Created once per file. Every name the lowering pass can emit is bound up
	front, so lowering never has to grow the import after the fact.

	Example:
		bindings = ImportBindings("reanimated", Scope())
		bindings["cond"]  # "_cond"
		ast.unparse(bindings.statement())
		# from reanimated import Value as _Value, cond as _cond, ...
	"""

	engine: str
	names: dict[str, str]
	injected: bool

	def __init__(
		self,
		engine: str,
		scope: Scope,
		names: Iterable[str] = EMITTED_NAMES,
	) -> None:
		self.engine = engine
		self.names = {name: scope.fresh(name) for name in names}
		self.injected = False

	def __getitem__(self, name: str) -> str:
		return self.names[name]

	def __contains__(self, name: object) -> bool:
		return name in self.names

	def ref(self, name: str) -> Identifier:
		"""Identifier node referring to the local binding of an engine name."""
		return Identifier(self.names[name])

	def statement(self) -> ast.ImportFrom:
		module = self.engine.lstrip(".")
		return ast.ImportFrom(
			module=module or None,
			names=[ast.alias(name=name, asname=local) for name, local in self.names.items()],
			level=len(self.engine) - len(module),
		)

	def inject(self, module: ast.Module) -> bool:
		"""Insert the import statement once, after the docstring and __future__ imports.

		Returns False when this file already received it.
		"""
		if self.injected:
			return False
		stmt = ast.fix_missing_locations(self.statement())
		module.body.insert(_import_position(module), stmt)
		self.injected = True
		logger.debug("Bound %d engine names from %s", len(self.names), self.engine)
		return True


def _import_position(module: ast.Module) -> int:
	"""Index of the first statement that is not a docstring or __future__ import."""
	index = 0
	body = module.body
	if (
		body
		and isinstance(body[0], ast.Expr)
		and isinstance(body[0].value, ast.Constant)
		and isinstance(body[0].value.value, str)
	):
		index = 1
	while (
		index < len(body)
		and isinstance(body[index], ast.ImportFrom)
		and body[index].module == "__future__"  # pyright: ignore[reportAttributeAccessIssue]
	):
		index += 1
	return index
