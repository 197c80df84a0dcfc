from __future__ import annotations

import ast
from collections.abc import Iterable


class Scope:
	"""Identifiers taken in one file.

	fresh() hands out names that collide with nothing already bound or
	referenced in the file, nor with anything it handed out before:
	fresh("cond") -> "_cond", then "_cond2", "_cond3", ...
	"""

	names: set[str]

	def __init__(self, names: Iterable[str] = ()) -> None:
		self.names = set(names)

	@classmethod
	def from_tree(cls, tree: ast.AST) -> Scope:
		"""Seed a scope with every name bound or referenced in a tree."""
		return cls(_collect_names(tree))

	def __contains__(self, name: object) -> bool:
		return name in self.names

	def reserve(self, name: str) -> None:
		self.names.add(name)

	def fresh(self, basename: str) -> str:
		base = basename.strip("_") or "temp"
		name = f"_{base}"
		i = 1
		while name in self.names:
			i += 1
			name = f"_{base}{i}"
		self.names.add(name)
		return name


def _collect_names(tree: ast.AST) -> set[str]:
	names: set[str] = set()
	for node in ast.walk(tree):
		if isinstance(node, ast.Name):
			names.add(node.id)
		elif isinstance(node, ast.arg):
			names.add(node.arg)
		elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
			names.add(node.name)
		elif isinstance(node, ast.alias):
			names.add(node.asname or node.name.split(".")[0])
		elif isinstance(node, (ast.Global, ast.Nonlocal)):
			names.update(node.names)
		elif isinstance(node, (ast.ExceptHandler, ast.MatchAs, ast.MatchStar)):
			if node.name:
				names.add(node.name)
		elif isinstance(node, ast.MatchMapping) and node.rest:
			names.add(node.rest)
	return names
