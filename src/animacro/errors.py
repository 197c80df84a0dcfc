from __future__ import annotations

import ast
from typing import override


class TransformError(Exception):
	"""Error while expanding a macro call site.

	Location fields are filled in by the expander when the error escapes a
	call site, so passes can raise without knowing where they run.
	"""

	message: str
	filename: str | None
	lineno: int | None
	col_offset: int | None

	def __init__(
		self,
		message: str,
		*,
		filename: str | None = None,
		lineno: int | None = None,
		col_offset: int | None = None,
	) -> None:
		super().__init__(message)
		self.message = message
		self.filename = filename
		self.lineno = lineno
		self.col_offset = col_offset

	def at(self, node: ast.AST, filename: str | None = None) -> TransformError:
		"""Attach a source location, keeping any location already set."""
		if self.lineno is None:
			self.lineno = getattr(node, "lineno", None)
			self.col_offset = getattr(node, "col_offset", None)
		if self.filename is None:
			self.filename = filename
		return self

	@override
	def __str__(self) -> str:
		if self.lineno is None:
			return self.message
		where = f"{self.filename or '<unknown>'}:{self.lineno}"
		if self.col_offset is not None:
			where += f":{self.col_offset + 1}"
		return f"{where}: {self.message}"


class UnsupportedPatternError(TransformError):
	pass


class MisplacedAssignmentError(TransformError):
	pass


class UnsupportedOperatorError(TransformError):
	token: str

	def __init__(
		self,
		token: str,
		*,
		filename: str | None = None,
		lineno: int | None = None,
		col_offset: int | None = None,
	) -> None:
		super().__init__(
			f"operator {token} not supported.",
			filename=filename,
			lineno=lineno,
			col_offset=col_offset,
		)
		self.token = token


class UnsupportedSyntaxError(TransformError):
	pass


class MacroUsageError(TransformError):
	pass


class MacroNotExpandedError(RuntimeError):
	"""A macro marker was executed without running the expander first."""


__all__ = [
	"MacroNotExpandedError",
	"MacroUsageError",
	"MisplacedAssignmentError",
	"TransformError",
	"UnsupportedOperatorError",
	"UnsupportedPatternError",
	"UnsupportedSyntaxError",
]
