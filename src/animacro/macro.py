"""
Markers for the macro expander.

	from animacro.macro import define, exec_

	size = define(lambda: cond(open, 200, 100))

	@define
	def offset():
		if x == 30:
			return exec_(start)
		return 88

Both names are replaced at expansion time. Running a module that still
calls define() means the expander never saw it.
"""

from __future__ import annotations

from typing import Any, NoReturn, TypeVar

from animacro.errors import MacroNotExpandedError

T = TypeVar("T")


def define(fn: Any) -> NoReturn:
	raise MacroNotExpandedError(
		"define() was called at runtime. Run `animacro expand` on this module first."
	)


def exec_(value: T) -> T:
	"""Keep `value` as written inside a define() body."""
	return value


__all__ = ["define", "exec_"]
