"""
Tests for module expansion: call sites, import injection, sentinels and
error locations.
"""

import ast
import textwrap

import pytest
from animacro.env import MacroConfig, env
from animacro.errors import (
	MacroUsageError,
	TransformError,
	UnsupportedOperatorError,
	UnsupportedSyntaxError,
)
from animacro.expander import expand_module, expand_source
from animacro.operators import EMITTED_NAMES

IMPORT = "from reanimated import " + ", ".join(
	f"{name} as _{name.strip('_')}" for name in EMITTED_NAMES
)


def expand(src: str, **config: str) -> str:
	return expand_source(textwrap.dedent(src), "mod.py", MacroConfig(**config))


# =============================================================================
# Call forms
# =============================================================================


class TestLambdaForm:
	def test_expression_body(self):
		out = expand(
			"""
			from animacro.macro import define

			width = define(lambda: a + 1 if open else b)
			"""
		)
		assert out == f"{IMPORT}\nwidth = _cond(open, _add(a, 1), b)\n"

	def test_spliced_in_place(self):
		out = expand(
			"""
			from animacro.macro import define

			style = {"opacity": define(lambda: not hidden)}
			"""
		)
		assert out.endswith("style = {'opacity': _not(hidden)}\n")

	def test_overflowing_float_literal(self):
		out = expand(
			"""
			from animacro.macro import define

			v = define(lambda: a * 1e999)
			"""
		)
		assert out.endswith("v = _multiply(a, float('inf'))\n")

	def test_int_literal_receiver(self):
		out = expand(
			"""
			from animacro.macro import define

			v = define(lambda: (5).real + a)
			"""
		)
		assert out.endswith("v = _add((5).real, a)\n")

	def test_no_sentinel_for_expression_body(self):
		out = expand(
			"""
			from animacro.macro import define

			v = define(lambda: a * 2)
			"""
		)
		assert "_Value()" not in out

	def test_aliased_import(self):
		out = expand(
			"""
			from animacro.macro import define as macro

			v = macro(lambda: a == b)
			"""
		)
		assert out.endswith("v = _eq(a, b)\n")

	def test_module_import(self):
		out = expand(
			"""
			import animacro.macro as m

			v = m.define(lambda: a - m.exec_(b - c))
			"""
		)
		assert out == f"{IMPORT}\nv = _sub(a, b - c)\n"


class TestBlockForm:
	def test_else_if_scenario(self):
		out = expand(
			"""
			from animacro.macro import define

			@define
			def offset():
				if x == 30:
					return 22
				elif y == 90:
					y = 55
				return 88
			"""
		)
		assert out == (
			f"{IMPORT}\n"
			"_earlyReturn = _Value()\n"
			"offset = _block([_block([_cond(_eq(x, 30), _block([_set(_earlyReturn, 22)]), "
			"_cond(_eq(y, 90), _block([_set(y, 55)]))), "
			"_cond(_defined(_earlyReturn), _block([_earlyReturn]), "
			"_block([_set(_earlyReturn, 88)]))]), _earlyReturn])\n"
		)

	def test_straight_line_body(self):
		out = expand(
			"""
			from animacro.macro import define

			@define
			def total():
				\"\"\"Sum with a bonus.\"\"\"
				acc += bonus
				return acc
			"""
		)
		assert out.endswith(
			"total = _block([_set(acc, _add(acc, bonus)), _set(_earlyReturn, acc), _earlyReturn])\n"
		)

	def test_sentinel_declared_in_nearest_statement_list(self):
		out = expand(
			"""
			from animacro.macro import define

			def build():
				x = 1

				@define
				def node():
					return x

				return node
			"""
		)
		assert "def build():\n    x = 1\n    _earlyReturn = _Value()\n    node = _block(" in out

	def test_two_call_sites_share_one_import(self):
		out = expand(
			"""
			from animacro.macro import define

			@define
			def a():
				return 1

			@define
			def b():
				return 2

			c = define(lambda: a + b)
			"""
		)
		assert out.count("from reanimated import") == 1
		assert "_earlyReturn = _Value()" in out
		assert "_earlyReturn2 = _Value()" in out
		assert out.endswith("c = _add(a, b)\n")

	def test_fresh_names_avoid_user_names(self):
		out = expand(
			"""
			from animacro.macro import define

			_cond = 1
			_earlyReturn = 2

			@define
			def v():
				return a if b else c
			"""
		)
		assert "cond as _cond2" in out
		assert "_earlyReturn2 = _Value()" in out
		assert "_set(_earlyReturn2, _cond2(b, a, c))" in out


class TestExec:
	def test_exec_outside_define(self):
		out = expand(
			"""
			from animacro.macro import exec_

			v = exec_(a + b)
			"""
		)
		# No define reference, no engine import
		assert out == "v = a + b\n"

	def test_exec_inside_define_kept_as_written(self):
		out = expand(
			"""
			from animacro.macro import define, exec_

			v = define(lambda: exec_(a + 1) * 2)
			"""
		)
		assert out.endswith("v = _multiply(a + 1, 2)\n")

	def test_exec_statement_in_block(self):
		out = expand(
			"""
			from animacro.macro import define, exec_

			@define
			def v():
				exec_(log(a == b))
				return a == b
			"""
		)
		assert "_block([log(a == b), _set(_earlyReturn, _eq(a, b)), _earlyReturn])" in out


# =============================================================================
# Imports
# =============================================================================


class TestImports:
	def test_injected_after_docstring_and_future(self):
		out = expand(
			'''
			"""Module doc."""
			from __future__ import annotations
			from animacro.macro import define
			import os

			v = define(lambda: a)
			'''
		)
		lines = out.splitlines()
		assert lines[0] == '"""Module doc."""'
		assert lines[1] == "from __future__ import annotations"
		assert lines[2] == IMPORT
		assert lines[3] == "import os"

	def test_macro_import_removed(self):
		out = expand(
			"""
			from animacro.macro import define

			v = define(lambda: a)
			"""
		)
		assert "animacro" not in out

	def test_configured_engine(self):
		out = expand(
			"""
			from animacro.macro import define

			v = define(lambda: a)
			""",
			engine="mock_engine",
		)
		assert out.startswith("from mock_engine import Value as _Value,")

	def test_engine_from_environment(self):
		env.engine = "custom.engine"
		out = expand(
			"""
			from animacro.macro import define

			v = define(lambda: a)
			"""
		)
		assert out.startswith("from custom.engine import")

	def test_source_without_macros_untouched(self):
		src = "# comment\nx = 1\n"
		assert expand_source(src) == src

	def test_removed_import_leaves_valid_suite(self):
		out = expand(
			"""
			from typing import TYPE_CHECKING
			if TYPE_CHECKING:
				from animacro.macro import exec_
			v = exec_(1)
			"""
		)
		ast.parse(out)
		assert "if TYPE_CHECKING:\n    pass" in out


class TestResult:
	def test_counts(self):
		tree = ast.parse(
			textwrap.dedent(
				"""
				from animacro.macro import define

				a = define(lambda: x)
				b = define(lambda: y)
				"""
			)
		)
		result = expand_module(tree)
		assert result.call_sites == 2
		assert result.injected is True
		assert result.changed is True

	def test_exec_only_injects_nothing(self):
		tree = ast.parse("from animacro.macro import exec_\nv = exec_(1)\n")
		result = expand_module(tree)
		assert result.injected is False
		assert result.call_sites == 0

	def test_trace_records_every_pass(self):
		tree = ast.parse(
			"from animacro.macro import define\n"
			"@define\n"
			"def v():\n"
			"    if a:\n"
			"        return 1\n"
			"    return 2\n"
		)
		result = expand_module(tree, trace=True)
		[trace] = result.traces
		assert trace.name == "v"
		assert trace.lineno == 3
		assert [name for name, _ in trace.stages] == [
			"frontend",
			"normalize",
			"linearize",
			"lower",
		]

	def test_output_compiles(self):
		tree = ast.parse(
			"from animacro.macro import define\n"
			"@define\n"
			"def v():\n"
			"    if a:\n"
			"        return 1\n"
			"    return 2\n"
		)
		result = expand_module(tree)
		compile(result.tree, "<test>", "exec")


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
	def test_location_attached(self):
		with pytest.raises(UnsupportedOperatorError) as info:
			expand(
				"""
				from animacro.macro import define

				v = define(lambda: a // b)
				"""
			)
		err = info.value
		assert err.filename == "mod.py"
		assert err.lineno == 4
		assert str(err) == "mod.py:4:5: operator // not supported."

	def test_location_of_inner_statement(self):
		with pytest.raises(UnsupportedSyntaxError) as info:
			expand(
				"""
				from animacro.macro import define

				@define
				def v():
					x = 1
					for i in items:
						x += i
					return x
				"""
			)
		assert info.value.lineno == 7
		assert info.value.filename == "mod.py"

	@pytest.mark.parametrize(
		"body,message",
		[
			("v = define(lambda x: x)", "zero-parameter"),
			("v = define(f)", "expects a lambda"),
			("v = define(lambda: a, 1)", "exactly one argument"),
			("v = define(lambda: define(lambda: 1))", "cannot be nested"),
			("v = exec_(1, 2)", "exactly one argument"),
			("v = define", "must be called"),
			("@define\ndef f(x):\n    return x", "no parameters"),
			("@define\n@cache\ndef f():\n    return 1", "other decorators"),
			("@define\nasync def f():\n    return 1", "async"),
		],
	)
	def test_usage_errors(self, body: str, message: str):
		src = "from animacro.macro import define, exec_\n" + body + "\n"
		with pytest.raises(MacroUsageError, match=message):
			expand_source(src)

	def test_unknown_macro_name(self):
		with pytest.raises(MacroUsageError, match="no macro named"):
			expand_source("from animacro.macro import other\n")

	def test_errors_are_transform_errors(self):
		with pytest.raises(TransformError):
			expand_source("from animacro.macro import define\nv = define(lambda: [x for x in y])\n")
