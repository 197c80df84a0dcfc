# pyright: reportUndefinedVariable=false

import pytest
from animacro.env import MacroConfig
from animacro.errors import MacroUsageError, UnsupportedOperatorError
from animacro.function import compile_function
from animacro.nodes import Call, emit


def offset():
	if x == 30:
		return 22
	return 88


size = lambda: a + 1 if a else 0  # noqa: E731


def with_params(p):
	return p


def floor_div():
	return a // b


def uses_cond_name():
	_cond = 1
	return _cond if a else 0


class TestCompileFunction:
	def test_block_body(self):
		assert emit(compile_function(offset)) == (
			"_block([_block([_cond(_eq(x, 30), _block([_set(_earlyReturn, 22)])), "
			"_cond(_defined(_earlyReturn), _block([_earlyReturn]), "
			"_block([_set(_earlyReturn, 88)]))]), _earlyReturn])"
		)

	def test_lambda(self):
		assert emit(compile_function(size)) == "_cond(a, _add(a, 1), 0)"

	def test_nested_function(self):
		def inner():
			y = 2
			return y

		result = compile_function(inner)
		assert isinstance(result, Call)
		assert emit(result) == "_block([_set(y, 2), _set(_earlyReturn, y), _earlyReturn])"

	def test_config_sentinel(self):
		result = compile_function(offset, MacroConfig(sentinel="done"))
		assert "_set(_done, 22)" in emit(result)

	def test_fresh_names_avoid_code_names(self):
		assert emit(compile_function(uses_cond_name)) == (
			"_block([_set(_cond, 1), _set(_earlyReturn, _cond2(a, _cond, 0)), _earlyReturn])"
		)

	def test_parameters_rejected(self):
		with pytest.raises(MacroUsageError, match="no parameters"):
			compile_function(with_params)

	def test_non_function_rejected(self):
		with pytest.raises(MacroUsageError):
			compile_function(len)  # pyright: ignore[reportArgumentType]

	def test_error_location(self):
		with pytest.raises(UnsupportedOperatorError) as info:
			compile_function(floor_div)
		assert info.value.filename == __file__
		assert info.value.lineno == floor_div.__code__.co_firstlineno
