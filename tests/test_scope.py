import ast

from animacro.scope import Scope


class TestFresh:
	def test_underscore_prefix(self):
		assert Scope().fresh("cond") == "_cond"

	def test_numbered_on_collision(self):
		scope = Scope({"_cond"})
		assert scope.fresh("cond") == "_cond2"
		assert scope.fresh("cond") == "_cond3"

	def test_strips_underscores(self):
		scope = Scope()
		assert scope.fresh("not_") == "_not"
		assert scope.fresh("and_") == "_and"
		assert scope.fresh("__x__") == "_x"

	def test_empty_base(self):
		assert Scope().fresh("_") == "_temp"

	def test_records_names(self):
		scope = Scope()
		name = scope.fresh("earlyReturn")
		assert name in scope
		assert scope.fresh("earlyReturn") == "_earlyReturn2"

	def test_reserve(self):
		scope = Scope()
		scope.reserve("_block")
		assert scope.fresh("block") == "_block2"


class TestFromTree:
	def test_collects_bound_and_referenced_names(self):
		tree = ast.parse(
			"import os.path\n"
			"from m import a as _cond\n"
			"def f(p, *args, **kw):\n"
			"    global g\n"
			"    return q\n"
			"class C: pass\n"
			"try:\n"
			"    pass\n"
			"except E as err:\n"
			"    pass\n"
		)
		scope = Scope.from_tree(tree)
		for name in ("os", "_cond", "f", "p", "args", "kw", "g", "q", "C", "E", "err"):
			assert name in scope
		assert "a" not in scope

	def test_match_captures(self):
		tree = ast.parse(
			"match v:\n"
			"    case [x, *rest]:\n"
			"        pass\n"
			"    case {'k': 1, **others}:\n"
			"        pass\n"
		)
		scope = Scope.from_tree(tree)
		for name in ("v", "x", "rest", "others"):
			assert name in scope

	def test_fresh_avoids_existing(self):
		scope = Scope.from_tree(ast.parse("_earlyReturn = 1"))
		assert scope.fresh("earlyReturn") == "_earlyReturn2"
