"""Return normalization: early returns become sentinel assignments."""

from __future__ import annotations

from collections.abc import Sequence

from animacro.nodes import Assign, Block, ExprStmt, Identifier, Return, Stmt


def normalize_returns(block: Block, sentinel: Identifier) -> tuple[Block, bool]:
	"""Rewrite each `return x` in a scope into `sentinel = x`.

	Statements after a return in the same statement list are unreachable and
	dropped. Nested if statements are left alone; the linearizer normalizes
	each branch when it reaches it.

	Returns the new block and whether any return was found.
	"""
	body, found = _normalize(block.body, sentinel)
	if not found:
		return block, False
	return Block(body), True


def _normalize(stmts: Sequence[Stmt], sentinel: Identifier) -> tuple[list[Stmt], bool]:
	out: list[Stmt] = []
	for stmt in stmts:
		if isinstance(stmt, Return):
			out.append(ExprStmt(Assign(sentinel, stmt.value)))
			return out, True
		if isinstance(stmt, Block):
			body, nested = _normalize(stmt.body, sentinel)
			if nested:
				# The block returns unconditionally, so the rest is dead too
				out.append(Block(body))
				return out, True
			out.append(stmt)
		else:
			# If statements included: their branches are not this scope
			out.append(stmt)
	return out, False
