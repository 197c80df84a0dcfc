"""
Conditional linearization.

After normalization an early return is just an assignment to the sentinel,
so a block like

	if a:
		_earlyReturn = 1
	x = 2
	_earlyReturn = x

would fall through into `x = 2`. Every statement that follows a terminal
if (an if whose branches assign the sentinel, at any depth) is moved under
a guard so it only runs while the sentinel is still unset:

	if a:
		_earlyReturn = 1
	if _defined(_earlyReturn):
		return _earlyReturn
	else:
		x = 2
		_earlyReturn = x

The guard's `return` survives to lowering, where it becomes the value of
its cond() branch.
"""

from __future__ import annotations

from animacro.imports import ImportBindings
from animacro.nodes import Block, Call, Identifier, If, Return, Stmt
from animacro.passes.returns import normalize_returns


def linearize_block(
	block: Block,
	sentinel: Identifier,
	bindings: ImportBindings,
) -> tuple[Block, bool]:
	"""Guard the statements that follow each terminal if in a block.

	The block itself must already be normalized; branches of its if
	statements are normalized here. Returns the new block and whether it
	contains a terminal if.
	"""
	stmts: list[Stmt] = list(block.body)

	# Phase 1: process every direct-child if, collecting terminal ones
	terminal: list[int] = []
	for i, stmt in enumerate(stmts):
		if isinstance(stmt, If):
			stmts[i], returns = _linearize_if(stmt, sentinel, bindings)
			if returns:
				terminal.append(i)

	if not terminal:
		return Block(stmts), False

	# Phase 2: fold from the last terminal if to the first. The guard built
	# for a later if is part of the tail captured for an earlier one.
	for i in reversed(terminal):
		tail = stmts[i + 1 :]
		if not tail:
			continue
		guard = If(
			Call(bindings.ref("defined"), [sentinel]),
			Block([Return(sentinel)]),
			Block(tail),
		)
		stmts = [*stmts[:i], Block([stmts[i], guard])]

	return Block(stmts), True


def _linearize_if(
	node: If,
	sentinel: Identifier,
	bindings: ImportBindings,
) -> tuple[If, bool]:
	consequent, returns = _linearize_branch(node.consequent, sentinel, bindings)
	alternate = node.alternate
	if isinstance(alternate, If):
		alternate, alt_returns = _linearize_if(alternate, sentinel, bindings)
		returns = returns or alt_returns
	elif alternate is not None:
		alternate, alt_returns = _linearize_branch(alternate, sentinel, bindings)
		returns = returns or alt_returns
	return If(node.test, consequent, alternate), returns


def _linearize_branch(
	block: Block,
	sentinel: Identifier,
	bindings: ImportBindings,
) -> tuple[Block, bool]:
	block, returned = normalize_returns(block, sentinel)
	block, nested = linearize_block(block, sentinel, bindings)
	return block, returned or nested
