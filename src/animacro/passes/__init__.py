from animacro.passes.linearize import linearize_block as linearize_block
from animacro.passes.lowering import lower as lower
from animacro.passes.lowering import lower_expr as lower_expr
from animacro.passes.returns import normalize_returns as normalize_returns
