"""Compile imperative Python bodies into declarative engine call trees."""

# Errors
from animacro.errors import MacroNotExpandedError as MacroNotExpandedError
from animacro.errors import MacroUsageError as MacroUsageError
from animacro.errors import MisplacedAssignmentError as MisplacedAssignmentError
from animacro.errors import TransformError as TransformError
from animacro.errors import UnsupportedOperatorError as UnsupportedOperatorError
from animacro.errors import UnsupportedPatternError as UnsupportedPatternError
from animacro.errors import UnsupportedSyntaxError as UnsupportedSyntaxError

# Configuration
from animacro.env import MacroConfig as MacroConfig
from animacro.env import env as env

# Expansion
from animacro.expander import ExpansionResult as ExpansionResult
from animacro.expander import MacroExpander as MacroExpander
from animacro.expander import compile_block as compile_block
from animacro.expander import compile_expression as compile_expression
from animacro.expander import expand_module as expand_module
from animacro.expander import expand_source as expand_source
from animacro.function import compile_function as compile_function

# IR
from animacro.nodes import emit as emit

# Engine names
from animacro.operators import BINARY_OPS as BINARY_OPS
from animacro.operators import EMITTED_NAMES as EMITTED_NAMES
from animacro.operators import UNARY_OPS as UNARY_OPS

from animacro.version import __version__ as __version__
