import ast
import textwrap

import pytest
from animacro.env import (
	ENV_ANIMACRO_ENGINE,
	ENV_ANIMACRO_MACRO_MODULE,
	ENV_ANIMACRO_SENTINEL,
)
from animacro.frontend import body_to_ir
from animacro.imports import ImportBindings
from animacro.nodes import Block
from animacro.scope import Scope


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):  # pyright: ignore[reportUnusedFunction]
	for key in (ENV_ANIMACRO_ENGINE, ENV_ANIMACRO_MACRO_MODULE, ENV_ANIMACRO_SENTINEL):
		monkeypatch.delenv(key, raising=False)


@pytest.fixture
def bindings() -> ImportBindings:
	return ImportBindings("reanimated", Scope())


def parse_body(src: str) -> Block:
	"""IR block for a snippet of statements."""
	return body_to_ir(ast.parse(textwrap.dedent(src)).body)
