"""Environment-backed settings for the expander and the CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

ENV_ANIMACRO_ENGINE = "ANIMACRO_ENGINE"
ENV_ANIMACRO_MACRO_MODULE = "ANIMACRO_MACRO_MODULE"
ENV_ANIMACRO_SENTINEL = "ANIMACRO_SENTINEL"

DEFAULT_ENGINE = "reanimated"
DEFAULT_MACRO_MODULE = "animacro.macro"
DEFAULT_SENTINEL = "earlyReturn"


class AnimacroEnv:
	"""Typed view over the ANIMACRO_* environment variables.

	Values are read on every access so tests and the CLI can change them
	through os.environ without reloading anything.
	"""

	def _get(self, key: str, default: str) -> str:
		value = os.environ.get(key)
		return value if value else default

	@property
	def engine(self) -> str:
		return self._get(ENV_ANIMACRO_ENGINE, DEFAULT_ENGINE)

	@engine.setter
	def engine(self, value: str) -> None:
		os.environ[ENV_ANIMACRO_ENGINE] = value

	@property
	def macro_module(self) -> str:
		return self._get(ENV_ANIMACRO_MACRO_MODULE, DEFAULT_MACRO_MODULE)

	@macro_module.setter
	def macro_module(self, value: str) -> None:
		os.environ[ENV_ANIMACRO_MACRO_MODULE] = value

	@property
	def sentinel(self) -> str:
		return self._get(ENV_ANIMACRO_SENTINEL, DEFAULT_SENTINEL)


env = AnimacroEnv()


@dataclass(slots=True)
class MacroConfig:
	"""
	Configuration for a macro expansion run.

	Attributes:
	    engine (str): Module the emitted code imports engine functions from.
	    macro_module (str): Module whose `define` / `exec_` imports mark call sites.
	    sentinel (str): Base name for early-return sentinel identifiers.
	"""

	engine: str = field(default_factory=lambda: env.engine)
	"""Module the emitted code imports engine functions from."""

	macro_module: str = field(default_factory=lambda: env.macro_module)
	"""Module whose `define` / `exec_` imports mark call sites."""

	sentinel: str = field(default_factory=lambda: env.sentinel)
	"""Base name for early-return sentinel identifiers."""
