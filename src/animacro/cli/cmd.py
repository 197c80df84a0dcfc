"""
Command-line interface for animacro.
This module provides the CLI commands for expanding macro modules and
inspecting the passes.
"""
# typer relies on function calls used as default values
# pyright: reportCallInDefaultInitializer=false

from __future__ import annotations

import ast
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from watchfiles import watch

from animacro.env import ENV_ANIMACRO_ENGINE, MacroConfig, env
from animacro.errors import TransformError
from animacro.expander import expand_module, expand_source
from animacro.nodes import emit
from animacro.version import __version__ as ANIMACRO_VERSION

logger = logging.getLogger(__name__)

cli = typer.Typer(
	name="animacro",
	help="animacro - compile imperative Python bodies into engine call trees",
	no_args_is_help=True,
)

# stdout carries expanded source; progress goes to stderr
console = Console(stderr=True, log_path=False)


@cli.command("expand")
def expand(
	files: list[Path] = typer.Argument(..., help="Python modules to expand"),
	out: Path | None = typer.Option(
		None, "--out", "-o", help="Directory to write expanded modules to"
	),
	engine: str | None = typer.Option(
		None,
		"--engine",
		help=f"Engine module to import from (default: ${ENV_ANIMACRO_ENGINE})",
	),
	check: bool = typer.Option(
		False, "--check", help="Only validate that the files expand"
	),
	watch_files: bool = typer.Option(
		False, "--watch", help="Re-expand files when they change"
	),
	verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
	"""Expand define() call sites in Python modules."""
	_configure_logging(verbose)
	if out is None and not check and len(files) > 1:
		typer.echo("❌ Use --out to expand more than one file.")
		raise typer.Exit(1)
	if out is not None and not check:
		clashes = _clashing_names(files)
		if clashes:
			names = ", ".join(clashes)
			typer.echo(f"❌ Files would overwrite each other in {out}: {names}")
			raise typer.Exit(1)
	if engine:
		env.engine = engine

	failures = _expand_files(files, out=out, check=check)
	if watch_files:
		_watch(files, out=out, check=check)
		return
	if failures:
		raise typer.Exit(1)
	if check:
		console.log(f"✅ {len(files)} file(s) expand cleanly")


@cli.command("stages")
def stages(
	file: Path = typer.Argument(..., help="Python module to inspect"),
	verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
	"""Print each define() body after every pass."""
	_configure_logging(verbose)
	source = _read(file)
	try:
		tree = ast.parse(source, filename=str(file))
		result = expand_module(tree, MacroConfig(), str(file), trace=True)
	except (SyntaxError, TransformError) as exc:
		console.log(f"❌ {exc}")
		raise typer.Exit(1) from None

	if not result.traces:
		console.log(f"⚠️  No define() call sites in {file}")
		return
	out = Console()
	for trace in result.traces:
		out.rule(f"{trace.name} (line {trace.lineno})")
		for name, node in trace.stages:
			out.print(f"[bold cyan]{name}[/bold cyan]")
			out.print(Syntax(emit(node), "python", word_wrap=True))


@cli.command("version")
def version():
	"""Print the animacro version."""
	typer.echo(ANIMACRO_VERSION)


def _expand_files(files: Sequence[Path], *, out: Path | None, check: bool) -> int:
	"""Expand each file, reporting errors. Returns the number of failures."""
	failures = 0
	config = MacroConfig()
	for file in files:
		source = _read(file)
		try:
			expanded = expand_source(source, str(file), config)
		except (SyntaxError, TransformError) as exc:
			console.log(f"❌ {exc}")
			failures += 1
			continue

		if check:
			logger.debug("%s expands cleanly", file)
		elif out is not None:
			out.mkdir(parents=True, exist_ok=True)
			target = out / file.name
			target.write_text(expanded)
			console.log(f"📝 {file} -> {target}")
		else:
			typer.echo(expanded, nl=False)
	return failures


def _clashing_names(files: Sequence[Path]) -> list[str]:
	"""Output names shared by more than one distinct input file."""
	sources: dict[str, set[Path]] = {}
	for file in files:
		sources.setdefault(file.name, set()).add(file.resolve())
	return sorted(name for name, paths in sources.items() if len(paths) > 1)


def _watch(files: Sequence[Path], *, out: Path | None, check: bool) -> None:
	watched = {file.resolve() for file in files}
	console.log(f"👀 Watching {len(watched)} file(s) for changes")
	for changes in watch(*watched):
		changed = _paths_from_changes(changes) & watched
		if changed:
			_expand_files(sorted(changed), out=out, check=check)


def _paths_from_changes(changes: Iterable[tuple[object, str]]) -> set[Path]:
	return {Path(path).resolve() for _, path in changes}


def _read(file: Path) -> str:
	try:
		return file.read_text()
	except OSError as exc:
		console.log(f"❌ Cannot read {file}: {exc.strerror}")
		raise typer.Exit(1) from None


def _configure_logging(verbose: bool) -> None:
	logging.basicConfig(
		level=logging.DEBUG if verbose else logging.WARNING,
		format="%(message)s",
		handlers=[RichHandler(console=console, show_path=False)],
		force=True,
	)


def main():
	"""Main CLI entry point."""
	try:
		cli()
	except Exception:
		console.print_exception()
		raise typer.Exit(1) from None


if __name__ == "__main__":
	main()
