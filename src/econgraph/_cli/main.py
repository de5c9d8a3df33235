import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from econgraph._errors import FormulaError
from econgraph._eval_engine import DEFAULT_MAX_DEPTH, compute_graph_data
from econgraph._formula import evaluate
from econgraph._graph import DependencyGraph
from econgraph._io import GraphDocumentError, apply_result, graph_json_schema, load_graph, save_graph
from econgraph._models import GraphData
from econgraph._validation import find_graph_problems

from .config import ConfigError, EconGraphConfig, get_config
from .render import build_kind_table, render_result_table, summary_line

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Econgraph CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_config() -> EconGraphConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _resolve_graph_path(graph_path: Path | None, config: EconGraphConfig) -> Path:
    if graph_path is not None:
        return graph_path
    if config.input is not None:
        logger.debug("Using graph path from config: %s", config.input)
        return config.input
    err_console.print("[red]Error: no graph file given and no input configured in pyproject.toml[/red]")
    raise typer.Exit(code=1)


def _load_graph_or_exit(path: Path) -> GraphData:
    err_console.print(f"[cyan]Loading graph from:[/cyan] {path}")
    try:
        return load_graph(path)
    except GraphDocumentError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def compute(
    graph_path: Annotated[
        Path | None,
        typer.Argument(help="Path to the graph JSON document (defaults to the configured input)"),
    ] = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Write the computed graph to this JSON file"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", min=0, help="Deepest allowed nesting of custom nodes"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit non-zero if any node reports an error"),
    ] = False,
) -> None:
    """Compute every node of a graph and show the results."""
    config = _load_config()
    path = _resolve_graph_path(graph_path, config)
    if output is None:
        output = config.output
    if max_depth is None:
        max_depth = config.max_depth if config.max_depth is not None else DEFAULT_MAX_DEPTH

    err_console.print()
    graph = _load_graph_or_exit(path)

    err_console.print("[cyan]Computing graph...[/cyan]")
    result = compute_graph_data(graph, max_depth=max_depth)
    computed = apply_result(graph, result)
    err_console.print()

    render_result_table(computed, result, out_console)

    if output is not None:
        err_console.print()
        err_console.print(f"[cyan]Writing computed graph to:[/cyan] {output}")
        save_graph(computed, output)

    err_console.print()
    if result.errors:
        err_console.print(f"[yellow]⚠ {len(result.errors)} node(s) reported errors[/yellow]")
        if strict:
            raise typer.Exit(code=1)
    else:
        err_console.print("[green]✓ Computation complete[/green]")
    err_console.print()


@app.command()
def check(
    graph_path: Annotated[
        Path | None,
        typer.Argument(help="Path to the graph JSON document (defaults to the configured input)"),
    ] = None,
) -> None:
    """Check the structure of a graph without computing it."""
    config = _load_config()
    path = _resolve_graph_path(graph_path, config)

    err_console.print()
    graph = _load_graph_or_exit(path)

    err_console.print("[cyan]Validating structure...[/cyan]")
    problems = find_graph_problems(graph)
    err_console.print()

    dependency_graph = DependencyGraph.from_graph(graph.nodes, graph.edges)
    err_console.print(
        Panel(
            build_kind_table(graph),
            title=f"[bold]Graph: {escape(path.name)}[/bold]",
            subtitle=f"[dim]{summary_line(graph, dependency_graph)}[/dim]",
            border_style="cyan",
        ),
    )
    err_console.print()

    if problems:
        err_console.print("[red]✗ Problems found:[/red]")
        for problem in problems:
            err_console.print(f"  [red]•[/red] {escape(str(problem))}")
        err_console.print()
        raise typer.Exit(code=1)

    err_console.print("[green]✓ Graph is valid[/green]")
    err_console.print()


@app.command()
def schema(
    *,
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Path to output JSON schema file"),
    ],
    indent: Annotated[
        int,
        typer.Option("--indent", help="JSON indentation spaces"),
    ] = 2,
) -> None:
    """Generate the JSON schema of graph documents."""
    err_console.print()
    err_console.print(f"[cyan]Writing schema to:[/cyan] {output}")
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w") as f:
        json.dump(graph_json_schema(), f, indent=indent)

    err_console.print()
    err_console.print("[green]✓ Schema generation complete[/green]")
    err_console.print()


def _parse_binding(binding: str) -> tuple[str, float]:
    name, sep, raw = binding.partition("=")
    if not sep or not name.strip():
        msg = f"Expected NAME=VALUE, got {binding!r}"
        raise typer.BadParameter(msg)
    try:
        return name.strip(), float(raw)
    except ValueError as e:
        msg = f"Value of {name.strip()!r} is not a number: {raw!r}"
        raise typer.BadParameter(msg) from e


@app.command()
def formula(
    expression: Annotated[
        str,
        typer.Argument(help="Formula to evaluate, e.g. 'max(a, b) * 12'"),
    ],
    *,
    var: Annotated[
        list[str] | None,
        typer.Option("-v", "--var", help="Variable binding NAME=VALUE (repeatable)"),
    ] = None,
) -> None:
    """Evaluate a single formula."""
    variables = dict(_parse_binding(binding) for binding in var or [])
    try:
        value = evaluate(expression, variables)
    except FormulaError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    out_console.print(repr(value))


def main() -> None:
    app()
