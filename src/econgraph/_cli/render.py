"""Rich rendering utilities for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from econgraph._display import format_node_value
from econgraph._models import NodeKind

if TYPE_CHECKING:
    from rich.console import Console

    from econgraph._eval_engine import ComputeResult
    from econgraph._graph import DependencyGraph
    from econgraph._models import GraphData


def render_result_table(graph: GraphData, result: ComputeResult, console: Console) -> None:
    """Render computed nodes as a Rich table, in document order.

    Args:
        graph: The computed document (node order is taken from it).
        result: The compute result holding errors.
        console: Rich Console to output to.

    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node", style="bold")
    table.add_column("Kind")
    table.add_column("Label", style="dim")
    table.add_column("Value", justify="right")
    table.add_column("Error", style="red")

    for node in graph.nodes:
        kind_style = _get_kind_style(node.kind)
        table.add_row(
            escape(node.id),
            f"[{kind_style}]{node.kind.upper()}[/{kind_style}]",
            escape(node.label),
            format_node_value(node),
            escape(result.errors.get(node.id, "")),
        )

    console.print(table)


def build_kind_table(graph: GraphData) -> Table:
    """Build a table of node counts per kind."""
    counts: dict[str, int] = {}
    for node in graph.nodes:
        counts[node.kind] = counts.get(node.kind, 0) + 1

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="bold")
    table.add_column("Nodes", justify="right")
    for kind in NodeKind:
        if kind in counts:
            style = _get_kind_style(kind)
            table.add_row(f"[{style}]{kind.upper()}[/{style}]", str(counts[kind]))

    return table


def summary_line(graph: GraphData, dependency_graph: DependencyGraph[str]) -> str:
    """One-line size summary: nodes, edges, roots and leaves."""
    return (
        f"{len(graph.nodes)} nodes, {len(graph.edges)} edges, "
        f"{len(dependency_graph.roots())} roots, {len(dependency_graph.leaves())} leaves"
    )


def _get_kind_style(kind: str) -> str:
    match kind:
        case NodeKind.INCOME:
            return "green"
        case NodeKind.EXPENSE:
            return "red"
        case NodeKind.ASSET | NodeKind.OUTPUT:
            return "yellow"
        case NodeKind.CUSTOM:
            return "magenta"
        case _:
            return "blue"
