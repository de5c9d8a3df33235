"""Core compute engine for flow graphs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from econgraph._errors import ComputeError, NodeEvaluationError
from econgraph._graph import DependencyGraph
from econgraph._models import NodeKind

from ._custom import evaluate_custom
from ._kinds import (
    Contribution,
    evaluate_arithmetic,
    evaluate_asset,
    evaluate_calc,
    evaluate_output,
    evaluate_recurring,
    evaluate_value,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from econgraph._models import Edge, GraphData, Node

    from ._kinds import NodeUpdate

logger = logging.getLogger(__name__)

CYCLE_ERROR = "Cycle detected in graph"
DEFAULT_MAX_DEPTH = 32

_CLEARED: dict[str, None] = {"computed_value": None, "timeseries": None}


@dataclass(frozen=True, slots=True)
class ComputeResult:
    """Result of computing a graph.

    Attributes:
        nodes: Copies of the input nodes with computed fields populated, in
            evaluation order (input order when a cycle was found).
        errors: Mapping from node id to a human-readable error message.

    """

    nodes: list[Node] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """Check if computation completed without errors."""
        return len(self.errors) == 0

    def get_node(self, node_id: str) -> Node:
        """Get a computed node by id.

        Raises:
            KeyError: If no node has the given id.

        """
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def value_of(self, node_id: str) -> float | None:
        """Get the computed value of a node, None if it has none."""
        return self.get_node(node_id).computed_value


def _cleared(node: Node) -> Node:
    update: dict[str, None] = dict(_CLEARED)
    if node.kind == NodeKind.CUSTOM:
        update["port_values"] = None
    return node.model_copy(update=update)


def _contributed_value(edge: Edge, source: Node) -> float:
    """Value a source passes along an edge: a custom node's requested output port, else its computed value."""
    if source.kind == NodeKind.CUSTOM:
        port = edge.source_port
        if port is None and source.custom is not None:
            port = source.custom.default_output_port()
        if port is None or source.port_values is None:
            return 0.0
        return source.port_values.get(port, 0.0)
    return source.computed_value if source.computed_value is not None else 0.0


def _evaluate_node(
    node: Node,
    contributions: Sequence[Contribution],
    depth: int,
    max_depth: int,
) -> tuple[NodeUpdate, list[str]]:
    """Dispatch to the rule for the node's kind.

    Returns the fields to set and any non-fatal warnings.
    """
    match node.kind:
        case NodeKind.INCOME | NodeKind.EXPENSE:
            return evaluate_recurring(node), []
        case NodeKind.CALC:
            return evaluate_calc(node, contributions), []
        case NodeKind.ASSET:
            return evaluate_asset(node, contributions), []
        case NodeKind.OUTPUT:
            return evaluate_output(node, contributions), []
        case NodeKind.VALUE:
            return evaluate_value(node), []
        case NodeKind.ADD | NodeKind.SUBTRACT | NodeKind.MULTIPLY | NodeKind.DIVIDE:
            return evaluate_arithmetic(node, contributions), []
        case NodeKind.CUSTOM:
            if depth >= max_depth:
                msg = "Maximum custom node nesting depth exceeded"
                raise NodeEvaluationError(msg)
            compute_internal = partial(_compute, depth=depth + 1, max_depth=max_depth)
            return evaluate_custom(node, contributions, compute_internal)
        case _:
            msg = f"Unsupported node kind: {node.kind}"
            raise NodeEvaluationError(msg)


def _compute(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    *,
    depth: int,
    max_depth: int,
) -> ComputeResult:
    working: dict[str, Node] = {node.id: _cleared(node) for node in nodes}
    errors: dict[str, str] = {}

    graph = DependencyGraph.from_graph(list(working.values()), edges)
    try:
        order = graph.topological_order()
    except ValueError:
        logger.debug("Cycle detected among %d nodes at depth %d", len(working), depth)
        return ComputeResult(nodes=list(working.values()), errors=dict.fromkeys(working, CYCLE_ERROR))

    incoming: dict[str, list[Edge]] = {node_id: [] for node_id in working}
    for edge in edges:
        if edge.source in working and edge.target in working:
            incoming[edge.target].append(edge)

    logger.debug("Computing %d nodes at depth %d", len(order), depth)

    for node_id in order:
        node = working[node_id]
        contributions = [
            Contribution(edge=edge, source=working[edge.source], value=_contributed_value(edge, working[edge.source]))
            for edge in incoming[node_id]
        ]

        try:
            update, warnings = _evaluate_node(node, contributions, depth, max_depth)
        except (ComputeError, ArithmeticError, ValueError) as e:
            logger.debug("  %s failed: %s", node_id, e)
            errors[node_id] = str(e) or "Calculation error"
            continue

        working[node_id] = node.model_copy(update=update)
        if warnings:
            errors[node_id] = "; ".join(warnings)
        logger.debug("  %s (%s) = %r", node_id, node.kind, update.get("computed_value"))

    return ComputeResult(nodes=[working[node_id] for node_id in order], errors=errors)


def compute_graph(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ComputeResult:
    """Compute every node of a graph.

    This is a pure function: the input nodes are never modified and no state
    is kept between calls. It:
    1. Orders the nodes topologically (edges with unknown endpoints are ignored)
    2. Evaluates each node by kind from the values on its incoming edges
    3. Recurses into the internal graph of each custom node

    A failing node gets an entry in ``errors`` and no computed fields; other
    nodes are unaffected. A cycle anywhere fails every node with
    ``"Cycle detected in graph"`` and nothing is computed.

    Args:
        nodes: The graph's nodes. Ids must be unique.
        edges: The graph's edges.
        max_depth: Deepest allowed nesting of custom nodes.

    Returns:
        ComputeResult with one computed copy per input node and the error map.

    Example:
        >>> result = compute_graph(graph.nodes, graph.edges)
        >>> result.value_of("savings")
        15000.0

    """
    return _compute(nodes, edges, depth=0, max_depth=max_depth)


def compute_graph_data(graph: GraphData, *, max_depth: int = DEFAULT_MAX_DEPTH) -> ComputeResult:
    """Compute a whole graph document."""
    return compute_graph(graph.nodes, graph.edges, max_depth=max_depth)
