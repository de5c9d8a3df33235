"""Evaluation of custom nodes: sub-graphs exposed through ports."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from econgraph._errors import NodeEvaluationError
from econgraph._models import NodeKind, TimeUnit

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from econgraph._models import CustomNode, CustomNodeConfig, Edge, Node

    from ._engine import ComputeResult
    from ._kinds import Contribution, NodeUpdate

    type InternalCompute = Callable[[Sequence[Node], Sequence[Edge]], ComputeResult]

logger = logging.getLogger(__name__)

INTERNAL_ERRORS_MESSAGE = "Internal graph errors"


def _aggregate_inputs(
    config: CustomNodeConfig,
    contributions: Sequence[Contribution],
    binding_errors: list[str],
) -> dict[str, float]:
    """Sum incoming values per requested input port, dropping unknown ports."""
    declared = {port.id for port in config.inputs}
    default_port = config.default_input_port()
    totals: dict[str, float] = {}
    for contribution in contributions:
        port = contribution.edge.target_port or default_port
        if port is None:
            binding_errors.append(f"Edge '{contribution.edge.id}' has no input port to target")
            continue
        if port not in declared:
            binding_errors.append(f"Unknown input port '{port}'")
            continue
        totals[port] = totals.get(port, 0.0) + contribution.value
    return totals


def _bind_inputs(
    config: CustomNodeConfig,
    totals: dict[str, float],
    binding_errors: list[str],
) -> list[Node]:
    """Copy the internal nodes, feeding each bound income node its port total as a monthly amount."""
    internal = config.internal_graph.model_copy(deep=True)
    nodes = list(internal.nodes)
    index_by_id = {node.id: i for i, node in enumerate(nodes)}

    for port in config.inputs:
        target_id = config.input_bindings.get(port.id)
        if target_id is None:
            binding_errors.append(f"Input port '{port.id}' is not bound")
            continue
        index = index_by_id.get(target_id)
        if index is None:
            binding_errors.append(f"Input port '{port.id}' is bound to unknown node '{target_id}'")
            continue
        target = nodes[index]
        if target.kind != NodeKind.INCOME:
            binding_errors.append(f"Input port '{port.id}' must bind to an income node, got '{target.kind}'")
            continue
        nodes[index] = target.model_copy(
            update={"base_value": totals.get(port.id, 0.0), "time_unit": TimeUnit.PER_MONTH},
        )
    return nodes


def _read_outputs(
    config: CustomNodeConfig,
    result: ComputeResult,
    binding_errors: list[str],
) -> dict[str, float]:
    by_id = {node.id: node for node in result.nodes}
    port_values: dict[str, float] = {}
    for port in config.outputs:
        source_id = config.output_bindings.get(port.id)
        if source_id is None:
            binding_errors.append(f"Output port '{port.id}' is not bound")
            port_values[port.id] = 0.0
            continue
        source = by_id.get(source_id)
        if source is None:
            binding_errors.append(f"Output port '{port.id}' is bound to unknown node '{source_id}'")
            port_values[port.id] = 0.0
            continue
        port_values[port.id] = source.computed_value if source.computed_value is not None else 0.0
    return port_values


def evaluate_custom(
    node: CustomNode,
    contributions: Sequence[Contribution],
    compute_internal: InternalCompute,
) -> tuple[NodeUpdate, list[str]]:
    """Run a custom node's internal graph with its port inputs.

    Binding problems do not stop evaluation: they are collected and the node
    still gets a best-effort value, with unresolved inputs and outputs taken
    as 0.

    Args:
        node: The custom node.
        contributions: Values arriving on the node's incoming edges.
        compute_internal: Computes the internal graph (one nesting level deeper).

    Returns:
        The fields to set on the node, and the binding errors collected.

    Raises:
        NodeEvaluationError: If the node has no configuration.

    """
    config = node.custom
    if config is None:
        msg = "Missing custom node configuration"
        raise NodeEvaluationError(msg)

    binding_errors: list[str] = []
    if not config.inputs:
        binding_errors.append("No input ports defined")
    if not config.outputs:
        binding_errors.append("No output ports defined")

    totals = _aggregate_inputs(config, contributions, binding_errors)
    internal_nodes = _bind_inputs(config, totals, binding_errors)

    logger.debug("Entering internal graph of %s (%d nodes)", node.id, len(internal_nodes))
    result = compute_internal(internal_nodes, config.internal_graph.edges)
    if result.errors:
        logger.debug("Internal graph of %s reported errors: %r", node.id, result.errors)
        binding_errors.append(INTERNAL_ERRORS_MESSAGE)

    port_values = _read_outputs(config, result, binding_errors)

    if config.default_output_port() is None:
        value = 0.0
    elif len(config.outputs) == 1:
        value = port_values[config.outputs[0].id]
    else:
        value = sum(port_values[port.id] for port in config.outputs)

    return {"computed_value": value, "port_values": port_values}, binding_errors
