"""Evaluation rules for the scalar node kinds.

Each rule takes a node and the values flowing into it and returns the
fields to set on the node's output copy. Rules raise ``ComputeError``
subclasses on failure; the engine turns those into per-node errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from econgraph._errors import NodeEvaluationError
from econgraph._formula import divide, evaluate
from econgraph._models import NodeKind, TimeUnit

if TYPE_CHECKING:
    from collections.abc import Sequence

    from econgraph._models import (
        ArithmeticNode,
        AssetNode,
        CalcNode,
        Edge,
        ExpenseNode,
        IncomeNode,
        Node,
        OutputNode,
        ValueNode,
    )

logger = logging.getLogger(__name__)

SIMULATION_MONTHS = 120

TIME_UNIT_MULTIPLIERS: dict[TimeUnit, float] = {
    TimeUnit.PER_DAY: 30.0,
    TimeUnit.PER_WEEK: 52 / 12,
    TimeUnit.PER_MONTH: 1.0,
    TimeUnit.PER_YEAR: 1 / 12,
}

ARITHMETIC_PORTS = ("a", "b")

type NodeUpdate = dict[str, Any]


@dataclass(frozen=True, slots=True)
class Contribution:
    """The value one incoming edge carries into its target.

    Attributes:
        edge: The incoming edge.
        source: The source node, already evaluated in this pass.
        value: The scalar the source contributes along this edge.

    """

    edge: Edge
    source: Node
    value: float


def monthly_value(base_value: float | None, time_unit: TimeUnit | None) -> float:
    """Normalise an amount to a monthly figure. An absent amount is 0, an absent unit is monthly."""
    if base_value is None:
        return 0.0
    multiplier = TIME_UNIT_MULTIPLIERS[time_unit] if time_unit is not None else 1.0
    return base_value * multiplier


def evaluate_recurring(node: IncomeNode | ExpenseNode) -> NodeUpdate:
    return {"computed_value": monthly_value(node.base_value, node.time_unit)}


def evaluate_calc(node: CalcNode, contributions: Sequence[Contribution]) -> NodeUpdate:
    """Evaluate the node's formula with incoming values bound by source node id.

    Several edges from the same source are summed into one variable.
    """
    if not node.formula or not node.formula.strip():
        msg = "Missing formula"
        raise NodeEvaluationError(msg)
    variables: dict[str, float] = {}
    for contribution in contributions:
        source_id = contribution.source.id
        variables[source_id] = variables.get(source_id, 0.0) + contribution.value
    return {"computed_value": evaluate(node.formula, variables)}


def evaluate_asset(
    node: AssetNode,
    contributions: Sequence[Contribution],
    months: int = SIMULATION_MONTHS,
) -> NodeUpdate:
    """Compound a balance monthly from zero, adding the incoming total every month.

    ``balance = balance * (1 + annual_rate / 12) + contribution``
    """
    contribution = sum(c.value for c in contributions)
    monthly_rate = (node.interest_rate_annual or 0.0) / 12
    balance = 0.0
    timeseries: list[float] = []
    for _ in range(months):
        balance = balance * (1 + monthly_rate) + contribution
        timeseries.append(balance)
    return {"computed_value": balance, "timeseries": timeseries}


def _combine_timeseries(contributions: Sequence[Contribution]) -> list[float]:
    combined: list[float] = []
    for contribution in contributions:
        series = contribution.source.timeseries
        if series is None:
            continue
        if not combined:
            combined = list(series)
            continue
        combined = [value + (series[i] if i < len(series) else 0.0) for i, value in enumerate(combined)]
    return combined


def evaluate_output(node: OutputNode, contributions: Sequence[Contribution]) -> NodeUpdate:
    """Find the 1-based month at which the combined incoming balances reach the target.

    ``-1`` means the target is never reached within the series.
    """
    if node.target_amount is None:
        msg = "Missing target amount"
        raise NodeEvaluationError(msg)
    series = _combine_timeseries(contributions)
    if not series:
        msg = "Missing asset timeseries"
        raise NodeEvaluationError(msg)
    month = next((i + 1 for i, value in enumerate(series) if value >= node.target_amount), -1)
    return {"computed_value": float(month)}


def evaluate_value(node: ValueNode) -> NodeUpdate:
    return {"computed_value": node.base_value if node.base_value is not None else 0.0}


def _arithmetic_operands(node: ArithmeticNode, contributions: Sequence[Contribution]) -> tuple[float, float]:
    operands: dict[str, float] = {}
    untagged: list[Contribution] = []
    for contribution in contributions:
        port = contribution.edge.target_port
        if port is None:
            untagged.append(contribution)
            continue
        if port not in ARITHMETIC_PORTS:
            msg = f"Unknown input port '{port}'"
            raise NodeEvaluationError(msg)
        operands[port] = operands.get(port, 0.0) + contribution.value

    for contribution in untagged:
        free = next((port for port in ARITHMETIC_PORTS if port not in operands), None)
        if free is None:
            msg = f"Too many inputs for {node.kind} node"
            raise NodeEvaluationError(msg)
        operands[free] = contribution.value

    missing = [port for port in ARITHMETIC_PORTS if port not in operands]
    if missing:
        msg = f"Missing input port '{missing[0]}'"
        raise NodeEvaluationError(msg)
    return operands["a"], operands["b"]


def evaluate_arithmetic(node: ArithmeticNode, contributions: Sequence[Contribution]) -> NodeUpdate:
    """Combine the values on ports ``a`` and ``b``.

    An edge selects a port with ``target_port``; untagged edges fill the
    first port still empty, in edge order.
    """
    a, b = _arithmetic_operands(node, contributions)
    match node.kind:
        case NodeKind.ADD:
            value = a + b
        case NodeKind.SUBTRACT:
            value = a - b
        case NodeKind.MULTIPLY:
            value = a * b
        case NodeKind.DIVIDE:
            value = divide(a, b)
        case _:
            msg = f"Not an arithmetic node kind: {node.kind}"
            raise NodeEvaluationError(msg)
    logger.debug("  %s(%r, %r) = %r", node.kind, a, b, value)
    return {"computed_value": value}
