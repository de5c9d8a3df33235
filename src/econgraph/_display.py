"""Human-readable formatting of computed node values."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ._models import NodeKind

if TYPE_CHECKING:
    from ._models import Node

PLACEHOLDER = "--"
UNREACHABLE = "Unreachable"


def format_currency(value: float) -> str:
    """Format an amount as whole currency units, e.g. ``$1300``."""
    if math.isnan(value):
        return PLACEHOLDER
    if math.isinf(value):
        return "-$inf" if value < 0 else "$inf"
    return f"${value:.0f}"


def format_monthly(value: float | None) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{format_currency(value)} / mo"


def format_output(value: float | None) -> str:
    """Format the month index of an output node. Negative means the target is never reached."""
    if value is None:
        return PLACEHOLDER
    if value < 0:
        return UNREACHABLE
    return f"{value:.0f}"


def format_node_value(node: Node) -> str:
    match node.kind:
        case NodeKind.ASSET:
            return format_currency(node.computed_value if node.computed_value is not None else 0.0)
        case NodeKind.OUTPUT:
            return format_output(node.computed_value)
        case _:
            return format_monthly(node.computed_value)


def format_node_label(node: Node, error: str | None = None) -> str:
    """Multi-line label: the node label, its formatted value, and a warning line on error."""
    base = f"{node.label}\n{format_node_value(node)}"
    if error:
        return f"{base}\n⚠ {error}"
    return base
