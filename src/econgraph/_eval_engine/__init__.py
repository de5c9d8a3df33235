"""Compute engine module for econgraph.

This module provides pure functions for computing flow graphs. The engine
takes nodes and edges and produces computed copies of the nodes plus a
per-node error map, without side effects.

Key types:
- ComputeResult: Computed nodes and errors
- compute_graph: Pure function to compute a node/edge graph
- compute_graph_data: Same, for a GraphData document
"""

from ._engine import CYCLE_ERROR, DEFAULT_MAX_DEPTH, ComputeResult, compute_graph, compute_graph_data
from ._kinds import SIMULATION_MONTHS, TIME_UNIT_MULTIPLIERS, monthly_value

__all__ = [
    "CYCLE_ERROR",
    "DEFAULT_MAX_DEPTH",
    "SIMULATION_MONTHS",
    "TIME_UNIT_MULTIPLIERS",
    "ComputeResult",
    "compute_graph",
    "compute_graph_data",
    "monthly_value",
]
