"""Compute engine for graphs of financial flows."""

__all__ = [
    "AddNode",
    "AssetNode",
    "CalcNode",
    "ComputeError",
    "ComputeResult",
    "CustomNode",
    "CustomNodeConfig",
    "DependencyGraph",
    "DivideNode",
    "Edge",
    "ExpenseNode",
    "FormulaError",
    "GraphData",
    "GraphDocumentError",
    "GraphProblem",
    "IncomeNode",
    "MultiplyNode",
    "Node",
    "NodeEvaluationError",
    "NodeKind",
    "OutputNode",
    "PortDef",
    "Position",
    "SubtractNode",
    "TimeUnit",
    "ValueNode",
    "apply_result",
    "compute_graph",
    "compute_graph_data",
    "dump_graph",
    "evaluate",
    "find_graph_problems",
    "format_node_label",
    "graph_json_schema",
    "load_graph",
    "parse_graph",
    "save_graph",
]

from ._display import format_node_label
from ._errors import ComputeError, FormulaError, NodeEvaluationError
from ._eval_engine import ComputeResult, compute_graph, compute_graph_data
from ._formula import evaluate
from ._graph import DependencyGraph
from ._io import GraphDocumentError, apply_result, dump_graph, graph_json_schema, load_graph, parse_graph, save_graph
from ._models import (
    AddNode,
    AssetNode,
    CalcNode,
    CustomNode,
    CustomNodeConfig,
    DivideNode,
    Edge,
    ExpenseNode,
    GraphData,
    IncomeNode,
    MultiplyNode,
    Node,
    NodeKind,
    OutputNode,
    PortDef,
    Position,
    SubtractNode,
    TimeUnit,
    ValueNode,
)
from ._validation import GraphProblem, find_graph_problems
