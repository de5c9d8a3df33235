"""Reading and writing graph documents as JSON."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ._models import GraphData

if TYPE_CHECKING:
    from pathlib import Path

    from ._eval_engine import ComputeResult

logger = logging.getLogger(__name__)


class GraphDocumentError(Exception):
    """A graph document cannot be read."""


def parse_graph(text: str, *, source: str = "<string>") -> GraphData:
    """Parse a JSON graph document.

    Raises:
        GraphDocumentError: If the text is not valid JSON or not a valid graph.

    """
    try:
        return GraphData.model_validate_json(text)
    except ValidationError as e:
        msg = f"Invalid graph document {source}: {e}"
        raise GraphDocumentError(msg) from e


def load_graph(path: Path) -> GraphData:
    """Load a graph document (node list, edge list, optional ``scale``) from a JSON file.

    Raises:
        GraphDocumentError: If the file cannot be read or does not hold a valid graph.

    """
    logger.debug("Loading graph from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Cannot read graph document {path}: {e}"
        raise GraphDocumentError(msg) from e
    graph = parse_graph(text, source=str(path))
    logger.debug("Loaded %d nodes and %d edges", len(graph.nodes), len(graph.edges))
    return graph


def dump_graph(graph: GraphData) -> dict[str, Any]:
    """Convert a graph to plain data with camelCase keys, omitting absent fields."""
    return graph.model_dump(exclude_none=True)


def save_graph(graph: GraphData, path: Path, *, indent: int = 2) -> None:
    """Write a graph document as standard JSON, creating parent directories as needed.

    Non-finite numbers (``inf``, ``nan``) are written as ``null``.
    """
    logger.debug("Writing graph to %s", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = graph.model_dump_json(indent=indent, exclude_none=True)
    path.write_text(text + "\n", encoding="utf-8")


def apply_result(graph: GraphData, result: ComputeResult) -> GraphData:
    """Return a copy of the graph whose nodes carry the computed fields.

    Node order follows the original document, not evaluation order.
    """
    computed = {node.id: node for node in result.nodes}
    nodes = [computed.get(node.id, node) for node in graph.nodes]
    return graph.model_copy(update={"nodes": nodes})


def graph_json_schema() -> dict[str, Any]:
    """JSON schema of a graph document."""
    return GraphData.model_json_schema(by_alias=True)
