"""Data model of a flow graph: nodes, edges, ports and composite node configuration."""

from __future__ import annotations

from enum import StrEnum, auto
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class NodeKind(StrEnum):
    """The kind of a node, selecting its evaluation rule."""

    INCOME = auto()
    EXPENSE = auto()
    CALC = auto()
    ASSET = auto()
    OUTPUT = auto()
    CUSTOM = auto()
    VALUE = auto()
    ADD = auto()
    SUBTRACT = auto()
    MULTIPLY = auto()
    DIVIDE = auto()


class TimeUnit(StrEnum):
    """Period a recurring amount is expressed in."""

    PER_DAY = auto()
    PER_WEEK = auto()
    PER_MONTH = auto()
    PER_YEAR = auto()


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
        extra="ignore",
        frozen=True,
    )


class Position(_Model):
    """Editor layout hint. Not used by the engine."""

    x: float = 0.0
    y: float = 0.0


class PortDef(_Model):
    """A named input or output slot of a custom node."""

    id: str
    label: str = ""


class Edge(_Model):
    """A directed flow from ``source`` to ``target``.

    ``source_port``/``target_port`` select a port when an endpoint is a custom
    node or a binary arithmetic node. ``weight`` and ``lag_months`` are
    carried as data but not consumed by evaluation.
    """

    id: str
    source: str
    target: str
    kind: Literal["flow"] = "flow"
    source_port: str | None = None
    target_port: str | None = None
    weight: float | None = None
    lag_months: float | None = None


class _NodeBase(_Model):
    id: str
    label: str = ""
    position: Position | None = None

    # Populated by evaluation.
    computed_value: float | None = None
    timeseries: list[float] | None = None


class IncomeNode(_NodeBase):
    """A recurring inflow normalised to a monthly amount."""

    kind: Literal["income"] = "income"
    base_value: float | None = None
    time_unit: TimeUnit | None = None


class ExpenseNode(_NodeBase):
    """A recurring outflow normalised to a monthly amount."""

    kind: Literal["expense"] = "expense"
    base_value: float | None = None
    time_unit: TimeUnit | None = None


class CalcNode(_NodeBase):
    """A formula over the values of incoming nodes, referenced by node id."""

    kind: Literal["calc"] = "calc"
    formula: str | None = None


class AssetNode(_NodeBase):
    """A balance compounding monthly, fed by incoming contributions."""

    kind: Literal["asset"] = "asset"
    interest_rate_annual: float | None = None


class OutputNode(_NodeBase):
    """The first month at which incoming asset balances reach a target."""

    kind: Literal["output"] = "output"
    target_amount: float | None = None


class ValueNode(_NodeBase):
    """A constant."""

    kind: Literal["value"] = "value"
    base_value: float | None = None


class AddNode(_NodeBase):
    kind: Literal["add"] = "add"


class SubtractNode(_NodeBase):
    kind: Literal["subtract"] = "subtract"


class MultiplyNode(_NodeBase):
    kind: Literal["multiply"] = "multiply"


class DivideNode(_NodeBase):
    kind: Literal["divide"] = "divide"


class CustomNodeConfig(_Model):
    """Configuration of a composite node wrapping its own internal graph.

    Attributes:
        inputs: Declared input ports, in order. The first is the default port.
        outputs: Declared output ports, in order. The first is the default port.
        internal_graph: The wrapped graph, owned by this configuration.
        input_bindings: Input port id -> id of an ``income`` node in the internal graph.
        output_bindings: Output port id -> id of any node in the internal graph.

    """

    inputs: list[PortDef] = Field(default_factory=list)
    outputs: list[PortDef] = Field(default_factory=list)
    internal_graph: GraphData = Field(default_factory=lambda: GraphData())
    input_bindings: dict[str, str] = Field(default_factory=dict)
    output_bindings: dict[str, str] = Field(default_factory=dict)

    def default_input_port(self) -> str | None:
        """Return the id of the first declared input port, if any."""
        return self.inputs[0].id if self.inputs else None

    def default_output_port(self) -> str | None:
        """Return the id of the first declared output port, if any."""
        return self.outputs[0].id if self.outputs else None


class CustomNode(_NodeBase):
    """A reusable sub-graph exposed through input and output ports."""

    kind: Literal["custom"] = "custom"
    custom: CustomNodeConfig | None = None

    # Populated by evaluation: output port id -> value.
    port_values: dict[str, float] | None = None


type ArithmeticNode = AddNode | SubtractNode | MultiplyNode | DivideNode

Node = Annotated[
    IncomeNode
    | ExpenseNode
    | CalcNode
    | AssetNode
    | OutputNode
    | CustomNode
    | ValueNode
    | AddNode
    | SubtractNode
    | MultiplyNode
    | DivideNode,
    Field(discriminator="kind"),
]


class GraphData(_Model):
    """A graph document: ordered nodes, ordered edges and an optional display-scale hint."""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    scale: float | None = None

    @model_validator(mode="after")
    def _check_unique_node_ids(self) -> GraphData:
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in self.nodes:
            if node.id in seen:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            msg = f"Duplicate node ids: {', '.join(sorted(set(duplicates)))}"
            raise ValueError(msg)
        return self

    def node_by_id(self, node_id: str) -> Node:
        """Get a node by its id.

        Raises:
            KeyError: If no node has the given id.

        """
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)


CustomNodeConfig.model_rebuild()
CustomNode.model_rebuild()
GraphData.model_rebuild()
