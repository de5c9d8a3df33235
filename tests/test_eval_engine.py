"""Tests for the compute engine."""

import math
from pathlib import Path

import pytest

from econgraph import (
    AddNode,
    AssetNode,
    CalcNode,
    ComputeResult,
    DivideNode,
    Edge,
    ExpenseNode,
    IncomeNode,
    MultiplyNode,
    OutputNode,
    SubtractNode,
    ValueNode,
    compute_graph,
    compute_graph_data,
    load_graph,
)
from econgraph._eval_engine import CYCLE_ERROR, SIMULATION_MONTHS, monthly_value
from econgraph._models import TimeUnit

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


def _edge(source: str, target: str, **kwargs: str) -> Edge:
    return Edge(id=f"{source}->{target}", source=source, target=target, **kwargs)


def _annuity(contribution: float, annual_rate: float, months: int = SIMULATION_MONTHS) -> float:
    rate = annual_rate / 12
    return contribution * ((1 + rate) ** months - 1) / rate


class TestComputeResult:
    """Tests for ComputeResult."""

    def test_success_when_no_errors(self) -> None:
        assert ComputeResult(nodes=[], errors={}).success is True

    def test_not_success_when_errors(self) -> None:
        assert ComputeResult(nodes=[], errors={"a": "boom"}).success is False

    def test_get_node_and_value(self) -> None:
        node = IncomeNode(id="a", computed_value=3.0)
        result = ComputeResult(nodes=[node])
        assert result.get_node("a") is node
        assert result.value_of("a") == 3.0

    def test_get_node_missing(self) -> None:
        with pytest.raises(KeyError):
            ComputeResult().get_node("missing")


class TestMonthlyValue:
    """Tests for time unit normalisation."""

    @pytest.mark.parametrize(
        ("unit", "expected"),
        [
            (TimeUnit.PER_DAY, 300.0),
            (TimeUnit.PER_WEEK, 10 * 52 / 12),
            (TimeUnit.PER_MONTH, 10.0),
            (TimeUnit.PER_YEAR, 10 / 12),
            (None, 10.0),
        ],
    )
    def test_multipliers(self, unit: TimeUnit | None, expected: float) -> None:
        assert monthly_value(10, unit) == pytest.approx(expected)

    def test_absent_value_is_zero(self) -> None:
        assert monthly_value(None, TimeUnit.PER_DAY) == 0.0


class TestRecurringNodes:
    """Tests for income and expense nodes."""

    def test_income_per_week(self) -> None:
        result = compute_graph([IncomeNode(id="pay", base_value=300, time_unit="per_week")], [])
        assert result.value_of("pay") == pytest.approx(1300)
        assert result.success

    def test_expense_per_year(self) -> None:
        result = compute_graph([ExpenseNode(id="ins", base_value=1200, time_unit="per_year")], [])
        assert result.value_of("ins") == pytest.approx(100)

    def test_missing_base_value(self) -> None:
        result = compute_graph([IncomeNode(id="pay", time_unit="per_day")], [])
        assert result.value_of("pay") == 0.0
        assert result.success


class TestCalcNodes:
    """Tests for calc nodes."""

    def test_formula_over_source_ids(self) -> None:
        nodes = [
            IncomeNode(id="salary", base_value=4000, time_unit="per_month"),
            ExpenseNode(id="rent", base_value=1500, time_unit="per_month"),
            CalcNode(id="left", formula="salary - rent"),
        ]
        edges = [_edge("salary", "left"), _edge("rent", "left")]
        result = compute_graph(nodes, edges)
        assert result.value_of("left") == 2500

    def test_parallel_edges_from_one_source_are_summed(self) -> None:
        nodes = [IncomeNode(id="a", base_value=10), CalcNode(id="c", formula="a * 2")]
        edges = [Edge(id="e1", source="a", target="c"), Edge(id="e2", source="a", target="c")]
        result = compute_graph(nodes, edges)
        assert result.value_of("c") == 40

    def test_missing_formula(self) -> None:
        result = compute_graph([CalcNode(id="c")], [])
        assert result.errors == {"c": "Missing formula"}
        assert result.value_of("c") is None

    def test_unbound_variable_fails_only_that_node(self) -> None:
        nodes = [IncomeNode(id="a", base_value=1), CalcNode(id="c", formula="a + b"), IncomeNode(id="d", base_value=2)]
        result = compute_graph(nodes, [_edge("a", "c")])
        assert result.errors == {"c": "Unknown variable: b"}
        assert result.value_of("d") == 2

    def test_syntax_error(self) -> None:
        result = compute_graph([CalcNode(id="c", formula="(1 + 2")], [])
        assert result.errors["c"] == "Mismatched parentheses"

    def test_failure_propagates_as_zero_downstream(self) -> None:
        nodes = [CalcNode(id="bad", formula="nope"), CalcNode(id="next", formula="bad + 1")]
        result = compute_graph(nodes, [_edge("bad", "next")])
        assert "bad" in result.errors
        assert result.value_of("next") == 1


class TestAssetNodes:
    """Tests for asset nodes."""

    def test_compounding_matches_annuity(self) -> None:
        nodes = [IncomeNode(id="save", base_value=100), AssetNode(id="fund", interest_rate_annual=0.12)]
        result = compute_graph(nodes, [_edge("save", "fund")])
        fund = result.get_node("fund")

        assert fund.computed_value == pytest.approx(_annuity(100, 0.12))
        assert fund.timeseries is not None
        assert len(fund.timeseries) == 120
        assert all(b > a for a, b in zip(fund.timeseries, fund.timeseries[1:], strict=False))
        assert fund.timeseries[0] == 100
        assert fund.timeseries[-1] == fund.computed_value

    def test_contributions_are_summed(self) -> None:
        nodes = [
            IncomeNode(id="a", base_value=60),
            IncomeNode(id="b", base_value=40),
            AssetNode(id="fund", interest_rate_annual=0.0),
        ]
        result = compute_graph(nodes, [_edge("a", "fund"), _edge("b", "fund")])
        assert result.value_of("fund") == pytest.approx(100 * 120)

    def test_missing_rate_is_zero(self) -> None:
        nodes = [IncomeNode(id="a", base_value=10), AssetNode(id="fund")]
        result = compute_graph(nodes, [_edge("a", "fund")])
        assert result.value_of("fund") == pytest.approx(1200)

    def test_no_inputs(self) -> None:
        result = compute_graph([AssetNode(id="fund", interest_rate_annual=0.05)], [])
        fund = result.get_node("fund")
        assert fund.computed_value == 0
        assert fund.timeseries == [0.0] * 120


class TestOutputNodes:
    """Tests for output nodes."""

    @staticmethod
    def _graph(target: float) -> tuple[list, list[Edge]]:
        nodes = [
            IncomeNode(id="save", base_value=100),
            AssetNode(id="fund", interest_rate_annual=0.0),
            OutputNode(id="goal", target_amount=target),
        ]
        return nodes, [_edge("save", "fund"), _edge("fund", "goal")]

    def test_month_reached(self) -> None:
        result = compute_graph(*self._graph(1000))
        assert result.value_of("goal") == 10

    def test_reached_in_first_month(self) -> None:
        result = compute_graph(*self._graph(50))
        assert result.value_of("goal") == 1

    def test_unreachable(self) -> None:
        result = compute_graph(*self._graph(1_000_000))
        assert result.value_of("goal") == -1
        assert result.success

    def test_combines_series(self) -> None:
        nodes = [
            IncomeNode(id="a", base_value=100),
            IncomeNode(id="b", base_value=50),
            AssetNode(id="fa"),
            AssetNode(id="fb"),
            OutputNode(id="goal", target_amount=1500),
        ]
        edges = [_edge("a", "fa"), _edge("b", "fb"), _edge("fa", "goal"), _edge("fb", "goal")]
        result = compute_graph(nodes, edges)
        assert result.value_of("goal") == 10

    def test_sources_without_series_are_skipped(self) -> None:
        nodes = [
            IncomeNode(id="a", base_value=100),
            AssetNode(id="fund"),
            OutputNode(id="goal", target_amount=300),
        ]
        edges = [_edge("a", "fund"), _edge("a", "goal"), _edge("fund", "goal")]
        result = compute_graph(nodes, edges)
        assert result.value_of("goal") == 3

    def test_missing_target(self) -> None:
        nodes, edges = self._graph(0)
        nodes[-1] = OutputNode(id="goal")
        result = compute_graph(nodes, edges)
        assert result.errors == {"goal": "Missing target amount"}

    def test_missing_timeseries(self) -> None:
        nodes = [IncomeNode(id="a", base_value=1), OutputNode(id="goal", target_amount=5)]
        result = compute_graph(nodes, [_edge("a", "goal")])
        assert result.errors == {"goal": "Missing asset timeseries"}
        goal = result.get_node("goal")
        assert goal.computed_value is None
        assert goal.timeseries is None


class TestAuxiliaryNodes:
    """Tests for value and binary arithmetic nodes."""

    def test_value_node(self) -> None:
        result = compute_graph([ValueNode(id="v", base_value=7.5), ValueNode(id="w")], [])
        assert result.value_of("v") == 7.5
        assert result.value_of("w") == 0

    @pytest.mark.parametrize(
        ("node_cls", "expected"),
        [(AddNode, 12), (SubtractNode, 8), (MultiplyNode, 20), (DivideNode, 5)],
    )
    def test_untagged_edges_fill_ports_in_order(self, node_cls: type, expected: float) -> None:
        nodes = [ValueNode(id="x", base_value=10), ValueNode(id="y", base_value=2), node_cls(id="op")]
        result = compute_graph(nodes, [_edge("x", "op"), _edge("y", "op")])
        assert result.value_of("op") == expected

    def test_tagged_ports(self) -> None:
        nodes = [ValueNode(id="x", base_value=10), ValueNode(id="y", base_value=2), SubtractNode(id="op")]
        edges = [_edge("x", "op", target_port="b"), _edge("y", "op", target_port="a")]
        result = compute_graph(nodes, edges)
        assert result.value_of("op") == -8

    def test_untagged_edge_fills_remaining_port(self) -> None:
        nodes = [ValueNode(id="x", base_value=10), ValueNode(id="y", base_value=2), DivideNode(id="op")]
        edges = [_edge("x", "op"), _edge("y", "op", target_port="a")]
        result = compute_graph(nodes, edges)
        assert result.value_of("op") == pytest.approx(0.2)

    def test_divide_by_zero(self) -> None:
        nodes = [ValueNode(id="x", base_value=1), ValueNode(id="y", base_value=0), DivideNode(id="op")]
        result = compute_graph(nodes, [_edge("x", "op"), _edge("y", "op")])
        assert result.value_of("op") == math.inf

    def test_missing_operand(self) -> None:
        nodes = [ValueNode(id="x", base_value=1), AddNode(id="op")]
        result = compute_graph(nodes, [_edge("x", "op")])
        assert result.errors == {"op": "Missing input port 'b'"}

    def test_too_many_inputs(self) -> None:
        nodes = [ValueNode(id=n, base_value=1) for n in "xyz"] + [AddNode(id="op")]
        result = compute_graph(nodes, [_edge(n, "op") for n in "xyz"])
        assert result.errors == {"op": "Too many inputs for add node"}

    def test_unknown_port(self) -> None:
        nodes = [ValueNode(id="x", base_value=1), AddNode(id="op")]
        result = compute_graph(nodes, [_edge("x", "op", target_port="c")])
        assert result.errors == {"op": "Unknown input port 'c'"}


class TestGraphStructure:
    """Tests for ordering, cycles and graph-level behaviour."""

    def test_one_output_node_per_input_node(self) -> None:
        nodes = [CalcNode(id="c", formula="a"), IncomeNode(id="a", base_value=1), IncomeNode(id="lonely")]
        result = compute_graph(nodes, [_edge("a", "c")])
        assert {n.id for n in result.nodes} == {"a", "c", "lonely"}
        assert len(result.nodes) == 3
        assert result.value_of("c") == 1

    def test_edges_with_unknown_endpoints_ignored(self) -> None:
        nodes = [IncomeNode(id="a", base_value=1), AssetNode(id="fund")]
        edges = [_edge("a", "fund"), _edge("ghost", "fund"), _edge("a", "nowhere")]
        result = compute_graph(nodes, edges)
        assert result.success
        assert result.value_of("fund") == pytest.approx(120)

    def test_cycle_fails_every_node(self) -> None:
        nodes = [
            IncomeNode(id="free", base_value=100),
            CalcNode(id="a", formula="b"),
            CalcNode(id="b", formula="a"),
        ]
        result = compute_graph(nodes, [_edge("a", "b"), _edge("b", "a")])
        assert result.errors == {"free": CYCLE_ERROR, "a": CYCLE_ERROR, "b": CYCLE_ERROR}
        assert all(node.computed_value is None for node in result.nodes)

    def test_self_loop_is_a_cycle(self) -> None:
        nodes = [IncomeNode(id="a", base_value=1), CalcNode(id="c", formula="c")]
        result = compute_graph(nodes, [_edge("c", "c")])
        assert result.errors == {"a": CYCLE_ERROR, "c": CYCLE_ERROR}

    def test_cycle_clears_stale_values(self) -> None:
        nodes = [CalcNode(id="a", formula="b", computed_value=3.0), CalcNode(id="b", formula="a")]
        result = compute_graph(nodes, [_edge("a", "b"), _edge("b", "a")])
        assert result.value_of("a") is None

    def test_input_not_mutated(self) -> None:
        nodes = [IncomeNode(id="save", base_value=100), AssetNode(id="fund", interest_rate_annual=0.1)]
        edges = [_edge("save", "fund")]
        compute_graph(nodes, edges)
        assert nodes[0].computed_value is None
        assert nodes[1].timeseries is None

    def test_idempotent(self) -> None:
        nodes = [
            IncomeNode(id="save", base_value=100),
            AssetNode(id="fund", interest_rate_annual=0.1),
            OutputNode(id="goal", target_amount=5000),
            CalcNode(id="bad", formula="?"),
        ]
        edges = [_edge("save", "fund"), _edge("fund", "goal")]
        assert compute_graph(nodes, edges) == compute_graph(nodes, edges)

    def test_empty_graph(self) -> None:
        result = compute_graph([], [])
        assert result.nodes == []
        assert result.success


class TestExampleDocument:
    """End-to-end computation of the bundled example."""

    def test_coffee_to_house(self) -> None:
        graph = load_graph(EXAMPLES_DIR / "coffee_to_house.json")
        result = compute_graph_data(graph)

        assert result.success
        assert result.value_of("coffee") == 150
        assert result.value_of("savings") == 2350
        fund = result.get_node("house_fund")
        assert fund.computed_value == pytest.approx(_annuity(2350, 0.05))
        expected_month = next(i + 1 for i, v in enumerate(fund.timeseries) if v >= 60000)
        assert result.value_of("house") == expected_month
