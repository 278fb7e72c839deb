"""
Tests for build_graph_from_step_data: bucketing, pruning, normalization,
node attributes and the step-based edge fallback.

Turn-chain edges are covered in test_graph_turns.py.
"""

import random

import pytest

from trace_inspector.models import GraphEdge, ObservationLevel
from trace_inspector.tracing.graph_builder import (
    EdgeSet,
    assign_failure_node_names,
    build_graph_from_step_data,
    compute_forced_parents,
    generate_step_edges,
)
from trace_inspector.tracing.graph_builder.context import ChronoEntry, GraphContext
from trace_inspector.tracing.serialization import graph_result_to_dict
from trace_inspector.tracing.turn_windows import build_turn_windows

from tests.builders import ObservationBuilder as Obs


def _start(step=0, at=0):
    return Obs("start").with_node("__start__", step).of_type("LANGGRAPH_SYSTEM").at(at)


def _edges(result) -> set[tuple[str, str]]:
    return {(e.from_, e.to) for e in result.graph.edges}


def _node(result, node_id):
    return next(n for n in result.graph.nodes if n.id == node_id)


class TestBucketingAndPruning:
    """Tests for node collection and container pruning"""

    def test_empty_input(self):
        result = build_graph_from_step_data([])

        assert result.graph.nodes == []
        assert result.graph.edges == []
        assert result.node_to_observations_map == {}

    def test_container_only_step_disappears(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("a").with_node("agent", 1).at(10).build(),
                Obs("c").with_node("session.parser.turn_001.tool_calls", 2).at(20).build(),
            ]
        )

        assert [n.id for n in result.graph.nodes] == ["__start__", "agent", "__end__"]
        assert result.node_to_observations_map == {"agent": ["a"]}
        assert _edges(result) == {("__start__", "agent"), ("agent", "__end__")}

    def test_unstepped_container_pruned_from_map(self):
        result = build_graph_from_step_data(
            [
                Obs("a").with_node("agent", 1).at(0).build(),
                Obs("c").with_node("session.parser.turn_001").at(5).build(),
            ]
        )
        assert "parser.turn_001" not in result.node_to_observations_map
        assert "session.parser.turn_001" not in result.node_to_observations_map

    def test_observations_without_node_ignored(self):
        result = build_graph_from_step_data(
            [Obs("a").with_node("agent", 1).build(), Obs("b").at(5).build()]
        )
        assert result.node_to_observations_map == {"agent": ["a"]}

    def test_unstepped_node_is_kept_without_step_edges(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("a").with_node("agent", 1).at(10).build(),
                Obs("u").with_node("helper").at(20).build(),
            ]
        )

        assert "helper" in [n.id for n in result.graph.nodes]
        assert not any("helper" in edge for edge in _edges(result))

    def test_map_collects_all_observations_of_a_node(self):
        result = build_graph_from_step_data(
            [
                Obs("a2").with_node("agent", 3).at(30).build(),
                Obs("a1").with_node("agent", 1).at(10).build(),
            ]
        )
        assert result.node_to_observations_map == {"agent": ["a1", "a2"]}


class TestFailureDisambiguation:
    def test_failures_numbered_chronologically(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("f2").named("session.failure").with_node("agent", 2).at(20).build(),
                Obs("f1").named("session.failure").with_node("agent", 1).at(10).build(),
            ]
        )

        assert result.node_to_observations_map == {
            "session.failure.1": ["f1"],
            "session.failure.2": ["f2"],
        }
        assert ("session.failure.1", "session.failure.2") in _edges(result)

    def test_failure_without_node_still_becomes_a_node(self):
        result = build_graph_from_step_data(
            [Obs("f").named("session.failure").at(0).build()]
        )
        assert result.node_to_observations_map == {"session.failure.1": ["f"]}

    def test_assign_failure_node_names(self):
        ordered = [
            Obs("x").named("agent").build(),
            Obs("f1").named("session.failure").build(),
            Obs("f2").named("session.failure").build(),
        ]
        assert assign_failure_node_names(ordered) == {
            "f1": "session.failure.1",
            "f2": "session.failure.2",
        }


class TestNormalization:
    """Parser nodes merge when they normalize to the same display id"""

    def _merged(self):
        return build_graph_from_step_data(
            [
                _start().build(),
                Obs("tool").with_node("web_search.4", 1).at(10).build(),
                Obs("r1")
                .with_node("session.parser.turn_001.tool_result.web_search.4", 3)
                .at(30)
                .build(),
                Obs("r2")
                .with_node("session.parser.turn_002.tool_result.web_search.4", 5)
                .at(50)
                .build(),
            ]
        )

    def test_merged_node_keeps_all_observations(self):
        result = self._merged()
        assert result.node_to_observations_map["parser.web_search.4"] == ["r1", "r2"]
        assert [n.id for n in result.graph.nodes].count("parser.web_search.4") == 1

    def test_merged_node_sits_at_minimum_step(self):
        result = self._merged()
        # step 3 is last once step 5 merged into it
        assert ("web_search.4", "parser.web_search.4") in _edges(result)

    def test_parser_label_and_title_use_first_raw_name(self):
        node = _node(self._merged(), "parser.web_search.4")

        assert node.type == "PARSER"
        assert node.label == "Turn 1\nweb_search result #4"
        assert node.title == "session.parser.turn_001.tool_result.web_search.4"


class TestGraphNodeAttributes:
    def test_system_nodes(self):
        result = build_graph_from_step_data([_start().build()])
        start = _node(result, "__start__")
        end = _node(result, "__end__")

        assert (start.label, start.type) == ("__start__", "LANGGRAPH_SYSTEM")
        assert (end.label, end.type) == ("__end__", "LANGGRAPH_SYSTEM")

    def test_regular_node_takes_first_observation_type(self):
        result = build_graph_from_step_data(
            [
                Obs("g").with_node("llm", 1).of_type("GENERATION").at(0).build(),
                Obs("s").with_node("llm", 2).of_type("SPAN").at(5).build(),
            ]
        )
        node = _node(result, "llm")

        assert node.type == "GENERATION"
        assert node.label == "llm"
        assert node.title is None
        assert node.level is ObservationLevel.DEFAULT

    def test_level_and_title_from_most_severe_messages(self):
        result = build_graph_from_step_data(
            [
                Obs("w").with_node("agent", 1).with_level("WARNING", "slow").at(0).build(),
                Obs("e1").with_node("agent", 2).with_level("ERROR", "boom").at(5).build(),
                Obs("e2").with_node("agent", 3).with_level("ERROR", "again").at(9).build(),
            ]
        )
        node = _node(result, "agent")

        assert node.level is ObservationLevel.ERROR
        assert node.title == "boom"

    def test_warning_title_when_no_error_message(self):
        result = build_graph_from_step_data(
            [
                Obs("w").with_node("agent", 1).with_level("WARNING", "slow").at(0).build(),
                Obs("e").with_node("agent", 2).with_level("ERROR").at(5).build(),
            ]
        )
        node = _node(result, "agent")

        assert node.level is ObservationLevel.ERROR
        assert node.title == "slow"

    def test_parser_error_message_wins_over_raw_title(self):
        result = build_graph_from_step_data(
            [
                Obs("p")
                .with_node("session.parser.turn_002.tool_call.bash.1", 1)
                .with_level("ERROR", "bad call")
                .build()
            ]
        )
        node = _node(result, "parser.turn_002.tool_call.bash.1")

        assert node.title == "bad call"
        assert node.label == "Turn 2\nbash call #1"


class TestStepFallback:
    """Traces without turn markers use the bipartite step layout"""

    def test_bipartite_join_between_steps(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("a").with_node("a", 1).at(10).build(),
                Obs("b").with_node("b", 1).at(11).build(),
                Obs("c").with_node("c", 2).at(20).build(),
            ]
        )
        assert _edges(result) == {
            ("__start__", "a"),
            ("__start__", "b"),
            ("a", "c"),
            ("b", "c"),
            ("c", "__end__"),
        }

    def test_forced_parent_links_tool_result(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("t").with_node("web_search.4", 1).at(10).build(),
                Obs("r")
                .with_node("session.parser.turn_001.tool_result.web_search.4", 1)
                .at(20)
                .build(),
            ]
        )
        edges = _edges(result)

        assert ("web_search.4", "parser.web_search.4") in edges
        assert ("parser.web_search.4", "__end__") not in edges

    def test_structured_output_attached_to_latest_kernel(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("k1").named("a - kernel.plan").with_node("planner", 1).at(10).build(),
                Obs("k2").named("a - kernel.act").with_node("actor", 2).at(20).build(),
                Obs("so")
                .with_node("session.parser.turn_001.structured_output", 3)
                .at(30)
                .build(),
                Obs("x").with_node("other", 3).at(31).build(),
            ]
        )
        edges = _edges(result)

        assert ("actor", "parser.turn_001.structured_output") in edges
        assert ("planner", "parser.turn_001.structured_output") not in edges

    def test_edges_are_unique(self):
        result = build_graph_from_step_data(
            [
                _start().build(),
                Obs("a1").with_node("a", 1).at(10).build(),
                Obs("a2").with_node("a", 1).at(11).build(),
            ]
        )
        assert result.graph.edges == [
            GraphEdge(from_="__start__", to="a"),
            GraphEdge(from_="a", to="__end__"),
        ]


class TestGenerateStepEdges:
    def test_last_step_goes_to_end(self):
        edges = generate_step_edges(
            {0: ["__start__"], 1: ["a", "b"], 2: ["__end__"]}
        )
        assert edges == [
            ("__start__", "a"),
            ("__start__", "b"),
            ("a", "__end__"),
            ("b", "__end__"),
        ]

    def test_steps_need_not_be_contiguous(self):
        assert generate_step_edges({5: ["x"], 1: ["w"]}) == [
            ("w", "x"),
            ("x", "__end__"),
        ]

    def test_empty(self):
        assert generate_step_edges({}) == []


class TestComputeForcedParents:
    def test_turn_containment_and_kernel_structured_output(self):
        context = GraphContext(
            node_observations={
                "session.turn.1": ["t"],
                "planner": ["k"],
                "parser.turn_001.structured_output": ["so"],
            },
            step_nodes={},
            chrono=[
                ChronoEntry("session.turn.1", "session.turn.1", 0),
                ChronoEntry("a - kernel.plan", "planner", 5),
                ChronoEntry(None, "parser.turn_001.structured_output", 10),
            ],
            turns=build_turn_windows([(0, "session.turn.1")]),
        )

        assert compute_forced_parents(context) == {
            "planner": "session.turn.1",
            "parser.turn_001.structured_output": "planner",
        }

    def test_missing_parent_node_is_skipped(self):
        context = GraphContext(
            node_observations={"parser.bash.1": ["r"]},
            step_nodes={},
            chrono=[ChronoEntry(None, "parser.bash.1", 0)],
        )
        assert compute_forced_parents(context) == {}


class TestEdgeSet:
    """Tests for the rendering invariants"""

    @pytest.mark.parametrize(
        "from_,to",
        [
            ("a", "a"),
            ("a", "__start__"),
            ("__end__", "a"),
            ("parser.bash.1", "a"),
            ("", "a"),
            ("a", None),
        ],
    )
    def test_rejected_edges(self, from_, to):
        edges = EdgeSet()
        assert edges.add(from_, to) is False
        assert len(edges) == 0

    def test_deduplicates_and_keeps_insertion_order(self):
        edges = EdgeSet()
        edges.add("b", "c")
        edges.add("a", "b")
        edges.add("b", "c")

        assert list(edges) == [("b", "c"), ("a", "b")]
        assert ("a", "b") in edges

    def test_discard_into(self):
        edges = EdgeSet()
        for source in ("a", "b", "c"):
            edges.add(source, "__end__")
        edges.add("a", "b")

        edges.discard_into("__end__", keep_from="c")

        assert list(edges) == [("c", "__end__"), ("a", "b")]


class TestDeterminism:
    def test_output_independent_of_input_order(self):
        observations = [
            _start().build(),
            Obs("a").with_node("agent", 1).at(10).build(),
            Obs("b").with_node("tool.web_search.result.call_1", 2).at(20).build(),
            Obs("c")
            .with_node("session.parser.turn_001.tool_result.web_search.1", 2)
            .at(20)
            .build(),
            Obs("d").named("session.failure").with_node("agent", 3).at(30).build(),
            Obs("e").with_node("agent", 4).at(40).build(),
        ]
        expected = graph_result_to_dict(build_graph_from_step_data(observations))

        rng = random.Random(11)
        for _ in range(5):
            shuffled = observations[:]
            rng.shuffle(shuffled)
            result = graph_result_to_dict(build_graph_from_step_data(shuffled))
            assert result == expected
