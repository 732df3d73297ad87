"""
Unit Tests for rank scheduling
"""

from heavychat.core import AgentGraph, schedule_ranks

from conftest import make_node


class TestScheduleRanks:
    """Tests for grouping agents by order"""

    def test_empty_graph_yields_no_ranks(self):
        assert schedule_ranks(AgentGraph()) == []

    def test_ranks_ascend_and_are_uniform(self):
        graph = AgentGraph([
            make_node("c", 3),
            make_node("a", 1),
            make_node("b", 2),
            make_node("a2", 1),
        ])

        ranks = schedule_ranks(graph)

        assert [rank.order for rank in ranks] == [1, 2, 3]
        for rank in ranks:
            assert {node.order for node in rank.nodes} == {rank.order}

    def test_non_contiguous_orders(self):
        graph = AgentGraph([make_node("a", 1), make_node("b", 7), make_node("c", 3)])

        assert [rank.order for rank in schedule_ranks(graph)] == [1, 3, 7]

    def test_group_keeps_snapshot_order(self):
        graph = AgentGraph([make_node("z", 1), make_node("m", 1), make_node("a", 1)])

        (rank,) = schedule_ranks(graph)

        assert [node.id for node in rank.nodes] == ["z", "m", "a"]
