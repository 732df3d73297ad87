"""
Unit Tests for agent preset import/export
"""

import json

import pytest

from heavychat.core import (
    AgentGraph,
    InvalidPresetFormat,
    ModelTier,
    default_agents,
    load_preset,
    parse_preset,
    save_preset,
)


VALID_PRESET = [
    {
        "id": "a",
        "name": "Researcher",
        "systemInstruction": "Find facts.",
        "contextMessages": 3,
        "model": "pro",
        "order": 1,
        "connections": ["b"],
        "position": {"x": 10, "y": 20},
    },
    {
        "id": "b",
        "name": "Writer",
        "systemInstruction": "",
        "order": 2,
    },
]


class TestParsePreset:
    """Tests for preset validation"""

    def test_valid_preset(self):
        graph = parse_preset(json.dumps(VALID_PRESET))

        researcher = graph.get("a")
        assert researcher.name == "Researcher"
        assert researcher.context_messages == 3
        assert researcher.model == ModelTier.PRO
        assert researcher.connections == ("b",)
        assert researcher.position == (10.0, 20.0)

    def test_missing_fields_take_defaults(self):
        writer = parse_preset(VALID_PRESET).get("b")

        assert writer.system_instruction == ""
        assert writer.context_messages == 0
        assert writer.model == ModelTier.FLASH
        assert writer.connections == ()

    def test_order_defaults_to_one(self):
        graph = parse_preset([{"id": "x", "name": "X", "systemInstruction": ""}])

        assert graph.get("x").order == 1

    def test_bad_numbers_and_model_are_coerced(self):
        graph = parse_preset([{
            "id": "x", "name": "X", "systemInstruction": "s",
            "contextMessages": "lots", "order": 0, "model": "ultra",
        }])

        node = graph.get("x")
        assert node.context_messages == 0
        assert node.order == 1
        assert node.model == ModelTier.FLASH

    @pytest.mark.parametrize("element", [
        {"name": "No id", "systemInstruction": "s"},
        {"id": "", "name": "Empty id", "systemInstruction": "s"},
        {"id": "x", "systemInstruction": "s"},
        {"id": "x", "name": "No instruction"},
        "not an object",
    ])
    def test_one_bad_element_rejects_everything(self, element):
        with pytest.raises(InvalidPresetFormat):
            parse_preset(VALID_PRESET + [element])

    def test_non_array_is_rejected(self):
        with pytest.raises(InvalidPresetFormat):
            parse_preset('{"id": "a"}')

    def test_malformed_json_is_rejected(self):
        with pytest.raises(InvalidPresetFormat):
            parse_preset("[{not json")

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(InvalidPresetFormat):
            parse_preset(VALID_PRESET + [dict(VALID_PRESET[1])])

    def test_edges_against_order_are_dropped_on_load(self):
        graph = parse_preset([
            {"id": "a", "name": "A", "systemInstruction": "s", "order": 2, "connections": ["b"]},
            {"id": "b", "name": "B", "systemInstruction": "s", "order": 1, "connections": ["c"]},
            {"id": "c", "name": "C", "systemInstruction": "s", "order": 1},
            {"id": "d", "name": "D", "systemInstruction": "s", "order": 1, "connections": ["a", "ghost"]},
        ])

        assert graph.edges() == [("d", "a")]
        assert all(graph.get(s).order < graph.get(t).order for s, t in graph.edges())


class TestPresetFiles:
    """Tests for reading and writing preset files"""

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "multi-agent-preset.json"

        save_preset(default_agents(), path)
        loaded = load_preset(path)

        assert loaded == default_agents()
        assert json.loads(path.read_text())[0]["systemInstruction"].startswith("You are a meticulous analyst")

    def test_saving_empty_graph_fails(self, tmp_path):
        with pytest.raises(ValueError):
            save_preset(AgentGraph(), tmp_path / "empty.json")

    def test_missing_file_is_invalid(self, tmp_path):
        with pytest.raises(InvalidPresetFormat):
            load_preset(tmp_path / "missing.json")


class TestDefaultAgents:
    """Tests for the built-in agent graph"""

    def test_three_specialists_feed_synthesizer(self):
        graph = default_agents()

        assert [node.name for node in graph] == ["Analyst", "Creative", "Critic", "Synthesizer"]
        assert [node.id for node in graph.terminal_nodes()] == ["default-4"]
        assert [p.name for p in graph.parents("default-4")] == ["Analyst", "Creative", "Critic"]
        assert graph.sanitized() is graph
