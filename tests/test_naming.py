from __future__ import annotations

from leapter_adapter.naming import (
    DEFAULT_TOOL_NAME,
    MAX_TOOL_NAME_LENGTH,
    deduplicate_tool_names,
    sanitize_tool_name,
)


def test_sanitize_tool_name():
    assert sanitize_tool_name("My Blueprint!") == "my_blueprint"
    assert sanitize_tool_name("Summarize   Text\tNow") == "summarize_text_now"
    assert sanitize_tool_name("keep-dashes_and_123") == "keep-dashes_and_123"


def test_sanitize_falls_back_to_default():
    assert sanitize_tool_name("!!!") == DEFAULT_TOOL_NAME
    assert sanitize_tool_name("") == DEFAULT_TOOL_NAME


def test_sanitize_truncates():
    assert len(sanitize_tool_name("x" * 100)) == MAX_TOOL_NAME_LENGTH


def test_deduplicate_in_encounter_order():
    assert deduplicate_tool_names(["run", "run", "other", "run"]) == [
        "run",
        "run_1",
        "other",
        "run_2",
    ]


def test_deduplicate_keeps_long_names_distinct():
    name = "y" * MAX_TOOL_NAME_LENGTH
    result = deduplicate_tool_names([name, name, name])
    assert len(set(result)) == len(result)
    assert result[1] == "y" * (MAX_TOOL_NAME_LENGTH - 2) + "_1"
    assert all(len(value) <= MAX_TOOL_NAME_LENGTH for value in result)


def test_deduplicate_skips_names_already_taken():
    result = deduplicate_tool_names(["run", "run", "run_1"])
    assert result == ["run", "run_1", "run_1_1"]
    assert len(set(result)) == len(result)


def test_deduplicate_avoids_reserved_names():
    assert deduplicate_tool_names(["leapter_demo", "run"], reserved=["leapter_demo"]) == [
        "leapter_demo_1",
        "run",
    ]
