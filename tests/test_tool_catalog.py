"""
Unit Tests for the Tool Catalog

Tests catalog metadata, prerequisite insertion and declaration ordering.
"""

from tools import (
    TOOL_CATALOG,
    TOOL_NAMES,
    MUTATING_TOOLS,
    get_tool_info,
    is_mutating,
    ensure_prerequisites,
    filter_tools_for_plan,
)
from config import TOOL_DEFINITIONS, get_tool_by_name


class TestCatalog:
    """Test catalog contents."""

    def test_every_tool_declared(self):
        """Test each catalog tool has a function declaration."""
        declared = {tool["name"] for tool in TOOL_DEFINITIONS}
        assert declared == set(TOOL_NAMES)

    def test_metadata_fields(self):
        """Test metadata completeness."""
        for info in TOOL_CATALOG.values():
            assert {"speed", "cost", "purpose", "prereq_for"} <= set(info)

    def test_lookup(self):
        """Test lookups."""
        assert get_tool_info("read_file")["purpose"] == "Read file contents"
        assert get_tool_info("rm_rf") is None
        assert get_tool_by_name("edit_file")["name"] == "edit_file"

    def test_mutating_tools(self):
        """Test mutating classification."""
        assert MUTATING_TOOLS == {"write_file", "edit_file", "commit_changes"}
        assert is_mutating("edit_file")
        assert not is_mutating("read_file")


class TestEnsurePrerequisites:
    """Test prerequisite insertion."""

    def test_edit_gains_exists_and_read(self):
        """Test edit needs read needs exists."""
        assert ensure_prerequisites(["edit_file"]) == ["file_exists", "read_file", "edit_file"]

    def test_read_gains_exists(self):
        """Test read needs exists."""
        assert ensure_prerequisites(["read_file"]) == ["file_exists", "read_file"]

    def test_complete_sequence_unchanged(self):
        """Test sequences that already satisfy prerequisites."""
        sequence = ["file_exists", "read_file", "edit_file"]
        assert ensure_prerequisites(sequence) == sequence

    def test_repeated_reads_kept(self):
        """Test target + reference reads survive."""
        sequence = ["file_exists", "read_file", "read_file", "write_file"]
        assert ensure_prerequisites(sequence) == sequence

    def test_prerequisites_precede_out_of_order_tools(self):
        """Test a read listed after the edit still gets one placed before it."""
        assert ensure_prerequisites(["edit_file", "read_file"]) == [
            "file_exists", "read_file", "edit_file", "read_file",
        ]
        assert ensure_prerequisites(["read_file", "file_exists"]) == ["file_exists", "read_file"]

    def test_duplicates_and_unknown_dropped(self):
        """Test duplicate non-repeatable tools and unknown tools are removed."""
        assert ensure_prerequisites(["list_files", "list_files", "teleport"]) == ["list_files"]


class TestFilterToolsForPlan:
    """Test declaration ordering."""

    def test_planned_tools_first(self):
        """Test planned tools lead and nothing is removed."""
        ordered = filter_tools_for_plan(TOOL_DEFINITIONS, ["commit_changes", "get_repo_status"])

        assert {t["name"] for t in ordered[:2]} == {"commit_changes", "get_repo_status"}
        assert len(ordered) == len(TOOL_DEFINITIONS)

    def test_empty_plan_keeps_order(self):
        """Test no plan keeps the declaration order."""
        assert filter_tools_for_plan(TOOL_DEFINITIONS, []) == list(TOOL_DEFINITIONS)
