"""
Tool Catalog

Metadata for every tool the orchestrator may schedule. Tool implementations
live outside this package; the catalog only knows their names, relative
speed/cost, what they are for, and which tools must run before them.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


# ============================================================================
# TOOL IDENTIFIERS
# ============================================================================

FILE_EXISTS = "file_exists"
READ_FILE = "read_file"
WRITE_FILE = "write_file"
EDIT_FILE = "edit_file"
LIST_FILES = "list_files"
SEARCH_FILES = "search_files"
WEB_SEARCH = "web_search"
GET_REPO_STATUS = "get_repo_status"
COMMIT_CHANGES = "commit_changes"

MUTATING_TOOLS = frozenset({WRITE_FILE, EDIT_FILE, COMMIT_CHANGES})

# Tools that may legitimately appear more than once in a sequence
# (reading a target and a reference page)
REPEATABLE_TOOLS = frozenset({READ_FILE})


# ============================================================================
# CATALOG
# ============================================================================

TOOL_CATALOG: Dict[str, Dict[str, Any]] = {
    FILE_EXISTS: {
        "speed": "instant",
        "cost": "free",
        "purpose": "Check if file/URL exists before reading",
        "prereq_for": [READ_FILE, EDIT_FILE],
    },
    LIST_FILES: {
        "speed": "instant",
        "cost": "free",
        "purpose": "Discover files in directory",
        "prereq_for": [READ_FILE],
    },
    SEARCH_FILES: {
        "speed": "fast",
        "cost": "free",
        "purpose": "Find content across files (grep-like)",
        "prereq_for": [READ_FILE, EDIT_FILE],
    },
    READ_FILE: {
        "speed": "fast",
        "cost": "free",
        "purpose": "Read file contents",
        "prereq_for": [EDIT_FILE, WRITE_FILE],
    },
    EDIT_FILE: {
        "speed": "slow",
        "cost": "api_call",
        "purpose": "Modify existing file content",
        "prereq_for": [COMMIT_CHANGES],
    },
    WRITE_FILE: {
        "speed": "fast",
        "cost": "free",
        "purpose": "Create or overwrite entire file",
        "prereq_for": [COMMIT_CHANGES],
    },
    COMMIT_CHANGES: {
        "speed": "slow",
        "cost": "git_op",
        "purpose": "Git add/commit/push",
        "prereq_for": [],
    },
    WEB_SEARCH: {
        "speed": "slow",
        "cost": "api_call",
        "purpose": "Search internet for current information",
        "prereq_for": [],
    },
    GET_REPO_STATUS: {
        "speed": "instant",
        "cost": "free",
        "purpose": "Check git status",
        "prereq_for": [COMMIT_CHANGES],
    },
}

TOOL_NAMES = tuple(TOOL_CATALOG)


# ============================================================================
# HELPERS
# ============================================================================

def get_tool_info(tool_name: str) -> Optional[Dict[str, Any]]:
    """Get catalog metadata for a tool, or None if the tool is unknown."""
    return TOOL_CATALOG.get(tool_name)


def is_mutating(tool_name: str) -> bool:
    """True for tools that change the repository."""
    return tool_name in MUTATING_TOOLS


def ensure_prerequisites(sequence: Sequence[str]) -> List[str]:
    """
    Insert missing prerequisite tools and drop unknown or duplicate ones.

    edit_file needs read_file before it, and read_file needs file_exists.
    Repeated read_file calls are kept (target + reference page).

    Args:
        sequence: Tool names in planned order

    Returns:
        New sequence with prerequisites in place

    Example:
        >>> ensure_prerequisites(["edit_file"])
        ['file_exists', 'read_file', 'edit_file']
    """
    result: List[str] = []
    seen = set()

    for tool in sequence:
        if tool not in TOOL_CATALOG:
            logger.debug(f"Dropping unknown tool from sequence: {tool}")
            continue

        if tool == EDIT_FILE and READ_FILE not in seen:
            if FILE_EXISTS not in seen:
                result.append(FILE_EXISTS)
                seen.add(FILE_EXISTS)
            result.append(READ_FILE)
            seen.add(READ_FILE)

        if tool == READ_FILE and FILE_EXISTS not in seen:
            result.append(FILE_EXISTS)
            seen.add(FILE_EXISTS)

        if tool not in seen or tool in REPEATABLE_TOOLS:
            result.append(tool)
            seen.add(tool)

    return result


def filter_tools_for_plan(tool_definitions: List[Dict], tool_sequence: Sequence[str]) -> List[Dict]:
    """
    Order function declarations so the planned tools come first.

    All tools are kept so the model can still deviate from the plan.

    Args:
        tool_definitions: Function calling declarations (each with a "name")
        tool_sequence: Planned tool order

    Returns:
        Reordered copy of the declarations
    """
    if not tool_sequence:
        return list(tool_definitions)

    planned = set(tool_sequence)
    return sorted(tool_definitions, key=lambda tool: 0 if tool.get("name") in planned else 1)
