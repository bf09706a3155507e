"""
Tool Catalog Module

This module describes the tools the orchestrator can schedule. The tools
themselves (file I/O, git, web search) are implemented elsewhere and are
handed to the orchestrator as a registry mapping tool names to callables.

The catalog provides:
- Canonical tool identifiers
- Speed/cost/purpose metadata
- Prerequisite rules (exists -> read -> edit)
- Ordering of function declarations around a plan
"""

from .catalog import (
    FILE_EXISTS,
    READ_FILE,
    WRITE_FILE,
    EDIT_FILE,
    LIST_FILES,
    SEARCH_FILES,
    WEB_SEARCH,
    GET_REPO_STATUS,
    COMMIT_CHANGES,
    MUTATING_TOOLS,
    TOOL_CATALOG,
    TOOL_NAMES,
    get_tool_info,
    is_mutating,
    ensure_prerequisites,
    filter_tools_for_plan,
)

__all__ = [
    # Identifiers
    "FILE_EXISTS",
    "READ_FILE",
    "WRITE_FILE",
    "EDIT_FILE",
    "LIST_FILES",
    "SEARCH_FILES",
    "WEB_SEARCH",
    "GET_REPO_STATUS",
    "COMMIT_CHANGES",
    "MUTATING_TOOLS",

    # Catalog
    "TOOL_CATALOG",
    "TOOL_NAMES",
    "get_tool_info",
    "is_mutating",
    "ensure_prerequisites",
    "filter_tools_for_plan",
]
