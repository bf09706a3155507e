"""
Prompt templates and tool definitions for the request router.

This module contains:
- The classifier prompt (single-label intent classification)
- The routing prompt (JSON routing plan generation)
- Function calling tool definitions for the escalated attempt
- JSON schema for structured routing plans

All prompts should be maintained here (not hardcoded in core/ai).
"""

from typing import Dict

from .settings import INTENT_LABELS

# ============================================================================
# SYSTEM PROMPTS
# ============================================================================

SYSTEM_PROMPT = """You are Bot Sportello, a laid-back assistant that manages a repository of web pages and small browser games.

You can read, create and edit files in the repository, search its contents, search the web for current information, and commit changes.

Guidelines:
- Always check a file exists before reading it, and read it before editing it
- Prefer targeted edits over rewriting whole files
- Commit only after every edit has completed
- When unsure which file the user means, list or search files first"""

# ============================================================================
# CLASSIFIER PROMPT (Intent Classification)
# ============================================================================

CLASSIFIER_SYSTEM_PROMPT = (
    "You are a request classifier. Respond with only the classification "
    "category, nothing else."
)

CLASSIFIER_PROMPT = """Classify the following user request into ONE of these categories:

1. **CREATE_NEW** - User wants to create something new from scratch (new page, game, feature, content)
2. **EDIT_EXISTING** - User wants to change, fix, restyle or improve something that already exists
3. **READ_ONLY** - User wants information, wants to see/list/find something, or asks about history (including commit history)
4. **COMMIT** - User wants changes committed, pushed, saved to the repository or deployed
5. **CONVERSATION** - General chat, greeting, or discussion not requiring file operations

User request: "{message}"

Analyze the intent carefully:
- Questions about previous commits or logs are READ_ONLY, not COMMIT
- Bug fixes, styling issues, content changes → EDIT_EXISTING
- New content creation → CREATE_NEW
- General chat → CONVERSATION

Respond with ONLY one of these exact words: {labels}"""

# ============================================================================
# ROUTER PROMPT (Routing Plans)
# ============================================================================

ROUTER_SYSTEM_PROMPT = """You are a routing optimizer for a chat bot that manages files and creates content.
Your job is to analyze user requests and output a JSON routing plan.

AVAILABLE TOOLS (ordered by speed):
- file_exists: Instant check if path/URL exists
- list_files: Instant directory listing
- get_repo_status: Instant git status
- search_files: Fast grep across files
- read_file: Fast read file contents
- write_file: Fast create/overwrite file
- edit_file: SLOW - modifies existing file (needs read first)
- commit_changes: SLOW - git operations
- web_search: SLOW - internet search

ROUTING PRINCIPLES:
1. Always check file_exists before read_file or edit_file
2. Always read_file before edit_file (need to know current content)
3. For URLs like "{site_host}/{canonical_dir}/X.html" extract path "{canonical_dir}/X.html"
4. Batch similar operations (multiple reads, then multiple edits)
5. If unclear what file, use search_files or list_files first
6. commit_changes goes LAST after all edits complete
7. Use recently modified files for "it", "the page", "isn't working" references

INTENTS: edit | create | read | search | commit | chat

OUTPUT FORMAT (JSON only, no markdown):
{{
  "intent": "edit",
  "toolSequence": ["file_exists", "read_file", "edit_file"],
  "parameterHints": {{"file_exists": {{"path": "{canonical_dir}/game.html"}}}},
  "contextNeeded": ["file_content"],
  "confidence": 0.85,
  "reasoning": "Brief explanation",
  "clarifyFirst": false,
  "clarifyQuestion": null,
  "expectedIterations": 3
}}"""

ESCALATION_PROMPT = """The planned tool sequence for this request failed.

User request: "{message}"
{guidance}

Tool calls so far:
{history}

Decide which tools to call now to complete the request. You may use any available tool.
Return NO tool calls if the request cannot be completed."""

# ============================================================================
# TOOL DEFINITIONS (Function Calling)
# ============================================================================

TOOL_DEFINITIONS = [
    {
        "name": "file_exists",
        "description": "Checks whether a file or site URL exists in the repository. Accepts a path or a full site URL.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {
                    "type": "STRING",
                    "description": "Repository path (e.g., 'src/game.html') or site URL"
                }
            },
            "required": ["path"]
        }
    },
    {
        "name": "read_file",
        "description": "Reads the contents of a repository file.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {
                    "type": "STRING",
                    "description": "Repository path of the file to read"
                }
            },
            "required": ["path"]
        }
    },
    {
        "name": "write_file",
        "description": "Creates a new file or overwrites an existing file with the given content.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {"type": "STRING", "description": "Repository path to write"},
                "content": {"type": "STRING", "description": "Full file content"}
            },
            "required": ["path", "content"]
        }
    },
    {
        "name": "edit_file",
        "description": "Modifies part of an existing file. The file should be read first.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "path": {"type": "STRING", "description": "Repository path to edit"},
                "old_text": {"type": "STRING", "description": "Exact text to replace"},
                "new_text": {"type": "STRING", "description": "Replacement text"},
                "instructions": {
                    "type": "STRING",
                    "description": "Natural language description of the edit when exact text is unknown"
                }
            },
            "required": ["path"]
        }
    },
    {
        "name": "list_files",
        "description": "Lists files in a repository directory.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "directory": {"type": "STRING", "description": "Directory to list (default: src)"}
            }
        }
    },
    {
        "name": "search_files",
        "description": "Searches file contents across the repository (grep-like).",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "pattern": {"type": "STRING", "description": "Text or regular expression to search for"},
                "path": {"type": "STRING", "description": "Directory to search in"}
            },
            "required": ["pattern"]
        }
    },
    {
        "name": "web_search",
        "description": "Searches the internet for current information.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "query": {"type": "STRING", "description": "Search query"}
            },
            "required": ["query"]
        }
    },
    {
        "name": "get_repo_status",
        "description": "Returns the git status of the repository (branch, changed files).",
        "parameters": {
            "type": "OBJECT",
            "properties": {}
        }
    },
    {
        "name": "commit_changes",
        "description": "Stages, commits and pushes changes to the repository.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "message": {"type": "STRING", "description": "Commit message"},
                "files": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "Files to commit (default: all changes)"
                }
            },
            "required": ["message"]
        }
    },
]

# ============================================================================
# OUTPUT SCHEMAS (Structured Outputs)
# ============================================================================

# Gemini structured output cannot express free-form maps, so hints travel as
# a JSON-encoded string and are decoded by the router.
PLAN_SCHEMA = {
    "type": "object",
    "properties": {
        "intent": {
            "type": "string",
            "enum": ["edit", "create", "read", "search", "commit", "chat"]
        },
        "toolSequence": {
            "type": "array",
            "items": {"type": "string"}
        },
        "parameterHints": {
            "type": "string",
            "description": "JSON object mapping tool names to suggested arguments"
        },
        "contextNeeded": {
            "type": "array",
            "items": {"type": "string"}
        },
        "confidence": {"type": "number"},
        "reasoning": {"type": "string"},
        "clarifyFirst": {"type": "boolean"},
        "clarifyQuestion": {"type": "string"},
        "expectedIterations": {"type": "integer"}
    },
    "required": ["intent", "toolSequence", "confidence", "reasoning"]
}

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_prompt(template: str, **kwargs) -> str:
    """
    Format a prompt template with provided variables.

    Args:
        template: Prompt template string with {placeholders}
        **kwargs: Variables to substitute into the template

    Returns:
        Formatted prompt string
    """
    try:
        return template.format(**kwargs)
    except KeyError as e:
        raise ValueError(f"Missing required prompt variable: {e}")


def build_classifier_prompt(message: str) -> str:
    """Fill the classifier template with the user message and label set."""
    return format_prompt(
        CLASSIFIER_PROMPT,
        message=message,
        labels=", ".join(INTENT_LABELS),
    )


def get_tool_by_name(tool_name: str) -> Dict:
    """
    Retrieve tool definition by name.

    Args:
        tool_name: Name of the tool to retrieve

    Returns:
        Tool definition dictionary

    Raises:
        ValueError: If tool name not found
    """
    tool = next((t for t in TOOL_DEFINITIONS if t["name"] == tool_name), None)
    if not tool:
        available = [t["name"] for t in TOOL_DEFINITIONS]
        raise ValueError(f"Tool '{tool_name}' not found. Available: {available}")
    return tool
