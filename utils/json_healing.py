"""
Healing of malformed JSON returned by LLMs.

Models asked for JSON still wrap it in markdown fences, prepend prose, use
smart quotes, Python literals or trailing commas, or stop before closing
every bracket. `heal_and_parse` repairs those cases before parsing.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class HealResult:
    """
    Outcome of a healing attempt.

    Attributes:
        parsed: Parsed JSON value, or None if healing failed
        healed: Whether any repair was needed to parse the input
        repairs: Names of the repairs that were applied
        error: Parse error of the final attempt, if it failed
    """
    parsed: Any
    healed: bool = False
    repairs: List[str] = field(default_factory=list)
    error: Optional[str] = None


_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)
_TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")
_PYTHON_LITERALS = {"True": "true", "False": "false", "None": "null"}
_PYTHON_LITERAL_PATTERN = re.compile(r"\b(True|False|None)\b")
_SMART_QUOTES = {"“": '"', "”": '"', "‘": "'", "’": "'"}


def _strip_wrappers(text: str, repairs: List[str]) -> str:
    if _FENCE_PATTERN.search(text):
        text = _FENCE_PATTERN.sub("", text).replace("```", "").strip()
        repairs.append("stripped_markdown")

    start = min((i for i in (text.find("{"), text.find("[")) if i >= 0), default=-1)
    if start > 0:
        text = text[start:]
        repairs.append("stripped_prefix")

    end = max(text.rfind("}"), text.rfind("]"))
    if 0 <= end < len(text) - 1:
        text = text[:end + 1]
        repairs.append("stripped_suffix")

    return text


def _normalize_quotes(text: str, repairs: List[str]) -> str:
    if any(quote in text for quote in _SMART_QUOTES):
        for smart, plain in _SMART_QUOTES.items():
            text = text.replace(smart, plain)
        repairs.append("normalized_smart_quotes")
    return text


def _replace_python_literals(text: str, repairs: List[str]) -> str:
    if _PYTHON_LITERAL_PATTERN.search(text):
        text = _PYTHON_LITERAL_PATTERN.sub(lambda m: _PYTHON_LITERALS[m.group(1)], text)
        repairs.append("python_literals")
    return text


def _remove_trailing_commas(text: str, repairs: List[str]) -> str:
    if _TRAILING_COMMA_PATTERN.search(text):
        text = _TRAILING_COMMA_PATTERN.sub(r"\1", text)
        repairs.append("removed_trailing_commas")
    return text


def _close_brackets(text: str, repairs: List[str]) -> str:
    """Append closers for brackets left open by a truncated response."""
    stack = []
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]" and stack and stack[-1] == char:
            stack.pop()

    if in_string:
        text += '"'
    if stack:
        text += "".join(reversed(stack))
        repairs.append("closed_brackets")
    return text


def heal_and_parse(text: Optional[str]) -> HealResult:
    """
    Parse possibly malformed JSON, repairing common LLM artifacts.

    Args:
        text: Raw model output

    Returns:
        HealResult; `parsed` is {} for empty input and None when the text
        cannot be repaired

    Example:
        >>> heal_and_parse('```json\\n{"intent": "edit",}\\n```').parsed
        {'intent': 'edit'}
    """
    original = (text or "").strip()
    if not original:
        return HealResult(parsed={})

    try:
        return HealResult(parsed=json.loads(original))
    except json.JSONDecodeError:
        pass

    repairs: List[str] = []
    healed_text = _strip_wrappers(original, repairs)
    healed_text = _normalize_quotes(healed_text, repairs)
    healed_text = _replace_python_literals(healed_text, repairs)
    healed_text = _close_brackets(healed_text, repairs)
    healed_text = _remove_trailing_commas(healed_text, repairs)

    try:
        return HealResult(parsed=json.loads(healed_text), healed=True, repairs=repairs)
    except json.JSONDecodeError as e:
        return HealResult(parsed=None, repairs=repairs, error=str(e))
