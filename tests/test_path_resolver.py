"""
Unit Tests for Path and Context Resolution

Tests file reference extraction and "it"/"the page" follow-up resolution.
"""

import pytest

from core import Context
from utils.path_resolver import resolve_path, resolve_reference_path, extract_all_paths
from utils.context_resolver import resolve_anaphor, detect_follow_up, has_anaphor
from tests import RECENT_FILE


class TestResolvePath:
    """Test primary path extraction."""

    @pytest.mark.parametrize("message,expected", [
        ("edit src/peanut-city.html", "src/peanut-city.html"),
        ("read bot.inference-arcade.com/src/game.html", "src/game.html"),
        ("update part3.html", "src/part3.html"),
        ("edit krispy-peaks-affair.html", "src/krispy-peaks-affair.html"),
        ("update peanut_city.html", "src/peanut_city.html"),
    ])
    def test_recognized_references(self, message, expected):
        """Test qualified, URL and informal references."""
        assert resolve_path(message) == expected

    @pytest.mark.parametrize("message", [
        "hello how are you",
        "check config.js",
        "check style.css",
        "",
    ])
    def test_no_reference(self, message):
        """Test that chat and bare code/style files resolve to nothing."""
        assert resolve_path(message) is None

    def test_qualified_path_wins_over_informal(self):
        """Test priority: qualified beats an earlier informal name."""
        assert resolve_path("copy notes.html into src/final.html") == "src/final.html"

    def test_site_url_path(self):
        """Test URL without the canonical folder keeps its path segment."""
        assert resolve_path("is bot.inference-arcade.com/part3.html, up?") == "part3.html"

    def test_qualified_script_kept_verbatim(self):
        """Test that qualified code files are still recognized."""
        assert resolve_path("look at src/game.js") == "src/game.js"


class TestResolveReferencePath:
    """Test secondary reference extraction for structural requests."""

    def test_as_reference(self):
        """Test 'same design as X' reference."""
        message = "update part3.html to follow the same design as peanut-city.html"
        assert resolve_path(message) == "src/part3.html"
        assert resolve_reference_path(message) == "src/peanut-city.html"

    def test_like_reference(self):
        """Test 'like X' reference."""
        assert resolve_reference_path("make game.html like snake.html") == "src/snake.html"

    def test_similar_to_reference(self):
        """Test 'similar to X' reference."""
        assert resolve_reference_path("update story.html to be similar to peanut-city.html") == "src/peanut-city.html"

    def test_no_reference(self):
        """Test structural request without a reference page."""
        assert resolve_reference_path("update part3.html to have the same layout") is None


class TestExtractAllPaths:
    """Test listing every reference in a message."""

    def test_ordered_without_duplicates(self):
        """Test order of appearance and de-duplication."""
        message = "compare src/a.html with b.html and src/a.html again"
        assert extract_all_paths(message) == ["src/a.html", "src/b.html"]

    def test_empty(self):
        """Test message without references."""
        assert extract_all_paths("nothing here") == []


class TestContextResolver:
    """Test anaphoric follow-up resolution."""

    @pytest.mark.parametrize("message", [
        "fix it",
        "make it darker",
        "turn it into a noir page",
        "the game has a buggy animation",
        "give it that noir arcade vibe",
        "add some styling to it",
        "clean it up",
        "swap the sections in it",
    ])
    def test_resolves_to_most_recent_file(self, message, recent_context):
        """Test follow-ups resolve to the first recent file."""
        assert resolve_anaphor(message, recent_context) == RECENT_FILE

    def test_anaphor_without_follow_up_verb(self, recent_context):
        """Test that a pronoun alone does not trigger resolution."""
        assert resolve_anaphor("it is raining", recent_context) is None

    def test_no_recent_files(self):
        """Test that an empty session resolves to nothing."""
        assert resolve_anaphor("make it darker", Context()) is None
        assert resolve_anaphor("make it darker", None) is None

    @pytest.mark.parametrize("message,category", [
        ("fix it", "repair"),
        ("give it that vibe", "enhancement"),
        ("polish the page", "refinement"),
        ("make it bigger", "resize"),
        ("remove that button", "removal"),
        ("can you center it", "movement"),
    ])
    def test_follow_up_categories(self, message, category):
        """Test the follow-up taxonomy."""
        assert detect_follow_up(message) == category

    def test_has_anaphor(self):
        """Test anaphor detection."""
        assert has_anaphor("debug the page")
        assert not has_anaphor("create a snake game")
