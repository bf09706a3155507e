"""
Unit Tests for the LLM Service

Gemini is mocked; tests cover retry behavior, label calls, function-call
parsing and structured output healing.
"""

import pytest
from unittest.mock import MagicMock, patch

from ai.llm_service import (
    retry_on_error,
    classify_label,
    call_llm_with_tools,
    generate_structured_output,
    get_generation_config,
)


def fake_response(text=None, parts=None):
    response = MagicMock()
    response.text = text
    response.candidates = [MagicMock()]
    response.candidates[0].content.parts = parts or []
    return response


class TestRetryOnError:
    """Test retry_on_error decorator."""

    @patch('ai.llm_service.time.sleep')
    def test_retries_transient_errors(self, mock_sleep):
        """Test rate-limit errors are retried with backoff."""
        attempts = {"count": 0}

        @retry_on_error(max_retries=3, delay=0.1)
        def flaky():
            attempts["count"] += 1
            if attempts["count"] < 3:
                raise RuntimeError("429 rate limit")
            return "ok"

        assert flaky() == "ok"
        assert attempts["count"] == 3
        assert mock_sleep.call_count == 2

    def test_non_retryable_raises_immediately(self):
        """Test permanent errors are not retried."""
        attempts = {"count": 0}

        @retry_on_error(max_retries=3)
        def broken():
            attempts["count"] += 1
            raise ValueError("bad request")

        with pytest.raises(ValueError):
            broken()
        assert attempts["count"] == 1


class TestLLMCalls:
    """Test Gemini call wrappers."""

    @patch('ai.llm_service.genai.GenerativeModel')
    def test_classify_label_uses_budget(self, mock_model_cls):
        """Test the label call passes the output budget and timeout."""
        mock_model_cls.return_value.generate_content.return_value = fake_response(text="EDIT_EXISTING")

        result = classify_label("classify this", max_tokens=17, timeout=2.0)

        assert result == "EDIT_EXISTING"
        config = mock_model_cls.call_args[1]["generation_config"]
        assert config.max_output_tokens == 17
        request_options = mock_model_cls.return_value.generate_content.call_args[1]["request_options"]
        assert request_options == {"timeout": 2.0}

    @patch('ai.llm_service.genai.GenerativeModel')
    def test_tool_calls_parsed(self, mock_model_cls):
        """Test function calls are extracted from response parts."""
        part = MagicMock()
        part.text = None
        part.function_call.name = "read_file"
        part.function_call.args = {"path": "src/a.html"}
        mock_model_cls.return_value.generate_content.return_value = fake_response(parts=[part])

        result = call_llm_with_tools("fix it", tools=[{"name": "read_file"}])

        assert result["tool_calls"] == [{"name": "read_file", "args": {"path": "src/a.html"}}]

    @patch('ai.llm_service.genai.GenerativeModel')
    def test_structured_output_healed(self, mock_model_cls):
        """Test fenced JSON is healed into a dict."""
        mock_model_cls.return_value.generate_content.return_value = fake_response(
            text='```json\n{"intent": "edit", "confidence": 0.8,}\n```'
        )

        result = generate_structured_output("route this", schema={"type": "OBJECT"})

        assert result == {"intent": "edit", "confidence": 0.8}

    @patch('ai.llm_service.genai.GenerativeModel')
    def test_structured_output_rejects_non_object(self, mock_model_cls):
        """Test non-object output raises ValueError."""
        mock_model_cls.return_value.generate_content.return_value = fake_response(text='["edit"]')

        with pytest.raises(ValueError):
            generate_structured_output("route this", schema={"type": "OBJECT"})


class TestGenerationConfig:
    """Test generation config defaults."""

    def test_zero_temperature_kept(self):
        """Test an explicit 0.0 temperature is not replaced by the default."""
        assert get_generation_config(temperature=0.0).temperature == 0.0
