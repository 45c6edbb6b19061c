"""Tests for JSON extraction from model replies."""
import pytest

from fitplan.core.exceptions import FormatError
from fitplan.llm.json_extraction import extract_json_object


class TestExtractJsonObject:
    """Tests for the extraction strategy chain."""

    def test_plain_json(self):
        assert extract_json_object('{"program_name": "Base"}') == {"program_name": "Base"}

    def test_fenced_json(self):
        text = 'Here is the plan:\n```json\n{"duration_weeks": 4}\n```\nGood luck!'
        assert extract_json_object(text) == {"duration_weeks": 4}

    def test_unlabelled_fence(self):
        assert extract_json_object('```\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_object_inside_prose(self):
        text = 'Sure! {"focus_distribution": {"strength": 100}} Let me know.'
        assert extract_json_object(text) == {"focus_distribution": {"strength": 100}}

    def test_top_level_array_is_rejected(self):
        with pytest.raises(FormatError) as exc_info:
            extract_json_object("[1, 2, 3]")
        attempts = exc_info.value.details["attempts"]
        assert [a["strategy"] for a in attempts] == ["direct", "fenced", "brace_span"]
        assert "expected an object" in attempts[0]["error"]

    def test_garbage_lists_every_attempt(self):
        with pytest.raises(FormatError) as exc_info:
            extract_json_object("I cannot help with that {not json}")
        details = exc_info.value.details
        assert len(details["attempts"]) == 3
        assert details["preview"].startswith("I cannot help")
        assert exc_info.value.code == "FORMAT_ERROR"

    @pytest.mark.parametrize("text", [None, "", "  \n "])
    def test_empty_reply(self, text):
        with pytest.raises(FormatError) as exc_info:
            extract_json_object(text)
        assert exc_info.value.message == "Model returned an empty response"
