# tests/unit/llm/test_unit_interpreter.py — v1
"""Tests for llm/interpreter.py — response classification and parsing."""

from __future__ import annotations

import json

import pytest

from conftest import BLADE_RUNNER, gemini_body

from cinearchive.core.errors import (
    AccessForbidden,
    AuthFailure,
    MalformedResponse,
    ServiceError,
    ServiceRefused,
)
from cinearchive.core.models import AnalysisMode, RawResponse, SourceCitation
from cinearchive.llm.interpreter import interpret


def _raw(body: str, status: int = 200) -> RawResponse:
    return RawResponse(status_code=status, body=body)


ATTRIBUTIONS = [
    {"web": {"uri": "https://en.wikipedia.org/wiki/Blade_Runner", "title": "Blade Runner - Wikipedia"}},
    {"web": {"uri": "https://www.imdb.com/title/tt0083658/"}},
    {"web": {"uri": "https://www.rottentomatoes.com/m/blade_runner", "title": "Blade Runner | Rotten Tomatoes"}},
]


class TestSuccess:
    def test_round_trip_fields(self):
        result = interpret(_raw(gemini_body(BLADE_RUNNER)))
        assert result.title == "BLADE RUNNER"
        assert result.year == "1982"
        assert result.genre == "Sci-Fi"
        assert result.is_person is False
        assert result.description == BLADE_RUNNER["description"]
        assert result.source_citations == ()

    def test_grounded_citations_filtered_in_order(self):
        raw = _raw(gemini_body(BLADE_RUNNER, attributions=ATTRIBUTIONS))
        result = interpret(raw, AnalysisMode.GROUNDED)
        assert result.source_citations == (
            SourceCitation(uri=ATTRIBUTIONS[0]["web"]["uri"], title=ATTRIBUTIONS[0]["web"]["title"]),
            SourceCitation(uri=ATTRIBUTIONS[2]["web"]["uri"], title=ATTRIBUTIONS[2]["web"]["title"]),
        )

    def test_standard_mode_ignores_grounding(self):
        raw = _raw(gemini_body(BLADE_RUNNER, attributions=ATTRIBUTIONS))
        assert interpret(raw, AnalysisMode.STANDARD).source_citations == ()

    def test_citations_not_capped(self):
        many = [{"web": {"uri": f"https://s/{i}", "title": f"S{i}"}} for i in range(6)]
        result = interpret(_raw(gemini_body(attributions=many)), AnalysisMode.GROUNDED)
        assert len(result.source_citations) == 6

    def test_person(self):
        fields = {
            "title": "Harrison Ford", "year": "b. 1942",
            "genre": "Actor (Chicago, USA)", "description": "Best known for...",
            "is_person": True,
        }
        result = interpret(_raw(gemini_body(fields)))
        assert result.is_person is True
        assert result.display_year == "BIRTH: b. 1942"

    def test_idempotent(self):
        raw = _raw(gemini_body(BLADE_RUNNER, attributions=ATTRIBUTIONS))
        first = interpret(raw, AnalysisMode.GROUNDED)
        second = interpret(raw, AnalysisMode.GROUNDED)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()


class TestAuthorization:
    def test_401(self):
        with pytest.raises(AuthFailure) as exc_info:
            interpret(_raw("", status=401))
        assert exc_info.value.status_code == 401

    def test_403_uses_service_message(self):
        body = json.dumps({"error": {"code": 403, "message": "Generative Language API has not been used"}})
        with pytest.raises(AccessForbidden) as exc_info:
            interpret(_raw(body, status=403))
        assert exc_info.value.message == "Generative Language API has not been used"

    def test_403_without_body(self):
        with pytest.raises(AccessForbidden) as exc_info:
            interpret(_raw("forbidden", status=403))
        assert exc_info.value.message == AccessForbidden.default_message


class TestRefusal:
    def test_missing_content(self):
        body = json.dumps({"candidates": [{"finishReason": "SAFETY"}]})
        with pytest.raises(ServiceRefused) as exc_info:
            interpret(_raw(body))
        assert exc_info.value.placeholder.title == "DATA_RESTRICTED"
        assert exc_info.value.placeholder.genre == "ERROR_403"

    def test_no_candidates(self):
        body = json.dumps({"promptFeedback": {"blockReason": "OTHER"}})
        with pytest.raises(ServiceRefused):
            interpret(_raw(body))

    def test_empty_parts(self):
        body = json.dumps({"candidates": [{"content": {"parts": []}}]})
        with pytest.raises(ServiceRefused):
            interpret(_raw(body))


class TestServiceError:
    @pytest.mark.parametrize("status", [400, 404, 500])
    def test_other_error_status_is_not_a_refusal(self, status):
        body = json.dumps({"error": {"message": "Invalid argument"}})
        with pytest.raises(ServiceError) as exc_info:
            interpret(_raw(body, status=status))
        assert not isinstance(exc_info.value, ServiceRefused)
        assert exc_info.value.status_code == status
        assert exc_info.value.body == body
        assert "Invalid argument" in exc_info.value.message

    def test_plain_text_error_body(self):
        with pytest.raises(ServiceError, match="no details"):
            interpret(_raw("Internal Server Error", status=500))


class TestCitationShapes:
    def test_non_object_web_entry_is_skipped(self):
        attributions = [{"web": "https://x"}, {"web": {"uri": "u", "title": "t"}}]
        result = interpret(_raw(gemini_body(attributions=attributions)), AnalysisMode.GROUNDED)
        assert result.source_citations == (SourceCitation(uri="u", title="t"),)

    @pytest.mark.parametrize("metadata", ["grounded", ["x"], {"groundingAttributions": "x"}])
    def test_non_object_metadata_yields_no_citations(self, metadata):
        candidate = {
            "content": {"parts": [{"text": json.dumps(BLADE_RUNNER)}]},
            "groundingMetadata": metadata,
        }
        body = json.dumps({"candidates": [candidate]})
        result = interpret(_raw(body), AnalysisMode.GROUNDED)
        assert result.title == "BLADE RUNNER"
        assert result.source_citations == ()


class TestMalformed:
    def test_body_not_json(self):
        with pytest.raises(MalformedResponse):
            interpret(_raw("<html>"))

    def test_embedded_text_not_json(self):
        with pytest.raises(MalformedResponse):
            interpret(_raw(gemini_body(text="It's Blade Runner!")))

    def test_embedded_not_object(self):
        with pytest.raises(MalformedResponse):
            interpret(_raw(gemini_body(text="[1, 2]")))

    def test_missing_field(self):
        fields = {k: v for k, v in BLADE_RUNNER.items() if k != "genre"}
        with pytest.raises(MalformedResponse, match="genre"):
            interpret(_raw(gemini_body(fields)))
