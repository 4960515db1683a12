# src/llm/interpreter.py — v1
"""Turn a raw generateContent response into an AnalysisResult.

Classification order:
  1. 401 -> AuthFailure, 403 -> AccessForbidden
  2. any other non-2xx -> ServiceError (fatal, carries the status)
  3. no candidates[0].content -> ServiceRefused (content policy / no answer)
  4. body or embedded text not a JSON object, or a field missing -> MalformedResponse
  5. otherwise the five fields, plus web citations in grounded mode

Pure: no I/O, no state. The same response always interprets the same way.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cinearchive.core.errors import (
    AccessForbidden,
    AuthFailure,
    MalformedResponse,
    ServiceError,
    ServiceRefused,
)
from cinearchive.core.models import AnalysisMode, AnalysisResult, RawResponse, SourceCitation
from cinearchive.llm.request_builder import RESULT_FIELDS

logger = logging.getLogger(__name__)


def interpret(raw: RawResponse, mode: AnalysisMode = AnalysisMode.STANDARD) -> AnalysisResult:
    """Validate and parse one response.

    Raises:
        AuthFailure, AccessForbidden, ServiceError, ServiceRefused, MalformedResponse.
    """
    if raw.status_code == 401:
        raise AuthFailure(status_code=401, body=raw.body)
    if raw.status_code == 403:
        raise AccessForbidden(_service_message(raw), status_code=403, body=raw.body)
    if not raw.ok:
        raise ServiceError(
            f"API error {raw.status_code}: {_service_message(raw) or 'no details'}",
            status_code=raw.status_code,
            body=raw.body,
        )

    try:
        data = raw.decode()
    except ValueError as exc:
        raise MalformedResponse(
            "Response body is not valid JSON.", status_code=raw.status_code, body=raw.body,
        ) from exc

    candidate = _first_candidate(data)
    text = _candidate_text(candidate)
    if text is None:
        logger.info("No usable content in response, treating as refusal")
        raise ServiceRefused(status_code=raw.status_code, body=raw.body)

    try:
        fields = json.loads(text)
    except ValueError as exc:
        raise MalformedResponse(
            "Model answer is not valid JSON.", status_code=raw.status_code, body=raw.body,
        ) from exc
    if not isinstance(fields, dict):
        raise MalformedResponse(
            "Model answer is not a JSON object.", status_code=raw.status_code, body=raw.body,
        )

    missing = [f for f in RESULT_FIELDS if f not in fields]
    if missing:
        raise MalformedResponse(
            f"Model answer is missing {', '.join(missing)}.",
            status_code=raw.status_code,
            body=raw.body,
        )

    citations: tuple[SourceCitation, ...] = ()
    if AnalysisMode(mode) is AnalysisMode.GROUNDED:
        citations = extract_citations(candidate)

    return AnalysisResult(
        title=_as_text(fields["title"]),
        year=_as_text(fields["year"]),
        genre=_as_text(fields["genre"]),
        description=_as_text(fields["description"]),
        is_person=_as_bool(fields["is_person"]),
        source_citations=citations,
    )


def extract_citations(candidate: dict[str, Any]) -> tuple[SourceCitation, ...]:
    """Web attributions with both a URI and a title, in response order."""
    metadata = candidate.get("groundingMetadata")
    if not isinstance(metadata, dict):
        return ()
    attributions = metadata.get("groundingAttributions")
    if not isinstance(attributions, list):
        return ()
    citations: list[SourceCitation] = []
    for attribution in attributions:
        if not isinstance(attribution, dict):
            continue
        web = attribution.get("web")
        if not isinstance(web, dict):
            continue
        uri, title = web.get("uri"), web.get("title")
        if uri and title:
            citations.append(SourceCitation(uri=str(uri), title=str(title)))
    return tuple(citations)


def _first_candidate(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return {}
    first = candidates[0]
    return first if isinstance(first, dict) else {}


def _candidate_text(candidate: dict[str, Any]) -> str | None:
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None


def _service_message(raw: RawResponse) -> str | None:
    """error.message from a structured error body, if there is one."""
    try:
        data = raw.decode()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        message = data["error"].get("message")
        return str(message) if message else None
    return None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)
