# src/llm/request_builder.py — v1
"""Turn an artifact and a mode into the generateContent request.

Pure and deterministic: the same artifact and mode always produce an
equal AnalysisRequest.
"""

from __future__ import annotations

import base64

from cinearchive.core.models import AnalysisMode, AnalysisRequest, Artifact, SafetySetting

# Every harm category unrestricted.
SAFETY_SETTINGS: tuple[SafetySetting, ...] = (
    SafetySetting(category="HARM_CATEGORY_HARASSMENT"),
    SafetySetting(category="HARM_CATEGORY_HATE_SPEECH"),
    SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT"),
    SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT"),
)

RESULT_FIELDS = ("title", "year", "genre", "description", "is_person")

_GROUNDING_INSTRUCTION = (
    "USE SEARCH TOOLS to identify this specific person or media definitively."
)

_PROMPT_TEMPLATE = """Analyze this image. It is likely a Movie Poster, Game Cover, or a Photo of a Famous Person.
{grounding}
IF IT IS A PERSON:
1. Title = Person's Name.
2. Year = Year of Birth (e.g. "b. 1985").
3. Genre = "Actor" / "Actress" / "Model" + (Birth City/Country).
4. Description = Start with "Best known for..." details about their career.

IF IT IS MEDIA:
1. Title = Title.
2. Year = Release Year.
3. Genre = Genre.
4. Description = Atmospheric description.

Return a single JSON object with exactly these keys:
{{
  "title": "String",
  "year": "String",
  "genre": "String",
  "description": "String",
  "is_person": Boolean
}}"""


def build_prompt(mode: AnalysisMode) -> str:
    grounding = f"\n{_GROUNDING_INSTRUCTION}\n" if mode is AnalysisMode.GROUNDED else ""
    return _PROMPT_TEMPLATE.format(grounding=grounding)


def build(artifact: Artifact, mode: AnalysisMode = AnalysisMode.STANDARD) -> AnalysisRequest:
    """Build the request for one analysis attempt.

    Raises:
        ValueError: If the artifact has no bytes (caller contract violation).
    """
    if not artifact.data:
        raise ValueError(f"Artifact {artifact.name!r} has no image data")
    mode = AnalysisMode(mode)
    return AnalysisRequest(
        image_b64=base64.b64encode(artifact.data).decode("ascii"),
        media_type=artifact.media_type,
        prompt=build_prompt(mode),
        mode=mode,
        safety_settings=SAFETY_SETTINGS,
    )
