"""Helpers that turn raw Gemini payloads and answers into request/response values."""

from __future__ import annotations

import json
import re
from typing import Any

from google.genai import types

from cookka.models.gemini import RecipeStructureResponse

_DIGITS = re.compile(r"([0-9]+)")
_HEX_COLOR = re.compile(r"#[0-9A-Fa-f]{6}")
_STRICT_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_CODE_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_HANGUL_NAME = re.compile(r"[가-힣]{2,10}")
_NAME_PREFIXES = (
    re.compile(r"^레시피\s*이름[:\s]*", re.IGNORECASE),
    re.compile(r"^추천[:\s]*", re.IGNORECASE),
)

DEFAULT_RECIPE_NAME = "레시피"
COMMON_RECIPE_NAMES = (
    "제육볶음",
    "된장찌개",
    "김치찌개",
    "어묵볶음",
    "콩나물무침",
    "계란찜",
    "시금치나물",
    "미역국",
    "콩자반",
)


def first_candidate_text(response: types.GenerateContentResponse | None) -> str | None:
    """Return ``candidates[0].content.parts[0].text`` or None if any segment is missing."""
    try:
        text = response.candidates[0].content.parts[0].text  # type: ignore[union-attr,index]
    except (AttributeError, IndexError, TypeError):
        return None
    return text or None


def to_upstream_role(role: Any) -> str:
    return "user" if role == "user" else "model"


def strip_data_url_prefix(image: str) -> str:
    """Drop a ``data:<mime>;base64,`` header, keeping everything after the first comma."""
    _, sep, payload = image.partition(",")
    return payload if sep else image


def parse_expiration_days(text: str) -> int | None:
    match = _DIGITS.search(text)
    if not match:
        return None
    days = int(match.group(1))
    return days if days > 0 else None


def build_recipe_context(
    title: str | None, description: str | None, pinned_comment: str | None
) -> str:
    sections = [
        f"제목: {title}" if title else "",
        f"설명: {description}" if description else "",
        f"고정 댓글: {pinned_comment}" if pinned_comment else "",
    ]
    return "\n\n".join(s for s in sections if s)


def parse_recipe_suggestion(
    text: str, fallback_name: str | None = None
) -> tuple[str, str | None]:
    """Split a two-line answer into a dish name and an optional ``#RRGGBB`` color.

    The first line is stripped of label prefixes, cut at the first period or
    comma and unquoted; when it contains a run of Hangul that run wins.
    """
    lines = [line.strip() for line in text.strip().split("\n") if line.strip()]

    name = lines[0] if lines else ""
    for prefix in _NAME_PREFIXES:
        name = prefix.sub("", name)
    name = name.split(".")[0].split(",")[0]
    name = re.sub(r"[\"'`]", "", name).strip()
    hangul = _HANGUL_NAME.search(name)
    if hangul:
        name = hangul.group(0)

    color = None
    if len(lines) > 1:
        hex_match = _HEX_COLOR.search(lines[1])
        if hex_match:
            color = hex_match.group(0)

    return name or fallback_name or DEFAULT_RECIPE_NAME, color


def extract_json_text(text: str) -> str:
    """Pull the JSON document out of a fenced block or surrounding prose."""
    stripped = text.strip()
    for fence in (_JSON_FENCE, _CODE_FENCE):
        match = fence.search(stripped)
        if match:
            return match.group(1).strip()
    if not stripped.startswith("{"):
        match = _JSON_OBJECT.search(stripped)
        if match:
            return match.group(0).strip()
    return stripped


def _infer_recipe_name(source_text: str, recipe: str) -> str:
    for line in source_text.split("\n"):
        if not line.strip():
            continue
        match = _HANGUL_NAME.search(line)
        if match:
            return match.group(0)

    match = _HANGUL_NAME.search(recipe.split("\n")[0])
    if match:
        return match.group(0)

    for name in COMMON_RECIPE_NAMES:
        if name in source_text:
            return name
    return ""


def parse_recipe_structure(generated: str, source_text: str) -> RecipeStructureResponse:
    """Build the structured recipe from a JSON-mode answer.

    An answer that is not JSON is kept whole as the ingredient text. A
    missing name is recovered from the source text, then from the first
    ingredient line, then from a list of common dish names.
    """
    try:
        data = json.loads(extract_json_text(generated))
    except json.JSONDecodeError:
        data = {"recipe": generated}
    if not isinstance(data, dict):
        data = {}

    def _text_field(key: str) -> str:
        value = data.get(key)
        return value if isinstance(value, str) else ""

    recipe = _text_field("recipe")
    method = _text_field("method")
    name = _text_field("name").strip() or _infer_recipe_name(source_text, recipe)

    color = str(data.get("color") or "").strip()

    return RecipeStructureResponse(
        name=name.strip(),
        color=color if _STRICT_HEX_COLOR.match(color) else None,
        cleaned_text="\n\n".join(part for part in (recipe, method) if part),
        recipe=recipe,
        method=method,
    )
