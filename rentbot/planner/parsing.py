"""Decoding and validation of reasoning service responses."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Mapping

from rentbot.core.errors import ClassificationParseError
from rentbot.planner.types import Action, Classification, IntentAnalysis

# Greeting action spellings seen in earlier prompt revisions.
ACTION_ALIASES = {
    "SALUDO_GENERAL": Action.GENERAL,
    "CONVERSACION_GENERAL": Action.GENERAL,
}

MODEL_ACTIONS = {Action.QUOTE, Action.CLARIFY, Action.CATALOG_GAP, Action.GENERAL}


def extract_payload(raw: str) -> dict[str, Any]:
    """Return the JSON object embedded in ``raw``.

    The whole response is decoded first; when that fails, the text between the
    first ``{`` and the last ``}`` is decoded instead.
    """

    if not isinstance(raw, str) or not raw.strip():
        raise ClassificationParseError("Empty response")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        payload = None

    if not isinstance(payload, dict):
        start = raw.find("{")
        end = raw.rfind("}")
        if start == -1 or end < start:
            raise ClassificationParseError("No JSON object found in response")
        try:
            payload = json.loads(raw[start : end + 1])
        except json.JSONDecodeError as exc:
            raise ClassificationParseError(f"Embedded JSON is not parseable: {exc}") from exc

    if not isinstance(payload, dict):
        raise ClassificationParseError("Response JSON is not an object")
    return payload


def parse_action(value: Any) -> Action:
    if not isinstance(value, str) or not value.strip():
        raise ClassificationParseError(f"Missing action: {value!r}")

    name = value.strip().upper()
    if name in ACTION_ALIASES:
        return ACTION_ALIASES[name]
    try:
        action = Action(name)
    except ValueError as exc:
        raise ClassificationParseError(f"Unknown action: {value!r}") from exc
    if action not in MODEL_ACTIONS:
        raise ClassificationParseError(f"Action {value!r} is reserved")
    return action


def _optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ClassificationParseError(f"{field} must be a string")
    value = value.strip()
    return value or None


def _optional_date(value: Any, field: str) -> date | None:
    text = _optional_text(value, field)
    if text is None:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ClassificationParseError(f"{field} is not an ISO date: {text!r}") from exc


def validate_payload(payload: Mapping[str, Any]) -> Classification:
    """Turn a decoded payload into a trusted classification.

    Accepts ``{"analysis": {...}, "reply": "..."}`` or a flat object with the
    analysis fields at top level.
    """

    analysis_data = payload.get("analysis", payload)
    if not isinstance(analysis_data, Mapping):
        raise ClassificationParseError("analysis must be an object")

    action = parse_action(analysis_data.get("action"))
    machine = _optional_text(analysis_data.get("machine", analysis_data.get("machine_name")), "machine")
    duration = _optional_text(analysis_data.get("duration_text", analysis_data.get("duration")), "duration_text")
    start = _optional_date(analysis_data.get("rental_start"), "rental_start")
    end = _optional_date(analysis_data.get("rental_end"), "rental_end")

    if action is Action.QUOTE:
        missing = [
            name
            for name, value in (("machine", machine), ("rental_start", start), ("rental_end", end))
            if value is None
        ]
        if missing:
            raise ClassificationParseError(f"QUOTE is missing {', '.join(missing)}")
        if start > end:
            raise ClassificationParseError(f"rental_start {start} is after rental_end {end}")

    reply = _optional_text(payload.get("reply"), "reply")
    if reply is None:
        raise ClassificationParseError("reply is missing")

    return Classification(
        analysis=IntentAnalysis(
            action=action,
            machine_name=machine,
            duration_text=duration,
            rental_start=start,
            rental_end=end,
        ),
        reply=reply,
    )


def parse_response(raw: str) -> Classification:
    return validate_payload(extract_payload(raw))
