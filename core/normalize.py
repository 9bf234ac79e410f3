# =============================================================================
# core/normalize.py  —  Backend response normalization
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The backend is not consistent about where it puts result lists.  Depending
#   on the endpoint (and the deployment) a response can be:
#
#     [ {...}, {...} ]                  →  the list itself
#     {"data": [ ... ]}                 →  payload["data"]
#     {"problems": [ ... ]}             →  payload["problems"]
#     {"data": null, "problems": [...]} →  payload["problems"]
#     {"id": "1", "title": ...}         →  a single bare item
#
#   extract_items() walks an ordered tuple of extraction rules and returns the
#   first match.  The map_* helpers then turn raw dicts into dataclasses,
#   filling every missing field with a zero value.
#
#   Everything here is pure: no I/O, no logging.
# =============================================================================

import json
from typing import Any, Callable, Optional

from core.models import Problem, Resource, SolveResult

# A rule returns the matched value, or _NO_MATCH to let the next rule try.
_NO_MATCH = object()
ExtractionRule = Callable[[Any], Any]


def _present(value: Any) -> bool:
    """Truthiness as the backend's clients see it: empty containers still count."""
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def _top_level_list(payload: Any) -> Any:
    return payload if isinstance(payload, list) else _NO_MATCH


def _key(name: str) -> ExtractionRule:
    # null, false, 0 and "" under a wrapper key fall through to the next rule
    def rule(payload: Any) -> Any:
        if isinstance(payload, dict) and _present(payload.get(name)):
            return payload[name]
        return _NO_MATCH

    rule.__name__ = f"key_{name}"
    return rule


def _bare_payload(*wrapper_keys: str) -> ExtractionRule:
    """The payload itself is the item, unless it carries an empty wrapper key."""

    def rule(payload: Any) -> Any:
        if isinstance(payload, dict) and any(key in payload for key in wrapper_keys):
            return None
        return payload

    return rule


RESOURCE_RULES: tuple[ExtractionRule, ...] = (
    _top_level_list,
    _key("data"),
    _bare_payload("data"),
)

PROBLEM_RULES: tuple[ExtractionRule, ...] = (
    _top_level_list,
    _key("data"),
    _key("problems"),
    _bare_payload("data", "problems"),
)


def extract_items(payload: Any, rules: tuple[ExtractionRule, ...]) -> list[Any]:
    """Apply rules in priority order and coerce the first match to a list.

    None and empty objects become [], a lone object becomes a one-item list.
    """
    for rule in rules:
        value = rule(payload)
        if value is _NO_MATCH:
            continue
        if value is None or value == {}:
            return []
        if isinstance(value, list):
            return value
        return [value]
    return []


# -----------------------------------------------------------------------------
# Field coercion (default-on-absence)
# -----------------------------------------------------------------------------
def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, bool)):
        return _dump(value)
    return str(value)


def _score(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _field(raw: Any, name: str) -> Any:
    return raw.get(name) if isinstance(raw, dict) else None


def map_problem(raw: Any) -> Problem:
    return Problem(
        id=_text(_field(raw, "id")),
        title=_text(_field(raw, "title")),
        content=_text(_field(raw, "content")),
        similarity=_score(_field(raw, "similarity")),
    )


def map_resource(raw: Any) -> Resource:
    return Resource(
        name=_text(_field(raw, "name")),
        type=_text(_field(raw, "type")),
        description=_text(_field(raw, "description")),
    )


def normalize_problems(payload: Any) -> list[Problem]:
    """Raw similar-problems response → list of Problem."""
    return [map_problem(item) for item in extract_items(payload, PROBLEM_RULES)]


def normalize_resources(payload: Any) -> list[Resource]:
    """Raw recommended-resources response → list of Resource."""
    return [map_resource(item) for item in extract_items(payload, RESOURCE_RULES)]


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def extract_solution(payload: Any) -> SolveResult:
    """Pull ``data.solution`` out of a solve-image response.

    Falls back to a JSON dump of ``data``, or of the whole payload when there
    is no usable ``data`` either.
    """
    data: Optional[Any] = payload.get("data") if isinstance(payload, dict) else None
    solution = data.get("solution") if isinstance(data, dict) else None

    if _present(solution):
        text = _text(solution)
    elif _present(data):
        text = _dump(data)
    else:
        text = _dump(payload)
    return SolveResult(solution=text, raw_response=payload)
