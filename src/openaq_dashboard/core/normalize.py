"""
Helpers for reading OpenAQ v3 payloads.

The client hands back upstream JSON untouched. Upstream is not consistent
about field names (``displayName`` vs ``display_name``, ``units`` vs
``unit``), so callers go through these instead of repeating fallback chains.
"""

from typing import Any, Dict, List, Mapping, Optional

from .schemas import ResponseEnvelope


def _pick(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return None


def results(envelope: ResponseEnvelope) -> List[Any]:
    data = envelope.data
    if isinstance(data, Mapping) and isinstance(data.get("results"), list):
        return data["results"]
    return []


def first_result(envelope: ResponseEnvelope) -> Optional[Any]:
    items = results(envelope)
    return items[0] if items else None


def normalize_parameter(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    raw = raw or {}
    return {
        "id": raw.get("id"),
        "name": raw.get("name"),
        "display_name": _pick(raw, "displayName", "display_name"),
        "units": _pick(raw, "units", "unit"),
        "description": raw.get("description"),
    }


def series_parameter(series: List[Any]) -> Dict[str, Optional[str]]:
    """Name and unit of a time series, taken from its first point."""
    first = series[0] if series else None
    param = first.get("parameter") if isinstance(first, Mapping) else None
    norm = normalize_parameter(param if isinstance(param, Mapping) else None)
    return {
        "name": norm["display_name"] or norm["name"],
        "units": norm["units"],
    }
