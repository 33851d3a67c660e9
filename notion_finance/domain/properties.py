"""Typed-property codec for store records

Decoding is total: any unknown or malformed shape yields the kind's zero value
(empty string, None, False or an empty list). Encoding produces the exact
payload shape the store expects for page create/update calls.
"""

from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

Property = Dict[str, Any]
Record = Dict[str, Any]


class PropertyKind(str, Enum):
    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    CHECKBOX = "checkbox"


_PLAIN_ANNOTATIONS = {
    "bold": False,
    "italic": False,
    "strikethrough": False,
    "underline": False,
    "code": False,
    "color": "default",
}


def _payload(prop: Any, kind: PropertyKind) -> Any:
    if not isinstance(prop, dict):
        return None
    declared = prop.get("type")
    if declared is not None and declared != kind.value:
        return None
    return prop.get(kind.value)


def _decode_text(prop: Any, kind: PropertyKind) -> str:
    runs = _payload(prop, kind)
    if not isinstance(runs, list):
        return ""
    parts = []
    for run in runs:
        if not isinstance(run, dict):
            continue
        text = run.get("plain_text")
        if text is None:
            text = (run.get("text") or {}).get("content")
        if isinstance(text, str):
            parts.append(text)
    return "".join(parts)


def _decode_number(prop: Any, kind: PropertyKind) -> Optional[float]:
    value = _payload(prop, kind)
    # bool is an int subclass; a checkbox value is never a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _decode_select(prop: Any, kind: PropertyKind) -> Optional[str]:
    option = _payload(prop, kind)
    if isinstance(option, dict) and isinstance(option.get("name"), str) and option["name"]:
        return option["name"]
    return None


def _decode_multi_select(prop: Any, kind: PropertyKind) -> List[str]:
    options = _payload(prop, kind)
    if not isinstance(options, list):
        return []
    return [o["name"] for o in options if isinstance(o, dict) and isinstance(o.get("name"), str)]


def _decode_date(prop: Any, kind: PropertyKind) -> Optional[date]:
    value = _payload(prop, kind)
    start = value.get("start") if isinstance(value, dict) else None
    if not isinstance(start, str):
        return None
    try:
        return date.fromisoformat(start[:10])
    except ValueError:
        return None


def _decode_checkbox(prop: Any, kind: PropertyKind) -> bool:
    return _payload(prop, kind) is True


def _text_runs(text: str) -> List[Dict[str, Any]]:
    return [
        {
            "type": "text",
            "text": {"content": text},
            "annotations": dict(_PLAIN_ANNOTATIONS),
            "plain_text": text,
        }
    ]


def _encode_title(value: Any) -> Property:
    return {"title": _text_runs(str(value))}


def _encode_rich_text(value: Any) -> Property:
    return {"rich_text": _text_runs(str(value))}


def _encode_number(value: Any) -> Property:
    return {"number": value}


def _encode_select(value: Any) -> Property:
    name = value.value if isinstance(value, Enum) else value
    return {"select": {"name": name}}


def _encode_multi_select(values: Any) -> Property:
    names: List[str] = []
    for value in values:
        name = value.value if isinstance(value, Enum) else value
        if name not in names:
            names.append(name)
    return {"multi_select": [{"name": name} for name in names]}


def _encode_date(value: Any) -> Property:
    # date -> YYYY-MM-DD, datetime -> full ISO timestamp
    if not isinstance(value, date):
        raise TypeError(f"date property expects a date or datetime, got {type(value).__name__}")
    return {"date": {"start": value.isoformat()}}


def _encode_checkbox(value: Any) -> Property:
    return {"checkbox": bool(value)}


_DECODERS: Dict[PropertyKind, Callable[[Any, PropertyKind], Any]] = {
    PropertyKind.TITLE: _decode_text,
    PropertyKind.RICH_TEXT: _decode_text,
    PropertyKind.NUMBER: _decode_number,
    PropertyKind.SELECT: _decode_select,
    PropertyKind.MULTI_SELECT: _decode_multi_select,
    PropertyKind.DATE: _decode_date,
    PropertyKind.CHECKBOX: _decode_checkbox,
}

_ENCODERS: Dict[PropertyKind, Callable[[Any], Property]] = {
    PropertyKind.TITLE: _encode_title,
    PropertyKind.RICH_TEXT: _encode_rich_text,
    PropertyKind.NUMBER: _encode_number,
    PropertyKind.SELECT: _encode_select,
    PropertyKind.MULTI_SELECT: _encode_multi_select,
    PropertyKind.DATE: _encode_date,
    PropertyKind.CHECKBOX: _encode_checkbox,
}


def decode(prop: Any, kind: PropertyKind) -> Any:
    """Decode one wire property into a plain value. Never raises."""
    return _DECODERS[kind](prop, kind)


def encode(value: Any, kind: PropertyKind) -> Property:
    """Encode a plain value into the store's property payload"""
    return _ENCODERS[kind](value)


def record_property(record: Record, name: str, kind: PropertyKind) -> Any:
    """Decode a named property of a record, zero value when absent"""
    properties = record.get("properties") if isinstance(record, dict) else None
    prop = properties.get(name) if isinstance(properties, dict) else None
    return decode(prop, kind)


def record_text(record: Record, name: str) -> str:
    """Text of a property that may be stored either as title or rich text"""
    return record_property(record, name, PropertyKind.TITLE) or record_property(
        record, name, PropertyKind.RICH_TEXT
    )
