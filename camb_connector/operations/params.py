"""Parameter lookup and input validation shared by the operations.

Every check here raises ValidationError before any network call is made.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from camb_connector.api.errors import ValidationError
from camb_connector.api.models import FilePart
from camb_connector.config import TEXT_MAX_CHARS, TEXT_MIN_CHARS
from camb_connector.core.items import BinaryData, Item

_MISSING = object()


def require(params: Mapping[str, Any], name: str) -> Any:
    """Return a required parameter, rejecting missing or blank values."""
    value = params.get(name, _MISSING)
    if value is _MISSING or value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Missing required parameter '{}'".format(name))
    return value


def optional(params: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Return a parameter, treating None and blank strings as absent."""
    value = params.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return value


def require_int(params: Mapping[str, Any], name: str) -> int:
    value = require(params, name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "Parameter '{}' must be an integer, got {!r}".format(name, value)
        ) from None


def optional_int(params: Mapping[str, Any], name: str) -> Optional[int]:
    value = optional(params, name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "Parameter '{}' must be an integer, got {!r}".format(name, value)
        ) from None


def optional_float(params: Mapping[str, Any], name: str) -> Optional[float]:
    value = optional(params, name)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "Parameter '{}' must be a number, got {!r}".format(name, value)
        ) from None


def require_text(params: Mapping[str, Any], name: str = "text") -> str:
    """Return a required text parameter as a string within the length window.

    Values parsed as numbers (e.g. "-p text=12345" on the CLI) are spoken
    as their string form.
    """
    return check_text(str(require(params, name)), name)


def check_text(text: str, field: str = "text") -> str:
    """Enforce the TEXT_MIN_CHARS..TEXT_MAX_CHARS length window (inclusive)."""
    if not (TEXT_MIN_CHARS <= len(text) <= TEXT_MAX_CHARS):
        raise ValidationError(
            "{} must be between {} and {} characters (got {})".format(
                field.capitalize(), TEXT_MIN_CHARS, TEXT_MAX_CHARS, len(text)
            )
        )
    return text


def check_range(value: float, low: float, high: float, field: str) -> float:
    if not (low <= value <= high):
        raise ValidationError(
            "{} must be between {} and {} (got {})".format(field, low, high, value)
        )
    return value


def check_choice(value: str, choices, field: str) -> str:
    if value not in choices:
        raise ValidationError(
            "Unsupported {} '{}'. Choose one of: {}".format(field, value, ", ".join(choices))
        )
    return value


def text_list(params: Mapping[str, Any], name: str) -> List[str]:
    """Return a non-empty list of strings (a single string becomes a list of one)."""
    value = require(params, name)
    if isinstance(value, str):
        value = [value]
    texts = [str(t) for t in value if str(t).strip()]
    if not texts:
        raise ValidationError("Parameter '{}' must contain at least one text".format(name))
    return texts


def input_binary(item: Item, params: Mapping[str, Any], default_field: str = "data") -> BinaryData:
    """Return the item's input media named by the binary_field parameter."""
    field = optional(params, "binary_field", default_field)
    binary = item.binary.get(field)
    if binary is None:
        raise ValidationError("Item has no binary data in field '{}'".format(field))
    return binary


def as_file_part(binary: BinaryData) -> FilePart:
    return (binary.file_name, binary.data, binary.mime_type)


def output_names(
    params: Mapping[str, Any], name: str, defaults: List[str]
) -> List[str]:
    """Return caller-chosen binary output names, padded with defaults.

    A padded slot whose default the caller already took gets the first
    unused default instead, so every output keeps its own name. Repeated
    caller names are rejected.
    """
    names: Optional[Any] = optional(params, name)
    if names is None:
        return list(defaults)
    if isinstance(names, str):
        names = [n.strip() for n in names.split(",") if n.strip()]
    names = [str(n) for n in names]
    if len(set(names)) != len(names):
        raise ValidationError(
            "Parameter '{}' repeats a name: {}".format(name, ", ".join(names))
        )
    for default in defaults[len(names):]:
        if default in names:
            default = next(d for d in defaults if d not in names)
        names.append(default)
    return names
