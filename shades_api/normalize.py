# shades_api/normalize.py
import json
import math
from typing import Any, List, Mapping, Optional, Sequence

from .errors import ValidationError
from .schemas import ProductDraft

_REQUIRED_TEXT = ("name", "variant", "category")


def _text(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


def _to_number(v: Any) -> Optional[float]:
    """Parse a form value as a finite number; None when it does not parse."""
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        f = float(v)
    else:
        s = _text(v)
        if not s:
            return None
        try:
            f = float(s)
        except ValueError:
            return None
    return f if math.isfinite(f) else None


def _parse_colors_text(s: str) -> List[str]:
    s = s.strip()
    if not s:
        return []
    try:
        parsed = json.loads(s)
    except json.JSONDecodeError:
        raise ValidationError("colors must be a JSON list of strings")
    if not isinstance(parsed, list) or not all(isinstance(c, str) for c in parsed):
        raise ValidationError("colors must be a JSON list of strings")
    return [c.strip() for c in parsed if c.strip()]


def coerce_colors(raw: Any) -> List[str]:
    """
    Accept colors as JSON text ('["black","blue"]') or an already structured list.
    A list holding a single JSON text (one multipart field) is parsed as well.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return _parse_colors_text(raw)
    values = list(raw)
    if len(values) == 1 and isinstance(values[0], str) and values[0].lstrip().startswith("["):
        return _parse_colors_text(values[0])
    return [_text(c) for c in values if _text(c)]


def coerce_images(raw: Any) -> List[str]:
    """Filenames given as a list, JSON list text, or comma separated text."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [_text(i) for i in raw if _text(i)]
    s = _text(raw)
    if s.startswith("[") and s.endswith("]"):
        try:
            parsed = json.loads(s)
        except json.JSONDecodeError:
            raise ValidationError("images must be a list of filenames")
        return coerce_images(parsed)
    return [p.strip() for p in s.split(",") if p.strip()]


def normalize_product_form(fields: Mapping[str, Any], images: Sequence[str] = ()) -> ProductDraft:
    """
    Turn loosely typed form fields into a ProductDraft.

      - name / variant / category: trimmed, required
      - price: required number
      - originalPrice: number or null when blank
      - colors: JSON text or list, defaults to []
      - rating / reviews: number, 0 when missing or unparseable
      - isNew: True only for the literal text "true"
      - badge: passed through when non-blank
    """
    data = {}
    for key in _REQUIRED_TEXT:
        value = _text(fields.get(key))
        if not value:
            raise ValidationError(f"{key} is required")
        data[key] = value

    raw_price = fields.get("price")
    if _text(raw_price) == "":
        raise ValidationError("price is required")
    price = _to_number(raw_price)
    if price is None:
        raise ValidationError("price must be a number")
    data["price"] = price

    raw_original = fields.get("originalPrice")
    if _text(raw_original) == "":
        data["original_price"] = None
    else:
        original = _to_number(raw_original)
        if original is None:
            raise ValidationError("originalPrice must be a number")
        data["original_price"] = original

    data["colors"] = coerce_colors(fields.get("colors"))
    data["rating"] = _to_number(fields.get("rating")) or 0
    data["reviews"] = _to_number(fields.get("reviews")) or 0
    data["is_new"] = fields.get("isNew") == "true"
    data["badge"] = _text(fields.get("badge")) or None
    data["images"] = list(images)

    return ProductDraft(**data)
