# scheve_cms/layout/position.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List

from scheve_cms.errors import ValidationError

# Page-bound sanity limits for a single text field
COORD_MIN, COORD_MAX = 0, 1000
FONT_SIZE_MIN, FONT_SIZE_MAX = 6, 30
MAX_HEIGHT_MIN, MAX_HEIGHT_MAX = 10, 100

DEFAULT_FONT_SIZE = 10
DEFAULT_MAX_HEIGHT = 15


def _is_integral(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


class TextAlign(str, Enum):
    LEFT = "Left"
    CENTER = "Center"
    RIGHT = "Right"

    @classmethod
    def parse(cls, value: Any) -> "TextAlign":
        if isinstance(value, TextAlign):
            return value
        v = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == v:
                return member
        raise ValueError(f"text_align must be one of Left, Center, Right (got {value!r})")


@dataclass(frozen=True)
class LayoutPosition:
    """Where and how one text field is drawn. Coordinates are points from the top-left corner."""

    top: int = 0
    left: int = 0
    font_size: int = DEFAULT_FONT_SIZE
    max_height: int = DEFAULT_MAX_HEIGHT
    bold: bool = False
    text_align: TextAlign = TextAlign.LEFT

    def validate(self, prefix: str = "") -> List[str]:
        """Return every violated bound (empty list when valid)."""
        p = f"{prefix}." if prefix else ""
        errors: List[str] = []

        for name, lo, hi in (
            ("top", COORD_MIN, COORD_MAX),
            ("left", COORD_MIN, COORD_MAX),
            ("font_size", FONT_SIZE_MIN, FONT_SIZE_MAX),
            ("max_height", MAX_HEIGHT_MIN, MAX_HEIGHT_MAX),
        ):
            v = getattr(self, name)
            if not _is_integral(v):
                errors.append(f"{p}{name} must be an integer (got {v!r})")
            elif not (lo <= v <= hi):
                errors.append(f"{p}{name} must be between {lo} and {hi} (got {v})")

        if not isinstance(self.bold, bool):
            errors.append(f"{p}bold must be true or false (got {self.bold!r})")

        if not isinstance(self.text_align, TextAlign):
            errors.append(f"{p}text_align must be one of Left, Center, Right")

        return errors

    def to_dict(self) -> dict:
        return {
            "top": self.top,
            "left": self.left,
            "font_size": self.font_size,
            "max_height": self.max_height,
            "bold": self.bold,
            "text_align": self.text_align.value,
        }

    @classmethod
    def from_dict(cls, data: Any, prefix: str = "", errors: List[str] | None = None) -> "LayoutPosition | None":
        """
        Parse a position dict. Type problems are appended to `errors`;
        returns None when the dict could not be parsed at all.
        Range checks are left to validate().
        """
        errs = errors if errors is not None else []
        p = f"{prefix}." if prefix else ""

        if not isinstance(data, dict):
            errs.append(f"{prefix or 'position'} must be an object")
            if errors is None:
                raise ValidationError(errs)
            return None

        values: dict = {}
        ok = True

        for name, default in (
            ("top", 0),
            ("left", 0),
            ("font_size", DEFAULT_FONT_SIZE),
            ("max_height", DEFAULT_MAX_HEIGHT),
        ):
            raw = data.get(name, default)
            if not _is_integral(raw):
                errs.append(f"{p}{name} must be an integer (got {raw!r})")
                ok = False
                continue
            values[name] = int(raw)

        bold = data.get("bold", False)
        if not isinstance(bold, bool):
            errs.append(f"{p}bold must be true or false (got {bold!r})")
            ok = False
        values["bold"] = bold

        try:
            values["text_align"] = TextAlign.parse(data.get("text_align", TextAlign.LEFT.value))
        except ValueError as e:
            errs.append(f"{p}{e}")
            ok = False

        if not ok:
            if errors is None:
                raise ValidationError(errs)
            return None

        return cls(**values)
