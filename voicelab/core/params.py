"""
Field lookup and range helpers for request bodies and the style schema.
Request bodies are plain JSON dicts; nested fields are addressed with dotted names
("fade.duration").
"""
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ParamDef:
    """One tunable: default plus optional [min, max] range and display unit."""
    name: str
    default: float
    min: Optional[float] = None
    max: Optional[float] = None
    unit: Optional[str] = None

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True

    def clamp(self, value: float) -> float:
        return clamp_if_bounds(value, self.min, self.max)


def get_param(body: dict, name: str, default: Any = None) -> Any:
    """
    Dotted lookup into nested dicts. Any missing or non-dict step yields `default`.
    """
    if not body or not name:
        return default
    *path, leaf = name.split(".")
    node = body
    for key in path:
        node = node.get(key)
        if not isinstance(node, dict):
            return default
    return node.get(leaf, default)


def get_float(body: dict, name: str, default: float) -> float:
    """get_param coerced to float; unparseable values fall back to default."""
    try:
        return float(get_param(body, name, default))
    except (TypeError, ValueError):
        return default


def get_db_gain(body: dict, name: str, default_db: float = 0.0) -> float:
    """Field read as decibels, returned as a linear multiplier (0 dB -> 1.0)."""
    return 10.0 ** (get_float(body, name, default_db) / 20.0)


def clamp_if_bounds(value: float, lo: Optional[float] = None, hi: Optional[float] = None) -> float:
    """Clamp to whichever of lo/hi is set. Non-numeric values are returned untouched."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return value
    if lo is not None:
        v = max(v, lo)
    if hi is not None:
        v = min(v, hi)
    return v
