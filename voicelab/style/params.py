"""
Style parameter vector, its schema/ranges, and JSON interchange.
Interchange keys are camelCase to stay compatible with exported style files.
"""
import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from voicelab.core.params import ParamDef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StyleParameters:
    pitch_shift: float = 0.0      # semitones
    formant_shift: float = 0.0    # percent
    time_stretch: float = 1.0     # speed factor
    resonance: float = 50.0
    breathiness: float = 20.0
    brightness: float = 50.0
    warmth: float = 50.0
    nasality: float = 30.0

    def blend(self, other: "StyleParameters", t: float) -> "StyleParameters":
        """Linear interpolation per field; t=0 -> self, t=1 -> other, both exact."""
        return StyleParameters(**{
            f.name: getattr(self, f.name) * (1.0 - t) + getattr(other, f.name) * t
            for f in fields(self)
        })

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StyleParameters":
        """Accepts snake_case or camelCase keys; missing keys take defaults."""
        values = {}
        for f in fields(cls):
            for key in (f.name, INTERCHANGE_KEYS[f.name]):
                if key in data:
                    values[f.name] = float(data[key])
                    break
        return cls(**values)


# -----------------------------------------------------------------------------
# Schema (ranges and units)
# -----------------------------------------------------------------------------

STYLE_PARAM_SCHEMA: Dict[str, ParamDef] = {
    "pitch_shift": ParamDef("pitch_shift", 0.0, -12.0, 12.0, "semitones"),
    "formant_shift": ParamDef("formant_shift", 0.0, -50.0, 50.0, "%"),
    "time_stretch": ParamDef("time_stretch", 1.0, 0.5, 2.0, "x"),
    "resonance": ParamDef("resonance", 50.0, 0.0, 100.0),
    "breathiness": ParamDef("breathiness", 20.0, 0.0, 100.0),
    "brightness": ParamDef("brightness", 50.0, 0.0, 100.0),
    "warmth": ParamDef("warmth", 50.0, 0.0, 100.0),
    "nasality": ParamDef("nasality", 30.0, 0.0, 100.0),
}

INTERCHANGE_KEYS = {
    "pitch_shift": "pitchShift",
    "formant_shift": "formantShift",
    "time_stretch": "timeStretch",
    "resonance": "resonance",
    "breathiness": "breathiness",
    "brightness": "brightness",
    "warmth": "warmth",
    "nasality": "nasality",
}


def default_parameters() -> StyleParameters:
    return StyleParameters(**{name: p.default for name, p in STYLE_PARAM_SCHEMA.items()})


def clamp_style_params(params: StyleParameters) -> StyleParameters:
    """
    Clamp every field to its schema range. Returns a new instance (input untouched).
    """
    return StyleParameters(**{
        name: p.clamp(getattr(params, name))
        for name, p in STYLE_PARAM_SCHEMA.items()
    })


def out_of_range_fields(params: StyleParameters) -> Dict[str, float]:
    """Fields whose value lies outside the schema range."""
    return {
        name: getattr(params, name)
        for name, p in STYLE_PARAM_SCHEMA.items()
        if not p.contains(getattr(params, name))
    }


# -----------------------------------------------------------------------------
# JSON interchange
# -----------------------------------------------------------------------------

def export_style_parameters(params: StyleParameters) -> str:
    return json.dumps({INTERCHANGE_KEYS[k]: v for k, v in params.to_dict().items()}, indent=2)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def import_style_parameters(text: str) -> Optional[StyleParameters]:
    """
    Parse exported style JSON. Returns None (never raises) unless all eight
    keys are present and numeric.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        logger.warning("Failed to import style parameters: %s", exc)
        return None
    if not isinstance(data, dict):
        return None
    if not all(_is_number(data.get(key)) for key in INTERCHANGE_KEYS.values()):
        return None
    return StyleParameters(**{name: float(data[key]) for name, key in INTERCHANGE_KEYS.items()})
