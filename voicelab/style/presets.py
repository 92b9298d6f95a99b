"""
Built-in voice style presets, grouped by category.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from voicelab.style.params import StyleParameters


@dataclass(frozen=True)
class StylePreset:
    id: str
    name: str
    description: str
    category: str
    parameters: StyleParameters

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "parameters": self.parameters.to_dict(),
        }


def _preset(id, name, description, category, pitch, formant, stretch, resonance, breath, bright, warmth, nasal):
    return StylePreset(
        id, name, description, category,
        StyleParameters(
            pitch_shift=pitch,
            formant_shift=formant,
            time_stretch=stretch,
            resonance=resonance,
            breathiness=breath,
            brightness=bright,
            warmth=warmth,
            nasality=nasal,
        ),
    )


# pitch, formant, stretch, resonance, breathiness, brightness, warmth, nasality
VOICE_STYLES: List[StylePreset] = [
    # Characters
    _preset("robot", "Robot", "Mechanical, robotic voice transformation", "character", -2, -15, 0.95, 20, 0, 60, 30, 10),
    _preset("alien", "Alien", "Extraterrestrial, otherworldly voice", "character", 4, 25, 1.1, 70, 40, 80, 20, 60),
    _preset("monster", "Monster", "Deep, growling creature voice", "character", -8, -35, 0.85, 90, 60, 20, 85, 15),
    _preset("chipmunk", "Chipmunk", "High-pitched, squeaky voice", "character", 8, 40, 1.2, 30, 20, 90, 10, 50),
    # Age
    _preset("child", "Child", "Young, innocent child voice", "age", 5, 30, 1.08, 40, 25, 75, 35, 35),
    _preset("teenager", "Teenager", "Adolescent voice characteristics", "age", 2, 15, 1.05, 55, 30, 65, 45, 25),
    _preset("elderly", "Elderly", "Aged, mature voice quality", "age", -3, -10, 0.9, 70, 55, 35, 70, 40),
    # Professional
    _preset("announcer", "Announcer", "Professional broadcast voice", "professional", -1, -5, 0.95, 75, 15, 55, 80, 10),
    _preset("narrator", "Narrator", "Audiobook narrator style", "professional", 0, 0, 0.92, 65, 20, 50, 75, 15),
    _preset("newscaster", "Newscaster", "News reporter voice", "professional", -1, -3, 1.0, 70, 10, 60, 70, 5),
    # Effects
    _preset("telephone", "Telephone", "Phone call quality", "effect", 0, 0, 1.0, 40, 5, 30, 25, 60),
    _preset("megaphone", "Megaphone", "Amplified, distorted voice", "effect", 1, 5, 1.0, 50, 0, 85, 40, 70),
    _preset("underwater", "Underwater", "Submerged, muffled voice", "effect", -2, -20, 0.88, 85, 30, 15, 60, 45),
    # Creative
    _preset("masculine", "Masculine", "Deeper, masculine characteristics", "creative", -4, -20, 0.95, 80, 15, 40, 85, 10),
    _preset("feminine", "Feminine", "Lighter, feminine characteristics", "creative", 4, 20, 1.05, 50, 35, 75, 50, 25),
    _preset("whisper", "Whisper", "Soft, breathy whisper", "creative", -1, 5, 0.9, 30, 90, 40, 35, 20),
    _preset("demon", "Demon", "Dark, sinister voice", "creative", -10, -40, 0.8, 95, 70, 10, 90, 25),
]

STYLE_CATEGORIES: List[Dict[str, str]] = [
    {"id": "all", "name": "All Styles"},
    {"id": "character", "name": "Characters"},
    {"id": "age", "name": "Age Transform"},
    {"id": "professional", "name": "Professional"},
    {"id": "effect", "name": "Effects"},
    {"id": "creative", "name": "Creative"},
]

_BY_ID = {p.id: p for p in VOICE_STYLES}


def get_style_preset(preset_id: str) -> Optional[StylePreset]:
    return _BY_ID.get(preset_id)


def get_styles_by_category(category: str) -> List[StylePreset]:
    if category == "all":
        return list(VOICE_STYLES)
    return [p for p in VOICE_STYLES if p.category == category]
