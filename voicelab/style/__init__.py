"""
Voice style transfer: parameter vectors, presets and the rendering chain.
"""
from voicelab.style.params import (
    StyleParameters,
    default_parameters,
    export_style_parameters,
    import_style_parameters,
)
from voicelab.style.presets import VOICE_STYLES, get_style_preset
from voicelab.style.transfer import StyleTransfer

__all__ = [
    "StyleParameters",
    "StyleTransfer",
    "VOICE_STYLES",
    "default_parameters",
    "export_style_parameters",
    "get_style_preset",
    "import_style_parameters",
]
