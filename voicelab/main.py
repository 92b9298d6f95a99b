from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
import math
import base64
import binascii

from voicelab.core.errors import (
    DecodeError,
    InvalidRangeError,
    NoAudioLoadedError,
    SilentAudioError,
    VoiceLabError,
)
from voicelab.core.io import AudioIO
from voicelab.core.params import get_db_gain, get_float, get_param
from voicelab.core.types import SampleBuffer
from voicelab.analysis.metrics import analyze_buffer, spectral_centroid_fft
from voicelab.analysis.compare import VoiceComparator, preference_score
from voicelab.editor.session import AudioEditor
from voicelab.style.params import StyleParameters, clamp_style_params
from voicelab.style.presets import STYLE_CATEGORIES, VOICE_STYLES, get_style_preset
from voicelab.style.transfer import StyleTransfer

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("voicelab")

app = FastAPI(
    title="VoiceLab Engine",
    version="1.0.0",
    description="Voice editing, analysis and style transfer engine"
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # Allow any local port
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error class -> HTTP status
ERROR_STATUS = {
    DecodeError: 400,
    InvalidRangeError: 422,
    SilentAudioError: 422,
    NoAudioLoadedError: 409,
}


def _http_error(exc: VoiceLabError) -> HTTPException:
    status = ERROR_STATUS.get(type(exc), 400)
    return HTTPException(status_code=status, detail=str(exc))


def _decode_audio(body: dict, key: str = "audio") -> SampleBuffer:
    """Base64 audio field -> SampleBuffer."""
    raw = body.get(key)
    if not isinstance(raw, str) or not raw:
        raise HTTPException(status_code=422, detail=f"Missing base64 field '{key}'")
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=422, detail=f"Field '{key}' is not valid base64")
    try:
        return AudioIO.decode(data)
    except DecodeError as exc:
        raise _http_error(exc)


def _encode_audio(buffer: SampleBuffer) -> str:
    return base64.b64encode(AudioIO.to_bytes(buffer)).decode("utf-8")


def _resolve_style(style) -> StyleParameters:
    """A preset id string or a parameter dict (snake_case or camelCase)."""
    if isinstance(style, str):
        preset = get_style_preset(style)
        if preset is None:
            raise HTTPException(status_code=404, detail=f"Unknown style preset '{style}'")
        return preset.parameters
    if isinstance(style, dict):
        try:
            return clamp_style_params(StyleParameters.from_dict(style))
        except (TypeError, ValueError):
            raise HTTPException(status_code=422, detail="Style parameters must be numeric")
    raise HTTPException(status_code=422, detail="Style must be a preset id or a parameter object")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "voicelab-engine"}


@app.get("/styles")
async def list_styles():
    return {
        "categories": STYLE_CATEGORIES,
        "styles": [p.to_dict() for p in VOICE_STYLES],
    }


@app.post("/analyze")
async def analyze(body: dict):
    """
    Acoustic metrics for one sample.
    Body: { audio: base64 }
    """
    buffer = _decode_audio(body)
    metrics = analyze_buffer(buffer)
    return {
        "duration": buffer.duration,
        "sample_rate": buffer.sample_rate,
        "channels": buffer.num_channels,
        "metrics": metrics.to_dict(),
        "preference_score": preference_score(metrics),
        "spectral_centroid_fft_hz": spectral_centroid_fft(buffer.channel(0), buffer.sample_rate),
    }


@app.post("/compare")
async def compare(body: dict):
    """
    A/B comparison.
    Body: { audio_a, audio_b, name_a?, name_b?, width? }
    """
    buffer_a = _decode_audio(body, "audio_a")
    buffer_b = _decode_audio(body, "audio_b")
    width = get_float(body, "width", 0)
    if not math.isfinite(width) or width < 0:
        raise HTTPException(status_code=422, detail="width must be a positive number")
    width = int(width)
    result = VoiceComparator().compare(
        buffer_a,
        buffer_b,
        name_a=body.get("name_a", "Sample A"),
        name_b=body.get("name_b", "Sample B"),
        waveform_width=width or None,
    )
    return result.to_dict()


@app.post("/style/apply")
async def style_apply(body: dict):
    """
    Body: { audio, preset? | parameters? }
    Returns base64 WAV and the parameters used.
    """
    buffer = _decode_audio(body)
    style = body.get("preset") or body.get("parameters")
    if style is None:
        raise HTTPException(status_code=422, detail="Provide 'preset' or 'parameters'")
    params = _resolve_style(style)
    out = StyleTransfer.apply_style(buffer, params)
    return {"audio": _encode_audio(out), "parameters": params.to_dict(), "duration": out.duration}


@app.post("/style/blend")
async def style_blend(body: dict):
    """
    Body: { audio, style_a, style_b, blend: 0-100 }
    style_a/style_b are preset ids or parameter objects.
    """
    buffer = _decode_audio(body)
    style_a = _resolve_style(body.get("style_a"))
    style_b = _resolve_style(body.get("style_b"))
    blend = get_float(body, "blend", 50.0)
    try:
        out = StyleTransfer.blend_styles(buffer, style_a, style_b, blend)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {
        "audio": _encode_audio(out),
        "parameters": style_a.blend(style_b, blend / 100.0).to_dict(),
        "duration": out.duration,
    }


def _apply_operation(editor: AudioEditor, op: dict) -> None:
    name = get_param(op, "op")
    if name == "trim":
        editor.trim(get_float(op, "start", 0.0), get_float(op, "end", editor.duration))
    elif name == "volume":
        if "gain_db" in op:
            editor.adjust_volume(get_db_gain(op, "gain_db"))
        else:
            editor.adjust_volume(get_float(op, "multiplier", 1.0))
    elif name == "fade":
        editor.fade(get_param(op, "direction", "in"), get_float(op, "duration", 0.5))
    elif name == "reverse":
        editor.reverse()
    elif name == "normalize":
        editor.normalize()
    elif name == "undo":
        editor.undo()
    else:
        raise HTTPException(status_code=422, detail=f"Unknown edit operation '{name}'")


@app.post("/edit")
async def edit(body: dict):
    """
    Applies a sequence of edits in one session.
    Body: { audio, operations: [{op: trim|volume|fade|reverse|normalize|undo, ...}] }
    """
    operations = body.get("operations") or []
    if not isinstance(operations, list):
        raise HTTPException(status_code=422, detail="'operations' must be a list")
    buffer = _decode_audio(body)

    editor = AudioEditor()
    editor.load_buffer(buffer)
    try:
        for op in operations:
            if not isinstance(op, dict):
                raise HTTPException(status_code=422, detail="Each operation must be an object")
            _apply_operation(editor, op)
        wav_bytes = editor.export()
        history = [entry.action for entry in editor.history]
        duration = editor.duration
    except VoiceLabError as exc:
        raise _http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    finally:
        editor.close()

    logger.info("edit: %d operations -> %.3fs", len(operations), duration)
    return {
        "audio": base64.b64encode(wav_bytes).decode("utf-8"),
        "history": history,
        "duration": duration,
    }


if __name__ == "__main__":
    uvicorn.run("voicelab.main:app", host="0.0.0.0", port=8000, reload=True)
