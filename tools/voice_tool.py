#!/usr/bin/env python3
"""
Command-line front end for the VoiceLab engine.

Usage:
    python tools/voice_tool.py <subcommand> [options]

Subcommands:
    analyze <file>                           Print acoustic metrics for one file
    compare <file_a> <file_b>                A/B comparison with similarity and recommendation
    style <in> <out>                         Apply a preset (--preset) or params JSON (--params)
    blend <in> <out> <style_a> <style_b>     Blend two presets/params files (--blend 0-100)
    edit <in> <out>                          Trim / volume / fade / reverse / normalize, in that order
    presets                                  List style presets

Options:
    --json               Machine-readable output (analyze, compare)
    --width <int>        Waveform overview width (compare)
    --normalize-output   Peak-normalize the written file (style, blend)
"""
import sys
import os
import json
import argparse
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from voicelab.core.errors import VoiceLabError
from voicelab.core.io import AudioIO
from voicelab.analysis.metrics import analyze_buffer
from voicelab.analysis.compare import VoiceComparator, format_metric, metric_label, preference_score
from voicelab.editor.session import AudioEditor
from voicelab.style.params import StyleParameters, import_style_parameters
from voicelab.style.presets import VOICE_STYLES, get_style_preset
from voicelab.style.transfer import StyleTransfer

logger = logging.getLogger("voicelab")


def _load_style(style: str) -> StyleParameters:
    """Preset id, or path to an exported style JSON file."""
    preset = get_style_preset(style)
    if preset is not None:
        return preset.parameters
    if os.path.exists(style):
        with open(style, "r") as f:
            params = import_style_parameters(f.read())
        if params is not None:
            return params
        raise ValueError(f"{style}: not a valid style parameters file")
    raise ValueError(f"Unknown style preset '{style}'")


def _print_metrics(metrics) -> None:
    for key, value in metrics.to_dict().items():
        print(f"  {metric_label(key):<20} {format_metric(key, value)}")


def cmd_analyze(args):
    buffer = AudioIO.load(args.file)
    metrics = analyze_buffer(buffer)
    score = preference_score(metrics)
    if args.json:
        print(json.dumps({"metrics": metrics.to_dict(), "preference_score": score}, indent=2))
        return 0
    print(f"{args.file}: {buffer.duration:.2f}s, {buffer.sample_rate} Hz, {buffer.num_channels} ch")
    _print_metrics(metrics)
    print(f"  {'Preference Score':<20} {score:.0f}/100")
    return 0


def cmd_compare(args):
    a = AudioIO.load(args.file_a)
    b = AudioIO.load(args.file_b)
    result = VoiceComparator().compare(
        a, b,
        name_a=os.path.basename(args.file_a),
        name_b=os.path.basename(args.file_b),
        waveform_width=args.width,
    )
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0
    print(f"A: {result.name_a}")
    _print_metrics(result.metrics_a)
    print(f"B: {result.name_b}")
    _print_metrics(result.metrics_b)
    print(f"\nSimilarity: {result.similarity:.1f}%")
    print(result.recommendation)
    return 0


def cmd_style(args):
    if bool(args.preset) == bool(args.params):
        print("Provide exactly one of --preset or --params")
        return 1
    params = _load_style(args.preset or args.params)
    out = StyleTransfer.apply_style(AudioIO.load(args.input), params)
    AudioIO.save_wav(out, args.output, normalize=args.normalize_output)
    print(f"Wrote {args.output} ({out.duration:.2f}s)")
    return 0


def cmd_blend(args):
    style_a = _load_style(args.style_a)
    style_b = _load_style(args.style_b)
    out = StyleTransfer.blend_styles(AudioIO.load(args.input), style_a, style_b, args.blend)
    AudioIO.save_wav(out, args.output, normalize=args.normalize_output)
    print(f"Wrote {args.output} ({out.duration:.2f}s, blend {args.blend:.0f}%)")
    return 0


def cmd_edit(args):
    editor = AudioEditor()
    with open(args.input, "rb") as f:
        editor.load(f.read())
    if args.trim:
        editor.trim(args.trim[0], args.trim[1])
    if args.volume is not None:
        editor.adjust_volume(args.volume)
    if args.fade:
        editor.fade(args.fade[0], float(args.fade[1]))
    if args.reverse:
        editor.reverse()
    if args.normalize:
        editor.normalize()
    with open(args.output, "wb") as f:
        f.write(editor.export())
    steps = " -> ".join(entry.action for entry in editor.history)
    print(f"Wrote {args.output} ({editor.duration:.2f}s): {steps}")
    editor.close()
    return 0


def cmd_presets(args):
    for preset in VOICE_STYLES:
        print(f"{preset.id:<12} {preset.category:<13} {preset.description}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="VoiceLab engine: analysis, comparison, style transfer and editing"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    p_an = subparsers.add_parser("analyze", help="Print acoustic metrics")
    p_an.add_argument("file")
    p_an.add_argument("--json", action="store_true")

    p_cmp = subparsers.add_parser("compare", help="A/B comparison")
    p_cmp.add_argument("file_a")
    p_cmp.add_argument("file_b")
    p_cmp.add_argument("--json", action="store_true")
    p_cmp.add_argument("--width", type=int, default=None, help="Waveform overview width")

    p_style = subparsers.add_parser("style", help="Apply a style")
    p_style.add_argument("input")
    p_style.add_argument("output")
    p_style.add_argument("--preset", type=str, help="Preset id (see 'presets')")
    p_style.add_argument("--params", type=str, help="Exported style JSON file")
    p_style.add_argument("--normalize-output", action="store_true", help="Scale the result to full-scale peak")

    p_blend = subparsers.add_parser("blend", help="Blend two styles")
    p_blend.add_argument("input")
    p_blend.add_argument("output")
    p_blend.add_argument("style_a", help="Preset id or style JSON file")
    p_blend.add_argument("style_b", help="Preset id or style JSON file")
    p_blend.add_argument("--blend", type=float, default=50.0, help="0 = all A, 100 = all B")
    p_blend.add_argument("--normalize-output", action="store_true", help="Scale the result to full-scale peak")

    p_edit = subparsers.add_parser("edit", help="Edit audio")
    p_edit.add_argument("input")
    p_edit.add_argument("output")
    p_edit.add_argument("--trim", type=float, nargs=2, metavar=("START", "END"))
    p_edit.add_argument("--volume", type=float, help="Gain multiplier")
    p_edit.add_argument("--fade", nargs=2, metavar=("DIRECTION", "SECONDS"))
    p_edit.add_argument("--reverse", action="store_true")
    p_edit.add_argument("--normalize", action="store_true")

    subparsers.add_parser("presets", help="List style presets")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "analyze": cmd_analyze,
        "compare": cmd_compare,
        "style": cmd_style,
        "blend": cmd_blend,
        "edit": cmd_edit,
        "presets": cmd_presets,
    }
    try:
        return commands[args.command](args)
    except (VoiceLabError, ValueError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
