"""Thin CLI entry point: builds a SplitManifest and calls the engine."""

import argparse
import logging
import sys
from pathlib import Path

from mediasplit import ffutil
from mediasplit.engine import process
from mediasplit.errors import EngineLoadError, UnsupportedFormatError, user_message
from mediasplit.manifest import (
    DurationSpec,
    PartsSpec,
    ReEncode,
    SizeSpec,
    SplitManifest,
    StreamCopy,
    load_manifest,
)
from mediasplit.models import format_duration


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediasplit",
        description="MediaSplit: split video/audio files by part count, size or duration.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    split = sub.add_parser("split", help="Split a media file")
    split.add_argument("video", nargs="?", type=Path, help="Input video/audio file")
    split.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    split.add_argument("--output-dir", "-o", type=Path, help="Directory for the parts")
    mode = split.add_mutually_exclusive_group()
    mode.add_argument("--parts", type=int, help="Split into N equal parts (N >= 2)")
    mode.add_argument("--size-mb", type=float, help="Target size of each part in MB (>= 1)")
    mode.add_argument("--duration", type=float, help="Target duration of each part in seconds (>= 10)")
    split.add_argument("--reencode", action="store_true", help="Re-encode for frame-accurate cuts")
    split.add_argument("--crf", type=int, default=23, help="Video CRF when re-encoding")
    split.add_argument("--audio-bitrate", type=str, default="128k", help="Audio bitrate when re-encoding")
    split.add_argument("--overlap", type=float, default=0.0, help="Overlap between parts as a fraction of the total")

    probe = sub.add_parser("probe", help="Show duration and size of a media file")
    probe.add_argument("video", type=Path, help="Input video/audio file")

    serve = sub.add_parser("serve", help="Launch the web UI")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    return parser


def _manifest_from_args(args: argparse.Namespace) -> SplitManifest:
    if args.size_mb is not None:
        spec = SizeSpec(target_mb=args.size_mb)
    elif args.duration is not None:
        spec = DurationSpec(target_seconds=args.duration)
    else:
        spec = PartsSpec(count=args.parts if args.parts is not None else 2)

    encoding = ReEncode(video_crf=args.crf, audio_bitrate=args.audio_bitrate) if args.reencode else StreamCopy()
    output_dir = args.output_dir or args.video.parent / f"{args.video.stem}_parts"
    return SplitManifest(
        input=args.video,
        output_dir=output_dir,
        split=spec,
        encoding=encoding,
        overlap_ratio=args.overlap,
    )


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from mediasplit.web import create_app
        app = create_app()
        print(f"MediaSplit web UI: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
        return

    if args.command == "probe":
        try:
            media = ffutil.probe_media(args.video)
        except (EngineLoadError, UnsupportedFormatError) as e:
            print(f"Error: {user_message(e)}", file=sys.stderr)
            sys.exit(1)
        print(f"{media.name}")
        print(f"  Type: {media.mime_type}")
        print(f"  Size: {media.size_bytes / (1024 * 1024):.2f} MB")
        print(f"  Duration: {format_duration(media.duration)} ({media.duration:.3f}s)")
        return

    if args.manifest:
        m = load_manifest(args.manifest)
    elif args.video:
        m = _manifest_from_args(args)
    else:
        print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
        sys.exit(1)

    def on_progress(stage: str, percent: int) -> None:
        print(f"  [{percent:3d}%] {stage}")

    try:
        result = process(m, on_progress=on_progress)
    except Exception as e:
        print(f"Error: {user_message(e)}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Done! {len(result.artifacts)} parts in {m.output_dir}")
    print(f"  Source: {result.source.name} ({format_duration(result.source.duration)})")
    for artifact, window in zip(result.artifacts, result.windows):
        print(
            f"  {artifact.name}  {format_duration(window.duration)}"
            f"  {artifact.size_bytes / (1024 * 1024):.1f} MB"
        )
