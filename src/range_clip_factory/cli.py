from __future__ import annotations

import argparse
import sys
import threading
from dataclasses import replace
from pathlib import Path

from range_clip_factory.domain.clip_specs import ClipSpecBuilder
from range_clip_factory.domain.errors import FormatError, StagingError
from range_clip_factory.domain.models import BatchEvent, BatchSnapshot, BatchState, WatermarkConfig, WatermarkPosition
from range_clip_factory.utils.config import PROJECT_ROOT, load_settings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2
EXIT_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="range-clips", description="Cut a video into clips from a list of time ranges")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_ranges_args(cmd: argparse.ArgumentParser) -> None:
        cmd.add_argument(
            "--range",
            dest="ranges",
            action="append",
            default=[],
            help='time range, e.g. "00:10 - 00:45" (repeatable)',
        )
        cmd.add_argument("--ranges-file", default="", help="file with one range per line ('-' for stdin)")

    check_cmd = sub.add_parser("check", help="validate ranges and list the parts without transcoding")
    add_ranges_args(check_cmd)

    run_cmd = sub.add_parser("run", help="extract every range into its own clip")
    run_cmd.add_argument("--input", required=True, help="source video path or content URL")
    add_ranges_args(run_cmd)
    run_cmd.add_argument("--output-dir", default="", help="folder that receives the clip subfolder")
    run_cmd.add_argument("--watermark", default="", help="watermark text (enables the watermark)")
    run_cmd.add_argument(
        "--reuse-watermark",
        action="store_true",
        help="reuse the watermark text from the previous run",
    )
    run_cmd.add_argument(
        "--position",
        choices=[p.value for p in WatermarkPosition],
        default=WatermarkPosition.CENTER.value,
    )
    run_cmd.add_argument("--no-crop", action="store_true", help="keep the source aspect ratio")
    run_cmd.add_argument("--abort-on-failure", action="store_true", help="stop at the first failed part")
    run_cmd.add_argument(
        "--strict-relocation",
        action="store_true",
        help="count a failed move to the output folder as a failed part",
    )
    return parser


def _read_ranges_text(args: argparse.Namespace) -> str:
    lines = list(args.ranges or [])
    source = str(args.ranges_file or "").strip()
    if source == "-":
        lines.append(sys.stdin.read())
    elif source:
        lines.append(Path(source).read_text(encoding="utf-8"))
    return "\n".join(lines)


def _cmd_check(args: argparse.Namespace, max_parts: int) -> int:
    builder = ClipSpecBuilder(max_parts=max_parts)
    try:
        builder.load_text(_read_ranges_text(args))
    except FormatError as exc:
        print(f"Invalid ranges: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT
    for label in builder.labels():
        print(label)
    return EXIT_OK


def _print_event(event: BatchEvent) -> None:
    if event.kind == "clip.started":
        print(f"Part {event.index}/{event.total}: {event.message}")
    elif event.kind in ("clip.failed", "clip.relocation_failed"):
        print(f"  Failed: {event.message}")
    elif event.kind == "batch.progress":
        print(f"  {event.index}/{event.total} ({event.snapshot.percent:.0f}%)")


def _exit_code(snapshot: BatchSnapshot) -> int:
    if snapshot.state == BatchState.CANCELLED:
        return EXIT_CANCELLED
    if snapshot.state == BatchState.COMPLETED and not snapshot.failed:
        return EXIT_OK
    return EXIT_FAILED


def _cmd_run(args: argparse.Namespace) -> int:
    from range_clip_factory.app import build_orchestrator, load_app_settings

    settings = load_app_settings()
    pipeline = replace(
        settings.pipeline,
        abort_on_clip_failure=settings.pipeline.abort_on_clip_failure or bool(args.abort_on_failure),
        strict_relocation=settings.pipeline.strict_relocation or bool(args.strict_relocation),
    )
    settings = replace(settings, pipeline=pipeline)

    builder = ClipSpecBuilder(max_parts=pipeline.max_parts)
    try:
        clips = builder.load_text(_read_ranges_text(args))
    except FormatError as exc:
        print(f"Invalid ranges: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    orch = build_orchestrator(settings)
    text = str(args.watermark or "")
    if not text and args.reuse_watermark:
        text = orch.store.last_watermark_text()
    watermark = WatermarkConfig(enabled=bool(text), text=text, position=WatermarkPosition(args.position))
    if watermark.active:
        orch.store.save_watermark_text(text)

    output_root = Path(str(args.output_dir or "").strip() or pipeline.default_output_dir).expanduser()
    print(f"{len(clips)} part(s) -> {output_root / pipeline.output_subdir}")

    result: dict[str, object] = {}

    def worker() -> None:
        try:
            result["snapshot"] = orch.run(
                args.input,
                clips,
                output_root,
                watermark=watermark,
                crop_enabled=not args.no_crop,
                on_event=_print_event,
            )
        except Exception as exc:
            result["error"] = exc

    thread = threading.Thread(target=worker, daemon=True)
    thread.start()
    while thread.is_alive():
        try:
            thread.join(0.5)
        except KeyboardInterrupt:
            print("Cancelling after the current part...", file=sys.stderr)
            orch.request_cancel()

    error = result.get("error")
    if isinstance(error, StagingError):
        print(f"Could not read the source: {error}", file=sys.stderr)
        return EXIT_FAILED
    if isinstance(error, Exception):
        raise error

    snapshot: BatchSnapshot = result["snapshot"]  # type: ignore[assignment]
    report_path = output_root / pipeline.output_subdir / f"batch_{snapshot.batch_id}.json"
    orch.store.write_json(report_path, snapshot.to_dict())
    print(
        f"{snapshot.state.value}: {len(snapshot.succeeded)} ok / {len(snapshot.failed)} failed "
        f"/ {snapshot.total} total (report: {report_path})"
    )
    return _exit_code(snapshot)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "check":
        raise SystemExit(_cmd_check(args, load_settings(PROJECT_ROOT).pipeline.max_parts))
    if args.command == "run":
        raise SystemExit(_cmd_run(args))
    raise SystemExit("unsupported command")


if __name__ == "__main__":
    main()
