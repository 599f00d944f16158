"""
Frame Replay Tool for the Label Scanner.

Feeds a recorded sequence of frames through the scanning pipeline and prints
the per-frame status, consensus fields, warnings and errors.

The frames file is a YAML list; each entry holds the recognized text and an
optional QR payload. An entry with ``text: null`` replays an upstream failure.

    - text: "SIRIM Serial No: T123456789 Batch No: AB-1234"
      qr: "https://sirim.example/verify?serial=T123456789"
    - text: "SIRIM Serial No: T123456789"

Usage:
    python scripts/replay_frames.py frames.yaml
    python scripts/replay_frames.py frames.yaml --config my_config.yaml --window 3
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

# Add src directory to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from sirim_scanner.ocr import (  # noqa: E402
    FrameGate,
    LabelScanProcessor,
    ThrottleConfig,
    field_label,
    get_default_config,
    load_config,
)

logger = logging.getLogger(__name__)


def load_frames(frames_path: Path) -> list:
    """Load the recorded frames list from YAML.

    Raises:
        FileNotFoundError: If the frames file does not exist
        ValueError: If the file does not hold a list of frames
    """
    if not frames_path.exists():
        raise FileNotFoundError(f"Frames file not found: {frames_path}")

    with open(frames_path, "r", encoding="utf-8") as f:
        frames = yaml.safe_load(f)

    if not isinstance(frames, list):
        raise ValueError(f"Expected a list of frames in {frames_path}")
    return frames


def replay(processor: LabelScanProcessor, frames: list) -> int:
    """Replay frames and print results. Returns the number of stable frames."""
    stable = 0
    for index, frame in enumerate(frames, start=1):
        frame = frame or {}
        result = processor.process(frame.get("text"), frame.get("qr"))

        print(f"Frame {index}: {result.status.value.upper()}", end="")
        if result.frame_count:
            print(f" (window={result.frame_count}, confidence={result.confidence:.2f})")
        else:
            print()

        if result.failure_reason is not None:
            print(f"  ✗ {result.failure_reason.code}: {result.failure_reason.message}")

        for key, value in result.fields.items():
            notes = ", ".join(sorted(note.value for note in value.notes))
            print(
                f"  {field_label(key):<18} {value.text:<24} "
                f"{value.confidence:.2f} [{value.source.value}] {notes}"
            )

        if result.validation is not None:
            for key, message in result.validation.warnings.items():
                print(f"  ⚠ {field_label(key)}: {message}")
            for key, message in result.validation.errors.items():
                print(f"  ✗ {field_label(key)}: {message}")

        if result.is_success():
            stable += 1
    return stable


def main():
    """Main entry point for frame replay."""
    parser = argparse.ArgumentParser(
        description="Replay recorded label frames through the scanning pipeline",
    )
    parser.add_argument("frames", type=Path, help="YAML file with the recorded frames")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Scanner config YAML (default: bundled config)",
    )
    parser.add_argument(
        "--window",
        type=int,
        default=None,
        help="Override the consensus window size",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(args.config) if args.config else get_default_config()
    if args.window is not None:
        config.scanner.consensus.window_size = args.window

    # Recorded frames are replayed back to back, so throttling is disabled
    processor = LabelScanProcessor(
        config=config, gate=FrameGate(ThrottleConfig(frame_interval_ms=0))
    )

    try:
        frames = load_frames(args.frames)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    stable = replay(processor, frames)
    print()
    print(f"{stable}/{len(frames)} frame(s) reached a stable consensus")


if __name__ == "__main__":
    main()
