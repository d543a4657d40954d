"""
Bulk text-to-speech: one line of input text per output audio file.

Usage:
    python scripts/bulk_synthesize.py polly lines.txt --voice Joanna --out ./audio
    python scripts/bulk_synthesize.py azure lines.txt --voice en-US-JennyNeural --format wav

Credentials are read from the environment (.env supported), the same
variables the API server uses.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from polyvox.config.environment import credentials_from_env, get_env
from polyvox.shared.services.tts.models import SynthesisRequest
from polyvox.shared.utils.service_loader import get_bulk_synthesizer, get_provider_registry

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def read_lines(path: Path) -> List[str]:
    """Non-empty, stripped lines of ``path``."""
    with path.open("r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def build_parser() -> argparse.ArgumentParser:
    registry = get_provider_registry()
    parser = argparse.ArgumentParser(
        description="Synthesize every line of a text file with one TTS provider"
    )
    parser.add_argument("provider", choices=registry.list())
    parser.add_argument("input", type=Path, help="Text file, one utterance per line")
    parser.add_argument("--voice", required=True, help="Provider voice identifier")
    parser.add_argument("--format", default="mp3", help="Output audio format (default: mp3)")
    parser.add_argument("--out", type=Path, default=Path("tts_output"), help="Output directory")
    parser.add_argument("--prefix", default="item", help="Output file name prefix")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help=f"Concurrent requests (default: {get_env('TTS_BULK_MAX_WORKERS', 4)})",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    descriptor = get_provider_registry().get(args.provider)
    credentials = credentials_from_env(descriptor.name)
    if credentials is None:
        logger.error(f"No credentials configured for {descriptor.name}; check your .env file")
        return 2

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        return 2
    lines = read_lines(args.input)
    if not lines:
        logger.error(f"Input file has no text: {args.input}")
        return 2

    synthesizer = get_bulk_synthesizer()
    if args.workers:
        synthesizer.max_workers = max(args.workers, 1)

    batch = [SynthesisRequest(text=line, voice=args.voice, format=args.format) for line in lines]
    report = synthesizer.run(
        descriptor, credentials, batch, output_dir=str(args.out), file_prefix=args.prefix
    )

    for item in report.items:
        if item.write_error is not None:
            logger.error(f"Line {item.index + 1} synthesized but not saved: {item.write_error}")
        elif not item.ok:
            logger.error(
                f"Line {item.index + 1} failed after {item.attempts} attempt(s): "
                f"{item.result.kind.value}: {item.result.message}"
            )

    print(
        f"✅ {report.succeeded}/{len(report.items)} files written to {args.out} "
        f"in {report.elapsed_seconds:.1f}s"
    )
    if report.failed:
        print(f"❌ Failures by kind: {report.failures_by_kind()}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
