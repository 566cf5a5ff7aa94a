"""
Command-line entry point.

    python -m adaptive_sentiment detect
    python -m adaptive_sentiment analyze "What a masterpiece" "Total flop"
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from adaptive_sentiment.core.config import get_sentiment_settings
from adaptive_sentiment.core.orchestrator import SentimentOrchestrator
from adaptive_sentiment.hardware.detection import HardwareCapabilityDetector
from adaptive_sentiment.utils.logger import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adaptive_sentiment", description="Adaptive sentiment runtime"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("detect", help="print detected hardware capabilities")

    analyze = subparsers.add_parser("analyze", help="analyze one or more texts")
    analyze.add_argument("texts", nargs="+", help="texts to classify")
    analyze.add_argument(
        "--status", action="store_true", help="also print the runtime status"
    )
    return parser


async def run_analyze(texts: List[str], show_status: bool) -> dict:
    async with SentimentOrchestrator() as orchestrator:
        results = await orchestrator.analyze_batch(texts)
        output = {
            "achieved_tier": orchestrator.achieved_tier.value,
            "results": [
                {"text": text, **result.to_dict()} for text, result in zip(texts, results)
            ],
        }
        if show_status:
            output["status"] = orchestrator.get_status()
        return output


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_sentiment_settings()
    # Logs go to stderr so stdout stays parseable JSON
    configure_logging(settings, stream=sys.stderr)

    if args.command == "detect":
        detector = HardwareCapabilityDetector(forced_tier=settings.forced_tier)
        output = detector.detect().to_dict()
    else:
        output = asyncio.run(run_analyze(args.texts, args.status))

    json.dump(output, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
