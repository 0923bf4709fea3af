#!/usr/bin/env python3
"""
Analyze a meal photo from the command line.

Usage:
    calai-analyze meal.jpg
    calai-analyze meal.jpg --json
    calai-analyze meal.jpg --model gpt-4.1-mini --max-bytes 500000

Reads OPENAI_API_KEY (and the optional CALAI_* variables) from the
environment or a .env file.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from calai.application.analysis.coordinator import AnalysisCoordinator
from calai.application.analysis.service import FoodImageAnalysisService
from calai.domain.analysis.models import RawImage
from calai.domain.analysis.state import AnalysisPhase
from calai.domain.records.models import FoodRecord
from calai.domain.shared.errors import DomainError
from calai.infrastructure.ai.analysis_client import AnalysisClient
from calai.infrastructure.config import load_settings
from calai.infrastructure.persistence.in_memory_record_store import (
    InMemoryFoodRecordStore,
)

logger = structlog.get_logger(__name__)


def positive_int(value: str) -> int:
    """argparse type for a strictly positive integer."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calai-analyze",
        description="Estimate calories and ingredients of a meal photo.",
    )
    parser.add_argument("photo", type=Path, help="Path to the meal photo")
    parser.add_argument("--model", help="Model identifier (overrides CALAI_MODEL)")
    parser.add_argument(
        "--max-bytes",
        type=positive_int,
        help="Encoded image size cap in bytes (overrides CALAI_MAX_IMAGE_BYTES)",
    )
    parser.add_argument(
        "--base-url",
        default=AnalysisClient.DEFAULT_BASE_URL,
        help="Chat-completion API root",
    )
    parser.add_argument("--env-file", type=Path, help="Path to a .env file")
    parser.add_argument("--json", action="store_true", help="Print the record as JSON")
    return parser


def format_record(record: FoodRecord) -> str:
    """Human-readable summary of an analyzed record."""
    lines = [record.food_name or "(unnamed)"]
    for ingredient in record.ingredients:
        lines.append(f"  - {ingredient.display_text}")
    lines.append(f"Total: {int(record.total_calories)} kcal")
    return "\n".join(lines)


def record_to_json(record: FoodRecord) -> str:
    payload = record.model_dump(mode="json", exclude={"image_data"})
    payload["total_calories"] = record.total_calories
    return json.dumps(payload, indent=2)


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args.env_file)
    max_bytes = args.max_bytes if args.max_bytes is not None else settings.max_image_bytes

    image = RawImage.from_path(args.photo)

    async with AnalysisClient(base_url=args.base_url) as client:
        service = FoodImageAnalysisService(
            client,
            api_key=settings.api_key,
            model=args.model or settings.model,
            max_image_bytes=max_bytes,
        )
        coordinator = AnalysisCoordinator(service, InMemoryFoodRecordStore())
        state = await coordinator.analyze(image)

        if state.phase is not AnalysisPhase.SUCCEEDED:
            print(coordinator.error_message, file=sys.stderr)
            if state.error is not None:
                print(str(state.error), file=sys.stderr)
            return 1

        if not await coordinator.save():
            print(coordinator.error_message, file=sys.stderr)
            return 1

        record = coordinator.record
        print(record_to_json(record) if args.json else format_record(record))
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except DomainError as e:
        logger.error("analysis_aborted", error=str(e))
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
