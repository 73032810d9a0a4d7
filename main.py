#!/usr/bin/env python3
"""Command-line driver for the Colloquy discussion engine."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from colloquy.engine.config import AppConfig, get_default_config
from colloquy.engine.discussion import (
    DiscussionEvent,
    DiscussionMode,
    DiscussionOrchestrator,
    EventType,
    InMemoryDiscussionStore,
)
from colloquy.engine.judges import MarkerVerdictParser
from colloquy.engine.models import ModelManager


def setup_logging(level: str = "INFO"):
    """Configure logging for the command-line run."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a judge-led multi-model discussion")
    parser.add_argument("--config", type=Path, default=Path("colloquy_config.json"))
    parser.add_argument("--question", required=True, help="Question put to the panel")
    parser.add_argument(
        "--guests", nargs="+", required=True, help="Configured model ids seated as guests (1-4)"
    )
    parser.add_argument("--judge", required=True, help="Configured model id acting as judge")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in DiscussionMode],
        default=DiscussionMode.DEBATE.value,
    )
    parser.add_argument("--search", action="store_true", help="Let models search the web")
    parser.add_argument("--max-rounds", type=int, default=None)
    parser.add_argument(
        "--stream", action="store_true", help="Print model output live as it is generated"
    )
    return parser.parse_args(argv)


async def print_live_events(queue: "asyncio.Queue[DiscussionEvent]") -> None:
    while True:
        event = await queue.get()
        data = event.data
        if event.type is EventType.TURN_START:
            print(f"\n--- {data['role']}: {data['model_name']} ---", flush=True)
        elif event.type is EventType.CHUNK:
            print(data["chunk"], end="", flush=True)
        elif event.type is EventType.TURN_END:
            print(flush=True)
        elif event.type is EventType.SEARCH_START:
            print(f"\n[searching: {data['query']}]", flush=True)
        elif event.type is EventType.SEARCH_END:
            print(f"[{data['result_count']} results: {data['query']}]", flush=True)


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    store = InMemoryDiscussionStore()
    orchestrator = DiscussionOrchestrator(config, store, ModelManager(config.system))

    discussion = await store.create_discussion(
        question=args.question,
        guest_models=args.guests,
        judge_model=args.judge,
        mode=DiscussionMode(args.mode),
        search_enabled=args.search,
    )

    printer = None
    if args.stream:
        queue = orchestrator.event_bus.subscribe(discussion.id)
        printer = asyncio.create_task(print_live_events(queue))

    try:
        result = await orchestrator.run_discussion(discussion.id, args.max_rounds)
    finally:
        if printer is not None:
            printer.cancel()

    if not args.stream:
        for turn in await store.get_turns(discussion.id):
            speaker = turn.model_name or turn.role.value
            print(f"\n=== {turn.role.value.upper()} ({speaker}) ===\n{turn.content}")

    print("\n" + "=" * 60)
    if result.verdict is None:
        print("The judge did not deliver a verdict.")
        return 1

    print("CONFIDENCE SCORES")
    print(MarkerVerdictParser.format_scores(result.verdict.confidence_scores) or "(none)")
    print("\nFINAL CONCLUSION")
    print(result.verdict.conclusion)
    return 0


def main():
    """Main entry point."""
    args = parse_args()
    config = get_default_config(args.config)
    setup_logging(config.system.log_level)

    missing = [m for m in [args.judge, *args.guests] if m not in config.models]
    if missing:
        print(f"Models not configured: {', '.join(missing)}", file=sys.stderr)
        print(f"Configured models: {', '.join(config.models)}", file=sys.stderr)
        sys.exit(2)

    available = config.available_models()
    unkeyed = [m for m in dict.fromkeys([args.judge, *args.guests]) if m not in available]
    if unkeyed:
        print(f"No API key for models: {', '.join(unkeyed)}", file=sys.stderr)
        sys.exit(2)

    sys.exit(asyncio.run(run(args, config)))


if __name__ == "__main__":
    main()
