"""
Paws & Preferences CLI - Command-line interface for the engine.

Usage:
    pawswipe serve [--host H] [--port P]   Run the REST API
    pawswipe prefetch [--count N]          Prefetch a batch and report each slot
    pawswipe play [--count N]              Swipe in the terminal (l = like, d = dislike)
"""

import argparse
import asyncio
import logging
import sys
import time

from .config import Settings
from .report import EMPTY_GALLERY_MESSAGE, summary_text
from .session import Command, SwipeSession, command_for_key


QUIT_KEYS = {"q", "Q"}


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Paws & Preferences - swipe through cat images",
        prog="pawswipe",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    # Prefetch command
    prefetch_parser = subparsers.add_parser("prefetch", help="Prefetch a batch and report")
    prefetch_parser.add_argument("--count", type=int, help="Batch size")

    # Play command
    play_parser = subparsers.add_parser("play", help="Swipe in the terminal")
    play_parser.add_argument("--count", type=int, help="Batch size")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args, settings)
    elif args.command == "prefetch":
        cmd_prefetch(args, settings)
    elif args.command == "play":
        cmd_play(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def _session_for(args, settings: Settings) -> SwipeSession:
    from .api.app import build_session

    session = build_session(settings)
    if args.count is not None:
        if args.count < 0:
            print("Error: --count must be non-negative")
            sys.exit(1)
        session.batch_size = args.count
    return session


def cmd_serve(args, settings: Settings):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "pawswipe.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


def cmd_prefetch(args, settings: Settings):
    """Prefetch one batch and print how each slot resolved."""
    session = _session_for(args, settings)

    async def run():
        try:
            await session.start()
            for item in session.state.items:
                kind = "fallback" if item.is_fallback else "fetched"
                print(f"  slot {item.id:>2}: {kind:<8} {item.handle}")
        finally:
            await session.close()

    asyncio.run(run())

    items = session.state.items
    fallbacks = sum(1 for item in items if item.is_fallback)
    print(f"\nResolved {len(items)} slots ({fallbacks} fallbacks)")


def _describe(item) -> str:
    """Slot label for the terminal; fetched images live in memory only."""
    if item.is_fallback:
        return f"slot {item.id}: fallback {item.handle}"
    return f"slot {item.id}: fetched"


def cmd_play(args, settings: Settings):
    """Interactive terminal session."""
    session = _session_for(args, settings)

    print("Loading cat images...")
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(session.start())

        while session.state.current_item is not None:
            item = session.state.current_item
            progress = session.progress()
            print(
                f"\nCat {progress.position}/{progress.total} "
                f"(liked {progress.accepted}) {_describe(item)}"
            )
            key = input("[l]ike / [d]islike / [q]uit > ").strip()
            if key in QUIT_KEYS:
                break

            command = command_for_key(key)
            if command not in {Command.ACCEPT, Command.REJECT}:
                print("Unknown key")
                continue

            result = session.accept() if command == Command.ACCEPT else session.reject()
            if result.applied:
                # Next card is interactive once the settle delay has passed
                time.sleep(settings.settle_delay)

        summary = session.summary()
        if summary is not None:
            print(f"\nYou liked {summary.accepted_count} of {summary.total_count} cats.")
            if summary.accepted_count == 0:
                print(EMPTY_GALLERY_MESSAGE)
            else:
                for liked in session.state.accepted:
                    print(f"  {_describe(liked)}")
            print(f"\n{summary_text(summary)}")
    finally:
        loop.run_until_complete(session.close())
        loop.close()


if __name__ == "__main__":
    main()
