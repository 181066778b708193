#!/usr/bin/env python3
"""
Example: Headless Watcher
Shows how to embed watchrun's Watcher in another asyncio program.

This example demonstrates:
- Building a WatchSpec in code
- Listening to ready/change/error notifications
- Stopping the session and the running command from your own code

Try it:
    python examples/embedding_headless.py
    touch notes.txt   # in another terminal
"""

import asyncio
import sys

try:
    from watchrun import Watcher, WatchSpec
    from watchrun_core.listeners import NoOpListener
except ImportError:
    print("Error: Install watchrun first: pip install watchrun")
    sys.exit(1)


class ChangeCounter(NoOpListener):
    """Count changes and stop after a few of them."""

    def __init__(self, limit: int, done: asyncio.Event):
        self.limit = limit
        self.done = done
        self.seen = 0

    def on_ready(self) -> None:
        print("Watching *.txt - change a file to run the command")

    def on_change(self, event) -> None:
        self.seen += 1
        print(f"[{self.seen}/{self.limit}] {event}")
        if self.seen >= self.limit:
            self.done.set()

    def on_error(self, error: BaseException) -> None:
        print(f"Error: {error}", file=sys.stderr)


async def main() -> None:
    done = asyncio.Event()
    spec = WatchSpec(
        patterns=("*.txt",),
        command=sys.executable,
        args=("-c", "print('files changed')"),
        initial=False,
        debounce_ms=300,
    )

    watcher = Watcher(spec, listener=ChangeCounter(limit=3, done=done))
    watcher.open()
    try:
        await done.wait()
    finally:
        watcher.close()
        await watcher.terminate()
    print("Done")


if __name__ == "__main__":
    asyncio.run(main())
