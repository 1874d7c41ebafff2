"""
sqlkv — Hello World

One table, two columns.  The store picks the engine with the strongest
atomic idioms the database offers.
"""

import asyncio
import sys

from sqlkv import SQLStore, ValueFormatError


async def main(url: str):
    # ──────────────────────────────────────
    #  1. Open the store (creates the table)
    # ──────────────────────────────────────
    async with await SQLStore.open(url=url) as kv:
        print(f"Engine: {kv.engine.name}\n")

        # ──────────────────────────────────────
        #  2. Plain values
        # ──────────────────────────────────────
        await kv.store("greeting", b"hello")
        print(f"  greeting = {await kv.load('greeting')!r}")

        created = await kv.create("greeting", b"bonjour")
        print(f"  create('greeting') again: {created}")

        # ──────────────────────────────────────
        #  3. Counters
        # ──────────────────────────────────────
        await kv.store("visits", "1")
        print(f"  visits + 5 = {await kv.increment('visits', 5)}")

        for _ in range(20):
            hits = await kv.increment("hits")
        print(f"  hits after 20 increments -> {hits}")

        try:
            await kv.increment("greeting")
        except ValueFormatError as exc:
            print(f"  {exc}")

        # ──────────────────────────────────────
        #  4. Cleanup
        # ──────────────────────────────────────
        print(f"\n  delete('visits') -> {await kv.delete('visits')!r}")
        print(f"  exists('visits') -> {await kv.exists('visits')}")
        await kv.clear()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "sqlite+aiosqlite:///hello.db"))
