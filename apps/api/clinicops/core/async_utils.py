from __future__ import annotations

import asyncio
from typing import Coroutine, TypeVar

import anyio

T = TypeVar("T")


def _on_event_loop_thread() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async(coro: Coroutine[object, object, T], *, timeout: float | None = None) -> T:
    """
    Run a coroutine (mail send, AI completion) from a sync service.

    Sync endpoints execute in AnyIO worker threads and hop back onto the
    event loop. The CLI and plain unit tests have no loop, so one is started.
    A timeout of None waits indefinitely.
    """
    if _on_event_loop_thread():
        coro.close()
        raise RuntimeError("run_async called on the event loop thread; await the coroutine instead")

    async def _bounded() -> T:
        with anyio.fail_after(timeout):
            return await coro

    try:
        return anyio.from_thread.run(_bounded)
    except RuntimeError as exc:
        # Not inside an AnyIO worker thread
        if "worker thread" not in str(exc):
            raise
        return anyio.run(_bounded)
