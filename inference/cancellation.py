"""
Cooperative cancellation for in-flight completion calls.

A caller that stops caring about a pending call (closed chat panel,
collapsed stock card) calls ``cancel()``. The retry loop checks the token
before every attempt and races it against every backoff wait, so a
cancelled call schedules no further requests and invokes no callbacks.

An HTTP request already on the wire is not torn down; its response is
discarded when it arrives.
"""

import asyncio


class CancellationToken:
    """Single-use cancellation flag backed by an asyncio.Event."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()
