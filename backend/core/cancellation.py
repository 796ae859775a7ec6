"""Cooperative cancellation for in-flight classification.

A token is created per user turn. When newer input arrives the pipeline
cancels the previous token; the classifier races its model call against
the token and raises ClassificationCancelledError instead of returning.
"""
import asyncio

from core.exceptions import ClassificationCancelledError


class CancellationToken:
    """Single-use cancellation flag awaitable from asyncio code."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "superseded") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ClassificationCancelledError(f"Classification cancelled: {self.reason}")

    async def wait(self) -> None:
        await self._event.wait()
