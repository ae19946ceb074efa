"""Single-flight background operations with a one-slot result mailbox.

The dashboard never awaits a fetch. It starts one as an asyncio task and
then polls every frame; the task drops exactly one outcome into a queue of
size one and exits. Both the periodic poll and the details overlay use this.

Outcomes seen by ``poll``:

- ``None``: nothing started, or still running
- ``Ok``: the operation returned a value
- ``Err``: the operation raised an ordinary exception
- ``Disconnected``: the task ended without delivering (cancelled, or killed
  by a BaseException)

``reset`` abandons the current task. It keeps running, but it writes into a
mailbox nobody reads, so its outcome is dropped.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from esticli.errors import InternalError

log = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: Exception


@dataclass(frozen=True)
class Disconnected:
    pass


Outcome = Ok[T] | Err | Disconnected


class SingleFlight(Generic[T]):
    """At most one in-flight operation of a given kind."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Task[None] | None = None
        self._mailbox: asyncio.Queue[Ok[T] | Err] | None = None
        # Abandoned tasks still need a strong reference until they finish
        self._orphans: set[asyncio.Task[None]] = set()
        self.started_at: float | None = None
        self.last_duration: float | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    def elapsed(self) -> float | None:
        """Seconds since the current operation started, None when idle."""
        if self.started_at is None or not self.in_flight:
            return None
        return time.monotonic() - self.started_at

    def start(self, factory: Callable[[], Awaitable[T]]) -> bool:
        """Start ``factory()`` in the background unless one is already running.

        Must be called with a running event loop. Returns False (and does
        nothing) while a previous operation is in flight.
        """
        if self._task is not None:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise InternalError(f"{self.name} fetch started outside the event loop") from e

        mailbox: asyncio.Queue[Ok[T] | Err] = asyncio.Queue(maxsize=1)
        self._mailbox = mailbox
        self.started_at = time.monotonic()
        self._task = loop.create_task(
            self._run(factory, mailbox), name=f"esticli-{self.name}"
        )
        return True

    async def _run(
        self,
        factory: Callable[[], Awaitable[T]],
        mailbox: asyncio.Queue[Ok[T] | Err],
    ) -> None:
        try:
            value = await factory()
        except Exception as e:
            mailbox.put_nowait(Err(e))
        else:
            mailbox.put_nowait(Ok(value))

    def poll(self) -> Outcome[T] | None:
        """Non-blocking check for a delivered outcome."""
        task, mailbox = self._task, self._mailbox
        if task is None or mailbox is None:
            return None

        try:
            outcome: Outcome[T] = mailbox.get_nowait()
        except asyncio.QueueEmpty:
            if not task.done():
                return None
            log.warning("fetch_disconnected", operation=self.name)
            outcome = Disconnected()

        self._task = None
        self._mailbox = None
        if self.started_at is not None:
            self.last_duration = time.monotonic() - self.started_at
        return outcome

    def reset(self) -> None:
        """Forget the in-flight operation; its eventual outcome is discarded."""
        task = self._task
        if task is not None and not task.done():
            self._orphans.add(task)
            task.add_done_callback(self._orphans.discard)
        self._task = None
        self._mailbox = None
