"""State for the index details overlay.

Opening the overlay is instant: it shows a loading state while the details
are fetched in the background, then the record or an error. Closing it
abandons any fetch still in flight.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from esticli.fetch import Disconnected, Err, Ok, SingleFlight
from esticli.models import IndexDetails

if TYPE_CHECKING:
    from esticli.client import EsClient

log = structlog.get_logger()

DETAILS_PAGE_SIZE = 10


class DetailState:
    def __init__(self) -> None:
        self.show_popup = False
        self.loading = False
        self.error: str | None = None
        self.data: IndexDetails | None = None
        self.scroll = 0
        self.index_name: str | None = None
        self._flight: SingleFlight[IndexDetails] = SingleFlight("details")

    def fetch(
        self,
        client: EsClient,
        name: str,
        doc_count: int,
        rate_per_sec: float,
        size_bytes: int,
    ) -> None:
        """Open the overlay for ``name`` and start loading its details."""
        self._flight.reset()
        self.show_popup = True
        self.loading = True
        self.error = None
        self.data = None
        self.scroll = 0
        self.index_name = name
        self._flight.start(lambda: client.fetch_details(name, doc_count, rate_per_sec, size_bytes))

    def close(self) -> None:
        self._flight.reset()
        self.show_popup = False
        self.loading = False
        self.error = None
        self.data = None
        self.scroll = 0
        self.index_name = None

    def poll(self) -> None:
        outcome = self._flight.poll()
        if outcome is None:
            return
        self.loading = False
        match outcome:
            case Ok(value=details):
                self.data = details
                self.error = None
            case Err(error=e):
                log.warning("details_failed", index=self.index_name, error=str(e))
                self.error = str(e)
            case Disconnected():
                self.error = "Details fetch disconnected"

    def scroll_up(self) -> None:
        self.scroll = max(0, self.scroll - 1)

    def scroll_down(self) -> None:
        self.scroll += 1

    def scroll_page_up(self, page_size: int = DETAILS_PAGE_SIZE) -> None:
        self.scroll = max(0, self.scroll - page_size)

    def scroll_page_down(self, page_size: int = DETAILS_PAGE_SIZE) -> None:
        self.scroll += page_size
