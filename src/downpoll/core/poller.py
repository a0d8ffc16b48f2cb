"""
Polling loop
Walks the listing backward from the newest page and hands pages to the scheduler
"""
import logging
import threading
import time
from typing import Optional

from .constants import Listing
from .models import ModelError, Page
from .workers import DownloadError, DownloadScheduler
from ..utils.network import FetchError

logger = logging.getLogger(__name__)


class PollError(Exception):
    """A poll cycle was aborted by a page-level failure"""


class Poller:
    """Periodically syncs new posts to disk

    Args:
        session: FanboxSession (or anything with listing() and posts_from_url())
        scheduler: the process-wide download scheduler
        max_page_behind: maximum pages to inspect per poll
        poll_frequency: seconds between polls
        listing: endpoint the walk starts from
    """

    def __init__(self, session, scheduler: DownloadScheduler, max_page_behind: int,
                 poll_frequency: float, listing: Listing = Listing.SUPPORTING):
        self.session = session
        self.scheduler = scheduler
        self.max_page_behind = max_page_behind
        self.poll_frequency = poll_frequency
        self.listing = listing

    def poll(self, fetch_all: bool) -> int:
        """Walk back through the listing, downloading what is missing

        Stops after max_page_behind pages, when there is no next page, or,
        unless fetch_all is set, at the first page whose last item was
        already complete on disk.

        Returns:
            Number of pages visited

        Raises:
            PollError: a page could not be fetched or processed
        """
        last_page: Optional[Page] = None
        page = 0

        while page < self.max_page_behind:
            logger.info("Fetching listing page %d", page)

            try:
                if page == 0:
                    last_page = self.session.listing(self.listing)
                elif last_page.next_url:
                    last_page = self.session.posts_from_url(last_page.next_url)
                else:
                    logger.info("Reached the oldest listing page")
                    break
            except (FetchError, ModelError) as e:
                raise PollError(f"failed to get posts page {page}: {e}") from e

            try:
                last_fetched = self.scheduler.download_page(last_page)
            except DownloadError as e:
                raise PollError(f"failed to download page {page}: {e}") from e

            page += 1

            if not fetch_all and last_fetched:
                break

            logger.info("Page %d not fully synced or full sweep requested, going further back", page - 1)

        logger.info("Poll done, %d page(s) visited", page)
        return page

    def run(self, stop_event: Optional[threading.Event] = None):
        """Run the initial full poll, then poll on a fixed schedule until stopped

        Raises:
            PollError: the initial poll failed
        """
        stop_event = stop_event or threading.Event()

        self.poll(fetch_all=True)

        next_tick = time.monotonic() + self.poll_frequency
        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self.poll(fetch_all=False)
            except PollError as e:
                logger.error("failed to periodically poll: %s", e)

            # ticks missed while polling are dropped
            now = time.monotonic()
            next_tick += self.poll_frequency
            if next_tick < now:
                skipped = int((now - next_tick) // self.poll_frequency) + 1
                next_tick += skipped * self.poll_frequency
