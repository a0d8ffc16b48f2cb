"""
Download workers
Decides which attachments of a page to fetch and runs them on a bounded pool
"""
import concurrent.futures
import logging
import os
import random
import threading
from typing import Iterable, List, Optional, Tuple

from .constants import INFO_FILENAME
from .downloader import download_file, write_text
from .models import FileBody, ImageBody, Item, Page
from ..utils.paths import DownloadTarget, attachment_filename, get_item_dir

logger = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024


class DownloadError(Exception):
    """A page could not be processed, e.g. its item directory could not be created"""


def normalize_extensions(extensions: Iterable[str]) -> frozenset:
    return frozenset(ext.strip().lstrip(".").lower() for ext in extensions if ext and ext.strip())


def attachment_urls(item: Item, allowed_exts: frozenset) -> Tuple[Optional[List[str]], str]:
    """Collect the URLs to download for a post

    Args:
        item: the post
        allowed_exts: file extensions (no dot, lowercase) allowed for file posts

    Returns:
        (urls, caption text); urls is None when the body carries no files
    """
    body = item.body

    if isinstance(body, ImageBody):
        return [image.original_url for image in body.images], body.text

    if isinstance(body, FileBody):
        urls = [
            f.url for f in body.files
            if f.extension.lstrip(".").lower() in allowed_exts
        ]
        return urls, body.text

    return None, ""


class DownloadScheduler:
    """Downloads the attachments of listing pages

    One instance lives for the whole process. The semaphore bounds the
    number of in-flight downloads across every page and every poll.

    Args:
        session: anything with download(url) returning a streamed response
        dest_dir: download root
        max_parallel: maximum concurrent downloads
        allowed_exts: extensions allowed for file posts
        rng: random source for temp file names
    """

    def __init__(self, session, dest_dir: str, max_parallel: int, allowed_exts: Iterable[str],
                 rng: Optional[random.Random] = None):
        if max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")

        self.session = session
        self.dest_dir = dest_dir
        self.max_parallel = max_parallel
        self.allowed_exts = normalize_extensions(allowed_exts)
        self.rng = rng or random.Random()

        self.sema = threading.BoundedSemaphore(max_parallel)
        self.executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_parallel,
            thread_name_prefix="download"
        )
        self._futures = set()
        self._futures_lock = threading.Lock()

    def download_page(self, page: Page) -> bool:
        """Queue every missing attachment of a page

        Returns:
            Whether all attachments of the page's last downloadable item were
            already on disk before this call. Only the last item decides;
            the poller uses this to stop walking back.

        Raises:
            DownloadError: an item directory could not be created
        """
        last_fetched = False

        for item in page.items:
            urls, text = attachment_urls(item, self.allowed_exts)
            if not urls:
                continue

            item_dir = get_item_dir(self.dest_dir, item.creator_id, item.published_datetime, item.title)
            try:
                os.makedirs(item_dir, exist_ok=True)
            except OSError as e:
                raise DownloadError(f"cannot create directory for post {item.id}: {e}") from e

            fetched = 0
            for url in urls:
                name = attachment_filename(url)
                if not name:
                    logger.warning("Cannot derive a file name from %s, skipping", url)
                    continue

                target = DownloadTarget(item_dir, name, url)
                if os.path.exists(target.path):
                    logger.debug("Exists, skip: %s", target.path)
                    fetched += 1
                    continue

                self._submit(target)

            self._write_info(item_dir, f"{item.url}\n\n{text}")

            # only the last processed item decides
            last_fetched = fetched == len(urls)

        return last_fetched

    def _submit(self, target: DownloadTarget):
        # blocks while max_parallel downloads are in flight
        self.sema.acquire()
        try:
            future = self.executor.submit(self._download, target)
        except BaseException:
            self.sema.release()
            raise

        with self._futures_lock:
            self._futures.add(future)
        future.add_done_callback(self._discard_future)

    def _discard_future(self, future):
        with self._futures_lock:
            self._futures.discard(future)

    def _download(self, target: DownloadTarget):
        try:
            with self.session.download(target.url) as response:
                download_file(target.directory, target.filename,
                              response.iter_content(chunk_size=CHUNK_SIZE), self.rng)
            logger.info("Downloaded %s", target.path)
        except Exception as e:
            logger.error("failed to download %s: %s", target.url, e)
        finally:
            self.sema.release()

    def _write_info(self, item_dir: str, text: str):
        try:
            write_text(item_dir, INFO_FILENAME, text, self.rng)
        except OSError as e:
            logger.error("failed to write info file in %s: %s", item_dir, e)

    def wait(self, timeout: Optional[float] = None):
        """Block until every download dispatched so far has finished"""
        with self._futures_lock:
            pending = list(self._futures)
        concurrent.futures.wait(pending, timeout=timeout)

    def close(self, wait: bool = True):
        self.executor.shutdown(wait=wait)
