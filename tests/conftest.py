"""Shared fixtures and builders for the downpoll test suite."""

from __future__ import annotations

import random
import threading
import time

import pytest

from downpoll.core.models import Item, Page
from downpoll.core.workers import DownloadScheduler
from downpoll.utils.network import FetchError

PUBLISHED = "2021-03-04T12:00:00+09:00"


def item_json(item_id="1", *, type_="image", title="Post", creator_id="alice",
              published=PUBLISHED, body=None) -> dict:
    return {
        "id": item_id,
        "title": title,
        "type": type_,
        "creatorId": creator_id,
        "publishedDatetime": published,
        "updatedDatetime": published,
        "feeRequired": 500,
        "excerpt": "",
        "coverImageUrl": None,
        "user": {"userId": "11", "name": "Alice", "iconUrl": "https://pixiv.example/icon.png"},
        "body": body,
    }


def image_item(item_id, urls, text="caption", **kwargs) -> Item:
    body = {
        "text": text,
        "images": [
            {
                "id": f"img{i}",
                "extension": "jpeg",
                "width": 100,
                "height": 100,
                "originalUrl": url,
                "thumbnailUrl": url + ".thumb",
            }
            for i, url in enumerate(urls)
        ],
    }
    return Item.from_json(item_json(item_id, type_="image", body=body, **kwargs))


def file_item(item_id, files, text="files", **kwargs) -> Item:
    """files: iterable of (url, extension)"""
    body = {
        "text": text,
        "files": [
            {"id": f"f{i}", "name": f"file{i}", "extension": ext, "size": 10, "url": url}
            for i, (url, ext) in enumerate(files)
        ],
    }
    return Item.from_json(item_json(item_id, type_="file", body=body, **kwargs))


def listing_json(items, next_url=None) -> dict:
    return {"body": {"items": items, "nextUrl": next_url}}


class FakeResponse:
    def __init__(self, data: bytes):
        self.data = data
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.data), 4):
            yield self.data[start:start + 4]


class FakeDownloadSession:
    """Records download calls and the peak number running at once."""

    def __init__(self, delay=0.0, failing=()):
        self.delay = delay
        self.failing = set(failing)
        self.calls = []
        self.in_flight = 0
        self.peak = 0
        self._lock = threading.Lock()

    def download(self, url):
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if url in self.failing:
                raise FetchError(url, 503, "unavailable")
        finally:
            with self._lock:
                self.in_flight -= 1
        return FakeResponse(f"data:{url}".encode())


@pytest.fixture
def download_session():
    return FakeDownloadSession()


@pytest.fixture
def make_scheduler(tmp_path):
    schedulers = []

    def factory(session, max_parallel=2, allowed_exts=("gif", "mp4"), dest_dir=None):
        scheduler = DownloadScheduler(
            session,
            str(dest_dir or tmp_path / "dest"),
            max_parallel=max_parallel,
            allowed_exts=allowed_exts,
            rng=random.Random(1234),
        )
        schedulers.append(scheduler)
        return scheduler

    yield factory

    for scheduler in schedulers:
        scheduler.close()


def page_of(*items, next_url=None) -> Page:
    return Page(items=list(items), next_url=next_url)
