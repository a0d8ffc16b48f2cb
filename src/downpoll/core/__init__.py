"""
Core fetch-and-download pipeline
"""
from .api import FanboxSession
from .constants import DEFAULT_SETTINGS, ItemType, Listing
from .downloader import download_file, write_atomic, write_text
from .models import (
    ArticleBody,
    FileBody,
    ImageBody,
    Item,
    ModelError,
    Page,
    UnknownBody,
)
from .poller import Poller, PollError
from .settings import Settings, SettingsError, load_settings, parse_duration
from .workers import DownloadError, DownloadScheduler

__all__ = [
    'FanboxSession',
    'DEFAULT_SETTINGS',
    'ItemType',
    'Listing',
    'download_file',
    'write_atomic',
    'write_text',
    'ArticleBody',
    'FileBody',
    'ImageBody',
    'Item',
    'ModelError',
    'Page',
    'UnknownBody',
    'Poller',
    'PollError',
    'Settings',
    'SettingsError',
    'load_settings',
    'parse_duration',
    'DownloadError',
    'DownloadScheduler',
]
