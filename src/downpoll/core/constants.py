"""
Constants and enums
"""
import os
from enum import Enum


class ItemType(str, Enum):
    """Post body type tag as reported by the API"""
    ARTICLE = "article"
    IMAGE = "image"
    FILE = "file"


class Listing(str, Enum):
    """Listing endpoint the poller starts from"""
    SUPPORTING = "supporting"
    HOME = "home"


# === Endpoints ===
COOKIE_DOMAIN = ".fanbox.cc"
ORIGIN_URL = "https://www.fanbox.cc"
REFERER_URL = "https://www.fanbox.cc/"
API_URL = "https://api.fanbox.cc"

LISTING_URLS = {
    Listing.SUPPORTING: f"{API_URL}/post.listSupporting?limit=10",
    Listing.HOME: f"{API_URL}/post.listHome?limit=10",
}

# Name of the per-item caption file
INFO_FILENAME = "info"

# Default settings, overridable through FANBOX_* environment variables
DEFAULT_SETTINGS = {
    "dest_dir": ".",
    "max_parallel": os.cpu_count() or 1,
    "max_retries": 4,
    "max_page_behind": 2,
    "poll_frequency": "5m",
    "allow_file_exts": ["gif", "mp4"],
    "listing": Listing.SUPPORTING.value,
    "log_level": "INFO",
}
