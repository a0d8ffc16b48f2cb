import os
import posixpath
from typing import NamedTuple
from urllib.parse import urlsplit

from .formatters import format_item_dirname, sanitize_path


class DownloadTarget(NamedTuple):
    directory: str
    filename: str
    url: str

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.filename)


def attachment_filename(url: str) -> str:
    """Last path segment of an attachment URL

    This is the on-disk name, so the existence check and the download
    both resolve to the same file. Returns an empty string when the URL
    path ends in a slash.
    """
    name = posixpath.basename(urlsplit(url).path)
    if name in (".", ".."):
        return ""
    return name.replace("\x00", "")


def get_item_dir(dest_dir: str, creator_id: str, published, title: str) -> str:
    """Get the directory for a post

    Args:
        dest_dir: download root
        creator_id: creator the post belongs to
        published: post publish time
        title: post title

    Returns:
        <dest_dir>/<creator_id>/<YYYY-MM-DD: title>, each component sanitized
    """
    return os.path.join(
        dest_dir,
        sanitize_path(creator_id),
        format_item_dirname(published, title),
    )
