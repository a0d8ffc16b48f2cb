"""
Utility modules
"""
from .network import FetchError, SessionClient, parse_json_response
from .formatters import sanitize_path, format_item_dirname
from .paths import DownloadTarget, attachment_filename, get_item_dir
from .logs import setup_logging

__all__ = [
    'FetchError',
    'SessionClient',
    'parse_json_response',
    'sanitize_path',
    'format_item_dirname',
    'DownloadTarget',
    'attachment_filename',
    'get_item_dir',
    'setup_logging',
]
