"""
Settings
Loaded from FANBOX_* environment variables (and a .env file if present)
"""
import os
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .constants import DEFAULT_SETTINGS, Listing

ENV_PREFIX = "FANBOX_"

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class SettingsError(ValueError):
    """An environment variable is missing or malformed"""


def parse_duration(value: str) -> float:
    """Parse "300ms", "10s", "5m", "1h30m" or plain seconds into seconds"""
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise SettingsError(f"invalid duration: {value!r}")
    return total


def parse_comma_words(value: str) -> List[str]:
    return [word.strip() for word in value.split(",") if word.strip()]


@dataclass
class Settings:
    session_id: str
    dest_dir: str = DEFAULT_SETTINGS["dest_dir"]
    max_parallel: int = DEFAULT_SETTINGS["max_parallel"]
    max_retries: int = DEFAULT_SETTINGS["max_retries"]
    max_page_behind: int = DEFAULT_SETTINGS["max_page_behind"]
    poll_frequency: float = parse_duration(DEFAULT_SETTINGS["poll_frequency"])
    allow_file_exts: List[str] = field(default_factory=lambda: list(DEFAULT_SETTINGS["allow_file_exts"]))
    listing: Listing = Listing(DEFAULT_SETTINGS["listing"])
    user_agent: Optional[str] = None
    log_level: str = DEFAULT_SETTINGS["log_level"]


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise SettingsError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise SettingsError(f"{ENV_PREFIX}{name} must be at least {minimum}, got {value}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment

    Args:
        environ: mapping to read instead of os.environ; .env is only loaded
            when reading the real environment

    Raises:
        SettingsError: FANBOX_SESSION_ID is unset or a value is malformed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    session_id = environ.get(ENV_PREFIX + "SESSION_ID", "").strip()
    if not session_id:
        raise SettingsError(f"{ENV_PREFIX}SESSION_ID is required")

    poll_frequency = parse_duration(environ.get(ENV_PREFIX + "POLL_FREQUENCY", DEFAULT_SETTINGS["poll_frequency"]))
    if poll_frequency <= 0:
        raise SettingsError(f"{ENV_PREFIX}POLL_FREQUENCY must be positive")

    listing_name = environ.get(ENV_PREFIX + "LISTING", DEFAULT_SETTINGS["listing"]).strip().lower()
    try:
        listing = Listing(listing_name)
    except ValueError:
        choices = ", ".join(item.value for item in Listing)
        raise SettingsError(f"{ENV_PREFIX}LISTING must be one of {choices}, got {listing_name!r}") from None

    exts = environ.get(ENV_PREFIX + "ALLOW_FILE_EXTS")
    allow_file_exts = parse_comma_words(exts) if exts is not None else list(DEFAULT_SETTINGS["allow_file_exts"])

    return Settings(
        session_id=session_id,
        dest_dir=environ.get(ENV_PREFIX + "DEST_DIR") or DEFAULT_SETTINGS["dest_dir"],
        max_parallel=_get_int(environ, "MAX_PARALLEL", DEFAULT_SETTINGS["max_parallel"], 1),
        max_retries=_get_int(environ, "MAX_RETRIES", DEFAULT_SETTINGS["max_retries"], 0),
        max_page_behind=_get_int(environ, "MAX_PAGE_BEHIND", DEFAULT_SETTINGS["max_page_behind"], 1),
        poll_frequency=poll_frequency,
        allow_file_exts=allow_file_exts,
        listing=listing,
        user_agent=environ.get(ENV_PREFIX + "USER_AGENT") or None,
        log_level=(environ.get(ENV_PREFIX + "LOG_LEVEL") or DEFAULT_SETTINGS["log_level"]).upper(),
    )
