"""
Network utilities
HTTP session, fixed request headers, bounded retry and response parsing
"""
import json
import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from fake_useragent import UserAgent

logger = logging.getLogger(__name__)

FALLBACK_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

JSON_ACCEPT = "application/json, text/plain, */*"

# Longest body excerpt carried by FetchError
BODY_SNIPPET_LENGTH = 200

# connect, read
DEFAULT_TIMEOUT = (10, 30)


class FetchError(Exception):
    """A GET that failed on every attempt"""

    def __init__(self, url: str, status_code: Optional[int] = None, body: str = "", reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body

        if reason:
            message = f"{reason} ({url})"
        else:
            message = f"unexpected status code {status_code} ({url})"
        if body:
            message += f", body {body}"
        super().__init__(message)


def default_user_agent() -> str:
    """Pick one Chrome User-Agent for the lifetime of the process"""
    return UserAgent(fallback=FALLBACK_USER_AGENT).chrome


def build_session(pool_size: int) -> requests.Session:
    """Create a requests session with a connection pool sized for the download workers

    Args:
        pool_size: number of concurrent downloads the pool must serve

    Returns:
        A session with no adapter-level retries; retrying is done per request
    """
    pool_size = max(pool_size * 2, 10)

    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        max_retries=0,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _body_snippet(response: requests.Response) -> str:
    try:
        text = response.content.decode("utf-8", errors="replace")
    except requests.RequestException:
        return ""
    return text[:BODY_SNIPPET_LENGTH]


class SessionClient:
    """Sends GET requests with the session cookies and the fixed headers

    Immutable after construction and safe to share between download threads.
    """

    def __init__(self, origin: str, referer: str, retries: int = 0, pool_size: int = 10,
                 user_agent: Optional[str] = None, timeout=DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.retries = max(0, int(retries))
        self.timeout = timeout
        self.session = session or build_session(pool_size)
        self.headers = {
            "Origin": origin,
            "Referer": referer,
            "User-Agent": user_agent or default_user_agent(),
            "DNT": "1",
        }

    def get(self, url: str, headers: Optional[dict] = None, stream: bool = False) -> requests.Response:
        """Send a GET request, retrying transport errors and non-2xx responses

        The request is attempted once plus `retries` more times with no delay
        between attempts. The body of a failed response is drained before the
        next attempt.

        Args:
            url: request URL
            headers: extra headers merged under the fixed ones
            stream: leave the body unread for the caller to iterate

        Returns:
            The first 2xx response

        Raises:
            FetchError: every attempt failed; carries the last status and body
        """
        request_headers = dict(headers or {})
        request_headers.update(self.headers)

        error = None
        for attempt in range(self.retries + 1):
            try:
                response = self.session.get(url, headers=request_headers, timeout=self.timeout, stream=stream)
            except requests.RequestException as e:
                error = FetchError(url, reason=f"failed to do request: {str(e)[:BODY_SNIPPET_LENGTH]}")
                logger.debug("GET %s failed (attempt %d): %s", url, attempt + 1, e)
                continue

            if 200 <= response.status_code <= 299:
                return response

            error = FetchError(url, response.status_code, _body_snippet(response))
            response.close()
            logger.debug("GET %s returned %d (attempt %d)", url, response.status_code, attempt + 1)

        raise error

    def download(self, url: str) -> requests.Response:
        """GET an attachment with its body left streaming"""
        return self.get(url, stream=True)

    def get_json(self, url: str):
        """GET a JSON document and decode it"""
        response = self.get(url, headers={"Accept": JSON_ACCEPT})
        return parse_json_response(response)


def parse_json_response(response: requests.Response):
    """Decode the JSON content of a response

    Raises:
        FetchError: the body is not valid JSON
    """
    try:
        return json.loads(response.content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FetchError(response.url, response.status_code, _body_snippet(response),
                         reason="failed to decode JSON") from e
