"""
API request module
Handles the authenticated session and the FANBOX listing endpoints
"""
from typing import Optional

import requests

from .constants import COOKIE_DOMAIN, LISTING_URLS, ORIGIN_URL, REFERER_URL, Listing
from .models import Page
from ..utils.network import SessionClient


def _set_session_cookie(jar: requests.cookies.RequestsCookieJar, name: str, value: str):
    jar.set_cookie(requests.cookies.create_cookie(
        name=name,
        value=value,
        domain=COOKIE_DOMAIN,
        path="/",
        secure=True,
        rest={"HttpOnly": None},
    ))


class FanboxSession(SessionClient):
    """A pixivFANBOX user session

    Args:
        session_id: value of the FANBOXSESSID cookie
        retries: extra attempts per request after the first one fails
        pool_size: number of concurrent downloads the connection pool must serve
        user_agent: fixed User-Agent; one is picked when omitted
    """

    def __init__(self, session_id: str, retries: int = 0, pool_size: int = 10,
                 user_agent: Optional[str] = None, **kwargs):
        super().__init__(ORIGIN_URL, REFERER_URL, retries=retries, pool_size=pool_size,
                         user_agent=user_agent, **kwargs)
        _set_session_cookie(self.session.cookies, "privacy_policy_agreement", "2")
        _set_session_cookie(self.session.cookies, "FANBOXSESSID", session_id)

    def posts_from_url(self, url: str) -> Page:
        """Fetch one listing page from an endpoint or a nextUrl cursor"""
        return Page.from_json(self.get_json(url))

    def supporting_posts(self) -> Page:
        """Newest posts from the creators the user supports"""
        return self.posts_from_url(LISTING_URLS[Listing.SUPPORTING])

    def home_posts(self) -> Page:
        """Newest posts on the user's home timeline"""
        return self.posts_from_url(LISTING_URLS[Listing.HOME])

    def listing(self, listing: Listing) -> Page:
        if listing == Listing.HOME:
            return self.home_posts()
        return self.supporting_posts()
