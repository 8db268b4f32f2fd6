"""
scrapbox provider - /api/pages/:project/:title
https://scrapbox.io/help/API
"""

import logging
from typing import Iterable, Optional
from urllib.parse import quote

import httpx

from .base import PageProvider
from ..core.config import ProviderConfig
from ..core.errors import UnexpectedResponseError
from ..core.models import Page, PageError, PageResult

logger = logging.getLogger("linkbubble.scrapbox")


def encode_title(title: str) -> str:
    """encode a title for use as a url path segment."""
    return quote(title.replace(" ", "_"), safe="")


class ScrapboxProvider(PageProvider):
    """scrapbox page api client."""

    def __init__(self, config: Optional[ProviderConfig] = None):
        self.config = config or ProviderConfig()
        self.base_url = self.config.base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "scrapbox"

    def build_request(
        self,
        source: str,
        title: str,
        follow_rename: Optional[bool] = None,
        watch_list: Iterable[str] = ()
    ) -> httpx.Request:
        if follow_rename is None:
            follow_rename = self.config.follow_rename

        params = []
        if follow_rename:
            params.append(("followRename", "true"))
        # project ids whose pages should show up in projectLinks1hop
        for project_id in watch_list:
            params.append(("projects", project_id))

        url = f"{self.base_url}/api/pages/{quote(source, safe='')}/{encode_title(title)}"
        return httpx.Request(
            "GET", url,
            params=params or None,
            headers={"User-Agent": self.config.user_agent}
        )

    def parse_response(self, response: httpx.Response) -> PageResult:
        if response.is_success:
            try:
                data = response.json()
            except ValueError as e:
                raise ValueError(f"[scrapbox] invalid json from {response.request.url}") from e
            return Page.from_dict(data)

        try:
            body = response.json()
        except ValueError:
            body = None
        error = PageError.from_dict(body)
        if error is None:
            raise UnexpectedResponseError(
                str(response.request.url), response.status_code, response.text
            )
        logger.debug(f"[scrapbox] {response.status_code} {error.name}: {error.message}")
        return error
