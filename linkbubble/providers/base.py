"""
base provider interface for page data sources.
all providers must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

import httpx

from ..core.models import PageResult


class PageProvider(ABC):
    """
    abstract base class for page providers.
    a provider only builds requests and parses responses; sending them
    (and caching) belongs to the service.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """provider name for logging."""
        pass

    @abstractmethod
    def build_request(
        self,
        source: str,
        title: str,
        follow_rename: Optional[bool] = None,
        watch_list: Iterable[str] = ()
    ) -> httpx.Request:
        """request for one page of source."""
        pass

    @abstractmethod
    def parse_response(self, response: httpx.Response) -> PageResult:
        """
        parse a response into a Page or a PageError.
        raises ValueError on a malformed success body and
        UnexpectedResponseError on an unrecognized failure.
        """
        pass
