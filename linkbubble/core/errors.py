"""
exceptions raised by linkbubble.
"""

from typing import Optional


class LinkbubbleError(Exception):
    """base class for linkbubble errors."""


class UnexpectedResponseError(LinkbubbleError):
    """
    remote returned a non-2xx response whose body is not an error object.
    treated as a transient failure by the service.
    """

    def __init__(self, url: str, status_code: int, body: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"unexpected response {status_code} from {url}")


class GraphInvariantError(LinkbubbleError):
    """
    conversion found a 2-hop link whose target was never registered.
    means the remote broke its 1-hop/2-hop contract; the page is not converted.
    """

    def __init__(self, bubble_id: str, referrer: Optional[str] = None):
        self.bubble_id = bubble_id
        self.referrer = referrer
        msg = f"graph must already have {bubble_id!r}"
        if referrer:
            msg += f" (linked from {referrer!r})"
        super().__init__(msg)
