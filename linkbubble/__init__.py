"""
linkbubble - link preview graph cache.
fetches page metadata, builds a multi-hop backlink graph and keeps it fresh.
"""

from .core.config import BubbleConfig
from .core.models import Bubble, Backlinks, RealContent, SynthesizedContent, Page, to_id
from .core.errors import LinkbubbleError, GraphInvariantError, UnexpectedResponseError
from .cache import ResponseCache
from .events import EventBus
from .graph.convert import convert
from .graph.store import BubbleStore, merge
from .providers.scrapbox import ScrapboxProvider
from .scheduler import TaskScheduler
from .service import BubbleService, BubbleView
from .throttle import ConcurrencyLimiter

__version__ = "0.1.0"

__all__ = [
    "BubbleConfig",
    "Bubble",
    "Backlinks",
    "RealContent",
    "SynthesizedContent",
    "Page",
    "to_id",
    "LinkbubbleError",
    "GraphInvariantError",
    "UnexpectedResponseError",
    "ResponseCache",
    "EventBus",
    "convert",
    "BubbleStore",
    "merge",
    "ScrapboxProvider",
    "TaskScheduler",
    "BubbleService",
    "BubbleView",
    "ConcurrencyLimiter"
]
