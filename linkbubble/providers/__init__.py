from .base import PageProvider
from .scrapbox import ScrapboxProvider, encode_title
