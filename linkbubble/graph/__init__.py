from .convert import convert, from_related, make_stub
from .store import BubbleStore, merge, has_changed, is_empty_link
