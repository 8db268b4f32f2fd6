"""
core data models for linkbubble.
graph records (bubbles) plus the typed shape of the remote page api.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple, Union, Iterator


# ids

def to_title_lc(title: str) -> str:
    """normalize a page title: spaces become underscores, lower-cased."""
    return title.replace(" ", "_").lower()


def to_id(source: str, title: str) -> str:
    """build the composite key for a (source, title) pair."""
    return f"/{source}/{to_title_lc(title)}"


def from_id(bubble_id: str) -> Tuple[str, str]:
    """
    split "/source/title" into (source, title).
    the title is returned as written; pass it through to_title_lc to normalize.
    """
    if not bubble_id.startswith("/"):
        raise ValueError(f"not a bubble id: {bubble_id!r}")
    source, sep, title = bubble_id[1:].partition("/")
    if not sep or not source or not title:
        raise ValueError(f"not a bubble id: {bubble_id!r}")
    return source, title


# content

@dataclass(frozen=True)
class Line:
    """one line of page content."""
    text: str
    id: str = ""
    user_id: str = ""
    created: int = 0
    updated: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Line":
        return cls(
            text=data.get("text", ""),
            id=data.get("id", ""),
            user_id=data.get("userId", ""),
            created=int(data.get("created", 0) or 0),
            updated=int(data.get("updated", 0) or 0),
        )


@dataclass(frozen=True)
class Content(ABC):
    """
    ordered content lines; the first line holds the title.
    use RealContent or SynthesizedContent, never this class directly.
    """
    lines: Tuple[Line, ...] = ()

    @property
    @abstractmethod
    def is_synthesized(self) -> bool:
        pass

    @property
    def title(self) -> str:
        return self.lines[0].text if self.lines else ""


@dataclass(frozen=True)
class RealContent(Content):
    """content fetched from the page itself."""

    @property
    def is_synthesized(self) -> bool:
        return False


@dataclass(frozen=True)
class SynthesizedContent(Content):
    """placeholder content made up from the title and summary lines."""

    @property
    def is_synthesized(self) -> bool:
        return True

    @classmethod
    def from_summary(cls, title: str, descriptions: Tuple[str, ...],
                     updated: int = 0) -> "SynthesizedContent":
        return cls(tuple(
            Line(text=text, created=updated, updated=updated)
            for text in (title, *descriptions)
        ))


# backlinks

@dataclass(frozen=True)
class Backlinks:
    """
    three-state backlink list.

    Backlinks.UNKNOWN - not computed yet
    Backlinks.of()    - computed, nothing links here
    Backlinks.of(...) - computed
    """
    items: Optional[Tuple[str, ...]] = None

    @classmethod
    def of(cls, *items: str) -> "Backlinks":
        return cls(tuple(items))

    @property
    def known(self) -> bool:
        return self.items is not None

    @property
    def count(self) -> int:
        return len(self.items) if self.items is not None else 0

    def added(self, item: str) -> "Backlinks":
        """return a known list with item appended."""
        return Backlinks((self.items or ()) + (item,))

    def __iter__(self) -> Iterator[str]:
        return iter(self.items or ())

    def __repr__(self) -> str:
        if self.items is None:
            return "Backlinks.UNKNOWN"
        return f"Backlinks.of({', '.join(repr(i) for i in self.items)})"


Backlinks.UNKNOWN = Backlinks()


@dataclass(frozen=True)
class Summary:
    """short description lines and an optional thumbnail."""
    descriptions: Tuple[str, ...] = ()
    image: Optional[str] = None


@dataclass(frozen=True)
class Bubble:
    """
    everything known about one page within one source.
    only ever replaced through BubbleStore.merge.
    """
    source: str
    title_lc: str
    exists: bool
    content: Content
    summary: Summary = field(default_factory=Summary)
    updated: int = 0      # source-reported modification time
    checked: int = 0      # local time of last validation
    backlinks: Backlinks = Backlinks.UNKNOWN          # same-source title_lc list
    project_backlinks: Backlinks = Backlinks.UNKNOWN  # cross-source bubble ids
    backlinks_exact: bool = False  # backlinks computed from the page's own fetch

    @property
    def id(self) -> str:
        return f"/{self.source}/{self.title_lc}"

    @property
    def backlink_count(self) -> int:
        return self.backlinks.count + self.project_backlinks.count

    def to_dict(self) -> Dict[str, Any]:
        """serialize for display/export."""
        return {
            "id": self.id,
            "source": self.source,
            "title_lc": self.title_lc,
            "title": self.content.title,
            "exists": self.exists,
            "synthesized": self.content.is_synthesized,
            "lines": [line.text for line in self.content.lines],
            "descriptions": list(self.summary.descriptions),
            "image": self.summary.image,
            "updated": self.updated,
            "checked": self.checked,
            "backlinks": list(self.backlinks.items) if self.backlinks.known else None,
            "project_backlinks": (
                list(self.project_backlinks.items)
                if self.project_backlinks.known else None
            ),
        }


# remote page api

@dataclass
class RelatedPage:
    """same-source neighbor from relatedPages.links1hop / links2hop."""
    title: str
    title_lc: str
    links_lc: List[str] = field(default_factory=list)
    descriptions: List[str] = field(default_factory=list)
    image: Optional[str] = None
    updated: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelatedPage":
        title = data["title"]
        return cls(
            title=title,
            title_lc=data.get("titleLc") or to_title_lc(title),
            links_lc=[to_title_lc(link) for link in data.get("linksLc", [])],
            descriptions=list(data.get("descriptions", [])),
            image=data.get("image"),
            updated=int(data.get("updated", 0) or 0),
        )


@dataclass
class ProjectRelatedPage:
    """cross-source neighbor from relatedPages.projectLinks1hop."""
    project_name: str
    title: str
    title_lc: str
    descriptions: List[str] = field(default_factory=list)
    image: Optional[str] = None
    updated: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectRelatedPage":
        title = data["title"]
        return cls(
            project_name=data["projectName"],
            title=title,
            title_lc=data.get("titleLc") or to_title_lc(title),
            descriptions=list(data.get("descriptions", [])),
            image=data.get("image"),
            updated=int(data.get("updated", 0) or 0),
        )


@dataclass
class RelatedPages:
    links1hop: List[RelatedPage] = field(default_factory=list)
    links2hop: List[RelatedPage] = field(default_factory=list)
    project_links1hop: List[ProjectRelatedPage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RelatedPages":
        data = data or {}
        return cls(
            links1hop=[RelatedPage.from_dict(d) for d in data.get("links1hop", [])],
            links2hop=[RelatedPage.from_dict(d) for d in data.get("links2hop", [])],
            project_links1hop=[
                ProjectRelatedPage.from_dict(d)
                for d in data.get("projectLinks1hop", [])
            ],
        )


@dataclass
class Page:
    """page object returned by the remote page api."""
    title: str
    lines: List[Line] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    project_links: List[str] = field(default_factory=list)  # "/source/title" ids
    persistent: bool = False
    updated: int = 0
    descriptions: List[str] = field(default_factory=list)
    image: Optional[str] = None
    related_pages: RelatedPages = field(default_factory=RelatedPages)

    @property
    def title_lc(self) -> str:
        return to_title_lc(self.title)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        """parse api json; raises ValueError on a malformed payload."""
        if not isinstance(data, dict) or not isinstance(data.get("title"), str):
            raise ValueError("page payload has no title")
        try:
            return cls(
                title=data["title"],
                lines=[Line.from_dict(d) for d in data.get("lines", [])],
                links=list(data.get("links", [])),
                project_links=list(data.get("projectLinks", [])),
                persistent=bool(data.get("persistent", False)),
                updated=int(data.get("updated", 0) or 0),
                descriptions=list(data.get("descriptions", [])),
                image=data.get("image"),
                related_pages=RelatedPages.from_dict(data.get("relatedPages")),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed page payload: {e}") from e


@dataclass
class PageError:
    """error object returned by the remote page api (NotFoundError etc)."""
    name: str
    message: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PageError"]:
        """parse an error body, None if it isn't one."""
        if not isinstance(data, dict):
            return None
        name, message = data.get("name"), data.get("message")
        if not isinstance(name, str) or not isinstance(message, str):
            return None
        return cls(name=name, message=message)


PageResult = Union[Page, PageError]
