"""
shared fixtures for the linkbubble tests.
"""

import pytest


class FakeClock:
    """settable clock, seconds since epoch."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def _related(title, links_lc=(), updated=1672173548, descriptions=None):
    return {
        "id": f"id-{title}",
        "title": title,
        "titleLc": title.replace(" ", "_").lower(),
        "image": None,
        "descriptions": list(descriptions) if descriptions is not None else [f"about {title}"],
        "linksLc": list(links_lc),
        "linked": 0,
        "updated": updated,
        "accessed": updated,
    }


def _project_related(project, title, updated=1672173548):
    return {
        "id": f"id-{project}-{title}",
        "title": title,
        "titleLc": title.replace(" ", "_").lower(),
        "image": None,
        "descriptions": [f"about {title}"],
        "projectName": project,
        "updated": updated,
    }


def _page(
    title,
    links=(),
    links1hop=(),
    links2hop=(),
    project_links=(),
    project_links1hop=(),
    updated=1673081924,
    persistent=True,
):
    """
    page api json.
    links1hop/links2hop: (title, links_lc) pairs
    project_links1hop: (project, title) pairs
    """
    return {
        "id": f"id-{title}",
        "title": title,
        "image": None,
        "descriptions": [f"[{link}]" for link in links][:5],
        "persistent": persistent,
        "updated": updated,
        "created": updated - 100,
        "lines": [
            {"id": "l0", "text": title, "userId": "u1", "created": updated, "updated": updated},
            *(
                {"id": f"l{i + 1}", "text": f"[{link}]", "userId": "u1",
                 "created": updated, "updated": updated}
                for i, link in enumerate(links)
            ),
        ],
        "links": list(links),
        "projectLinks": list(project_links),
        "relatedPages": {
            "links1hop": [_related(t, lk) for t, lk in links1hop],
            "links2hop": [_related(t, lk) for t, lk in links2hop],
            "projectLinks1hop": [_project_related(p, t) for p, t in project_links1hop],
        },
    }


@pytest.fixture
def page_json():
    """factory for page api payloads."""
    return _page
