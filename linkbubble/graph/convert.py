"""
page -> graph records.

turns one page api response into bubbles for the page itself and every
neighbor it reveals (forward links, 1-hop and 2-hop related pages,
cross-source links). pure: no i/o, no clock.
"""

from dataclasses import replace
from typing import Dict, List, Union

from ..core.errors import GraphInvariantError
from ..core.models import (
    Bubble, Backlinks, Page, RelatedPage, ProjectRelatedPage,
    RealContent, SynthesizedContent, Summary, Line,
    from_id, to_id, to_title_lc
)


def convert(source: str, page: Page, checked: int = 0) -> Dict[str, Bubble]:
    """
    build bubbles from a page of source.

    args:
        source: the source the page was fetched from
        page: parsed page api response
        checked: local time stamped on every record

    returns:
        bubble id -> bubble, the page's own record included

    raises:
        GraphInvariantError if a 2-hop page links to a title the page
        never mentioned
    """
    records: Dict[str, Bubble] = {}
    # backlink lists are collected apart from the frozen records;
    # an id missing here means "not computed"
    linked: Dict[str, List[str]] = {}
    project_linked: Dict[str, List[str]] = {}

    title_lc = page.title_lc
    page_id = to_id(source, title_lc)

    # the page is a backlink of every page it links to
    for link in page.links:
        link_id = to_id(source, link)
        records[link_id] = make_stub(source, link, checked)
        linked[link_id] = [title_lc]

    # same for cross-source links
    project_link_ids = []
    for project_link in page.project_links:
        link_source, link_title = from_id(project_link)
        link_id = to_id(link_source, link_title)
        project_link_ids.append(link_id)
        if link_id not in records:
            records[link_id] = make_stub(link_source, link_title, checked)
        project_linked.setdefault(link_id, []).append(page_id)

    records[page_id] = Bubble(
        source=source,
        title_lc=title_lc,
        exists=page.persistent,
        content=RealContent(tuple(page.lines)),
        summary=Summary(tuple(page.descriptions), page.image),
        updated=page.updated,
        checked=checked,
    )
    linked[page_id] = []
    project_linked[page_id] = []

    links_lc = {to_title_lc(link) for link in page.links}
    for card in page.related_pages.links1hop:
        if title_lc in card.links_lc:
            # backlink or bidirectional link
            linked[page_id].append(card.title_lc)

        # page -> link <- card: card is a backlink of the shared link
        for link_lc in card.links_lc:
            if link_lc not in links_lc:
                continue
            linked.setdefault(to_id(source, link_lc), []).append(card.title_lc)

        records[to_id(source, card.title_lc)] = from_related(source, card, checked)

    for card in page.related_pages.project_links1hop:
        card_id = to_id(card.project_name, card.title_lc)
        # a bidirectional link looks like a forward link here, so only
        # undeclared references count as backlinks
        if card_id not in project_link_ids:
            project_linked[page_id].append(card_id)
        records[card_id] = from_related(card.project_name, card, checked)

    for card in page.related_pages.links2hop:
        for link_lc in card.links_lc:
            target_id = to_id(source, link_lc)
            if target_id not in records:
                raise GraphInvariantError(target_id, referrer=card.title_lc)
            linked.setdefault(target_id, []).append(card.title_lc)
        records[to_id(source, card.title_lc)] = from_related(source, card, checked)

    graph: Dict[str, Bubble] = {}
    for bubble_id, record in records.items():
        graph[bubble_id] = replace(
            record,
            backlinks=_known(linked.get(bubble_id)),
            project_backlinks=_known(project_linked.get(bubble_id)),
            backlinks_exact=bubble_id == page_id,
        )
    return graph


def from_related(
    source: str,
    card: Union[RelatedPage, ProjectRelatedPage],
    checked: int = 0
) -> Bubble:
    """bubble for a related page; it exists, but only its summary is known."""
    descriptions = tuple(card.descriptions)
    return Bubble(
        source=source,
        title_lc=card.title_lc,
        exists=True,
        content=SynthesizedContent.from_summary(card.title, descriptions, card.updated),
        summary=Summary(descriptions, card.image),
        updated=card.updated,
        checked=checked,
    )


def make_stub(source: str, title: str, checked: int = 0) -> Bubble:
    """placeholder for a page only known from someone linking to it."""
    return Bubble(
        source=source,
        title_lc=to_title_lc(title),
        exists=False,
        content=SynthesizedContent((Line(text=title),)),
        updated=0,
        checked=checked,
    )


def _known(items) -> Backlinks:
    if items is None:
        return Backlinks.UNKNOWN
    return Backlinks(tuple(items))
