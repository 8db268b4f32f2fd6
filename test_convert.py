"""
test the page -> bubbles converter.

run with: pytest test_convert.py -v
"""

import pytest

from linkbubble.core.errors import GraphInvariantError
from linkbubble.core.models import Backlinks, Page, RealContent, SynthesizedContent
from linkbubble.graph.convert import convert, make_stub


# =============================================================================
# same-source links
# =============================================================================

class TestSameSourceLinks:
    """forward links, 1-hop and 2-hop related pages."""

    @pytest.fixture
    def graph(self, page_json):
        page = Page.from_dict(page_json(
            "B",
            links=["B1", "A1"],
            links1hop=[("B1", ["b"])],
            links2hop=[("A", ["a1"]), ("C", ["b1"])],
        ))
        return convert("takker-dist", page, checked=42)

    def test_page_record(self, graph):
        page = graph["/takker-dist/b"]

        assert page.exists
        assert isinstance(page.content, RealContent)
        assert page.content.title == "B"
        assert page.updated == 1673081924
        assert page.backlinks_exact
        assert page.project_backlinks == Backlinks.of()

    def test_neighbor_linking_back_is_a_backlink(self, graph):
        assert graph["/takker-dist/b"].backlinks == Backlinks.of("b1")

    def test_one_hop_neighbor_keeps_forward_link_backlinks(self, graph):
        b1 = graph["/takker-dist/b1"]

        assert b1.exists
        assert isinstance(b1.content, SynthesizedContent)
        assert b1.content.title == "B1"
        # "b" from the forward link, "c" from the 2-hop page
        assert b1.backlinks == Backlinks.of("b", "c")
        assert not b1.backlinks_exact

    def test_forward_link_stub(self, graph):
        a1 = graph["/takker-dist/a1"]

        assert not a1.exists
        assert a1.updated == 0
        assert a1.content.is_synthesized
        assert a1.backlinks == Backlinks.of("b", "a")
        assert a1.project_backlinks == Backlinks.UNKNOWN

    def test_two_hop_records_have_unknown_backlinks(self, graph):
        for bubble_id in ("/takker-dist/a", "/takker-dist/c"):
            bubble = graph[bubble_id]
            assert bubble.exists
            assert bubble.backlinks == Backlinks.UNKNOWN
            assert bubble.project_backlinks == Backlinks.UNKNOWN

    def test_every_record_is_stamped(self, graph):
        assert {b.checked for b in graph.values()} == {42}
        assert set(graph) == {
            "/takker-dist/b", "/takker-dist/b1", "/takker-dist/a1",
            "/takker-dist/a", "/takker-dist/c",
        }

    def test_shared_link_gets_neighbor_as_backlink(self, page_json):
        # page -> y <- x, with x also linked from the page
        page = Page.from_dict(page_json("P", links=["X", "Y"], links1hop=[("X", ["y"])]))

        graph = convert("proj", page)

        assert graph["/proj/y"].backlinks == Backlinks.of("p", "x")
        assert graph["/proj/x"].backlinks == Backlinks.of("p")
        assert graph["/proj/p"].backlinks == Backlinks.of()

    def test_titles_are_normalized(self, page_json):
        page = Page.from_dict(page_json("Hello World", links=["Foo Bar"]))

        graph = convert("proj", page)

        assert "/proj/hello_world" in graph
        assert graph["/proj/foo_bar"].backlinks == Backlinks.of("hello_world")
        assert graph["/proj/foo_bar"].content.title == "Foo Bar"

    def test_missing_two_hop_target_aborts(self, page_json):
        page = Page.from_dict(page_json("B", links=["B1"], links2hop=[("Z", ["nowhere"])]))

        with pytest.raises(GraphInvariantError) as excinfo:
            convert("proj", page)

        assert excinfo.value.bubble_id == "/proj/nowhere"
        assert excinfo.value.referrer == "z"

    def test_conversion_is_deterministic(self, page_json):
        data = page_json("B", links=["B1"], links1hop=[("B1", ["b"])])

        assert convert("proj", Page.from_dict(data)) == convert("proj", Page.from_dict(data))


# =============================================================================
# cross-source links
# =============================================================================

class TestCrossSourceLinks:

    @pytest.fixture
    def graph(self, page_json):
        page = Page.from_dict(page_json(
            "Page",
            project_links=["/other/Foo"],
            project_links1hop=[("other", "Foo"), ("third", "Bar")],
        ))
        return convert("proj", page)

    def test_declared_reference_is_not_a_backlink(self, graph):
        assert graph["/proj/page"].project_backlinks == Backlinks.of("/third/bar")

    def test_referenced_page_gets_page_as_backlink(self, graph):
        foo = graph["/other/foo"]

        assert foo.source == "other"
        assert foo.exists
        assert foo.project_backlinks == Backlinks.of("/proj/page")

    def test_undeclared_neighbor_has_unknown_backlinks(self, graph):
        bar = graph["/third/bar"]

        assert bar.source == "third"
        assert bar.project_backlinks == Backlinks.UNKNOWN

    def test_reference_without_related_page_is_a_stub(self, page_json):
        page = Page.from_dict(page_json("Page", project_links=["/other/Missing Page"]))

        stub = convert("proj", page)["/other/missing_page"]

        assert not stub.exists
        assert stub.content.title == "Missing Page"
        assert stub.project_backlinks == Backlinks.of("/proj/page")


def test_make_stub():
    stub = make_stub("proj", "Some Title", checked=7)

    assert stub.id == "/proj/some_title"
    assert not stub.exists
    assert stub.checked == 7
    assert stub.backlinks == Backlinks.UNKNOWN
