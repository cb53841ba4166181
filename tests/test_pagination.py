import pytest

from esmonitor.filters import (
    AliasFilter, IndexFilter, NodeFilter, NoOpFilter, SnapshotFilter, WarmerFilter
)
from esmonitor.models import Alias, Index, IndexAliases, Node, Warmer
from esmonitor.pagination import Paginator


@pytest.fixture
def twelve():
    return [Index(name=f"idx-{i:02d}", state="open") for i in range(1, 13)]


class TestPaginator:
    def test_first_page(self, twelve):
        page = Paginator(page=1, page_size=5, collection=twelve).get_page()
        assert (page.first, page.last, page.total) == (1, 5, 12)
        assert page.next and not page.previous
        assert len(page.elements) == 5
        assert page.elements[0].name == "idx-01"

    def test_last_page_is_padded(self, twelve):
        page = Paginator(page=3, page_size=5, collection=twelve).get_page()
        assert (page.first, page.last) == (11, 12)
        assert not page.next and page.previous
        assert [e.name for e in page.elements[:2]] == ["idx-11", "idx-12"]
        assert page.elements[2:] == [None, None, None]

    def test_page_shrinks_when_filter_narrows(self, twelve):
        paginator = Paginator(page=3, page_size=5, collection=twelve)
        paginator.set_filter(IndexFilter(name="idx-0[1-3]"))
        page = paginator.get_page()
        assert paginator.page == 1
        assert (page.first, page.last, page.total) == (1, 3, 3)
        assert page.elements[3:] == [None, None]

    def test_empty_collection(self):
        paginator = Paginator(page=4, page_size=3)
        page = paginator.get_page()
        assert (page.first, page.last, page.total) == (0, 0, 0)
        assert page.elements == [None, None, None]
        assert not page.next and not page.previous
        assert paginator.page == 1

    def test_filter_matching_nothing(self, twelve):
        page = Paginator(page=2, page_size=5, collection=twelve, filter=IndexFilter(name="nope")).get_page()
        assert page.total == 0
        assert page.first == 0

    def test_navigation(self, twelve):
        paginator = Paginator(page_size=5, collection=twelve)
        paginator.previous_page()
        assert paginator.page == 1
        paginator.next_page()
        assert paginator.get_page().first == 6
        paginator.set_page_size(20)
        assert paginator.get_page().first == 1

    def test_blank_filter_returns_collection(self, twelve):
        paginator = Paginator(collection=twelve, filter=IndexFilter())
        assert paginator.get_results() == twelve

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            Paginator(page=0)
        with pytest.raises(ValueError):
            Paginator(page_size=0)
        with pytest.raises(ValueError):
            Paginator().set_page_size(0)

    def test_page_is_immutable(self, twelve):
        page = Paginator(collection=twelve).get_page()
        with pytest.raises(Exception):
            page.total = 1


class TestIndexFilter:
    indices = [
        Index(name="logs-2024", state="open", unhealthy=True),
        Index(name=".kibana", state="open"),
        Index(name="archive", state="close"),
    ]

    def names(self, filter):
        return [i.name for i in Paginator(collection=self.indices, filter=filter).get_results()]

    def test_regex_is_case_insensitive(self):
        assert self.names(IndexFilter(name="^LOGS")) == ["logs-2024"]

    def test_invalid_regex_falls_back_to_substring(self):
        indices = [Index(name="weird[name"), Index(name="other")]
        assert [i.name for i in indices if IndexFilter(name="[name").matches(i)] == ["weird[name"]

    def test_hide_special(self):
        assert self.names(IndexFilter(hide_special=True)) == ["logs-2024", "archive"]

    @pytest.mark.parametrize("state,expected", [
        ("open", ["logs-2024", ".kibana"]),
        ("close", ["archive"]),
        ("unhealthy", ["logs-2024"]),
    ])
    def test_state(self, state, expected):
        assert self.names(IndexFilter(state=state)) == expected

    def test_value_equality_and_clone(self):
        original = IndexFilter(name="logs", hide_special=True)
        cloned = original.clone()
        assert cloned == original
        cloned.name = "other"
        assert cloned != original
        assert original.name == "logs"


class TestNodeFilter:
    nodes = [
        Node(id="1", name="Master-1", master=True, data=False),
        Node(id="2", name="data-1", master=False, data=True),
        Node(id="3", name="client-1", master=False, data=False, client=True),
    ]

    def ids(self, filter):
        return [n.id for n in self.nodes if filter.matches(n)]

    def test_all_roles_is_blank(self):
        assert NodeFilter().is_blank()
        assert self.ids(NodeFilter()) == ["1", "2", "3"]

    def test_name_substring_ignores_case(self):
        assert self.ids(NodeFilter(name="master")) == ["1"]

    def test_role_toggles(self):
        assert self.ids(NodeFilter(client=False)) == ["1", "2"]
        assert self.ids(NodeFilter(master=False, data=False)) == ["3"]
        assert self.ids(NodeFilter(master=False, data=False, client=False)) == []


class TestAliasFilter:
    groups = [
        IndexAliases(index="logs-2024", aliases=[Alias(alias="logs", index="logs-2024")]),
        IndexAliases(index="metrics", aliases=[Alias(alias="m-read", index="metrics")]),
    ]

    def test_blank(self):
        assert AliasFilter().is_blank()

    def test_index_and_alias_substrings(self):
        assert [g.index for g in self.groups if AliasFilter(index="log").matches(g)] == ["logs-2024"]
        assert [g.index for g in self.groups if AliasFilter(alias="read").matches(g)] == ["metrics"]
        assert [g.index for g in self.groups if AliasFilter(index="log", alias="read").matches(g)] == []


def test_warmer_filter():
    warmers = [Warmer(id="warm-a", index="i"), Warmer(id="cold", index="i")]
    assert [w.id for w in warmers if WarmerFilter(id="warm").matches(w)] == ["warm-a"]
    assert WarmerFilter().is_blank()


@pytest.mark.parametrize("filter", [NoOpFilter(), SnapshotFilter()])
def test_noop_filters_match_everything(filter):
    assert filter.is_blank()
    assert filter.matches(object())
    assert filter.clone() == filter
