import pytest

from esmonitor.aliases import (
    add_alias, alias_actions, diff, parse_aliases, reconcile, remove_alias, remove_index_aliases
)
from esmonitor.errors import AliasValidationError
from esmonitor.models import Alias, IndexAliases


@pytest.fixture
def baseline():
    return [
        IndexAliases(index="logs-2024", aliases=[Alias(alias="logs", index="logs-2024"),
                                                 Alias(alias="errors", index="logs-2024",
                                                       filter={"term": {"level": "error"}})]),
        IndexAliases(index="metrics", aliases=[Alias(alias="m", index="metrics", index_routing="1")]),
    ]


def working_copy(groups):
    return [group.clone() for group in groups]


def apply(baseline, adds, removes):
    # aplica altas y bajas sobre una copia y devuelve {(índice, alias, ...)}
    result = {(a.index, a.alias, str(a.filter), a.index_routing, a.search_routing)
              for group in baseline for a in group.aliases}
    result -= {(a.index, a.alias, str(a.filter), a.index_routing, a.search_routing) for a in removes}
    result |= {(a.index, a.alias, str(a.filter), a.index_routing, a.search_routing) for a in adds}
    return result


def as_set(groups):
    return {(a.index, a.alias, str(a.filter), a.index_routing, a.search_routing)
            for group in groups for a in group.aliases}


def test_parse_aliases_skips_indices_without_aliases(raw_documents):
    groups = parse_aliases(raw_documents["aliases"])
    assert [g.index for g in groups] == ["logs-2024"]
    assert [a.alias for a in groups[0].aliases] == ["logs", "recent"]
    assert groups[0].aliases[1].filter == {"term": {"level": "error"}}


def test_unchanged_copy_has_no_diff(baseline):
    assert reconcile(baseline, working_copy(baseline)) == ([], [])


def test_changed_filter_is_remove_plus_add(baseline):
    working = working_copy(baseline)
    working[0].aliases[1].filter = {"term": {"level": "warn"}}
    adds, removes = reconcile(baseline, working)
    assert [(a.alias, a.filter) for a in adds] == [("errors", {"term": {"level": "warn"}})]
    assert [(a.alias, a.filter) for a in removes] == [("errors", {"term": {"level": "error"}})]


def test_changed_routing_is_remove_plus_add(baseline):
    working = working_copy(baseline)
    working[1].aliases[0].search_routing = "2"
    adds, removes = reconcile(baseline, working)
    assert len(adds) == 1 and adds[0].search_routing == "2"
    assert len(removes) == 1 and removes[0].search_routing == ""


def test_new_index_contributes_all_aliases(baseline):
    working = working_copy(baseline)
    add_alias(working, Alias(alias="a1", index="fresh"))
    add_alias(working, Alias(alias="a2", index="fresh"))
    assert [a.alias for a in diff(baseline, working)] == ["a1", "a2"]
    assert diff(working, baseline) == []


def test_round_trip(baseline):
    working = working_copy(baseline)
    remove_alias(working, "logs-2024", "logs")
    add_alias(working, Alias(alias="Latest", index="logs-2024"))
    remove_index_aliases(working, "metrics")
    add_alias(working, Alias(alias="x", index="other", filter='{"match_all": {}}'))
    adds, removes = reconcile(baseline, working)
    assert apply(baseline, adds, removes) == as_set(working)


def test_baseline_is_not_mutated_by_working_copy(baseline):
    working = working_copy(baseline)
    remove_alias(working, "logs-2024", "logs")
    assert len(baseline[0].aliases) == 2


def test_actions_put_removes_first(baseline):
    adds = [Alias(alias="new", index="logs-2024")]
    removes = [Alias(alias="old", index="logs-2024", search_routing="1")]
    assert alias_actions(adds, removes) == {"actions": [
        {"remove": {"index": "logs-2024", "alias": "old", "search_routing": "1"}},
        {"add": {"index": "logs-2024", "alias": "new"}},
    ]}


class TestWorkingCopyEdits:
    def test_add_rejects_invalid_alias(self, baseline):
        with pytest.raises(AliasValidationError):
            add_alias(baseline, Alias(alias="", index="logs-2024"))

    def test_add_rejects_duplicate_name(self, baseline):
        with pytest.raises(AliasValidationError):
            add_alias(baseline, Alias(alias="LOGS", index="logs-2024"))

    def test_removing_last_alias_drops_group(self, baseline):
        remove_alias(baseline, "metrics", "m")
        assert [g.index for g in baseline] == ["logs-2024"]

    def test_remove_index_aliases(self, baseline):
        remove_index_aliases(baseline, "logs-2024")
        assert [g.index for g in baseline] == ["metrics"]


def test_parse_aliases_accepts_null_alias_body():
    groups = parse_aliases({"logs": {"aliases": {"plain": None}}})
    assert groups[0].aliases == [Alias(alias="plain", index="logs")]


class TestNameNormalization:
    def test_remove_alias_ignores_case(self, baseline):
        working = working_copy(baseline)
        remove_alias(working, "LOGS-2024", " Errors ")
        assert [a.alias for a in working[0].aliases] == ["logs"]
        adds, removes = reconcile(baseline, working)
        assert adds == []
        assert [a.alias for a in removes] == ["errors"]

    def test_remove_index_aliases_ignores_case(self, baseline):
        remove_index_aliases(baseline, "Metrics")
        assert [g.index for g in baseline] == ["logs-2024"]

    def test_group_index_is_lowercased(self):
        groups = [IndexAliases(index="Logs", aliases=[Alias(alias="a", index="Logs")])]
        assert groups[0].index == "logs"
        add_alias(groups, Alias(alias="b", index="LOGS"))
        assert len(groups) == 1
        assert [a.alias for a in groups[0].aliases] == ["a", "b"]
