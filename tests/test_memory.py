"""Tests for the in-memory engine used throughout the suite."""

import pytest

from gitbackport.engine import CherryPickStatus
from gitbackport.errors import BranchExists
from gitbackport.memory import MemoryEngine


def test_resolve_forms(linear):
    engine, ids = linear
    engine.tag("v1.0", ids["B"])

    assert engine.resolve("release/2.28") == ids["D"]
    assert engine.resolve("v1.0") == ids["B"]
    assert engine.resolve(ids["C"]) == ids["C"]
    assert engine.resolve(ids["C"][:7]) == ids["C"]
    assert engine.resolve("HEAD") == engine.resolve("main")
    assert engine.resolve("nope") is None
    assert engine.resolve("") is None


def test_ancestry_is_newest_first(linear):
    engine, ids = linear
    walk = engine.ancestry(ids["D"], engine.resolve("main"))
    assert [c.id for c in walk] == [ids["D"], ids["C"], ids["B"], ids["A"]]


def test_create_branch_refuses_existing(linear):
    engine, _ = linear
    with pytest.raises(BranchExists):
        engine.create_branch("release/2.28", "main")


def test_cherry_pick_applies_changes(linear):
    engine, ids = linear
    result = engine.cherry_pick(ids["A"])
    assert result.status is CherryPickStatus.OK
    assert engine.files()["util.txt"] == "v1"
    assert engine.log()[-1] == "Commit A: add util.txt"


def test_cherry_pick_conflict_enters_pending_state():
    engine = MemoryEngine()
    engine.commit("Initial commit", {"app.txt": "v1"})
    engine.create_branch("source", "main")
    change = engine.commit("v3 change", {"app.txt": "v3"})
    engine.checkout("main")
    engine.commit("v2 change", {"app.txt": "v2"})

    result = engine.cherry_pick(change)

    assert result.status is CherryPickStatus.CONFLICTING
    assert engine.in_progress() == "cherry-pick"
    assert engine.status().conflicting == ["app.txt"]
    # A second pick while one is pending is refused
    assert engine.cherry_pick(change).status is CherryPickStatus.OTHER


def test_cherry_pick_of_present_change_is_empty(linear):
    engine, ids = linear
    engine.commit("Same as A", {"util.txt": "v1"})
    assert engine.cherry_pick(ids["A"]).status is CherryPickStatus.EMPTY
