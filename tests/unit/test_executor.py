from __future__ import annotations

import asyncio

import pytest

from relgen.compiler.pipeline import compile_relation
from relgen.domain.errors import PairingAnomaly, RuntimeFetchError
from relgen.runtime.executor import run_eager, run_eager_async, run_lazy, run_lazy_async
from relgen.stores.memory import InMemoryStore
from relgen.stores.threaded import ThreadedAsyncStore

USERS = [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}, {"id": 3, "name": "Carol"}]
POSTS = [{"id": 1, "user_id": 1}, {"id": 2, "user_id": 2}, {"id": 3, "user_id": 1}]


def _plans(entity, declaration):
    _, accessors = compile_relation(entity, dict(declaration, eager_loading=True))
    lazy, eager = accessors
    return lazy.plan, eager.plan


def _ids(rows):
    return [row["id"] for row in rows]


def test_one_to_many_eager_single_round_trip(declarations, blog_store):
    _, eager = _plans("User", declarations["one_to_many"])

    paired = run_eager(eager, USERS, blog_store)

    assert [(parent["name"], _ids(rows)) for parent, rows in paired] == [
        ("Alice", [1, 3]),
        ("Bob", [2]),
        ("Carol", []),
    ]
    assert blog_store.calls == [("fetch_by_membership", "posts", "user_id", (1, 2, 3))]


def test_one_to_many_lazy_matches_eager(declarations, blog_store):
    lazy, eager = _plans("User", declarations["one_to_many"])

    paired = run_eager(eager, USERS, blog_store)

    for parent, rows in paired:
        assert run_lazy(lazy, parent, blog_store) == rows


def test_many_to_one_eager_and_lazy(declarations, blog_store):
    lazy, eager = _plans("Post", declarations["many_to_one"])

    paired = run_eager(eager, POSTS, blog_store)

    assert [[u["name"] for u in rows] for _, rows in paired] == [["Alice"], ["Bob"], ["Alice"]]
    assert paired[0][1] is not paired[2][1]
    assert blog_store.calls == [("fetch_by_membership", "users", "id", (1, 2))]
    assert run_lazy(lazy, POSTS[1], blog_store) == {"id": 2, "name": "Bob"}
    assert blog_store.calls[-1] == ("fetch_by_primary_key", "users", "id", 2)


def test_one_to_one_with_missing_foreign_key(declarations, blog_store):
    lazy, eager = _plans("User", declarations["one_to_one"])
    users = [{"id": 1, "profile_id": 7}, {"id": 2, "profile_id": None}]

    assert run_lazy(lazy, users[1], blog_store) is None
    assert blog_store.calls == []

    paired = run_eager(eager, users, blog_store)
    assert [_ids(rows) for _, rows in paired] == [[7], []]
    assert blog_store.calls == [("fetch_by_membership", "user_profiles", "id", (7,))]


def test_many_to_many_eager_two_round_trips(declarations, blog_store):
    _, eager = _plans("Post", declarations["many_to_many"])

    paired = run_eager(eager, POSTS, blog_store)

    assert [[t["name"] for t in rows] for _, rows in paired] == [["python"], ["python", "sql"], []]
    assert blog_store.calls == [
        ("fetch_by_membership", "post_tags", "post_id", (1, 2, 3)),
        ("fetch_by_membership", "tags", "tag_id", (10, 11)),
    ]
    shared_first, shared_second = paired[0][1][0], paired[1][1][0]
    assert shared_first == shared_second
    assert shared_first is not shared_second


def test_many_to_many_lazy(declarations, blog_store):
    lazy, _ = _plans("Post", declarations["many_to_many"])

    assert [t["name"] for t in run_lazy(lazy, POSTS[1], blog_store)] == ["python", "sql"]
    assert len(blog_store.calls) == 2

    assert run_lazy(lazy, POSTS[2], blog_store) == []
    # no links: the target table is never queried
    assert len(blog_store.calls) == 3


def test_eager_with_no_parents_skips_fetch(declarations, blog_store):
    _, eager = _plans("Post", declarations["many_to_many"])

    assert run_eager(eager, [], blog_store) == []
    assert blog_store.calls == []


def test_eager_failure_propagates(declarations):
    store = InMemoryStore({"post_tags": [{"post_id": 1, "tag_id": 10}]}, failing_tables=["tags"])
    _, eager = _plans("Post", declarations["many_to_many"])

    with pytest.raises(RuntimeFetchError) as info:
        run_eager(eager, POSTS, store)

    assert info.value.table == "tags"


def test_plan_mode_mismatch(declarations, blog_store):
    lazy, eager = _plans("User", declarations["one_to_many"])

    with pytest.raises(ValueError):
        run_lazy(eager, USERS[0], blog_store)
    with pytest.raises(ValueError):
        run_eager(lazy, USERS, blog_store)


class _LeakyStore(InMemoryStore):
    """Returns every row of a table, ignoring the membership filter."""

    def fetch_by_membership(self, table, column, values):
        self.calls.append(("fetch_by_membership", table, column, tuple(values)))
        return [dict(row) for row in self.tables[table]]


def test_anomaly_policy(declarations):
    store = _LeakyStore({"posts": POSTS})
    _, eager = _plans("User", declarations["one_to_many"])

    paired = run_eager(eager, USERS[:1], store)
    assert _ids(paired[0][1]) == [1, 3]

    with pytest.raises(PairingAnomaly):
        run_eager(eager, USERS[:1], store, policy="raise")


@pytest.mark.asyncio
async def test_async_runs_match_blocking(declarations, blog_store):
    lazy, eager = _plans("Post", declarations["many_to_many"])
    async_store = ThreadedAsyncStore(blog_store)

    expected = run_eager(eager, POSTS, blog_store)

    assert await run_eager_async(eager, POSTS, async_store) == expected
    assert await run_lazy_async(lazy, POSTS[1], async_store) == expected[1][1]


class _HangingStore:
    async def fetch_by_membership(self, table, column, values):
        await asyncio.sleep(3600)


@pytest.mark.asyncio
async def test_cancellation_propagates(declarations):
    _, eager = _plans("User", declarations["one_to_many"])

    task = asyncio.create_task(run_eager_async(eager, USERS, _HangingStore()))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
