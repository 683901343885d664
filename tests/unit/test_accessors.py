from __future__ import annotations

import pytest

from relgen.compiler.pipeline import compile_relation
from relgen.declarative import relation
from relgen.domain.errors import (
    ConfigurationError,
    DuplicateAccessorName,
    ErrorTypeResolutionError,
    PairingAnomaly,
    RuntimeFetchError,
)
from relgen.runtime.accessors import attach_accessors, bind_accessor, resolve_error_type
from relgen.stores.memory import InMemoryStore
from relgen.stores.threaded import ThreadedAsyncStore


class DataAccessError(Exception):
    """Application error that wraps store failures."""


class NeedsTwoArguments(Exception):
    def __init__(self, message, code):
        super().__init__(message, code)


def _accessors(entity, declaration, **extra):
    _, accessors = compile_relation(entity, dict(declaration, **extra))
    return accessors


def test_bound_lazy_getter_fetches(declarations, blog_store):
    getter = bind_accessor(_accessors("User", declarations["one_to_many"])[0])

    rows = getter({"id": 1}, blog_store)

    assert [row["id"] for row in rows] == [1, 3]
    assert getter.__name__ == "get_posts"
    assert getter.__qualname__ == "User.get_posts"
    assert getter.accessor_spec.name == "get_posts"
    assert "1 round trip" in getter.__doc__


def test_native_error_passes_through_without_error_type(declarations):
    getter = bind_accessor(_accessors("User", declarations["one_to_many"])[0])
    store = InMemoryStore(failing_tables=["posts"])

    with pytest.raises(RuntimeFetchError):
        getter({"id": 1}, store)


def test_error_type_converts_and_chains(declarations):
    spec = _accessors("User", declarations["one_to_many"], error_type="DataAccessError")[0]
    getter = bind_accessor(spec, error_types={"DataAccessError": DataAccessError})
    store = InMemoryStore(failing_tables=["posts"])

    with pytest.raises(DataAccessError) as info:
        getter({"id": 1}, store)

    assert isinstance(info.value.__cause__, RuntimeFetchError)
    assert info.value.args[0] is info.value.__cause__


def test_error_type_by_import_path(declarations):
    spec = _accessors("User", declarations["one_to_many"], error_type=f"{__name__}:DataAccessError")[0]
    getter = bind_accessor(spec)

    with pytest.raises(DataAccessError):
        getter({"id": 1}, InMemoryStore(failing_tables=["posts"]))


def test_builtin_error_type(declarations):
    spec = _accessors("Post", declarations["many_to_one"], error_type="LookupError")[0]
    getter = bind_accessor(spec)

    with pytest.raises(LookupError):
        getter({"id": 1, "user_id": 1}, InMemoryStore())


@pytest.mark.parametrize(
    "identifier",
    ["NoSuchErrorAnywhere", "relgen.no_such_module:Error", "relgen.domain.models:RelationSpec"],
)
def test_unusable_error_type_rejected(identifier):
    with pytest.raises(ErrorTypeResolutionError):
        resolve_error_type(identifier)


def test_error_type_must_accept_single_argument():
    with pytest.raises(ErrorTypeResolutionError):
        resolve_error_type("NeedsTwoArguments", {"NeedsTwoArguments": NeedsTwoArguments})


def test_registry_wins_over_import():
    assert resolve_error_type("KeyError", {"KeyError": DataAccessError}) is DataAccessError


def test_eager_loader_reads_policy_from_settings(declarations, override_settings):
    override_settings(RELGEN_PAIRING_ANOMALY="raise")

    class _LeakyStore(InMemoryStore):
        def fetch_by_membership(self, table, column, values):
            return [dict(row) for row in self.tables[table]]

    store = _LeakyStore({"posts": [{"id": 1, "user_id": 1}, {"id": 2, "user_id": 2}]})
    loader = bind_accessor(_accessors("User", declarations["one_to_many"], eager_loading=True)[1])

    with pytest.raises(PairingAnomaly):
        loader([{"id": 1}], store)

    explicit = bind_accessor(
        _accessors("User", declarations["one_to_many"], eager_loading=True)[1], policy="drop"
    )
    assert [row["id"] for _, rows in explicit([{"id": 1}], store) for row in rows] == [1]


@pytest.mark.asyncio
async def test_async_accessors(declarations, blog_store):
    getter, loader = [
        bind_accessor(spec)
        for spec in _accessors("Post", declarations["many_to_many"], eager_loading=True, **{"async": True})
    ]
    store = ThreadedAsyncStore(blog_store)

    tags = await getter({"id": 2}, store)
    paired = await loader([{"id": 1}, {"id": 3}], store)

    assert [t["name"] for t in tags] == ["python", "sql"]
    assert [[t["name"] for t in rows] for _, rows in paired] == [["python"], []]


@pytest.mark.asyncio
async def test_async_error_conversion(declarations):
    spec = _accessors("User", declarations["one_to_many"], error_type="RuntimeError", **{"async": True})[0]
    getter = bind_accessor(spec)
    store = ThreadedAsyncStore(InMemoryStore(failing_tables=["posts"]))

    with pytest.raises(RuntimeError) as info:
        await getter({"id": 1}, store)

    assert isinstance(info.value.__cause__, RuntimeFetchError)


def test_attach_accessors_installs_methods(declarations, blog_store):
    class User:
        def __init__(self, id):
            self.id = id

    attach_accessors(User, _accessors("User", declarations["one_to_many"], eager_loading=True))

    alice, carol = User(1), User(3)
    assert [p["id"] for p in alice.get_posts(blog_store)] == [1, 3]
    paired = User.load_with_posts([alice, carol], blog_store)
    assert [(parent.id, len(rows)) for parent, rows in paired] == [(1, 2), (3, 0)]


def test_attach_refuses_existing_attribute(declarations):
    class User:
        def get_posts(self):
            return []

    with pytest.raises(DuplicateAccessorName):
        attach_accessors(User, _accessors("User", declarations["one_to_many"]))


def test_attach_leaves_class_untouched_on_bad_error_type(declarations):
    class User:
        pass

    specs = _accessors("User", declarations["one_to_many"], eager_loading=True, error_type="NoSuchError")

    with pytest.raises(ErrorTypeResolutionError):
        attach_accessors(User, specs)

    assert not hasattr(User, "get_posts")


def test_relation_decorator(blog_store):
    @relation(model="Tag", relation_type="many_to_many", backend="sqlite",
              join_table="post_tags", fk_parent="post_id", fk_child="tag_id",
              child_primary_key="tag_id", eager_loading=True)
    @relation(model="User", relation_type="many_to_one", fk="user_id", backend="sqlite")
    class Post:
        def __init__(self, id, user_id):
            self.id = id
            self.user_id = user_id

    post = Post(2, 2)

    assert post.get_user(blog_store)["name"] == "Bob"
    assert [t["name"] for t in post.get_tags(blog_store)] == ["python", "sql"]
    assert [len(rows) for _, rows in Post.load_with_tags([post, Post(3, 1)], blog_store)] == [2, 0]
    assert [spec.method_name for spec in Post.__relations__] == ["get_user", "get_tags"]


def test_relation_decorator_async_keyword():
    @relation(model="Post", relation_type="one_to_many", backend="postgres", async_=True)
    class User:
        pass

    assert User.get_posts.accessor_spec.is_async


def test_relation_decorator_rejects_invalid_declaration():
    with pytest.raises(ConfigurationError):

        @relation(model="Tag", relation_type="many_to_many", backend="sqlite", join_table="post_tags")
        class Post:
            pass
