"""
Pytest configuration for relgen.

Provides fixtures for:
- A blog-shaped in-memory store (users, posts, profiles, tags, post_tags)
- Declaration mappings for every relation kind
- Settings override with cache reset
- A sqlite connection seeded with the same data, for integration tests
"""

from __future__ import annotations

import os
import sqlite3
from typing import Any, Dict, Generator, List

import pytest

from relgen.config import Settings, get_settings
from relgen.stores.memory import InMemoryStore

USERS = [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}, {"id": 3, "name": "Carol"}]
POSTS = [
    {"id": 1, "user_id": 1, "title": "First post"},
    {"id": 2, "user_id": 2, "title": "Bob writes"},
    {"id": 3, "user_id": 1, "title": "Second post"},
]
PROFILES = [{"id": 7, "user_id": 1, "bio": "Alice's bio"}]
TAGS = [{"tag_id": 10, "name": "python"}, {"tag_id": 11, "name": "sql"}, {"tag_id": 12, "name": "unused"}]
POST_TAGS = [
    {"id": 1, "post_id": 1, "tag_id": 10},
    {"id": 2, "post_id": 2, "tag_id": 10},
    {"id": 3, "post_id": 2, "tag_id": 11},
]


def blog_tables() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "users": USERS,
        "posts": POSTS,
        "user_profiles": PROFILES,
        "tags": TAGS,
        "post_tags": POST_TAGS,
    }


@pytest.fixture
def blog_store() -> InMemoryStore:
    return InMemoryStore(blog_tables())


@pytest.fixture
def declarations() -> Dict[str, Dict[str, Any]]:
    """One valid declaration per relation kind."""
    return {
        "one_to_many": {"model": "Post", "relation_type": "one_to_many", "backend": "sqlite"},
        "many_to_one": {
            "model": "User",
            "relation_type": "many_to_one",
            "backend": "sqlite",
            "fk": "user_id",
        },
        "one_to_one": {
            "model": "UserProfile",
            "relation_type": "one_to_one",
            "backend": "sqlite",
            "fk": "profile_id",
        },
        "many_to_many": {
            "model": "Tag",
            "relation_type": "many_to_many",
            "backend": "sqlite",
            "join_table": "post_tags",
            "fk_parent": "post_id",
            "fk_child": "tag_id",
            "child_primary_key": "tag_id",
        },
    }


@pytest.fixture
def override_settings(monkeypatch) -> Generator[Any, None, None]:
    """
    Set environment variables and rebuild the cached Settings.

    Usage: ``override_settings(RELGEN_PAIRING_ANOMALY="raise")``
    """

    def _apply(**env: str) -> Settings:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()
        return get_settings()

    yield _apply
    get_settings.cache_clear()


@pytest.fixture
def sqlite_conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory sqlite database holding the blog tables."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.executescript(
        """
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER NOT NULL, title TEXT NOT NULL);
        CREATE TABLE user_profiles (id INTEGER PRIMARY KEY, user_id INTEGER NOT NULL, bio TEXT NOT NULL);
        CREATE TABLE tags (tag_id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE post_tags (id INTEGER PRIMARY KEY, post_id INTEGER NOT NULL, tag_id INTEGER NOT NULL);
        """
    )
    for table, rows in blog_tables().items():
        columns = list(rows[0])
        placeholders = ", ".join("?" for _ in columns)
        conn.executemany(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            [tuple(row[c] for c in columns) for row in rows],
        )
    conn.commit()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def test_dsn() -> str:
    """
    Postgres connection string for integration tests.

    Can be overridden via environment variables in CI or local testing.
    """
    return (
        f"postgresql://{os.getenv('DB_USER', 'postgres')}:{os.getenv('DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('DB_HOST', 'localhost')}:{os.getenv('DB_PORT', '5432')}"
        f"/{os.getenv('DB_NAME', 'relgen_test')}"
    )
