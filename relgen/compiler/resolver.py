"""
Defaulting and naming for validated relation specs.

Pluralization is a plain ``s`` suffix on purpose: ``Category`` becomes
``categorys``. Declarations that need a real plural set ``method_name`` and
``target_table`` explicitly.
"""

from __future__ import annotations

import re

from relgen.domain.models import RelationKind, RelationSpec

DEFAULT_PRIMARY_KEY = "id"
EAGER_PREFIX = "load_with_"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(identifier: str) -> str:
    """`UserProfile` -> `user_profile`, `HTTPRequest` -> `http_request`."""
    return _CAMEL_BOUNDARY.sub("_", identifier).lower()


def pluralize(word: str) -> str:
    return f"{word}s"


def default_accessor_name(kind: RelationKind, target_model: str) -> str:
    stem = snake_case(target_model)
    if kind.is_collection:
        stem = pluralize(stem)
    return f"get_{stem}"


def eager_loader_name(accessor_name: str) -> str:
    """`get_posts` -> `load_with_posts`; names without `get_` are kept whole."""
    return EAGER_PREFIX + accessor_name.removeprefix("get_")


def resolve(spec: RelationSpec) -> RelationSpec:
    """
    Fill every omitted optional field of a validated spec.

    Returns a new spec; the input is left untouched.
    """
    primary_key = spec.primary_key or DEFAULT_PRIMARY_KEY
    method_name = spec.method_name or default_accessor_name(spec.relation_kind, spec.target_model)
    updates = {
        "primary_key": primary_key,
        "method_name": method_name,
        "target_table": spec.target_table or pluralize(snake_case(spec.target_model)),
    }

    if spec.relation_kind is RelationKind.ONE_TO_MANY:
        # belongs-to convention: the target table points back at us via <source>_id
        updates["foreign_key"] = spec.foreign_key or f"{snake_case(spec.source_model)}_id"
    elif spec.relation_kind.holds_foreign_key:
        updates["parent_primary_key"] = spec.parent_primary_key or primary_key
    else:
        updates["child_primary_key"] = spec.child_primary_key or primary_key
        # Join rows are looked up by our key; record it as the foreign key too.
        updates["foreign_key"] = spec.fk_parent

    if spec.eager_loading:
        updates["eager_method_name"] = spec.eager_method_name or eager_loader_name(method_name)

    return spec.model_copy(update=updates)


__all__ = [
    "DEFAULT_PRIMARY_KEY",
    "snake_case",
    "pluralize",
    "default_accessor_name",
    "eager_loader_name",
    "resolve",
]
