"""
Schema validation for relationship declarations.

A declaration is a plain mapping of field name to value, e.g.::

    {"relation_type": "many_to_one", "model": "User", "fk": "user_id", "backend": "sqlite"}

``SCHEMA`` lists, per relation kind, the fields a declaration must carry and
the optional fields it may carry. Any recognized field outside those two sets
is forbidden for that kind. All kind-specific rules live in that table; the
functions below only walk it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from relgen.domain.errors import (
    ConfigurationError,
    ForbiddenField,
    InvalidBackend,
    InvalidFieldValue,
    InvalidRelationKind,
    MissingRequiredField,
    UnknownField,
)
from relgen.domain.models import Backend, RelationKind, RelationSpec

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# `package.module.Error` or `package.module:Error`
_TYPE_REFERENCE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*(:[A-Za-z_][A-Za-z0-9_]*)?$")

_BASE_REQUIRED = ("model", "relation_type", "backend")
_COMMON_OPTIONAL = (
    "primary_key",
    "target_table",
    "method_name",
    "eager_loading",
    "async",
    "error_type",
)


@dataclass(frozen=True)
class KindSchema:
    """Field rules for one relation kind."""

    kind: RelationKind
    required: Tuple[str, ...]
    optional: Tuple[str, ...]

    @property
    def allowed(self) -> FrozenSet[str]:
        return frozenset(self.required) | frozenset(self.optional)

    @property
    def forbidden(self) -> FrozenSet[str]:
        return KNOWN_FIELDS - self.allowed


SCHEMA: Mapping[RelationKind, KindSchema] = MappingProxyType(
    {
        RelationKind.ONE_TO_MANY: KindSchema(
            kind=RelationKind.ONE_TO_MANY,
            required=_BASE_REQUIRED,
            optional=_COMMON_OPTIONAL,
        ),
        RelationKind.MANY_TO_ONE: KindSchema(
            kind=RelationKind.MANY_TO_ONE,
            required=_BASE_REQUIRED + ("fk",),
            optional=_COMMON_OPTIONAL + ("parent_primary_key",),
        ),
        RelationKind.ONE_TO_ONE: KindSchema(
            kind=RelationKind.ONE_TO_ONE,
            required=_BASE_REQUIRED + ("fk",),
            optional=_COMMON_OPTIONAL + ("parent_primary_key",),
        ),
        RelationKind.MANY_TO_MANY: KindSchema(
            kind=RelationKind.MANY_TO_MANY,
            required=_BASE_REQUIRED + ("join_table", "fk_parent", "fk_child"),
            optional=_COMMON_OPTIONAL + ("child_primary_key",),
        ),
    }
)

KNOWN_FIELDS: FrozenSet[str] = frozenset(
    field for schema in SCHEMA.values() for field in schema.required + schema.optional
)

_BOOL_FIELDS = frozenset({"eager_loading", "async"})

# Declaration field -> RelationSpec attribute, where the names differ.
_SPEC_ATTRIBUTE = {
    "model": "target_model",
    "fk": "foreign_key",
    "async": "async_mode",
}


def parse_relation_kind(value: Any) -> RelationKind:
    """Accept `one_to_many`, `one-to-many` and case variants."""
    if not isinstance(value, str):
        raise InvalidRelationKind(value)
    normalized = value.strip().lower().replace("-", "_")
    try:
        return RelationKind(normalized)
    except ValueError:
        raise InvalidRelationKind(value) from None


def parse_backend(value: Any, kind: Optional[RelationKind] = None) -> Backend:
    kind_name = kind.value if kind else None
    if not isinstance(value, str):
        raise InvalidBackend(value, kind=kind_name)
    try:
        return Backend(value.strip().lower())
    except ValueError:
        raise InvalidBackend(value, kind=kind_name) from None


def _present(declaration: Mapping[str, Any], field: str) -> bool:
    # An explicit null counts as omitted.
    return declaration.get(field) is not None


def _coerce_value(kind: RelationKind, field: str, value: Any) -> Any:
    if field in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise InvalidFieldValue(kind.value, field, value, "a boolean")
    if field == "error_type":
        if isinstance(value, str) and _TYPE_REFERENCE.match(value):
            return value
        raise InvalidFieldValue(kind.value, field, value, "a dotted type identifier")
    if isinstance(value, str) and _IDENTIFIER.match(value):
        return value
    raise InvalidFieldValue(kind.value, field, value, "a non-empty identifier")


def validate_declaration(source_model: str, declaration: Mapping[str, Any]) -> RelationSpec:
    """
    Validate one declaration attached to ``source_model``.

    Checks run in a fixed order and the first failure is raised: relation type
    present and valid, no unknown fields, backend valid, required fields
    present, no forbidden fields, then field value shapes.

    Raises
    ------
    ConfigurationError
        One of its subclasses, naming the relation kind and offending field.
    """
    if not _present(declaration, "relation_type"):
        raise MissingRequiredField(None, "relation_type")
    kind = parse_relation_kind(declaration["relation_type"])
    schema = SCHEMA[kind]

    for name in declaration:
        if name not in KNOWN_FIELDS:
            raise UnknownField(name, kind=kind.value)

    if _present(declaration, "backend"):
        backend = parse_backend(declaration["backend"], kind)
    else:
        raise MissingRequiredField(kind.value, "backend")

    for field in schema.required:
        if not _present(declaration, field):
            raise MissingRequiredField(kind.value, field)

    for field in sorted(schema.forbidden):
        if _present(declaration, field):
            raise ForbiddenField(kind.value, field)

    values: Dict[str, Any] = {}
    for field in schema.required + schema.optional:
        if field in ("relation_type", "backend") or not _present(declaration, field):
            continue
        values[_SPEC_ATTRIBUTE.get(field, field)] = _coerce_value(kind, field, declaration[field])

    return RelationSpec(
        relation_kind=kind,
        source_model=source_model,
        backend=backend,
        **values,
    )


def validate_all(
    source_model: str, declarations: Iterable[Mapping[str, Any]]
) -> List[Union[RelationSpec, ConfigurationError]]:
    """
    Validate every declaration of one entity independently.

    The result is positional: each slot holds either the validated spec or the
    error that rejected that declaration.
    """
    outcomes: List[Union[RelationSpec, ConfigurationError]] = []
    for declaration in declarations:
        try:
            outcomes.append(validate_declaration(source_model, declaration))
        except ConfigurationError as exc:
            outcomes.append(exc)
    return outcomes


__all__ = [
    "KindSchema",
    "SCHEMA",
    "KNOWN_FIELDS",
    "parse_relation_kind",
    "parse_backend",
    "validate_declaration",
    "validate_all",
]
