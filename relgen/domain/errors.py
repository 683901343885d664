"""
Error taxonomy for relgen.

Two families:

- ``ConfigurationError`` is raised while compiling a declaration. It is fatal to
  that declaration only; the pipeline records it and moves on to siblings.
- ``RuntimeFetchError`` is raised by store adapters when a fetch fails. Bound
  accessors let it through unchanged, or convert it through the declared
  ``error_type``.

``PairingAnomaly`` is only raised when the pairing policy is ``raise``; by
default unmatched eager rows are dropped.
"""

from __future__ import annotations

from typing import Any, Optional


class RelgenError(Exception):
    """Base class for every error raised by relgen itself."""


class ConfigurationError(RelgenError):
    """
    A relationship declaration cannot be compiled.

    Attributes
    ----------
    kind : str | None
        Wire name of the relation kind (e.g. "many_to_many"), when known.
    field : str | None
        Declaration field at fault, when the error is about a single field.
    """

    def __init__(self, message: str, kind: Optional[str] = None, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field


class MissingRequiredField(ConfigurationError):
    def __init__(self, kind: Optional[str], field: str) -> None:
        where = f"a '{kind}' relation" if kind else "every relation"
        super().__init__(f"Field '{field}' is required for {where}.", kind=kind, field=field)


class UnknownField(ConfigurationError):
    def __init__(self, name: str, kind: Optional[str] = None) -> None:
        super().__init__(f"Unknown relation field '{name}'.", kind=kind, field=name)
        self.name = name


class ForbiddenField(ConfigurationError):
    def __init__(self, kind: str, field: str) -> None:
        super().__init__(
            f"Field '{field}' is not allowed on a '{kind}' relation.", kind=kind, field=field
        )


class InvalidRelationKind(ConfigurationError):
    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Relation type {value!r} is not supported. Expected one of: "
            "one_to_many, many_to_one, one_to_one, many_to_many.",
            field="relation_type",
        )
        self.value = value


class InvalidBackend(ConfigurationError):
    def __init__(self, value: Any, kind: Optional[str] = None) -> None:
        super().__init__(
            f"Backend {value!r} is not supported. Expected one of: postgres, sqlite, mysql.",
            kind=kind,
            field="backend",
        )
        self.value = value


class InvalidFieldValue(ConfigurationError):
    def __init__(self, kind: str, field: str, value: Any, expected: str) -> None:
        super().__init__(
            f"Field '{field}' of a '{kind}' relation must be {expected}, got {value!r}.",
            kind=kind,
            field=field,
        )
        self.value = value


class DuplicateAccessorName(ConfigurationError):
    def __init__(self, owner: str, name: str, kind: Optional[str] = None) -> None:
        super().__init__(
            f"Entity '{owner}' already has an accessor named '{name}'; "
            "set 'method_name' to disambiguate.",
            kind=kind,
            field="method_name",
        )
        self.owner = owner
        self.name = name


class ErrorTypeResolutionError(ConfigurationError):
    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(
            f"error_type '{identifier}' cannot be used: {reason}.", field="error_type"
        )
        self.identifier = identifier


class RuntimeFetchError(RelgenError):
    """
    A store fetch failed. Wraps the driver's own exception as ``__cause__``.
    """

    def __init__(self, message: str, table: Optional[str] = None, backend: Optional[str] = None) -> None:
        super().__init__(message)
        self.table = table
        self.backend = backend


class PairingAnomaly(RelgenError):
    """An eager-loaded row carries a key that matches no parent in the input."""

    def __init__(self, table: str, column: str, key: Any) -> None:
        super().__init__(
            f"Row from '{table}' with {column}={key!r} matches no parent in the input batch."
        )
        self.table = table
        self.column = column
        self.key = key


__all__ = [
    "RelgenError",
    "ConfigurationError",
    "MissingRequiredField",
    "UnknownField",
    "ForbiddenField",
    "InvalidRelationKind",
    "InvalidBackend",
    "InvalidFieldValue",
    "DuplicateAccessorName",
    "ErrorTypeResolutionError",
    "RuntimeFetchError",
    "PairingAnomaly",
]
