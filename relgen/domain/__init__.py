"""
Domain package for relgen.

Exports the frozen data models passed between compiler stages and the error
taxonomy. Keep this package free of compiler or store logic.
"""

from relgen.domain.errors import (
    ConfigurationError,
    DuplicateAccessorName,
    ErrorTypeResolutionError,
    ForbiddenField,
    InvalidBackend,
    InvalidFieldValue,
    InvalidRelationKind,
    MissingRequiredField,
    PairingAnomaly,
    RelgenError,
    RuntimeFetchError,
    UnknownField,
)
from relgen.domain.models import (
    AccessorRole,
    AccessorSpec,
    Backend,
    ExecutionMode,
    FetchMode,
    FetchPrimitive,
    FetchStep,
    PairingRule,
    Parameter,
    ParameterShape,
    QueryPlan,
    RelationKind,
    RelationSpec,
    ReturnShape,
    ValueSource,
)

__all__ = [
    # Models
    "AccessorRole",
    "AccessorSpec",
    "Backend",
    "ExecutionMode",
    "FetchMode",
    "FetchPrimitive",
    "FetchStep",
    "PairingRule",
    "Parameter",
    "ParameterShape",
    "QueryPlan",
    "RelationKind",
    "RelationSpec",
    "ReturnShape",
    "ValueSource",
    # Errors
    "ConfigurationError",
    "DuplicateAccessorName",
    "ErrorTypeResolutionError",
    "ForbiddenField",
    "InvalidBackend",
    "InvalidFieldValue",
    "InvalidRelationKind",
    "MissingRequiredField",
    "PairingAnomaly",
    "RelgenError",
    "RuntimeFetchError",
    "UnknownField",
]
