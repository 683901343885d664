"""
Domain models for relgen.

Every stage of the compiler hands the next one a frozen pydantic model:
``RelationSpec`` (validated, then resolved), ``QueryPlan`` and ``AccessorSpec``.
Being plain data, they serialize with ``model_dump``/``model_dump_json`` and can
be handed to a rendering backend as-is.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field

_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


class RelationKind(str, Enum):
    ONE_TO_MANY = "one_to_many"
    MANY_TO_ONE = "many_to_one"
    ONE_TO_ONE = "one_to_one"
    MANY_TO_MANY = "many_to_many"

    @property
    def is_collection(self) -> bool:
        """True when the lazy getter yields many target rows."""
        return self in (RelationKind.ONE_TO_MANY, RelationKind.MANY_TO_MANY)

    @property
    def holds_foreign_key(self) -> bool:
        """True when the declaring entity carries the foreign key column."""
        return self in (RelationKind.MANY_TO_ONE, RelationKind.ONE_TO_ONE)


class Backend(str, Enum):
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    MYSQL = "mysql"


class RelationSpec(BaseModel):
    """
    One declared relationship between ``source_model`` and ``target_model``.

    Optional fields stay ``None`` after validation and are filled in by the
    resolver; see ``is_resolved``.
    """

    relation_kind: RelationKind
    source_model: str = Field(..., description="Entity the relation is declared on.")
    target_model: str = Field(..., description="Related entity identifier.")
    backend: Backend

    foreign_key: Optional[str] = Field(None, description="Foreign key column.")
    primary_key: Optional[str] = Field(None, description="Key column of the declaring entity.")
    parent_primary_key: Optional[str] = Field(
        None, description="Key column of the referenced table (many_to_one / one_to_one)."
    )
    target_table: Optional[str] = Field(None, description="Table holding target rows.")

    join_table: Optional[str] = None
    fk_parent: Optional[str] = None
    fk_child: Optional[str] = None
    child_primary_key: Optional[str] = None

    method_name: Optional[str] = None
    eager_method_name: Optional[str] = None
    eager_loading: bool = False
    async_mode: bool = False
    error_type: Optional[str] = None

    model_config = _FROZEN

    @property
    def is_resolved(self) -> bool:
        if not (self.primary_key and self.foreign_key and self.target_table and self.method_name):
            return False
        if self.eager_loading and not self.eager_method_name:
            return False
        if self.relation_kind is RelationKind.MANY_TO_MANY:
            return bool(self.child_primary_key)
        if self.relation_kind.holds_foreign_key:
            return bool(self.parent_primary_key)
        return True


class FetchMode(str, Enum):
    LAZY = "lazy"
    EAGER = "eager"


class FetchPrimitive(str, Enum):
    """The three operations a store must provide."""

    EQUALITY = "fetch_by_equality"
    MEMBERSHIP = "fetch_by_membership"
    PRIMARY_KEY = "fetch_by_primary_key"


class ValueSource(str, Enum):
    PARENT = "parent"
    PREVIOUS_STEP = "previous_step"


class PairingRule(str, Enum):
    DIRECT = "direct"
    THROUGH_JOIN = "through_join"


class FetchStep(BaseModel):
    """
    One round trip: ``primitive(table, column, <values>)``.

    Filter values are read from ``value_column`` of either the parent record(s)
    or the rows returned by the previous step.
    """

    primitive: FetchPrimitive
    table: str
    column: str
    value_from: ValueSource
    value_column: str

    model_config = _FROZEN


class QueryPlan(BaseModel):
    fetch_mode: FetchMode
    relation_kind: RelationKind
    steps: Tuple[FetchStep, ...]

    # Eager only. DIRECT groups target rows by `group_key_column`; THROUGH_JOIN
    # links parents to target rows through the join rows of the first step.
    pairing: Optional[PairingRule] = None
    group_key_column: Optional[str] = None
    link_parent_column: Optional[str] = None
    link_child_column: Optional[str] = None
    target_key_column: Optional[str] = None

    model_config = _FROZEN

    @property
    def parent_key_column(self) -> str:
        """Column read off each parent record to start the fetch."""
        return self.steps[0].value_column

    @property
    def round_trips(self) -> int:
        return len(self.steps)


class ExecutionMode(str, Enum):
    BLOCKING = "blocking"
    SUSPENDING = "suspending"


class ReturnShape(str, Enum):
    SINGLE = "single"
    COLLECTION = "collection"
    PAIRED_LIST = "paired_list"


class AccessorRole(str, Enum):
    LAZY_GETTER = "lazy_getter"
    EAGER_LOADER = "eager_loader"


class ParameterShape(str, Enum):
    RECEIVER = "receiver"
    PARENTS = "parents"
    CONNECTION = "connection"


class Parameter(BaseModel):
    name: str
    shape: ParameterShape

    model_config = _FROZEN


class AccessorSpec(BaseModel):
    """Everything a rendering backend needs to write one accessor."""

    name: str
    owner_model: str
    target_model: str
    role: AccessorRole
    execution_mode: ExecutionMode
    return_shape: ReturnShape
    error_type: Optional[str] = None
    backend: Backend
    parameters: Tuple[Parameter, ...]
    plan: QueryPlan

    model_config = _FROZEN

    @property
    def max_round_trips(self) -> int:
        return self.plan.round_trips

    @property
    def is_async(self) -> bool:
        return self.execution_mode is ExecutionMode.SUSPENDING


__all__ = [
    "RelationKind",
    "Backend",
    "RelationSpec",
    "FetchMode",
    "FetchPrimitive",
    "ValueSource",
    "PairingRule",
    "FetchStep",
    "QueryPlan",
    "ExecutionMode",
    "ReturnShape",
    "AccessorRole",
    "ParameterShape",
    "Parameter",
    "AccessorSpec",
]
