"""
Query-plan synthesis.

Turns a resolved ``RelationSpec`` into the fetch plans its accessors execute.
Plans are expressed only in terms of the three store primitives:

- one_to_many   lazy: equality on target.<fk> = parent.<pk>
                eager: membership on target.<fk>, grouped by target.<fk>
- many_to_one / one_to_one
                lazy: primary-key lookup of target.<parent_pk> = parent.<fk>
                eager: membership on target.<parent_pk>, grouped by target.<parent_pk>
- many_to_many  lazy: equality on join.<fk_parent> = parent.<pk>,
                      then membership on target.<child_pk> over join.<fk_child>
                eager: membership on join.<fk_parent>, then membership on
                       target.<child_pk>; paired through the join rows

The grouping and pairing for eager plans run in :mod:`relgen.runtime.pairing`.
"""

from __future__ import annotations

from typing import Tuple

from relgen.domain.models import (
    FetchMode,
    FetchPrimitive,
    FetchStep,
    PairingRule,
    QueryPlan,
    RelationKind,
    RelationSpec,
    ValueSource,
)


def _require_resolved(spec: RelationSpec) -> None:
    if not spec.is_resolved:
        raise ValueError(
            f"Relation {spec.source_model}->{spec.target_model} must be resolved before planning."
        )


def _join_steps(spec: RelationSpec, first: FetchPrimitive) -> Tuple[FetchStep, FetchStep]:
    return (
        FetchStep(
            primitive=first,
            table=spec.join_table,
            column=spec.fk_parent,
            value_from=ValueSource.PARENT,
            value_column=spec.primary_key,
        ),
        FetchStep(
            primitive=FetchPrimitive.MEMBERSHIP,
            table=spec.target_table,
            column=spec.child_primary_key,
            value_from=ValueSource.PREVIOUS_STEP,
            value_column=spec.fk_child,
        ),
    )


def plan_lazy(spec: RelationSpec) -> QueryPlan:
    """Plan the single-parent getter."""
    _require_resolved(spec)
    kind = spec.relation_kind

    if kind is RelationKind.MANY_TO_MANY:
        steps = _join_steps(spec, FetchPrimitive.EQUALITY)
    elif kind.holds_foreign_key:
        steps = (
            FetchStep(
                primitive=FetchPrimitive.PRIMARY_KEY,
                table=spec.target_table,
                column=spec.parent_primary_key,
                value_from=ValueSource.PARENT,
                value_column=spec.foreign_key,
            ),
        )
    else:
        steps = (
            FetchStep(
                primitive=FetchPrimitive.EQUALITY,
                table=spec.target_table,
                column=spec.foreign_key,
                value_from=ValueSource.PARENT,
                value_column=spec.primary_key,
            ),
        )

    return QueryPlan(fetch_mode=FetchMode.LAZY, relation_kind=kind, steps=steps)


def plan_eager(spec: RelationSpec) -> QueryPlan:
    """Plan the batch loader: one round trip, or two for many_to_many."""
    _require_resolved(spec)
    kind = spec.relation_kind

    if kind is RelationKind.MANY_TO_MANY:
        return QueryPlan(
            fetch_mode=FetchMode.EAGER,
            relation_kind=kind,
            steps=_join_steps(spec, FetchPrimitive.MEMBERSHIP),
            pairing=PairingRule.THROUGH_JOIN,
            link_parent_column=spec.fk_parent,
            link_child_column=spec.fk_child,
            target_key_column=spec.child_primary_key,
        )

    if kind.holds_foreign_key:
        filter_column, parent_column = spec.parent_primary_key, spec.foreign_key
    else:
        filter_column, parent_column = spec.foreign_key, spec.primary_key

    return QueryPlan(
        fetch_mode=FetchMode.EAGER,
        relation_kind=kind,
        steps=(
            FetchStep(
                primitive=FetchPrimitive.MEMBERSHIP,
                table=spec.target_table,
                column=filter_column,
                value_from=ValueSource.PARENT,
                value_column=parent_column,
            ),
        ),
        pairing=PairingRule.DIRECT,
        group_key_column=filter_column,
    )


__all__ = ["plan_lazy", "plan_eager"]
