"""
Execution of query plans against a store.

``run_lazy``/``run_eager`` drive a blocking store; ``run_lazy_async``/
``run_eager_async`` drive a suspending one. Both variants issue the same fetch
sequence: one round trip, or two strictly sequential ones for many_to_many,
since the second depends on the first's rows. Fetches are never issued per
parent and never run concurrently.

Any fetch failure propagates immediately, so an eager call either returns a
complete pairing or raises.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence, Tuple

from relgen.domain.models import FetchMode, FetchPrimitive, FetchStep, PairingRule, QueryPlan
from relgen.runtime.pairing import (
    AnomalyPolicy,
    Groups,
    distinct_keys,
    group_direct,
    group_through_join,
    pair,
    read_column,
)
from relgen.stores.base import AsyncRelationStore, RelationStore
from relgen.utils.logging import get_logger

log = get_logger(__name__)

Paired = List[Tuple[Any, List[Any]]]


def _expect(plan: QueryPlan, mode: FetchMode) -> None:
    if plan.fetch_mode is not mode:
        raise ValueError(f"Expected a {mode.value} plan, got {plan.fetch_mode.value}")


def _fetch(store: RelationStore, step: FetchStep, value: Any) -> Any:
    if step.primitive is FetchPrimitive.PRIMARY_KEY:
        return store.fetch_by_primary_key(step.table, value, key_column=step.column)
    if step.primitive is FetchPrimitive.EQUALITY:
        return store.fetch_by_equality(step.table, step.column, value)
    return store.fetch_by_membership(step.table, step.column, value)


async def _fetch_async(store: AsyncRelationStore, step: FetchStep, value: Any) -> Any:
    try:
        if step.primitive is FetchPrimitive.PRIMARY_KEY:
            return await store.fetch_by_primary_key(step.table, value, key_column=step.column)
        if step.primitive is FetchPrimitive.EQUALITY:
            return await store.fetch_by_equality(step.table, step.column, value)
        return await store.fetch_by_membership(step.table, step.column, value)
    except asyncio.CancelledError:
        log.debug(f"[FETCH CANCELLED] {step.primitive.value} on '{step.table}'", extra={"table": step.table})
        raise


def _empty_lazy(plan: QueryPlan) -> Optional[List[Any]]:
    return [] if plan.relation_kind.is_collection else None


def _group(
    plan: QueryPlan,
    keys: Sequence[Any],
    first_rows: Sequence[Any],
    target_rows: Sequence[Any],
    policy: AnomalyPolicy,
) -> Groups:
    if plan.pairing is PairingRule.THROUGH_JOIN:
        return group_through_join(
            first_rows,
            target_rows,
            link_parent_column=plan.link_parent_column,
            link_child_column=plan.link_child_column,
            target_key_column=plan.target_key_column,
            parent_keys=keys,
            join_table=plan.steps[0].table,
            target_table=plan.steps[1].table,
            policy=policy,
        )
    return group_direct(
        first_rows,
        plan.group_key_column,
        keys,
        table=plan.steps[0].table,
        policy=policy,
    )


def run_lazy(plan: QueryPlan, record: Any, store: RelationStore) -> Any:
    """Fetch the related row (single kinds) or rows (collection kinds) of one record."""
    _expect(plan, FetchMode.LAZY)
    first = plan.steps[0]
    value = read_column(record, first.value_column)
    if value is None:
        return _empty_lazy(plan)

    result = _fetch(store, first, value)
    if first.primitive is FetchPrimitive.PRIMARY_KEY:
        return result
    if len(plan.steps) == 1:
        return list(result)

    second = plan.steps[1]
    child_keys = distinct_keys(result, second.value_column)
    if not child_keys:
        return []
    return list(_fetch(store, second, child_keys))


async def run_lazy_async(plan: QueryPlan, record: Any, store: AsyncRelationStore) -> Any:
    _expect(plan, FetchMode.LAZY)
    first = plan.steps[0]
    value = read_column(record, first.value_column)
    if value is None:
        return _empty_lazy(plan)

    result = await _fetch_async(store, first, value)
    if first.primitive is FetchPrimitive.PRIMARY_KEY:
        return result
    if len(plan.steps) == 1:
        return list(result)

    second = plan.steps[1]
    child_keys = distinct_keys(result, second.value_column)
    if not child_keys:
        return []
    return list(await _fetch_async(store, second, child_keys))


def run_eager(
    plan: QueryPlan, parents: Sequence[Any], store: RelationStore, policy: AnomalyPolicy = "drop"
) -> Paired:
    """Batch-load related rows for `parents` and pair them in input order."""
    _expect(plan, FetchMode.EAGER)
    parents = list(parents)
    keys = distinct_keys(parents, plan.parent_key_column)
    first_rows: List[Any] = []
    target_rows: List[Any] = []

    if keys:
        first_rows = list(_fetch(store, plan.steps[0], keys))
        target_rows = first_rows
        if plan.pairing is PairingRule.THROUGH_JOIN:
            second = plan.steps[1]
            child_keys = distinct_keys(first_rows, second.value_column)
            target_rows = list(_fetch(store, second, child_keys)) if child_keys else []

    log.debug(
        f"[EAGER] {len(parents)} parent(s), {len(keys)} key(s), {len(target_rows)} row(s)",
        extra={"table": plan.steps[-1].table, "parents": len(parents), "rows": len(target_rows)},
    )
    return pair(parents, plan.parent_key_column, _group(plan, keys, first_rows, target_rows, policy))


async def run_eager_async(
    plan: QueryPlan,
    parents: Sequence[Any],
    store: AsyncRelationStore,
    policy: AnomalyPolicy = "drop",
) -> Paired:
    _expect(plan, FetchMode.EAGER)
    parents = list(parents)
    keys = distinct_keys(parents, plan.parent_key_column)
    first_rows: List[Any] = []
    target_rows: List[Any] = []

    if keys:
        first_rows = list(await _fetch_async(store, plan.steps[0], keys))
        target_rows = first_rows
        if plan.pairing is PairingRule.THROUGH_JOIN:
            second = plan.steps[1]
            child_keys = distinct_keys(first_rows, second.value_column)
            target_rows = list(await _fetch_async(store, second, child_keys)) if child_keys else []

    log.debug(
        f"[EAGER] {len(parents)} parent(s), {len(keys)} key(s), {len(target_rows)} row(s)",
        extra={"table": plan.steps[-1].table, "parents": len(parents), "rows": len(target_rows)},
    )
    return pair(parents, plan.parent_key_column, _group(plan, keys, first_rows, target_rows, policy))


__all__ = ["run_lazy", "run_lazy_async", "run_eager", "run_eager_async"]
