"""
Grouping and pairing for eager loads.

Given the parents of an eager call and the rows fetched for them:

1. ``distinct_keys`` collects the parent key values for the batch filter,
   deduplicated in first-seen order (``None`` keys never reach the store).
2. ``group_direct`` / ``group_through_join`` build parent key -> rows, keeping
   the store's row order inside every group.
3. ``pair`` walks the parents in input order and emits ``(parent, rows)`` for
   every one of them; a parent without matches gets an empty list.

Groups are independent values. A row that lands in a second group, or a group
handed to a repeated parent key, is deep-copied, so callers can mutate or drop
one group without touching another.

Rows whose key matches no parent are anomalies: dropped with a warning under
the ``drop`` policy, raised as ``PairingAnomaly`` under ``raise``.

Keys are matched with Python equality, while the store filters with the
database's own coercion. Parent key values must therefore have the column's
type: a parent ``{"id": "1"}`` fetches rows keyed ``1`` that then pair with
nothing. When no row matches any parent and the key types differ, an extra
warning names both types.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Dict, Hashable, Iterable, List, Literal, Sequence, Set, Tuple

from relgen.domain.errors import PairingAnomaly
from relgen.utils.logging import get_logger

log = get_logger(__name__)

AnomalyPolicy = Literal["drop", "raise"]
Groups = Dict[Hashable, List[Any]]


def read_column(record: Any, column: str) -> Any:
    """Read `column` from a mapping row or an attribute object."""
    if isinstance(record, Mapping):
        return record[column]
    return getattr(record, column)


def distinct_keys(records: Iterable[Any], column: str) -> List[Any]:
    keys: Dict[Hashable, None] = {}
    for record in records:
        value = read_column(record, column)
        if value is not None:
            keys.setdefault(value, None)
    return list(keys)


class _GroupBuilder:
    """Appends rows to groups, copying any row already placed elsewhere."""

    def __init__(self, parent_keys: Iterable[Hashable]) -> None:
        self.groups: Groups = {key: [] for key in parent_keys}

    def place(self, key: Hashable, row: Any, already_placed: bool) -> None:
        self.groups[key].append(copy.deepcopy(row) if already_placed else row)


def _type_names(keys: Iterable[Any]) -> List[str]:
    return sorted({type(key).__name__ for key in keys})


def _warn_type_mismatch(table: str, column: str, parent_keys: Sequence[Any], keys: Sequence[Any]) -> None:
    # The store may coerce `'1'` to match `1`; grouping compares with Python equality.
    parent_types, row_types = _type_names(parent_keys), _type_names(keys)
    if set(parent_types) & set(row_types):
        return
    log.warning(
        f"[PAIRING] no row from '{table}' matched any parent: parent keys are "
        f"{'/'.join(parent_types)} but {column} values are {'/'.join(row_types)}; "
        "parent key values must have the column's type",
        extra={"table": table, "column": column, "parent_types": parent_types, "row_types": row_types},
    )


def _unmatched(
    policy: AnomalyPolicy,
    table: str,
    column: str,
    keys: Sequence[Any],
    parent_keys: Sequence[Any] = (),
    matched: bool = True,
) -> None:
    if not keys:
        return
    if not matched and parent_keys:
        _warn_type_mismatch(table, column, parent_keys, keys)
    if policy == "raise":
        raise PairingAnomaly(table, column, keys[0])
    log.warning(
        f"[PAIRING] dropped {len(keys)} row(s) from '{table}' matching no parent",
        extra={"table": table, "column": column, "dropped": len(keys)},
    )


def group_direct(
    rows: Iterable[Any],
    key_column: str,
    parent_keys: Sequence[Hashable],
    *,
    table: str = "",
    policy: AnomalyPolicy = "drop",
) -> Groups:
    """Group rows by their own `key_column` value (one_to_many, many_to_one, one_to_one)."""
    builder = _GroupBuilder(parent_keys)
    unmatched: List[Any] = []
    matched = False
    for row in rows:
        key = read_column(row, key_column)
        if key not in builder.groups:
            unmatched.append(key)
            continue
        builder.place(key, row, already_placed=False)
        matched = True
    _unmatched(policy, table, key_column, unmatched, parent_keys, matched)
    return builder.groups


def group_through_join(
    links: Iterable[Any],
    targets: Iterable[Any],
    *,
    link_parent_column: str,
    link_child_column: str,
    target_key_column: str,
    parent_keys: Sequence[Hashable],
    join_table: str = "",
    target_table: str = "",
    policy: AnomalyPolicy = "drop",
) -> Groups:
    """
    Group target rows under every parent linked to them by a join row.

    Group order follows the target rows' store order. A (parent, child) link
    listed twice in the join table still contributes the child once.
    """
    builder = _GroupBuilder(parent_keys)

    parents_of: Dict[Hashable, Dict[Hashable, None]] = {}
    unmatched_links: List[Any] = []
    for link in links:
        parent_key = read_column(link, link_parent_column)
        if parent_key not in builder.groups:
            unmatched_links.append(parent_key)
            continue
        child_key = read_column(link, link_child_column)
        if child_key is not None:
            parents_of.setdefault(child_key, {}).setdefault(parent_key, None)
    _unmatched(
        policy, join_table, link_parent_column, unmatched_links, parent_keys, matched=bool(parents_of)
    )

    unmatched_targets: List[Any] = []
    for target in targets:
        child_key = read_column(target, target_key_column)
        linked_parents = parents_of.get(child_key)
        if not linked_parents:
            unmatched_targets.append(child_key)
            continue
        for position, parent_key in enumerate(linked_parents):
            builder.place(parent_key, target, already_placed=position > 0)
    _unmatched(policy, target_table, target_key_column, unmatched_targets)
    return builder.groups


def pair(parents: Sequence[Any], key_column: str, groups: Groups) -> List[Tuple[Any, List[Any]]]:
    """
    Pair each parent, in input order, with its group.

    Total: ``len(result) == len(parents)``. Parents with a ``None`` key or no
    matches get an empty list.
    """
    paired: List[Tuple[Any, List[Any]]] = []
    handed_out: Set[Hashable] = set()
    for parent in parents:
        key = read_column(parent, key_column)
        group = groups.get(key) if key is not None else None
        if group is None:
            paired.append((parent, []))
            continue
        paired.append((parent, copy.deepcopy(group) if key in handed_out else group))
        handed_out.add(key)
    return paired


__all__ = [
    "AnomalyPolicy",
    "read_column",
    "distinct_keys",
    "group_direct",
    "group_through_join",
    "pair",
]
