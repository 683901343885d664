"""
Runtime package for relgen.

Executes compiled plans against caller-supplied stores: grouping and pairing
for eager loads (``pairing``), plan execution (``executor``) and binding specs
to callables or classes (``accessors``).
"""

from relgen.runtime.accessors import attach_accessors, bind_accessor, resolve_error_type
from relgen.runtime.executor import run_eager, run_eager_async, run_lazy, run_lazy_async
from relgen.runtime.pairing import distinct_keys, group_direct, group_through_join, pair, read_column

__all__ = [
    "attach_accessors",
    "bind_accessor",
    "resolve_error_type",
    "run_eager",
    "run_eager_async",
    "run_lazy",
    "run_lazy_async",
    "distinct_keys",
    "group_direct",
    "group_through_join",
    "pair",
    "read_column",
]
