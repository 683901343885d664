"""
Accessor emission: resolved spec + plans -> ``AccessorSpec`` values.

The lazy getter is always emitted. The eager loader is emitted only when the
declaration asks for it, and only on the declaring entity; the inverse side
gets nothing unless it declares its own relation.
"""

from __future__ import annotations

from typing import List, Tuple

from relgen.compiler.planner import plan_eager, plan_lazy
from relgen.domain.models import (
    AccessorRole,
    AccessorSpec,
    ExecutionMode,
    Parameter,
    ParameterShape,
    RelationSpec,
    ReturnShape,
)

_LAZY_PARAMETERS: Tuple[Parameter, ...] = (
    Parameter(name="self", shape=ParameterShape.RECEIVER),
    Parameter(name="conn", shape=ParameterShape.CONNECTION),
)
_EAGER_PARAMETERS: Tuple[Parameter, ...] = (
    Parameter(name="parents", shape=ParameterShape.PARENTS),
    Parameter(name="conn", shape=ParameterShape.CONNECTION),
)


def _execution_mode(spec: RelationSpec) -> ExecutionMode:
    return ExecutionMode.SUSPENDING if spec.async_mode else ExecutionMode.BLOCKING


def emit_accessors(spec: RelationSpec) -> List[AccessorSpec]:
    """Emit the accessor set for one resolved relation, lazy getter first."""
    mode = _execution_mode(spec)
    accessors = [
        AccessorSpec(
            name=spec.method_name,
            owner_model=spec.source_model,
            target_model=spec.target_model,
            role=AccessorRole.LAZY_GETTER,
            execution_mode=mode,
            return_shape=(
                ReturnShape.COLLECTION if spec.relation_kind.is_collection else ReturnShape.SINGLE
            ),
            error_type=spec.error_type,
            backend=spec.backend,
            parameters=_LAZY_PARAMETERS,
            plan=plan_lazy(spec),
        )
    ]
    if spec.eager_loading:
        accessors.append(
            AccessorSpec(
                name=spec.eager_method_name,
                owner_model=spec.source_model,
                target_model=spec.target_model,
                role=AccessorRole.EAGER_LOADER,
                execution_mode=mode,
                return_shape=ReturnShape.PAIRED_LIST,
                error_type=spec.error_type,
                backend=spec.backend,
                parameters=_EAGER_PARAMETERS,
                plan=plan_eager(spec),
            )
        )
    return accessors


__all__ = ["emit_accessors"]
