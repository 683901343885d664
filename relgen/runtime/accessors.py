"""
Binding compiled ``AccessorSpec`` values to callables.

    getter = bind_accessor(spec)          # lazy: getter(record, store)
    loader = bind_accessor(eager_spec)    # eager: loader(parents, store)

Suspending specs bind to coroutine functions taking an async store. When the
spec names an ``error_type``, a ``RuntimeFetchError`` raised by the store is
converted into ``error_type(exc)`` (chained ``from exc``); otherwise it
propagates unchanged.

``attach_accessors`` installs bound accessors on a class: lazy getters as
methods, eager loaders as static methods taking the parent list.
"""

from __future__ import annotations

import builtins
import importlib
import inspect
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Type

from relgen.config import get_settings
from relgen.domain.errors import DuplicateAccessorName, ErrorTypeResolutionError, RuntimeFetchError
from relgen.domain.models import AccessorRole, AccessorSpec
from relgen.runtime.executor import run_eager, run_eager_async, run_lazy, run_lazy_async
from relgen.runtime.pairing import AnomalyPolicy
from relgen.utils.logging import get_logger

log = get_logger(__name__)

ErrorTypes = Mapping[str, Type[BaseException]]


def _import_type(identifier: str) -> Any:
    if ":" in identifier:
        module_name, attribute = identifier.split(":", 1)
    elif "." in identifier:
        module_name, attribute = identifier.rsplit(".", 1)
    else:
        module_name, attribute = builtins.__name__, identifier
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ErrorTypeResolutionError(identifier, f"module '{module_name}' cannot be imported") from exc
    try:
        return getattr(module, attribute)
    except AttributeError:
        raise ErrorTypeResolutionError(identifier, f"'{module_name}' has no attribute '{attribute}'") from None


def resolve_error_type(identifier: str, registry: Optional[ErrorTypes] = None) -> Type[BaseException]:
    """
    Look up an error type by name in `registry`, else import it by dotted path.

    The type must be an exception class callable with the store error as its
    only argument.
    """
    candidate = registry[identifier] if registry and identifier in registry else _import_type(identifier)
    if not (isinstance(candidate, type) and issubclass(candidate, BaseException)):
        raise ErrorTypeResolutionError(identifier, "not an exception class")
    try:
        signature = inspect.signature(candidate)
    except (TypeError, ValueError):
        # Builtin exceptions expose no signature and accept any positional args.
        return candidate
    try:
        signature.bind(RuntimeFetchError("probe"))
    except TypeError:
        raise ErrorTypeResolutionError(
            identifier, "it cannot be constructed from a single RuntimeFetchError argument"
        ) from None
    return candidate


def _log_failure(spec: AccessorSpec, exc: RuntimeFetchError) -> None:
    log.debug(
        f"[FETCH FAILED] {spec.owner_model}.{spec.name}: {exc}",
        extra={"entity": spec.owner_model, "accessor": spec.name, "table": exc.table},
    )


def bind_accessor(
    spec: AccessorSpec,
    error_types: Optional[ErrorTypes] = None,
    policy: Optional[AnomalyPolicy] = None,
) -> Callable[..., Any]:
    """
    Build the callable for one accessor spec.

    Parameters
    ----------
    spec : AccessorSpec
        Compiled accessor.
    error_types : mapping, optional
        Name -> exception class lookup for `spec.error_type`, tried before
        importing it as a dotted path.
    policy : "drop" | "raise", optional
        Pairing anomaly policy for eager loaders. Read from settings at call
        time when omitted.
    """
    error_type = resolve_error_type(spec.error_type, error_types) if spec.error_type else None
    plan = spec.plan

    def _policy() -> AnomalyPolicy:
        return policy or get_settings().pairing_anomaly_policy

    if spec.role is AccessorRole.LAZY_GETTER and spec.is_async:

        async def accessor(record: Any, store: Any) -> Any:
            try:
                return await run_lazy_async(plan, record, store)
            except RuntimeFetchError as exc:
                _log_failure(spec, exc)
                if error_type is None:
                    raise
                raise error_type(exc) from exc

    elif spec.role is AccessorRole.LAZY_GETTER:

        def accessor(record: Any, store: Any) -> Any:
            try:
                return run_lazy(plan, record, store)
            except RuntimeFetchError as exc:
                _log_failure(spec, exc)
                if error_type is None:
                    raise
                raise error_type(exc) from exc

    elif spec.is_async:

        async def accessor(parents: Sequence[Any], store: Any) -> Any:
            try:
                return await run_eager_async(plan, parents, store, _policy())
            except RuntimeFetchError as exc:
                _log_failure(spec, exc)
                if error_type is None:
                    raise
                raise error_type(exc) from exc

    else:

        def accessor(parents: Sequence[Any], store: Any) -> Any:
            try:
                return run_eager(plan, parents, store, _policy())
            except RuntimeFetchError as exc:
                _log_failure(spec, exc)
                if error_type is None:
                    raise
                raise error_type(exc) from exc

    accessor.__name__ = spec.name
    accessor.__qualname__ = f"{spec.owner_model}.{spec.name}"
    accessor.__doc__ = _describe(spec)
    accessor.accessor_spec = spec  # type: ignore[attr-defined]
    return accessor


def _describe(spec: AccessorSpec) -> str:
    shape = spec.return_shape.value.replace("_", " ")
    mode = "coroutine" if spec.is_async else "blocking"
    return (
        f"{spec.role.value.replace('_', ' ').capitalize()} for {spec.target_model} "
        f"({mode}, returns {shape}, {spec.max_round_trips} round trip(s))."
    )


def attach_accessors(
    cls: type,
    specs: Iterable[AccessorSpec],
    error_types: Optional[ErrorTypes] = None,
) -> type:
    """
    Install accessors on `cls`.

    Raises DuplicateAccessorName if `cls` already defines an attribute with an
    accessor's name.
    """
    # Bind everything first so a bad error_type leaves `cls` untouched.
    bound_specs = []
    for spec in specs:
        if spec.name in vars(cls):
            raise DuplicateAccessorName(cls.__name__, spec.name)
        bound_specs.append((spec, bind_accessor(spec, error_types=error_types)))

    for spec, bound in bound_specs:
        if spec.role is AccessorRole.LAZY_GETTER:
            # the record parameter binds as `self`: instance.get_posts(store)
            setattr(cls, spec.name, bound)
        else:
            setattr(cls, spec.name, staticmethod(bound))
        log.debug(
            f"[ATTACHED] {cls.__name__}.{spec.name}",
            extra={"entity": cls.__name__, "accessor": spec.name, "role": spec.role.value},
        )
    return cls


__all__ = ["resolve_error_type", "bind_accessor", "attach_accessors"]
