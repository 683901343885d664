"""
Class decorator for declaring relations next to the model they belong to.

    @relation(model="Post", relation_type="one_to_many", backend="sqlite")
    @relation(model="UserProfile", relation_type="one_to_one", fk="profile_id", backend="sqlite")
    class User:
        ...

    user.get_posts(store)
    User.load_with_posts(users, store)   # when eager_loading=True

``async`` is a keyword in Python, so the decorator takes ``async_`` and passes
it on as the declaration's ``async`` field. Each decorator compiles its own
declaration; the compiled specs are collected on ``cls.__relations__``.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from relgen.compiler.pipeline import compile_relation
from relgen.runtime.accessors import ErrorTypes, attach_accessors

T = TypeVar("T", bound=type)


def relation(*, error_types: Optional[ErrorTypes] = None, **fields: Any) -> Callable[[T], T]:
    """
    Compile one relation declaration and attach its accessors to the class.

    Raises ConfigurationError at class-definition time if the declaration is
    invalid or an accessor name is already taken on the class.
    """
    declaration = dict(fields)
    if "async_" in declaration:
        declaration["async"] = declaration.pop("async_")

    def decorate(cls: T) -> T:
        spec, accessors = compile_relation(cls.__name__, declaration)
        attach_accessors(cls, accessors, error_types=error_types)
        cls.__relations__ = (*vars(cls).get("__relations__", ()), spec)
        return cls

    return decorate


__all__ = ["relation"]
