"""
Compilation driver: validate -> resolve -> plan -> emit, per declaration.

Usage:
    from relgen.compiler.pipeline import compile_declarations

    report = compile_declarations({
        "User": [{"relation_type": "one_to_many", "model": "Post", "backend": "sqlite"}],
    })
    report.accessors_for("User")   # [AccessorSpec(name="get_posts", ...)]

Declarations are independent: a failing declaration is recorded in the report
and compilation continues with its siblings. Within one entity, a declaration
whose accessor names collide with an earlier one fails with
``DuplicateAccessorName``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set, Tuple

from relgen.compiler.emitter import emit_accessors
from relgen.compiler.resolver import resolve
from relgen.compiler.schema import validate_declaration
from relgen.domain.errors import ConfigurationError, DuplicateAccessorName
from relgen.domain.models import AccessorSpec, RelationSpec
from relgen.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CompiledRelation:
    entity: str
    index: int
    spec: RelationSpec
    accessors: Tuple[AccessorSpec, ...]


@dataclass(frozen=True)
class DeclarationFailure:
    entity: str
    index: int
    declaration: Mapping[str, Any]
    error: ConfigurationError


@dataclass
class CompilationReport:
    """Outcome of compiling a set of entities."""

    relations: List[CompiledRelation] = field(default_factory=list)
    failures: List[DeclarationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def accessors(self) -> List[AccessorSpec]:
        return [accessor for relation in self.relations for accessor in relation.accessors]

    def accessors_for(self, entity: str) -> List[AccessorSpec]:
        return [
            accessor
            for relation in self.relations
            if relation.entity == entity
            for accessor in relation.accessors
        ]

    def entities(self) -> List[str]:
        seen: Dict[str, None] = {}
        for item in [*self.relations, *self.failures]:
            seen.setdefault(item.entity, None)
        return list(seen)

    def raise_first_failure(self) -> None:
        if self.failures:
            raise self.failures[0].error


def compile_relation(entity: str, declaration: Mapping[str, Any]) -> Tuple[RelationSpec, List[AccessorSpec]]:
    """Run one declaration through every stage. Raises ConfigurationError."""
    spec = resolve(validate_declaration(entity, declaration))
    return spec, emit_accessors(spec)


def compile_entity(
    entity: str, declarations: Iterable[Mapping[str, Any]], report: CompilationReport | None = None
) -> CompilationReport:
    """Compile all declarations of one entity into ``report`` (a new one if omitted)."""
    report = report if report is not None else CompilationReport()
    taken: Set[str] = set()

    for index, declaration in enumerate(declarations):
        try:
            spec, accessors = compile_relation(entity, declaration)
            for accessor in accessors:
                if accessor.name in taken:
                    raise DuplicateAccessorName(entity, accessor.name, kind=spec.relation_kind.value)
        except ConfigurationError as exc:
            log.warning(
                f"[DECLARATION REJECTED] {entity}#{index}: {exc}",
                extra={"entity": entity, "index": index, "kind": exc.kind, "field": exc.field},
            )
            report.failures.append(
                DeclarationFailure(entity=entity, index=index, declaration=declaration, error=exc)
            )
            continue

        taken.update(accessor.name for accessor in accessors)
        report.relations.append(
            CompiledRelation(entity=entity, index=index, spec=spec, accessors=tuple(accessors))
        )
        log.debug(
            f"[DECLARATION COMPILED] {entity}#{index} -> {', '.join(a.name for a in accessors)}",
            extra={"entity": entity, "index": index, "kind": spec.relation_kind.value},
        )

    return report


def compile_declarations(declarations: Mapping[str, Sequence[Mapping[str, Any]]]) -> CompilationReport:
    """Compile every entity's declarations; failures never stop the run."""
    report = CompilationReport()
    for entity, entity_declarations in declarations.items():
        compile_entity(entity, entity_declarations, report)

    log.info(
        f"[COMPILE COMPLETE] {len(report.relations)} relation(s) compiled, "
        f"{len(report.failures)} rejected",
        extra={
            "entities": len(declarations),
            "compiled": len(report.relations),
            "rejected": len(report.failures),
        },
    )
    return report


def load_declaration_file(path: Path | str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Read a JSON declaration file: an object mapping entity names to lists of
    declaration objects.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        payload = json.load(f)

    if not isinstance(payload, dict):
        raise ConfigurationError(f"{path}: top level must be an object of entity -> declarations.")
    for entity, entity_declarations in payload.items():
        if not isinstance(entity_declarations, list) or not all(
            isinstance(item, dict) for item in entity_declarations
        ):
            raise ConfigurationError(f"{path}: '{entity}' must map to a list of objects.")
    return payload


__all__ = [
    "CompiledRelation",
    "DeclarationFailure",
    "CompilationReport",
    "compile_relation",
    "compile_entity",
    "compile_declarations",
    "load_declaration_file",
]
