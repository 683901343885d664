"""
Compiler package for relgen.

Stages, each depending only on the one before it: ``schema`` (validation),
``resolver`` (defaults and naming), ``planner`` (query plans), ``emitter``
(accessor specs). ``pipeline`` chains them over whole declaration sets.
"""

from relgen.compiler.emitter import emit_accessors
from relgen.compiler.pipeline import (
    CompilationReport,
    CompiledRelation,
    DeclarationFailure,
    compile_declarations,
    compile_entity,
    compile_relation,
    load_declaration_file,
)
from relgen.compiler.planner import plan_eager, plan_lazy
from relgen.compiler.resolver import resolve
from relgen.compiler.schema import SCHEMA, validate_all, validate_declaration

__all__ = [
    "SCHEMA",
    "validate_declaration",
    "validate_all",
    "resolve",
    "plan_lazy",
    "plan_eager",
    "emit_accessors",
    "CompilationReport",
    "CompiledRelation",
    "DeclarationFailure",
    "compile_relation",
    "compile_entity",
    "compile_declarations",
    "load_declaration_file",
]
