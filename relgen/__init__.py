"""
relgen - declarative relationship compiler.

Turns relationship declarations between data-model entities into accessor
specifications, then binds those specifications to fetch functions:

- Schema validation of declarations against a per-kind field table
- Defaulting of keys, tables and accessor names
- Query plans for single-parent (lazy) and batched (eager) fetches
- Accessor specs with blocking or suspending execution and error mapping

The compiler never executes queries or holds connections; accessors run
against stores supplied by the caller.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from relgen.compiler.pipeline import (
    CompilationReport,
    compile_declarations,
    compile_entity,
    compile_relation,
)
from relgen.config import Settings, get_settings
from relgen.declarative import relation
from relgen.domain.errors import (
    ConfigurationError,
    MissingRequiredField,
    PairingAnomaly,
    RuntimeFetchError,
)
from relgen.domain.models import AccessorSpec, QueryPlan, RelationKind, RelationSpec
from relgen.runtime.accessors import attach_accessors, bind_accessor
from relgen.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Compilation
    "CompilationReport",
    "compile_declarations",
    "compile_entity",
    "compile_relation",
    "relation",
    # Models
    "AccessorSpec",
    "QueryPlan",
    "RelationKind",
    "RelationSpec",
    # Errors
    "ConfigurationError",
    "MissingRequiredField",
    "PairingAnomaly",
    "RuntimeFetchError",
    # Runtime
    "attach_accessors",
    "bind_accessor",
    # Logging
    "configure_logging",
    "get_logger",
]
