"""
mms-core: per-tenant dynamic schema synthesis and generic data access.

Each tenant declares its asset taxonomy (lines, machines, units, ...) as a
structure document.  ``mms`` turns that document into real relational
tables and serves generic CRUD against them.

Layers::

    mms.core   domain model, planner, applier, data access, persistence
    mms.ops    transport-agnostic operations (OperationContext → OperationResult)
    mms.api    FastAPI transport
    mms.cli    Typer transport
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
