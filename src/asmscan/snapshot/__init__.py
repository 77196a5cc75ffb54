"""Snapshot model and document codec."""

from asmscan.snapshot.document import (
    AssemblyDocument,
    dump_snapshot,
    load_snapshot,
    parse_snapshot,
    save_snapshot,
)
from asmscan.snapshot.models import (
    CONSTRUCTOR_NAME,
    VOID_TYPE,
    AssemblySnapshot,
    AssemblyVersion,
    FieldSnapshot,
    MethodSnapshot,
    ParameterSnapshot,
    PropertySnapshot,
    ResourceSnapshot,
    TypeSnapshot,
    format_content_hash,
    method_signature,
    property_key,
)

__all__ = [
    # Models
    "CONSTRUCTOR_NAME",
    "VOID_TYPE",
    "AssemblySnapshot",
    "AssemblyVersion",
    "FieldSnapshot",
    "MethodSnapshot",
    "ParameterSnapshot",
    "PropertySnapshot",
    "ResourceSnapshot",
    "TypeSnapshot",
    "format_content_hash",
    "method_signature",
    "property_key",
    # Documents
    "AssemblyDocument",
    "dump_snapshot",
    "load_snapshot",
    "parse_snapshot",
    "save_snapshot",
]
