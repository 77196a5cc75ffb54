"""Pure structural diff engine.

Compares a current snapshot against an original one and classifies every
difference by compatibility severity. No I/O, purely functional: each
snapshot kind registers one ``get_changes_from`` implementation, and
composite kinds (assembly, type) match their children by identity key and
recurse.

Matching order for composite kinds:
1. removed children (original only), ordinal key order
2. matched children, current-side ordinal key order
3. added children (current only), ordinal key order

Leaf records describe the entity itself ("is now optional."); the parent
prefixes them with the child's tag ("parameter 1", "method Foo()",
"Type 'Bar'") as they are relayed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from functools import singledispatch
from typing import Protocol, TypeVar

import structlog

from asmscan.core.errors import IdentityMismatchError
from asmscan.core.formatting import pluralize
from asmscan.diff.models import ChangeStream, ScanChange, Severity
from asmscan.snapshot.models import (
    AssemblySnapshot,
    FieldSnapshot,
    MethodSnapshot,
    ParameterSnapshot,
    PropertySnapshot,
    ResourceSnapshot,
    TypeSnapshot,
)

log = structlog.get_logger(__name__)

HASH_UNCHANGED = "The assembly file hash is the same."


class _Keyed(Protocol):
    @property
    def key(self) -> str | int: ...


T = TypeVar("T", bound=_Keyed)


def compare(current: T, original: T) -> ChangeStream:
    """Diff two snapshots of the same kind and identity.

    Identity is checked before any record is produced. Assemblies are the
    root of the comparison and are trusted to describe the same component.

    Raises:
        IdentityMismatchError: if the identity keys differ.
        TypeError: if the snapshots are of different or unsupported kinds.
    """
    if type(current) is not type(original):
        raise TypeError(
            f"Cannot compare {type(current).__name__} with {type(original).__name__}"
        )
    if not isinstance(current, AssemblySnapshot):
        _require_same_key(type(current).__name__, current, original)
    return ChangeStream(get_changes_from(current, original))


@singledispatch
def get_changes_from(current: object, original: object) -> Iterator[ScanChange]:
    """Yield the changes that turn ``original`` into ``current``."""
    raise TypeError(f"No comparison registered for {type(current).__name__}")


def _require_same_key(kind: str, current: _Keyed, original: _Keyed) -> None:
    if current.key != original.key:
        raise IdentityMismatchError(kind, current.key, original.key)


def _match_children(
    current: Sequence[T],
    original: Sequence[T],
    tag: Callable[[T], str],
) -> Iterator[ScanChange]:
    """Three-phase match of two sibling collections by identity key."""
    current_by_key = {item.key: item for item in current}
    original_by_key = {item.key: item for item in original}

    for key in sorted(original_by_key):
        if key not in current_by_key:
            yield ScanChange(Severity.MAJOR, f"{tag(original_by_key[key])} has been removed.")

    for key in sorted(current_by_key):
        orig = original_by_key.get(key)
        if orig is None:
            continue
        item = current_by_key[key]
        prefix = tag(item)
        for change in get_changes_from(item, orig):
            yield change.with_prefix(prefix)

    for key in sorted(current_by_key):
        if key not in original_by_key:
            yield ScanChange(Severity.MINOR, f"{tag(current_by_key[key])} has been added.")


def _flag(
    now: bool,
    was: bool,
    gained: tuple[Severity, str],
    lost: tuple[Severity, str] | None,
) -> ScanChange | None:
    """Classify a boolean transition; ``lost=None`` means losing is silent."""
    if now == was:
        return None
    if now:
        return ScanChange(*gained)
    if lost is None:
        return None
    return ScanChange(*lost)


def _strip_by_ref(type_name: str) -> str:
    return type_name[:-1] if type_name.endswith("&") else type_name


def _ref_kind(param: ParameterSnapshot) -> str:
    return "an out" if param.is_out else "a ref"


def _is_by_ref(param: ParameterSnapshot) -> bool:
    return param.is_ref or param.is_out


# ============================================================================
# Leaf comparisons
# ============================================================================


@get_changes_from.register
def _parameter_changes(
    current: ParameterSnapshot, original: ParameterSnapshot
) -> Iterator[ScanChange]:
    _require_same_key("parameter", current, original)

    if current.name != original.name:
        yield ScanChange(
            Severity.NEGLIGIBLE,
            f"has had the name changed from '{original.name}' to '{current.name}'.",
        )

    # Types are part of the method key, so this only fires on bad input.
    if _strip_by_ref(current.type_name) != _strip_by_ref(original.type_name):
        yield ScanChange(
            Severity.MAJOR,
            f"has had the type changed from '{original.type_name}' to '{current.type_name}'.",
        )

    if _is_by_ref(current) != _is_by_ref(original):
        if _is_by_ref(current):
            yield ScanChange(Severity.MAJOR, f"is now {_ref_kind(current)} parameter.")
        else:
            yield ScanChange(Severity.MAJOR, f"is no longer {_ref_kind(original)} parameter.")
    elif _is_by_ref(current) and current.is_out != original.is_out:
        if current.is_out:
            # Callers that initialize a ref argument still satisfy an out.
            yield ScanChange(
                Severity.NEGLIGIBLE, "went from a ref parameter to an out parameter."
            )
        else:
            yield ScanChange(Severity.MAJOR, "went from an out parameter to a ref parameter.")

    change = _flag(
        current.is_optional,
        original.is_optional,
        gained=(Severity.NEGLIGIBLE, "is now optional."),
        lost=(Severity.MAJOR, "is no longer optional."),
    )
    if change:
        yield change

    change = _flag(
        current.is_params,
        original.is_params,
        gained=(Severity.MAJOR, "is now a variable argument collection."),
        lost=(Severity.MAJOR, "is no longer a variable argument collection."),
    )
    if change:
        yield change


@get_changes_from.register
def _field_changes(current: FieldSnapshot, original: FieldSnapshot) -> Iterator[ScanChange]:
    _require_same_key("field", current, original)

    if current.is_static != original.is_static:
        kind = "a static" if current.is_static else "an instance"
        yield ScanChange(Severity.MAJOR, f"is now {kind} field.")

    if current.type_name != original.type_name:
        yield ScanChange(
            Severity.MAJOR,
            f"has had the type changed from '{original.type_name}' to '{current.type_name}'.",
        )

    transitions = (
        (
            current.is_constant,
            original.is_constant,
            (Severity.MAJOR, "is now a constant value."),
            (Severity.MINOR, "is no longer a constant value."),
        ),
        (
            current.is_read_only,
            original.is_read_only,
            (Severity.MAJOR, "is now a readonly field."),
            (Severity.MINOR, "is no longer a readonly field."),
        ),
        (
            current.is_public,
            original.is_public,
            (Severity.MINOR, "is now public."),
            (Severity.MAJOR, "is no longer public."),
        ),
        (
            current.is_protected,
            original.is_protected,
            (Severity.MINOR, "is now protected."),
            None if current.is_public else (Severity.MAJOR, "is no longer protected."),
        ),
    )
    for now, was, gained, lost in transitions:
        change = _flag(now, was, gained, lost)
        if change:
            yield change


@get_changes_from.register
def _property_changes(
    current: PropertySnapshot, original: PropertySnapshot
) -> Iterator[ScanChange]:
    _require_same_key("property", current, original)

    if current.is_static != original.is_static:
        kind = "a static" if current.is_static else "an instance"
        yield ScanChange(Severity.MAJOR, f"is now {kind} property.")

    if current.type_name != original.type_name:
        yield ScanChange(
            Severity.MAJOR,
            f"has had the type changed from '{original.type_name}' to '{current.type_name}'.",
        )

    transitions = (
        (
            current.public_read,
            original.public_read,
            (Severity.MINOR, "is now publicly readable."),
            (Severity.MAJOR, "is no longer publicly readable."),
        ),
        (
            current.public_write,
            original.public_write,
            (Severity.MINOR, "is now publicly writable."),
            (Severity.MAJOR, "is no longer publicly writable."),
        ),
        (
            current.protected_read,
            original.protected_read,
            (Severity.MINOR, "is now protected read."),
            None if current.public_read else (Severity.MAJOR, "is no longer protected read."),
        ),
        (
            current.protected_write,
            original.protected_write,
            (Severity.MINOR, "is now protected write."),
            None if current.public_write else (Severity.MAJOR, "is no longer protected write."),
        ),
        (
            current.is_init,
            original.is_init,
            (Severity.MAJOR, "is now init-only."),
            (Severity.MINOR, "is no longer init-only."),
        ),
    )
    for now, was, gained, lost in transitions:
        change = _flag(now, was, gained, lost)
        if change:
            yield change


@get_changes_from.register
def _method_changes(current: MethodSnapshot, original: MethodSnapshot) -> Iterator[ScanChange]:
    _require_same_key("method", current, original)

    # Parameter types are part of the signature key, so a count mismatch only
    # shows up when a document was edited by hand.
    delta = len(current.parameters) - len(original.parameters)
    if delta:
        verb = "added" if delta > 0 else "removed"
        yield ScanChange(
            Severity.MAJOR, f"has had {pluralize(abs(delta), 'parameter')} {verb}."
        )

    if current.is_static != original.is_static:
        kind = "a static" if current.is_static else "an instance"
        yield ScanChange(Severity.MAJOR, f"is now {kind} method.")

    if current.type_name != original.type_name:
        yield ScanChange(
            Severity.MAJOR,
            f"has had the return type changed from '{original.type_name}' "
            f"to '{current.type_name}'.",
        )

    change = _flag(
        current.is_public,
        original.is_public,
        gained=(Severity.MINOR, "is now a public method."),
        lost=(Severity.MAJOR, "is no longer a public method."),
    )
    if change:
        yield change

    change = _flag(
        current.is_protected,
        original.is_protected,
        gained=(Severity.MINOR, "is now a protected method."),
        lost=None if current.is_public else (Severity.MAJOR, "is no longer a protected method."),
    )
    if change:
        yield change

    original_params = {p.position: p for p in original.parameters}
    for param in current.parameters:
        orig = original_params.get(param.position)
        if orig is None:
            continue
        for change in get_changes_from(param, orig):
            yield change.with_prefix(f"parameter {param.position + 1}")


@get_changes_from.register
def _resource_changes(
    current: ResourceSnapshot, original: ResourceSnapshot
) -> Iterator[ScanChange]:
    _require_same_key("resource", current, original)

    if current.size != original.size:
        verb = "grown" if current.size > original.size else "shrunk"
        yield ScanChange(Severity.MINOR, f"has {verb}.")
    elif current.sha256_sum.lower() != original.sha256_sum.lower():
        yield ScanChange(Severity.MINOR, "has changed.")


# ============================================================================
# Composite comparisons
# ============================================================================


@get_changes_from.register
def _type_changes(current: TypeSnapshot, original: TypeSnapshot) -> Iterator[ScanChange]:
    _require_same_key("type", current, original)

    if current.is_struct != original.is_struct:
        kind = "a value" if current.is_struct else "a reference"
        yield ScanChange(Severity.MAJOR, f"is now {kind} type.")

    if current.is_interface != original.is_interface:
        if current.is_interface:
            yield ScanChange(Severity.MAJOR, "is now an interface.")
        else:
            yield ScanChange(Severity.MAJOR, "is no longer an interface.")

    change = _flag(
        current.is_abstract,
        original.is_abstract,
        gained=(Severity.MAJOR, "is now an abstract type."),
        lost=(Severity.MINOR, "is no longer an abstract type."),
    )
    if change:
        yield change

    change = _flag(
        current.is_sealed,
        original.is_sealed,
        gained=(Severity.MAJOR, "is now a sealed type."),
        lost=(Severity.MINOR, "is no longer a sealed type."),
    )
    if change:
        yield change

    yield from _match_children(current.fields, original.fields, lambda f: f"field {f.name}")
    yield from _match_children(
        current.properties, original.properties, lambda p: f"property {p.name}"
    )
    yield from _match_children(current.methods, original.methods, lambda m: f"method {m.name}")


@get_changes_from.register
def _assembly_changes(
    current: AssemblySnapshot, original: AssemblySnapshot
) -> Iterator[ScanChange]:
    log.debug(
        "assembly_diff_started",
        assembly=current.name,
        current_version=str(current.version),
        original_version=str(original.version),
        types=len(current.types),
        original_types=len(original.types),
    )

    # Informational only; the interface is still compared in full.
    if current.hash and original.hash and current.hash.lower() == original.hash.lower():
        yield ScanChange(Severity.NONE, HASH_UNCHANGED)

    yield from _match_children(current.types, original.types, lambda t: f"Type '{t.full_name}'")
    yield from _match_children(
        current.resources, original.resources, lambda r: f"Resource '{r.name}'"
    )
