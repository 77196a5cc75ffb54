"""Snapshot model: point-in-time view of a component's public interface.

All models are frozen dataclasses. Identity keys (``key``) are what the diff
engine matches on; structural equality is never used for matching.

Member collections are normalized at construction: invisible members are
dropped, the rest are stored as tuples sorted by identity key, and duplicate
keys among siblings are rejected with ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TypeVar

CONSTRUCTOR_NAME = ".ctor"
VOID_TYPE = "System.Void"
_CONVERSION_OPERATORS = frozenset({"op_Explicit", "op_Implicit"})

T = TypeVar("T")


def method_signature(
    declared_name: str,
    parameter_types: Iterable[str],
    *,
    return_type: str = VOID_TYPE,
    is_static: bool = False,
    generic_arity: int = 0,
) -> str:
    """Build the identity key of a method.

    Generic methods get a backtick arity suffix and static conversion
    operators get their return type appended, so overloads that differ only
    in those respects still get distinct keys.

    Examples:
        ("Foo", ["System.Int32"]) -> "Foo(System.Int32)"
        ("Map", ["T"], generic_arity=1) -> "Map`1(T)"
        ("op_Implicit", ["Foo"], return_type="System.Int32", is_static=True)
            -> "op_Implicit_System.Int32(Foo)"
    """
    base = declared_name
    if generic_arity > 0:
        base += f"`{generic_arity}"
    if is_static and declared_name in _CONVERSION_OPERATORS:
        base += f"_{return_type}"
    return f"{base}({','.join(parameter_types)})"


def property_key(name: str, index_types: Iterable[str] = ()) -> str:
    """Build the identity key of a property; indexers carry their index types."""
    index = list(index_types)
    if not index:
        return name
    return f"{name}[{','.join(index)}]"


def _declared_name_from_signature(signature: str) -> str:
    base = signature.split("(", 1)[0].split("`", 1)[0]
    for op in _CONVERSION_OPERATORS:
        if base.startswith(op + "_"):
            return op
    return base


def _normalize(items: Iterable[T], key: Callable[[T], str | int], kind: str) -> tuple[T, ...]:
    """Sort items by identity key and reject duplicate keys."""
    ordered = sorted(items, key=key)
    for prev, item in zip(ordered, ordered[1:], strict=False):
        if key(prev) == key(item):
            raise ValueError(f"Duplicate {kind} key: {key(item)!r}")
    return tuple(ordered)


@dataclass(frozen=True, slots=True)
class AssemblyVersion:
    """Four-part component version.

    Field order follows the .NET ``Version`` layout; recommendation logic
    ranks the components as major > minor > revision > build.
    """

    major: int = 0
    minor: int = 0
    build: int = 0
    revision: int = 0

    @classmethod
    def parse(cls, text: str) -> AssemblyVersion:
        """Parse ``major.minor[.build[.revision]]``."""
        parts = text.strip().split(".")
        if not 1 <= len(parts) <= 4:
            raise ValueError(f"Invalid version string: {text!r}")
        try:
            numbers = [int(p) for p in parts]
        except ValueError as e:
            raise ValueError(f"Invalid version string: {text!r}") from e
        if any(n < 0 for n in numbers):
            raise ValueError(f"Negative version component in {text!r}")
        return cls(*numbers)

    def by_significance(self) -> tuple[int, int, int, int]:
        """Components from most to least significant: revision ranks above build."""
        return (self.major, self.minor, self.revision, self.build)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"


@dataclass(frozen=True, slots=True)
class ParameterSnapshot:
    """A method parameter. Identity key is its zero-based position."""

    position: int
    name: str
    type_name: str
    is_ref: bool = False
    is_out: bool = False
    is_optional: bool = False
    is_params: bool = False

    @property
    def key(self) -> int:
        return self.position


@dataclass(frozen=True, slots=True)
class MethodSnapshot:
    """A visible method or constructor.

    ``name`` is the synthesized signature (see ``method_signature``);
    ``declared_name`` is the plain source name.
    """

    name: str
    type_name: str = VOID_TYPE
    is_static: bool = False
    is_public: bool = False
    is_protected: bool = False
    parameters: tuple[ParameterSnapshot, ...] = ()
    declared_name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "parameters", _normalize(self.parameters, lambda p: p.position, "parameter")
        )
        if not self.declared_name:
            object.__setattr__(self, "declared_name", _declared_name_from_signature(self.name))

    @classmethod
    def create(
        cls,
        declared_name: str,
        parameters: Iterable[ParameterSnapshot] = (),
        *,
        return_type: str = VOID_TYPE,
        is_static: bool = False,
        is_public: bool = False,
        is_protected: bool = False,
        generic_arity: int = 0,
    ) -> MethodSnapshot:
        """Build a method snapshot, synthesizing its signature key."""
        params = tuple(sorted(parameters, key=lambda p: p.position))
        signature = method_signature(
            declared_name,
            (p.type_name for p in params),
            return_type=return_type,
            is_static=is_static,
            generic_arity=generic_arity,
        )
        return cls(
            name=signature,
            type_name=return_type,
            is_static=is_static,
            is_public=is_public,
            is_protected=is_protected,
            parameters=params,
            declared_name=declared_name,
        )

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_visible(self) -> bool:
        return self.is_public or self.is_protected


@dataclass(frozen=True, slots=True)
class PropertySnapshot:
    """A property with at least one visible accessor."""

    name: str
    type_name: str
    public_read: bool = False
    public_write: bool = False
    protected_read: bool = False
    protected_write: bool = False
    is_static: bool = False
    is_init: bool = False

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_visible(self) -> bool:
        return self.public_read or self.public_write or self.protected_read or self.protected_write


@dataclass(frozen=True, slots=True)
class FieldSnapshot:
    name: str
    type_name: str
    is_static: bool = False
    is_constant: bool = False
    is_read_only: bool = False
    is_public: bool = False
    is_protected: bool = False

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_visible(self) -> bool:
        return self.is_public or self.is_protected


@dataclass(frozen=True, slots=True)
class TypeSnapshot:
    """An exported type and its visible members.

    ``full_name`` includes namespace and generic arity/arguments, so generic
    shape changes surface as remove + add at the assembly level.
    """

    full_name: str
    is_struct: bool = False
    is_interface: bool = False
    is_abstract: bool = False
    is_sealed: bool = False
    properties: tuple[PropertySnapshot, ...] = ()
    fields: tuple[FieldSnapshot, ...] = ()
    methods: tuple[MethodSnapshot, ...] = ()

    def __post_init__(self) -> None:
        visible_props = (p for p in self.properties if p.is_visible)
        visible_fields = (f for f in self.fields if f.is_visible)
        visible_methods = (m for m in self.methods if m.is_visible)
        object.__setattr__(
            self, "properties", _normalize(visible_props, lambda p: p.name, "property")
        )
        object.__setattr__(self, "fields", _normalize(visible_fields, lambda f: f.name, "field"))
        object.__setattr__(
            self, "methods", _normalize(visible_methods, lambda m: m.name, "method")
        )

    @property
    def key(self) -> str:
        return self.full_name


@dataclass(frozen=True, slots=True)
class ResourceSnapshot:
    """An embedded resource: byte length plus SHA-256 hex digest."""

    name: str
    size: int = 0
    sha256_sum: str = ""

    @property
    def key(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class AssemblySnapshot:
    """Root snapshot of one component.

    ``hash`` covers the raw binary bytes (see ``format_content_hash``) and is
    independent of the interface description.
    """

    name: str
    version: AssemblyVersion = field(default_factory=AssemblyVersion)
    hash: str = ""
    types: tuple[TypeSnapshot, ...] = ()
    resources: tuple[ResourceSnapshot, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "types", _normalize(self.types, lambda t: t.full_name, "type"))
        object.__setattr__(
            self, "resources", _normalize(self.resources, lambda r: r.name, "resource")
        )

    @property
    def key(self) -> str:
        return self.name

    def has_same_content(self, other: AssemblySnapshot) -> bool:
        """True when both content hashes are equal (case-insensitive)."""
        return self.hash.lower() == other.hash.lower()


def format_content_hash(size: int, digest: str) -> str:
    """Combine a byte length and hex digest into a content hash string.

    The length is rendered as 10 lowercase hex digits ahead of the digest.
    """
    return f"{size:010x}{digest.lower()}"
