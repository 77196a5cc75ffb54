"""Snapshot document codec.

Documents are JSON with camelCase keys. Loading goes through ``json5`` so
hand-maintained baselines may carry comments and trailing commas; the parsed
tree is validated with pydantic and converted into the frozen snapshot
models. Writing always produces strict JSON.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import json5
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from asmscan.core.errors import SnapshotError
from asmscan.snapshot.models import (
    VOID_TYPE,
    AssemblySnapshot,
    AssemblyVersion,
    FieldSnapshot,
    MethodSnapshot,
    ParameterSnapshot,
    PropertySnapshot,
    ResourceSnapshot,
    TypeSnapshot,
)

log = structlog.get_logger(__name__)


class _DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class VersionDocument(_DocumentModel):
    major: int = 0
    minor: int = 0
    build: int = 0
    revision: int = 0

    def to_snapshot(self) -> AssemblyVersion:
        return AssemblyVersion(self.major, self.minor, self.build, self.revision)

    @classmethod
    def from_snapshot(cls, version: AssemblyVersion) -> VersionDocument:
        return cls(
            major=version.major,
            minor=version.minor,
            build=version.build,
            revision=version.revision,
        )


class ParameterDocument(_DocumentModel):
    position: int
    name: str = ""
    type_name: str
    is_ref: bool = False
    is_out: bool = False
    is_optional: bool = False
    is_params: bool = False

    def to_snapshot(self) -> ParameterSnapshot:
        return ParameterSnapshot(
            position=self.position,
            name=self.name,
            type_name=self.type_name,
            is_ref=self.is_ref,
            is_out=self.is_out,
            is_optional=self.is_optional,
            is_params=self.is_params,
        )


class MethodDocument(_DocumentModel):
    name: str
    declared_name: str = ""
    type_name: str = VOID_TYPE
    is_static: bool = False
    is_public: bool = False
    is_protected: bool = False
    parameters: list[ParameterDocument] = Field(default_factory=list)

    def to_snapshot(self) -> MethodSnapshot:
        return MethodSnapshot(
            name=self.name,
            declared_name=self.declared_name,
            type_name=self.type_name,
            is_static=self.is_static,
            is_public=self.is_public,
            is_protected=self.is_protected,
            parameters=tuple(p.to_snapshot() for p in self.parameters),
        )


class PropertyDocument(_DocumentModel):
    name: str
    type_name: str
    public_read: bool = False
    public_write: bool = False
    protected_read: bool = False
    protected_write: bool = False
    is_static: bool = False
    is_init: bool = False

    def to_snapshot(self) -> PropertySnapshot:
        return PropertySnapshot(**self.model_dump())


class FieldDocument(_DocumentModel):
    name: str
    type_name: str
    is_static: bool = False
    is_constant: bool = False
    is_read_only: bool = False
    is_public: bool = False
    is_protected: bool = False

    def to_snapshot(self) -> FieldSnapshot:
        return FieldSnapshot(**self.model_dump())


class TypeDocument(_DocumentModel):
    full_name: str
    is_struct: bool = False
    is_interface: bool = False
    is_abstract: bool = False
    is_sealed: bool = False
    properties: list[PropertyDocument] = Field(default_factory=list)
    fields: list[FieldDocument] = Field(default_factory=list)
    methods: list[MethodDocument] = Field(default_factory=list)

    def to_snapshot(self) -> TypeSnapshot:
        return TypeSnapshot(
            full_name=self.full_name,
            is_struct=self.is_struct,
            is_interface=self.is_interface,
            is_abstract=self.is_abstract,
            is_sealed=self.is_sealed,
            properties=tuple(p.to_snapshot() for p in self.properties),
            fields=tuple(f.to_snapshot() for f in self.fields),
            methods=tuple(m.to_snapshot() for m in self.methods),
        )


class ResourceDocument(_DocumentModel):
    name: str
    size: int = 0
    sha256_sum: str = Field(default="", alias="sha256Sum")

    def to_snapshot(self) -> ResourceSnapshot:
        return ResourceSnapshot(name=self.name, size=self.size, sha256_sum=self.sha256_sum)


class AssemblyDocument(_DocumentModel):
    """Top-level snapshot document."""

    name: str = ""
    version: VersionDocument = Field(default_factory=VersionDocument)
    hash: str = ""
    types: list[TypeDocument] = Field(default_factory=list)
    resources: list[ResourceDocument] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def parse_version_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            version = AssemblyVersion.parse(v)
            return {
                "major": version.major,
                "minor": version.minor,
                "build": version.build,
                "revision": version.revision,
            }
        return v

    def to_snapshot(self) -> AssemblySnapshot:
        return AssemblySnapshot(
            name=self.name,
            version=self.version.to_snapshot(),
            hash=self.hash,
            types=tuple(t.to_snapshot() for t in self.types),
            resources=tuple(r.to_snapshot() for r in self.resources),
        )

    @classmethod
    def from_snapshot(cls, snapshot: AssemblySnapshot) -> AssemblyDocument:
        return cls(
            name=snapshot.name,
            version=VersionDocument.from_snapshot(snapshot.version),
            hash=snapshot.hash,
            types=[
                TypeDocument(
                    full_name=t.full_name,
                    is_struct=t.is_struct,
                    is_interface=t.is_interface,
                    is_abstract=t.is_abstract,
                    is_sealed=t.is_sealed,
                    properties=[PropertyDocument(**_fields_of(p)) for p in t.properties],
                    fields=[FieldDocument(**_fields_of(f)) for f in t.fields],
                    methods=[
                        MethodDocument(
                            name=m.name,
                            declared_name=m.declared_name,
                            type_name=m.type_name,
                            is_static=m.is_static,
                            is_public=m.is_public,
                            is_protected=m.is_protected,
                            parameters=[ParameterDocument(**_fields_of(p)) for p in m.parameters],
                        )
                        for m in t.methods
                    ],
                )
                for t in snapshot.types
            ],
            resources=[
                ResourceDocument(name=r.name, size=r.size, sha256_sum=r.sha256_sum)
                for r in snapshot.resources
            ],
        )


def _fields_of(obj: Any) -> dict[str, Any]:
    return {name: getattr(obj, name) for name in obj.__dataclass_fields__}


def parse_snapshot(text: str, *, source: str = "<string>") -> AssemblySnapshot:
    """Parse a snapshot document.

    Raises:
        SnapshotError: if the text is not a valid snapshot document.
    """
    try:
        data = json5.loads(text)
    except ValueError as e:
        raise SnapshotError.parse_error(source, str(e)) from e

    if not isinstance(data, dict):
        raise SnapshotError.parse_error(source, "No snapshot read from JSON.")

    try:
        document = AssemblyDocument.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        location = ".".join(str(loc) for loc in err["loc"]) or "<root>"
        raise SnapshotError.parse_error(source, f"{location}: {err['msg']}") from e

    try:
        snapshot = document.to_snapshot()
    except ValueError as e:
        raise SnapshotError.parse_error(source, str(e)) from e

    log.debug(
        "snapshot_parsed",
        source=source,
        assembly=snapshot.name,
        version=str(snapshot.version),
        types=len(snapshot.types),
        resources=len(snapshot.resources),
    )
    return snapshot


def load_snapshot(path: Path) -> AssemblySnapshot:
    """Load a snapshot document from disk.

    Raises:
        SnapshotError: if the file is missing or cannot be parsed.
    """
    if not path.is_file():
        raise SnapshotError.not_found(str(path))
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError.parse_error(str(path), str(e)) from e
    return parse_snapshot(text, source=str(path))


def dump_snapshot(snapshot: AssemblySnapshot, *, indent: int | None = None) -> str:
    """Serialize a snapshot; ``indent=None`` gives compact output."""
    document = AssemblyDocument.from_snapshot(snapshot)
    return document.model_dump_json(by_alias=True, indent=indent)


def save_snapshot(snapshot: AssemblySnapshot, path: Path) -> None:
    """Write a compact snapshot document to ``path``.

    Raises:
        SnapshotError: if the file cannot be written.
    """
    try:
        path.write_text(dump_snapshot(snapshot), encoding="utf-8")
    except OSError as e:
        raise SnapshotError.write_error(str(path), str(e)) from e
    log.debug("snapshot_saved", path=str(path), assembly=snapshot.name)
