"""Structural job diff as returned by Nomad's plan endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FieldDiff:
    """A single changed primitive field, e.g. ``Meta[nomadopssrccommit]``."""

    name: str
    type: str = ""
    old: str = ""
    new: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> FieldDiff:
        return cls(
            name=str(raw.get("Name", "")),
            type=str(raw.get("Type", "")),
            old=str(raw.get("Old", "")),
            new=str(raw.get("New", "")),
        )


@dataclass(frozen=True)
class ObjectDiff:
    """A changed nested object (constraints, networks, templates...)."""

    name: str
    type: str = ""
    fields: list[FieldDiff] = field(default_factory=list)
    objects: list[ObjectDiff] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> ObjectDiff:
        return cls(
            name=str(raw.get("Name", "")),
            type=str(raw.get("Type", "")),
            fields=[FieldDiff.from_api(f) for f in raw.get("Fields") or []],
            objects=[ObjectDiff.from_api(o) for o in raw.get("Objects") or []],
        )


@dataclass(frozen=True)
class TaskDiff:
    name: str
    type: str = ""
    fields: list[FieldDiff] = field(default_factory=list)
    objects: list[ObjectDiff] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> TaskDiff:
        return cls(
            name=str(raw.get("Name", "")),
            type=str(raw.get("Type", "")),
            fields=[FieldDiff.from_api(f) for f in raw.get("Fields") or []],
            objects=[ObjectDiff.from_api(o) for o in raw.get("Objects") or []],
        )


@dataclass(frozen=True)
class TaskGroupDiff:
    name: str
    type: str = ""
    fields: list[FieldDiff] = field(default_factory=list)
    objects: list[ObjectDiff] = field(default_factory=list)
    tasks: list[TaskDiff] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> TaskGroupDiff:
        return cls(
            name=str(raw.get("Name", "")),
            type=str(raw.get("Type", "")),
            fields=[FieldDiff.from_api(f) for f in raw.get("Fields") or []],
            objects=[ObjectDiff.from_api(o) for o in raw.get("Objects") or []],
            tasks=[TaskDiff.from_api(t) for t in raw.get("Tasks") or []],
        )


@dataclass(frozen=True)
class JobDiff:
    """Delta between a candidate job and the one Nomad currently schedules.

    Nomad reports ``null`` for empty collections; ``from_api`` normalises
    those to empty lists.
    """

    id: str = ""
    type: str = ""
    fields: list[FieldDiff] = field(default_factory=list)
    objects: list[ObjectDiff] = field(default_factory=list)
    task_groups: list[TaskGroupDiff] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict[str, Any] | None) -> JobDiff:
        if not raw:
            return cls()
        return cls(
            id=str(raw.get("ID", "")),
            type=str(raw.get("Type", "")),
            fields=[FieldDiff.from_api(f) for f in raw.get("Fields") or []],
            objects=[ObjectDiff.from_api(o) for o in raw.get("Objects") or []],
            task_groups=[TaskGroupDiff.from_api(g) for g in raw.get("TaskGroups") or []],
        )
