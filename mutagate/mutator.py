"""Identifiers and the interface shared by all mutators."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from mutagate.parser import Path


@dataclass(frozen=True, order=True)
class ID:
    """Identifies a mutation object; ordering is by group, kind, namespace, name."""

    group: str = ""
    kind: str = ""
    namespace: str = ""
    name: str = ""


@dataclass(frozen=True)
class GroupVersionKind:
    """The group, version and kind of an object."""

    group: str = ""
    version: str = ""
    kind: str = ""

    def __str__(self) -> str:
        return f"{self.group}/{self.version}, Kind={self.kind}"


def _string_field(obj: Mapping, *keys: str) -> str:
    current: Any = obj
    for key in keys:
        if not isinstance(current, Mapping):
            return ""
        current = current.get(key)
    return current if isinstance(current, str) else ""


def group_version_kind(obj: Mapping) -> GroupVersionKind:
    """Return the GVK of an unstructured object; empty if apiVersion is malformed."""
    api_version = _string_field(obj, "apiVersion")
    kind = _string_field(obj, "kind")
    if not api_version:
        return GroupVersionKind("", "", kind)
    parts = api_version.split("/")
    if len(parts) == 1:
        return GroupVersionKind("", api_version, kind)
    if len(parts) == 2:
        return GroupVersionKind(parts[0], parts[1], kind)
    return GroupVersionKind()


def make_id(obj: Mapping) -> ID:
    """Build the ID of an unstructured object from its GVK and metadata."""
    if not isinstance(obj, Mapping):
        raise TypeError(f"Failed to get accessor for object of type {type(obj).__name__}")
    metadata = obj.get("metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        gvk = group_version_kind(obj)
        raise TypeError(f"Failed to get accessor for {gvk.group} {gvk.kind}")
    gvk = group_version_kind(obj)
    return ID(
        group=gvk.group,
        kind=gvk.kind,
        namespace=_string_field(obj, "metadata", "namespace"),
        name=_string_field(obj, "metadata", "name"),
    )


def unmarshal_value(data: Union[bytes, str]) -> Any:
    """Decode a JSON document and return its "value" entry."""
    try:
        document = json.loads(data)
    except ValueError as exc:
        raise ValueError(f"Failed to unmarshal value: {exc}") from exc
    if document is None:
        return None
    if not isinstance(document, dict):
        raise ValueError(
            f"Failed to unmarshal value: expected a JSON object, got {type(document).__name__}"
        )
    return document.get("value")


class Mutator(ABC):
    """A mutation that can be matched against and applied to objects."""

    @abstractmethod
    def matches(self, obj: Mapping, ns: Optional[Mapping]) -> bool:
        """Tell whether the object is eligible for this mutation."""

    @abstractmethod
    def mutate(self, obj: dict) -> None:
        """Apply the mutation to the object in place."""

    @abstractmethod
    def id(self) -> ID:
        """Return the identifier of this mutator."""

    @abstractmethod
    def has_diff(self, other: "Mutator") -> bool:
        """Tell whether this mutator differs meaningfully from another."""

    @abstractmethod
    def deep_copy(self) -> "Mutator":
        """Return an independent copy of this mutator."""

    @abstractmethod
    def value(self) -> Any:
        """Return the value the mutation assigns."""

    @abstractmethod
    def path(self) -> Optional[Path]:
        """Return the parsed location the mutation applies to."""