"""Matching of objects against mutator match criteria."""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from mutagate.mutator import GroupVersionKind, group_version_kind


class Scope(str, enum.Enum):
    """Resource scope a match can be restricted to."""

    CLUSTER = "Cluster"
    NAMESPACED = "Namespaced"


@dataclass
class Kinds:
    """Kinds and API groups to match; an empty list matches anything."""

    kinds: list[str] = field(default_factory=list)
    api_groups: list[str] = field(default_factory=list)


class SelectorError(ValueError):
    """Raised when a label selector is malformed."""


_OPERATORS = ("In", "NotIn", "Exists", "DoesNotExist")
_NAME = re.compile(r"([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]")
_SUBDOMAIN = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*")


def _validate_key(key: str) -> None:
    parts = key.split("/")
    if len(parts) == 1:
        name = key
    elif len(parts) == 2:
        prefix, name = parts
        if not prefix or len(prefix) > 253 or not _SUBDOMAIN.fullmatch(prefix):
            raise SelectorError(f"invalid label key {key!r}: bad prefix")
    else:
        raise SelectorError(f"invalid label key {key!r}")
    if not name or len(name) > 63 or not _NAME.fullmatch(name):
        raise SelectorError(f"invalid label key {key!r}")


def _validate_value(value: str) -> None:
    if len(value) > 63 or (value and not _NAME.fullmatch(value)):
        raise SelectorError(f"invalid label value {value!r}")


@dataclass
class LabelSelectorRequirement:
    """A single set-based label requirement."""

    key: str
    operator: str
    values: list[str] = field(default_factory=list)

    def _validated(self) -> "LabelSelectorRequirement":
        if self.operator not in _OPERATORS:
            raise SelectorError(f"{self.operator!r} is not a valid label selector operator")
        if self.operator in ("In", "NotIn") and not self.values:
            raise SelectorError(f"values must be non-empty for operator {self.operator}")
        if self.operator in ("Exists", "DoesNotExist") and self.values:
            raise SelectorError(f"values must be empty for operator {self.operator}")
        _validate_key(self.key)
        for value in self.values:
            _validate_value(value)
        return self

    def _matches(self, labels: Mapping[str, str]) -> bool:
        present = self.key in labels
        if self.operator == "In":
            return present and labels[self.key] in self.values
        if self.operator == "NotIn":
            return not present or labels[self.key] not in self.values
        if self.operator == "Exists":
            return present
        return not present


@dataclass
class LabelSelector:
    """Selects labels by exact values and set-based expressions."""

    match_labels: dict[str, str] = field(default_factory=dict)
    match_expressions: list[LabelSelectorRequirement] = field(default_factory=list)

    def _requirements(self) -> list[LabelSelectorRequirement]:
        requirements = [
            LabelSelectorRequirement(key, "In", [value])
            for key, value in self.match_labels.items()
        ]
        requirements.extend(self.match_expressions)
        return [requirement._validated() for requirement in requirements]

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Tell whether the labels satisfy every requirement of the selector."""
        return all(requirement._matches(labels) for requirement in self._requirements())


@dataclass
class Match:
    """Criteria deciding which objects a mutator applies to."""

    kinds: list[Kinds] = field(default_factory=list)
    scope: Optional[Scope] = None
    namespaces: list[str] = field(default_factory=list)
    excluded_namespaces: list[str] = field(default_factory=list)
    label_selector: Optional[LabelSelector] = None
    namespace_selector: Optional[LabelSelector] = None


@dataclass
class ApplyTo:
    """A set of groups, versions and kinds a mutator applies to."""

    groups: list[str] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)
    kinds: list[str] = field(default_factory=list)


def _metadata(obj: Any, gvk: GroupVersionKind) -> Mapping:
    if not isinstance(obj, Mapping):
        raise TypeError(f"Accessor failed for {type(obj).__name__}")
    metadata = obj.get("metadata")
    if metadata is None:
        return {}
    if not isinstance(metadata, Mapping):
        raise TypeError(f"Accessor failed for {gvk.kind}")
    return metadata


def _labels(metadata: Mapping) -> dict[str, str]:
    labels = metadata.get("labels")
    if not isinstance(labels, Mapping):
        return {}
    return {k: v for k, v in labels.items() if isinstance(v, str)}


def _kinds_match(kinds: Kinds, gvk: GroupVersionKind) -> bool:
    kind_ok = not kinds.kinds or any(k in ("*", gvk.kind) for k in kinds.kinds)
    group_ok = not kinds.api_groups or any(g in ("*", gvk.group) for g in kinds.api_groups)
    return kind_ok and group_ok


def _is_namespace(gvk: GroupVersionKind) -> bool:
    return gvk.kind == "Namespace" and gvk.group == ""


def matches(match: Match, obj: Mapping, ns: Optional[Mapping]) -> bool:
    """Tell whether an object, living in namespace ns, satisfies the match."""
    gvk = group_version_kind(obj) if isinstance(obj, Mapping) else GroupVersionKind()
    metadata = _metadata(obj, gvk)

    if match.kinds and not any(_kinds_match(kinds, gvk) for kinds in match.kinds):
        return False

    namespace = metadata.get("namespace")
    if not isinstance(namespace, str):
        namespace = ""

    if match.scope is Scope.CLUSTER and namespace:
        return False
    if match.scope is Scope.NAMESPACED and not namespace:
        return False
    if match.namespaces and namespace not in match.namespaces:
        return False
    if namespace in match.excluded_namespaces:
        return False

    if match.label_selector is not None and not match.label_selector.matches(_labels(metadata)):
        return False

    if match.namespace_selector is not None:
        requirements = match.namespace_selector._requirements()
        if _is_namespace(gvk):
            target = _labels(metadata)
        elif not namespace:
            return True  # cluster scoped objects match by default
        else:
            if ns is None:
                raise ValueError(f"namespace {namespace!r} is required to evaluate the selector")
            ns_metadata = ns.get("metadata") if isinstance(ns, Mapping) else None
            target = _labels(ns_metadata) if isinstance(ns_metadata, Mapping) else {}
        if not all(requirement._matches(target) for requirement in requirements):
            return False

    return True


def applies_to(apply_to: list[ApplyTo], obj: Mapping) -> bool:
    """Tell whether any entry covers the object's group, version and kind."""
    gvk = group_version_kind(obj)
    return any(
        gvk.group in entry.groups and gvk.version in entry.versions and gvk.kind in entry.kinds
        for entry in apply_to
    )