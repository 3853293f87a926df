"""Implied schemas of mutators, used to reject mutators whose paths conflict."""

from __future__ import annotations

import threading
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from mutagate.mutator import ID, GroupVersionKind, Mutator
from mutagate.parser import ListNode, Node, NodeType, ObjectNode


@dataclass
class Binding:
    """The GVKs that a mutation's implied schema applies to."""

    groups: list[str] = field(default_factory=list)
    kinds: list[str] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)


class MutatorWithSchema(Mutator):
    """A mutator exposing the implied schema of the objects it targets."""

    @abstractmethod
    def schema_bindings(self) -> list[Binding]:
        """Return the bindings the mutator's schema applies to."""


class SchemaError(ValueError):
    """A conflict between a path and the schema, located by node names."""

    def __init__(
        self,
        message: str = "",
        *,
        node_name: str = "",
        cause: Optional["SchemaError"] = None,
    ) -> None:
        super().__init__(message or node_name)
        self.message = message
        self.node_name = node_name
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        names = []
        current: SchemaError = self
        while current.cause is not None:
            names.append(current.node_name)
            current = current.cause
        text = "".join(names) + ": " + current.message
        return text[1:] if text.startswith(".") else text


def _wrap_object_error(obj: ObjectNode, err: SchemaError) -> SchemaError:
    return SchemaError(node_name=f".{obj.reference}", cause=err)


def _wrap_list_error(lst: ListNode, err: SchemaError) -> SchemaError:
    value = "*" if lst.glob else f'"{lst.key_value}"'
    return SchemaError(node_name=f'["{lst.key_field}": {value}]', cause=err)


@dataclass
class SchemaNode:
    """A reference-counted node of an implied schema tree."""

    reference_count: int = 0
    node_type: Optional[NodeType] = None
    key_field: Optional[str] = None
    child: Optional["SchemaNode"] = None
    children: Optional[dict[str, "SchemaNode"]] = None

    def _add(self, ref: Sequence[Node]) -> None:
        backup = (self.reference_count, self.node_type, self.key_field)
        self.reference_count += 1
        if not ref:
            return
        try:
            self._add_first(ref)
        except SchemaError:
            self.reference_count, self.node_type, self.key_field = backup
            raise

    def _check_type(self, wanted: NodeType) -> None:
        if self.node_type is not None and self.node_type is not wanted:
            raise SchemaError(
                f"node type conflict: {self.node_type.value} vs {wanted.value}"
            )
        self.node_type = wanted

    def _add_first(self, ref: Sequence[Node]) -> None:
        current = ref[0]
        if isinstance(current, ObjectNode):
            self._check_type(NodeType.OBJECT)
            if self.children is None:
                self.children = {}
            # The last element adds no further type information.
            if len(ref) == 1:
                return
            child = self.children.get(current.reference)
            if child is None:
                child = SchemaNode()
            try:
                child._add(ref[1:])
            except SchemaError as err:
                raise _wrap_object_error(current, err) from err
            self.children[current.reference] = child
        elif isinstance(current, ListNode):
            self._check_type(NodeType.LIST)
            if self.key_field is not None and self.key_field != current.key_field:
                raise SchemaError(
                    f"key field conflict: {self.key_field} vs {current.key_field}"
                )
            if self.key_field is None:
                self.key_field = current.key_field
            if len(ref) == 1:
                return
            child = self.child if self.child is not None else SchemaNode()
            try:
                child._add(ref[1:])
            except SchemaError as err:
                raise _wrap_list_error(current, err) from err
            self.child = child
        else:
            raise SchemaError(f"unknown node type: {type(current).__name__}")

    def _remove(self, ref: Sequence[Node]) -> None:
        self.reference_count -= 1
        # Nothing was added for the last element, so nothing is removed.
        if len(ref) <= 1:
            return
        current = ref[0]
        if isinstance(current, ObjectNode):
            if self.children is None:
                return
            child = self.children.get(current.reference)
            if child is None:
                return
            if child.reference_count <= 1:
                del self.children[current.reference]
                return
            child._remove(ref[1:])
        elif isinstance(current, ListNode):
            if self.child is None:
                return
            if self.child.reference_count <= 1:
                self.child = None
                return
            self.child._remove(ref[1:])
        else:
            raise RuntimeError(
                f"unknown node type, schema db in unknown state: {type(current).__name__}"
            )


@dataclass
class Scheme:
    """The implied schema of one GVK."""

    gvk: GroupVersionKind
    root: Optional[SchemaNode] = None

    def _add(self, ref: Sequence[Node]) -> None:
        if self.root is None:
            self.root = SchemaNode()
        self.root._add(ref)

    def _remove(self, ref: Sequence[Node]) -> None:
        if self.root is None:
            return
        self.root._remove(ref)
        if self.root.reference_count == 0:
            self.root = None


def sorted_gvks(bindings: Iterable[Binding]) -> list[GroupVersionKind]:
    """Expand bindings into distinct GVKs, sorted by their string form."""
    gvks = {
        GroupVersionKind(group, version, kind)
        for binding in bindings
        for group in binding.groups
        for version in binding.versions
        for kind in binding.kinds
    }
    return sorted(gvks, key=str)


class SchemaDB:
    """Caches the implied schemas of all mutators and rejects conflicting ones."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mutators: dict[ID, MutatorWithSchema] = {}
        self._schemas: dict[GroupVersionKind, Scheme] = {}

    @property
    def mutators(self) -> dict[ID, MutatorWithSchema]:
        return dict(self._mutators)

    @property
    def schemas(self) -> dict[GroupVersionKind, Scheme]:
        return dict(self._schemas)

    def upsert(self, mutator: MutatorWithSchema) -> None:
        """Insert or replace a mutator; raise SchemaError on conflict."""
        with self._lock:
            self._upsert(mutator, unwind=True)

    def _upsert(self, mutator: MutatorWithSchema, unwind: bool) -> None:
        mutator_id = mutator.id()
        old = self._mutators.get(mutator_id)
        # unwind is False when restoring a mutator after a bad commit.
        if old is not None and unwind:
            if not old.has_diff(mutator):
                return
            self._remove(mutator_id)

        modified: list[Scheme] = []
        nodes = mutator.path().nodes
        for gvk in sorted_gvks(mutator.schema_bindings()):
            scheme = self._schemas.get(gvk)
            if scheme is None:
                scheme = Scheme(gvk)
                self._schemas[gvk] = scheme
            try:
                scheme._add(nodes)
            except SchemaError:
                if unwind:
                    self._unwind(mutator, old, modified)
                raise
            modified.append(scheme)
        self._mutators[mutator_id] = mutator.deep_copy()

    def _unwind(
        self,
        new: MutatorWithSchema,
        old: Optional[MutatorWithSchema],
        schemes: list[Scheme],
    ) -> None:
        nodes = new.path().nodes
        for scheme in schemes:
            scheme._remove(nodes)
            if scheme.root is None:
                self._schemas.pop(scheme.gvk, None)
        if old is None:
            return
        try:
            self._upsert(old, unwind=False)
        except SchemaError as err:
            raise RuntimeError(
                "could not upsert previously existing mutator into schema, "
                "this is not recoverable"
            ) from err

    def remove(self, mutator_id: ID) -> None:
        """Remove the mutator with the given id, if present."""
        with self._lock:
            self._remove(mutator_id)
            self._mutators.pop(mutator_id, None)

    def _remove(self, mutator_id: ID) -> None:
        mutator = self._mutators.get(mutator_id)
        if mutator is None:
            return
        nodes = mutator.path().nodes
        for gvk in sorted_gvks(mutator.schema_bindings()):
            scheme = self._schemas.get(gvk)
            if scheme is None:
                raise RuntimeError(
                    f"mutator {mutator_id} associated with missing schema {gvk}"
                )
            scheme._remove(nodes)
            if scheme.root is None:
                del self._schemas[gvk]