"""Apply a mutator's value to an unstructured object along its path.

Mutators whose ``only_if_missing`` attribute is true never overwrite a value
that is already present at the final object field of their path.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Sequence

from mutagate.mutator import Mutator
from mutagate.parser import ListNode, Node, ObjectNode

log = logging.getLogger("mutagate.mutation")


class MutationError(ValueError):
    """Raised when a mutation cannot be applied to an object."""


def _type_name(value: Any) -> str:
    return type(value).__name__


def mutate(mutator: Mutator, obj: dict) -> None:
    """Apply the mutator to the object in place, creating missing path elements."""
    path = mutator.path()
    if path is None or not path.nodes:
        raise MutationError("mutator has an empty path")
    _mutate(mutator, path.nodes, obj, None, 0)


def _mutate(
    mutator: Mutator,
    nodes: Sequence[Node],
    current: Any,
    previous: Any,
    depth: int,
) -> None:
    if depth == len(nodes) - 1:
        _add_value(mutator, nodes, current, previous, depth)
        return
    entry = nodes[depth]
    if isinstance(entry, ObjectNode):
        if not isinstance(current, dict):
            raise MutationError(
                "mismatch between path entry (type: object) and received object "
                f"(type: {_type_name(current)}). Path: {entry}"
            )
        if entry.reference in current:
            nxt = current[entry.reference]
        else:
            nxt = _create_missing_element(nodes, current, previous, depth)
        _mutate(mutator, nodes, nxt, current, depth + 1)
    elif isinstance(entry, ListNode):
        if not isinstance(current, list):
            raise MutationError(
                "mismatch between path entry (type: List) and received object "
                f"(type: {_type_name(current)}). Path: {entry}"
            )
        found = False
        for element in list(current):
            if entry.glob:
                _mutate(mutator, nodes, element, current, depth + 1)
                found = True
            elif (
                isinstance(element, dict)
                and entry.key_field in element
                and element[entry.key_field] == entry.key_value
            ):
                _mutate(mutator, nodes, element, current, depth + 1)
                found = True
        # A keyed selector with no matching element gets a new element.
        if not entry.glob and not found:
            nxt = _create_missing_element(nodes, current, previous, depth)
            _mutate(mutator, nodes, nxt, current, depth + 1)
    else:
        raise MutationError(f"invalid type pathEntry type: {_type_name(entry)}")


def _add_value(
    mutator: Mutator,
    nodes: Sequence[Node],
    current: Any,
    previous: Any,
    depth: int,
) -> None:
    entry = nodes[depth]
    if isinstance(entry, ObjectNode):
        _set_object_value(mutator, entry, current)
    elif isinstance(entry, ListNode):
        _set_list_element(mutator, nodes, current, previous, entry, depth)


def _nested_string(current: Any, key: str) -> Optional[str]:
    if not isinstance(current, dict):
        raise MutationError(
            f"cast error, unable to cast {_type_name(current)} to map[string]interface{{}}"
        )
    if key not in current:
        return None
    value = current[key]
    if not isinstance(value, str):
        raise MutationError(
            f"{key} accessor error: {value!r} is of the type {_type_name(value)}, "
            "expected string"
        )
    return value


def _set_object_value(mutator: Mutator, entry: ObjectNode, current: Any) -> None:
    key = entry.reference
    if getattr(mutator, "only_if_missing", False):
        existing = _nested_string(current, key)
        if existing is not None:
            log.info("Mutated value already present: field=%s value=%s", key, existing)
            return
    value = mutator.value()
    if not isinstance(current, dict):
        raise MutationError(
            f"cast error, unable to cast {_type_name(current)} to map[string]interface{{}}"
        )
    current[key] = copy.deepcopy(value)


def _set_list_element(
    mutator: Mutator,
    nodes: Sequence[Node],
    current: Any,
    previous: Any,
    entry: ListNode,
    depth: int,
) -> None:
    if not isinstance(current, list):
        raise MutationError(
            "mismatch between path entry (type: list) and received object "
            f"(type: {_type_name(current)}). Path: {entry}"
        )
    if entry.glob:
        raise MutationError("last path entry can not be globbed")
    new_value = mutator.value()
    if not isinstance(new_value, dict):
        raise MutationError(
            f"last path entry of type list requires an object value, pathEntry: {entry}"
        )
    key = entry.key_field
    key_value = entry.key_value

    found = False
    for index, element in enumerate(current):
        existing = _nested_string(element, key)
        if existing is not None and existing == key_value:
            if key not in new_value or new_value[key] != key_value:
                raise MutationError("key value of replaced object must not change")
            found = True
            current[index] = copy.deepcopy(new_value)
    if not found:
        _append_new_object(nodes, current, previous, copy.deepcopy(new_value), entry, depth)


def _previous_object(nodes: Sequence[Node], entry: Node, depth: int) -> ObjectNode:
    previous_node = nodes[depth - 1] if depth > 0 else None
    if not isinstance(previous_node, ObjectNode):
        raise MutationError(
            f"two consecutive list path entries not allowed: {entry} {previous_node}"
        )
    return previous_node


def _append_new_object(
    nodes: Sequence[Node],
    current: list,
    previous: Any,
    new_value: dict,
    entry: ListNode,
    depth: int,
) -> None:
    previous_node = _previous_object(nodes, entry, depth)
    if not isinstance(previous, dict):
        raise MutationError(
            f"unable to handle nested arrays in mutated resources: {previous!r} {current!r}"
        )
    current.append(new_value)
    previous[previous_node.reference] = current


def _create_missing_element(
    nodes: Sequence[Node], current: Any, previous: Any, depth: int
) -> Any:
    entry = nodes[depth]
    next_entry = nodes[depth + 1]

    nxt: Any = None
    if isinstance(next_entry, ObjectNode):
        nxt = {}
    elif isinstance(next_entry, ListNode):
        nxt = []

    if isinstance(entry, ObjectNode):
        if not isinstance(current, dict):
            raise MutationError(
                "mismatch between path entry (type: object) and received object "
                f"(type: {_type_name(current)}). Path: {entry}"
            )
        current[entry.reference] = nxt
    elif isinstance(entry, ListNode):
        if not isinstance(current, list):
            raise MutationError(
                "mismatch between path entry (type: List) and received object "
                f"(type: {_type_name(current)}). Path: {entry}"
            )
        if not isinstance(nxt, dict):
            raise MutationError(
                f"two consecutive list path entries not allowed: {entry} {next_entry}"
            )
        previous_node = _previous_object(nodes, entry, depth)
        if not isinstance(previous, dict):
            raise MutationError(
                f"two consecutive list objects not allowed: {current!r} {previous!r}"
            )
        nxt[entry.key_field] = entry.key_value
        current.append(nxt)
        previous[previous_node.reference] = current
    return nxt