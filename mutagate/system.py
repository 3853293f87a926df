"""The set of registered mutators and the loop that applies them."""

from __future__ import annotations

import argparse
import bisect
import copy
import threading
from typing import Optional

from mutagate.mutate import MutationError
from mutagate.mutator import ID, Mutator, group_version_kind
from mutagate.schema import MutatorWithSchema, SchemaDB, SchemaError


class System:
    """Keeps mutators ordered by ID and applies them until the object converges."""

    def __init__(self) -> None:
        self._schema_db = SchemaDB()
        self._ordered: list[Mutator] = []
        self._by_id: dict[ID, Mutator] = {}
        self._lock = threading.Lock()

    def mutators(self) -> list[Mutator]:
        """Return the registered mutators in ID order."""
        with self._lock:
            return list(self._ordered)

    def upsert(self, mutator: Mutator) -> None:
        """Insert or replace a mutator; raise SchemaError on schema conflicts."""
        with self._lock:
            current = self._by_id.get(mutator.id())
            if current is not None and not mutator.has_diff(current):
                return

            to_add = mutator.deep_copy()
            if isinstance(to_add, MutatorWithSchema):
                try:
                    self._schema_db.upsert(to_add)
                except SchemaError as err:
                    raise SchemaError(f"Schema upsert failed: {err}") from err

            mutator_id = to_add.id()
            self._by_id[mutator_id] = to_add
            index = bisect.bisect_left(self._ordered, mutator_id, key=lambda m: m.id())
            if index < len(self._ordered) and self._ordered[index].id() == mutator_id:
                self._ordered[index] = to_add
            else:
                self._ordered.insert(index, to_add)

    def mutate(self, obj: dict, ns: Optional[dict]) -> bool:
        """Apply the mutators to the object in place; return whether it changed."""
        with self._lock:
            original = copy.deepcopy(obj)
            max_iterations = len(self._ordered) + 1
            gvk = group_version_kind(obj)
            for iteration in range(max_iterations):
                old = copy.deepcopy(obj)
                for mutator in self._ordered:
                    if not mutator.matches(obj, ns):
                        continue
                    try:
                        mutator.mutate(obj)
                    except Exception as err:
                        raise MutationError(
                            f"mutation failed for {gvk.group} {gvk.kind}: {err}"
                        ) from err
                if old == obj:
                    if iteration == 0:
                        return False
                    if original == obj:
                        raise MutationError(
                            f"oscillating mutation for {gvk.group} {gvk.kind}"
                        )
                    return True
            raise MutationError(f"mutation not converging for {gvk.group} {gvk.kind}")

    def remove(self, mutator_id: ID) -> None:
        """Remove the mutator with the given id, if it is registered."""
        with self._lock:
            if mutator_id not in self._by_id:
                return
            self._schema_db.remove(mutator_id)
            del self._by_id[mutator_id]
            index = bisect.bisect_left(self._ordered, mutator_id, key=lambda m: m.id())
            if index >= len(self._ordered) or self._ordered[index].id() != mutator_id:
                raise RuntimeError(
                    f"Failed to find mutator with ID {mutator_id} on sorted list"
                )
            del self._ordered[index]


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def add_mutation_flag(parser: argparse.ArgumentParser) -> None:
    """Register the --enable-mutation flag, stored as ``enable_mutation``."""
    parser.add_argument(
        "--enable-mutation",
        dest="enable_mutation",
        nargs="?",
        const=True,
        default=False,
        type=_parse_bool,
        help="(alpha) Enable the mutation feature",
    )