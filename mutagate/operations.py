"""Operations a process instance is assigned through the --operation flag.

With no flag given every operation is assigned. The first explicit value
replaces that default, and later values add to it.
"""

from __future__ import annotations

import argparse
import enum
from typing import Optional, Sequence, Union


class Operation(str, enum.Enum):
    """An operation that an instance can perform."""

    AUDIT = "audit"
    STATUS = "status"
    WEBHOOK = "webhook"

    def __str__(self) -> str:
        return self.value


_VALID = {op.value: op for op in Operation}


class OperationSet:
    """The operations assigned to an instance; all of them by default."""

    def __init__(self) -> None:
        self._assigned: set[Operation] = set(Operation)
        self._explicit = False
        self._sorted_cache: Optional[list[str]] = None

    def add(self, value: str) -> None:
        """Assign the comma separated operations in value; raise ValueError if one is invalid."""
        if not self._explicit:
            # An explicit value starts fresh, dropping the all-operations default.
            self._assigned = set()
            self._explicit = True
        self._sorted_cache = None
        for name in value.split(","):
            op = _VALID.get(name)
            if op is None:
                valid = ", ".join(sorted(_VALID))
                raise ValueError(
                    f"operation {name} is not a valid operation: [{valid}]"
                )
            self._assigned.add(op)

    def __str__(self) -> str:
        return "[" + " ".join(self.sorted_names()) + "]"

    def assigned(self) -> dict[Operation, bool]:
        """Return a copy of the assigned operations, each mapped to True."""
        return {op: True for op in self._assigned}

    def is_assigned(self, op: Union[Operation, str]) -> bool:
        """Tell whether the operation is assigned."""
        try:
            return Operation(op) in self._assigned
        except ValueError:
            return False

    def sorted_names(self) -> list[str]:
        """Return the names of the assigned operations in alphabetical order."""
        if self._sorted_cache is None:
            self._sorted_cache = sorted(op.value for op in self._assigned)
        return list(self._sorted_cache)


class _OperationAction(argparse.Action):
    def __init__(self, option_strings, dest, operations: OperationSet, **kwargs) -> None:
        super().__init__(option_strings, dest, **kwargs)
        self._operations = operations

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        try:
            self._operations.add(values)
        except ValueError as err:
            raise argparse.ArgumentError(self, str(err)) from err
        setattr(namespace, self.dest, self._operations)


def add_operation_flag(
    parser: argparse.ArgumentParser, operations: OperationSet
) -> None:
    """Register the repeatable --operation flag, feeding values into operations."""
    parser.add_argument(
        "--operation",
        "-operation",
        dest="operation",
        action=_OperationAction,
        operations=operations,
        default=operations,
        metavar="OPERATION",
        help=(
            "The operation to be performed by this instance. e.g. audit, webhook. "
            "This flag can be declared more than once. Omitting will default to "
            "supporting all operations."
        ),
    )


def parse_operations(argv: Optional[Sequence[str]] = None) -> OperationSet:
    """Parse --operation flags from argv; raise ValueError on bad input."""
    operations = OperationSet()
    parser = argparse.ArgumentParser(exit_on_error=False, add_help=False)
    add_operation_flag(parser, operations)
    try:
        _, extra = parser.parse_known_args(list(argv) if argv is not None else [])
    except argparse.ArgumentError as err:
        raise ValueError(str(err)) from err
    if extra:
        raise ValueError(f"unrecognized arguments: {' '.join(extra)}")
    return operations