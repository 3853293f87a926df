# mutagate

`mutagate` changes Kubernetes-style objects that are held as plain Python
dictionaries. A mutation names a location path and a value to set at that
location. A location path looks like this:

    spec.containers["name": "sidecar"].securityContext

The package has no third-party dependencies and needs Python 3.10 or later.

## Modules

- `mutagate.token` turns a path into tokens. `Scanner` returns one `Token`
  per call to `next_token()`. Iterating over a `Scanner` stops at the first
  `EOF` or `ERROR` token. `tokenize(text)` returns that sequence as a list.
  After a scanning failure, the `ScanError` is kept on `Scanner.error`.
- `mutagate.parser.parse(text)` returns a `Path` whose `nodes` are
  `ObjectNode` (a field reference) and `ListNode` (a `[key: value]` or
  `[key: *]` list selector) entries. A malformed path raises `ParseError`,
  which is a subclass of `ValueError`.
- `mutagate.mutator` defines the `Mutator` abstract base class and the
  frozen, ordered `ID`. It also provides:
  - `GroupVersionKind`;
  - `group_version_kind(obj)`, which reads `apiVersion` and `kind`;
  - `make_id(obj)`;
  - `unmarshal_value(data)`, which decodes a JSON document and returns its
    `"value"` entry.
- `mutagate.schema.SchemaDB` records the structure that each mutator's path
  implies for every group/version/kind in its `schema_bindings()`. A
  mutator must subclass `MutatorWithSchema` to take part. If a new mutator
  disagrees with one already recorded, `SchemaDB.upsert` raises
  `SchemaError` and restores the previous state. Disagreements include a
  field treated as an object by one mutator and as a list by another, and
  two different list key fields. `sorted_gvks(bindings)` expands `Binding`
  entries into distinct, sorted GVKs.
- `mutagate.match.matches(match, obj, ns)` checks an object against a
  `Match`. It tests `Kinds` entries, `Scope`, included and excluded
  namespaces, a `LabelSelector` on the object's labels and a namespace
  selector.
  - When the object is itself a `Namespace`, the namespace selector is
    tested against the object's own labels.
  - Cluster-scoped objects pass the namespace selector.
  - For namespaced objects the selector is tested against the labels of
    `ns`. `ns` must then be given, or the call raises `ValueError`.
  - A malformed selector raises `SelectorError`.
  - `applies_to(apply_to, obj)` tells whether any `ApplyTo` entry covers
    the object's group, version and kind.
- `mutagate.mutate.mutate(mutator, obj)` walks the mutator's path through
  `obj` and sets `mutator.value()` at the end of it.
  - Missing maps and keyed list entries are created along the way.
  - Globbed list selectors visit every element.
  - A list selector in last position replaces the element with that key,
    or appends a new one. The value must be a dictionary that keeps the
    same key value.
  - A mutator with a true `only_if_missing` attribute leaves an existing
    value alone.
  - When the path does not fit the object, `MutationError` is raised.
- `mutagate.system.System` keeps mutators sorted by `ID`:
  - `upsert` deep-copies the mutator and skips it when `has_diff` reports
    no change. For a `MutatorWithSchema` it first checks the schema and
    raises `SchemaError` on a conflict.
  - `remove` drops a mutator by ID.
  - `mutators()` lists the mutators in ID order.
  - `mutate(obj, ns)` applies every matching mutator, over and over, until
    the object stops changing. It returns whether the object changed. It
    raises `MutationError` when the mutations do not settle within one
    pass more than there are mutators, or when they end on the original
    object.
  - `add_mutation_flag(parser)` adds an `--enable-mutation` boolean option
    to an `argparse` parser.
- `mutagate.operations` keeps the `Operation`s (`audit`, `status`,
  `webhook`) that a process performs:
  - An `OperationSet` starts with all of them.
  - The first call to `add` replaces that default. Later calls add to it.
    `add` accepts comma-separated values and raises `ValueError` on an
    unknown name.
  - `add_operation_flag(parser, operations)` adds a repeatable
    `--operation` / `-operation` option to an `argparse` parser.
  - `parse_operations(argv)` parses an argument list.

## Parsing a path

```python
from mutagate.parser import parse, ParseError

path = parse('spec.containers["name": "sidecar"].ports[name: *].protocol')
for node in path.nodes:
    print(node.node_type(), node)

try:
    parse("spec.")
except ParseError as err:
    print(err)  # trailing separators are forbidden
```

## Writing a mutator and running the system

The package provides the `Mutator` interface but no ready-made mutator
types, so you write your own:

```python
from mutagate.match import Match, matches
from mutagate.mutate import mutate
from mutagate.mutator import ID, Mutator
from mutagate.parser import parse
from mutagate.system import System


class SetValue(Mutator):
    def __init__(self, name, location, value):
        self._id = ID(kind="SetValue", name=name)
        self._location = location
        self._path = parse(location)
        self._value = value
        self.criteria = Match()

    def matches(self, obj, ns):
        return matches(self.criteria, obj, ns)

    def mutate(self, obj):
        mutate(self, obj)

    def id(self):
        return self._id

    def has_diff(self, other):
        return (self.path(), self.value()) != (other.path(), other.value())

    def deep_copy(self):
        return SetValue(self._id.name, self._location, self._value)

    def value(self):
        return self._value

    def path(self):
        return self._path


pod = {"apiVersion": "v1", "kind": "Pod",
       "metadata": {"name": "web", "namespace": "default"}}

system = System()
system.upsert(SetValue("team", "metadata.labels.team", "payments"))
changed = system.mutate(pod, None)
print(changed, pod["metadata"]["labels"])  # True {'team': 'payments'}
```

## Operations

```python
from mutagate.operations import parse_operations

ops = parse_operations(["--operation", "audit,status"])
print(ops.sorted_names())          # ['audit', 'status']
print(ops.is_assigned("webhook"))  # False
print(parse_operations([]))        # [audit status webhook]
```

## What the package does not do

`mutagate` is a library only. It does not provide:

- concrete mutation resource types;
- an admission webhook or any other server;
- a connection to a cluster;
- a command-line program.

You supply `Mutator` implementations and the objects to change. You also
decide how options added with `add_mutation_flag` and `add_operation_flag`
are used.