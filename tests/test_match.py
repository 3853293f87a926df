import pytest

from mutagate.match import (
    ApplyTo,
    Kinds,
    LabelSelector,
    LabelSelectorRequirement,
    Match,
    Scope,
    SelectorError,
    applies_to,
    matches,
)


def make_object(kind, group, namespace, name, labels=None):
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    if labels is not None:
        metadata["labels"] = labels
    return {"apiVersion": f"{group}/v1", "kind": kind, "metadata": metadata}


def make_namespace(name, labels=None):
    metadata = {"name": name}
    if labels is not None:
        metadata["labels"] = labels
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": metadata}


LABELS = {"labelname": "labelvalue"}
NS_WITH_LABELS = {"metadata": {"name": "foo", "labels": dict(LABELS)}}

MATCH_CASES = [
    ("match kind with *", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["*"], api_groups=["*"])]), {}, True),
    ("group and no kinds", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["notmatching", "neithermatching"], api_groups=["*"]),
                  Kinds(api_groups=["*"])]), {}, True),
    ("kind and no group", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["kind", "neithermatching"])]), {}, True),
    ("kind and group explicit", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["notmatching", "neithermatching"], api_groups=["*"]),
                  Kinds(kinds=["notmatching", "kind"], api_groups=["*"])]), {}, True),
    ("kind group second matches", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["notmatching", "neithermatching"], api_groups=["*"]),
                  Kinds(kinds=["notmatching", "kind"], api_groups=["*"])]), {}, True),
    ("kind group don't match", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["notmatching", "neithermatching"], api_groups=["*"]),
                  Kinds(kinds=["notmatching", "kind"], api_groups=["notmatchinggroup"])]), {}, False),
    ("namespace matches", make_object("kind", "group", "namespace", "name"),
     Match(namespaces=["nonmatching", "namespace"]), {}, True),
    ("namespace not in list", make_object("kind", "group", "namespace", "name"),
     Match(namespaces=["nonmatching", "notmatchingeither"]), {}, False),
    ("namespace fails if cluster scoped", make_object("kind", "group", "namespace", "name"),
     Match(namespaces=["nonmatching", "namespace"], scope=Scope.CLUSTER), {}, False),
    ("namespace is excluded", make_object("kind", "group", "namespace", "name"),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])],
           namespaces=["nonmatching", "namespace"], excluded_namespaces=["namespace"]), {}, False),
    ("namespace scoped fails if cluster scoped", make_object("kind", "group", "", "name"),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])], scope=Scope.NAMESPACED), {}, False),
    ("label selector", make_object("kind", "group", "", "name", dict(LABELS)),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])],
           label_selector=LabelSelector(match_labels=dict(LABELS))), {}, True),
    ("label selector not matching", make_object("kind", "group", "", "name", dict(LABELS)),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])],
           label_selector=LabelSelector(match_labels={"labelname": "labelvalue", "labelnotmatching": "foo"})),
     {}, False),
    ("namespace selector", make_object("kind", "group", "", "name"),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])],
           namespace_selector=LabelSelector(match_labels=dict(LABELS))), NS_WITH_LABELS, True),
    ("namespace selector not matching", make_object("kind", "group", "foo", "name"),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])],
           namespace_selector=LabelSelector(match_labels={"labelname": "labelvalue", "foo": "bar"})),
     NS_WITH_LABELS, False),
    ("namespace selector cluster scoped", make_object("kind", "group", "", "name"),
     Match(kinds=[Kinds(kinds=["kind"], api_groups=["group"])],
           namespace_selector=LabelSelector(match_labels={"labelname": "labelvalue", "foo": "bar"})),
     None, True),
    ("namespace selector on namespace object", make_namespace("namespace", dict(LABELS)),
     Match(namespace_selector=LabelSelector(match_labels=dict(LABELS))), None, True),
    ("namespace selector on namespace object not matching", make_namespace("namespace", dict(LABELS)),
     Match(namespace_selector=LabelSelector(match_labels={"labelname": "badvalue"})), None, False),
]


@pytest.mark.parametrize(
    "obj,match,ns,expected",
    [case[1:] for case in MATCH_CASES],
    ids=[case[0] for case in MATCH_CASES],
)
def test_matches(obj, match, ns, expected):
    assert matches(match, obj, ns) is expected


def test_matches_requires_namespace_for_selector():
    obj = make_object("kind", "group", "foo", "name")
    match = Match(namespace_selector=LabelSelector(match_labels=dict(LABELS)))
    with pytest.raises(ValueError):
        matches(match, obj, None)


def test_matches_invalid_label_selector_raises():
    obj = make_object("kind", "group", "", "name", dict(LABELS))
    match = Match(label_selector=LabelSelector(
        match_expressions=[LabelSelectorRequirement("labelname", "In", [])]))
    with pytest.raises(SelectorError):
        matches(match, obj, {})


def test_matches_invalid_namespace_selector_raises_even_when_cluster_scoped():
    obj = make_object("kind", "group", "", "name")
    match = Match(namespace_selector=LabelSelector(
        match_expressions=[LabelSelectorRequirement("k", "Bogus")]))
    with pytest.raises(SelectorError):
        matches(match, obj, None)


def test_matches_rejects_non_mapping_metadata():
    with pytest.raises(TypeError):
        matches(Match(), {"kind": "kind", "metadata": "oops"}, {})


@pytest.mark.parametrize(
    "requirement,labels,expected",
    [
        (LabelSelectorRequirement("env", "In", ["prod", "dev"]), {"env": "dev"}, True),
        (LabelSelectorRequirement("env", "In", ["prod", "dev"]), {"env": "qa"}, False),
        (LabelSelectorRequirement("env", "In", ["prod"]), {}, False),
        (LabelSelectorRequirement("env", "NotIn", ["prod"]), {}, True),
        (LabelSelectorRequirement("env", "NotIn", ["prod"]), {"env": "prod"}, False),
        (LabelSelectorRequirement("env", "Exists"), {"env": "x"}, True),
        (LabelSelectorRequirement("env", "Exists"), {}, False),
        (LabelSelectorRequirement("env", "DoesNotExist"), {}, True),
        (LabelSelectorRequirement("env", "DoesNotExist"), {"env": "x"}, False),
    ],
)
def test_label_selector_expressions(requirement, labels, expected):
    assert LabelSelector(match_expressions=[requirement]).matches(labels) is expected


def test_empty_label_selector_matches_everything():
    assert LabelSelector().matches({"any": "thing"}) is True


@pytest.mark.parametrize(
    "selector",
    [
        LabelSelector(match_expressions=[LabelSelectorRequirement("env", "Unknown", ["a"])]),
        LabelSelector(match_expressions=[LabelSelectorRequirement("env", "Exists", ["a"])]),
        LabelSelector(match_labels={"bad key": "value"}),
        LabelSelector(match_labels={"key": "bad value"}),
        LabelSelector(match_labels={"Bad.Prefix/key": "value"}),
    ],
)
def test_invalid_selectors_raise(selector):
    with pytest.raises(SelectorError):
        selector.matches({})


APPLY_CASES = [
    ("one item applies", [ApplyTo(groups=["group"], kinds=["kind"], versions=["v1"])], True),
    ("one item many columns",
     [ApplyTo(groups=["aa", "bb", "group"], kinds=["aa", "bb", "kind"], versions=["aa", "bb", "v1"])], True),
    ("first doesn't match second does",
     [ApplyTo(groups=["group"], kinds=["not matching"], versions=["v1"]),
      ApplyTo(groups=["group"], kinds=["kind"], versions=["v1"])], True),
    ("none matching",
     [ApplyTo(groups=["group"], kinds=["not matching"], versions=["v1"]),
      ApplyTo(groups=["neither", "neither1"], kinds=["kind"], versions=["v1"])], False),
]


@pytest.mark.parametrize(
    "apply_to,expected",
    [case[1:] for case in APPLY_CASES],
    ids=[case[0] for case in APPLY_CASES],
)
def test_applies_to(apply_to, expected):
    obj = make_object("kind", "group", "namespace", "name")
    assert applies_to(apply_to, obj) is expected