from javatools import ACC_ABSTRACT, ACC_ANNOTATION, ACC_INTERFACE, ACC_PROTECTED, ACC_PUBLIC  # type: ignore

from umlink.assembler import (
    SelectFilter,
    build_cir_graph,
    link_diagram,
    select_filters,
    should_group_by_package,
    should_include_classfile,
)
from umlink.cir.model import Relation, RelationKind
from umlink.config import MergedConfig
from umlink.mermaid import Diagram, parse_mermaid, serialize_diagram

SKIP = "com.rocket.radar.Skip"
AGGREGATE = "com.rocket.radar.Aggregate"
COMPOSE = "com.rocket.radar.Compose"

CONFIG = MergedConfig(skip=SKIP, aggregate=AGGREGATE, compose=COMPOSE)


def radar_classfiles(builder):
    """Small app: MainActivity, notifications.*, qr.QRGenerator and an annotation type."""
    main = builder("com/rocket/radar/MainActivity", super_name="com/rocket/radar/BaseActivity")
    main.add_field(
        "repo",
        "Lcom/rocket/radar/notifications/NotificationRepository;",
        annotations=[main.annotation(COMPOSE, otherCard="1", label="owns")],
    )
    main.add_method("onCreate", "(Lcom/rocket/radar/Bundle;)V", access=ACC_PROTECTED)

    notification = builder("com/rocket/radar/notifications/Notification")
    notification.add_field("title", "Ljava/lang/String;")

    repo = builder("com/rocket/radar/notifications/NotificationRepository")
    repo.add_field(
        "items",
        "Lcom/rocket/radar/notifications/Notification;",
        annotations=[repo.annotation(AGGREGATE, selfCard="1", otherCard="*")],
    )

    adapter = builder("com/rocket/radar/notifications/NotificationAdapter")
    adapter.annotate(adapter.annotation(SKIP))
    adapter.add_interface("com/rocket/radar/Adapter")
    adapter.add_field(
        "source",
        "Lcom/rocket/radar/notifications/NotificationRepository;",
        annotations=[adapter.annotation(AGGREGATE)],
    )

    qr = builder("com/rocket/radar/qr/QRGenerator")
    qr.add_interface("com/rocket/radar/Generator")

    skip = builder(
        "com/rocket/radar/Skip",
        access=ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT | ACC_ANNOTATION,
    )

    return {
        "MainActivity": main.parse(),
        "Notification": notification.parse(),
        "NotificationRepository": repo.parse(),
        "NotificationAdapter": adapter.parse(),
        "QRGenerator": qr.parse(),
        "Skip": skip.parse(),
    }


def class_names(diagram):
    return {(ns, model.name) for ns, model in diagram.classes()}


def test_directive_helpers():
    assert should_group_by_package({"groupPackage": True})
    assert not should_group_by_package({"groupPackage": "yes"})
    assert not should_group_by_package({})

    assert select_filters({}) is None
    assert select_filters({"select": "com.example"}) == []
    assert select_filters({"select": [{"field": "package", "pattern": "a.b"}, {"field": 3}, "x"]}) == [
        SelectFilter(field="package", pattern="a.b")
    ]


def test_select_matches_dotted_package(classfile_builder):
    cf = classfile_builder("com/rocket/radar/qr/QRGenerator").parse()
    assert should_include_classfile(None, cf)
    assert should_include_classfile([SelectFilter(field="package", pattern="com.rocket.radar.qr")], cf)
    assert not should_include_classfile([SelectFilter(field="package", pattern="com.rocket.radar")], cf)
    assert not should_include_classfile([SelectFilter(field="name", pattern="com.rocket.radar.qr")], cf)
    assert not should_include_classfile([], cf)


def test_link_without_grouping(classfile_builder):
    diagram, _ = link_diagram(radar_classfiles(classfile_builder), Diagram(), CONFIG)

    # annotation types and skipped classes never show up
    assert class_names(diagram) == {
        ("", "MainActivity"),
        ("", "Notification"),
        ("", "NotificationRepository"),
        ("", "QRGenerator"),
    }
    # class-name order, sources in field / super / interface order
    assert [(r.tail, r.head, r.kind) for r in diagram.relations] == [
        ("MainActivity", "NotificationRepository", RelationKind.COMPOSITION),
        ("MainActivity", "BaseActivity", RelationKind.INHERITANCE),
        ("NotificationRepository", "Notification", RelationKind.AGGREGATION),
        ("QRGenerator", "Generator", RelationKind.REALIZATION),
    ]
    repo_rel = diagram.relations[2]
    assert (repo_rel.cardinality_tail, repo_rel.cardinality_head) == ("1", "*")


def test_link_with_grouping(classfile_builder):
    diagram = parse_mermaid("---\numlink:\n  groupPackage: true\n---\nclassDiagram\n")
    diagram, _ = link_diagram(radar_classfiles(classfile_builder), diagram, CONFIG)

    assert class_names(diagram) == {
        ("", "MainActivity"),
        ("notifications", "Notification"),
        ("notifications", "NotificationRepository"),
        ("qr", "QRGenerator"),
    }


def test_select_directive(classfile_builder):
    text = (
        "---\n"
        "umlink:\n"
        "  groupPackage: true\n"
        "  select:\n"
        "    - field: package\n"
        "      pattern: com.rocket.radar.notifications\n"
        "---\n"
        "classDiagram\n"
    )
    diagram, _ = link_diagram(radar_classfiles(classfile_builder), parse_mermaid(text), CONFIG)

    # base prefix comes from the selected classes only
    assert class_names(diagram) == {("", "Notification"), ("", "NotificationRepository")}
    assert [(r.tail, r.head) for r in diagram.relations] == [("NotificationRepository", "Notification")]


def test_empty_select_includes_nothing(classfile_builder):
    diagram = parse_mermaid("---\numlink:\n  select: []\n---\nclassDiagram\n")
    diagram, graph = link_diagram(radar_classfiles(classfile_builder), diagram, CONFIG)
    assert class_names(diagram) == set()
    assert diagram.relations == []
    assert graph.to_debug_json() == {"nodes": [], "edges": []}


def test_existing_classes_replaced_and_relations_appended(classfile_builder):
    text = (
        "classDiagram\n"
        "class Legacy {\n"
        "  +old: int\n"
        "}\n"
        "QRGenerator ..|> Generator\n"
    )
    diagram, _ = link_diagram(radar_classfiles(classfile_builder), parse_mermaid(text), CONFIG)

    assert ("", "Legacy") not in class_names(diagram)
    realizations = [r for r in diagram.relations if (r.tail, r.head) == ("QRGenerator", "Generator")]
    # kept from the input and appended again, never deduplicated
    assert len(realizations) == 2
    assert diagram.relations[0] == Relation(
        "QRGenerator", "Generator", RelationKind.REALIZATION, realizations[0].line
    )


def test_skipped_class_is_still_a_relation_target(classfile_builder):
    b = classfile_builder("com/example/Computer")
    b.add_field("hidden", "Lcom/example/Hidden;", annotations=[b.annotation("com.example.Aggregate")])
    hidden = classfile_builder("com/example/Hidden")
    hidden.annotate(hidden.annotation("com.example.Skip"))
    classfiles = {"Computer": b.parse(), "Hidden": hidden.parse()}

    config = MergedConfig(skip="com.example.Skip", aggregate="com.example.Aggregate")
    diagram, _ = link_diagram(classfiles, Diagram(), config)

    assert class_names(diagram) == {("", "Computer")}
    assert [(r.tail, r.head) for r in diagram.relations] == [("Computer", "Hidden")]


def test_cir_graph_debug_json(classfile_builder):
    graph = build_cir_graph(radar_classfiles(classfile_builder), {"groupPackage": True}, CONFIG)
    data = graph.to_debug_json()

    class_nodes = {n["id"]: n for n in data["nodes"] if n["kind"] == "Class"}
    assert class_nodes["Notification"]["namespace"] == "notifications"
    assert class_nodes["MainActivity"]["attrs"]["members"][0]["member"] == "Method"
    refs = {n["id"] for n in data["nodes"] if n["kind"] == "Ref"}
    assert refs == {"BaseActivity", "Generator"}
    assert ("MainActivity", "BaseActivity", "inheritance") in {(e["src"], e["dst"], e["type"]) for e in data["edges"]}


def test_round_trip_after_linking(classfile_builder):
    diagram = parse_mermaid("---\numlink:\n  groupPackage: true\n---\nclassDiagram\n")
    diagram, _ = link_diagram(radar_classfiles(classfile_builder), diagram, CONFIG)
    reparsed = parse_mermaid(serialize_diagram(diagram))

    assert class_names(reparsed) == class_names(diagram)
    for ns, model in diagram.classes():
        again = reparsed.namespaces[ns].classes[model.name]
        assert sorted(map(repr, again.members)) == sorted(map(repr, model.members))
        assert again.annotations == model.annotations
    assert sorted(map(repr, reparsed.relations)) == sorted(map(repr, diagram.relations))
