import pytest

from conceptmap.model import (
    Category,
    ConceptLink,
    ConceptNode,
    GraphModel,
    Relation,
    clamp_mastery,
    node_from_mapping,
)


def _build_model(**kwargs) -> GraphModel:
    root = ConceptNode(id="root", label="Sociology", category=Category.ROOT)
    return GraphModel(root, **kwargs)


def _marx() -> ConceptNode:
    return ConceptNode(id="marx", label="Karl Marx", category=Category.PERSON, year=1867)


def test_model_requires_root_category():
    with pytest.raises(ValueError):
        GraphModel(ConceptNode(id="a", label="A"))


def test_duplicate_ids_are_rejected_with_warning():
    model = _build_model()
    warnings = model.add_nodes([_marx(), ConceptNode(id="marx", label="Someone else")])

    assert [w.kind for w in warnings] == ["duplicate-node"]
    assert warnings[0].subject == "marx"
    assert model.get("marx").label == "Karl Marx"
    assert len(model) == 2


def test_second_root_is_rejected():
    model = _build_model()
    warnings = model.add_nodes([ConceptNode(id="other", label="Other", category=Category.ROOT)])

    assert [w.kind for w in warnings] == ["extra-root"]
    assert "other" not in model


def test_malformed_node_payload_is_reported():
    model = _build_model()
    warnings = model.add_nodes([{"label": "No id"}, {"id": "x", "label": "X", "category": "planet"}, _marx()])

    assert [w.kind for w in warnings] == ["invalid-node", "invalid-node"]
    assert "x" not in model
    assert "marx" in model


def test_links_with_unknown_endpoint_are_dropped():
    model = _build_model()
    model.add_nodes([_marx()])
    version = model.version

    warnings = model.add_links([ConceptLink("root", "ghost"), ConceptLink("root", "marx")])

    assert [w.kind for w in warnings] == ["unknown-endpoint"]
    assert model.links == (ConceptLink("root", "marx", Relation.RELATES_TO),)
    assert model.version == version + 1


def test_malformed_link_relation_is_reported():
    model = _build_model()
    model.add_nodes([_marx()])

    warnings = model.add_links([{"source": "root", "target": "marx", "relation": "LOVES"}])

    assert [w.kind for w in warnings] == ["invalid-relation"]
    assert model.links == ()


def test_expand_accepts_nodes_referenced_by_same_batch_links():
    model = _build_model()
    warnings = model.expand(
        [_marx(), {"id": "weber", "label": "Max Weber", "type": "person", "year": 1905}],
        [
            {"source": "root", "target": "marx"},
            {"source": "marx", "target": "weber", "relation": "CRITIQUES"},
        ],
    )

    assert warnings == []
    assert model.node_ids() == ["root", "marx", "weber"]
    assert model.links[1].relation is Relation.CRITIQUES


def test_on_warning_callback_receives_every_warning():
    received = []
    model = _build_model(on_warning=received.append)

    model.expand([_marx(), _marx()], [ConceptLink("marx", "nowhere")])

    assert [w.kind for w in received] == ["duplicate-node", "unknown-endpoint"]


def test_node_from_mapping_accepts_camel_case_payloads():
    node = node_from_mapping(
        {
            "id": "weber",
            "label": "Max Weber",
            "type": "person",
            "year": "1905",
            "keyDefinition": "Verstehen",
            "seminalWorks": ["The Protestant Ethic"],
            "associatedTheorist": "Weber",
            "mastery": 250,
            "x": 10,
            "y": -4,
        }
    )

    assert node.category is Category.PERSON
    assert node.year == 1905
    assert node.key_definition == "Verstehen"
    assert node.seminal_works == ("The Protestant Ethic",)
    assert node.associated_theorist == "Weber"
    assert node.mastery == 100.0
    assert node.position_hint == (10.0, -4.0)


def test_mastery_is_clamped_and_restyle_replaces_record():
    model = _build_model()
    model.add_nodes([_marx()])
    before = model.get("marx")

    assert model.set_mastery("marx", 140) is True
    assert model.get("marx").mastery == 100.0
    assert before.mastery == 0.0

    model.set_mastery("marx", -3)
    assert model.get("marx").mastery == 0.0
    assert clamp_mastery(42.5) == 42.5


def test_restyle_of_unknown_node_is_ignored():
    model = _build_model()
    version = model.version

    assert model.set_mastery("ghost", 50) is False
    assert model.set_unlocked("ghost", False) is False
    assert model.version == version


def test_unchanged_restyle_keeps_version():
    model = _build_model()
    model.add_nodes([_marx()])
    version = model.version

    model.set_unlocked("marx", True)
    model.set_mastery("marx", 0)
    assert model.version == version

    model.set_unlocked("marx", False)
    assert model.version == version + 1
    assert model.get("marx").unlocked is False


def test_snapshot_is_cached_and_isolated_from_later_mutation():
    model = _build_model()
    snapshot = model.snapshot()

    assert model.snapshot() is snapshot

    model.add_nodes([_marx()])
    later = model.snapshot()

    assert len(snapshot) == 1
    assert "marx" not in snapshot
    assert len(later) == 2
    assert later.version > snapshot.version


def test_snapshot_neighbors_ignore_self_loops():
    model = _build_model()
    model.add_nodes([_marx()])
    model.add_links([ConceptLink("root", "root"), ConceptLink("root", "marx")])
    snapshot = model.snapshot()

    assert len(snapshot.links) == 2
    assert snapshot.links[0].is_self_loop
    assert snapshot.neighbors("root") == ("marx",)
    assert snapshot.degree("marx") == 1
    assert snapshot.root.id == "root"
