import pytest

from conceptmap.collaborators import BranchSuggestion, ExpandResult
from conceptmap.model import Category, ConceptLink, ConceptNode, Relation


def test_expand_payload_skips_malformed_entries():
    result = ExpandResult.from_payload(
        {
            "nodes": [
                {"id": "durkheim", "label": "Emile Durkheim", "type": "person", "year": 1895},
                {"label": "missing id"},
                {"id": "anomie", "label": "Anomie", "type": "feeling"},
            ],
            "links": [
                {"source": "root", "target": "durkheim", "relation": "INFLUENCED_BY"},
                {"source": "root"},
            ],
        }
    )

    assert [node.id for node in result.nodes] == ["durkheim"]
    assert result.links == [ConceptLink("root", "durkheim", Relation.INFLUENCED_BY)]
    assert not result.is_empty


def test_fallback_links_connect_unlinked_results_to_anchor():
    result = ExpandResult(nodes=[ConceptNode(id="a", label="A"), ConceptNode(id="b", label="B")])

    linked = result.with_fallback_links("root")

    assert linked.links == [ConceptLink("root", "a"), ConceptLink("root", "b")]
    assert result.links == []


def test_fallback_links_leave_linked_results_alone():
    result = ExpandResult(nodes=[ConceptNode(id="a", label="A")], links=[ConceptLink("a", "root")])

    assert result.with_fallback_links("root") is result
    assert ExpandResult().with_fallback_links("root").is_empty


def test_branch_suggestion_builds_child_of_parent():
    parent = ConceptNode(id="marx", label="Karl Marx", category=Category.PERSON, year=1867)
    suggestion = BranchSuggestion.from_payload(
        {
            "label": "Critical Theory",
            "description": "Frankfurt School critique of society.",
            "type": "theory",
            "associatedTheorist": "Adorno",
            "relation": "EXPANDS_UPON",
        }
    )

    result = suggestion.to_expand(parent, "evolved-1", parent_position=(10.0, 20.0))

    (node,) = result.nodes
    assert node.id == "evolved-1"
    assert node.category is Category.THEORY
    assert node.year == 1867
    assert node.mastery == 0.0
    assert node.unlocked
    assert node.associated_theorist == "Adorno"
    assert node.position_hint == (60.0, 70.0)
    assert result.links == [ConceptLink("marx", "evolved-1", Relation.EXPANDS_UPON)]


def test_branch_without_parent_position_has_no_hint():
    parent = ConceptNode(id="root", label="Sociology", category=Category.ROOT)

    result = BranchSuggestion(label="Symbolic Interactionism").to_expand(parent, "evolved-2")

    assert result.nodes[0].position_hint is None
    assert result.nodes[0].category is Category.CONCEPT


def test_branch_suggestion_cannot_be_root():
    with pytest.raises(ValueError):
        BranchSuggestion(label="Another root", category=Category.ROOT)
