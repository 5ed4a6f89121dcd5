import uuid

from doc_agent.retrieval.search import group_hits_by_document
from doc_agent.types import SimilarityHit
from conftest import make_document, make_page


def test_hits_group_by_document_in_best_hit_order() -> None:
    session_id = uuid.uuid4()
    doc_a = make_document(session_id, "A")
    doc_b = make_document(session_id, "B")
    p1 = make_page(doc_a, 1, "one", [1.0])
    p2 = make_page(doc_a, 2, "two", [1.0])
    p3 = make_page(doc_b, 3, "three", [1.0])
    hits = [
        SimilarityHit(document=doc_a, page=p1, distance=0.1),
        SimilarityHit(document=doc_b, page=p3, distance=0.2),
        SimilarityHit(document=doc_a, page=p2, distance=0.3),
    ]

    groups = group_hits_by_document(hits)

    assert [g.document.name for g in groups] == ["A", "B"]
    assert [p.id for p in groups[0].pages] == [p1.id, p2.id]
    assert [p.number for p in groups[0].pages] == [1, 2]
    assert [p.distance for p in groups[1].pages] == [0.2]


def test_page_numbers_can_be_stripped() -> None:
    document = make_document(uuid.uuid4(), "A")
    hits = [SimilarityHit(document=document, page=make_page(document, 4, "x", [1.0]), distance=0.0)]

    groups = group_hits_by_document(hits, include_page_numbers=False)

    assert groups[0].pages[0].number is None
    assert groups[0].pages[0].text == "x"


def test_no_hits_no_groups() -> None:
    assert group_hits_by_document([]) == []
