import dataclasses
import math
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sfx_categorizer.similarity import SimilarityClassifier, SimilarityIndex, TfidfVector, cosine
from sfx_categorizer.tokenizer import normalize


def _gun_library() -> list:
    """300 labelled documents, 60 of them gunshots."""
    corpus = []
    variants = ["pistol", "rifle", "shotgun", "close", "distant"]
    for i in range(60):
        corpus.append((normalize(f"gunshot_{variants[i % 5]}_{i:03d}"), "Weapons/Guns"))
    others = [
        ("rain_heavy_roof", "Weather/Rain"),
        ("door_slam_wood", "Doors"),
        ("wind_howling_tree", "Weather/Wind"),
        ("footstep_gravel_walk", "Foley/Footsteps"),
    ]
    for i in range(240):
        stem, category = others[i % 4]
        corpus.append((normalize(f"{stem}_{i:03d}"), category))
    return corpus


def _two_category_library() -> list:
    return [
        ("rain heavy roof", "Weather/Rain"),
        ("rain light window", "Weather/Rain"),
        ("rain storm gutter", "Weather/Rain"),
        ("rain drizzle leaves", "Weather/Rain"),
        ("rain downpour street", "Weather/Rain"),
        ("door slam wood", "Doors"),
        ("door creak metal", "Doors"),
        ("door knock oak", "Doors"),
        ("door latch brass", "Doors"),
        ("door close car", "Doors"),
    ]


@pytest.fixture(scope="module")
def gun_index() -> SimilarityIndex:
    return SimilarityIndex.build(_gun_library())


# ============================================================================
# BUILD
# ============================================================================

def test_empty_index_answers_none() -> None:
    index = SimilarityIndex.build([])
    assert index.is_empty
    classifier = SimilarityClassifier()
    assert classifier.infer("gunshot rifle", index) == (None, 0.0)
    assert classifier.infer("", index) == (None, 0.0)
    assert classifier.infer("gunshot rifle", None) == (None, 0.0)


def test_documents_without_terms_are_dropped() -> None:
    index = SimilarityIndex.build([("", "A"), ("ab", "B"), ("  ", "C")])
    assert index.is_empty
    assert index.stats() == {"documents": 0, "vocabulary": 0, "categories": 0}


def test_idf_is_smoothed() -> None:
    index = SimilarityIndex.build([("door slam", "Doors"), ("rain roof", "Rain"), ("rain window", "Rain")])
    assert index.idf["door"] == pytest.approx(math.log(4 / 2) + 1, rel=1e-6)
    assert index.idf["rain"] == pytest.approx(math.log(4 / 3) + 1, rel=1e-6)


def test_term_frequency_is_sublinear() -> None:
    index = SimilarityIndex.build([("rain rain rain", "Rain"), ("door slam", "Doors")])
    weight = index.docs[0].vector.weights["rain"]
    assert weight == pytest.approx((1 + math.log(3)) * index.idf["rain"], rel=1e-5)


def test_vectors_have_floored_norms(gun_index: SimilarityIndex) -> None:
    assert all(doc.vector.norm >= 1e-6 for doc in gun_index.docs)
    for centroid in gun_index.centroids.values():
        assert centroid.norm == pytest.approx(1.0, rel=1e-4)


def test_inverted_index_points_at_documents(gun_index: SimilarityIndex) -> None:
    postings = gun_index.inverted_index["gunshot"]
    assert len(postings) == 60
    assert all(gun_index.docs[i].category == "Weapons/Guns" for i in postings)
    assert list(postings) == sorted(postings)


def test_categories_keep_corpus_order(gun_index: SimilarityIndex) -> None:
    assert gun_index.categories == (
        "Weapons/Guns",
        "Weather/Rain",
        "Doors",
        "Weather/Wind",
        "Foley/Footsteps",
    )


def test_index_is_immutable(gun_index: SimilarityIndex) -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        gun_index.docs = ()  # type: ignore[misc]
    with pytest.raises(TypeError):
        gun_index.idf["new"] = 1.0  # type: ignore[index]
    with pytest.raises(TypeError):
        gun_index.docs[0].vector.weights["new"] = 1.0  # type: ignore[index]


# ============================================================================
# QUERY
# ============================================================================

def test_gunshot_query_finds_guns(gun_index: SimilarityIndex) -> None:
    classifier = SimilarityClassifier()
    category, sim = classifier.infer(normalize("new_gunshot_take"), gun_index)
    assert category == "Weapons/Guns"
    assert 0.18 <= sim <= 1.0


def test_identical_document_scores_one() -> None:
    corpus = _two_category_library()
    index = SimilarityIndex.build(corpus)
    query = index.vectorize("door slam wood")
    assert query is not None
    assert cosine(query, index.docs[5].vector) == pytest.approx(1.0, abs=1e-5)

    top = SimilarityClassifier().rank(query, index, 1)
    assert top[0][1] == 5
    category, sim = SimilarityClassifier().infer("door slam wood", index)
    assert category == "Doors"
    assert sim == pytest.approx(1.0, abs=1e-5)


def test_unseen_vocabulary_contributes_nothing() -> None:
    index = SimilarityIndex.build(_two_category_library())
    assert SimilarityClassifier().infer("zzzz qqqq", index) == (None, 0.0)


def test_centroid_fallback_when_neighbours_are_not_close_enough() -> None:
    index = SimilarityIndex.build(_two_category_library())
    text = "rain drizzle roof"
    query = index.vectorize(text)
    expected_category, expected_sim = SimilarityClassifier.nearest_centroid(query, index)
    assert expected_category == "Weather/Rain"

    classifier = SimilarityClassifier(min_similarity=1.01, min_centroid_similarity=0.05)
    category, sim = classifier.infer(text, index)
    assert category == "Weather/Rain"
    assert sim == pytest.approx(expected_sim)
    assert sim >= 0.05


def test_nothing_confident_returns_best_seen_similarity() -> None:
    index = SimilarityIndex.build(_two_category_library())
    text = "rain drizzle roof"
    query = index.vectorize(text)
    best_sim = SimilarityClassifier().rank(query, index, 1)[0][0]
    _cat, cent_sim = SimilarityClassifier.nearest_centroid(query, index)

    category, sim = SimilarityClassifier().infer(text, index, min_similarity=1.01, min_centroid_similarity=1.01)
    assert category is None
    assert sim == pytest.approx(max(best_sim, cent_sim))
    assert sim > 0.0


def test_vote_ties_go_to_the_higher_ranked_document() -> None:
    index = SimilarityIndex.build([("metal clang", "A"), ("metal clang", "B")])
    category, sim = SimilarityClassifier().infer("metal clang", index)
    assert category == "A"
    assert sim == pytest.approx(1.0, abs=1e-5)


def test_top_k_limits_the_vote() -> None:
    corpus = [("door slam wood", "Doors")] + [("door slam", "Other")] * 3
    index = SimilarityIndex.build(corpus)
    # With k=1 only the identical document votes
    category, _sim = SimilarityClassifier().infer("door slam wood", index, top_k=1)
    assert category == "Doors"
    category, _sim = SimilarityClassifier().infer("door slam wood", index, top_k=4)
    assert category == "Other"


def test_queries_are_deterministic(gun_index: SimilarityIndex) -> None:
    again = SimilarityIndex.build(_gun_library())
    classifier = SimilarityClassifier()
    for text in ["new gunshot take", "rain on the roof", "creaky door", "wind howling"]:
        assert classifier.infer(text, gun_index) == classifier.infer(text, again)


def test_cosine_is_symmetric_across_vector_sizes() -> None:
    idf = {"rain": 1.5, "roof": 2.0, "heavy": 1.2, "tin": 2.5}
    short = TfidfVector.from_counts({"rain": 1}, idf)
    long = TfidfVector.from_counts({"rain": 2, "roof": 1, "heavy": 1, "tin": 3}, idf)
    assert len(short) == 1
    assert len(long) == 4
    assert cosine(short, long) == pytest.approx(cosine(long, short))
    assert 0.0 < cosine(short, long) < 1.0
    assert len(TfidfVector.from_counts({"unknown": 4}, idf)) == 0
