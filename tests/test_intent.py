import pytest

from semsearch.search.intent import CATALOG_KEYWORDS, classify_intent


@pytest.mark.parametrize(
    "query",
    ["buy waterproof boots on sale", "best price for hiking boots", "shipping cost"],
)
def test_catalog_intent(query):
    result = classify_intent(query)
    assert result.suggested_type == "catalog"
    assert 0 < result.confidence <= 0.9


@pytest.mark.parametrize(
    "query",
    ["how to clean leather boots", "what is a gore-tex membrane", "beginner guide to trail running"],
)
def test_content_intent(query):
    assert classify_intent(query).suggested_type == "content"


@pytest.mark.parametrize("query", ["boots", "product guide"])
def test_ambiguous_queries_suggest_both(query):
    result = classify_intent(query)
    assert result.suggested_type == "both"
    assert result.confidence == 0.5


def test_confidence_is_share_of_keyword_set():
    result = classify_intent("buy now, free shipping")
    assert result.confidence == pytest.approx(2 / len(CATALOG_KEYWORDS))


def test_inflected_keywords_count():
    result = classify_intent("best prices for hiking boots")
    assert result.suggested_type == "catalog"
    assert result.confidence == pytest.approx(1 / len(CATALOG_KEYWORDS))


def test_plural_keywords_outweigh_fewer_content_matches():
    result = classify_intent("buying guide? no: discounts and offers on shoes")
    assert result.suggested_type == "catalog"
    assert result.confidence == pytest.approx(3 / len(CATALOG_KEYWORDS))


def test_multi_word_keywords():
    assert classify_intent("is it in stock").suggested_type == "catalog"
