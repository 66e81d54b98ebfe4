"""
Catalog Vector Store Tests
"""

import pytest

from fakes import FakeEmbedder, catalog_store, make_item, unit_vector
from semsearch.core.errors import ConfigError, ProviderHTTPError
from semsearch.embeddings.models import CatalogItem, CatalogAttributes
from semsearch.search.catalog_store import CatalogFilters, matched_excerpt


@pytest.fixture
def embedder():
    return FakeEmbedder(
        vectors={
            "Trail Boot searchable": unit_vector(0.9),
            "Road Shoe searchable": unit_vector(0.8),
            "Rain Jacket searchable": unit_vector(0.7),
            "Sandal searchable": unit_vector(0.3),
        }
    )


@pytest.fixture
async def store(embedder):
    store = catalog_store(embedder)
    items = [
        make_item("boot", "Trail Boot", category="footwear", brand="Alpine", availability="in_stock"),
        make_item("shoe", "Road Shoe", category="footwear", brand="Swift", availability="out_of_stock"),
        make_item("jacket", "Rain Jacket", category="outerwear", brand="Alpine", availability="in_stock"),
        make_item("sandal", "Sandal", category="footwear", brand="Alpine"),
    ]
    outcome = await store.upsert_batch("shop-1", items)
    assert outcome.processed_count == 4
    return store


async def test_results_ranked_and_thresholded(store):
    hits = await store.query("shop-1", "boots", top_k=10, threshold=0.5)

    assert [h.item_id for h in hits] == ["boot", "shoe", "jacket"]
    assert [h.score for h in hits] == pytest.approx([0.9, 0.8, 0.7])


async def test_filters_are_conjunctive(store):
    hits = await store.query(
        "shop-1",
        "boots",
        top_k=10,
        threshold=0.0,
        filters=CatalogFilters(category="footwear", brand="Alpine"),
    )
    assert [h.item_id for h in hits] == ["boot", "sandal"]


async def test_availability_filter(store):
    hits = await store.query(
        "shop-1",
        "boots",
        top_k=10,
        threshold=0.0,
        filters=CatalogFilters(availability="in_stock"),
    )
    assert {h.item_id for h in hits} == {"boot", "jacket"}


async def test_top_k(store):
    hits = await store.query("shop-1", "boots", top_k=1, threshold=0.0)
    assert [h.item_id for h in hits] == ["boot"]


async def test_hit_carries_attributes(store):
    hit = (await store.query("shop-1", "boots", top_k=1, threshold=0.0))[0]

    assert hit.title == "Trail Boot"
    assert hit.url == "https://shop.example.com/boot"
    assert hit.category == "footwear"
    assert hit.attributes.brand == "Alpine"
    assert hit.matched_text == "Trail Boot searchable"


async def test_missing_threshold(store):
    with pytest.raises(ConfigError):
        await store.query("shop-1", "boots", top_k=10, threshold=None)


async def test_tenants_isolated(store):
    assert await store.query("shop-2", "boots", top_k=10, threshold=0.0) == []
    assert await store.count("shop-1") == 4
    assert await store.count("shop-2") == 0


async def test_price_normalized_to_usd():
    store = catalog_store(FakeEmbedder())
    item = CatalogItem(
        id="kettle",
        title="Kettle",
        attributes=CatalogAttributes(price=100.0, currency="EUR"),
    )
    await store.upsert("shop-1", item)

    hit = (await store.query("shop-1", "kettle", top_k=1, threshold=0.0))[0]

    assert hit.price == pytest.approx(108.0)
    assert hit.attributes.price == 100.0
    assert hit.attributes.currency == "EUR"


async def test_text_synthesized_when_missing():
    embedder = FakeEmbedder()
    store = catalog_store(embedder)
    item = CatalogItem(
        id="kettle",
        title="Steel Kettle",
        description="Boils water fast.",
        attributes=CatalogAttributes(brand="Brewco", price=20.0, currency="USD"),
    )

    assert await store.upsert("shop-1", item) is True

    embedded = embedder.calls[0]
    assert "Steel Kettle" in embedded
    assert "Brewco" in embedded
    assert "budget" in embedded


async def test_failed_item_is_skipped():
    embedder = FakeEmbedder(failures={"Broken searchable": ProviderHTTPError("down", 400)})
    store = catalog_store(embedder)

    outcome = await store.upsert_batch(
        "shop-1", [make_item("ok", "Fine"), make_item("bad", "Broken")]
    )

    assert outcome.processed == ("ok",)
    assert [s.unit_id for s in outcome.skipped] == ["bad"]


def test_matched_excerpt_truncates():
    assert matched_excerpt("short") == "short"
    long_text = "x" * 250
    assert matched_excerpt(long_text) == "x" * 200 + "..."
