import asyncio

import pytest

from vitrina.errors import InvalidInput, NotFound
from vitrina.services import parse_price, sanitize_search_text


@pytest.mark.parametrize("value, expected", [(None, None), ("", None), ("  ", None), ("25", 25.0), ("19.5", 19.5)])
def test_parse_price(value, expected):
    assert parse_price(value, "minPrice") == expected


def test_bad_price_is_invalid_input():
    with pytest.raises(InvalidInput) as exc:
        parse_price("cheap", "maxPrice")

    assert exc.value.details == {"maxPrice": "cheap"}


@pytest.mark.parametrize(
    "text, expected",
    [(None, None), ("", None), ("bike", "bike"), ("red,bike", "red bike"), ("(%*)", None), ("  sofa  bed ", "sofa bed")],
)
def test_sanitize_search_text(text, expected):
    assert sanitize_search_text(text) == expected


@pytest.mark.asyncio
async def test_search_forwards_filters(harness):
    harness.listings.add(title="Road bike", price=300)
    harness.listings.add(title="Kids bike", price=80)
    harness.listings.add(title="Sofa", price=150)

    results = await harness.search.search(q="BIKE", min_price="100", max_price="")

    assert [r["title"] for r in results] == ["Road bike"]
    assert harness.listings.search_calls[-1] == {
        "text": "BIKE",
        "category_id": None,
        "location": None,
        "min_price": 100.0,
        "max_price": None,
    }


@pytest.mark.asyncio
async def test_search_skips_inactive_listings(harness):
    harness.listings.add(title="Lamp", status="sold")
    harness.listings.add(title="Chair")

    results = await harness.search.search()

    assert [r["title"] for r in results] == ["Chair"]


@pytest.mark.asyncio
async def test_search_rejects_bad_price(harness):
    with pytest.raises(InvalidInput):
        await harness.search.search(min_price="abc")

    assert harness.listings.search_calls == []


@pytest.mark.asyncio
async def test_each_read_counts_a_view(harness):
    row = harness.listings.add(title="Desk")

    first = await harness.search.get_listing(row["id"])
    second = await harness.search.get_listing(row["id"])

    assert first["views"] == 0
    assert second["views"] == 1
    assert harness.listings.rows[row["id"]]["views"] == 2
    assert second["seller"] == {"name": "Seller", "location": "Austin"}


@pytest.mark.asyncio
async def test_concurrent_reads_never_lose_views(harness):
    row = harness.listings.add(title="Desk", views=3)

    await asyncio.gather(*(harness.search.get_listing(row["id"]) for _ in range(5)))

    assert 4 <= harness.listings.rows[row["id"]]["views"] <= 8


@pytest.mark.asyncio
async def test_missing_listing_is_not_found(harness):
    with pytest.raises(NotFound):
        await harness.search.get_listing("nope")
