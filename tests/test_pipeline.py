import pytest

from fakes import (
    FakeCategoryRepository,
    FakeImageStore,
    FakeListingRepository,
    FakeProvider,
    build_harness,
    make_image_bytes,
    make_settings,
)
from vitrina.errors import (
    AdvisorContractViolation,
    InvalidInput,
    NormalizationError,
    PartialUploadFailure,
    UpstreamError,
    UpstreamTimeout,
)
from vitrina.models import UploadedImage
from vitrina.services import GenerationContext

SELLER = "seller-42"


def _images(count: int, width: int = 1600, height: int = 1200) -> list[UploadedImage]:
    return [
        UploadedImage(data=make_image_bytes(width, height), content_type="image/png", filename=f"{i}.png")
        for i in range(count)
    ]


async def _generate(harness, images, context=None):
    return await harness.pipeline.generate(
        images, context or GenerationContext(location="Austin, TX", condition="good"), SELLER
    )


@pytest.mark.asyncio
async def test_three_images_create_one_listing(harness):
    result = await _generate(harness, _images(3))

    listing = result.listing
    assert len(harness.listings.rows) == 1
    assert listing["seller_id"] == SELLER
    assert listing["price"] == 180.0
    assert listing["condition"] == "like_new"
    assert listing["location"] == "Austin, TX"
    assert listing["ai_generated"] is True
    assert listing["ai_metadata"] == {
        "keyFeatures": ["Noise cancelling", "30h battery", "USB-C"],
        "brand": "Sony",
    }
    assert listing["category_id"] == harness.categories.ids["electronics"]
    assert listing["images"] == [
        f"https://cdn.test/listings/{SELLER}/1700000000000_{i}.jpg" for i in range(3)
    ]
    assert result.draft.title.startswith("Sony WH-1000XM4")


@pytest.mark.asyncio
async def test_advisor_sees_every_image_in_a_single_call(harness):
    await _generate(harness, _images(3))

    assert len(harness.provider.calls) == 1
    sent = harness.provider.calls[0]["images"]
    assert len(sent) == 3
    assert all(max(img.width, img.height) <= 1024 for img in sent)


@pytest.mark.asyncio
async def test_uploads_are_normalized_jpegs(harness):
    await _generate(harness, _images(2))

    assert len(harness.store.uploads) == 2
    assert {u["content_type"] for u in harness.store.uploads} == {"image/jpeg"}


@pytest.mark.asyncio
async def test_missing_location_defaults_to_unknown(harness):
    result = await _generate(harness, _images(1), GenerationContext())

    assert result.listing["location"] == "Unknown"


@pytest.mark.asyncio
async def test_too_many_images_short_circuits(harness):
    with pytest.raises(InvalidInput) as exc:
        await _generate(harness, _images(6, 64, 64))

    assert exc.value.details["max"] == 5
    assert harness.provider.calls == []
    assert harness.store.uploads == []
    assert harness.listings.rows == {}


@pytest.mark.asyncio
async def test_no_images_is_invalid(harness):
    with pytest.raises(InvalidInput):
        await _generate(harness, [])

    assert harness.provider.calls == []


@pytest.mark.asyncio
async def test_oversize_image_is_invalid():
    harness = build_harness(settings=make_settings(max_image_bytes=1024))

    images = _images(1, 64, 64) + [UploadedImage(data=b"\xff" * 2048, content_type="image/jpeg")]

    with pytest.raises(InvalidInput) as exc:
        await _generate(harness, images)

    assert exc.value.details["index"] == 1
    assert harness.provider.calls == []


@pytest.mark.asyncio
async def test_missing_seller_is_invalid(harness):
    with pytest.raises(InvalidInput):
        await harness.pipeline.generate(_images(1, 64, 64), GenerationContext(), "")


@pytest.mark.asyncio
async def test_undecodable_image_aborts_before_advisor(harness):
    images = _images(2, 64, 64) + [UploadedImage(data=b"garbage", content_type="image/jpeg")]

    with pytest.raises(NormalizationError):
        await _generate(harness, images)

    assert harness.provider.calls == []
    assert harness.store.uploads == []


@pytest.mark.asyncio
async def test_partial_upload_aborts_and_reports_uploaded_urls():
    harness = build_harness(store=FakeImageStore(fail_indices={1}))

    with pytest.raises(PartialUploadFailure) as exc:
        await _generate(harness, _images(3, 200, 200))

    assert len(exc.value.uploaded_urls) == 2
    assert exc.value.to_dict()["uploadedUrls"] == exc.value.uploaded_urls
    assert exc.value.status == 500
    assert harness.listings.rows == {}
    assert harness.categories.lookups == []


@pytest.mark.asyncio
async def test_advisor_timeout():
    harness = build_harness(
        settings=make_settings(advisor_timeout_seconds=0.05),
        provider=FakeProvider(delay=0.5),
    )

    with pytest.raises(UpstreamTimeout) as exc:
        await _generate(harness, _images(1, 64, 64))

    assert exc.value.kind == "Timeout"
    assert exc.value.status == 504
    assert harness.store.uploads == []


@pytest.mark.asyncio
async def test_advisor_failure_is_upstream_error():
    harness = build_harness(provider=FakeProvider(error=RuntimeError("rate limited")))

    with pytest.raises(UpstreamError) as exc:
        await _generate(harness, _images(1, 64, 64))

    assert "rate limited" in exc.value.message
    assert harness.store.uploads == []


@pytest.mark.asyncio
async def test_contract_violation_uploads_nothing():
    harness = build_harness(provider=FakeProvider('{"description": "no title"}'))

    with pytest.raises(AdvisorContractViolation):
        await _generate(harness, _images(2, 64, 64))

    assert harness.store.uploads == []
    assert harness.listings.rows == {}


@pytest.mark.asyncio
async def test_insert_failure_reports_orphaned_urls():
    harness = build_harness(listings=FakeListingRepository(fail_create=True))

    with pytest.raises(UpstreamError) as exc:
        await _generate(harness, _images(2, 64, 64))

    assert len(exc.value.details["orphanedUrls"]) == 2
    assert exc.value.to_dict()["orphanedUrls"] == exc.value.details["orphanedUrls"]


@pytest.mark.asyncio
async def test_unknown_category_leaves_listing_uncategorized():
    payload = (
        '{"title": "Vintage lamp", "category": "Lighting", "suggestedPrice": 40,'
        ' "condition": "good"}'
    )
    harness = build_harness(provider=FakeProvider(payload))

    result = await _generate(harness, _images(1, 64, 64))

    assert result.listing["category_id"] is None
    assert result.listing["title"] == "Vintage lamp"


@pytest.mark.asyncio
async def test_category_lookup_failure_leaves_listing_uncategorized():
    harness = build_harness(categories=FakeCategoryRepository(error=RuntimeError("db down")))

    result = await _generate(harness, _images(1, 64, 64))

    assert result.listing["category_id"] is None
    assert harness.categories.lookups == ["Electronics"]
    assert len(harness.listings.rows) == 1


@pytest.mark.asyncio
async def test_failed_upload_kinds_are_reported():
    harness = build_harness(store=FakeImageStore(fail_indices={2}))

    with pytest.raises(PartialUploadFailure) as exc:
        await _generate(harness, _images(3, 64, 64))

    assert exc.value.failures == ["UpstreamError"]
    assert exc.value.to_dict()["failures"] == ["UpstreamError"]


@pytest.mark.asyncio
async def test_upload_timeout_keeps_its_kind():
    harness = build_harness(
        settings=make_settings(storage_timeout_seconds=0.05),
        store=FakeImageStore(delay=0.5, slow_indices={0}),
    )

    with pytest.raises(PartialUploadFailure) as exc:
        await _generate(harness, _images(2, 64, 64))

    assert exc.value.failures == ["Timeout"]
    assert exc.value.uploaded_urls == [f"https://cdn.test/listings/{SELLER}/1700000000000_1.jpg"]
    assert harness.listings.rows == {}
