import json

import pytest

from fakes import ADVISOR_PAYLOAD, FakeProvider, make_image_bytes, make_settings
from vitrina.analysis import ListingAdvisor, OpenAIProvider, get_llm_provider
from vitrina.errors import AdvisorContractViolation, UpstreamError
from vitrina.imaging import ImageNormalizer
from vitrina.models import ListingDraft


def _payload(**changes):
    data = dict(ADVISOR_PAYLOAD)
    for key, value in changes.items():
        if value is ...:
            data.pop(key, None)
        else:
            data[key] = value
    return data


def test_missing_price_defaults_to_zero():
    draft = ListingDraft.from_advisor_payload(_payload(suggestedPrice=...))

    assert draft.suggested_price == 0.0


def test_null_price_defaults_to_zero():
    assert ListingDraft.from_advisor_payload(_payload(suggestedPrice=None)).suggested_price == 0.0


@pytest.mark.parametrize("price", [-5, "-10", "NaN", "inf", "cheap", True])
def test_invalid_prices_are_rejected(price):
    with pytest.raises(AdvisorContractViolation) as exc:
        ListingDraft.from_advisor_payload(_payload(suggestedPrice=price))

    assert "suggestedPrice" in exc.value.details["fields"]


def test_price_strings_are_parsed():
    assert ListingDraft.from_advisor_payload(_payload(suggestedPrice="$1,299.99")).suggested_price == 1299.99


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Like New", "like_new"),
        ("like-new", "like_new"),
        ("NEW", "new"),
        (" fair ", "fair"),
        ("refurbished", "good"),
        (None, "good"),
        (3, "good"),
    ],
)
def test_condition_is_mapped_into_enum(raw, expected):
    assert ListingDraft.from_advisor_payload(_payload(condition=raw)).condition == expected


def test_title_is_trimmed_to_sixty_chars():
    draft = ListingDraft.from_advisor_payload(_payload(title="x" * 90))

    assert len(draft.title) == 60


@pytest.mark.parametrize("title", [..., "", "   ", None])
def test_missing_title_is_a_violation(title):
    with pytest.raises(AdvisorContractViolation):
        ListingDraft.from_advisor_payload(_payload(title=title))


def test_features_and_brand_are_optional():
    draft = ListingDraft.from_advisor_payload(_payload(keyFeatures=None, brand=...))

    assert draft.key_features == []
    assert draft.brand is None
    assert draft.metadata() == {"keyFeatures": [], "brand": None}


def test_features_must_be_a_list():
    with pytest.raises(AdvisorContractViolation):
        ListingDraft.from_advisor_payload(_payload(keyFeatures="wireless"))


@pytest.mark.parametrize("payload", [[1, 2], "text", None, 3.5])
def test_non_object_payload_is_a_violation(payload):
    with pytest.raises(AdvisorContractViolation):
        ListingDraft.from_advisor_payload(payload)


@pytest.fixture
def images():
    normalizer = ImageNormalizer()
    return [normalizer.normalize(make_image_bytes(400, 300)) for _ in range(2)]


@pytest.mark.asyncio
async def test_draft_listing_sends_all_images_in_one_json_request(images):
    provider = FakeProvider()
    result = await ListingAdvisor(provider).draft_listing(images, condition="good", location="Austin, TX")

    assert len(provider.calls) == 1
    call = provider.calls[0]
    assert call["json_output"] is True
    assert len(call["images"]) == 2
    assert "Condition: good" in call["user_prompt"]
    assert "Location: Austin, TX" in call["user_prompt"]
    assert "Home & Garden" in call["system_prompt"]
    assert result.draft.condition == "like_new"
    assert result.payload == ADVISOR_PAYLOAD


@pytest.mark.asyncio
async def test_unspecified_context_is_stated(images):
    provider = FakeProvider()
    await ListingAdvisor(provider).draft_listing(images)

    assert "Condition: not specified" in provider.calls[0]["user_prompt"]
    assert "Location: not specified" in provider.calls[0]["user_prompt"]


@pytest.mark.asyncio
async def test_fenced_json_is_accepted(images):
    fenced = "```json\n" + json.dumps(ADVISOR_PAYLOAD) + "\n```"
    result = await ListingAdvisor(FakeProvider(fenced)).draft_listing(images)

    assert result.draft.brand == "Sony"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["Sure! Here is your listing.", "[1, 2, 3]", ""])
async def test_unparseable_output_is_a_violation(images, text):
    with pytest.raises(AdvisorContractViolation):
        await ListingAdvisor(FakeProvider(text)).draft_listing(images)


@pytest.mark.asyncio
async def test_reply_returns_text():
    provider = FakeProvider("Happy to help! It is still available.")
    reply = await ListingAdvisor(provider).reply("You are a sales assistant.", "Is it available?")

    assert reply == "Happy to help! It is still available."
    assert provider.calls[0]["images"] == []
    assert provider.calls[0]["json_output"] is False


@pytest.mark.asyncio
async def test_empty_reply_is_upstream_error():
    with pytest.raises(UpstreamError):
        await ListingAdvisor(FakeProvider("   ")).reply("system", "hello")


def test_provider_factory_uses_settings():
    provider = get_llm_provider(settings=make_settings(openai_api_key="sk-unit"))

    assert isinstance(provider, OpenAIProvider)
    assert provider.model == "gpt-4o-mini"


def test_provider_factory_requires_api_key():
    with pytest.raises(ValueError):
        get_llm_provider("groq", settings=make_settings())


def test_provider_factory_rejects_unknown_provider():
    with pytest.raises(ValueError):
        get_llm_provider("llamafile", settings=make_settings())
