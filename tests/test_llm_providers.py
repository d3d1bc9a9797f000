from types import SimpleNamespace

import pytest

from fakes import make_image_bytes, make_settings
from vitrina.analysis import OpenAIProvider
from vitrina.analysis.llm_providers import ChatCompletionsProvider
from vitrina.imaging import ImageNormalizer


class RecordingCompletions:
    """Reemplaza client.chat.completions y guarda los kwargs de cada create."""

    def __init__(self, content='{"title": "Lamp"}'):
        self.content = content
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(total_tokens=42),
        )


@pytest.fixture
def images():
    normalizer = ImageNormalizer()
    return [normalizer.normalize(make_image_bytes(300, 200)) for _ in range(2)]


@pytest.fixture
def provider():
    provider = OpenAIProvider(settings=make_settings(openai_api_key="sk-unit"))
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=RecordingCompletions()))
    return provider


def test_messages_with_images_are_multimodal(images):
    system, user = ChatCompletionsProvider._messages("be brief", "Create listing.", images)

    assert system == {"role": "system", "content": "be brief"}
    assert user["role"] == "user"
    text, *parts = user["content"]
    assert text == {"type": "text", "text": "Create listing."}
    assert [p["type"] for p in parts] == ["image_url", "image_url"]
    assert parts[0]["image_url"]["url"] == images[0].data_url
    assert parts[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_messages_without_images_are_plain_text():
    _, user = ChatCompletionsProvider._messages("sys", "hello", None)

    assert user == {"role": "user", "content": "hello"}


@pytest.mark.asyncio
async def test_json_output_requests_json_object(provider, images):
    response = await provider.generate("sys", "Create listing.", images=images, json_output=True)

    request = provider.client.chat.completions.requests[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["model"] == "gpt-4o-mini"
    assert len(request["messages"][1]["content"]) == 3
    assert response.text == '{"title": "Lamp"}'
    assert response.tokens_used == 42
    assert response.provider == "openai"


@pytest.mark.asyncio
async def test_plain_chat_has_no_response_format(provider):
    await provider.generate("sys", "Is it available?", temperature=0.7, max_tokens=300)

    request = provider.client.chat.completions.requests[0]
    assert "response_format" not in request
    assert request["temperature"] == 0.7
    assert request["max_tokens"] == 300
