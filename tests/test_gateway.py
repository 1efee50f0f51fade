"""
Tests for the AI gateway (identify / diagnose / product search / chat)

The OpenRouter client is replaced by an AsyncMock returning
chat-completions shaped responses, so no network is touched.
"""
import asyncio
from types import SimpleNamespace

import httpx
import pytest

from greenthumb.config import GEMINI_MODEL
from greenthumb.exceptions import ChatFailed, DiagnosisFailed, IdentificationFailed, ProductSearchFailed
from greenthumb.models import HealthStatus
from greenthumb.services.chat import history_to_messages
from greenthumb.services.gateway import PlantGateway
from greenthumb.services.gemini import extract_grounding
from greenthumb.services.product_search import extract_products

from conftest import (
    PLANT_RECORD,
    SICK_RECORD,
    citation,
    fake_response,
    make_client,
    sent_kwargs,
)


# =============================================================================
# Identify
# =============================================================================
class TestIdentify:
    def test_returns_plant_info(self, jpeg_bytes):
        client = make_client(fake_response(PLANT_RECORD))
        plant = asyncio.run(PlantGateway(client).identify(jpeg_bytes))

        assert plant.name == "Monstera"
        assert plant.care.light == "Bright indirect"

    def test_request_shape(self, jpeg_bytes):
        client = make_client(fake_response(PLANT_RECORD))
        asyncio.run(PlantGateway(client).identify(jpeg_bytes))

        kwargs = sent_kwargs(client)
        assert kwargs["model"] == GEMINI_MODEL
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["strict"] is True
        assert "extra_body" not in kwargs
        content = kwargs["messages"][0]["content"]
        assert content[0]["image_url"]["url"].startswith("data:image/jpeg;base64,")
        assert content[1]["type"] == "text"

    def test_contract_violation(self, jpeg_bytes):
        record = {key: value for key, value in PLANT_RECORD.items() if key != "funFact"}
        client = make_client(fake_response(record))

        with pytest.raises(IdentificationFailed):
            asyncio.run(PlantGateway(client).identify(jpeg_bytes))

    def test_not_json(self, jpeg_bytes):
        client = make_client(fake_response("I cannot see a plant here."))

        with pytest.raises(IdentificationFailed):
            asyncio.run(PlantGateway(client).identify(jpeg_bytes))

    def test_empty_response(self, jpeg_bytes):
        client = make_client(fake_response(""))

        with pytest.raises(IdentificationFailed):
            asyncio.run(PlantGateway(client).identify(jpeg_bytes))

    def test_transport_error(self, jpeg_bytes):
        client = make_client(httpx.ConnectError("connection refused"))

        with pytest.raises(IdentificationFailed):
            asyncio.run(PlantGateway(client).identify(jpeg_bytes))

    def test_unreadable_image_never_reaches_network(self):
        client = make_client(fake_response(PLANT_RECORD))

        with pytest.raises(IdentificationFailed):
            asyncio.run(PlantGateway(client).identify(b"not an image"))
        client.chat.completions.create.assert_not_awaited()

    def test_no_choices(self, jpeg_bytes):
        client = make_client(SimpleNamespace(choices=[]))

        with pytest.raises(IdentificationFailed):
            asyncio.run(PlantGateway(client).identify(jpeg_bytes))


# =============================================================================
# Diagnose
# =============================================================================
class TestDiagnose:
    def test_returns_result(self, jpeg_bytes):
        client = make_client(fake_response(SICK_RECORD))
        result = asyncio.run(PlantGateway(client).diagnose(jpeg_bytes))

        assert result.health_status is HealthStatus.SICK
        assert result.treatment == ["Remove affected leaves", "Apply neem oil"]

    def test_location_hint_in_prompt(self, jpeg_bytes):
        client = make_client(fake_response(SICK_RECORD))
        asyncio.run(PlantGateway(client).diagnose(jpeg_bytes, location_hint="94043"))

        prompt = sent_kwargs(client)["messages"][0]["content"][1]["text"]
        assert "zip code 94043" in prompt

    def test_no_location_hint(self, jpeg_bytes):
        client = make_client(fake_response(SICK_RECORD))
        asyncio.run(PlantGateway(client).diagnose(jpeg_bytes))

        prompt = sent_kwargs(client)["messages"][0]["content"][1]["text"]
        assert "zip code" not in prompt

    def test_unknown_health_status(self, jpeg_bytes):
        client = make_client(fake_response(dict(SICK_RECORD, healthStatus="Wilting")))

        with pytest.raises(DiagnosisFailed):
            asyncio.run(PlantGateway(client).diagnose(jpeg_bytes))

    def test_timeout(self, jpeg_bytes):
        client = make_client(asyncio.TimeoutError())

        with pytest.raises(DiagnosisFailed):
            asyncio.run(PlantGateway(client).diagnose(jpeg_bytes))


# =============================================================================
# Product search
# =============================================================================
class TestExtractProducts:
    def test_fenced_json(self):
        raw = '```json\n{"products": [{"name": "Neem Oil", "price": "$12", "description": "Organic", "imageUrl": "", "productUrl": ""}]}\n```'
        products = extract_products(raw)

        assert [product.name for product in products] == ["Neem Oil"]
        assert products[0].product_url is None

    def test_json_inside_prose(self):
        raw = 'Here you go: {"products": [{"name": "Sulfur Spray"}]} Hope this helps!'
        assert extract_products(raw)[0].name == "Sulfur Spray"

    def test_bare_list(self):
        assert len(extract_products('[{"name": "A"}, {"name": "B"}]')) == 2

    def test_malformed_items_are_skipped(self):
        raw = '{"products": [{"name": "A"}, {"price": "$3"}, "junk"]}'
        assert [product.name for product in extract_products(raw)] == ["A"]

    @pytest.mark.parametrize("raw", ["", "no json at all", "{broken", '{"products": "none"}'])
    def test_unusable_text_gives_empty_list(self, raw):
        assert extract_products(raw) == []


class TestSearchProducts:
    def test_result_carries_text_and_sources(self):
        raw = '{"products": [{"name": "Neem Oil", "price": "$12"}]}'
        client = make_client(fake_response(raw, annotations=[
            citation("https://shop.example/neem", "Neem Shop"),
            citation("https://shop.example/neem", "Duplicate"),
        ]))
        result = asyncio.run(PlantGateway(client).search_products("Powdery mildew"))

        assert result.products[0].name == "Neem Oil"
        assert result.raw_text == raw
        assert [chunk.title for chunk in result.grounding_chunks] == ["Neem Shop", "Duplicate"]
        assert sent_kwargs(client)["extra_body"] == {"plugins": [{"id": "web"}]}
        assert "Powdery mildew" in sent_kwargs(client)["messages"][0]["content"]

    def test_unparseable_products_still_succeed(self):
        client = make_client(fake_response("Try a neem oil spray from your local store."))
        result = asyncio.run(PlantGateway(client).search_products("Powdery mildew"))

        assert result.products == []
        assert result.raw_text.startswith("Try a neem")

    def test_transport_error(self):
        client = make_client(httpx.ReadTimeout("slow"))

        with pytest.raises(ProductSearchFailed):
            asyncio.run(PlantGateway(client).search_products("Powdery mildew"))


# =============================================================================
# Chat
# =============================================================================
class TestChat:
    def test_history_is_replayed_in_order(self):
        client = make_client(fake_response("Water it weekly."))
        history = [
            {"role": "model", "parts": [{"text": "Hello!"}]},
            {"role": "user", "parts": [{"text": "Hi"}]},
        ]
        reply = asyncio.run(PlantGateway(client).chat_turn("How often to water?", history))

        messages = sent_kwargs(client)["messages"]
        assert [message["role"] for message in messages] == ["system", "assistant", "user", "user"]
        assert messages[-1]["content"] == "How often to water?"
        assert reply.text == "Water it weekly."
        assert reply.grounding_metadata is None

    def test_grounding_metadata(self):
        client = make_client(fake_response("See RHS.", annotations=[citation("https://rhs.org.uk", "RHS")]))
        reply = asyncio.run(PlantGateway(client).chat_turn("Pruning roses?", []))

        assert reply.grounding_metadata.chunks[0].uri == "https://rhs.org.uk"

    def test_empty_reply(self):
        client = make_client(fake_response(""))

        with pytest.raises(ChatFailed):
            asyncio.run(PlantGateway(client).chat_turn("Hi", []))

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            history_to_messages([{"role": "system", "parts": [{"text": "x"}]}])


# =============================================================================
# Client wiring
# =============================================================================
class TestClientWiring:
    def test_missing_client_fails_every_operation(self, jpeg_bytes):
        gateway = PlantGateway(client=None)
        gateway.client = None

        with pytest.raises(IdentificationFailed):
            asyncio.run(gateway.identify(jpeg_bytes))
        with pytest.raises(DiagnosisFailed):
            asyncio.run(gateway.diagnose(jpeg_bytes))
        with pytest.raises(ProductSearchFailed):
            asyncio.run(gateway.search_products("x"))
        with pytest.raises(ChatFailed):
            asyncio.run(gateway.chat_turn("x", []))

    def test_grounding_ignores_other_annotations(self):
        message = SimpleNamespace(annotations=[
            {"type": "file_citation", "file_citation": {"file_id": "f1"}},
            citation("https://a.example"),
        ])
        chunks = extract_grounding(message)

        assert [(chunk.title, chunk.uri) for chunk in chunks] == [(None, "https://a.example")]

    def test_grounding_keeps_every_citation_in_order(self):
        message = SimpleNamespace(annotations=[
            citation("https://a.shop", "A"),
            citation("https://a.shop", "A again"),
            {"type": "url_citation", "url_citation": {}},
            citation("https://b.shop", "B"),
        ])
        chunks = extract_grounding(message)

        assert [chunk.uri for chunk in chunks] == ["https://a.shop", "https://a.shop", None, "https://b.shop"]

    def test_product_links_pair_with_citations_by_position(self):
        raw = '{"products": [{"name": "A"}, {"name": "A2"}, {"name": "B"}]}'
        client = make_client(fake_response(raw, annotations=[
            citation("https://a.shop", "A"),
            citation("https://a.shop", "A"),
            citation("https://b.shop", "B"),
        ]))
        result = asyncio.run(PlantGateway(client).search_products("Rust"))

        assert len(result.grounding_chunks) == 3
        assert result.product_link(2) == "https://b.shop"
        assert result.source_titles() == ["A", "B"]

    def test_close(self):
        client = make_client()
        asyncio.run(PlantGateway(client).close())
        client.close.assert_awaited_once()
