"""Unit tests for embedding bridges and the provider factory.

Network calls are replaced by monkeypatching ``_post_json`` or
``urlopen``; every provider failure must degrade to empty vectors.
"""

from __future__ import annotations

import http.client
import io
from urllib.error import URLError

import pytest

from contextmem.config import EmbeddingConfig
from contextmem.vector import build_embedding_bridge
from contextmem.vector import EmbeddingBridge
from contextmem.vector import GoogleEmbeddingBridge
from contextmem.vector import HttpEmbeddingBridge
from contextmem.vector import NoopEmbeddingBridge
from contextmem.vector import OpenAIEmbeddingBridge
from contextmem.vector.embeddings import _HttpEmbeddingBridge
from contextmem.vector.embeddings import EmbeddingError


class TestBuildEmbeddingBridge:
    def test_google_is_default(self):
        bridge = build_embedding_bridge(EmbeddingConfig())
        assert isinstance(bridge, GoogleEmbeddingBridge)

    @pytest.mark.parametrize(
        ("provider", "expected"),
        [
            ("openai", OpenAIEmbeddingBridge),
            ("http", HttpEmbeddingBridge),
            ("noop", NoopEmbeddingBridge),
            (" OpenAI ", OpenAIEmbeddingBridge),
        ],
    )
    def test_supported_providers(self, provider, expected):
        bridge = build_embedding_bridge(EmbeddingConfig(provider=provider))
        assert isinstance(bridge, expected)
        assert isinstance(bridge, EmbeddingBridge)

    def test_unsupported_provider_rejected(self):
        with pytest.raises(ValueError, match="Unsupported embedding provider"):
            build_embedding_bridge(EmbeddingConfig(provider="cohere"))


class TestNoopEmbeddingBridge:
    def test_http_base_requires_embed_hook(self):
        with pytest.raises(TypeError):
            _HttpEmbeddingBridge(base_url="http://localhost")  # type: ignore[abstract]

    async def test_returns_one_empty_vector_per_text(self):
        assert await NoopEmbeddingBridge().embed(["a", "b"]) == [[], []]


class TestOpenAIEmbeddingBridge:
    async def test_embeds_in_input_order(self, monkeypatch):
        bridge = OpenAIEmbeddingBridge(api_key="sk-test")
        calls: list[tuple[str, dict, dict]] = []

        def _fake_post(url, payload, headers=None):
            calls.append((url, payload, headers))
            return {
                "data": [
                    {"index": 1, "embedding": [0, 1]},
                    {"index": 0, "embedding": [1, 0]},
                ]
            }

        monkeypatch.setattr(bridge, "_post_json", _fake_post)

        vectors = await bridge.embed(["first", "second"])
        assert vectors == [[1.0, 0.0], [0.0, 1.0]]

        url, payload, headers = calls[0]
        assert url == "https://api.openai.com/v1/embeddings"
        assert payload == {"model": "text-embedding-3-small", "input": ["first", "second"]}
        assert headers == {"Authorization": "Bearer sk-test"}

    async def test_call_level_overrides(self, monkeypatch):
        bridge = OpenAIEmbeddingBridge(base_url="http://proxy.local/v1/")
        seen: dict = {}

        def _fake_post(url, payload, headers=None):
            seen.update(url=url, model=payload["model"], headers=headers)
            return {"data": [{"index": 0, "embedding": [0.5]}]}

        monkeypatch.setattr(bridge, "_post_json", _fake_post)

        vectors = await bridge.embed(["x"], api_key="override", model="custom")
        assert vectors == [[0.5]]
        assert seen == {
            "url": "http://proxy.local/v1/embeddings",
            "model": "custom",
            "headers": {"Authorization": "Bearer override"},
        }

    async def test_missing_key_returns_empty_vectors_without_calling(
        self, monkeypatch, caplog
    ):
        bridge = OpenAIEmbeddingBridge()

        def _fail(*args, **kwargs):
            raise AssertionError("provider must not be called without a key")

        monkeypatch.setattr(bridge, "_post_json", _fail)

        assert await bridge.embed(["a", "b"]) == [[], []]
        assert "missing api_key" in caplog.text

    async def test_network_error_returns_empty_vectors(self, monkeypatch, caplog):
        def _unreachable(request, timeout):
            raise URLError("connection refused")

        monkeypatch.setattr("contextmem.vector.embeddings.urlopen", _unreachable)

        bridge = OpenAIEmbeddingBridge(api_key="sk-test")
        assert await bridge.embed(["a"]) == [[]]
        assert "Embeddings failed (provider=openai)" in caplog.text

    async def test_length_mismatch_returns_empty_vectors(self, monkeypatch):
        bridge = OpenAIEmbeddingBridge(api_key="sk-test")
        monkeypatch.setattr(
            bridge,
            "_post_json",
            lambda url, payload, headers=None: {"data": [{"index": 0, "embedding": [1]}]},
        )
        assert await bridge.embed(["a", "b", "c"]) == [[], [], []]

    async def test_malformed_payload_returns_empty_vectors(self, monkeypatch):
        bridge = OpenAIEmbeddingBridge(api_key="sk-test")
        monkeypatch.setattr(
            bridge, "_post_json", lambda url, payload, headers=None: {"error": "nope"}
        )
        assert await bridge.embed(["a"]) == [[]]

    async def test_empty_input_makes_no_call(self):
        assert await OpenAIEmbeddingBridge(api_key="sk-test").embed([]) == []


class TestGoogleEmbeddingBridge:
    async def test_batch_embed_request_shape(self, monkeypatch):
        bridge = GoogleEmbeddingBridge(api_key="g-key")
        calls: list[tuple[str, dict, dict]] = []

        def _fake_post(url, payload, headers=None):
            calls.append((url, payload, headers))
            return {"embeddings": [{"values": [0.1, 0.2]}, {"values": [0.3, 0.4]}]}

        monkeypatch.setattr(bridge, "_post_json", _fake_post)

        vectors = await bridge.embed(["alpha", "beta"])
        assert vectors == [[0.1, 0.2], [0.3, 0.4]]

        url, payload, headers = calls[0]
        assert url.endswith("/models/text-embedding-004:batchEmbedContents")
        assert payload["requests"][1] == {
            "model": "models/text-embedding-004",
            "content": {"parts": [{"text": "beta"}]},
        }
        assert headers == {"x-goog-api-key": "g-key"}

    async def test_non_numeric_values_return_empty_vectors(self, monkeypatch):
        bridge = GoogleEmbeddingBridge(api_key="g-key")
        monkeypatch.setattr(
            bridge,
            "_post_json",
            lambda url, payload, headers=None: {"embeddings": [{"values": ["x"]}]},
        )
        assert await bridge.embed(["alpha"]) == [[]]


class TestHttpEmbeddingBridge:
    async def test_forwards_request_without_key(self, monkeypatch):
        bridge = HttpEmbeddingBridge()
        calls: list[tuple[str, dict]] = []

        def _fake_post(url, payload, headers=None):
            calls.append((url, payload))
            return {"embeddings": [[1, 2, 3]]}

        monkeypatch.setattr(bridge, "_post_json", _fake_post)

        assert await bridge.embed(["hello"]) == [[1.0, 2.0, 3.0]]
        assert calls == [
            (
                "http://localhost:3000/api/embeddings",
                {"texts": ["hello"], "provider": "google"},
            )
        ]

    async def test_includes_key_and_model_when_given(self, monkeypatch):
        bridge = HttpEmbeddingBridge(upstream_provider="openai")
        payloads: list[dict] = []

        def _fake_post(url, payload, headers=None):
            payloads.append(payload)
            return {"embeddings": [[1.0]]}

        monkeypatch.setattr(bridge, "_post_json", _fake_post)

        await bridge.embed(["hello"], api_key="k", model="m")
        assert payloads == [
            {"texts": ["hello"], "provider": "openai", "apiKey": "k", "model": "m"}
        ]

    async def test_provider_error_returns_empty_vectors(self, monkeypatch):
        bridge = HttpEmbeddingBridge()

        def _fail(url, payload, headers=None):
            raise EmbeddingError("provider HTTP 500: boom")

        monkeypatch.setattr(bridge, "_post_json", _fail)
        assert await bridge.embed(["a", "b"]) == [[], []]

    async def test_non_utf8_body_returns_empty_vectors(self, monkeypatch, caplog):
        monkeypatch.setattr(
            "contextmem.vector.embeddings.urlopen",
            lambda request, timeout: io.BytesIO(b"\xff\xfe\xfd\xfc"),
        )

        bridge = HttpEmbeddingBridge(base_url="http://127.0.0.1:9/api/embeddings")
        assert await bridge.embed(["a", "b"]) == [[], []]
        assert "non UTF-8 body" in caplog.text

    async def test_truncated_body_returns_empty_vectors(self, monkeypatch):
        class _TruncatedResponse(io.BytesIO):
            def read(self, *args):
                raise http.client.IncompleteRead(b'{"embeddings": [')

        monkeypatch.setattr(
            "contextmem.vector.embeddings.urlopen",
            lambda request, timeout: _TruncatedResponse(),
        )

        assert await HttpEmbeddingBridge().embed(["a"]) == [[]]
