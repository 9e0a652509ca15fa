"""Embedding bridges: text → vector providers.

Every bridge honours the same contract: ``embed(texts)`` returns exactly
``len(texts)`` vectors.  Provider failures (missing key, HTTP or network
error, undecodable or truncated body, malformed payload, wrong vector
count) are caught at this boundary and turned into empty vectors, which
downstream code treats as "skip this document".
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
from abc import ABC
from abc import abstractmethod
from collections.abc import Sequence
from typing import Any
from typing import Protocol
from typing import runtime_checkable
from urllib.error import HTTPError
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import Request
from urllib.request import urlopen

from contextmem.config import EmbeddingConfig

logger = logging.getLogger(__name__)

Vector = list[float]

OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_DEFAULT_MODEL = "text-embedding-3-small"
GOOGLE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GOOGLE_DEFAULT_MODEL = "text-embedding-004"
LOCAL_ENDPOINT_URL = "http://localhost:3000/api/embeddings"


class EmbeddingError(Exception):
    """Raised inside bridges when a provider call fails."""


@runtime_checkable
class EmbeddingBridge(Protocol):
    """Protocol for text → vector providers."""

    async def embed(
        self,
        texts: Sequence[str],
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> list[Vector]: ...


def empty_vectors(count: int) -> list[Vector]:
    return [[] for _ in range(count)]


class NoopEmbeddingBridge(EmbeddingBridge):
    """Bridge for unconfigured installations; every vector is empty."""

    async def embed(
        self,
        texts: Sequence[str],
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> list[Vector]:
        del api_key, model
        return empty_vectors(len(texts))


# ---------------------------------------------------------------------------
# HTTP providers
# ---------------------------------------------------------------------------


class _HttpEmbeddingBridge(ABC, EmbeddingBridge):
    """Shared fail-soft plumbing for JSON-over-HTTP providers."""

    provider = "http"
    requires_api_key = True

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str,
        timeout_seconds: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    async def embed(
        self,
        texts: Sequence[str],
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> list[Vector]:
        if not texts:
            return []

        key = api_key or self._api_key
        if self.requires_api_key and not key:
            logger.warning(
                "Embeddings: missing api_key for provider=%s, returning empty vectors",
                self.provider,
            )
            return empty_vectors(len(texts))

        try:
            vectors = await asyncio.to_thread(
                self._embed_sync,
                list(texts),
                api_key=key,
                model=model or self._model,
            )
        except EmbeddingError as exc:
            logger.warning("Embeddings failed (provider=%s): %s", self.provider, exc)
            return empty_vectors(len(texts))

        if len(vectors) != len(texts):
            logger.warning(
                "Embeddings: provider=%s returned %d vectors for %d texts",
                self.provider,
                len(vectors),
                len(texts),
            )
            return empty_vectors(len(texts))
        return vectors

    @abstractmethod
    def _embed_sync(
        self, texts: list[str], *, api_key: str | None, model: str | None
    ) -> list[Vector]: ...

    def _post_json(
        self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None
    ) -> Any:
        request = Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", **(headers or {})},
            method="POST",
        )
        try:
            with urlopen(request, timeout=self._timeout_seconds) as response:
                raw = response.read().decode("utf-8")
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise EmbeddingError(f"provider HTTP {exc.code}: {detail[:200]}") from exc
        except URLError as exc:
            raise EmbeddingError(f"provider network error: {exc.reason}") from exc
        except http.client.HTTPException as exc:
            raise EmbeddingError(f"provider response error: {exc!r}") from exc
        except UnicodeDecodeError as exc:
            raise EmbeddingError("provider returned a non UTF-8 body") from exc
        except OSError as exc:
            raise EmbeddingError(f"provider IO error: {exc}") from exc

        try:
            return json.loads(raw)
        except ValueError as exc:
            raise EmbeddingError("provider returned invalid JSON") from exc


def _as_vector(raw: object) -> Vector:
    if not isinstance(raw, list):
        return []
    try:
        return [float(value) for value in raw]
    except (TypeError, ValueError) as exc:
        raise EmbeddingError("vector contains non-numeric values") from exc


class OpenAIEmbeddingBridge(_HttpEmbeddingBridge):
    """OpenAI-compatible ``/embeddings`` adapter."""

    provider = "openai"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = OPENAI_BASE_URL,
        timeout_seconds: float = 15.0,
    ) -> None:
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )

    def _embed_sync(
        self, texts: list[str], *, api_key: str | None, model: str | None
    ) -> list[Vector]:
        data = self._post_json(
            f"{self._base_url}/embeddings",
            {"model": model or OPENAI_DEFAULT_MODEL, "input": texts},
            {"Authorization": f"Bearer {api_key}"},
        )
        try:
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            return [_as_vector(item.get("embedding")) for item in items]
        except (KeyError, TypeError, AttributeError) as exc:
            raise EmbeddingError("provider response missing data[].embedding") from exc


class GoogleEmbeddingBridge(_HttpEmbeddingBridge):
    """Gemini ``batchEmbedContents`` adapter."""

    provider = "google"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = GOOGLE_BASE_URL,
        timeout_seconds: float = 15.0,
    ) -> None:
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )

    def _embed_sync(
        self, texts: list[str], *, api_key: str | None, model: str | None
    ) -> list[Vector]:
        model_name = model or GOOGLE_DEFAULT_MODEL
        data = self._post_json(
            f"{self._base_url}/models/{quote(model_name)}:batchEmbedContents",
            {
                "requests": [
                    {
                        "model": f"models/{model_name}",
                        "content": {"parts": [{"text": text}]},
                    }
                    for text in texts
                ]
            },
            {"x-goog-api-key": api_key or ""},
        )
        try:
            return [_as_vector(item.get("values")) for item in data["embeddings"]]
        except (KeyError, TypeError, AttributeError) as exc:
            raise EmbeddingError("provider response missing embeddings[].values") from exc


class HttpEmbeddingBridge(_HttpEmbeddingBridge):
    """Client for a local embeddings endpoint.

    Posts ``{texts, apiKey, model, provider}`` and expects
    ``{"embeddings": [[...], ...]}``.  The endpoint owns credential
    checks, so a missing key is forwarded rather than short-circuited.
    """

    provider = "http"
    requires_api_key = False

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = LOCAL_ENDPOINT_URL,
        timeout_seconds: float = 15.0,
        upstream_provider: str = "google",
    ) -> None:
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self._upstream_provider = upstream_provider

    def _embed_sync(
        self, texts: list[str], *, api_key: str | None, model: str | None
    ) -> list[Vector]:
        payload: dict[str, Any] = {"texts": texts, "provider": self._upstream_provider}
        if api_key:
            payload["apiKey"] = api_key
        if model:
            payload["model"] = model
        data = self._post_json(self._base_url, payload)
        try:
            return [_as_vector(vector) for vector in data["embeddings"]]
        except (KeyError, TypeError) as exc:
            raise EmbeddingError("endpoint response missing embeddings") from exc


def build_embedding_bridge(config: EmbeddingConfig) -> EmbeddingBridge:
    """Create a concrete bridge from ``EmbeddingConfig``."""

    provider = config.provider.strip().lower()
    common = {
        "api_key": config.api_key,
        "model": config.model,
        "timeout_seconds": config.timeout_seconds,
    }
    if provider == "google":
        return GoogleEmbeddingBridge(base_url=config.base_url or GOOGLE_BASE_URL, **common)
    if provider == "openai":
        return OpenAIEmbeddingBridge(base_url=config.base_url or OPENAI_BASE_URL, **common)
    if provider == "http":
        return HttpEmbeddingBridge(base_url=config.base_url or LOCAL_ENDPOINT_URL, **common)
    if provider == "noop":
        return NoopEmbeddingBridge()
    raise ValueError(
        f"Unsupported embedding provider '{config.provider}'. "
        "Supported providers: google, openai, http, noop."
    )
