"""Unit test fixtures — FastMCP client over in-memory backends."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field

import pytest
from fastmcp import Client

from contextmem.memory import InMemoryPersistence

AXES = ("design", "invoice", "meeting")


def keyword_vector(text: str) -> list[float]:
    """One axis per keyword; text with no keyword gets an empty vector."""
    lowered = text.lower()
    vector = [1.0 if axis in lowered else 0.0 for axis in AXES]
    return vector if any(vector) else []


@dataclass
class KeywordEmbeddingBridge:
    """Deterministic embedding bridge keyed on a few words."""

    calls: list[list[str]] = field(default_factory=list)

    async def embed(
        self,
        texts: Sequence[str],
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> list[list[float]]:
        del api_key, model
        self.calls.append(list(texts))
        return [keyword_vector(text) for text in texts]


@pytest.fixture()
def embedding_bridge() -> KeywordEmbeddingBridge:
    return KeywordEmbeddingBridge()


@pytest.fixture()
async def mcp_client(embedding_bridge):
    """Yield a FastMCP Client wired to the ContextMem server."""
    from contextmem.server import configure
    from contextmem.server import mcp
    from contextmem.server import shutdown

    await configure(
        persistence=InMemoryPersistence(),
        embedding_bridge=embedding_bridge,
    )

    async with Client(mcp) as client:
        yield client

    await shutdown()
