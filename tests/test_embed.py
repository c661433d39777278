"""Tests for docrag.embed: batching contract, HTTP helper and providers."""

from __future__ import annotations

import json
import os
from unittest.mock import patch
from urllib.error import HTTPError, URLError

import pytest

from docrag.config import DocragConfig
from docrag.embed.base import BaseEmbedder
from docrag.embed.http import post_json
from docrag.embed.ollama import OllamaEmbedder
from docrag.embed.openai_compat import OpenAICompatEmbedder
from docrag.exceptions import EmbeddingError
from docrag.types import Chunk

_URLOPEN = "docrag.embed.http.urlopen"


def _config(**embedding: object) -> DocragConfig:
    """Config with 2-dimensional embeddings plus any overrides."""
    config = DocragConfig()
    config.embedding.dimensions = 2
    for key, value in embedding.items():
        setattr(config.embedding, key, value)
    return config


def _chunk(content: str, chunk_id: str) -> Chunk:
    return Chunk(
        chunk_id=chunk_id,
        document_url="file:///guide.md",
        content=content,
        title="Guide",
        start_offset=0,
        end_offset=len(content),
        token_count=3,
    )


class _FakeResponse:
    """Minimal stand-in for the object urlopen returns."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data

    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *args: object) -> None:
        pass


def _json_response(payload: object) -> _FakeResponse:
    return _FakeResponse(json.dumps(payload).encode("utf-8"))


class LengthEmbedder(BaseEmbedder):
    """Embeds a text as [len(text), 1.0] and records every batch it sees."""

    def __init__(self, batch_size: int = 64, vectors: list[list[float]] | None = None) -> None:
        super().__init__(dimension=2, batch_size=batch_size)
        self.batches: list[list[str]] = []
        self._vectors = vectors

    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(texts)
        if self._vectors is not None:
            return self._vectors
        return [[float(len(t)), 1.0] for t in texts]


# --- BaseEmbedder ---


class TestBaseEmbedder:
    def test_embed_chunks_pairs_in_order(self):
        chunks = [_chunk("install", "c0"), _chunk("configure it", "c1")]
        embedded = LengthEmbedder().embed_chunks(chunks)
        assert [ec.chunk_id for ec in embedded] == ["c0", "c1"]
        assert embedded[0].embedding == (7.0, 1.0)
        assert embedded[1].embedding == (12.0, 1.0)

    def test_embed_chunks_empty_makes_no_call(self):
        embedder = LengthEmbedder()
        assert embedder.embed_chunks([]) == []
        assert embedder.batches == []

    def test_embed_query(self):
        assert LengthEmbedder().embed_query("abc") == [3.0, 1.0]

    def test_batches_respect_batch_size(self):
        embedder = LengthEmbedder(batch_size=2)
        vectors = embedder.embed(["a", "bb", "ccc", "dddd", "e"])
        assert [len(b) for b in embedder.batches] == [2, 2, 1]
        assert [v[0] for v in vectors] == [1.0, 2.0, 3.0, 4.0, 1.0]

    def test_dimension_and_batch_size(self):
        embedder = LengthEmbedder(batch_size=8)
        assert embedder.dimension == 2
        assert embedder.batch_size == 8

    @pytest.mark.parametrize("batch_size", [0, -1])
    def test_invalid_batch_size(self, batch_size):
        with pytest.raises(EmbeddingError, match="batch_size"):
            LengthEmbedder(batch_size=batch_size)

    def test_short_batch_raises(self):
        embedder = LengthEmbedder(vectors=[[1.0, 1.0]])
        with pytest.raises(EmbeddingError, match="1 embeddings for 2 inputs"):
            embedder.embed_chunks([_chunk("a", "c0"), _chunk("b", "c1")])

    def test_wrong_vector_length_raises(self):
        embedder = LengthEmbedder(vectors=[[1.0, 1.0, 1.0]])
        with pytest.raises(EmbeddingError, match="3-dimensional vectors, expected 2"):
            embedder.embed_query("q")


# --- post_json ---


class TestPostJson:
    def test_sends_json_and_returns_object(self):
        def fake_urlopen(req, **kwargs):
            assert req.get_header("Content-type") == "application/json"
            assert req.get_header("X-extra") == "1"
            assert json.loads(req.data) == {"input": ["a"]}
            assert kwargs["timeout"] == 5
            return _json_response({"ok": True})

        with patch(_URLOPEN, side_effect=fake_urlopen):
            data = post_json(
                "http://host/embed",
                {"input": ["a"]},
                service="Backend",
                headers={"X-Extra": "1"},
                timeout=5,
            )
        assert data == {"ok": True}

    def test_unreachable(self):
        with (
            patch(_URLOPEN, side_effect=URLError("Connection refused")),
            pytest.raises(EmbeddingError, match="Backend not reachable at http://host/embed"),
        ):
            post_json("http://host/embed", {}, service="Backend")

    def test_connection_error(self):
        with (
            patch(_URLOPEN, side_effect=ConnectionError("reset")),
            pytest.raises(EmbeddingError, match="not reachable"),
        ):
            post_json("http://host/embed", {}, service="Backend")

    def test_http_error(self):
        err = HTTPError("http://host/embed", 500, "Server Error", {}, None)
        with (
            patch(_URLOPEN, side_effect=err),
            pytest.raises(EmbeddingError, match=r"Backend error \(HTTP 500\): Server Error"),
        ):
            post_json("http://host/embed", {}, service="Backend")

    def test_rate_limit(self):
        err = HTTPError("http://host/embed", 429, "Too Many Requests", {}, None)
        with (
            patch(_URLOPEN, side_effect=err),
            pytest.raises(EmbeddingError, match="rate limit exceeded"),
        ):
            post_json("http://host/embed", {}, service="Backend")

    def test_invalid_json(self):
        with (
            patch(_URLOPEN, return_value=_FakeResponse(b"<html>")),
            pytest.raises(EmbeddingError, match="invalid JSON"),
        ):
            post_json("http://host/embed", {}, service="Backend")

    def test_non_object_json(self):
        with (
            patch(_URLOPEN, return_value=_json_response([1, 2])),
            pytest.raises(EmbeddingError, match="expected an object"),
        ):
            post_json("http://host/embed", {}, service="Backend")


# --- OllamaEmbedder ---


class TestOllamaEmbedder:
    def test_default_url(self):
        assert OllamaEmbedder(_config()).url == "http://localhost:11434/api/embed"

    def test_custom_url_trailing_slash(self):
        embedder = OllamaEmbedder(_config(base_url="http://gpu-box:11434/"))
        assert embedder.url == "http://gpu-box:11434/api/embed"

    def test_takes_dimension_and_batch_size_from_config(self):
        embedder = OllamaEmbedder(_config(batch_size=16))
        assert (embedder.dimension, embedder.batch_size) == (2, 16)

    def test_request_and_response(self):
        def fake_urlopen(req, **kwargs):
            assert json.loads(req.data) == {"model": "nomic-embed-text", "input": ["hello"]}
            return _json_response({"embeddings": [[0.5, 0.25]]})

        embedder = OllamaEmbedder(_config(model="nomic-embed-text"))
        with patch(_URLOPEN, side_effect=fake_urlopen):
            assert embedder.embed_query("hello") == [0.5, 0.25]

    def test_chunks_sent_in_batches(self):
        sizes: list[int] = []

        def fake_urlopen(req, **kwargs):
            n = len(json.loads(req.data)["input"])
            sizes.append(n)
            return _json_response({"embeddings": [[1.0, 0.0]] * n})

        embedder = OllamaEmbedder(_config(batch_size=2))
        chunks = [_chunk(f"part {i}", f"c{i}") for i in range(3)]
        with patch(_URLOPEN, side_effect=fake_urlopen):
            assert len(embedder.embed_chunks(chunks)) == 3
        assert sizes == [2, 1]

    def test_missing_embeddings_key(self):
        embedder = OllamaEmbedder(_config())
        with (
            patch(_URLOPEN, return_value=_json_response({"error": "model not found"})),
            pytest.raises(EmbeddingError, match="no 'embeddings' list"),
        ):
            embedder.embed_query("hello")

    def test_errors_name_ollama(self):
        embedder = OllamaEmbedder(_config())
        with (
            patch(_URLOPEN, side_effect=URLError("refused")),
            pytest.raises(EmbeddingError, match="Ollama not reachable"),
        ):
            embedder.embed_query("hello")


# --- OpenAICompatEmbedder ---


class TestOpenAICompatEmbedder:
    def test_default_url(self):
        assert OpenAICompatEmbedder(_config()).url == "https://api.openai.com/v1/embeddings"

    def test_bearer_token_from_env(self):
        with patch.dict(os.environ, {"DOCRAG_TEST_KEY": "sk-test"}):
            embedder = OpenAICompatEmbedder(_config(api_key_env="DOCRAG_TEST_KEY"))

        def fake_urlopen(req, **kwargs):
            assert req.get_header("Authorization") == "Bearer sk-test"
            return _json_response({"data": [{"index": 0, "embedding": [1.0, 2.0]}]})

        with patch(_URLOPEN, side_effect=fake_urlopen):
            assert embedder.embed_query("q") == [1.0, 2.0]

    def test_no_key_env_sends_no_auth(self):
        embedder = OpenAICompatEmbedder(_config(api_key_env="", base_url="http://vllm:8000/v1"))

        def fake_urlopen(req, **kwargs):
            assert req.full_url == "http://vllm:8000/v1/embeddings"
            assert req.get_header("Authorization") is None
            return _json_response({"data": [{"embedding": [1.0, 2.0]}]})

        with patch(_URLOPEN, side_effect=fake_urlopen):
            assert embedder.embed_query("q") == [1.0, 2.0]

    def test_warns_when_key_env_unset(self, caplog):
        env = {k: v for k, v in os.environ.items() if k != "DOCRAG_TEST_MISSING_KEY"}
        with patch.dict(os.environ, env, clear=True), caplog.at_level("WARNING"):
            OpenAICompatEmbedder(_config(api_key_env="DOCRAG_TEST_MISSING_KEY"))
        assert "DOCRAG_TEST_MISSING_KEY" in caplog.text

    def test_items_reordered_by_index(self):
        data = [
            {"index": 1, "embedding": [0.0, 2.0]},
            {"index": 0, "embedding": [1.0, 0.0]},
        ]
        embedder = OpenAICompatEmbedder(_config(api_key_env=""))
        with patch(_URLOPEN, return_value=_json_response({"data": data})):
            embedded = embedder.embed_chunks([_chunk("first", "c0"), _chunk("second", "c1")])
        assert [ec.embedding for ec in embedded] == [(1.0, 0.0), (0.0, 2.0)]

    def test_missing_embedding_field(self):
        embedder = OpenAICompatEmbedder(_config(api_key_env=""))
        with (
            patch(_URLOPEN, return_value=_json_response({"data": [{"index": 0}]})),
            pytest.raises(EmbeddingError, match="missing 'embedding'"),
        ):
            embedder.embed_query("q")

    def test_empty_data_is_count_mismatch(self):
        embedder = OpenAICompatEmbedder(_config(api_key_env=""))
        with (
            patch(_URLOPEN, return_value=_json_response({"data": []})),
            pytest.raises(EmbeddingError, match="0 embeddings for 1 inputs"),
        ):
            embedder.embed_query("q")
