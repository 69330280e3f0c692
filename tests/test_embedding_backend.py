"""Tests for the embedding model wrapper and async embedding helper."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from vectorium.embedding.encoder import EmbeddingConfig, EmbeddingModel, embed_text
from vectorium.errors import EmbeddingError

from conftest import FakeEmbedder


def _fake_model(dimension: int = 4) -> MagicMock:
    model = MagicMock()
    model.get_sentence_embedding_dimension.return_value = dimension
    model.encode.side_effect = lambda sentences, **kwargs: np.ones(
        (len(sentences), dimension), dtype="float64"
    )
    return model


class TestEmbeddingModel:
    """Test EmbeddingModel loading and encoding."""

    @patch("vectorium.embedding.encoder.SentenceTransformer")
    def test_loads_with_config(self, mock_st: MagicMock) -> None:
        """Should pass backend, device and cache folder to SentenceTransformer."""
        mock_st.return_value = _fake_model()

        model = EmbeddingModel(
            EmbeddingConfig(model_name="m", device="cpu", cache_folder=Path("/cache"))
        )

        mock_st.assert_called_once_with("m", backend="torch", device="cpu", cache_folder="/cache")
        assert model.dimension == 4

    @patch("vectorium.embedding.encoder.SentenceTransformer")
    def test_embed_returns_float32(self, mock_st: MagicMock) -> None:
        """Should return float32 arrays with one row per text."""
        mock_st.return_value = _fake_model()
        model = EmbeddingModel()

        embeddings = model.embed(["a", "b"])

        assert embeddings.shape == (2, 4)
        assert embeddings.dtype == np.float32
        kwargs = mock_st.return_value.encode.call_args[1]
        assert kwargs["normalize_embeddings"] is True
        assert kwargs["show_progress_bar"] is False

    @patch("vectorium.embedding.encoder.SentenceTransformer")
    def test_embed_query(self, mock_st: MagicMock) -> None:
        """Should return a single vector."""
        mock_st.return_value = _fake_model()

        assert EmbeddingModel().embed_query("hello").shape == (4,)

    @patch("vectorium.embedding.encoder.SentenceTransformer")
    def test_torch_load_failure(self, mock_st: MagicMock) -> None:
        """Should raise EmbeddingError when the torch model cannot load."""
        mock_st.side_effect = OSError("no such model")

        with pytest.raises(EmbeddingError, match="no such model"):
            EmbeddingModel()

    @patch("vectorium.embedding.encoder.SentenceTransformer")
    def test_onnx_falls_back_to_torch(self, mock_st: MagicMock) -> None:
        """Should retry with torch when an optimized backend fails."""
        mock_st.side_effect = [ImportError("onnxruntime missing"), _fake_model()]

        model = EmbeddingModel(EmbeddingConfig(backend="onnx"))

        assert model.config.backend == "torch"
        assert mock_st.call_count == 2
        assert mock_st.call_args[1]["backend"] == "torch"


class TestEmbedText:
    """Test embed_text coroutine."""

    @pytest.mark.asyncio
    async def test_returns_vector(self) -> None:
        """Should return a float32 vector of the provider's dimension."""
        vector = await embed_text(FakeEmbedder(dimension=8), "hello")

        assert vector.shape == (8,)
        assert vector.dtype == np.float32

    @pytest.mark.asyncio
    async def test_wraps_provider_errors(self) -> None:
        """Should map arbitrary provider exceptions to EmbeddingError."""
        with pytest.raises(EmbeddingError, match="model exploded"):
            await embed_text(FakeEmbedder(fail_on=["bad"]), "bad")

    @pytest.mark.asyncio
    async def test_wrong_shape(self) -> None:
        """Should reject vectors of the wrong dimension."""
        provider = MagicMock()
        provider.dimension = 4
        provider.embed_query.return_value = np.zeros(3)

        with pytest.raises(EmbeddingError, match="shape"):
            await embed_text(provider, "x")

    @pytest.mark.asyncio
    async def test_non_finite(self) -> None:
        """Should reject NaN or infinite components."""
        provider = MagicMock()
        provider.dimension = 2
        provider.embed_query.return_value = np.array([np.nan, 1.0])

        with pytest.raises(EmbeddingError, match="non-finite"):
            await embed_text(provider, "x")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Should raise EmbeddingError when the provider is too slow."""
        with pytest.raises(EmbeddingError, match="timed out"):
            await embed_text(FakeEmbedder(dimension=4, delay=0.5), "x", timeout=0.05)
