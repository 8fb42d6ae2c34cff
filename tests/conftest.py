import io
import os
import re
import threading
import time

# Settings are read at import time; pin a hermetic configuration first.
os.environ["APP_ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["WARM_MODELS_ON_STARTUP"] = "false"
os.environ["LOG_TO_FILE"] = "false"

import fitz
import numpy as np
import pytest
from PIL import Image

from core.assistant_pipeline import AssistantPipeline
from core.document_text import DocumentExtractor
from core.embeddings import EmbeddingService
from core.entities import LengthBand
from core.generation import Generator
from core.knowledge_index import KnowledgeIndex
from core.model_registry import ModelRegistry
from core.retrieval import Retriever
from core.sanitizer import Sanitizer
from util.enums import ModelName

CORPUS = [
    "Company HR policy allows 2 days of leave per month.",
    "IT support can be contacted at ithelp@company.com.",
    "The next company event will be held on Friday.",
]

SUMMARY_BAND = LengthBand(5, 40)
CHAT_BAND = LengthBand(2, 20)


class StubEmbeddingModel:
    """
    Bag-of-words encoder with a growing vocabulary, mimicking
    SentenceTransformer.encode. Same text -> same vector within one instance.
    """

    def __init__(self, dim: int = 512):
        self.dim = dim
        self.max_seq_length = 256
        self._vocab = {}
        self._lock = threading.Lock()
        self.encode_calls = []

    def _index(self, token: str) -> int:
        with self._lock:
            if token not in self._vocab:
                self._vocab[token] = len(self._vocab) % self.dim
            return self._vocab[token]

    def encode(self, texts, batch_size=32, convert_to_numpy=True,
               normalize_embeddings=False, show_progress_bar=False):
        self.encode_calls.append(list(texts))
        rows = []
        for text in texts:
            v = np.zeros(self.dim, dtype=np.float32)
            for tok in re.findall(r"[a-z0-9]+", text.lower()):
                v[self._index(tok)] += 1.0
            norm = np.linalg.norm(v)
            if normalize_embeddings and norm > 0:
                v = v / norm
            rows.append(v)
        return np.stack(rows)


class StubSummarizer:
    """
    Mimics a transformers summarization pipeline: echoes input words, clipped
    to max_length and padded up to min_length.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = []

    def __call__(self, text, max_length, min_length, do_sample=False, truncation=True):
        self.calls.append(
            {"text": text, "max_length": max_length, "min_length": min_length,
             "do_sample": do_sample}
        )
        if self.delay:
            time.sleep(self.delay)
        words = text.split()[:max_length]
        while len(words) < min_length:
            words.append("summary")
        return [{"summary_text": " ".join(words)}]


class CountingLoader:
    def __init__(self, handle, delay: float = 0.0):
        self.handle = handle
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.handle


def png_bytes(size=(32, 32), color="white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_pdf(pages, with_image=False) -> bytes:
    """Build a PDF where each item of `pages` is one page's native text ('' = blank)."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
        if with_image:
            page.insert_image(fitz.Rect(72, 200, 172, 300), stream=png_bytes())
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def stub_embedding_model():
    return StubEmbeddingModel()


@pytest.fixture
def stub_summarizer():
    return StubSummarizer()


@pytest.fixture
def loaders(stub_embedding_model, stub_summarizer):
    return {
        ModelName.EMBEDDING: CountingLoader(stub_embedding_model),
        ModelName.GENERATION: CountingLoader(stub_summarizer),
    }


@pytest.fixture
def registry(loaders):
    return ModelRegistry(loaders)


@pytest.fixture
def corpus_index(stub_embedding_model):
    vectors = stub_embedding_model.encode(CORPUS, normalize_embeddings=True)
    return KnowledgeIndex.build(list(zip(CORPUS, vectors)))


@pytest.fixture
def fake_ocr():
    calls = []

    def _ocr(image):
        calls.append(image.size)
        return "scanned page text"

    _ocr.calls = calls
    return _ocr


@pytest.fixture
def make_pipeline(registry, corpus_index, fake_ocr):
    created = []

    def _make(*, request_timeout=5.0, workers=2, max_distance=None,
              max_document_chars=3000, extractor=None, generator=None):
        pipeline = AssistantPipeline(
            extractor=extractor or DocumentExtractor(ocr=fake_ocr, ocr_enabled=True),
            sanitizer=Sanitizer(["badword1", "badword2"], "[CENSORED]"),
            retriever=Retriever(EmbeddingService(registry), corpus_index, max_distance),
            generator=generator or Generator(registry),
            registry=registry,
            index=corpus_index,
            max_document_chars=max_document_chars,
            summary_band=SUMMARY_BAND,
            chat_band=CHAT_BAND,
            request_timeout=request_timeout,
            workers=workers,
        )
        created.append(pipeline)
        return pipeline

    yield _make
    for p in created:
        p.close()


@pytest.fixture
def sample_pdf():
    return make_pdf(
        [
            "Employees receive two days of paid leave every month.",
            "Requests are submitted through the HR portal.",
        ]
    )


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def png_factory():
    return png_bytes


@pytest.fixture
def corpus():
    return list(CORPUS)


@pytest.fixture
def summary_band():
    return SUMMARY_BAND


@pytest.fixture
def chat_band():
    return CHAT_BAND
