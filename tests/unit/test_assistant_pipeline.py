import asyncio
import time
from unittest.mock import Mock

import pytest

from core.entities import Document
from util.enums import ModelName
from util.errors import EmptyDocument, EmptyQuery, GenerationTimeout, MalformedDocument


class TestSummarizeDocument:

    @pytest.mark.asyncio
    async def test_summary_within_document_band(self, make_pipeline, sample_pdf, summary_band):
        summary = await make_pipeline().summarize_document(Document(sample_pdf))

        assert summary
        assert summary_band.min_length <= len(summary.split()) <= summary_band.max_length

    @pytest.mark.asyncio
    async def test_uses_document_band(self, make_pipeline, sample_pdf, stub_summarizer, summary_band):
        await make_pipeline().summarize_document(Document(sample_pdf))

        call = stub_summarizer.calls[0]
        assert (call["min_length"], call["max_length"]) == tuple(summary_band)

    @pytest.mark.asyncio
    async def test_extracted_text_is_clipped(self, make_pipeline, sample_pdf, stub_summarizer):
        await make_pipeline(max_document_chars=20).summarize_document(Document(sample_pdf))

        assert stub_summarizer.calls[0]["text"] == "Employees receive tw"

    @pytest.mark.asyncio
    async def test_malformed_upload_never_generates(self, make_pipeline, stub_summarizer, loaders):
        with pytest.raises(MalformedDocument):
            await make_pipeline().summarize_document(Document(b"not a document at all"))

        assert stub_summarizer.calls == []
        assert loaders[ModelName.GENERATION].calls == 0

    @pytest.mark.asyncio
    async def test_blank_document_raises_empty(self, make_pipeline, pdf_factory, stub_summarizer):
        with pytest.raises(EmptyDocument):
            await make_pipeline().summarize_document(Document(pdf_factory(["", ""])))
        assert stub_summarizer.calls == []

    @pytest.mark.asyncio
    async def test_scanned_document_is_summarized_from_ocr(self, make_pipeline, pdf_factory, stub_summarizer):
        await make_pipeline().summarize_document(Document(pdf_factory([""], with_image=True)))

        assert stub_summarizer.calls[0]["text"] == "scanned page text"


class TestAnswerQuery:

    @pytest.mark.asyncio
    async def test_context_then_query_with_chat_band(self, make_pipeline, stub_summarizer, chat_band):
        await make_pipeline().answer_query("How many leave days do I get?")

        call = stub_summarizer.calls[0]
        assert call["text"] == (
            "Company HR policy allows 2 days of leave per month.\nHow many leave days do I get?"
        )
        assert (call["min_length"], call["max_length"]) == tuple(chat_band)

    @pytest.mark.asyncio
    async def test_query_is_sanitized_before_models(self, make_pipeline, stub_summarizer, stub_embedding_model):
        await make_pipeline().answer_query("is badword1 allowed at the company event")

        assert "badword1" not in stub_summarizer.calls[0]["text"]
        assert "[CENSORED]" in stub_summarizer.calls[0]["text"]
        assert all("badword1" not in t for batch in stub_embedding_model.encode_calls for t in batch)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    async def test_blank_query_raises(self, make_pipeline, stub_summarizer, query):
        with pytest.raises(EmptyQuery):
            await make_pipeline().answer_query(query)
        assert stub_summarizer.calls == []

    @pytest.mark.asyncio
    async def test_threshold_miss_answers_from_query_alone(self, make_pipeline, stub_summarizer):
        await make_pipeline(max_distance=0.1).answer_query("quantum chromodynamics")

        assert stub_summarizer.calls[0]["text"] == "quantum chromodynamics"

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_load_each_model_once(self, make_pipeline, loaders):
        loaders[ModelName.EMBEDDING].delay = 0.2
        loaders[ModelName.GENERATION].delay = 0.2
        pipeline = make_pipeline(workers=4)

        first, second = await asyncio.gather(
            pipeline.answer_query("How many leave days do I get?"),
            pipeline.answer_query("When is the next company event?"),
        )

        assert first and second
        assert loaders[ModelName.EMBEDDING].calls == 1
        assert loaders[ModelName.GENERATION].calls == 1

    @pytest.mark.asyncio
    async def test_stalled_generation_times_out(self, make_pipeline):
        def stall(*args):
            time.sleep(1.0)
            return "late"

        slow = Mock()
        slow.generate.side_effect = stall
        pipeline = make_pipeline(request_timeout=0.1, generator=slow)

        with pytest.raises(GenerationTimeout) as exc:
            await pipeline.answer_query("How many leave days do I get?")
        assert exc.value.status_code == 503
        assert "Retry-After" in exc.value.headers
