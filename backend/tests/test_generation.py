from pathlib import Path

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from letters_rag.core.config import Settings
from letters_rag.core.errors import ConfigurationError, EmbeddingFailure, GenerationFailure
from letters_rag.generation.answer import AnswerGenerator
from letters_rag.generation.context import assemble_context, chunk_marker, cited_chunk_numbers
from letters_rag.generation.llm import get_chat_model
from letters_rag.generation.memory import ConversationMemory
from letters_rag.generation.prompts import INSUFFICIENT_CONTEXT_REPLY, build_answer_prompt
from letters_rag.generation.service import AnswerService
from letters_rag.ingest.pipeline import IngestPipeline
from letters_rag.ingest.types import LoadedDocument
from letters_rag.models.entities import ConversationTurn, RetrievedChunk
from letters_rag.retrieval import Retriever

CORPUS = "Berkshire Hathaway shareholder letters"


class FailingRetriever:
    def retrieve(self, query_text, limit=5):
        raise EmbeddingFailure("embedding service down")


@pytest.fixture
def service(store, embedder, fake_chat_model):
    return AnswerService(Retriever(store, embedder), AnswerGenerator(fake_chat_model, CORPUS))


@pytest.fixture
def ingested(store, embedder, settings, buffett_text):
    document = LoadedDocument(
        path=Path("letters/berkshire-1987.pdf"), text=buffett_text, year=1987, page_count=1, size_bytes=2048
    )
    IngestPipeline(store, embedder, settings).ingest_documents([document])
    return store


def test_context_labels_chunks_in_order():
    chunks = [
        RetrievedChunk(content="first", score=0.9, source="a.pdf", year=1999),
        RetrievedChunk(content="second", score=0.5),
    ]
    assert assemble_context(chunks) == "[Chunk 1 (Source: a.pdf, Year: 1999)]\nfirst\n\n---\n\n[Chunk 2]\nsecond"


def test_chunk_marker_with_partial_provenance():
    assert chunk_marker(3, RetrievedChunk(content="x", score=0.1, source="a.pdf")) == "[Chunk 3 (Source: a.pdf)]"
    assert chunk_marker(1, RetrievedChunk(content="x", score=0.1, year=2004)) == "[Chunk 1 (Year: 2004)]"


def test_cited_chunk_numbers():
    answer = "Float grew [Chunk 2] and buybacks paused [chunk 1]; see also [Chunk 9] and [Chunk 2]."
    assert cited_chunk_numbers(answer, 3) == [1, 2]
    assert cited_chunk_numbers("No markers here.", 3) == []


def test_prompt_constrains_model_to_context():
    messages = build_answer_prompt("What is float?", "[Chunk 1]\nFloat is...", corpus=CORPUS)
    assert [type(m) for m in messages] == [SystemMessage, HumanMessage]
    system, user = (m.content for m in messages)
    assert "ONLY" in system
    assert CORPUS in system
    assert INSUFFICIENT_CONTEXT_REPLY in system
    assert "[Chunk 1]\nFloat is..." in user
    assert user.index("Context from") < user.index("What is float?")


def test_prompt_includes_history_between_rules_and_question():
    history = [ConversationTurn("user", "Who writes the letters?"), ConversationTurn("assistant", "Warren Buffett.")]
    messages = build_answer_prompt("And when?", "ctx", corpus=CORPUS, history=history)
    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert messages[1].content == "Who writes the letters?"
    assert messages[2].content == "Warren Buffett."


def test_generator_returns_model_text(fake_chat_model):
    fake_chat_model.reply = "  Float is money held for claims [Chunk 1].  "
    generator = AnswerGenerator(fake_chat_model, CORPUS)
    assert generator.generate("What is float?", "ctx") == "Float is money held for claims [Chunk 1]."
    assert len(fake_chat_model.calls) == 1


def test_generator_joins_multipart_content():
    class PartsModel:
        def invoke(self, messages):
            return AIMessage(content=[{"type": "text", "text": "Part one. "}, "Part two."])

    assert AnswerGenerator(PartsModel(), CORPUS).generate("q", "ctx") == "Part one. Part two."


def test_generator_failures(fake_chat_model):
    generator = AnswerGenerator(fake_chat_model, CORPUS)
    fake_chat_model.reply = "   "
    with pytest.raises(GenerationFailure, match="empty"):
        generator.generate("q", "ctx")
    fake_chat_model.error = TimeoutError("read timed out")
    with pytest.raises(GenerationFailure, match="read timed out"):
        generator.generate("q", "ctx")


def test_empty_store_answers_without_generating(service, fake_chat_model):
    outcome = service.answer("What did Buffett say about gold?")
    assert outcome.success
    assert outcome.answer == (
        "I couldn't find any relevant information in the Berkshire Hathaway shareholder letters "
        "to answer this question."
    )
    assert outcome.sources == []
    assert outcome.verification.chunks_retrieved == 0
    assert outcome.verification.chunks_used == []
    assert outcome.verification.context_length == 0
    assert outcome.verification.verified_from_database
    assert fake_chat_model.calls == []


def test_answer_reports_provenance(ingested, service, fake_chat_model):
    outcome = service.answer("What does Buffett believe in?", limit=2)
    assert outcome.success
    assert outcome.answer == fake_chat_model.reply
    assert [(s.source, s.year) for s in outcome.sources] == [("letters/berkshire-1987.pdf", 1987)] * 2
    verification = outcome.verification
    assert verification.chunks_retrieved == 2
    assert [usage.chunk_number for usage in verification.chunks_used] == [1, 2]
    assert verification.chunks_used[0].preview.endswith("...")
    assert verification.cited_chunks == [1]
    prompt = fake_chat_model.calls[0][-1].content
    assert "[Chunk 1 (Source: letters/berkshire-1987.pdf, Year: 1987)]" in prompt
    assert verification.context_length > 0
    assert verification.context_length < len(prompt)


def test_answer_passes_history(ingested, service, fake_chat_model):
    history = [ConversationTurn("user", "Earlier question"), ConversationTurn("assistant", "Earlier answer")]
    service.answer("Follow-up?", history=history)
    sent = fake_chat_model.calls[0]
    assert [m.content for m in sent[1:3]] == ["Earlier question", "Earlier answer"]


def test_generation_failure_returns_failed_outcome(ingested, service, fake_chat_model):
    fake_chat_model.error = RuntimeError("model overloaded")
    outcome = service.answer("What does Buffett believe in?")
    assert not outcome.success
    assert outcome.answer is None
    assert outcome.error == "Failed to generate answer"
    assert "model overloaded" in outcome.message
    assert outcome.verification.chunks_retrieved > 0
    assert outcome.to_dict()["verification"]["cited_chunks"] == []


def test_retrieval_failure_returns_failed_outcome(fake_chat_model):
    service = AnswerService(FailingRetriever(), AnswerGenerator(fake_chat_model, CORPUS))
    outcome = service.answer("anything")
    assert not outcome.success
    assert outcome.error == "Failed to retrieve chunks"
    assert outcome.verification is None
    assert fake_chat_model.calls == []


def test_conversation_memory():
    memory = ConversationMemory()
    memory.add("user", "hello")
    memory.add("assistant", "hi")
    turns = memory.get()
    assert [(t.role, t.content) for t in turns] == [("user", "hello"), ("assistant", "hi")]
    turns.clear()
    assert len(memory) == 2
    with pytest.raises(ValueError):
        memory.add("system", "nope")
    memory.clear()
    assert memory.get() == []


def test_empty_store_reply_names_configured_corpus(store, embedder, fake_chat_model):
    service = AnswerService(Retriever(store, embedder), AnswerGenerator(fake_chat_model, "Acme annual reports"))
    outcome = service.answer("Any mention of buybacks?")
    assert outcome.answer == "I couldn't find any relevant information in the Acme annual reports to answer this question."


def test_chat_model_requires_key_for_hosted_api():
    with pytest.raises(ConfigurationError):
        get_chat_model(Settings())


def test_chat_model_for_self_hosted_endpoint_needs_no_key():
    settings = Settings(openai_base_url="http://localhost:8001/v1", llm_model="mistral-7b-instruct")
    assert settings.client_api_key() == "EMPTY"
    model = get_chat_model(settings)
    assert model.openai_api_key.get_secret_value() == "EMPTY"
    assert model.openai_api_base == "http://localhost:8001/v1"
    assert model.model_name == "mistral-7b-instruct"
    assert model.max_retries == 0


def test_configured_key_wins_over_placeholder():
    settings = Settings(openai_base_url="http://localhost:8001/v1", openai_api_key="sk-local")
    assert settings.client_api_key() == "sk-local"
    assert Settings(openai_api_key="sk-cloud").client_api_key() == "sk-cloud"
