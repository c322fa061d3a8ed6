"""Tests for agents."""
import json
from datetime import date
from typing import Dict, List, Optional
from unittest.mock import Mock

import httpx
import pytest

from openslots.agents.orchestrator import IngestionOrchestrator
from openslots.agents.slot_extractor import TRUNCATION_MARKER, SlotExtractor
from openslots.config import settings
from openslots.exceptions import (
    AIParseError,
    AIResponseError,
    AIServiceError,
    ConfigurationError,
    ExtractionError,
    FetchError,
    IngestionError,
)
from openslots.models import ExtractorKind, SlotStatus
from openslots.services.heuristic_parser import HeuristicSlotParser
from openslots.services.llm_provider import (
    ChatCompletionsProvider,
    LLMProvider,
    get_llm_provider,
)
from openslots.services.reference_resolver import GYMS, ReferenceResolver
from openslots.services.slot_reconciler import OPEN_SLOTS, SlotReconciler
from openslots.services.source_tracker import SOURCES, SourceTracker

SCHEDULE = {
    "gymName": "渋谷区スポーツセンター",
    "areaName": "渋谷区",
    "address": "東京都渋谷区西原1-40-18",
    "tel": "03-3468-9051",
    "slots": [
        {
            "date": "2025-12-15",
            "start_time": "9:00",
            "end_time": "11:00",
            "sport_name": "バドミントン",
            "status": "available",
            "capacity": 20,
            "remaining": 5,
            "reception_type": "same_day",
            "target": "高校生以上",
            "notes": None,
        },
        {
            "date": "2025-12-15",
            "start_time": "13:00",
            "end_time": "15:00",
            "sport_name": "ゲートボール",
            "status": "few",
        },
    ],
}

PDF_TEXT = "渋谷区スポーツセンター\n12月15日\nバドミントン 9:00-11:00 ○\n卓球 13:00-15:00 △"


class FakeProvider(LLMProvider):
    """LLM provider returning a canned answer."""

    def __init__(self, content: str = "", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[Dict] = []

    async def chat(self, messages, system=None, max_tokens=2000, temperature=0.3) -> str:
        self.calls.append({"messages": messages, "system": system})
        if self.error:
            raise self.error
        return self.content

    def get_name(self) -> str:
        return "Fake"


class TestSlotExtractor:
    """Tests for SlotExtractor."""

    def test_unwrap_fenced_json(self):
        """Test extracting JSON from a fenced code block."""
        extractor = SlotExtractor(provider=FakeProvider())
        content = '```json\n{\n  "gymName": "A"\n}\n```'
        assert json.loads(extractor._unwrap(content)) == {"gymName": "A"}

    def test_unwrap_plain_json(self):
        extractor = SlotExtractor(provider=FakeProvider())
        assert extractor._unwrap('  {"a": 1}  ') == '{"a": 1}'

    def test_decode_invalid_json(self):
        """Test invalid JSON raises a parse error."""
        extractor = SlotExtractor(provider=FakeProvider())
        with pytest.raises(AIParseError):
            extractor._decode("This is not valid JSON")

    def test_decode_non_object(self):
        extractor = SlotExtractor(provider=FakeProvider())
        with pytest.raises(AIParseError):
            extractor._decode("[1, 2, 3]")

    def test_decode_wrong_shape(self):
        """Test a slot with an unknown status fails the whole answer."""
        extractor = SlotExtractor(provider=FakeProvider())
        bad = {"gymName": "A", "slots": [{"date": "2025-12-15", "status": "maybe"}]}
        with pytest.raises(AIParseError):
            extractor._decode(json.dumps(bad))

    def test_build_prompt(self):
        """Test the prompt carries the text and the year rules."""
        extractor = SlotExtractor(provider=FakeProvider())
        prompt = extractor._build_prompt("12月15日 9:00-11:00", date(2025, 12, 1))
        assert "12月15日 9:00-11:00" in prompt
        assert "2025年とし、12月より前の月は2026年" in prompt
        assert "gymName" in prompt
        assert "json" in prompt.lower()

    @pytest.mark.asyncio
    async def test_extract(self):
        provider = FakeProvider(content=f"```json\n{json.dumps(SCHEDULE, ensure_ascii=False)}\n```")
        extractor = SlotExtractor(provider=provider)

        schedule = await extractor.extract(PDF_TEXT, "https://example.jp/a.pdf")

        assert schedule.gym_name == "渋谷区スポーツセンター"
        assert schedule.area_name == "渋谷区"
        assert len(schedule.slots) == 2
        assert schedule.slots[0].start_time == "09:00"
        assert schedule.slots[0].notes == ""
        assert schedule.slots[1].status == SlotStatus.FEW
        assert provider.calls[0]["system"]
        assert provider.calls[0]["messages"][0]["role"] == "user"

    @pytest.mark.asyncio
    async def test_extract_empty_content(self):
        extractor = SlotExtractor(provider=FakeProvider(content="  "))
        with pytest.raises(AIParseError, match="No content from completion API"):
            await extractor.extract(PDF_TEXT)

    @pytest.mark.asyncio
    async def test_extract_truncates_long_text(self):
        provider = FakeProvider(content='{"gymName": "A", "slots": []}')
        extractor = SlotExtractor(provider=provider, max_text_length=10)

        await extractor.extract("あ" * 20)

        prompt = provider.calls[0]["messages"][0]["content"]
        assert "あ" * 10 + TRUNCATION_MARKER in prompt
        assert "あ" * 11 not in prompt

    @pytest.mark.asyncio
    async def test_missing_credential(self, monkeypatch):
        """Test a missing API key surfaces when the extractor is used."""
        monkeypatch.setattr(settings, "llm_provider", "deepseek")
        monkeypatch.setattr(settings, "deepseek_api_key", "")
        extractor = SlotExtractor()
        with pytest.raises(ConfigurationError):
            await extractor.extract(PDF_TEXT)


@pytest.mark.asyncio
class TestChatCompletionsProvider:
    """Tests for ChatCompletionsProvider."""

    async def test_chat(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

        provider = ChatCompletionsProvider(
            api_key="sk-test",
            model="deepseek-chat",
            base_url="https://api.deepseek.com/v1/",
            transport=httpx.MockTransport(handler),
        )
        content = await provider.chat(
            [{"role": "user", "content": "hi"}], system="sys", max_tokens=100, temperature=0.3
        )

        assert content == "{}"
        assert seen["url"] == "https://api.deepseek.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "deepseek-chat"
        assert seen["body"]["max_tokens"] == 100
        assert seen["body"]["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]

    async def test_error_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text="unauthorized"))
        provider = ChatCompletionsProvider(api_key="sk-test", transport=transport)
        with pytest.raises(AIResponseError) as exc_info:
            await provider.chat([{"role": "user", "content": "hi"}])
        assert exc_info.value.status_code == 401

    async def test_non_json_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        provider = ChatCompletionsProvider(api_key="sk-test", transport=transport)
        with pytest.raises(AIParseError):
            await provider.chat([{"role": "user", "content": "hi"}])

    async def test_no_choices(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
        provider = ChatCompletionsProvider(api_key="sk-test", transport=transport)
        assert await provider.chat([{"role": "user", "content": "hi"}]) == ""

    async def test_body_not_an_object(self):
        """Test a JSON list body is reported as a parse error."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2]))
        provider = ChatCompletionsProvider(api_key="sk-test", transport=transport)
        with pytest.raises(AIParseError):
            await provider.chat([{"role": "user", "content": "hi"}])

    async def test_choice_without_message(self):
        """Test a choice that is not an object is reported as a parse error."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"choices": ["oops"]})
        )
        provider = ChatCompletionsProvider(api_key="sk-test", transport=transport)
        with pytest.raises(AIParseError):
            await provider.chat([{"role": "user", "content": "hi"}])

    async def test_non_string_content(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                200, json={"choices": [{"message": {"content": {"gymName": "A"}}}]}
            )
        )
        provider = ChatCompletionsProvider(api_key="sk-test", transport=transport)
        with pytest.raises(AIParseError):
            await provider.chat([{"role": "user", "content": "hi"}])

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = ChatCompletionsProvider(api_key="sk-test", transport=httpx.MockTransport(handler))
        with pytest.raises(AIServiceError):
            await provider.chat([{"role": "user", "content": "hi"}])


class TestGetLLMProvider:
    """Tests for provider selection."""

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            get_llm_provider("gpt-unknown")

    def test_deepseek_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "deepseek_api_key", "")
        with pytest.raises(ConfigurationError, match="DEEPSEEK_API_KEY"):
            get_llm_provider("deepseek")

    def test_deepseek_with_key(self, monkeypatch):
        monkeypatch.setattr(settings, "deepseek_api_key", "sk-test")
        assert isinstance(get_llm_provider("deepseek"), ChatCompletionsProvider)

    def test_default_models(self, monkeypatch):
        """Test each provider gets its own default model name."""
        monkeypatch.setattr(settings, "deepseek_api_key", "sk-test")
        monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")

        assert get_llm_provider("deepseek").model == "deepseek-chat"
        assert get_llm_provider("claude").model == "claude-sonnet-4-20250514"
        assert get_llm_provider("ollama").model == "qwen2.5:7b"

    def test_model_settings_are_per_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")
        monkeypatch.setattr(settings, "claude_model", "claude-haiku")
        monkeypatch.setattr(settings, "ollama_model", "llama3.1:8b")

        assert get_llm_provider("claude").model == "claude-haiku"
        assert get_llm_provider("ollama").model == "llama3.1:8b"


@pytest.mark.asyncio
class TestIngestionOrchestrator:
    """Integration tests for IngestionOrchestrator."""

    TODAY = date(2025, 12, 1)

    @pytest.fixture
    def tracker(self, seeded_store):
        return SourceTracker(store=seeded_store)

    @pytest.fixture
    def make_orchestrator(self, seeded_store, tracker):
        resolver = ReferenceResolver(store=seeded_store)

        def build(provider=None, fetch_error=None, text_error=None, **kwargs):
            async def fetcher(url):
                if fetch_error:
                    raise fetch_error
                return b"%PDF-1.4"

            text_extractor = Mock()
            if text_error:
                text_extractor.extract_text = Mock(side_effect=text_error)
            else:
                text_extractor.extract_text = Mock(return_value=PDF_TEXT)

            return IngestionOrchestrator(
                fetcher=fetcher,
                text_extractor=text_extractor,
                extractor=SlotExtractor(provider=provider or FakeProvider(json.dumps(SCHEDULE))),
                parser=HeuristicSlotParser(default_sport="バドミントン"),
                resolver=resolver,
                reconciler=SlotReconciler(store=seeded_store, resolver=resolver),
                sources=tracker,
                **kwargs,
            )

        return build

    async def test_ingest_with_ai(self, make_orchestrator, tracker, seeded_store):
        source = tracker.register_source("https://example.jp/a.pdf")
        orchestrator = make_orchestrator(slot_extractor_kind="ai", heuristic_fallback=False)

        result = await orchestrator.ingest(source.id, source.url, today=self.TODAY)

        assert result.gym_id.startswith("gym_")
        assert result.extractor == ExtractorKind.AI
        assert result.slots_extracted == 2
        assert result.slots_added == 1
        assert result.slots_failed == 1
        assert result.errors == ["Sport not found: ゲートボール"]

        records = seeded_store.find(OPEN_SLOTS)
        assert len(records) == 1
        assert records[0]["source_id"] == f"source_{source.id}"
        assert records[0]["gym_id"] == result.gym_id

        stored = seeded_store.get(SOURCES, source.id)
        assert stored["gym_id"] == result.gym_id
        assert stored["last_checked_at"]

        gym = seeded_store.get(GYMS, result.gym_id[len("gym_"):])
        assert gym["official_url"] == source.url
        assert gym["tel"] == "03-3468-9051"

    async def test_second_run_reuses_gym(self, make_orchestrator, tracker, seeded_store):
        source = tracker.register_source("https://example.jp/a.pdf")
        orchestrator = make_orchestrator(slot_extractor_kind="ai", heuristic_fallback=False)

        first = await orchestrator.ingest(source.id, source.url, today=self.TODAY)
        second = await orchestrator.ingest(source.id, source.url, today=self.TODAY)

        assert first.gym_id == second.gym_id
        assert len(seeded_store.find(GYMS)) == 1
        assert len(seeded_store.find(OPEN_SLOTS)) == 2

    async def test_fetch_failure(self, make_orchestrator, tracker, seeded_store):
        source = tracker.register_source("https://example.jp/a.pdf")
        orchestrator = make_orchestrator(
            fetch_error=FetchError("PDF download failed: 404 Not Found", status_code=404),
            slot_extractor_kind="ai",
            heuristic_fallback=False,
        )

        with pytest.raises(IngestionError) as exc_info:
            await orchestrator.ingest(source.id, source.url, today=self.TODAY)

        assert exc_info.value.stage == "fetch"
        assert str(exc_info.value) == "PDF download failed: 404 Not Found"
        assert seeded_store.find(GYMS) == []
        assert seeded_store.get(SOURCES, source.id)["last_checked_at"] is None

    async def test_text_extraction_failure(self, make_orchestrator):
        orchestrator = make_orchestrator(
            text_error=ExtractionError("PDF parsing failed: bad xref"),
            slot_extractor_kind="ai",
            heuristic_fallback=False,
        )
        with pytest.raises(IngestionError) as exc_info:
            await orchestrator.ingest("abc", "https://example.jp/a.pdf", today=self.TODAY)
        assert exc_info.value.stage == "extract_text"

    async def test_ai_failure_without_fallback(self, make_orchestrator, seeded_store):
        orchestrator = make_orchestrator(
            provider=FakeProvider(error=AIResponseError("Completion API error: 500", 500)),
            slot_extractor_kind="ai",
            heuristic_fallback=False,
        )
        with pytest.raises(IngestionError) as exc_info:
            await orchestrator.ingest("abc", "https://example.jp/a.pdf", today=self.TODAY)
        assert exc_info.value.stage == "extract_slots"
        assert seeded_store.find(GYMS) == []

    async def test_ai_failure_with_fallback(self, make_orchestrator, tracker):
        source = tracker.register_source("https://example.jp/a.pdf")
        orchestrator = make_orchestrator(
            provider=FakeProvider(content="not json"),
            slot_extractor_kind="ai",
            heuristic_fallback=True,
        )

        result = await orchestrator.ingest(source.id, source.url, today=self.TODAY)

        assert result.extractor == ExtractorKind.HEURISTIC
        assert result.slots_extracted == 2
        assert result.slots_added == 2

    async def test_malformed_completion_body_falls_back(self, make_orchestrator, tracker):
        source = tracker.register_source("https://example.jp/a.pdf")
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"choices": ["oops"]})
        )
        orchestrator = make_orchestrator(
            provider=ChatCompletionsProvider(api_key="sk-test", transport=transport),
            slot_extractor_kind="ai",
            heuristic_fallback=True,
        )

        result = await orchestrator.ingest(source.id, source.url, today=self.TODAY)

        assert result.extractor == ExtractorKind.HEURISTIC
        assert result.slots_added == 2

    async def test_heuristic_mode(self, make_orchestrator, tracker):
        source = tracker.register_source("https://example.jp/a.pdf")
        provider = FakeProvider(json.dumps(SCHEDULE))
        orchestrator = make_orchestrator(
            provider=provider, slot_extractor_kind="heuristic", heuristic_fallback=False
        )

        result = await orchestrator.ingest(source.id, source.url, today=self.TODAY)

        assert result.extractor == ExtractorKind.HEURISTIC
        assert provider.calls == []
        assert result.slots_added == 2

    async def test_unregistered_source_fails_last_stage(self, make_orchestrator, seeded_store):
        orchestrator = make_orchestrator(slot_extractor_kind="ai", heuristic_fallback=False)

        with pytest.raises(IngestionError) as exc_info:
            await orchestrator.ingest("missing", "https://example.jp/a.pdf", today=self.TODAY)

        assert exc_info.value.stage == "update_source"
        # Earlier stages are not rolled back
        assert len(seeded_store.find(OPEN_SLOTS)) == 1
