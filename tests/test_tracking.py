"""Tests for LLM usage tracking."""
import json
import threading

import pytest

from resume_craft.config import Settings
from resume_craft.tracking import UsageTracker, estimate_tokens


@pytest.fixture
def tracker():
    return UsageTracker(input_price_per_1k=0.001, output_price_per_1k=0.002)


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


class TestRecording:
    def test_totals_accumulate(self, tracker):
        tracker.record_llm_call("s1", "optimize_a", "gpt-4o-mini", 1000, 500, 120.0)
        tracker.record_llm_call("s1", "optimize_b", "gpt-4o-mini", 200, 100, 80.0)
        usage = tracker.get_session_usage("s1")
        assert usage.prompt_tokens == 1200
        assert usage.completion_tokens == 600
        assert usage.total_tokens == 1800
        assert usage.estimated_cost == pytest.approx(1.2 * 0.001 + 0.6 * 0.002)

    def test_record_ids(self, tracker):
        first = tracker.record_llm_call("s1", "op", "m", 1, 1, 1.0)
        second = tracker.record_llm_call("s1", "op", "m", 1, 1, 1.0)
        assert first.startswith("call-") and second.startswith("call-")
        assert first != second

    def test_failed_call_is_recorded(self, tracker):
        tracker.record_llm_call("s1", "op", "m", 0, 0, 10.0, success=False, error="timeout")
        records = tracker.get_session_call_records("s1")
        assert len(records) == 1
        assert records[0].success is False
        assert records[0].error == "timeout"

    def test_calculate_cost(self, tracker):
        assert tracker.calculate_cost(2000, 1000) == pytest.approx(0.004)

    def test_returned_usage_is_a_copy(self, tracker):
        tracker.record_llm_call("s1", "op", "m", 10, 10, 1.0)
        usage = tracker.get_session_usage("s1")
        usage.total_tokens = 0
        assert tracker.get_session_usage("s1").total_tokens == 20

    def test_concurrent_recording(self, tracker):
        def work():
            for _ in range(50):
                tracker.record_llm_call("shared", "op", "m", 3, 2, 1.0)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert tracker.get_session_usage("shared").total_tokens == 8 * 50 * 5
        assert len(tracker.get_session_call_records("shared")) == 400


class TestQueries:
    def test_unknown_session(self, tracker):
        assert tracker.get_session_usage("nope") is None
        assert tracker.get_session_stats("nope") is None
        assert tracker.get_session_call_records("nope") == []
        assert tracker.get_operation_breakdown("nope") == []

    def test_stats(self, tracker):
        tracker.record_llm_call("s1", "op", "m", 60, 40, 100.0)
        tracker.record_llm_call("s1", "op", "m", 0, 0, 50.0, success=False)
        stats = tracker.get_session_stats("s1")
        assert stats["call_count"] == 2
        assert stats["total_tokens"] == 100
        assert stats["average_tokens_per_call"] == 50
        assert stats["total_duration_ms"] == 150.0
        assert stats["success_rate"] == 0.5

    def test_stats_for_empty_session(self, tracker):
        tracker.init_session("fresh")
        stats = tracker.get_session_stats("fresh")
        assert stats["call_count"] == 0
        assert stats["average_tokens_per_call"] == 0
        assert stats["success_rate"] == 0

    def test_operation_breakdown_sorted_by_tokens(self, tracker):
        tracker.record_llm_call("s1", "small", "m", 5, 5, 1.0)
        tracker.record_llm_call("s1", "big", "m", 300, 100, 1.0)
        tracker.record_llm_call("s1", "small", "m", 5, 5, 1.0)
        breakdown = tracker.get_operation_breakdown("s1")
        assert [e["operation"] for e in breakdown] == ["big", "small"]
        assert breakdown[1]["calls"] == 2
        assert breakdown[1]["total_tokens"] == 20

    def test_total_cost_and_active_sessions(self, tracker):
        tracker.record_llm_call("a", "op", "m", 1000, 0, 1.0)
        tracker.record_llm_call("b", "op", "m", 0, 1000, 1.0)
        assert tracker.get_total_cost() == pytest.approx(0.003)
        assert set(tracker.get_active_sessions()) == {"a", "b"}

    def test_export_session_data(self, tracker):
        tracker.record_llm_call("s1", "op", "m", 10, 5, 1.0)
        data = json.loads(tracker.export_session_data("s1"))
        assert data["usage"]["total_tokens"] == 15
        assert data["stats"]["call_count"] == 1
        assert data["breakdown"][0]["operation"] == "op"
        assert len(data["records"]) == 1
        assert "exported_at" in data

    def test_clear(self, tracker):
        tracker.record_llm_call("a", "op", "m", 1, 1, 1.0)
        tracker.record_llm_call("b", "op", "m", 1, 1, 1.0)
        tracker.clear_session("a")
        assert tracker.get_active_sessions() == ["b"]
        tracker.clear_all()
        assert tracker.get_active_sessions() == []


class TestPersistence:
    def test_reloads_from_store(self, tmp_path):
        store = tmp_path / "usage" / "store.json"
        first = UsageTracker(store_path=store)
        first.record_llm_call("s1", "op", "m", 100, 50, 10.0)
        assert store.exists()

        second = UsageTracker(store_path=store)
        assert second.get_session_usage("s1").total_tokens == 150
        assert len(second.get_session_call_records("s1")) == 1

    def test_corrupt_store_starts_empty(self, tmp_path):
        store = tmp_path / "store.json"
        store.write_text("{not json", encoding="utf-8")
        tracker = UsageTracker(store_path=store)
        assert tracker.get_active_sessions() == []

    def test_from_settings(self, tmp_path):
        settings = Settings(
            input_price_per_1k=0.5, output_price_per_1k=1.0, usage_store_path=tmp_path / "u.json"
        )
        tracker = UsageTracker.from_settings(settings)
        assert tracker.input_price_per_1k == 0.5
        assert tracker.store_path == tmp_path / "u.json"
        assert UsageTracker.from_settings(settings, persist=False).store_path is None
