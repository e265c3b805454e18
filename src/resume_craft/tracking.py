"""
LLM token usage and cost accounting, per session.

``UsageTracker`` is an ordinary object: create one and pass it to whatever
makes LLM calls. All mutation happens under a lock because the optimizer
records calls from worker threads. When ``store_path`` is set the state is
loaded at construction and rewritten after every change; persistence failures
are logged and otherwise ignored.
"""
from __future__ import annotations

import json
import math
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from resume_craft.logger import get_logger

logger = get_logger("tracking")


class LLMCallRecord(BaseModel):
    id: str
    timestamp: datetime = Field(default_factory=datetime.now)
    operation: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    duration_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None


class SessionUsage(BaseModel):
    session_id: str
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    estimated_cost: float = 0.0


class _UsageStore(BaseModel):
    sessions: Dict[str, SessionUsage] = Field(default_factory=dict)
    records: Dict[str, List[LLMCallRecord]] = Field(default_factory=dict)


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(len(text or "") / 4)


class UsageTracker:
    def __init__(
        self,
        input_price_per_1k: float = 0.00015,
        output_price_per_1k: float = 0.0006,
        store_path: Optional[Path] = None,
    ):
        self.input_price_per_1k = input_price_per_1k
        self.output_price_per_1k = output_price_per_1k
        self.store_path = Path(store_path) if store_path else None
        self._lock = threading.RLock()
        self._store = _UsageStore()
        self._load()

    @classmethod
    def from_settings(cls, settings, persist: bool = True) -> "UsageTracker":
        return cls(
            input_price_per_1k=settings.input_price_per_1k,
            output_price_per_1k=settings.output_price_per_1k,
            store_path=settings.usage_store_path if persist else None,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self.store_path is None or not self.store_path.exists():
            return
        try:
            data = json.loads(self.store_path.read_text(encoding="utf-8"))
            self._store = _UsageStore.model_validate(data)
            logger.debug(f"Loaded usage for {len(self._store.sessions)} sessions from {self.store_path}")
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Could not load usage store {self.store_path}: {e}")

    def _save(self) -> None:
        if self.store_path is None:
            return
        try:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            self.store_path.write_text(
                json.dumps(self._store.model_dump(mode="json"), indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"Could not save usage store {self.store_path}: {e}")

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        return (
            (prompt_tokens / 1000) * self.input_price_per_1k
            + (completion_tokens / 1000) * self.output_price_per_1k
        )

    def init_session(self, session_id: str) -> None:
        with self._lock:
            if session_id not in self._store.sessions:
                self._store.sessions[session_id] = SessionUsage(session_id=session_id)
                self._store.records[session_id] = []
                self._save()

    def record_llm_call(
        self,
        session_id: str,
        operation: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        duration_ms: float,
        success: bool = True,
        error: Optional[str] = None,
    ) -> str:
        """Record one LLM call and return its record id."""
        total = prompt_tokens + completion_tokens
        cost = self.calculate_cost(prompt_tokens, completion_tokens)
        record = LLMCallRecord(
            id=f"call-{uuid.uuid4().hex[:12]}",
            operation=operation,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total,
            cost=cost,
            duration_ms=duration_ms,
            success=success,
            error=error,
        )
        with self._lock:
            self.init_session(session_id)
            self._store.records[session_id].append(record)
            usage = self._store.sessions[session_id]
            usage.total_tokens += total
            usage.prompt_tokens += prompt_tokens
            usage.completion_tokens += completion_tokens
            usage.estimated_cost += cost
            self._save()

        logger.info(
            f"Recorded LLM call: {operation} | Tokens: {total} "
            f"({prompt_tokens} prompt + {completion_tokens} completion) | "
            f"Cost: ${cost:.6f} | Duration: {duration_ms:.0f}ms"
        )
        return record.id

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_session_usage(self, session_id: str) -> Optional[SessionUsage]:
        with self._lock:
            usage = self._store.sessions.get(session_id)
            return usage.model_copy() if usage else None

    def get_session_call_records(self, session_id: str) -> List[LLMCallRecord]:
        with self._lock:
            return list(self._store.records.get(session_id, []))

    def get_session_stats(self, session_id: str) -> Optional[dict]:
        with self._lock:
            usage = self._store.sessions.get(session_id)
            records = self._store.records.get(session_id)
            if usage is None or records is None:
                return None
            count = len(records)
            successes = sum(1 for r in records if r.success)
            return {
                "total_tokens": usage.total_tokens,
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "estimated_cost": usage.estimated_cost,
                "call_count": count,
                "average_tokens_per_call": usage.total_tokens / count if count else 0,
                "total_duration_ms": sum(r.duration_ms for r in records),
                "success_rate": successes / count if count else 0,
            }

    def get_operation_breakdown(self, session_id: str) -> List[dict]:
        """Calls, tokens and cost per operation, largest token users first."""
        with self._lock:
            records = list(self._store.records.get(session_id, []))
        breakdown: Dict[str, dict] = {}
        for r in records:
            entry = breakdown.setdefault(
                r.operation,
                {"operation": r.operation, "calls": 0, "total_tokens": 0, "total_cost": 0.0},
            )
            entry["calls"] += 1
            entry["total_tokens"] += r.total_tokens
            entry["total_cost"] += r.cost
        return sorted(breakdown.values(), key=lambda e: e["total_tokens"], reverse=True)

    def get_total_cost(self) -> float:
        with self._lock:
            return sum(u.estimated_cost for u in self._store.sessions.values())

    def get_active_sessions(self) -> List[str]:
        with self._lock:
            return list(self._store.sessions)

    def export_session_data(self, session_id: str) -> str:
        """JSON document with the session's usage, stats, breakdown and records."""
        usage = self.get_session_usage(session_id)
        payload = {
            "usage": usage.model_dump(mode="json") if usage else None,
            "stats": self.get_session_stats(session_id),
            "breakdown": self.get_operation_breakdown(session_id),
            "records": [r.model_dump(mode="json") for r in self.get_session_call_records(session_id)],
            "exported_at": datetime.now().isoformat(),
        }
        return json.dumps(payload, indent=2)

    def clear_session(self, session_id: str) -> None:
        with self._lock:
            self._store.sessions.pop(session_id, None)
            self._store.records.pop(session_id, None)
            self._save()

    def clear_all(self) -> None:
        with self._lock:
            self._store = _UsageStore()
            self._save()
