"""
Prometheus metrics instrumentation for the fortune teller.

Tracks:
- Chat requests by status and their latency
- Parse attempts and which strategy recovered a reply
- Turn outcomes (completed, empty, transport/parse failure)
- Speech synthesis latency and playback outcomes

Usage:
    from metrics import track_chat_call, record_parse_attempt

    with track_chat_call(model="llama3"):
        raw = await client.complete(messages)
    record_parse_attempt("success")
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram

# === COUNTERS ===

chat_requests_total = Counter(
    "fortune_teller_chat_requests_total",
    "Chat-completion requests sent",
    ["model", "status"],
)

parse_attempts_total = Counter(
    "fortune_teller_parse_attempts_total",
    "Attempts to parse a structured reply",
    ["outcome"],
)

parse_strategy_total = Counter(
    "fortune_teller_parse_strategy_total",
    "Successful parses by the strategy that recovered the reply",
    ["strategy"],
)

turn_outcomes_total = Counter(
    "fortune_teller_turn_outcomes_total",
    "Conversation turns by outcome",
    ["outcome"],
)

playback_outcomes_total = Counter(
    "fortune_teller_playback_outcomes_total",
    "Playback sessions by outcome",
    ["outcome"],
)

# === HISTOGRAMS ===

chat_latency_seconds = Histogram(
    "fortune_teller_chat_latency_seconds",
    "Time taken for chat-completion calls",
    ["model"],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, float("inf")),
)

tts_latency_seconds = Histogram(
    "fortune_teller_tts_latency_seconds",
    "Time taken for speech synthesis",
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, float("inf")),
)

# === CONTEXT MANAGERS ===


@contextmanager
def track_chat_call(model: str) -> Generator[None, None, None]:
    """
    Time a chat-completion call and count it as success or error.

    Example:
        with track_chat_call("llama3"):
            raw = await client.complete(messages)
    """
    start_time = time.time()
    status = "error"
    try:
        yield
        status = "success"
    finally:
        chat_latency_seconds.labels(model=model).observe(time.time() - start_time)
        chat_requests_total.labels(model=model, status=status).inc()


@contextmanager
def track_tts_call() -> Generator[None, None, None]:
    """Time a speech synthesis call."""
    start_time = time.time()
    try:
        yield
    finally:
        tts_latency_seconds.observe(time.time() - start_time)


def record_parse_attempt(outcome: str, strategy: str | None = None) -> None:
    """Count one parse attempt; ``strategy`` names the winner on success."""
    parse_attempts_total.labels(outcome=outcome).inc()
    if strategy:
        parse_strategy_total.labels(strategy=strategy).inc()


def record_turn_outcome(outcome: str) -> None:
    turn_outcomes_total.labels(outcome=outcome).inc()


def record_playback_outcome(outcome: str) -> None:
    playback_outcomes_total.labels(outcome=outcome).inc()
