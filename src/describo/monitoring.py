"""Monitoring configuration for the game."""
from prometheus_client import Counter, Gauge, start_http_server

# Session metrics
active_sessions = Gauge(
    "describo_active_sessions",
    "Number of game sessions currently held in memory",
)

# Word metrics
words_shown = Counter(
    "describo_words_shown_total",
    "Total number of words picked for the narrator",
    ["category"],
)

words_solved = Counter(
    "describo_words_solved_total",
    "Total number of words marked as solved",
    ["category"],
)

undo_count = Counter(
    "describo_undo_total",
    "Total number of solved-word undos",
    ["kind"],
)

pool_exhausted = Counter(
    "describo_pool_exhausted_total",
    "Total number of picks that found no words left",
)

# Error metrics
load_failures = Counter(
    "describo_load_failures_total",
    "Total number of word list loads that failed",
    ["kind"],
)

# Timer metrics
timer_expired = Counter(
    "describo_timer_expired_total",
    "Total number of rounds that ran out of time",
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
