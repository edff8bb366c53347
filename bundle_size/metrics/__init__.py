import logging

from prometheus_client import Counter, Histogram

log = logging.getLogger(__name__)


__all__ = [
    "Counter",
    "Histogram",
    "inc_counter",
]


def inc_counter(counter: Counter, labels: dict | None = None) -> None:
    try:
        if labels:
            counter.labels(**labels).inc()
        else:
            counter.inc()
    except Exception as e:
        log.warning(f"Error incrementing counter {counter._name}: {e}")
