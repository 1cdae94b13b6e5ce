"""Metric sinks and status-code accounting for the workload generator"""
import logging
import threading
from collections import defaultdict
from typing import Iterable, Optional, Protocol

from prometheus_client import CollectorRegistry, Counter, Histogram, REGISTRY, start_http_server

from loadgen.models import MetricSample

logger = logging.getLogger(__name__)

STATUS_CLASSES = ("200", "400", "5xx", "other")


def classify_status(status_code: int) -> str:
    """Map a status code to exactly one of 200, 400, 5xx or other"""
    if status_code == 200:
        return "200"
    if status_code == 400:
        return "400"
    if status_code >= 500:
        return "5xx"
    return "other"


class MetricsSink(Protocol):
    """Anything that accepts metric samples from the generator"""

    def record(self, sample: MetricSample) -> None:
        ...


class StatusAccumulator:
    """
    Counts samples by status class and operation.

    Shared by every virtual user in a process, so updates take a lock.
    snapshot() returns plain numbers that can be printed or serialised.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._status_counts = dict.fromkeys(STATUS_CLASSES, 0)
        self._op_counts = defaultdict(int)
        self._op_failures = defaultdict(int)
        self._op_duration_ms = defaultdict(float)
        self._timeouts = 0

    def record(self, sample: MetricSample) -> None:
        with self._lock:
            self._status_counts[classify_status(sample.status_code)] += 1
            self._op_counts[sample.operation_name] += 1
            self._op_duration_ms[sample.operation_name] += sample.duration_ms
            if not sample.success:
                self._op_failures[sample.operation_name] += 1
            if sample.timed_out:
                self._timeouts += 1

    def reset(self) -> None:
        with self._lock:
            self._clear()

    def _clear(self) -> None:
        self._status_counts = dict.fromkeys(STATUS_CLASSES, 0)
        self._op_counts.clear()
        self._op_failures.clear()
        self._op_duration_ms.clear()
        self._timeouts = 0

    def drain(self) -> dict:
        """Raw counters since the last drain, then reset; see merge()"""
        with self._lock:
            raw = {
                "status": dict(self._status_counts),
                "op_counts": dict(self._op_counts),
                "op_failures": dict(self._op_failures),
                "op_duration_ms": dict(self._op_duration_ms),
                "timeouts": self._timeouts,
            }
            self._clear()
        return raw

    def merge(self, raw: dict) -> None:
        """Add counters drained from another process (a Locust worker)"""
        with self._lock:
            for status_class, count in raw.get("status", {}).items():
                self._status_counts[status_class] += count
            for name, count in raw.get("op_counts", {}).items():
                self._op_counts[name] += count
            for name, count in raw.get("op_failures", {}).items():
                self._op_failures[name] += count
            for name, duration in raw.get("op_duration_ms", {}).items():
                self._op_duration_ms[name] += duration
            self._timeouts += raw.get("timeouts", 0)

    def snapshot(self) -> dict:
        """Current totals as plain ints and floats"""
        with self._lock:
            status = dict(self._status_counts)
            total = sum(status.values())
            operations = {
                name: {
                    "count": count,
                    "failures": self._op_failures[name],
                    "avg_ms": self._op_duration_ms[name] / count,
                }
                for name, count in self._op_counts.items()
            }
            timeouts = self._timeouts

        return {
            "status": status,
            "total": total,
            "timeouts": timeouts,
            "success_rate": status["200"] / total if total else 0.0,
            "operations": operations,
        }


class PrometheusSink:
    """Exports generator-side samples as Prometheus metrics"""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.requests_total = Counter(
            'loadgen_requests_total',
            'Requests issued against the application under test',
            ['operation', 'status_class'],
            registry=registry
        )

        self.request_duration_seconds = Histogram(
            'loadgen_request_duration_seconds',
            'Latency observed by the load generator',
            ['operation'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
            registry=registry
        )

        self.timeouts_total = Counter(
            'loadgen_timeouts_total',
            'Requests that exceeded the client timeout',
            ['operation'],
            registry=registry
        )

    def record(self, sample: MetricSample) -> None:
        self.requests_total.labels(
            operation=sample.operation_name,
            status_class=classify_status(sample.status_code)
        ).inc()

        self.request_duration_seconds.labels(
            operation=sample.operation_name
        ).observe(sample.duration_ms / 1000)

        if sample.timed_out:
            self.timeouts_total.labels(operation=sample.operation_name).inc()


class FanOutSink:
    """Forwards each sample to several sinks"""

    def __init__(self, sinks: Iterable[MetricsSink]):
        self.sinks = list(sinks)

    def record(self, sample: MetricSample) -> None:
        for sink in self.sinks:
            sink.record(sample)


class RecordingSink:
    """Keeps every sample in memory; used by the seed command and tests"""

    def __init__(self):
        self.samples: list[MetricSample] = []

    def record(self, sample: MetricSample) -> None:
        self.samples.append(sample)


_prometheus_sink: Optional[PrometheusSink] = None


def get_prometheus_sink(port: Optional[int] = None) -> PrometheusSink:
    """Process-wide Prometheus sink, optionally serving /metrics on port"""
    global _prometheus_sink
    if _prometheus_sink is None:
        _prometheus_sink = PrometheusSink()
        if port:
            start_http_server(port)
            logger.info(f"Prometheus exporter listening on :{port}")
    return _prometheus_sink
