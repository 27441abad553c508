"""Prometheus metrics for probing, the status channel and the loader."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

probe_results_total = Counter(
    "apphub_probe_results_total",
    "Liveness probe outcomes",
    ["result"],
)
probe_latency_ms = Histogram(
    "apphub_probe_latency_ms",
    "Liveness probe latency in milliseconds",
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)
heartbeats_total = Counter(
    "apphub_heartbeats_total",
    "Heartbeats accepted from federated apps",
    ["status"],
)
registry_requests_total = Counter(
    "apphub_registry_requests_total",
    "Registry API requests",
    ["route", "status"],
)
channel_connections = Gauge(
    "apphub_channel_connections",
    "Open status channel connections",
)
channel_events_total = Counter(
    "apphub_channel_events_total",
    "Events emitted on the status channel",
    ["event", "scope"],
)
channel_dropped_total = Counter(
    "apphub_channel_dropped_total",
    "Events dropped because a connection send queue was full",
)
loader_attempts_total = Counter(
    "apphub_loader_attempts_total",
    "Client loader load attempts",
    ["strategy", "outcome"],
)
boundary_faults_total = Counter(
    "apphub_boundary_faults_total",
    "Faults captured by fault isolation boundaries",
    ["phase"],
)
