"""
Template-based clustering of raw log events.

Every event goes acquire -> populate -> fold -> release through a `LogEntryPool`; nothing
holds on to a pooled entry after its event has been folded into a cluster.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from logrca.core.events import (
    extract_app,
    extract_labels,
    extract_message,
    extract_severity,
    extract_subsystem,
    extract_timestamp,
    extract_trace_context,
    truncate_text,
)
from logrca.core.models import LogCluster, RootCauseCategory
from logrca.logs.pool import LogEntry, LogEntryPool, get_default_pool
from logrca.logs.templates import extract_template

logger = logging.getLogger(__name__)

MAX_SAMPLES = 3
MAX_SAMPLE_LEN = 200

# First match wins; order is part of the contract.
ROOT_CAUSE_RULES: List[Tuple[RootCauseCategory, Tuple[str, ...]]] = [
    (RootCauseCategory.MEMORY_PRESSURE, ("oom", "out of memory", "heap", "memory limit", "cannot allocate")),
    (RootCauseCategory.TIMEOUT, ("timeout", "timed out", "deadline exceeded", "context deadline")),
    (
        RootCauseCategory.NETWORK_FAILURE,
        ("connection refused", "connection reset", "no route to host", "network unreachable"),
    ),
    (RootCauseCategory.STORAGE_FAILURE, ("disk full", "no space left", "i/o error", "read-only file system")),
    (RootCauseCategory.AUTH_FAILURE, ("permission denied", "unauthorized", "forbidden", "401", "403")),
    (RootCauseCategory.CODE_BUG, ("null pointer", "nil pointer", "segmentation fault", "panic")),
    (RootCauseCategory.RATE_LIMITED, ("rate limit", "throttl", "too many requests", "429")),
    (RootCauseCategory.DNS_FAILURE, ("dns", "name resolution", "could not resolve")),
    (RootCauseCategory.TLS_FAILURE, ("certificate", "ssl", "tls", "x509")),
    (RootCauseCategory.DATABASE_FAILURE, ("database", "sql", "query failed", "deadlock")),
    (RootCauseCategory.CPU_PRESSURE, ("cpu", "load average", "high load")),
    (RootCauseCategory.K8S_ORCHESTRATION, ("kubernetes", "pod", "container", "evict")),
]


def infer_root_cause(template: str) -> RootCauseCategory:
    lower = (template or "").lower()
    for category, needles in ROOT_CAUSE_RULES:
        if any(n in lower for n in needles):
            return category
    return RootCauseCategory.UNKNOWN


def populate_entry(event: Dict[str, Any], entry: LogEntry) -> None:
    """Fill a pooled entry from a raw event (no allocation of the entry itself)."""
    entry.message = extract_message(event)
    entry.severity, entry.severity_num = extract_severity(event)
    entry.app = extract_app(event)
    entry.subsystem = extract_subsystem(event)
    entry.timestamp = extract_timestamp(event)
    entry.trace_id, entry.span_id = extract_trace_context(event)
    entry.labels.update(extract_labels(event))


def _fold(cluster: LogCluster, entry: LogEntry) -> None:
    cluster.count += 1

    if entry.severity_num > cluster.severity:
        cluster.severity = entry.severity_num
        cluster.severity_name = entry.severity

    if entry.app and entry.app not in cluster.apps:
        cluster.apps.append(entry.app)

    if len(cluster.samples) < MAX_SAMPLES:
        cluster.samples.append(truncate_text(entry.message, MAX_SAMPLE_LEN))

    ts = entry.timestamp
    if ts is not None:
        if cluster.first_seen is None or ts < cluster.first_seen:
            cluster.first_seen = ts
        if cluster.last_seen is None or ts > cluster.last_seen:
            cluster.last_seen = ts


def cluster_logs(events: Iterable[Any], *, pool: Optional[LogEntryPool] = None) -> List[LogCluster]:
    """
    Group events by message template.

    Non-dict events and events without a message are skipped. Result order:
    severity desc, count desc, template_id asc.
    """
    pool = pool or get_default_pool()
    clusters: Dict[str, LogCluster] = {}
    skipped = 0

    for event in events or []:
        if not isinstance(event, dict):
            skipped += 1
            continue

        entry = pool.acquire()
        try:
            populate_entry(event, entry)
            if not entry.message:
                skipped += 1
                continue

            entry.template, entry.template_id = extract_template(entry.message)
            cluster = clusters.get(entry.template_id)
            if cluster is None:
                cluster = LogCluster(
                    template_id=entry.template_id,
                    template=entry.template,
                    representative_message=entry.message,
                )
                clusters[entry.template_id] = cluster
            _fold(cluster, entry)
        finally:
            pool.release(entry)

    out = list(clusters.values())
    for c in out:
        c.root_cause = infer_root_cause(c.template)
    out.sort(key=lambda c: (-c.severity, -c.count, c.template_id))

    logger.debug("Clustered events into %d templates (%d skipped)", len(out), skipped)
    return out
