"""Log template extraction and clustering.

- templates: message -> (template, template_id)
- pool: reusable LogEntry records for the parsing hot path
- clustering: events -> severity/count ordered LogClusters with inferred root causes
"""

from .clustering import cluster_logs, infer_root_cause
from .pool import LogEntry, LogEntryPool, get_default_pool
from .templates import extract_template

__all__ = [
    "LogEntry",
    "LogEntryPool",
    "cluster_logs",
    "extract_template",
    "get_default_pool",
    "infer_root_cause",
]
