"""Built-in heuristic matchers (timeouts, memory, databases, auth, rate limits, network).

Matching is a case-insensitive substring check on the finding summary. Order here is the order
the engine evaluates matchers, and therefore the tie-break order for equal action priorities.
"""

from typing import List

from logrca.core.models import ActionType, SOPRecommendation
from logrca.diagnostics.heuristics import HeuristicMatcher

TIMEOUT_SOP = SOPRecommendation(
    trigger="Timeout errors detected",
    procedure="\n".join(
        [
            "1. Check downstream service health status",
            "2. Review network latency metrics",
            "3. Verify connection pool settings",
            "4. Check for resource contention (CPU/Memory)",
            "5. Review recent deployments or configuration changes",
        ]
    ),
    escalation="If unresolved in 15 minutes, escalate to Platform team",
)

MEMORY_SOP = SOPRecommendation(
    trigger="Memory pressure detected",
    procedure="\n".join(
        [
            "1. Check container memory limits and current usage",
            "2. Review runtime heap settings (e.g. -Xmx/-Xms)",
            "3. Analyze heap dumps if available",
            "4. Check for memory leaks in recent deployments",
            "5. Consider horizontal scaling",
            "6. Review object caching configurations",
        ]
    ),
    escalation="If OOMKilled, escalate to Development team immediately",
)

DATABASE_SOP = SOPRecommendation(
    trigger="Database connection/query issues detected",
    procedure="\n".join(
        [
            "1. Check database connection pool settings",
            "2. Review slow query logs",
            "3. Check database CPU and memory utilization",
            "4. Verify max_connections settings",
            "5. Look for long-running transactions",
            "6. Check for table locks or deadlocks",
        ]
    ),
    escalation="If database-related, escalate to DBA team",
)

AUTH_SOP = SOPRecommendation(
    trigger="Authentication/Authorization failures detected",
    procedure="\n".join(
        [
            "1. Verify service credentials and API keys",
            "2. Check IAM policy changes",
            "3. Review token expiration settings",
            "4. Check for certificate issues",
            "5. Verify OAuth/OIDC provider status",
            "6. Review recent permission changes",
        ]
    ),
    escalation="If security incident suspected, escalate to Security team immediately",
)

RATE_LIMIT_SOP = SOPRecommendation(
    trigger="Rate limiting detected",
    procedure="\n".join(
        [
            "1. Identify the source of excessive requests",
            "2. Review rate limit configurations",
            "3. Check for retry storms",
            "4. Implement exponential backoff if not present",
            "5. Consider request caching or batching",
            "6. Contact API provider if external limit",
        ]
    ),
    escalation="If business-critical, escalate to Engineering lead",
)

NETWORK_SOP = SOPRecommendation(
    trigger="Network connectivity issues detected",
    procedure="\n".join(
        [
            "1. Verify DNS resolution",
            "2. Check network policies and security groups",
            "3. Verify service endpoints are accessible",
            "4. Check load balancer health",
            "5. Review SSL/TLS certificate validity",
            "6. Check for network partitions",
        ]
    ),
    escalation="If infrastructure-wide, escalate to Platform/Network team",
)


TIMEOUT_MATCHER = HeuristicMatcher(
    name="timeout_detector",
    phrases=[
        "timeout",
        "timed out",
        "deadline exceeded",
        "context deadline",
        "read timeout",
        "write timeout",
        "connection timeout",
        "request timeout",
        "504",
    ],
    priority=1,
    action_type=ActionType.CORRELATE,
    description="Check downstream service health and network latency",
    rationale="Timeout errors indicate slow downstream services or network issues",
    sop=TIMEOUT_SOP,
    query_template="""source logs
| filter $l.applicationname == '{service}'
| filter $d.duration_ms.exists()
| calculate avg($d.duration_ms) as avg_latency,
    percentile($d.duration_ms, 95) as p95_latency,
    percentile($d.duration_ms, 99) as p99_latency
| limit 1""",
)

MEMORY_MATCHER = HeuristicMatcher(
    name="memory_detector",
    phrases=[
        "out of memory",
        "oom",
        "heap space",
        "memory limit",
        "gc overhead",
        "allocation failure",
        "java.lang.outofmemory",
        "fatal error: runtime: out of memory",
        "oomkilled",
        "memory pressure",
        "memory leak",
    ],
    priority=1,
    action_type=ActionType.QUERY,
    description="Check container resource limits and memory trends",
    rationale="Memory errors indicate potential leaks or insufficient limits",
    sop=MEMORY_SOP,
)

DATABASE_MATCHER = HeuristicMatcher(
    name="database_detector",
    phrases=[
        "connection pool",
        "too many connections",
        "deadlock",
        "lock wait timeout",
        "cannot acquire",
        "database",
        "sql",
        "query failed",
        "transaction",
        "postgres",
        "mysql",
        "mongodb",
        "redis",
        "connection refused",
        "max_connections",
        "slow query",
        "query timeout",
    ],
    priority=1,
    action_type=ActionType.QUERY,
    description="Analyze slow database queries",
    rationale="Database issues often cause cascading failures",
    sop=DATABASE_SOP,
    query_template="""source logs
| filter $l.applicationname == '{service}' && $d.sql.exists()
| groupby $d.sql
| calculate avg($d.exec_ms) as avg_time, max($d.exec_ms) as max_time, count() as query_count
| sortby -avg_time
| limit 10""",
)

AUTH_MATCHER = HeuristicMatcher(
    name="auth_detector",
    phrases=[
        "unauthorized",
        "forbidden",
        "401",
        "403",
        "authentication failed",
        "invalid token",
        "expired token",
        "access denied",
        "permission denied",
        "invalid credentials",
        "jwt",
        "oauth",
        "saml",
    ],
    priority=2,
    action_type=ActionType.QUERY,
    description="Investigate authentication failures",
    rationale="Auth failures may indicate credential issues or security incidents",
    sop=AUTH_SOP,
    query_template="""source logs
| filter $l.applicationname == '{service}'
| filter $d.message.contains('401') || $d.message.contains('403') || $d.message.contains('auth')
| groupby $d.user_id, $d.endpoint
| calculate count() as failures
| sortby -failures
| limit 20""",
)

RATE_LIMIT_MATCHER = HeuristicMatcher(
    name="rate_limit_detector",
    phrases=["rate limit", "429", "too many requests", "throttled", "quota exceeded", "limit exceeded", "backoff"],
    priority=2,
    action_type=ActionType.CORRELATE,
    description="Analyze request patterns and rate limits",
    rationale="Rate limiting indicates traffic spikes or misconfigured limits",
    sop=RATE_LIMIT_SOP,
)

NETWORK_MATCHER = HeuristicMatcher(
    name="network_detector",
    phrases=[
        "connection refused",
        "connection reset",
        "no route to host",
        "network unreachable",
        "dns",
        "econnrefused",
        "econnreset",
        "socket",
        "tcp",
        "ssl",
        "tls",
        "certificate",
        "502",
        "503",
        "bad gateway",
        "service unavailable",
    ],
    priority=1,
    action_type=ActionType.CORRELATE,
    description="Check network connectivity and DNS resolution",
    rationale="Network errors indicate infrastructure or connectivity issues",
    sop=NETWORK_SOP,
)


def default_matchers() -> List[HeuristicMatcher]:
    """Fresh list in evaluation order (callers may append their own)."""
    return [
        TIMEOUT_MATCHER,
        MEMORY_MATCHER,
        DATABASE_MATCHER,
        AUTH_MATCHER,
        RATE_LIMIT_MATCHER,
        NETWORK_MATCHER,
    ]
