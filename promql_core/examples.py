"""Fixed example corpus served when the delegate cannot provide one."""

from typing import Tuple


FALLBACK_EXAMPLES: Tuple[str, ...] = (
    "up",
    "rate(http_requests_total[5m])",
    "sum(rate(http_requests_total[5m])) by (job)",
    "histogram_quantile(0.95, sum(rate(http_request_duration_seconds_bucket[5m])) by (le))",
    'count(sum(label_replace(node_uname_info, "kernel", "$1", "release", '
    '"([0-9]+.[0-9]+.[0-9]+).*")) by (kernel)) > 1',
    "avg_over_time(cpu_usage_percent[1h]) > 80",
    'sum by (instance) (rate(node_cpu_seconds_total{mode!="idle"}[5m])) * 100',
)


def fallback_examples() -> Tuple[str, ...]:
    return FALLBACK_EXAMPLES
