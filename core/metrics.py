"""
Prometheus metrics for the key inventory service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Gauge, Histogram

# Allocation metrics
allocation_requests_total = Counter(
    "key_allocation_requests_total",
    "Total allocation requests by outcome",
    ["key_class", "outcome"],
)

keys_allocated_total = Counter(
    "keys_allocated_total",
    "Total keys assigned to principals",
    ["key_class"],
)

credits_debited_total = Counter(
    "credits_debited_total",
    "Total credits spent on keys",
    ["key_class"],
)

allocation_duration_seconds = Histogram(
    "key_allocation_duration_seconds",
    "Allocation duration in seconds",
    ["key_class"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

# Lifecycle metrics
keys_revoked_total = Counter(
    "keys_revoked_total",
    "Total assigned keys revoked",
    ["scope"],
)

keys_consumed_total = Counter(
    "keys_consumed_total",
    "Total assigned keys marked consumed",
)

# Pool metrics
pool_available_keys = Gauge(
    "key_pool_available_keys",
    "Keys available in the pool",
    ["key_class"],
)

pool_entries_added_total = Counter(
    "key_pool_entries_added_total",
    "Total entries added to the pool",
    ["key_class", "source"],
)

pool_draw_contention_total = Counter(
    "key_pool_draw_contention_total",
    "Draw rounds that lost a compare-and-swap race",
    ["key_class"],
)

# Error metrics
errors_total = Counter(
    "key_inventory_errors_total",
    "Total errors",
    ["error_type", "operation"],
)
