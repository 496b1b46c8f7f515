# embed_gateway/metrics.py
from prometheus_client import Counter

CACHE_HITS = Counter(
    "embed_gateway_cache_hits_total",
    "Texts served from the embedding cache",
)
CACHE_MISSES = Counter(
    "embed_gateway_cache_misses_total",
    "Texts sent to the embedding provider",
)
QUOTA_REJECTIONS = Counter(
    "embed_gateway_quota_rejections_total",
    "Requests or texts refused by admission control",
    ["kind"],
)
PROVIDER_FAILURES = Counter(
    "embed_gateway_provider_failures_total",
    "Failed embedding provider calls",
)
