from prometheus_client import Counter, Gauge, Histogram

# --- Analysis Metrics ---

# Counter for tracking analyses that reached a backend (cache hits excluded).
# Labels:
# - backend: The backend whose result was accepted (e.g., "keyword").
# - label: The sentiment label of the accepted result.
ANALYSES_TOTAL = Counter(
    "sentiment_analyses_total",
    "Total number of computed sentiment analyses.",
    ["backend", "label"],
)

# Counter for tracking error results returned by a backend.
# Labels:
# - backend: The backend that returned the error result.
ANALYSIS_ERRORS_TOTAL = Counter(
    "sentiment_analysis_errors_total",
    "Total number of sentiment analyses that ended in an error result.",
    ["backend"],
)

# Counter for tracking neural results rejected by the acceptance gate, which
# send the analysis on to the next backend in the chain.
# Labels:
# - backend: The backend whose result was rejected.
FALLBACKS_TOTAL = Counter(
    "sentiment_fallbacks_total",
    "Total number of results rejected in favour of a lower backend.",
    ["backend"],
)

# Histogram for tracking analysis latency, from sub-millisecond keyword scoring
# to slow CPU forward passes.
# Labels:
# - length_bucket: "short", "medium" or "long" input text.
ANALYSIS_LATENCY_SECONDS = Histogram(
    "sentiment_analysis_latency_seconds",
    "Latency of computed sentiment analyses.",
    ["length_bucket"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5],
)

# --- Cache Metrics ---

# Counter for tracking cache hits and misses.
# Labels:
# - cache_name: A name for the cache (e.g., "sentiment_results").
# - result: "hit" or "miss".
CACHE_ACCESS_TOTAL = Counter(
    "sentiment_cache_access_total",
    "Total number of sentiment cache hits and misses.",
    ["cache_name", "result"],
)

# --- Runtime Metrics ---

# Gauge for the tier the runtime is serving from, as its preference rank
# (0 = best). Set once per initialization.
RUNTIME_TIER_RANK = Gauge(
    "sentiment_runtime_tier_rank",
    "Preference rank of the runtime tier reached at initialization.",
)

# Gauge for the detected hardware performance score (0-100).
HARDWARE_PERFORMANCE_SCORE = Gauge(
    "sentiment_hardware_performance_score",
    "Hardware performance score computed by capability detection.",
)
