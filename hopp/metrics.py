"""Prometheus metrics for the Hopp crawler.

All custom metrics use the 'hopp_' prefix to avoid conflicts
with other applications in a shared observability stack.
"""

from prometheus_client import Counter, Histogram, Info

# Application info
APP_INFO = Info(
    "hopp_app",
    "Hopp crawler application info"
)
APP_INFO.info({"version": "1.0.0", "name": "hopp-crawler"})

# Fetch metrics
FETCH_DURATION_SECONDS = Histogram(
    "hopp_fetch_duration_seconds",
    "Duration of outbound fetches in seconds",
    buckets=[0.1, 0.5, 1, 2, 5, 10, 30],
)

# Crawl metrics
CRAWL_TOTAL = Counter(
    "hopp_crawls_total",
    "Total number of crawls by source and status",
    ["source", "status"],  # source: web, instagram; status: completed, failed
)

CANDIDATES_FOUND = Counter(
    "hopp_candidates_found_total",
    "Candidate blocks located, by source",
    ["source"],
)

RECORDS_EXTRACTED = Counter(
    "hopp_records_extracted_total",
    "Records assembled by kind",
    ["kind"],  # event, beer_release
)

PARSE_ERRORS_TOTAL = Counter(
    "hopp_parse_errors_total",
    "Documents that could not be parsed",
    ["source"],
)

# Persistence
PERSIST_OUTCOMES = Counter(
    "hopp_persist_outcomes_total",
    "Persistence outcomes by record kind and status",
    ["kind", "status"],  # status: success, error
)
