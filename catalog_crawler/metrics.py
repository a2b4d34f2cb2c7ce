"""Prometheus metrics for the catalog crawler."""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("catalog_crawler", "Catalog crawler application info")
app_info.info({"version": "0.1.0", "name": "catalog-crawler"})

# Job metrics
crawl_jobs_total = Counter(
    "crawl_jobs_total",
    "Total number of crawl jobs",
    ["site", "status"],
)

crawl_job_duration_seconds = Histogram(
    "crawl_job_duration_seconds",
    "Wall-clock time of crawl jobs",
    ["site"],
    buckets=[10.0, 30.0, 60.0, 300.0, 900.0, 1800.0, 3600.0, 7200.0],
)

# Extraction metrics
records_scraped_total = Counter(
    "records_scraped_total",
    "Total number of product records extracted",
    ["site"],
)

category_errors_total = Counter(
    "category_errors_total",
    "Total number of categories that failed to crawl",
    ["site"],
)

image_downloads_total = Counter(
    "image_downloads_total",
    "Total number of image download attempts",
    ["status"],
)

# Persistence metrics
reconcile_outcomes_total = Counter(
    "reconcile_outcomes_total",
    "Upsert outcomes per record",
    ["site", "outcome"],
)


def record_job(site: str, success: bool, duration: float):
    """Record a finished crawl job."""
    status = "success" if success else "error"
    crawl_jobs_total.labels(site=site, status=status).inc()
    crawl_job_duration_seconds.labels(site=site).observe(duration)


def record_job_rejected(site: str):
    """Record a job rejected because another one holds the run lock."""
    crawl_jobs_total.labels(site=site, status="rejected").inc()


def record_category(site: str, records: int):
    """Record a successfully crawled category."""
    records_scraped_total.labels(site=site).inc(records)


def record_category_error(site: str):
    """Record a failed category."""
    category_errors_total.labels(site=site).inc()


def record_image_download(success: bool):
    """Record an image download attempt."""
    status = "success" if success else "error"
    image_downloads_total.labels(status=status).inc()


def record_reconcile(site: str, new: int, updated: int, unchanged: int, errors: int):
    """Record the outcome counters of one reconcile batch."""
    for outcome, count in (
        ("new", new),
        ("updated", updated),
        ("unchanged", unchanged),
        ("error", errors),
    ):
        if count:
            reconcile_outcomes_total.labels(site=site, outcome=outcome).inc(count)
