"""Crawl job orchestration: lock, store, per-category crawl, statistics, output."""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from catalog_crawler.config import settings
from catalog_crawler.crawl.engine import CrawlEngine
from catalog_crawler.crawl.profiles.base import SiteProfile
from catalog_crawler.crawl.types import Category, JobOptions, ScrapedRecord
from catalog_crawler.db.reconciler import PersistenceReconciler, ReconcileStats
from catalog_crawler.db.store import DocumentStore, MongoDocumentStore
from catalog_crawler.logging_config import get_logger
from catalog_crawler.metrics import (
    record_category,
    record_category_error,
    record_job,
    record_job_rejected,
)
from catalog_crawler.worker.run_lock import JobConflictError, RunLock

logger = logging.getLogger(__name__)


class OutputWriteError(Exception):
    """The JSON result file could not be written."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write output file {path}: {reason}")


def format_duration(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS``."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass
class RunStatistics:
    """Counters for one job."""

    total_processed: int = 0
    new_records_added: int = 0
    existing_records_updated: int = 0
    records_unchanged: int = 0
    errors: int = 0
    categories_processed: List[str] = field(default_factory=list)
    total_processing_time_seconds: float = 0.0
    processing_time_formatted: str = ""

    def add_reconcile(self, stats: ReconcileStats) -> None:
        self.new_records_added += stats.new
        self.existing_records_updated += stats.updated
        self.records_unchanged += stats.unchanged
        self.errors += stats.errors

    def finalize(self, elapsed_seconds: float) -> None:
        self.total_processing_time_seconds = elapsed_seconds
        self.processing_time_formatted = format_duration(elapsed_seconds)


class ScrapeResult(BaseModel):
    """Bundle returned by a finished job."""

    status: str = "success"
    scraper: str
    message: str
    timestamp: datetime
    total_records: int
    images_enabled: bool
    output_file: str
    persistence_enabled: bool
    statistics: Dict[str, Any]
    output_path: str
    records: List[Dict[str, Any]] = Field(default_factory=list)
    category: Optional[str] = None


class JsonOutputWriter:
    """Writes job results to ``<output_dir>/<filename>``."""

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or settings.output_dir)

    def write(self, payload: Dict[str, Any], filename: str) -> str:
        """
        Write the payload as indented JSON.

        Returns:
            Path of the written file

        Raises:
            OutputWriteError: If the file cannot be written
        """
        path = self.output_dir / filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            raise OutputWriteError(str(path), str(e)) from e
        logger.info(f"Results saved to: {path}")
        return str(path)


class JobOrchestrator:
    """
    Runs full-site and single-category jobs for one site profile.

    Categories run sequentially in one browser. A failing category is
    counted and skipped; job-level failures release the lock and propagate.
    """

    def __init__(
        self,
        profile: SiteProfile,
        run_lock: RunLock,
        engine: Optional[CrawlEngine] = None,
        store_factory: Optional[Callable[[str], DocumentStore]] = None,
        output_writer: Optional[JsonOutputWriter] = None,
    ):
        self.profile = profile
        self.run_lock = run_lock
        self.engine = engine or CrawlEngine(profile)
        self.store_factory = store_factory or MongoDocumentStore.for_site
        self.output_writer = output_writer or JsonOutputWriter()
        self.log = get_logger(__name__, site=profile.key)

    async def run_all(self, options: JobOptions) -> ScrapeResult:
        """Crawl every configured category."""
        return await self._run(self.profile.categories, options)

    async def run_category(self, category_name: str, options: JobOptions) -> ScrapeResult:
        """
        Crawl a single category.

        Raises:
            UnknownCategoryError: If the category is not configured
            JobConflictError: If another job is running
        """
        category = self.profile.get_category(category_name)
        return await self._run([category], options, category=category)

    async def _run(
        self,
        categories: List[Category],
        options: JobOptions,
        category: Optional[Category] = None,
    ) -> ScrapeResult:
        site = self.profile.key
        job_name = self.profile.display_name
        try:
            self.run_lock.start(job_name)
        except JobConflictError:
            record_job_rejected(site)
            raise

        started = time.monotonic()
        store: Optional[DocumentStore] = None
        success = False
        try:
            self.log.info(f"Starting {job_name} job with options: {json.dumps(options.masked())}")

            persistence_enabled = False
            if options.persist_to_store:
                store, persistence_enabled = await self._connect_store()

            records, statistics = await self._crawl_categories(
                categories, options, store if persistence_enabled else None
            )
            statistics.finalize(time.monotonic() - started)
            self.log.info(
                f"Job finished: {statistics.total_processed} records from "
                f"{len(statistics.categories_processed)} categories in {statistics.processing_time_formatted}"
            )

            json_records = [record.to_json() for record in records]
            metadata = {
                "total_records": len(json_records),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "images_enabled": options.download_images,
                "statistics": asdict(statistics),
                "persistence_enabled": persistence_enabled,
            }
            if category is not None:
                metadata["category"] = category.name
            output_path = self.output_writer.write(
                {"records": json_records, "metadata": metadata}, options.output_file
            )

            result = ScrapeResult(
                scraper=site,
                message="Scraping completed successfully",
                timestamp=datetime.now(timezone.utc),
                total_records=len(json_records),
                images_enabled=options.download_images,
                output_file=options.output_file,
                persistence_enabled=persistence_enabled,
                statistics=asdict(statistics),
                output_path=output_path,
                records=json_records,
                category=category.name if category else None,
            )
            success = True
            return result

        except Exception as e:
            self.log.exception(f"Error during {job_name} job: {e}")
            raise
        finally:
            if store is not None:
                await self._disconnect_store(store)
            self.run_lock.stop()
            record_job(site, success, time.monotonic() - started)

    async def _crawl_categories(
        self,
        categories: List[Category],
        options: JobOptions,
        store: Optional[DocumentStore],
    ) -> Tuple[List[ScrapedRecord], RunStatistics]:
        site = self.profile.key
        records: List[ScrapedRecord] = []
        statistics = RunStatistics()
        reconciler = PersistenceReconciler(store, self.profile) if store is not None else None

        async with self.engine.session(options.headless) as browser:
            for category in categories:
                self.log.info(f"Processing category: {category.name}")
                try:
                    category_records = await self.engine.crawl_category(
                        category, options.for_category(), browser
                    )
                    records.extend(category_records)
                    statistics.categories_processed.append(category.name)
                    statistics.total_processed += len(category_records)
                    record_category(site, len(category_records))

                    if reconciler is not None:
                        statistics.add_reconcile(await reconciler.upsert(category_records))
                    else:
                        statistics.new_records_added += len(category_records)

                except Exception as e:
                    self.log.error(f"Error scraping category {category.name}: {e}")
                    statistics.errors += 1
                    record_category_error(site)

        return records, statistics

    async def _connect_store(self) -> Tuple[Optional[DocumentStore], bool]:
        store = self.store_factory(self.profile.key)
        try:
            await store.connect()
        except Exception as e:
            self.log.warning(f"Document store unavailable, continuing without persistence: {e}")
            return None, False
        return store, True

    async def _disconnect_store(self, store: DocumentStore) -> None:
        try:
            await store.disconnect()
        except Exception as e:
            self.log.warning(f"Error disconnecting document store: {e}")
