"""Upsert of scraped records into the document store by natural key."""

import logging
from dataclasses import dataclass
from typing import Iterable

from catalog_crawler.crawl.profiles.base import SiteProfile
from catalog_crawler.crawl.types import ScrapedRecord
from catalog_crawler.db.store import DocumentStore
from catalog_crawler.metrics import record_reconcile

logger = logging.getLogger(__name__)


@dataclass
class ReconcileStats:
    """Outcome counters for one upsert batch."""

    new: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.new + self.updated + self.unchanged + self.errors


class PersistenceReconciler:
    """
    Inserts unseen records and updates the mutable fields of known ones.

    A record is known when a document matches the profile's natural key.
    Only the profile's ``update_fields`` are written on update, so natural
    key fields and first-seen identifiers never change.
    """

    def __init__(self, store: DocumentStore, profile: SiteProfile):
        self.store = store
        self.profile = profile

    async def upsert(self, records: Iterable[ScrapedRecord]) -> ReconcileStats:
        """
        Reconcile records one at a time.

        Args:
            records: Records from one category crawl

        Returns:
            ReconcileStats; a failing record counts as an error and the batch continues
        """
        stats = ReconcileStats()

        for record in records:
            try:
                key = self.profile.natural_key(record)
                document = record.to_document()

                existing = await self.store.find_one(key)
                if existing is None:
                    await self.store.insert_one(document)
                    stats.new += 1
                    continue

                fields = {name: document[name] for name in self.profile.update_fields}
                modified = await self.store.update_one(key, fields)
                if modified == 0:
                    stats.unchanged += 1
                else:
                    stats.updated += 1

            except Exception as e:
                stats.errors += 1
                logger.error(f"Error saving {record.display_name} to {self.profile.key}: {e}")

        logger.info(
            f"Reconciled {stats.total} {self.profile.key} records: "
            f"{stats.new} new, {stats.updated} updated, {stats.unchanged} unchanged, {stats.errors} errors"
        )
        record_reconcile(self.profile.key, stats.new, stats.updated, stats.unchanged, stats.errors)
        return stats
