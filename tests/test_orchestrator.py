"""Tests for crawl job orchestration."""

import json

import pytest

from catalog_crawler.crawl.profiles.adams import AdamsProfile
from catalog_crawler.crawl.profiles.base import UnknownCategoryError
from catalog_crawler.crawl.types import Category, JobOptions
from catalog_crawler.db.store import StoreConnectionError
from catalog_crawler.worker.orchestrator import (
    JobOrchestrator,
    JsonOutputWriter,
    OutputWriteError,
    format_duration,
)
from catalog_crawler.worker.run_lock import JobConflictError, RunLock
from tests.fakes import FakeEngine, InMemoryStore, adams_record


class SmallAdamsProfile(AdamsProfile):
    categories = [
        Category(name="drinks", url="https://adamsfoodservice.com/product-category/drinks/"),
        Category(name="bakery", url="https://adamsfoodservice.com/product-category/bakery/"),
        Category(name="frozen", url="https://adamsfoodservice.com/product-category/frozen/"),
    ]


def _orchestrator(tmp_path, engine=None, store=None, lock=None, writer=None):
    store = store or InMemoryStore()
    return JobOrchestrator(
        SmallAdamsProfile(),
        lock or RunLock(),
        engine=engine or FakeEngine(),
        store_factory=lambda site: store,
        output_writer=writer or JsonOutputWriter(str(tmp_path / "out")),
    )


class TestRunAll:
    """Tests for full-site jobs."""

    @pytest.mark.asyncio
    async def test_failing_category_is_counted_and_the_rest_continue(self, tmp_path):
        engine = FakeEngine({
            "drinks": [adams_record("Cola", category="drinks")],
            "bakery": RuntimeError("page crashed"),
            "frozen": [adams_record("Peas", category="frozen"), adams_record("Chips", category="frozen")],
        })

        result = await _orchestrator(tmp_path, engine).run_all(JobOptions())

        assert [call[0] for call in engine.calls] == ["drinks", "bakery", "frozen"]
        assert engine.sessions == 1
        assert result.total_records == 3
        assert result.statistics["errors"] == 1
        assert result.statistics["categories_processed"] == ["drinks", "frozen"]
        assert result.statistics["total_processed"] == 3
        assert result.statistics["new_records_added"] == 3
        assert result.scraper == "adams"
        assert result.category is None

    @pytest.mark.asyncio
    async def test_writes_output_file(self, tmp_path):
        engine = FakeEngine({"drinks": [adams_record("Cola", sku="AF-1")]})

        result = await _orchestrator(tmp_path, engine).run_all(JobOptions(output_file="adams.json"))

        assert result.output_path == str(tmp_path / "out" / "adams.json")
        with open(result.output_path, encoding="utf-8") as f:
            payload = json.load(f)
        assert payload["records"][0]["name"] == "Cola"
        assert payload["records"][0]["sku"] == "AF-1"
        assert isinstance(payload["records"][0]["scraped_timestamp"], str)
        assert set(payload["metadata"]) == {
            "total_records", "timestamp", "images_enabled", "statistics", "persistence_enabled",
        }
        assert payload["metadata"]["statistics"]["processing_time_formatted"] == "00:00:00"

    @pytest.mark.asyncio
    async def test_each_category_gets_its_own_options_copy(self, tmp_path):
        engine = FakeEngine()
        options = JobOptions(download_images=True)

        await _orchestrator(tmp_path, engine).run_all(options)

        passed = [call[1] for call in engine.calls]
        assert all(o == options and o is not options for o in passed)
        assert all(call[2] == "browser" for call in engine.calls)

    @pytest.mark.asyncio
    async def test_persistence_counts_and_disconnect(self, tmp_path):
        store = InMemoryStore()
        store.documents.append(adams_record("Cola", sku="AF-1").to_document())
        engine = FakeEngine({"drinks": [
            adams_record("Cola", sku="AF-1", product_page_url="/p/cola"),
            adams_record("Water", sku="AF-2"),
        ]})

        result = await _orchestrator(tmp_path, engine, store).run_all(JobOptions(persist_to_store=True))

        assert result.persistence_enabled is True
        assert result.statistics["new_records_added"] == 1
        assert result.statistics["existing_records_updated"] == 1
        assert store.disconnected

    @pytest.mark.asyncio
    async def test_unreachable_store_degrades_to_file_only(self, tmp_path):
        store = InMemoryStore(connect_error=StoreConnectionError("mongodb://db:27017", "timed out"))
        engine = FakeEngine({"drinks": [adams_record("Cola")]})

        result = await _orchestrator(tmp_path, engine, store).run_all(JobOptions(persist_to_store=True))

        assert result.persistence_enabled is False
        assert result.total_records == 1
        assert store.documents == []

    @pytest.mark.asyncio
    async def test_lock_released_after_job_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        lock = RunLock()
        orchestrator = _orchestrator(tmp_path, lock=lock, writer=JsonOutputWriter(str(blocker)))

        with pytest.raises(OutputWriteError):
            await orchestrator.run_all(JobOptions())

        assert lock.in_progress is False

    @pytest.mark.asyncio
    async def test_conflict_when_another_job_runs(self, tmp_path):
        lock = RunLock()
        lock.try_start("Metro")
        engine = FakeEngine()

        with pytest.raises(JobConflictError) as exc_info:
            await _orchestrator(tmp_path, engine, lock=lock).run_all(JobOptions())

        assert exc_info.value.current_job == "Metro"
        assert engine.calls == []
        assert lock.current_job == "Metro"

    @pytest.mark.asyncio
    async def test_conflict_names_holder_seen_at_rejection(self, tmp_path):
        class ReleasedAfterRejection(RunLock):
            # Holder finishes between the rejection and any later read
            @property
            def current_job(self):
                return None

        lock = ReleasedAfterRejection()
        lock.try_start("Metro")

        with pytest.raises(JobConflictError) as exc_info:
            await _orchestrator(tmp_path, lock=lock).run_all(JobOptions())

        assert str(exc_info.value) == "Another scraper is already running: 'Metro'"


class TestRunCategory:
    """Tests for single-category jobs."""

    @pytest.mark.asyncio
    async def test_unknown_category_lists_available(self, tmp_path):
        lock = RunLock()

        with pytest.raises(UnknownCategoryError) as exc_info:
            await _orchestrator(tmp_path, lock=lock).run_category("seafood", JobOptions())

        assert exc_info.value.available == ["drinks", "bakery", "frozen"]
        assert lock.in_progress is False

    @pytest.mark.asyncio
    async def test_category_lookup_ignores_case_and_tags_result(self, tmp_path):
        engine = FakeEngine({"bakery": [adams_record("Baguette", category="bakery")]})

        result = await _orchestrator(tmp_path, engine).run_category("Bakery", JobOptions())

        assert [call[0] for call in engine.calls] == ["bakery"]
        assert result.category == "bakery"
        with open(result.output_path, encoding="utf-8") as f:
            assert json.load(f)["metadata"]["category"] == "bakery"


@pytest.mark.parametrize("seconds,expected", [
    (0, "00:00:00"),
    (59.9, "00:00:59"),
    (3725, "01:02:05"),
    (90000, "25:00:00"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
