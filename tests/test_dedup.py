"""Tests for the identity/dedup engine."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from jobhunter.dedup import DedupEngine, DedupResult, IngestOutcome
from jobhunter.persistence import JobRepository, close_database, get_session, init_database
from jobhunter.persistence.exceptions import PersistenceError
from jobhunter.utils.timestamps import utc_now
from tests.helpers import make_record


@pytest.fixture(autouse=True)
def database():
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def engine():
    return DedupEngine()


def stored(external_id, source_name):
    with get_session() as session:
        return JobRepository(session).get_by_identity(external_id, source_name)


class TestIngestRecord:
    """Tests for DedupEngine.ingest_record()."""

    def test_first_sighting_becomes_primary(self, engine):
        outcome, record = engine.ingest_record(make_record())

        assert outcome is IngestOutcome.INSERTED
        assert record.id is not None
        assert record.duplicate_of_id is None

    def test_same_canonical_key_from_other_source_links(self, engine):
        _, primary = engine.ingest_record(make_record(source_name="coresignal", external_id="cs-1"))

        outcome, duplicate = engine.ingest_record(
            make_record(source_name="serpapi", external_id="serp-1", company="Acme Inc.", title="Sr Backend Engineer")
        )

        assert outcome is IngestOutcome.DUPLICATE
        assert duplicate.duplicate_of_id == primary.id
        assert stored("serp-1", "serpapi").duplicate_of_id == primary.id

    def test_duplicates_always_point_at_primary(self, engine):
        _, primary = engine.ingest_record(make_record(source_name="coresignal", external_id="1"))
        engine.ingest_record(make_record(source_name="brightdata", external_id="2"))

        _, third = engine.ingest_record(make_record(source_name="greenhouse", external_id="3"))

        assert third.duplicate_of_id == primary.id

    def test_descriptionless_records_never_link(self, engine):
        engine.ingest_record(make_record(source_name="adzuna", external_id="1", description=None))
        logger = MagicMock()
        engine.logger = logger

        outcome, record = engine.ingest_record(
            make_record(source_name="serpapi", external_id="2", description=None)
        )

        assert outcome is IngestOutcome.INSERTED
        assert record.duplicate_of_id is None
        # Both carry the sentinel, so there is no description to compare
        logger.warning.assert_not_called()

    def test_same_role_different_description_stays_primary(self, engine):
        engine.ingest_record(make_record(source_name="ashby", external_id="1", description="Version one"))
        logger = MagicMock()
        engine.logger = logger

        outcome, _ = engine.ingest_record(
            make_record(source_name="adzuna", external_id="2", description="Version two")
        )

        assert outcome is IngestOutcome.INSERTED
        events = [call.kwargs["extra"]["event"] for call in logger.warning.call_args_list]
        assert "dedup.same_role_different_description" in events

    def test_reobservation_refreshes_mutable_fields(self, engine):
        first_seen = utc_now() - timedelta(days=3)
        _, original = engine.ingest_record(make_record(updated_at=first_seen, created_at=first_seen))

        outcome, refreshed = engine.ingest_record(
            make_record(
                title="Renamed Title",
                description="Updated description",
                compensation="CA$170K",
                location="Remote",
            )
        )

        assert outcome is IngestOutcome.REFRESHED
        assert refreshed.id == original.id
        assert refreshed.description == "Updated description"
        assert refreshed.compensation == "CA$170K"
        assert refreshed.location == "Remote"
        assert refreshed.title == original.title
        assert refreshed.canonical_key == original.canonical_key
        assert refreshed.updated_at > first_seen
        assert refreshed.created_at == original.created_at

    def test_reobservation_clears_stale_timestamp(self, engine):
        long_ago = utc_now() - timedelta(days=60)
        engine.ingest_record(make_record(updated_at=long_ago, created_at=long_ago))

        engine.ingest_record(make_record())

        with get_session() as session:
            marked = JobRepository(session).mark_stale(utc_now() - timedelta(days=30))
        assert marked == 0


class TestIngestBatch:
    """Tests for DedupEngine.ingest()."""

    def test_batch_counts(self, engine):
        engine.ingest([make_record(source_name="coresignal", external_id="cs-1")])

        result = engine.ingest(
            [
                make_record(source_name="greenhouse", external_id="gh-1"),
                make_record(source_name="greenhouse", external_id="gh-2", title="Platform Engineer"),
                make_record(source_name="greenhouse", external_id="gh-2", title="Platform Engineer"),
            ]
        )

        assert isinstance(result, DedupResult)
        assert [record.external_id for record in result.inserted] == ["gh-2"]
        assert [record.external_id for record in result.duplicates] == ["gh-1"]
        assert result.refreshed == 1
        assert result.failed == 0
        assert result.processed == 3

    def test_persistence_error_isolated_per_record(self, engine):
        calls = []
        original = engine.ingest_record

        def flaky(record):
            calls.append(record.external_id)
            if record.external_id == "bad":
                raise PersistenceError("disk full")
            return original(record)

        engine.ingest_record = flaky

        result = engine.ingest(
            [
                make_record(external_id="bad"),
                make_record(external_id="good", title="Data Engineer"),
            ]
        )

        assert calls == ["bad", "good"]
        assert result.failed == 1
        assert [record.external_id for record in result.inserted] == ["good"]
