"""Unit tests for persistence layer."""

from datetime import timedelta

import pytest

from jobhunter.domain.models import ApplicationStatus, IngestionRunLog
from jobhunter.persistence import (
    ApplicationRepository,
    DatabaseConnectionError,
    DataIntegrityError,
    IngestionLogRepository,
    JobRepository,
    RecordNotFoundError,
    close_database,
    get_session,
    init_database,
)
from jobhunter.persistence.schema import JobModel
from jobhunter.utils.timestamps import utc_now
from tests.helpers import make_record


@pytest.fixture
def database():
    """In-memory database for one test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


def insert(**overrides):
    with get_session() as session:
        return JobRepository(session).insert(make_record(**overrides))


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_creates_parent_directories(self, tmp_path):
        db_file = tmp_path / "subdir" / "nested" / "test.db"

        init_database(f"sqlite:///{db_file}")
        try:
            assert db_file.exists()
        finally:
            close_database()

    def test_schema_creation_is_idempotent(self, tmp_path):
        db_url = f"sqlite:///{tmp_path / 'test.db'}"

        init_database(db_url)
        insert()
        close_database()

        init_database(db_url)
        try:
            with get_session() as session:
                assert JobRepository(session).get_by_identity("job-1", "greenhouse") is not None
        finally:
            close_database()

    def test_init_database_invalid_url_raises_error(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("not a url")

    def test_get_session_without_init_raises_error(self):
        close_database()

        with pytest.raises(DatabaseConnectionError, match="Database not initialized"):
            with get_session():
                pass

    def test_close_database_is_idempotent(self):
        close_database()
        close_database()


@pytest.mark.usefixtures("database")
class TestSessionManagement:
    """Tests for session commit and rollback."""

    def test_session_commits_on_success(self):
        stored = insert()

        with get_session() as session:
            assert session.get(JobModel, stored.id) is not None

    def test_session_rolls_back_on_exception(self):
        with pytest.raises(ValueError):
            with get_session() as session:
                JobRepository(session).insert(make_record())
                raise ValueError("Test exception")

        with get_session() as session:
            assert JobRepository(session).get_by_identity("job-1", "greenhouse") is None


@pytest.mark.usefixtures("database")
class TestJobRepository:
    """Tests for JobRepository identity, linkage and scoring writes."""

    def test_insert_assigns_id_and_round_trips(self):
        stored = insert(metadata={"department": "Engineering"}, compensation="CA$150K")

        with get_session() as session:
            found = JobRepository(session).get_by_id(stored.id)

        assert found.id == stored.id
        assert found.metadata == {"department": "Engineering"}
        assert found.compensation == "CA$150K"
        assert found.created_at.tzinfo is not None
        assert found.export_status == "pending"

    def test_identity_is_unique_per_source(self):
        insert()

        with pytest.raises(DataIntegrityError):
            insert()

        # Same external id from another source is a different posting
        insert(source_name="ashby")

    def test_refresh_observation_updates_mutable_fields_only(self):
        stored = insert()
        later = utc_now() + timedelta(hours=1)

        with get_session() as session:
            refreshed = JobRepository(session).refresh_observation(
                stored.id,
                description="New description",
                compensation="CA$160K",
                location="Remote",
                observed_at=later,
            )

        assert refreshed.description == "New description"
        assert refreshed.location == "Remote"
        assert refreshed.canonical_key == stored.canonical_key
        assert refreshed.updated_at > stored.updated_at

    def test_refresh_missing_record_raises(self):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                JobRepository(session).refresh_observation(999, None, None, None)

    def test_find_primary_ignores_duplicates(self):
        primary = insert(external_id="a")
        duplicate = insert(external_id="b", source_name="ashby")

        with get_session() as session:
            repo = JobRepository(session)
            repo.link_duplicate(duplicate.id, primary.id)
            found = repo.find_primary_by_canonical_key(primary.canonical_key, exclude_id=999)

        assert found.id == primary.id

    def test_link_to_duplicate_rejected(self):
        primary = insert(external_id="a")
        duplicate = insert(external_id="b")
        third = insert(external_id="c")

        with get_session() as session:
            JobRepository(session).link_duplicate(duplicate.id, primary.id)

        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                JobRepository(session).link_duplicate(third.id, duplicate.id)

    def test_find_by_key_prefix(self):
        first = insert(external_id="a", description="Version one")
        insert(external_id="b", description="Version two")
        insert(external_id="c", title="Frontend Engineer")

        with get_session() as session:
            similar = JobRepository(session).find_by_key_prefix(
                "acme::senior backend engineer::", exclude_id=first.id
            )

        assert [job.external_id for job in similar] == ["b"]

    def test_apply_scores(self):
        stored = insert(remote_eligible=True, summary="Old summary")

        with get_session() as session:
            JobRepository(session).apply_scores(
                stored.id,
                score=7.5,
                breakdown={"remote": 3.0},
                seniority="senior",
                interview_style="unknown",
                role_type="backend",
                scored_from_defaults=False,
                summary="New summary",
            )
            JobRepository(session).apply_scores(
                stored.id,
                score=8.0,
                breakdown={"remote": 3.0},
                seniority="senior",
                interview_style="unknown",
                role_type="backend",
                scored_from_defaults=True,
                remote_eligible=None,
                keep_summary=True,
            )

        with get_session() as session:
            found = JobRepository(session).get_by_id(stored.id)

        assert found.score == 8.0
        assert found.summary == "New summary"
        assert found.remote_eligible is True
        assert found.scored_from_defaults is True

    def test_apply_scores_missing_record_raises(self):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                JobRepository(session).apply_scores(
                    999, 1.0, {}, None, None, None, scored_from_defaults=False
                )

    def test_mark_stale(self):
        now = utc_now()
        insert(external_id="old", updated_at=now - timedelta(days=40))
        insert(external_id="fresh", updated_at=now - timedelta(days=2))

        with get_session() as session:
            marked = JobRepository(session).mark_stale(now - timedelta(days=30))
        with get_session() as session:
            marked_again = JobRepository(session).mark_stale(now - timedelta(days=30))
            old = JobRepository(session).get_by_identity("old", "greenhouse")

        assert marked == 1
        assert marked_again == 0
        assert old.is_stale is True

    def test_count_existing(self):
        insert(external_id="a", source_name="serpapi")
        insert(external_id="b", source_name="serpapi")
        insert(external_id="c", source_name="adzuna")

        with get_session() as session:
            repo = JobRepository(session)
            assert repo.count_existing("serpapi", ["a", "b", "c", "a"]) == 2
            assert repo.count_existing("serpapi", []) == 0

    def test_list_for_rescore(self):
        primary = insert(external_id="primary")
        duplicate = insert(external_id="dup", source_name="ashby")
        insert(external_id="nodesc", description=None)
        insert(external_id="stale", is_stale=True)

        with get_session() as session:
            JobRepository(session).link_duplicate(duplicate.id, primary.id)
        with get_session() as session:
            records = JobRepository(session).list_for_rescore()

        assert [record.external_id for record in records] == ["primary"]


@pytest.mark.usefixtures("database")
class TestRankedQuery:
    """Tests for JobRepository.query_ranked()."""

    @pytest.fixture
    def jobs(self):
        return {
            "a9": insert(external_id="a9", company="Acme", score=9.0, seniority="senior"),
            "a8": insert(external_id="a8", company="Acme", score=8.0, seniority="mid"),
            "a7": insert(external_id="a7", company="ACME", score=7.0, seniority="senior"),
            "b6": insert(external_id="b6", company="Globex", score=6.0, seniority="senior"),
            "c5": insert(external_id="c5", company="Initech", score=5.5, seniority="junior"),
        }

    @staticmethod
    def ids(records):
        return [record.external_id for record in records]

    def test_interleaves_employers(self, jobs):
        with get_session() as session:
            ranked = JobRepository(session).query_ranked()

        assert self.ids(ranked) == ["a9", "b6", "c5", "a8", "a7"]

    def test_plain_score_order(self, jobs):
        with get_session() as session:
            ranked = JobRepository(session).query_ranked(interleave=False)

        assert self.ids(ranked) == ["a9", "a8", "a7", "b6", "c5"]

    def test_limit_and_seniority(self, jobs):
        with get_session() as session:
            ranked = JobRepository(session).query_ranked(limit=2, seniority="Senior")

        assert self.ids(ranked) == ["a9", "b6"]

    def test_excludes_stale_and_duplicates(self, jobs):
        with get_session() as session:
            repo = JobRepository(session)
            repo.link_duplicate(jobs["a8"].id, jobs["a9"].id)
            repo.mark_stale(utc_now() + timedelta(seconds=1))
        insert(external_id="fresh", company="Hooli", score=1.0)

        with get_session() as session:
            ranked = JobRepository(session).query_ranked()

        assert self.ids(ranked) == ["fresh"]

    def test_acted_filters(self, jobs):
        with get_session() as session:
            applications = ApplicationRepository(session)
            applications.set_status(jobs["a9"].id, ApplicationStatus.APPLIED)
            applications.set_status(jobs["b6"].id, ApplicationStatus.NOT_APPLIED)
            applications.set_status(jobs["c5"].id, ApplicationStatus.SKIPPED)

        with get_session() as session:
            repo = JobRepository(session)
            unacted = repo.query_ranked(acted="unacted", interleave=False)
            acted = repo.query_ranked(acted="acted", interleave=False)

        assert self.ids(unacted) == ["a8", "a7", "b6"]
        assert self.ids(acted) == ["a9"]

    def test_unexported_only(self, jobs):
        with get_session() as session:
            session.get(JobModel, jobs["a9"].id).export_status = "exported"

        with get_session() as session:
            ranked = JobRepository(session).query_ranked(unexported_only=True, interleave=False)

        assert "a9" not in self.ids(ranked)

    def test_unknown_acted_filter(self, jobs):
        with pytest.raises(ValueError, match="acted must be one of"):
            with get_session() as session:
                JobRepository(session).query_ranked(acted="maybe")


@pytest.mark.usefixtures("database")
class TestApplicationRepository:
    """Tests for ApplicationRepository."""

    def test_set_status_upserts(self):
        stored = insert()

        with get_session() as session:
            ApplicationRepository(session).set_status(stored.id, ApplicationStatus.APPLIED)
        with get_session() as session:
            ApplicationRepository(session).set_status(stored.id, "interviewing")

        with get_session() as session:
            ranked = JobRepository(session).query_ranked(acted="acted")

        assert [job.id for job in ranked] == [stored.id]

    def test_set_status_missing_job_raises(self):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                ApplicationRepository(session).set_status(999, ApplicationStatus.APPLIED)


@pytest.mark.usefixtures("database")
class TestIngestionLogRepository:
    """Tests for IngestionLogRepository."""

    def test_record_and_count_since(self):
        now = utc_now()
        with get_session() as session:
            repo = IngestionLogRepository(session)
            repo.record(IngestionRunLog(provider="serpapi", fetched=10, ran_at=now - timedelta(days=40)))
            repo.record(IngestionRunLog(provider="serpapi", fetched=5, ran_at=now))
            repo.record(IngestionRunLog(provider="adzuna", error="HTTP 500", ran_at=now))

        with get_session() as session:
            repo = IngestionLogRepository(session)
            assert repo.count_since("serpapi", now - timedelta(days=1)) == 1
            recent = repo.recent(limit=10)

        assert len(recent) == 3
        assert recent[-1].fetched == 10
        assert {log.error for log in recent} == {None, "HTTP 500"}
