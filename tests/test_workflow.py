"""Tests for the story extraction workflow"""

import logging
import threading
import time
from datetime import datetime, timezone

import pytest

from src.extraction_workflow.processor import Processor
from src.llm.extractors import StubStoryExtractor
from src.models.configs import LLMConfig, StoryExtractorConfig
from src.models.errors import MaildirError, StoryExtractionError
from src.models.story import ExtractedStory
from src.storage.story_writer import story_filename

EMAIL_DATE = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_message(message_id: str, subject: str = "Weekly Digest") -> bytes:
    return (
        "From: The Digest <digest@example.com>\n"
        f"Subject: {subject}\n"
        "Date: Wed, 15 Jan 2025 10:30:00 +0000\n"
        f"Message-ID: {message_id}\n"
        "\n"
        "1. Story https://example.com/story\n"
    ).encode("utf-8")


def add_message(maildir, name: str, raw: bytes):
    path = maildir / "cur" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(raw)
    return path


@pytest.fixture
def maildir(tmp_path):
    path = tmp_path / "Maildir"
    for sub in ("cur", "new", "tmp"):
        (path / sub).mkdir(parents=True)
    return path


@pytest.fixture
def storydir(tmp_path):
    return tmp_path / "stories"


@pytest.fixture
def logger():
    return logging.getLogger("test-story-extractor")


def make_config(maildir, storydir, **kwargs) -> StoryExtractorConfig:
    return StoryExtractorConfig(
        llm=LLMConfig(api_key="test-key"),
        maildir=str(maildir),
        storydir=str(storydir),
        **kwargs,
    )


def one_story() -> list:
    return [ExtractedStory(headline="Story", teaser="Article. Text.", url="https://example.com/story")]


class BlockingExtractor:
    """Extractor that blocks until released"""

    def __init__(self):
        self.release = threading.Event()
        self.started = threading.Event()
        self.calls = 0

    def extract(self, email):
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=10)
        return []


class TestProcessor:
    """Test suite for Processor.run"""

    @pytest.mark.unit
    def test_processes_new_email(self, maildir, storydir, logger):
        """Test that stories of a new email are written"""
        add_message(maildir, "1000.a", make_message("<one@example.com>"))
        extractor = StubStoryExtractor(stories=one_story() * 2)

        result = Processor(make_config(maildir, storydir), logger, extractor).run()

        assert result.total == 1
        assert result.processed == 1
        assert result.skipped == 0
        assert result.errors == 0
        assert not result.cancelled
        assert sorted(p.name for p in storydir.iterdir()) == [
            "2025-01-15_one@example.com_1.json",
            "2025-01-15_one@example.com_2.json",
        ]

    @pytest.mark.unit
    def test_second_run_skips_processed_emails(self, maildir, storydir, logger):
        """Test idempotence: a rerun calls the extractor zero times"""
        add_message(maildir, "1000.a", make_message("<one@example.com>"))
        config = make_config(maildir, storydir)

        Processor(config, logger, StubStoryExtractor(stories=one_story())).run()
        before = {p.name: p.read_bytes() for p in storydir.iterdir()}

        extractor = StubStoryExtractor(stories=one_story())
        result = Processor(config, logger, extractor).run()

        assert result.skipped == 1
        assert result.processed == 0
        assert extractor.calls == []
        assert {p.name: p.read_bytes() for p in storydir.iterdir()} == before

    @pytest.mark.integration
    def test_mixed_mailbox(self, maildir, storydir, logger):
        """Test one new, one already extracted and one broken message"""
        add_message(maildir, "3000.new", make_message("<new@example.com>"))
        add_message(maildir, "2000.old", make_message("<old@example.com>"))
        add_message(maildir, "1000.bad", b"this is not an email\n")

        storydir.mkdir()
        existing = storydir / story_filename("<old@example.com>", EMAIL_DATE, 1)
        existing.write_text("{}")

        extractor = StubStoryExtractor(stories=one_story() * 2)
        result = Processor(make_config(maildir, storydir), logger, extractor).run()

        assert result.total == 3
        assert result.processed == 1
        assert result.skipped == 1
        assert result.errors == 1
        assert result.has_errors
        new_files = {p.name for p in storydir.iterdir()} - {existing.name}
        assert new_files == {
            "2025-01-15_new@example.com_1.json",
            "2025-01-15_new@example.com_2.json",
        }
        assert existing.read_text() == "{}"
        assert [e.message_id for e in extractor.calls] == ["<new@example.com>"]

    @pytest.mark.unit
    def test_extraction_failure_continues_run(self, maildir, storydir, logger):
        """Test that a failing email is counted and the run goes on"""
        add_message(maildir, "2000.b", make_message("<b@example.com>"))
        add_message(maildir, "1000.a", make_message("<a@example.com>"))
        extractor = StubStoryExtractor(error=StoryExtractionError("bad reply"))

        result = Processor(make_config(maildir, storydir), logger, extractor).run()

        assert result.total == 2
        assert result.errors == 2
        assert len(extractor.calls) == 2
        assert not storydir.exists()

    @pytest.mark.unit
    def test_unexpected_error_is_counted(self, maildir, storydir, logger):
        """Test that non-domain exceptions do not abort the run"""
        add_message(maildir, "1000.a", make_message("<a@example.com>"))
        extractor = StubStoryExtractor(error=RuntimeError("bug"))

        result = Processor(make_config(maildir, storydir), logger, extractor).run()

        assert result.errors == 1
        assert result.processed == 0

    @pytest.mark.unit
    def test_limit(self, maildir, storydir, logger):
        """Test that only the newest messages up to the limit are processed"""
        for i in range(3):
            add_message(maildir, f"{i}000.m", make_message(f"<m{i}@example.com>"))
        extractor = StubStoryExtractor(stories=one_story())

        result = Processor(make_config(maildir, storydir, limit=2), logger, extractor).run()

        assert result.total == 2
        assert result.processed == 2
        assert [e.message_id for e in extractor.calls] == ["<m2@example.com>", "<m1@example.com>"]

    @pytest.mark.unit
    def test_email_without_stories(self, maildir, storydir, logger):
        """Test that an email with no stories is processed without files"""
        add_message(maildir, "1000.a", make_message("<promo@example.com>"))

        result = Processor(make_config(maildir, storydir), logger, StubStoryExtractor()).run()

        assert result.processed == 1
        assert list(storydir.iterdir()) == []

    @pytest.mark.unit
    def test_cancel_event_stops_before_next_message(self, maildir, storydir, logger):
        """Test that a set cancel event stops the run"""
        add_message(maildir, "1000.a", make_message("<a@example.com>"))
        cancel = threading.Event()
        cancel.set()
        extractor = StubStoryExtractor(stories=one_story())

        result = Processor(make_config(maildir, storydir), logger, extractor).run(
            cancel_event=cancel
        )

        assert result.cancelled
        assert result.processed == 0
        assert extractor.calls == []

    @pytest.mark.integration
    def test_run_timeout_aborts_extraction(self, maildir, storydir, logger):
        """Test that the run budget bounds a hanging extraction"""
        add_message(maildir, "2000.b", make_message("<b@example.com>"))
        add_message(maildir, "1000.a", make_message("<a@example.com>"))
        extractor = BlockingExtractor()
        config = make_config(maildir, storydir, run_timeout=0.2)

        try:
            result = Processor(config, logger, extractor).run()
        finally:
            extractor.release.set()

        assert result.errors == 1
        assert result.cancelled
        assert extractor.calls == 1
        assert result.processed == 0

    @pytest.mark.integration
    def test_cancel_during_extraction_aborts_call(self, maildir, storydir, logger):
        """Test that cancelling mid-call stops the run without waiting for the call"""
        add_message(maildir, "1000.a", make_message("<a@example.com>"))
        extractor = BlockingExtractor()
        cancel = threading.Event()

        def cancel_when_started():
            if extractor.started.wait(timeout=5):
                cancel.set()

        canceller = threading.Thread(target=cancel_when_started)
        canceller.start()
        start = time.monotonic()
        try:
            result = Processor(make_config(maildir, storydir), logger, extractor).run(
                cancel_event=cancel
            )
        finally:
            elapsed = time.monotonic() - start
            extractor.release.set()
            canceller.join()

        assert elapsed < 5
        assert extractor.calls == 1
        assert result.cancelled
        assert result.errors == 1
        assert result.processed == 0
        assert not storydir.exists()

    @pytest.mark.unit
    def test_unset_cancel_event_does_not_interfere(self, maildir, storydir, logger):
        """Test that a run with an unset cancel event completes normally"""
        add_message(maildir, "2000.b", make_message("<b@example.com>"))
        add_message(maildir, "1000.a", make_message("<a@example.com>"))
        extractor = StubStoryExtractor(stories=one_story())

        result = Processor(make_config(maildir, storydir), logger, extractor).run(
            cancel_event=threading.Event()
        )

        assert result.processed == 2
        assert not result.cancelled
        assert len(extractor.calls) == 2

    @pytest.mark.unit
    def test_missing_maildir_raises(self, tmp_path, storydir, logger):
        """Test that an unreadable Maildir aborts the run"""
        config = make_config(tmp_path / "missing", storydir)

        with pytest.raises(MaildirError):
            Processor(config, logger, StubStoryExtractor()).run()

    @pytest.mark.unit
    def test_verbose_logging_of_headers_bodies_and_stories(
        self, maildir, storydir, caplog
    ):
        """Test that optional debug logging includes email and story details"""
        add_message(maildir, "1000.a", make_message("<a@example.com>", subject="Logged"))
        logger = logging.getLogger("test-story-extractor-verbose")
        logger.setLevel(logging.DEBUG)
        config = make_config(maildir, storydir, log_bodies=True, log_stories=True)

        with caplog.at_level(logging.DEBUG, logger=logger.name):
            Processor(config, logger, StubStoryExtractor(stories=one_story())).run()

        assert "subject='Logged'" in caplog.text
        assert "body=" in caplog.text
        assert "headline='Story'" in caplog.text
