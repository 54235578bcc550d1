"""Story extraction workflow: Maildir -> parse -> extract -> persist"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import List, Literal, Optional

from tqdm import tqdm

from src.email_processor.email_parser import read_email_file
from src.email_processor.maildir_reader import read_maildir
from src.llm.extractors import StoryExtractor
from src.models.configs import StoryExtractorConfig
from src.models.email import ParsedEmail
from src.models.errors import ExtractionAbortedError, NewsError, StoryPersistenceError
from src.models.story import Story
from src.models.workflow import ProcessingResult
from src.storage.story_checker import stories_exist
from src.storage.story_writer import write_stories_to_dir

EmailOutcome = Literal["processed", "skipped"]

# How often an in-flight extraction checks the cancel event, in seconds
CANCEL_POLL_INTERVAL = 0.1


class Processor:
    """
    Orchestrates story extraction over a Maildir.

    Messages are processed one at a time. A failure while parsing,
    extracting or persisting one message is logged and counted, and the run
    continues with the next message. Only a Maildir that cannot be
    enumerated aborts the run.
    """

    def __init__(
        self,
        config: StoryExtractorConfig,
        logger: logging.Logger,
        extractor: StoryExtractor,
    ):
        self.config = config
        self.log = logger
        self.extractor = extractor

    def run(self, cancel_event: Optional[threading.Event] = None) -> ProcessingResult:
        """
        Execute the story extraction workflow.

        Args:
            cancel_event: When set, the in-flight extraction is abandoned and
                processing stops

        Returns:
            ProcessingResult with the aggregate counts

        Raises:
            MaildirError: If the Maildir cannot be read
        """
        email_paths = read_maildir(self.config.maildir)
        self.log.info("found emails: count=%d", len(email_paths))

        # Apply limit if specified
        limit = self.config.limit
        if limit > 0 and len(email_paths) > limit:
            email_paths = email_paths[:limit]
            self.log.info("limiting email processing: limit=%d", limit)

        result = ProcessingResult(total=len(email_paths))

        deadline = None
        executor = None
        if self.config.run_timeout:
            deadline = time.monotonic() + self.config.run_timeout
        if deadline is not None or cancel_event is not None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="story-extract")

        try:
            for index, path in enumerate(
                tqdm(email_paths, desc="Extracting stories from emails", disable=None)
            ):
                if cancel_event is not None and cancel_event.is_set():
                    self.log.warning("run cancelled: remaining=%d", len(email_paths) - index)
                    result.cancelled = True
                    break

                if deadline is not None and time.monotonic() >= deadline:
                    self.log.warning(
                        "run timeout reached: timeout_s=%s remaining=%d",
                        self.config.run_timeout,
                        len(email_paths) - index,
                    )
                    result.cancelled = True
                    break

                self.log.debug("processing email: index=%d path=%s", index + 1, path)

                try:
                    outcome = self._process_email(index, path, deadline, executor, cancel_event)
                except ExtractionAbortedError as e:
                    self.log.warning(
                        "run stopped during extraction: path=%s remaining=%d error=%s",
                        path,
                        len(email_paths) - index - 1,
                        e,
                    )
                    result.errors += 1
                    result.cancelled = True
                    break
                except NewsError as e:
                    self.log.warning("failed to process email: path=%s error=%s", path, e)
                    result.errors += 1
                    continue
                except Exception as e:
                    self.log.exception("unexpected error processing email: path=%s error=%s", path, e)
                    result.errors += 1
                    continue

                if outcome == "skipped":
                    result.skipped += 1
                else:
                    result.processed += 1

        except KeyboardInterrupt:
            self.log.warning("run interrupted")
            result.cancelled = True

        finally:
            if executor is not None:
                executor.shutdown(wait=False, cancel_futures=True)

        self.log.info(
            "processing complete: total=%d processed=%d skipped=%d errors=%d",
            result.total,
            result.processed,
            result.skipped,
            result.errors,
        )

        return result

    def _process_email(
        self,
        index: int,
        path: Path,
        deadline: Optional[float],
        executor: Optional[ThreadPoolExecutor],
        cancel_event: Optional[threading.Event],
    ) -> EmailOutcome:
        """
        Process a single message file.

        Returns:
            "skipped" if stories already exist, "processed" otherwise

        Raises:
            EmailParseError: If the message cannot be read
            StoryExtractionError: If extraction fails
            ExtractionAbortedError: If the run times out or is cancelled mid-extraction
            StoryPersistenceError: If the stories cannot be written
        """
        email = read_email_file(path, logger=self.log)

        # Incremental processing: a failed check must not drop work
        try:
            if stories_exist(self.config.storydir, email.message_id, email.date):
                self.log.debug(
                    "skipping email (stories already exist): path=%s message_id=%s",
                    path,
                    email.message_id,
                )
                return "skipped"
        except StoryPersistenceError as e:
            self.log.warning("failed to check for existing stories: path=%s error=%s", path, e)

        if self.config.log_headers or self.config.log_bodies:
            self._log_email(index, email)

        start = time.monotonic()
        stories = self._extract(email, deadline, executor, cancel_event)
        duration_ms = int((time.monotonic() - start) * 1000)

        self.log.info(
            "extracted stories: path=%s count=%d duration_ms=%d", path, len(stories), duration_ms
        )

        if self.config.log_stories:
            self._log_stories(stories)

        write_stories_to_dir(self.config.storydir, email.message_id, email.date, stories)

        return "processed"

    def _extract(
        self,
        email: ParsedEmail,
        deadline: Optional[float],
        executor: Optional[ThreadPoolExecutor],
        cancel_event: Optional[threading.Event],
    ) -> List[Story]:
        """
        Call the extractor, bounded by the run time budget and the cancel event.

        The call runs on the executor and is awaited in slices so a cancel
        request is noticed while it is in flight. An abandoned call keeps its
        worker thread until the HTTP request returns or hits its own timeout.
        """
        if executor is None:
            return self.extractor.extract(email)

        future = executor.submit(self.extractor.extract, email)
        while True:
            wait = CANCEL_POLL_INTERVAL if cancel_event is not None else None
            if deadline is not None:
                remaining = max(deadline - time.monotonic(), 0.0)
                wait = remaining if wait is None else min(wait, remaining)

            try:
                return future.result(timeout=wait)
            except FutureTimeoutError:
                pass

            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                raise ExtractionAbortedError("extraction aborted: run cancelled")
            if deadline is not None and time.monotonic() >= deadline:
                future.cancel()
                raise ExtractionAbortedError("extraction aborted: run timeout reached")

    def _log_email(self, index: int, email: ParsedEmail) -> None:
        message = (
            "parsed email: index=%d subject=%r from_email=%s from_name=%r date=%s "
            "message_id=%s body_length=%d"
        )
        args = [
            index + 1,
            email.subject,
            email.from_email,
            email.from_name,
            email.date.strftime("%Y-%m-%d %H:%M:%S"),
            email.message_id,
            len(email.body),
        ]
        if self.config.log_bodies:
            message += " body=%r"
            args.append(email.body)

        self.log.debug(message, *args)

    def _log_stories(self, stories: List[Story]) -> None:
        for i, story in enumerate(stories, start=1):
            self.log.debug(
                "story: index=%d headline=%r teaser=%r url=%s",
                i,
                story.headline,
                story.teaser,
                story.url,
            )
