"""Row-by-row episode update orchestration."""

import asyncio
import random
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Sequence

from ..constants.config import (
    DEFAULT_DELAY_MAX,
    DEFAULT_DELAY_MIN,
    DEFAULT_VERIFY_DELAY,
    DESCRIPTION_EXCERPT,
)
from ..exceptions import (
    ApiError,
    EpisodeUpdaterError,
    FieldValidationError,
    IdentifierExtractionError,
    MissingPublishDate,
)
from ..models.episode import EpisodeUpdateRequest, ProcessingTally, RunResult
from ..models.field import FieldSchema
from ..utils.csv_records import build_update_request
from ..utils.identifiers import extract_episode_id
from ..utils.log import get_logger, log_styled, success
from .payload import PayloadBuilder, unwrap_episode_data

logger = get_logger("records")

# Fields whose values are shortened in log output
TRUNCATED_FIELDS = {"description": DESCRIPTION_EXCERPT}


class EpisodeClient(Protocol):
    async def fetch(self, episode_id: str) -> dict[str, Any]: ...

    async def update(self, episode_id: str, payload: dict[str, Any]) -> None: ...


class RecordProcessor:
    """
    Apply CSV rows to episodes one at a time, stopping at the first failure.

    Each row goes through fetch, validation, payload building, update and a
    verification fetch. A random pause separates successfully processed rows.
    """

    def __init__(
        self,
        client: EpisodeClient,
        schema: FieldSchema,
        builder: Optional[PayloadBuilder] = None,
        delay_min: int = DEFAULT_DELAY_MIN,
        delay_max: int = DEFAULT_DELAY_MAX,
        verify_delay: float = DEFAULT_VERIFY_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        if delay_min > delay_max:
            raise ValueError(f"delay_min ({delay_min}) must not exceed delay_max ({delay_max})")
        self.client = client
        self.schema = schema
        self.builder = builder or PayloadBuilder(schema)
        self.delay_min = delay_min
        self.delay_max = delay_max
        self.verify_delay = verify_delay
        self.sleep = sleep
        self.rng = rng or random.Random()

    async def run(self, fields: Sequence[str], rows: Sequence[tuple[int, list[str]]]) -> RunResult:
        """
        Process every data row in order.

        Args:
            fields: Update fields from the validated header
            rows: (line_number, values) for each non-empty data row

        Returns:
            RunResult with the tally and the error that stopped the run, if any
        """
        result = RunResult(tally=ProcessingTally())

        success(logger, "Starting episode updates...")
        logger.info("")

        for index, (line_number, values) in enumerate(rows):
            try:
                processed = await self.process_row(line_number, fields, values)
            except EpisodeUpdaterError as e:
                self._report_failure(e)
                result.tally.error_count += 1
                result.error = e
                break

            if not processed:
                continue

            result.tally.success_count += 1
            logger.info("")

            if index < len(rows) - 1:
                await self._pause_between_rows()
                logger.info("")

        self._report_tally(result.tally)
        return result

    async def process_row(self, line_number: int, fields: Sequence[str], values: list[str]) -> bool:
        """
        Update and verify the episode for one row.

        Returns:
            True if the episode was updated, False if the row was skipped

        Raises:
            EpisodeUpdaterError: On any failure; the run must stop
        """
        url = values[0] if values else ""
        if not url:
            logger.warning("Skipping line %d: No URL", line_number)
            return False

        episode_id = extract_episode_id(url)
        if not episode_id:
            raise IdentifierExtractionError(url)

        logger.info("Episode ID: %s", episode_id)

        try:
            current = await self.client.fetch(episode_id)
        except EpisodeUpdaterError:
            logger.error("✗ Error: Failed to get episode data")
            raise
        episode = unwrap_episode_data(current)
        logger.info("Title: %s", self.schema.format_value("title", episode))

        request = build_update_request(episode_id, fields, values)
        self.validate_request(request)

        logger.info("")
        log_styled(logger, "yellow", "Current Values:")
        self._log_field_values(request.field_names, episode)

        payload = self.builder.build(request, current)
        await self.client.update(episode_id, payload)
        logger.info("")
        success(logger, "✓ Episode updated successfully")

        await self.verify(episode_id, payload, request.field_names)
        return True

    def validate_request(self, request: EpisodeUpdateRequest) -> None:
        """Validate every CSV value of a row, stopping at the first bad one."""
        for update in request.updates:
            self.schema.validate(update.field, update.value)

    async def verify(self, episode_id: str, payload: Mapping[str, Any], field_names: Sequence[str]) -> None:
        """
        Re-fetch the episode after an update and report the updated fields.

        Values that differ from the payload are reported as warnings; only a
        failed fetch counts as a verification failure.
        """
        await self.sleep(self.verify_delay)

        try:
            verified = await self.client.fetch(episode_id)
        except EpisodeUpdaterError:
            logger.error("Verification failed: Could not retrieve episode data")
            raise

        logger.debug("Verification data retrieved successfully")
        episode = unwrap_episode_data(verified)

        logger.info("")
        success(logger, "Verification:")
        self._log_field_values(field_names, episode)

        for name in field_names:
            expected = payload.get(name)
            actual = self.schema.current_value(name, episode)
            if actual is not None and actual != expected:
                logger.warning("Field '%s' is %r after update, expected %r", name, actual, expected)

    def _log_field_values(self, field_names: Sequence[str], episode: Mapping[str, Any]) -> None:
        for name in field_names:
            definition = self.schema.get(name)
            value = self.schema.format_value(name, episode, max_length=TRUNCATED_FIELDS.get(name))
            logger.info("- %s: %s", definition.label, value)

    async def _pause_between_rows(self) -> None:
        delay = self.rng.randint(self.delay_min, self.delay_max)
        log_styled(logger, "yellow", "Waiting %d seconds...", delay)
        await self.sleep(delay)

    def _report_failure(self, error: EpisodeUpdaterError) -> None:
        if isinstance(error, FieldValidationError):
            logger.error("Error: %s", error)
            logger.error("✗ Validation failed for episode")
        elif isinstance(error, MissingPublishDate):
            log_styled(logger, "yellow", "Debug: Episode data keys (first 20):")
            logger.info(", ".join(error.available_keys[:20]) or "Unable to parse keys")
            logger.error("Error: %s", error)
            logger.warning(
                "Hint: Add a 'publishOn' column to your CSV with dates in format YYYY-MM-DDTHH:MM:SS.000Z"
            )
        elif isinstance(error, ApiError):
            logger.error("✗ Error: %s", error)
            if error.body:
                logger.error("Response: %s", error.body)
        else:
            logger.error("✗ Error: %s", error)
        logger.error("Stopping script")

    def _report_tally(self, tally: ProcessingTally) -> None:
        success(logger, "Processing complete!")
        success(logger, "Successfully updated: %d episodes", tally.success_count)
        log_styled(logger, "red", "Errors: %d episodes", tally.error_count)
