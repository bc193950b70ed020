"""CLI entry point for batch-updating episode metadata."""

import asyncio
import sys

import click

from .constants.config import DEFAULT_CSV_DELIMITER, DEFAULT_CSV_FILE, DEFAULT_ENV_FILE


@click.group()
def cli():
    """Episode Updater - Batch-update Spotify for Creators episode metadata from a CSV file."""
    pass


@cli.command("update")
@click.option(
    "--env-file",
    default=DEFAULT_ENV_FILE,
    type=click.Path(dir_okay=False),
    help="Path to the .env configuration file (default: .env)"
)
@click.option("--csv-file", default=None, help="CSV file with updates (overrides CSV_FILE)")
@click.option("--log-file", default=None, help="Log file to append to (overrides LOG_FILE)")
@click.option("--delimiter", default=None, help="CSV column delimiter (overrides CSV_DELIMITER)")
def update(env_file: str, csv_file: str | None, log_file: str | None, delimiter: str | None):
    """Update episodes listed in the CSV file.

    The first CSV column holds the episode URL (or bare episode ID); the
    other columns are API field names. Empty cells leave a field unchanged.
    The run stops at the first row that fails.

    Examples:

        episode-updater update

        episode-updater update --csv-file season2.csv --delimiter ,
    """
    from .exceptions import ConfigError, HeaderValidationError, UnknownHeaderField
    from .models.field import build_default_schema
    from .models.settings import load_settings
    from .utils.csv_records import load_csv
    from .utils.log import log_styled, setup_logging, success

    try:
        settings = load_settings(
            env_file,
            csv_file=csv_file,
            log_file=log_file,
            csv_delimiter=delimiter,
        )
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    logger = setup_logging(settings.log_file)
    success(logger, "Spotify Episode Update Script")
    logger.info("========================================")
    logger.info("")

    schema = build_default_schema()
    try:
        fields, rows = load_csv(settings.csv_file, schema, settings.csv_delimiter)
    except ConfigError as e:
        logger.error("Error: %s", e)
        sys.exit(1)
    except HeaderValidationError as e:
        logger.error("Error: %s", e)
        if isinstance(e, UnknownHeaderField):
            log_styled(logger, "yellow", "Valid fields are: %s", " ".join(schema.field_names))
        logger.error("CSV validation failed. Stopping script.")
        sys.exit(1)

    success(logger, "CSV validation passed")
    logger.info("Update fields: %s", " ".join(fields))
    logger.info("")
    logger.info("Processing CSV file: %s", settings.csv_file)

    result = asyncio.run(run_updates(settings, schema, fields, rows))
    if not result.ok:
        sys.exit(1)


async def run_updates(settings, schema, fields, rows):
    """Open an API session and process all rows."""
    from .clients.episodes import EpisodeApiClient
    from .processors.records import RecordProcessor

    async with EpisodeApiClient(
        settings.cookie_string,
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        debug=settings.debug,
    ) as client:
        processor = RecordProcessor(
            client,
            schema,
            delay_min=settings.delay_min,
            delay_max=settings.delay_max,
            verify_delay=settings.verify_delay,
        )
        return await processor.run(fields, rows)


@cli.command("check-csv")
@click.option(
    "--env-file",
    default=DEFAULT_ENV_FILE,
    type=click.Path(dir_okay=False),
    help="Optional .env file supplying CSV_FILE and CSV_DELIMITER (default: .env)"
)
@click.option("--csv-file", default=None, help=f"CSV file to check (default: CSV_FILE or {DEFAULT_CSV_FILE})")
@click.option(
    "--delimiter",
    default=None,
    help=f"CSV column delimiter (default: CSV_DELIMITER or {DEFAULT_CSV_DELIMITER})"
)
def check_csv(env_file: str, csv_file: str | None, delimiter: str | None):
    """Validate a CSV file without contacting the API.

    Checks the header, every episode URL and every field value. The cookie
    is not needed, so a missing .env file is fine.

    Examples:

        episode-updater check-csv --csv-file spotify.csv
    """
    from .exceptions import EpisodeUpdaterError, UnknownHeaderField
    from .models.field import build_default_schema
    from .models.settings import load_csv_options
    from .utils.csv_records import check_rows, load_csv

    schema = build_default_schema()
    try:
        csv_file, delimiter = load_csv_options(env_file, csv_file=csv_file, csv_delimiter=delimiter)
        fields, rows = load_csv(csv_file, schema, delimiter)
        checked = check_rows(fields, rows, schema)
    except EpisodeUpdaterError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        if isinstance(e, UnknownHeaderField):
            click.secho(f"Valid fields are: {' '.join(schema.field_names)}", fg="yellow", err=True)
        sys.exit(1)

    click.secho("CSV validation passed", fg="green")
    click.echo(f"Update fields: {' '.join(fields)}")
    click.echo(f"Rows to update: {checked}")


if __name__ == "__main__":
    cli()
