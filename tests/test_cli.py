import asyncio
import threading

import pytest
from aiohttp import test_utils
from click.testing import CliRunner

from conftest import FakeCreatorsApi
from episode_updater.cli import cli


@pytest.fixture(autouse=True)
def work_dir(tmp_path, monkeypatch):
    # Keep a developer's own .env out of the default --env-file lookup
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def served_api(episode_state):
    """Serve a FakeCreatorsApi from a background loop while the CLI runs its own."""
    api = FakeCreatorsApi({"E1": dict(episode_state)})
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    server = test_utils.TestServer(api.make_app())
    asyncio.run_coroutine_threadsafe(server.start_server(), loop).result(timeout=10)
    api.base_url = str(server.make_url("/")).rstrip("/")
    yield api
    asyncio.run_coroutine_threadsafe(server.close(), loop).result(timeout=10)
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=10)
    loop.close()


def write_files(tmp_path, csv_text, extra_env=""):
    csv_path = tmp_path / "episodes.csv"
    csv_path.write_text(csv_text, encoding="utf-8")
    env_path = tmp_path / ".env"
    env_path.write_text(
        f"COOKIE_STRING=sp_dc=abc\nSHOW_ID=show1\nCSV_FILE={csv_path}\nLOG_FILE={tmp_path / 'run.log'}\n" + extra_env,
        encoding="utf-8",
    )
    return env_path, csv_path


def api_env(api):
    return f"API_BASE_URL={api.base_url}\nVERIFY_DELAY=0\nDELAY_MIN=0\nDELAY_MAX=0\n"


def test_update_without_env_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["update", "--env-file", str(tmp_path / ".env")])
    assert result.exit_code == 1
    assert ".env file not found" in result.output


def test_update_rejects_bad_header(tmp_path):
    env_path, _ = write_files(tmp_path, "link;title\nE1;New\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["update", "--env-file", str(env_path)])

    assert result.exit_code == 1
    assert "First column must be 'url', found 'link'" in result.output
    log_text = (tmp_path / "run.log").read_text(encoding="utf-8")
    assert "CSV validation failed. Stopping script." in log_text
    assert log_text.startswith("[")


def test_update_lists_valid_fields_for_unknown_column(tmp_path):
    env_path, _ = write_files(tmp_path, "url;duration\nE1;10\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["update", "--env-file", str(env_path)])

    assert result.exit_code == 1
    assert "Invalid field 'duration' in CSV header" in result.output
    assert "Valid fields are: title publishOn description" in result.output


def test_update_missing_csv(tmp_path):
    env_path, _ = write_files(tmp_path, "url;title\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["update", "--env-file", str(env_path), "--csv-file", str(tmp_path / "missing.csv")])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_check_csv_passes(tmp_path):
    _, csv_path = write_files(tmp_path, "url;episodeNumber;seasonNumber\r\nE1;10;null\r\nE2;;3")
    runner = CliRunner()
    result = runner.invoke(cli, ["check-csv", "--csv-file", str(csv_path)])

    assert result.exit_code == 0
    assert "CSV validation passed" in result.output
    assert "Rows to update: 2" in result.output


def test_check_csv_reports_bad_value(tmp_path):
    _, csv_path = write_files(tmp_path, "url;isPublished\nE1;maybe\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["check-csv", "--csv-file", str(csv_path)])

    assert result.exit_code == 1
    assert "must be 'true' or 'false', got 'maybe'" in result.output


def test_check_csv_custom_delimiter(tmp_path):
    _, csv_path = write_files(tmp_path, "url,title\nhttps://x/episode/E1,New title\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["check-csv", "--csv-file", str(csv_path), "--delimiter", ","])

    assert result.exit_code == 0
    assert "Update fields: title" in result.output


def test_check_csv_reads_env_file(tmp_path):
    csv_path = tmp_path / "season2.csv"
    csv_path.write_text("url,episodeNumber\nE1,4\nE2,5\n", encoding="utf-8")
    (tmp_path / ".env").write_text(f"CSV_FILE={csv_path}\nCSV_DELIMITER=,\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["check-csv"])

    assert result.exit_code == 0
    assert "Update fields: episodeNumber" in result.output
    assert "Rows to update: 2" in result.output


def test_check_csv_options_override_env_file(tmp_path):
    _, csv_path = write_files(tmp_path, "url;title\nE1;New\n", extra_env="CSV_DELIMITER=,\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["check-csv", "--csv-file", str(csv_path), "--delimiter", ";"])

    assert result.exit_code == 0
    assert "Rows to update: 1" in result.output


def test_check_csv_rejects_long_delimiter(tmp_path):
    _, csv_path = write_files(tmp_path, "url;title\nE1;New\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["check-csv", "--csv-file", str(csv_path), "--delimiter", ";;"])

    assert result.exit_code == 1
    assert "CSV_DELIMITER" in result.output


def test_update_success_exits_zero(tmp_path, served_api):
    env_path, _ = write_files(
        tmp_path,
        "url;episodeNumber;seasonNumber\nhttps://creators.spotify.com/pod/show/s/episode/E1?si=x;10;null\n",
        extra_env=api_env(served_api),
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["update", "--env-file", str(env_path)])

    assert result.exit_code == 0
    assert served_api.episodes["E1"]["episodeNumber"] == 10
    assert served_api.episodes["E1"]["seasonNumber"] is None
    log_text = (tmp_path / "run.log").read_text(encoding="utf-8")
    assert "✓ Episode updated successfully" in log_text
    assert "Processing complete!" in log_text
    assert "Successfully updated: 1 episodes" in log_text
    assert "Errors: 0 episodes" in log_text


def test_update_row_failure_exits_one(tmp_path, served_api):
    env_path, _ = write_files(
        tmp_path,
        "url;title\nE1;Renamed\nE404;Never sent\nE1;Not reached\n",
        extra_env=api_env(served_api),
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["update", "--env-file", str(env_path)])

    assert result.exit_code == 1
    assert served_api.episodes["E1"]["title"] == "Renamed"
    posts = [uri for method, uri, *_ in served_api.requests if method == "POST"]
    assert posts == ["spotify:episode:E1"]
    log_text = (tmp_path / "run.log").read_text(encoding="utf-8")
    assert "HTTP 404 for episode E404" in log_text
    assert "Stopping script" in log_text
    assert "Processing complete!" in log_text
    assert "Successfully updated: 1 episodes" in log_text
    assert "Errors: 1 episodes" in log_text
