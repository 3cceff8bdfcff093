from __future__ import annotations

from pathlib import Path

import pytest

from program_guide import main as cli
from program_guide.database import Database
from program_guide.services.sync_types import ExitCode


def _env_file(tmp_path: Path, database_url: str) -> Path:
    path = tmp_path / "sync.env"
    path.write_text(f"DATABASE_URL={database_url}\n", encoding="utf-8")
    return path


def test_missing_config_file_is_config_failure(tmp_path: Path) -> None:
    assert cli.main(["--env-file", str(tmp_path / "nope.env")]) == ExitCode.CONFIG_FAILURE


def test_invalid_config_is_config_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert cli.main(["--env-file", str(_env_file(tmp_path, "guide.db"))]) == ExitCode.CONFIG_FAILURE


def test_unreachable_database_is_connection_failure(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'missing-dir' / 'guide.db'}"
    assert cli.main(["--env-file", str(_env_file(tmp_path, url))]) == ExitCode.CONNECTION_FAILURE


@pytest.mark.parametrize("url", ["nosuchdialect://host/guide", "sqlite+nosuchdriver:///guide.db"])
def test_malformed_database_url_is_config_failure(tmp_path: Path, url: str) -> None:
    assert cli.main(["--env-file", str(_env_file(tmp_path, url))]) == ExitCode.CONFIG_FAILURE


def test_connection_failure_disposes_engine(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    closed: list[Database] = []
    original_close = Database.close

    def recording_close(self: Database) -> None:
        closed.append(self)
        original_close(self)

    monkeypatch.setattr(Database, "close", recording_close)
    url = f"sqlite:///{tmp_path / 'missing-dir' / 'guide.db'}"

    assert cli.main(["--env-file", str(_env_file(tmp_path, url))]) == ExitCode.CONNECTION_FAILURE
    assert len(closed) == 1


def test_unknown_single_id_succeeds_with_message(
    tmp_path: Path, database_url: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli.main(["--env-file", str(_env_file(tmp_path, database_url)), "404"])

    assert code == ExitCode.SUCCESS
    assert "program 404 is not in the guide; nothing to do" in capsys.readouterr().out


def test_schedule_cannot_take_an_id(tmp_path: Path, database_url: str) -> None:
    args = ["--env-file", str(_env_file(tmp_path, database_url)), "--schedule", "1"]
    assert cli.main(args) == ExitCode.CONFIG_FAILURE


def test_non_numeric_id_is_rejected(tmp_path: Path, database_url: str) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--env-file", str(_env_file(tmp_path, database_url)), "abc"])
    assert excinfo.value.code == 2
