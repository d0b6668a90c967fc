"""Contract tests for the condocalc command line."""

import json

import pytest
from fastapi.testclient import TestClient

from condocalc.cli import main as cli_main
from condocalc.main import create_app


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Isolated working directory, file database and two-unit condominium."""
    condo_file = tmp_path / "condo.json"
    condo_file.write_text(
        json.dumps(
            {
                "unit_labels": ["A", "B"],
                "unit_area": 100,
                "common_expenses": {
                    "garbage_fee": "40",
                    "other_services_fee": "100",
                    "utility_invoice_total": "754.14",
                },
            }
        )
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CONDO_CONFIG_PATH", str(condo_file))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "cli.log"))
    # Keep pytest's logging handlers in place
    monkeypatch.setattr(cli_main, "setup_logging", lambda log_file: None)
    return tmp_path


@pytest.fixture
def input_file(cli_env):
    path = cli_env / "march.json"
    path.write_text(
        json.dumps(
            {
                "units": [
                    {"id": "A", "label": "A", "area": 100, "previous_reading": 0, "current_reading": 30},
                    {"id": "B", "label": "B", "area": 100, "previous_reading": 0, "current_reading": 10},
                ]
            }
        )
    )
    return path


class TestCalculateCommand:
    def test_calculate_prints_report(self, input_file, capsys):
        exit_code = cli_main.main(["calculate", "--input", str(input_file), "--period", "2025-03"])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "Water billing report - 2025-03" in out
        assert "461,11" in out
        assert "894,14" in out

    def test_calculate_without_save_keeps_history_empty(self, input_file, capsys):
        cli_main.main(["calculate", "--input", str(input_file), "--period", "2025-03"])
        capsys.readouterr()

        assert cli_main.main(["history"]) == 0
        assert "No saved periods." in capsys.readouterr().out

    def test_calculate_invalid_period(self, input_file):
        assert cli_main.main(["calculate", "--input", str(input_file), "--period", "2025-13"]) == 1

    def test_calculate_missing_input_file(self, cli_env):
        assert cli_main.main(["calculate", "--input", str(cli_env / "missing.json"), "--period", "2025-03"]) == 1

    def test_calculate_invalid_readings(self, cli_env):
        path = cli_env / "bad.json"
        path.write_text(
            json.dumps({"units": [{"id": "A", "label": "A", "area": 100, "previous_reading": 9, "current_reading": 3}]})
        )

        assert cli_main.main(["calculate", "--input", str(path), "--period", "2025-03"]) == 1

    def test_calculate_from_stored_settings(self, cli_env, capsys):
        """Without --input the stored (default, zeroed) readings are used."""
        assert cli_main.main(["calculate", "--period", "2025-03"]) == 0
        assert "Water billing report - 2025-03" in capsys.readouterr().out


class TestHistoryCommands:
    @pytest.fixture
    def saved(self, input_file, capsys):
        assert cli_main.main(["calculate", "--input", str(input_file), "--period", "2025-03", "--save"]) == 0
        capsys.readouterr()

    def test_history_lists_saved_period(self, saved, capsys):
        assert cli_main.main(["history"]) == 0

        out = capsys.readouterr().out
        assert "2025-03" in out
        assert "units=2" in out

    def test_show(self, saved, capsys):
        assert cli_main.main(["show", "2025-03"]) == 0

        assert "461,11" in capsys.readouterr().out

    def test_show_missing_period(self, cli_env):
        assert cli_main.main(["show", "2020-01"]) == 1

    def test_import_readings(self, saved, capsys):
        assert cli_main.main(["import-readings", "2025-04"]) == 0

        out = capsys.readouterr().out
        assert "A: previous=30" in out
        assert "B: previous=10" in out

    def test_import_readings_without_previous_record(self, saved):
        assert cli_main.main(["import-readings", "2025-06"]) == 1


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli_main.build_parser().parse_args([])

    def test_serve_defaults(self):
        args = cli_main.build_parser().parse_args(["serve"])

        assert args.host == "127.0.0.1"
        assert args.port == 8000


class TestSharedDatabase:
    """The CLI and the API resolve the database the same way."""

    def test_dotenv_database_shared_by_cli_and_api(self, tmp_path, monkeypatch, capsys):
        for name in ("DATABASE_URL", "CONDO_CONFIG_PATH", "LOG_FILE"):
            # setenv first so that values loaded from .env are removed on teardown
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        db_file = tmp_path / "from_env.db"
        (tmp_path / ".env").write_text(
            f"DATABASE_URL=sqlite:///{db_file}\nLOG_FILE={tmp_path / 'cli.log'}\n"
        )
        (tmp_path / "march.json").write_text(
            json.dumps(
                {
                    "units": [
                        {"id": "A", "label": "A", "area": 100, "previous_reading": 0, "current_reading": 30},
                        {"id": "B", "label": "B", "area": 100, "previous_reading": 0, "current_reading": 10},
                    ]
                }
            )
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(cli_main, "setup_logging", lambda log_file: None)

        assert cli_main.main(["calculate", "--input", "march.json", "--period", "2025-03", "--save"]) == 0
        capsys.readouterr()

        app = create_app()
        response = TestClient(app).get("/api/billing/history")

        assert app.state.engine.url.database == str(db_file)
        assert [item["period"] for item in response.json()] == ["2025-03"]
        app.state.engine.dispose()
