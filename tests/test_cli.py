"""Tests for the command line entry point."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from conftest import BALANCE_ID, PERIOD_END, PERIOD_START

from blnk_statements.cli import build_parser, main, request_from_args
from blnk_statements.errors import SnapshotUnavailable
from blnk_statements.exporters import ExportFormat

PERIOD_ARGS = ["--start", PERIOD_START, "--end", PERIOD_END]


class TestRequestFromArgs:
    """Tests for combining flags with environment defaults."""

    def test_flags(self):
        args = build_parser().parse_args(
            ["--balance-id", BALANCE_ID, "--format", "pdf", "--currency", "EUR", *PERIOD_ARGS]
        )

        request = request_from_args(args)

        assert request.balance_id == BALANCE_ID
        assert request.currency == "EUR"
        assert request.export_format is ExportFormat.PDF

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("STATEMENT_BALANCE_ID", "bln_env")
        monkeypatch.setenv("STATEMENT_PERIOD_START", PERIOD_START)
        monkeypatch.setenv("STATEMENT_PERIOD_END", PERIOD_END)
        monkeypatch.setenv("STATEMENT_OUTPUT_DIR", "/tmp/statements")

        request = request_from_args(build_parser().parse_args([]))

        assert request.balance_id == "bln_env"
        assert request.output_dir == "/tmp/statements"
        assert request.export_format is ExportFormat.CSV


class TestMain:
    """Tests for main()."""

    def test_missing_balance_id_opens_nothing(self, capsys):
        """Test that validation fails before any client is created."""
        with (
            patch("blnk_statements.cli.TransactionStore") as store_cls,
            patch("blnk_statements.cli.BlnkAPIClient") as client_cls,
        ):
            exit_code = main(PERIOD_ARGS)

        assert exit_code == 1
        store_cls.assert_not_called()
        client_cls.assert_not_called()
        err = capsys.readouterr().err
        assert "Error generating statement (configuration)" in err
        assert "STATEMENT_BALANCE_ID is required" in err

    def test_success_prints_path(self, capsys):
        output = Path("output/statement_bln_123.csv")
        with patch("blnk_statements.cli.generate", new=AsyncMock(return_value=output)):
            exit_code = main(["--balance-id", BALANCE_ID, *PERIOD_ARGS])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == str(output)

    def test_failure_reports_phase_and_details(self, capsys):
        error = SnapshotUnavailable(
            BALANCE_ID, PERIOD_END, "API error: 404", status_code=404, details={"error": "gone"}
        )
        with patch("blnk_statements.cli.generate", new=AsyncMock(side_effect=error)):
            exit_code = main(["--balance-id", BALANCE_ID, *PERIOD_ARGS])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert "Error generating statement (snapshots)" in captured.err
        assert "API Error:" in captured.err
        assert '"error": "gone"' in captured.err

    def test_unknown_format_is_a_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--balance-id", BALANCE_ID, "--format", "xlsx", *PERIOD_ARGS])

        assert exc_info.value.code == 2
