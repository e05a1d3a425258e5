"""Tests for the command line interface."""

from payroll_engine.cli import PayrollCli, main


class TestPayrollCli:
    """Test argument parsing and offline commands."""

    def test_no_command_prints_help(self, capsys):
        assert PayrollCli().run([]) == 1
        assert "cleanup-locks" in capsys.readouterr().out

    def test_lock_status_arguments(self):
        parsed = PayrollCli().parser.parse_args(
            [
                "lock-status",
                "--company-id",
                "00000000-0000-0000-0000-000000000001",
                "--start",
                "2024-01-01",
                "--end",
                "2024-01-14",
            ]
        )

        assert parsed.command == "lock-status"
        assert parsed.start.isoformat() == "2024-01-01"
        assert parsed.company_id.int == 1

    def test_jurisdictions(self, capsys):
        assert main(["jurisdictions", "--year", "2024"]) == 0

        out = capsys.readouterr().out
        assert "Jurisdictions configured for 2024: 51" in out
        assert "  CA" in out
        assert "Local taxes configured for 2024: 30" in out
        assert "  PA-PHILADELPHIA" in out
