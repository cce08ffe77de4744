import csv
import json
from decimal import Decimal

import click
import pytest
from click.testing import CliRunner

from loan_compare.main import build_config_from_options, cli

LOAN = ["-p", "1cr", "-c", "9", "-n", "7.5", "-t", "25", "--years"]


@pytest.fixture
def runner():
    return CliRunner()


class TestBuildConfig:
    def test_normalizes_inputs(self):
        config = build_config_from_options("1cr", 9, 7.5, 25, True, "120000", "yearly")
        assert config.principal == Decimal("10000000")
        assert config.tenure_months == 300
        assert config.extra_monthly == Decimal("10000")

    def test_terms(self):
        config = build_config_from_options("50l", 9, 7.5, 240)
        assert config.current_terms().annual_rate == Decimal("9")
        assert config.new_terms().annual_rate == Decimal("7.5")
        assert config.new_terms().term_months == 240

    @pytest.mark.parametrize(
        "args",
        [
            ("0", 9, 7.5, 300),
            ("1cr", 0, 7.5, 300),
            ("1cr", 9, -1, 300),
            ("1cr", 9, 7.5, 0),
            ("lots", 9, 7.5, 300),
        ],
    )
    def test_rejects_bad_input(self, args):
        with pytest.raises(click.BadParameter):
            build_config_from_options(*args)


class TestMetricsCommand:
    def test_prints_scorecard(self, runner):
        result = runner.invoke(cli, ["metrics", *LOAN])
        assert result.exit_code == 0, result.output
        assert "Current EMI" in result.output
        assert "Tenure reduction" in result.output

    def test_json_export(self, runner, tmp_path):
        path = tmp_path / "metrics.json"
        result = runner.invoke(cli, ["metrics", *LOAN, "--extra", "10000", "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))["metrics"]
        assert data["current_emi"] == pytest.approx(83920, abs=1)
        assert data["months_with_extra"] < 300

    def test_rejects_csv_output(self, runner, tmp_path):
        result = runner.invoke(cli, ["metrics", *LOAN, "--output", str(tmp_path / "m.csv")])
        assert result.exit_code == 2

    def test_insufficient_payment_exits_with_error(self, runner):
        result = runner.invoke(cli, ["metrics", "-p", "1cr", "-c", "7", "-n", "15", "-t", "300"])
        assert result.exit_code == 1
        assert "insufficient_payment" in result.output

    def test_bad_principal(self, runner):
        result = runner.invoke(cli, ["metrics", "-p", "0", "-c", "9", "-n", "7.5", "-t", "300"])
        assert result.exit_code == 2


class TestScheduleCommand:
    def test_prints_schedule(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "10l", "-r", "10", "-t", "12"])
        assert result.exit_code == 0, result.output
        assert len(result.output.strip().splitlines()) == 13

    def test_long_schedule_is_truncated(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "1cr", "-r", "9", "-t", "300"])
        assert result.exit_code == 0, result.output
        assert "showing first 120 rows" in result.output

    def test_csv_export(self, runner, tmp_path):
        path = tmp_path / "schedule.csv"
        result = runner.invoke(cli, ["schedule", "-p", "10l", "-r", "10", "-t", "1", "--years", "--output", str(path)])
        assert result.exit_code == 0, result.output
        with path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Month"
        assert len(rows) == 13
        assert float(rows[-1][4]) == 0.0

    def test_fractional_months_rejected(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "10l", "-r", "10", "-t", "12.5"])
        assert result.exit_code == 2

    def test_fixed_emi_too_small(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "1l", "-r", "12", "-t", "12", "--fixed-emi", "900"])
        assert result.exit_code == 1
        assert "insufficient_payment" in result.output


class TestCompareCommand:
    def test_prints_rows(self, runner):
        result = runner.invoke(cli, ["compare", "same-emi", *LOAN])
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines[0] == "Rate change, same EMI"
        assert lines[1].split("\t")[:3] == ["month", "original_balance", "modified_balance"]
        assert len(lines) == 302

    def test_json_export_has_nulls(self, runner, tmp_path):
        path = tmp_path / "combined.json"
        result = runner.invoke(cli, ["compare", "combined", *LOAN, "-e", "10000", "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["scenario"] == "combined"
        assert len(data["rows"]) == 300
        assert data["rows"][-1]["combined_balance"] is None
        assert "modified_balance" not in data["rows"][0]

    def test_unknown_scenario(self, runner):
        result = runner.invoke(cli, ["compare", "refinance", *LOAN])
        assert result.exit_code == 2
