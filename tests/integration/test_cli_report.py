from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from spmsworkflow.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_jsonl(path: Path, rows: list[dict]) -> None:
    path.write_text("\n".join(json.dumps(row, ensure_ascii=False) for row in rows), encoding="utf-8")


OFFICE = {
    "record_id": "OPCR-1",
    "kind": "office",
    "subject_id": "OFFICE-ASSESSOR",
    "period_id": "P-2026-1",
    "status": "finalized",
    "final_average": 3.0,
    "adjectival_rating": "Satisfactory",
    "outputs": [
        {"output_id": "SP-1", "category": "strategic_priority", "rating_q": 3, "rating_e": 3},
        {"output_id": "CF-1", "category": "core_function", "rating_q": 3},
    ],
}

INDIVIDUALS = [
    {
        "record_id": "IPCR-1",
        "subject_id": "U-1",
        "division": "Assessment",
        "period_id": "P-2026-1",
        "status": "finalized",
        "final_average": 4.6,
        "adjectival_rating": "Outstanding",
    },
    {
        "record_id": "IPCR-2",
        "subject_id": "U-2",
        "division": "Records",
        "period_id": "P-2026-1",
        "status": "approved",
        "final_average": 3.0,
        "adjectival_rating": "Satisfactory",
    },
    {
        "record_id": "IPCR-3",
        "subject_id": "U-3",
        "division": "Records",
        "period_id": "P-2025-2",
        "status": "finalized",
        "final_average": 5.0,
        "adjectival_rating": "Outstanding",
    },
]

AWARDS = [
    {
        "award_id": "A-1",
        "staff_id": "U-1",
        "award_type": "praise_award",
        "basis_rating": "Outstanding",
        "status": "approved",
        "period_id": "P-2026-1",
    }
]


def test_cli_report_writes_consolidation_and_eligibility(tmp_path: Path, runner: CliRunner) -> None:
    records_path = tmp_path / "records.jsonl"
    awards_path = tmp_path / "awards.jsonl"
    output_path = tmp_path / "report.json"
    write_jsonl(records_path, [OFFICE, *INDIVIDUALS])
    write_jsonl(awards_path, AWARDS)

    result = runner.invoke(
        app,
        [
            "report",
            "--records",
            str(records_path),
            "--awards",
            str(awards_path),
            "--period",
            "P-2026-1",
            "--output",
            str(output_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "violation: true" in result.stdout

    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    consolidation = rendered["consolidation"]
    assert consolidation["office_average"] == 3.0
    assert consolidation["global_individual_average"] == pytest.approx(3.8)
    assert consolidation["violation"] is True
    assert [d["division"] for d in consolidation["divisions"]] == ["Assessment", "Records"]
    assert consolidation["categories"][0]["category"] == "strategic_priority"

    eligible = rendered["eligible_staff"]
    assert [s["staff_id"] for s in eligible] == ["U-1"]
    assert "praise_award" not in eligible[0]["eligible_awards"]
    assert eligible[0]["existing_awards"] == ["praise_award"]
    assert rendered["awards_summary"]["praise_award"]["total"] == 1
    assert rendered["metadata"]["errors"] == []


def test_cli_report_records_partial_load_errors(tmp_path: Path, runner: CliRunner) -> None:
    records_path = tmp_path / "records.jsonl"
    output_path = tmp_path / "report.json"
    records_path.write_text(
        json.dumps(INDIVIDUALS[0]) + "\n{invalid\n" + json.dumps({"record_id": "X"}),
        encoding="utf-8",
    )

    result = runner.invoke(
        app, ["report", "--records", str(records_path), "--output", str(output_path)]
    )

    assert result.exit_code == 0, result.stdout
    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    errors = rendered["metadata"]["errors"]
    assert len(errors) == 2
    assert "invalid JSON" in errors[0]
    assert rendered["metadata"]["record_count"] == 1


def test_cli_report_applies_yaml_config(tmp_path: Path, runner: CliRunner) -> None:
    records_path = tmp_path / "records.jsonl"
    config_path = tmp_path / "config.yaml"
    output_path = tmp_path / "report.json"
    write_jsonl(records_path, INDIVIDUALS[:2])
    config_path.write_text("consolidation:\n  qualifying_statuses: [finalized]\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["report", "--records", str(records_path), "--output", str(output_path), "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.stdout
    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    assert rendered["consolidation"]["qualifying_count"] == 1


def test_cli_rejects_invalid_config(tmp_path: Path, runner: CliRunner) -> None:
    records_path = tmp_path / "records.jsonl"
    config_path = tmp_path / "config.yaml"
    write_jsonl(records_path, INDIVIDUALS[:1])
    config_path.write_text("eligibility:\n  scope: forever\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["report", "--records", str(records_path), "--output", str(tmp_path / "out.json"), "--config", str(config_path)],
    )

    assert result.exit_code != 0


@pytest.mark.parametrize(
    "average, label",
    [("4.5", "Outstanding"), ("4.49", "Very Satisfactory"), ("0", "N/A")],
)
def test_cli_classify(runner: CliRunner, average: str, label: str) -> None:
    result = runner.invoke(app, ["classify", average])

    assert result.exit_code == 0
    assert result.stdout.strip() == label
