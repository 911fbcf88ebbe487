import csv
import json

import pytest

from ruinsim.analysis import StatisticsAggregator
from ruinsim.export import CSV_FIELDS, build_report, csv_rows, write_csv, write_report
from ruinsim.utils.exceptions import ExportError


@pytest.fixture
def batch(make_batch):
    return make_batch([[10, 11, 12], [10, 0], [10, 11, 10]], target=12)


def test_csv_rows(batch):
    rows = csv_rows(batch)

    assert [row["run"] for row in rows] == [1, 2, 3]
    assert rows[0] == {
        "run": 1,
        "final_capital": 12,
        "rounds": 2,
        "bankrupt": False,
        "reached_target": True,
        "max_capital": 12,
        "min_capital": 10,
    }
    assert rows[1]["bankrupt"] is True
    assert rows[2]["max_capital"] == 11


def test_write_csv(batch, tmp_path):
    path = write_csv(batch, tmp_path / "out" / "runs.csv")

    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        rows = list(reader)

    assert reader.fieldnames == CSV_FIELDS
    assert len(rows) == 3
    assert rows[1]["bankrupt"] == "True"


def test_write_csv_empty_batch_has_header(make_batch, tmp_path):
    path = write_csv(make_batch([]), tmp_path / "runs.csv")
    assert path.read_text().strip() == ",".join(CSV_FIELDS)


def test_build_report(make_config, batch):
    config = make_config(target_capital=12, seed="r")
    statistics = StatisticsAggregator().compute(batch)

    report = build_report(config, batch, statistics)

    assert set(report) == {"generated_at", "config", "summary", "statistics"}
    assert report["config"]["seed"] == "r"
    assert report["config"]["strategy"] == "fixed"
    assert report["summary"]["total_runs"] == 3
    assert report["summary"]["bankrupt_count"] == 1
    assert report["summary"]["max_rounds"] == 2
    assert report["summary"]["min_final_capital"] == 0
    assert report["statistics"]["risk"]["sample_size"] == 3
    json.dumps(report)


def test_build_report_without_statistics(make_config, make_batch):
    report = build_report(make_config(), make_batch([]))
    assert report["statistics"] is None
    assert report["summary"]["min_rounds"] == 0


def test_write_report(make_config, batch, tmp_path):
    path = write_report(build_report(make_config(), batch), tmp_path / "report.json")
    loaded = json.loads(path.read_text())
    assert loaded["summary"]["target_reached_count"] == 1


def test_write_report_failure(make_config, batch, tmp_path):
    with pytest.raises(ExportError) as exc_info:
        write_report(build_report(make_config(), batch), tmp_path)
    assert str(tmp_path) in str(exc_info.value)
