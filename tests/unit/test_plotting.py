import json

import pytest

from readbench.plotting import format_header, format_row, plot_results, save_results
from readbench.runner import ExperimentPoint, PointResult, TimingResult


def _result(point, elapsed=0.5, error=None):
    result = PointResult(point=point, error=error)
    if error is None:
        for i, strategy in enumerate(("stream", "mapped")):
            for n in (1, 2, 4, 8):
                result.timings.append(
                    TimingResult(point, strategy, n, elapsed + i + n / 1000, bytes_read=10)
                )
    return result


def test_header():
    assert format_header() == (
        "Filesize\tNumFiles\t|\tStream1\tStream2\tStream4\tStream8\t|\t"
        "Mapped1\tMapped2\tMapped4\tMapped8"
    )


def test_row_four_decimals():
    row = format_row(_result(ExperimentPoint(1_024_000, 100)))
    assert row == (
        "1024000\t100\t|\t0.5010\t0.5020\t0.5040\t0.5080\t|\t1.5010\t1.5020\t1.5040\t1.5080"
    )
    assert len(row.split("\t")) == len(format_header().split("\t"))


def test_failed_point_row():
    row = format_row(_result(ExperimentPoint(512_000, 200), error="disk full"))
    assert row == "512000\t200\t|" + "\tN/A" * 4 + "\t|" + "\tN/A" * 4


def test_save_results(tmp_path):
    results = [_result(ExperimentPoint(4, 3)), _result(ExperimentPoint(2, 6), error="boom")]
    out = tmp_path / "nested" / "results.json"
    save_results(results, out)

    data = json.loads(out.read_text())
    assert [m["file_count"] for m in data["matrix"]] == [3, 6]
    assert data["matrix"][1]["error"] == "boom"
    first = data["matrix"][0]["timings"][0]
    assert first["elapsed"] == pytest.approx(0.501)
    assert {k: v for k, v in first.items() if k != "elapsed"} == {
        "strategy": "stream",
        "concurrency": 1,
        "bytes_read": 10,
        "failures": 0,
    }


def test_plot_results(tmp_path):
    results = [_result(ExperimentPoint(1000, 100)), _result(ExperimentPoint(500, 200), elapsed=0.2)]
    plot_results(results, tmp_path / "plots")
    assert (tmp_path / "plots" / "read_times.png").stat().st_size > 0
    assert (tmp_path / "plots" / "read_heatmap.png").stat().st_size > 0
