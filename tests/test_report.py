import csv
import json
from pathlib import Path

from webpify.batch import summarize
from webpify.errors import EncodeError
from webpify.report import build_report, save_report, save_report_csv, save_report_json
from webpify.results import JobResult


def _results(tmp_path: Path):
    return [
        JobResult(
            input_path=tmp_path / "a.jpg",
            output_path=tmp_path / "a.webp",
            compression=60.0,
            src_bytes=1000,
            out_bytes=400,
        ),
        JobResult(
            input_path=tmp_path / "b.png",
            output_path=tmp_path / "b.webp",
            exists=True,
            skipped_reason="exists",
        ),
        JobResult(
            input_path=tmp_path / "c.png",
            output_path=tmp_path / "c.webp",
            error=EncodeError("cwebp exited with status 1"),
            src_bytes=500,
        ),
    ]


def test_build_report(tmp_path):
    results = _results(tmp_path)
    report = build_report(results, summarize(results))

    assert report.created_utc.endswith("Z")
    assert report.summary["converted"] == 1
    assert report.summary["existing"] == 1
    assert report.summary["failed"] == 1
    assert report.summary["saved_percent"] == 60.0
    assert [f.outcome for f in report.files] == ["converted", "exists", "error"]
    assert report.files[2].error == "cwebp exited with status 1"


def test_json_and_csv(tmp_path):
    results = _results(tmp_path)
    report = build_report(results, summarize(results))

    json_path = tmp_path / "reports" / "run.json"
    save_report_json(report, json_path)
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert len(data["files"]) == 3
    assert data["files"][0]["out_path"] == str(tmp_path / "a.webp")

    csv_path = tmp_path / "reports" / "run.csv"
    save_report_csv(report, csv_path)
    with csv_path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["outcome"] for r in rows] == ["converted", "exists", "error"]


def test_save_report_picks_format_by_suffix(tmp_path):
    results = _results(tmp_path)
    report = build_report(results, summarize(results))

    save_report(report, tmp_path / "r.csv")
    save_report(report, tmp_path / "r.json")

    assert (tmp_path / "r.csv").read_text(encoding="utf-8").startswith("src_path,")
    assert json.loads((tmp_path / "r.json").read_text(encoding="utf-8"))["summary"]["total_files"] == 3
