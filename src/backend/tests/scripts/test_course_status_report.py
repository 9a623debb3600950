import json

from pipelines import paths
from pipelines.record_store import InMemoryRecordStore
from scripts.course_status_report import build_report, main

ROWS = {
    "fam1_25_26_s1_c1": {
        "familyId": "fam1",
        "studentId": "s1",
        "courseId": "c1",
        "schoolYear": "25_26",
        "studentName": "Ada Lovelace",
        "courseName": "Math 10-3",
        "courseCode": "MAT1791",
        "committed": True,
        "needsPasiRegistration": True,
        "lastUpdated": 1_760_551_200_000,
    },
    "fam1_25_26_s1_c2": {
        "familyId": "fam1",
        "studentId": "s1",
        "courseId": "c2",
        "schoolYear": "25_26",
        "courseName": "Science 10",
        "committed": True,
        "needsPasiRegistration": True,
        "registrarConfirmedRegistration": True,
        "registrarConfirmedMark": True,
        "finalMark": 91.5,
    },
    "fam2_24_25_s9_c1": {"familyId": "fam2", "studentId": "s9", "courseId": "c1", "schoolYear": "24_25"},
}


def _store():
    store = InMemoryRecordStore()
    store.set(paths.COURSE_STATUS_SUMMARY_ROOT, ROWS)
    return store


def test_markdown_queue():
    text = build_report(_store(), "25/26", "add-to-pasi")
    assert text.startswith("# Course status queue: add-to-pasi (25/26)")
    assert "add-to-pasi: 1 | completed: 1 | all: 2" in text
    assert "| Ada Lovelace | Math 10-3 | MAT1791 | Registration Pending |  | 2025-10-15 18:00 |" in text
    assert "Science 10" not in text


def test_completed_tab_shows_mark():
    text = build_report(_store(), "25_26", "completed")
    assert "| s1 | Science 10 |  | Complete | 91.5 |  |" in text


def test_empty_queue_message():
    text = build_report(_store(), "23/24", "all")
    assert "_No courses in this queue._" in text


def test_json_report():
    payload = json.loads(build_report(_store(), "25/26", "all", search="science", output_format="json"))
    assert payload["counts"] == {"add-to-pasi": 1, "completed": 1, "all": 2}
    assert [row["course_id"] for row in payload["rows"]] == ["c2"]


def test_main_writes_output(tmp_path):
    fixture = tmp_path / "summary.json"
    fixture.write_text(json.dumps(ROWS))
    out = tmp_path / "reports" / "queue.md"

    assert main(["--school-year", "25/26", "--fixture", str(fixture), "--output", str(out)]) == 0
    assert out.read_text().startswith("# Course status queue: add-to-pasi")
