import pytest

from adapters.firebase.course_status import (
    CourseStatusAdapterError,
    course_status_from_record,
    course_status_to_record,
    fields_to_record,
    summary_from_record,
)
from common.course_status.models import CourseSource


def test_record_to_model_and_back():
    raw = {
        "committed": True,
        "courseSource": "otherCourse",
        "courseCodeVerified": True,
        "finalMark": "86.5",
        "activityDescriptions": {"a": "Essay", "b": "Oral"},
        "lastUpdated": 1700000000000,
        "asn": 123456789,
    }
    status = course_status_from_record(raw, course_id="c7")
    assert status.course_id == "c7"
    assert status.course_source == CourseSource.OTHER_COURSE
    assert status.final_mark == 86.5
    assert status.asn == "123456789"

    record = course_status_to_record(status)
    assert record["courseSource"] == "otherCourse"
    assert record["finalMark"] == 86.5
    assert record["activityDescriptions"] == {"a": "Essay", "b": "Oral"}
    assert "courseId" not in record


def test_array_shaped_descriptions_become_index_map():
    status = course_status_from_record({"activityDescriptions": ["first", None, "third"]})
    assert status.activity_descriptions == {"0": "first", "2": "third"}


@pytest.mark.parametrize("mark", ["abc", 120, -1])
def test_bad_marks_rejected(mark):
    with pytest.raises(CourseStatusAdapterError):
        course_status_from_record({"finalMark": mark})


def test_unknown_course_source_rejected():
    with pytest.raises(CourseStatusAdapterError):
        course_status_from_record({"courseSource": "mystery"})


def test_summary_requires_identity_fields():
    with pytest.raises(CourseStatusAdapterError):
        summary_from_record("k", {"familyId": "fam1", "schoolYear": "25_26"})
    summary = summary_from_record(
        "k", {"familyId": "fam1", "studentId": 4, "schoolYear": "25_26", "courseId": 12, "studentName": "Ada"}
    )
    assert summary.student_id == "4"
    assert summary.course_id == "12"
    assert summary.summary_key == "fam1_25_26_4_12"


def test_fields_to_record_keeps_none_for_deletes():
    assert fields_to_record({"final_mark": None, "registrar_confirmed_mark": False}) == {
        "finalMark": None,
        "registrarConfirmedMark": False,
    }
    with pytest.raises(CourseStatusAdapterError):
        fields_to_record({"not_a_field": 1})
