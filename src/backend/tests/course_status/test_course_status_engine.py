from unittest.mock import patch

import pytest

from common.course_status.engine import CourseStatusEngine
from common.course_status.models import (
    BadgeKind,
    CourseMetadata,
    CourseSource,
    CourseStatusPatch,
    DashboardTab,
    RegistrarFlag,
)
from common.errors import ConcurrentUpdateError, ConfirmationRequired, PrecheckFailed
from connectors.firebase.config import FirebaseConfig
from pipelines import paths
from pipelines.record_store import FirebaseRecordStore

KEY = ("fam1", "25/26", "s1", "c1")
STATUS_PATH = paths.course_status_path(*KEY)
SUMMARY_PATH = paths.course_status_summary_path(*KEY)


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def engine(store, clock):
    return CourseStatusEngine(store, clock=clock)


def test_missing_record_reads_as_default(engine):
    status = engine.get_status(*KEY)
    assert status.course_id == "c1"
    assert status.committed is False
    assert engine.derive_badge(status) == BadgeKind.NOT_COMMITTED


def test_update_writes_only_named_fields(engine, store):
    store.set(STATUS_PATH, {"committed": True, "registrarComment": "call parent", "finalMark": 80})

    engine.update_status(*KEY, CourseStatusPatch(needs_pasi_registration=True), asn="1234-5678-9")

    record = store.get(STATUS_PATH)
    assert record["needsPasiRegistration"] is True
    assert record["registrarComment"] == "call parent"
    assert record["finalMark"] == 80
    assert record["asn"] == "1234-5678-9"
    assert isinstance(record["lastUpdated"], int)


def test_update_refreshes_summary_row(engine, store):
    metadata = CourseMetadata(course_source=CourseSource.ALBERTA_COURSE, course_code="MAT1791", course_name="Math 10-3")
    engine.update_status(*KEY, CourseStatusPatch(committed=True), metadata=metadata)

    summary = store.get(SUMMARY_PATH)
    assert summary["familyId"] == "fam1"
    assert summary["studentId"] == "s1"
    assert summary["courseId"] == "c1"
    assert summary["schoolYear"] == "25_26"
    assert summary["courseSource"] == "albertaCourse"
    assert summary["courseCode"] == "MAT1791"
    assert store.get(STATUS_PATH)["courseName"] == "Math 10-3"


def test_clearing_mark_unconfirms_it_in_store(engine, store):
    store.set(
        STATUS_PATH,
        {
            "committed": True,
            "needsPasiRegistration": True,
            "registrarConfirmedRegistration": True,
            "finalMark": 88,
            "registrarConfirmedMark": True,
        },
    )
    nxt = engine.update_status(*KEY, CourseStatusPatch(final_mark=None))

    record = store.get(STATUS_PATH)
    assert "finalMark" not in record
    assert record["registrarConfirmedMark"] is False
    assert nxt.registrar_confirmed_mark is False
    assert engine.derive_badge(nxt) == BadgeKind.REGISTERED


def test_activity_descriptions_round_trip(engine):
    descriptions = {"10": "Lab: titration", "2": "Field study, river", "a-b": "Émile's essay"}
    engine.update_status(*KEY, CourseStatusPatch(activity_descriptions=descriptions))
    assert engine.get_status(*KEY).activity_descriptions == descriptions


def test_stale_write_rejected_when_version_given(engine):
    first = engine.update_status(*KEY, CourseStatusPatch(committed=True))
    engine.update_status(*KEY, CourseStatusPatch(registrar_comment="x"))
    with pytest.raises(ConcurrentUpdateError):
        engine.update_status(*KEY, CourseStatusPatch(committed=False), expected_last_updated=first.last_updated)


def test_registration_confirm_requires_request(engine, store):
    store.set(STATUS_PATH, {"committed": True, "needsPasiRegistration": False})
    before = store.snapshot()

    with pytest.raises(PrecheckFailed) as excinfo:
        engine.set_registrar_flag(*KEY, RegistrarFlag.REGISTRATION, True, actor_is_registrar=True)

    assert excinfo.value.prerequisite == "needsPasiRegistration"
    assert excinfo.value.field == "registrarConfirmedRegistration"
    assert store.snapshot() == before


@pytest.mark.parametrize(
    "record, prerequisite",
    [
        ({"committed": False, "finalMark": 90}, "committed"),
        ({"committed": True}, "finalMark"),
    ],
)
def test_mark_confirm_prechecks(engine, store, record, prerequisite):
    store.set(STATUS_PATH, record)
    before = store.snapshot()
    with pytest.raises(PrecheckFailed) as excinfo:
        engine.set_registrar_flag(*KEY, RegistrarFlag.MARK, True, actor_is_registrar=True)
    assert excinfo.value.prerequisite == prerequisite
    assert store.snapshot() == before


def test_confirming_mark_also_confirms_registration(engine, store):
    store.set(STATUS_PATH, {"committed": True, "needsPasiRegistration": True, "finalMark": 72})
    nxt = engine.set_registrar_flag(*KEY, RegistrarFlag.MARK, True, actor_is_registrar=True)
    assert nxt.registrar_confirmed_registration is True
    assert store.get(STATUS_PATH)["registrarConfirmedRegistration"] is True
    assert engine.derive_badge(nxt) == BadgeKind.COMPLETE


def test_unconfirming_registration_blocked_by_confirmed_mark(engine, store):
    store.set(
        STATUS_PATH,
        {"committed": True, "finalMark": 72, "registrarConfirmedMark": True, "registrarConfirmedRegistration": True},
    )
    with pytest.raises(PrecheckFailed):
        engine.set_registrar_flag(*KEY, RegistrarFlag.REGISTRATION, False, actor_is_registrar=True)


def test_non_registrar_needs_confirmation(engine, store):
    store.set(STATUS_PATH, {"needsPasiRegistration": True})
    with pytest.raises(ConfirmationRequired) as excinfo:
        engine.set_registrar_flag(*KEY, RegistrarFlag.REGISTRATION, True, actor_is_registrar=False)
    assert excinfo.value.prompt == "Confirm that student has been registered in PASI?"
    assert store.get(STATUS_PATH) == {"needsPasiRegistration": True}

    nxt = engine.set_registrar_flag(*KEY, RegistrarFlag.REGISTRATION, True, actor_is_registrar=False, confirmed=True)
    assert nxt.registrar_confirmed_registration is True


def test_patch_cannot_confirm_unrequested_registration(engine, store):
    before = store.snapshot()
    with pytest.raises(PrecheckFailed) as excinfo:
        engine.update_status(*KEY, CourseStatusPatch(registrar_confirmed_registration=True))
    assert excinfo.value.prerequisite == "needsPasiRegistration"
    assert store.snapshot() == before


def test_patch_cannot_confirm_mark_before_commitment(engine, store):
    before = store.snapshot()
    with pytest.raises(PrecheckFailed) as excinfo:
        engine.update_status(*KEY, CourseStatusPatch(final_mark=80, registrar_confirmed_mark=True))
    assert excinfo.value.prerequisite == "committed"
    assert store.snapshot() == before


def test_patch_meeting_prerequisites_raises_flags(engine, store):
    nxt = engine.update_status(
        *KEY, CourseStatusPatch(committed=True, final_mark=80, registrar_confirmed_mark=True)
    )
    assert nxt.registrar_confirmed_mark is True
    assert nxt.registrar_confirmed_registration is True
    assert store.get(SUMMARY_PATH)["registrarConfirmedMark"] is True


def test_remove_course_deletes_record_and_summary(engine, store):
    engine.update_status(*KEY, CourseStatusPatch(committed=True))
    engine.remove_course(*KEY)
    assert store.get(STATUS_PATH) is None
    assert store.get(SUMMARY_PATH) is None


def test_status_and_summary_written_together(clock):
    store = FirebaseRecordStore(
        FirebaseConfig(database_url="https://demo.firebaseio.com", auth_token="", project_id="", access_token="")
    )
    engine = CourseStatusEngine(store, clock=clock)
    with patch("pipelines.record_store.db_get", return_value=None), patch(
        "pipelines.record_store.db_patch"
    ) as db_patch, patch("pipelines.record_store.db_put") as db_put:
        engine.update_status(*KEY, CourseStatusPatch(committed=True))

    db_put.assert_not_called()
    db_patch.assert_called_once()
    _, path, writes = db_patch.call_args.args
    assert path == ""
    assert writes[f"{STATUS_PATH}/committed"] is True
    assert writes[SUMMARY_PATH]["committed"] is True
    assert writes[SUMMARY_PATH]["familyId"] == "fam1"


def test_dashboard_reads_summaries_for_year(engine):
    engine.update_status(*KEY, CourseStatusPatch(needs_pasi_registration=True))
    engine.update_status("fam1", "25/26", "s1", "c2", CourseStatusPatch(committed=True))
    engine.update_status("fam2", "24/25", "s9", "c1", CourseStatusPatch(needs_pasi_registration=True))

    queue = engine.dashboard("25_26", DashboardTab.ADD_TO_PASI)
    assert [(r.family_id, r.course_id) for r in queue] == [("fam1", "c1")]
    assert len(engine.dashboard("25/26", DashboardTab.ALL)) == 2
