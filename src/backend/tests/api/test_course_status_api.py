import pytest

from pipelines import paths

COURSE_URL = "/course-status/fam1/25_26/s1/c1"
STATUS_PATH = paths.course_status_path("fam1", "25_26", "s1", "c1")
SUMMARY_PATH = paths.course_status_summary_path("fam1", "25_26", "s1", "c1")


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def client(make_client, store):
    return make_client(store)


def test_get_missing_course_returns_defaults(client):
    res = client.get(COURSE_URL)
    assert res.status_code == 200
    body = res.json()
    assert body["course_id"] == "c1"
    assert body["committed"] is False
    assert body["final_mark"] is None


def test_patch_writes_fields_and_summary(client, store):
    res = client.patch(
        COURSE_URL,
        json={
            "patch": {"committed": True, "needs_pasi_registration": True},
            "metadata": {"course_source": "albertaCourse", "course_code": "MAT1791", "course_name": "Math 10-3"},
        },
    )
    assert res.status_code == 200
    assert res.json()["needs_pasi_registration"] is True
    assert store.get(STATUS_PATH)["needsPasiRegistration"] is True
    assert store.get(SUMMARY_PATH)["courseCode"] == "MAT1791"


def test_patch_rejects_out_of_range_mark(client):
    res = client.patch(COURSE_URL, json={"patch": {"final_mark": 101}})
    assert res.status_code == 422


def test_stale_write_conflicts(client, store):
    store.set(STATUS_PATH, {"committed": True, "lastUpdated": 5})
    res = client.patch(COURSE_URL, json={"patch": {"registrar_comment": "hi"}, "expected_last_updated": 4})
    assert res.status_code == 409
    assert res.json()["error"] == "concurrent_update"
    assert res.json()["actual"] == 5


@pytest.mark.parametrize(
    "patch",
    [
        {"registrar_confirmed_registration": True},
        {"committed": True, "final_mark": 80, "registrar_confirmed_mark": True},
        {"registrar_confirmed_mark": False},
    ],
)
def test_patch_cannot_touch_registrar_flags(client, store, patch):
    res = client.patch(COURSE_URL, json={"patch": patch}, headers={"X-Actor-Role": "parent"})
    assert res.status_code == 400
    assert res.json()["detail"].endswith("/course-status/fam1/25_26/s1/c1/registrar-flags.")
    assert store.get(STATUS_PATH) is None
    assert store.get(SUMMARY_PATH) is None


def test_precheck_failure_is_conflict(client, store):
    res = client.post(
        COURSE_URL + "/registrar-flags",
        json={"field": "registrarConfirmedRegistration", "value": True},
        headers={"X-Actor-Role": "registrar"},
    )
    assert res.status_code == 409
    assert res.json()["prerequisite"] == "needsPasiRegistration"
    assert store.get(STATUS_PATH) is None


def test_parent_needs_confirmation(client, store):
    store.set(STATUS_PATH, {"committed": True, "needsPasiRegistration": True})
    body = {"field": "registrarConfirmedRegistration", "value": True}

    res = client.post(COURSE_URL + "/registrar-flags", json=body)
    assert res.status_code == 428
    assert res.json()["prompt"] == "Confirm that student has been registered in PASI?"

    res = client.post(COURSE_URL + "/registrar-flags", json={**body, "confirmed": True})
    assert res.status_code == 200
    assert res.json()["registrar_confirmed_registration"] is True


def test_registrar_confirming_mark_confirms_registration(client, store):
    store.set(STATUS_PATH, {"committed": True, "needsPasiRegistration": True, "finalMark": 88})
    res = client.post(
        COURSE_URL + "/registrar-flags",
        json={"field": "registrarConfirmedMark", "value": True},
        headers={"X-Actor-Role": "Registrar"},
    )
    assert res.status_code == 200
    record = store.get(STATUS_PATH)
    assert record["registrarConfirmedMark"] is True
    assert record["registrarConfirmedRegistration"] is True


def test_unknown_actor_role(client):
    res = client.post(
        COURSE_URL + "/registrar-flags",
        json={"field": "registrarConfirmedMark", "value": True},
        headers={"X-Actor-Role": "janitor"},
    )
    assert res.status_code == 400


def test_delete_removes_status_and_summary(client, store):
    client.patch(COURSE_URL, json={"patch": {"committed": True}})
    res = client.delete(COURSE_URL)
    assert res.status_code == 204
    assert store.get(STATUS_PATH) is None
    assert store.get(SUMMARY_PATH) is None


def test_dashboard_counts_and_rows(client):
    client.patch(COURSE_URL, json={"patch": {"committed": True, "needs_pasi_registration": True}})
    client.patch("/course-status/fam1/25_26/s1/c2", json={"patch": {"committed": True, "needs_pasi_registration": True}})
    client.post(
        "/course-status/fam1/25_26/s1/c2/registrar-flags",
        json={"field": "registrarConfirmedRegistration", "value": True},
        headers={"X-Actor-Role": "registrar"},
    )

    res = client.get("/course-status/dashboard", params={"school_year": "25/26"})
    assert res.status_code == 200
    body = res.json()
    assert body["tab"] == "add-to-pasi"
    assert body["counts"] == {"add-to-pasi": 1, "completed": 1, "all": 2}
    assert [row["course_id"] for row in body["rows"]] == ["c1"]

    res = client.get("/course-status/dashboard", params={"school_year": "25_26", "tab": "all"})
    assert [row["course_id"] for row in res.json()["rows"]] == ["c2", "c1"]
