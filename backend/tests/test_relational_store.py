"""Tests for the relational store against a fake session factory.

No database is needed: statements are recorded and outcomes are queued on
the ``fake_db`` fixture.
"""

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from oncosafe.storage import PinnedRoleOverride, RelationalStore, StorageWriteError
from oncosafe.storage.errors import UNDEFINED_COLUMN
from tests.conftest import FakeDriverError, make_result, sql_of, target_of

USER_ID = "3f1c2d4e-5a6b-4c7d-8e9f-0a1b2c3d4e5f"
PATIENT_ID = "9b2e7f4a-1c3d-4e5f-8a9b-0c1d2e3f4a5b"
NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def connection_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, FakeDriverError("connection refused"))


def undefined_column(column: str) -> ProgrammingError:
    message = f'column "{column}" of relation "sync_logs" does not exist'
    return ProgrammingError("INSERT INTO sync_logs", {}, FakeDriverError(message, UNDEFINED_COLUMN))


def user_row(**overrides) -> dict:
    row = {
        "id": uuid.UUID(USER_ID),
        "email": "a@example.com",
        "role": "user",
        "is_active": True,
        "created_at": NOW,
        "updated_at": NOW,
        "deleted_at": None,
    }
    row.update(overrides)
    return row


# =============================================================================
# Read degradation
# =============================================================================


@pytest.mark.asyncio
async def test_search_drugs_returns_empty_on_backend_failure(relational_store, fake_db):
    fake_db.queue(connection_error())
    assert await relational_store.search_drugs("tamoxifen") == []


@pytest.mark.asyncio
async def test_get_drug_interactions_returns_empty_on_backend_failure(relational_store, fake_db):
    fake_db.queue(connection_error())
    assert await relational_store.get_drug_interactions("10324") == []


@pytest.mark.asyncio
async def test_get_drug_by_rxcui_returns_none_on_backend_failure(relational_store, fake_db):
    fake_db.queue(connection_error())
    assert await relational_store.get_drug_by_rxcui("10324") is None
    assert fake_db.rollbacks == 1


@pytest.mark.asyncio
async def test_search_drugs_serializes_ids(relational_store, fake_db):
    drug_id = uuid.uuid4()
    fake_db.queue(make_result([{"id": drug_id, "rxcui": "10324", "name": "tamoxifen"}]))

    drugs = await relational_store.search_drugs("tamox", limit=5)

    assert drugs == [{"id": str(drug_id), "rxcui": "10324", "name": "tamoxifen"}]
    assert fake_db.targets == ["drugs"]


@pytest.mark.asyncio
async def test_blank_search_term_skips_the_database(relational_store, fake_db):
    assert await relational_store.search_drugs("   ") == []
    assert fake_db.statements == []


@pytest.mark.asyncio
async def test_multiple_interactions_needs_two_drugs(relational_store, fake_db):
    assert await relational_store.check_multiple_interactions(["10324", "10324"]) == []
    assert fake_db.statements == []


@pytest.mark.asyncio
async def test_multiple_interactions_queries_pairs(relational_store, fake_db):
    row = {"drug1_rxcui": "10324", "drug2_rxcui": "32968", "severity": "major"}
    fake_db.queue(make_result([row]))

    assert await relational_store.check_multiple_interactions(["32968", "10324"]) == [row]
    assert fake_db.targets == ["drug_interactions"]


# =============================================================================
# Sync log schema fallback
# =============================================================================


@pytest.mark.asyncio
async def test_log_sync_activity_uses_current_column(relational_store, fake_db):
    log_id = uuid.uuid4()
    fake_db.queue(make_result([{"id": log_id, "sync_type": "rxnorm", "status": "started"}]))

    entry = await relational_store.log_sync_activity({"sync_type": "rxnorm", "triggered_by": "manual"})

    assert entry == {"id": str(log_id), "sync_type": "rxnorm", "status": "started"}
    assert len(fake_db.statements) == 1
    assert "sync_type" in sql_of(fake_db.statements[0])


@pytest.mark.asyncio
async def test_log_sync_activity_falls_back_to_legacy_column(relational_store, fake_db):
    log_id = uuid.uuid4()
    fake_db.queue(
        undefined_column("sync_type"),
        make_result([{"id": log_id, "source": "cpic", "status": "started"}]),
    )

    entry = await relational_store.log_sync_activity({"sync_type": "cpic"})

    assert entry == {"id": str(log_id), "sync_type": "cpic", "status": "started"}
    assert len(fake_db.statements) == 2
    retried = sql_of(fake_db.statements[1])
    assert "source" in retried
    assert "sync_type" not in retried


@pytest.mark.asyncio
async def test_log_sync_activity_does_not_retry_other_errors(relational_store, fake_db):
    fake_db.queue(undefined_column("triggered_by"))

    assert await relational_store.log_sync_activity({"sync_type": "fda"}) is None
    assert len(fake_db.statements) == 1


@pytest.mark.asyncio
async def test_log_sync_activity_gives_up_after_legacy_failure(relational_store, fake_db):
    fake_db.queue(undefined_column("sync_type"), connection_error())

    assert await relational_store.log_sync_activity({"sync_type": "fda"}) is None
    assert len(fake_db.statements) == 2


@pytest.mark.asyncio
async def test_custom_sync_columns(fake_db):
    store = RelationalStore(
        fake_db.session_factory,
        sync_type_column="kind",
        legacy_sync_type_column="origin",
    )
    fake_db.queue(undefined_column("kind"), make_result([{"id": uuid.uuid4(), "origin": "trials"}]))

    entry = await store.log_sync_activity({"sync_type": "trials"})

    assert entry["sync_type"] == "trials"
    assert "origin" in sql_of(fake_db.statements[1])


@pytest.mark.asyncio
async def test_update_sync_status_defaults_completion_time(relational_store, fake_db):
    log_id = str(uuid.uuid4())
    fake_db.queue(make_result([{"id": uuid.UUID(log_id), "status": "completed"}]))

    entry = await relational_store.update_sync_status(log_id, {"status": "completed", "records_processed": 10})

    assert entry == {"id": log_id, "status": "completed"}
    sql = sql_of(fake_db.statements[0])
    assert "completed_at" in sql
    assert "sync_type" not in sql


# =============================================================================
# Patients
# =============================================================================


@pytest.mark.asyncio
async def test_upsert_patient_writes_patient_then_profile(relational_store, fake_db):
    fake_db.queue(
        make_result(
            [
                {
                    "id": uuid.UUID(PATIENT_ID),
                    "user_id": uuid.UUID(USER_ID),
                    "data": {"id": PATIENT_ID},
                    "created_at": NOW,
                    "updated_at": NOW,
                }
            ]
        ),
        make_result(rowcount=1),
    )

    record = await relational_store.upsert_patient(
        USER_ID, {"id": PATIENT_ID, "medications": [{"name": "tamoxifen", "rxcui": "10324"}]}
    )

    assert record["id"] == PATIENT_ID
    assert record["user_id"] == USER_ID
    assert fake_db.targets == ["patients", "patient_profiles"]
    assert "ON CONFLICT" in sql_of(fake_db.statements[0])


@pytest.mark.asyncio
async def test_upsert_patient_replaces_invalid_id(relational_store, fake_db):
    fake_db.queue(make_result([{"id": uuid.UUID(PATIENT_ID), "user_id": uuid.UUID(USER_ID)}]))

    await relational_store.upsert_patient(USER_ID, {"id": "not-a-uuid"})

    params = fake_db.statements[0].compile().params
    stored_id = params["id"]
    assert isinstance(stored_id, uuid.UUID)
    assert params["data"]["id"] == str(stored_id)


@pytest.mark.asyncio
async def test_profile_failure_does_not_fail_upsert(relational_store, fake_db, caplog):
    fake_db.queue(
        make_result([{"id": uuid.UUID(PATIENT_ID), "user_id": uuid.UUID(USER_ID)}]),
        connection_error(),
    )

    with caplog.at_level("ERROR"):
        record = await relational_store.upsert_patient(USER_ID, {"id": PATIENT_ID})

    assert record["id"] == PATIENT_ID
    assert "PatientProfile projection into patient_profiles" in caplog.text
    assert PATIENT_ID in caplog.text


@pytest.mark.asyncio
async def test_upsert_patient_raises_on_write_failure(relational_store, fake_db):
    fake_db.queue(connection_error())

    with pytest.raises(StorageWriteError):
        await relational_store.upsert_patient(USER_ID, {"id": PATIENT_ID})
    assert fake_db.targets == ["patients"]


@pytest.mark.asyncio
async def test_upsert_patient_owned_by_someone_else_raises(relational_store, fake_db):
    fake_db.queue(make_result([]))

    with pytest.raises(StorageWriteError, match="another user"):
        await relational_store.upsert_patient(USER_ID, {"id": PATIENT_ID})


@pytest.mark.asyncio
async def test_malformed_patient_never_reaches_database(relational_store, fake_db):
    with pytest.raises(ValidationError):
        await relational_store.upsert_patient(USER_ID, {"allergies": [{"reaction": "rash"}]})
    assert fake_db.statements == []


@pytest.mark.asyncio
async def test_delete_patient(relational_store, fake_db):
    fake_db.queue(make_result(rowcount=1), make_result(rowcount=0))

    assert await relational_store.delete_patient(USER_ID, PATIENT_ID)
    assert not await relational_store.delete_patient(USER_ID, PATIENT_ID)
    assert not await relational_store.delete_patient(USER_ID, "not-a-uuid")
    assert len(fake_db.statements) == 2


# =============================================================================
# Users
# =============================================================================


@pytest.mark.asyncio
async def test_create_user_raises_on_conflict(relational_store, fake_db):
    fake_db.queue(IntegrityError("INSERT INTO users", {}, FakeDriverError("duplicate key", "23505")))

    with pytest.raises(StorageWriteError):
        await relational_store.create_user({"email": "a@example.com"})


@pytest.mark.asyncio
async def test_create_user_hashes_password(relational_store, fake_db):
    fake_db.queue(make_result([user_row()]))

    created = await relational_store.create_user({"email": "a@example.com", "password": "correct horse"})

    assert created["id"] == USER_ID
    params = fake_db.statements[0].compile().params
    assert "password" not in params
    assert ":" in params["password_hash"]


@pytest.mark.asyncio
async def test_role_override_on_reads(fake_db):
    store = RelationalStore(
        fake_db.session_factory,
        role_override=PinnedRoleOverride("support@example.com", "super_admin"),
    )
    fake_db.queue(
        make_result([user_row(email="support@example.com")]),
        make_result([user_row(email="other@example.com")]),
    )

    assert (await store.get_user_by_email("support@example.com"))["role"] == "super_admin"
    assert (await store.get_user_by_email("other@example.com"))["role"] == "user"


@pytest.mark.asyncio
async def test_get_user_by_id_with_invalid_id(relational_store, fake_db):
    assert await relational_store.get_user_by_id("u1") is None
    assert fake_db.statements == []


@pytest.mark.asyncio
async def test_soft_delete_user(relational_store, fake_db):
    fake_db.queue(make_result([user_row(is_active=False, deleted_at=NOW)]))

    result = await relational_store.soft_delete_user(USER_ID, actor_id="admin-1")

    assert result.success
    assert result.user["is_active"] is False
    assert fake_db.targets == ["users", "audit_logs"]


@pytest.mark.asyncio
async def test_soft_delete_reports_backend_failure(relational_store, fake_db):
    fake_db.queue(connection_error())

    result = await relational_store.soft_delete_user(USER_ID)

    assert not result.success
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_soft_delete_unknown_user(relational_store, fake_db):
    fake_db.queue(make_result([]))

    result = await relational_store.soft_delete_user(USER_ID)
    assert result.error == "not found"


@pytest.mark.asyncio
async def test_audit_failure_does_not_fail_soft_delete(relational_store, fake_db):
    fake_db.queue(make_result([user_row(is_active=False)]), connection_error())

    result = await relational_store.soft_delete_user(USER_ID)
    assert result.success


# =============================================================================
# Hard delete cascade
# =============================================================================


@pytest.mark.asyncio
async def test_hard_delete_cascade_order(relational_store, fake_db):
    fake_db.queue(
        make_result([{"id": uuid.UUID(PATIENT_ID)}]),  # owned patients
        make_result(rowcount=1),  # profiles
        make_result(rowcount=1),  # patients
        make_result(rowcount=3),  # audit records
        make_result(rowcount=0),  # feedback
        make_result([user_row()]),  # user row
    )

    result = await relational_store.hard_delete_user(USER_ID, actor_id="admin-1")

    assert result.success
    assert result.user["email"] == "a@example.com"
    assert fake_db.targets == [
        "patients",
        "patient_profiles",
        "patients",
        "audit_logs",
        "feedback",
        "users",
        "session",
        "account",
        "user",
        "audit_logs",
    ]


@pytest.mark.asyncio
async def test_hard_delete_continues_past_child_failures(relational_store, fake_db):
    fake_db.queue(
        make_result([]),  # no patients, so no profile step
        connection_error(),  # patients
        connection_error(),  # audit records
        make_result(rowcount=0),  # feedback
        make_result([user_row()]),
    )

    result = await relational_store.hard_delete_user(USER_ID)

    assert result.success
    assert fake_db.targets[:5] == ["patients", "patients", "audit_logs", "feedback", "users"]


@pytest.mark.asyncio
async def test_hard_delete_raises_when_user_row_fails(relational_store, fake_db):
    fake_db.queue(make_result([]), make_result(), make_result(), make_result(), connection_error())

    with pytest.raises(StorageWriteError):
        await relational_store.hard_delete_user(USER_ID)
    assert "user" not in fake_db.targets


@pytest.mark.asyncio
async def test_hard_delete_raises_when_identity_fails(relational_store, fake_db):
    fake_db.queue(
        make_result([]),
        make_result(),
        make_result(),
        make_result(),
        make_result([user_row()]),
        connection_error(),  # identity sessions
    )

    with pytest.raises(StorageWriteError, match="identity"):
        await relational_store.hard_delete_user(USER_ID)


@pytest.mark.asyncio
async def test_hard_delete_unknown_user_still_purges_identity(relational_store, fake_db):
    fake_db.queue(make_result([]), make_result(), make_result(), make_result(), make_result([]))

    result = await relational_store.hard_delete_user(USER_ID)

    assert result.error == "not found"
    assert fake_db.targets[-3:] == ["session", "account", "user"]


@pytest.mark.asyncio
async def test_hard_delete_without_identity_store(fake_db):
    store = RelationalStore(fake_db.session_factory)
    fake_db.queue(make_result([]), make_result(), make_result(), make_result(), make_result([user_row()]))

    result = await store.hard_delete_user(USER_ID)

    assert result.success
    assert fake_db.targets == ["patients", "patients", "audit_logs", "feedback", "users", "audit_logs"]


@pytest.mark.asyncio
async def test_hard_delete_records_itself_after_purging_audit_trail(relational_store, fake_db):
    fake_db.queue(make_result([]), make_result(), make_result(), make_result(), make_result([user_row()]))

    await relational_store.hard_delete_user(USER_ID, actor_id="admin-1")

    audit_writes = [s for s in fake_db.statements if target_of(s) == "audit_logs"]
    purge, record = audit_writes
    assert sql_of(purge).startswith("DELETE")
    params = record.compile().params
    assert params["action"] == "user.hard_delete"
    assert params["actor_id"] == "admin-1"
    assert params["target_id"] == USER_ID


# =============================================================================
# Reference data, feedback
# =============================================================================


@pytest.mark.asyncio
async def test_reference_upsert_echoes_input_on_failure(relational_store, fake_db):
    fake_db.queue(connection_error())
    drug = {"rxcui": "10324", "name": "tamoxifen", "brandNames": ["Soltamox"]}

    assert await relational_store.upsert_drug(drug) == drug


@pytest.mark.asyncio
async def test_reference_upsert_conflicts_on_natural_key(relational_store, fake_db):
    fake_db.queue(make_result([{"rxcui": "10324", "name": "tamoxifen"}]))

    await relational_store.upsert_drug({"rxcui": "10324", "name": "tamoxifen"})

    sql = sql_of(fake_db.statements[0])
    assert "ON CONFLICT (rxcui) DO UPDATE" in sql


@pytest.mark.asyncio
async def test_interaction_pair_is_stored_sorted(relational_store, fake_db):
    await relational_store.insert_drug_interaction(
        {"drug1Rxcui": "32968", "drug2Rxcui": "10324", "severity": "major"}
    )

    params = fake_db.statements[0].compile().params
    assert (params["drug1_rxcui"], params["drug2_rxcui"]) == ("10324", "32968")


@pytest.mark.asyncio
async def test_self_interaction_is_rejected(relational_store, fake_db):
    with pytest.raises(ValidationError):
        await relational_store.insert_drug_interaction(
            {"drug1_rxcui": "10324", "drug2_rxcui": "10324", "severity": "major"}
        )
    assert fake_db.statements == []


@pytest.mark.asyncio
async def test_insert_feedback_returns_none_on_failure(relational_store, fake_db):
    fake_db.queue(connection_error())
    assert await relational_store.insert_feedback({"title": "Broken", "type": "bug"}) is None


@pytest.mark.asyncio
async def test_list_feedback_pages(relational_store, fake_db):
    item = {"id": uuid.uuid4(), "title": "Slow search"}
    fake_db.queue(make_result(scalar=41), make_result([item]))

    page = await relational_store.list_feedback(page=3, limit=500, status="new")

    assert page == {"items": [{**item, "id": str(item["id"])}], "total": 41, "page": 3, "limit": 100}


@pytest.mark.asyncio
async def test_list_feedback_returns_none_on_failure(relational_store, fake_db):
    fake_db.queue(connection_error())
    assert await relational_store.list_feedback() is None


@pytest.mark.asyncio
async def test_update_feedback_status_only_touches_triage_fields(relational_store, fake_db):
    feedback_id = str(uuid.uuid4())
    fake_db.queue(make_result([{"id": uuid.UUID(feedback_id), "status": "triaged"}]))

    updated = await relational_store.update_feedback_status(feedback_id, "triaged", assignee="sam")

    assert updated["status"] == "triaged"
    params = fake_db.statements[0].compile().params
    assert params["status"] == "triaged"
    assert params["assignee"] == "sam"
    assert "sprint_target" not in params
    assert "title" not in params
