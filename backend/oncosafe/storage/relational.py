"""Relational store over the hosted PostgreSQL database.

Each operation runs in its own session and transaction. Statements are
SQLAlchemy Core against the ORM tables so every call returns plain dicts.

Error policy:
    - Clinically meaningful writes (users, patients, the terminal steps of a
      hard delete) raise ``StorageWriteError``.
    - Reads log and return ``[]`` / ``None``.
    - Reference writes log and echo their input; feedback and sync-log
      operations log and return ``None``.
    - Secondary writes (profile projection, audit entries, hard-delete child
      cleanup) log and carry on.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Integer, String, Table, column, delete, func, or_, select, table, update
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from oncosafe.config import Settings
from oncosafe.database import create_engine_from_settings, create_session_maker
from oncosafe.models import (
    AuditLog,
    ClinicalTrial,
    CpicGuideline,
    Drug,
    DrugInteraction,
    Feedback,
    Gene,
    GeneDrugInteraction,
    OncologyProtocol,
    Patient,
    PatientProfile,
    User,
)
from oncosafe.projections.patient_profile import PATIENT_PROFILE_PROJECTION, project_patient_profile
from oncosafe.schemas.patient import PatientDocument
from oncosafe.schemas.reference import (
    CpicGuidelineUpsert,
    DrugInteractionCreate,
    DrugUpsert,
    GeneDrugInteractionCreate,
    GeneUpsert,
)
from oncosafe.schemas.sync import SyncLogStart, SyncLogUpdate
from oncosafe.security import hash_password
from oncosafe.storage.base import DeleteResult, StorageService, normalize_patient
from oncosafe.storage.errors import StorageWriteError, is_undefined_column
from oncosafe.storage.identity import IdentityStore
from oncosafe.storage.policies import NoRoleOverride, RoleOverridePolicy
from oncosafe.storage.resolver import StorageMode

logger = logging.getLogger(__name__)

# Failures a read may degrade on: anything from SQLAlchemy, plus socket
# errors the driver raises before SQLAlchemy can wrap them.
BACKEND_ERRORS = (SQLAlchemyError, OSError)

MAX_FEEDBACK_PAGE_SIZE = 100

users = User.__table__
patients = Patient.__table__
patient_profiles = PatientProfile.__table__
drugs = Drug.__table__
drug_interactions = DrugInteraction.__table__
genes = Gene.__table__
gene_drug_interactions = GeneDrugInteraction.__table__
cpic_guidelines = CpicGuideline.__table__
oncology_protocols = OncologyProtocol.__table__
clinical_trials = ClinicalTrial.__table__
feedback_table = Feedback.__table__
audit_logs = AuditLog.__table__


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _serialize(row: Mapping[str, Any]) -> dict[str, Any]:
    """Row mapping to a plain dict with string ids."""
    return {key: str(value) if isinstance(value, uuid.UUID) else value for key, value in row.items()}


def _known_columns(target: Table, values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key in target.c}


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _sync_logs(kind_column: str | None):
    """Lightweight ``sync_logs`` table with a caller-chosen kind column.

    ``kind_column=None`` leaves the kind column out entirely, for statements
    that must work on both current and legacy schemas.
    """
    columns = [
        column("id", UUID(as_uuid=True)),
        column("status", String),
        column("records_processed", Integer),
        column("records_inserted", Integer),
        column("records_updated", Integer),
        column("errors", JSONB),
        column("started_at", DateTime(timezone=True)),
        column("completed_at", DateTime(timezone=True)),
        column("triggered_by", String),
    ]
    if kind_column:
        columns.insert(1, column(kind_column, String))
    return table("sync_logs", *columns)


class RelationalStore(StorageService):
    """Storage service backed by PostgreSQL through SQLAlchemy's async API."""

    mode = StorageMode.RELATIONAL

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        role_override: RoleOverridePolicy | None = None,
        identity: IdentityStore | None = None,
        sync_type_column: str = "sync_type",
        legacy_sync_type_column: str = "source",
        hard_delete_settle_seconds: float = 0.0,
        engine: AsyncEngine | None = None,
    ):
        self._session_factory = session_factory
        self._role_override = role_override or NoRoleOverride()
        self._identity = identity
        self._sync_type_column = sync_type_column
        self._legacy_sync_type_column = legacy_sync_type_column
        self._settle_seconds = hard_delete_settle_seconds
        self._engine = engine

    @classmethod
    def from_settings(
        cls, settings: Settings, role_override: RoleOverridePolicy | None = None
    ) -> RelationalStore:
        """Build the store from configuration. Does not connect.

        Raises:
            sqlalchemy.exc.ArgumentError: Malformed ``database_url``.
            ModuleNotFoundError: The database driver is not installed.
        """
        engine = create_engine_from_settings(settings)
        session_factory = create_session_maker(engine)
        return cls(
            session_factory,
            role_override=role_override,
            identity=IdentityStore(session_factory) if settings.external_identity else None,
            sync_type_column=settings.sync_log_type_column,
            legacy_sync_type_column=settings.sync_log_legacy_type_column,
            hard_delete_settle_seconds=settings.hard_delete_settle_seconds,
            engine=engine,
        )

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _fetch_all(self, statement) -> list[dict[str, Any]]:
        async with self._session() as session:
            result = await session.execute(statement)
            return [_serialize(row) for row in result.mappings().all()]

    async def _fetch_one(self, statement) -> dict[str, Any] | None:
        async with self._session() as session:
            result = await session.execute(statement)
            row = result.mappings().first()
            return _serialize(row) if row is not None else None

    async def _execute_rowcount(self, statement) -> int:
        async with self._session() as session:
            result = await session.execute(statement)
            return result.rowcount or 0

    async def _read_all(self, what: str, statement) -> list[dict[str, Any]]:
        try:
            return await self._fetch_all(statement)
        except BACKEND_ERRORS:
            logger.exception("Error %s", what)
            return []

    async def _read_one(self, what: str, statement) -> dict[str, Any] | None:
        try:
            return await self._fetch_one(statement)
        except BACKEND_ERRORS:
            logger.exception("Error %s", what)
            return None

    # === Users ===

    async def create_user(self, user: Mapping[str, Any]) -> dict[str, Any]:
        values = dict(user)
        password = values.pop("password", None)
        if password:
            values["password_hash"] = hash_password(password)
        values = _known_columns(users, values)

        now = _now()
        values["id"] = _as_uuid(values.get("id")) or uuid.uuid4()
        values.setdefault("role", "user")
        values.setdefault("is_active", True)
        values["created_at"] = now
        values["updated_at"] = now

        try:
            created = await self._fetch_one(pg_insert(users).values(**values).returning(*users.c))
        except BACKEND_ERRORS as exc:
            logger.exception("Error creating user %s", values.get("email"))
            raise StorageWriteError(f"Could not create user {values.get('email')}") from exc
        return self._role_override.apply(created)

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        user = await self._read_one("getting user by email", select(users).where(users.c.email == email))
        return self._role_override.apply(user)

    async def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        uid = _as_uuid(user_id)
        if uid is None:
            return None
        user = await self._read_one("getting user by id", select(users).where(users.c.id == uid))
        return self._role_override.apply(user)

    async def get_all_users(self) -> list[dict[str, Any]]:
        rows = await self._read_all("listing users", select(users).order_by(users.c.created_at.desc()))
        return [self._role_override.apply(row) for row in rows]

    async def update_user(self, user_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        uid = _as_uuid(user_id)
        if uid is None:
            return None

        values = dict(changes)
        password = values.pop("password", None)
        if password:
            values["password_hash"] = hash_password(password)
        values = _known_columns(users, values)
        values.pop("id", None)
        values.pop("created_at", None)
        values["updated_at"] = _now()

        statement = update(users).where(users.c.id == uid).values(**values).returning(*users.c)
        try:
            updated = await self._fetch_one(statement)
        except BACKEND_ERRORS as exc:
            logger.exception("Error updating user %s", user_id)
            raise StorageWriteError(f"Could not update user {user_id}") from exc

        if updated is not None and "role" in values:
            await self._record_audit(None, user_id, "user.role_change", {"role": values["role"]})
        return self._role_override.apply(updated)

    async def soft_delete_user(self, user_id: str, actor_id: str | None = None) -> DeleteResult:
        uid = _as_uuid(user_id)
        if uid is None:
            return DeleteResult.not_found()

        now = _now()
        statement = (
            update(users)
            .where(users.c.id == uid)
            .values(is_active=False, deleted_at=now, updated_at=now)
            .returning(*users.c)
        )
        try:
            user = await self._fetch_one(statement)
        except BACKEND_ERRORS as exc:
            logger.exception("Error soft-deleting user %s", user_id)
            return DeleteResult(success=False, error=str(exc))

        if user is None:
            return DeleteResult.not_found()
        await self._record_audit(actor_id, user_id, "user.soft_delete", {"email": user.get("email")})
        return DeleteResult(success=True, user=self._role_override.apply(user))

    async def hard_delete_user(self, user_id: str, actor_id: str | None = None) -> DeleteResult:
        uid = _as_uuid(user_id)
        if uid is None:
            return DeleteResult.not_found()

        # Children first; each step stands alone and a failure only gets logged.
        patient_rows = await self._read_all(
            "listing patients for hard delete",
            select(patients.c.id).where(patients.c.user_id == uid),
        )
        patient_ids = [row["id"] for row in patient_rows]
        if patient_ids:
            await self._cascade_step(
                "patient profiles",
                user_id,
                delete(patient_profiles).where(patient_profiles.c.patient_id.in_(patient_ids)),
            )
        await self._cascade_step("patients", user_id, delete(patients).where(patients.c.user_id == uid))
        await self._cascade_step(
            "audit records",
            user_id,
            delete(audit_logs).where(or_(audit_logs.c.actor_id == user_id, audit_logs.c.target_id == user_id)),
        )
        await self._cascade_step("feedback", user_id, delete(feedback_table).where(feedback_table.c.user_id == uid))

        # Timing accommodation: lets triggers and replicas catch up before the
        # parent row disappears. Not a correctness guarantee.
        if self._settle_seconds > 0:
            await asyncio.sleep(self._settle_seconds)

        try:
            user = await self._fetch_one(delete(users).where(users.c.id == uid).returning(*users.c))
        except BACKEND_ERRORS as exc:
            logger.exception("Error deleting user row %s", user_id)
            raise StorageWriteError(f"Could not delete user {user_id}") from exc

        if self._identity is not None:
            try:
                await self._identity.delete_identity(user_id)
            except BACKEND_ERRORS as exc:
                logger.exception("Error deleting identity record for %s", user_id)
                raise StorageWriteError(f"Could not delete identity record for {user_id}") from exc

        if user is None:
            return DeleteResult.not_found()

        logger.info("Hard-deleted user %s (%d patients)", user_id, len(patient_ids))
        # The purge leaves exactly one audit row naming the user: the record of the purge itself.
        await self._record_audit(actor_id, user_id, "user.hard_delete", {"email": user.get("email")})
        return DeleteResult(success=True, user=self._role_override.apply(user))

    async def _cascade_step(self, what: str, user_id: str, statement) -> None:
        try:
            removed = await self._execute_rowcount(statement)
        except BACKEND_ERRORS:
            logger.exception("Hard delete of %s: failed to remove %s, continuing", user_id, what)
            return
        logger.debug("Hard delete of %s: removed %d %s", user_id, removed, what)

    async def _record_audit(
        self, actor_id: str | None, target_id: str, action: str, details: dict[str, Any]
    ) -> None:
        statement = pg_insert(audit_logs).values(
            id=uuid.uuid4(),
            actor_id=actor_id,
            target_id=target_id,
            action=action,
            details=details,
            created_at=_now(),
        )
        try:
            await self._execute_rowcount(statement)
        except BACKEND_ERRORS:
            logger.exception("Failed to record audit event %s for %s", action, target_id)

    # === Patients ===

    async def list_patients_by_user(self, user_id: str) -> list[dict[str, Any]]:
        uid = _as_uuid(user_id)
        if uid is None:
            return []
        statement = (
            select(patients.c.id, patients.c.user_id, patients.c.data, patients.c.created_at, patients.c.updated_at)
            .where(patients.c.user_id == uid)
            .order_by(patients.c.updated_at.desc())
        )
        return await self._read_all("listing patients", statement)

    async def upsert_patient(
        self, user_id: str, patient: Mapping[str, Any] | PatientDocument
    ) -> dict[str, Any]:
        patient_id, payload = normalize_patient(patient)
        owner = _as_uuid(user_id)
        if owner is None:
            raise StorageWriteError(f"Invalid user id {user_id!r}")

        now = _now()
        insert = pg_insert(patients).values(
            id=uuid.UUID(patient_id),
            user_id=owner,
            data=payload,
            created_at=now,
            updated_at=now,
        )
        statement = insert.on_conflict_do_update(
            index_elements=[patients.c.id],
            set_={"data": insert.excluded.data, "updated_at": insert.excluded.updated_at},
            where=patients.c.user_id == insert.excluded.user_id,
        ).returning(*patients.c)

        try:
            record = await self._fetch_one(statement)
        except BACKEND_ERRORS as exc:
            logger.exception("Error upserting patient %s", patient_id)
            raise StorageWriteError(f"Could not save patient {patient_id}") from exc

        if record is None:
            raise StorageWriteError(f"Patient {patient_id} belongs to another user")

        await self._sync_patient_profile(patient_id, payload)
        return record

    async def _sync_patient_profile(self, patient_id: str, payload: dict[str, Any]) -> None:
        """Best-effort projection refresh; never fails the patient write."""
        try:
            row = project_patient_profile(patient_id, payload)
            now = _now()
            insert = pg_insert(patient_profiles).values(id=uuid.uuid4(), created_at=now, updated_at=now, **row)
            statement = insert.on_conflict_do_update(
                index_elements=[patient_profiles.c.patient_id],
                set_={
                    "genetic_profile": insert.excluded.genetic_profile,
                    "current_medications": insert.excluded.current_medications,
                    "allergies": insert.excluded.allergies,
                    "comorbidities": insert.excluded.comorbidities,
                    "updated_at": insert.excluded.updated_at,
                },
            )
            await self._execute_rowcount(statement)
        except Exception:
            logger.exception(
                "Failed to sync %s projection into %s for %s",
                PATIENT_PROFILE_PROJECTION.name,
                PATIENT_PROFILE_PROJECTION.table_name,
                patient_id,
            )

    async def delete_patient(self, user_id: str, patient_id: str) -> bool:
        uid, pid = _as_uuid(user_id), _as_uuid(patient_id)
        if uid is None or pid is None:
            return False
        statement = delete(patients).where(patients.c.id == pid, patients.c.user_id == uid)
        try:
            return await self._execute_rowcount(statement) > 0
        except BACKEND_ERRORS:
            logger.exception("Error deleting patient %s", patient_id)
            return False

    # === Reference data helpers ===

    async def _upsert_reference(
        self,
        target: Table,
        row: dict[str, Any],
        conflict_columns: list[str],
        submitted: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Idempotent write keyed by natural key; echoes the input on failure."""
        now = _now()
        insert = pg_insert(target).values(**row, updated_at=now)
        updates = {
            key: insert.excluded[key] for key in row if key not in conflict_columns
        }
        updates["updated_at"] = insert.excluded.updated_at
        statement = insert.on_conflict_do_update(index_elements=conflict_columns, set_=updates).returning(*target.c)
        try:
            stored = await self._fetch_one(statement)
        except BACKEND_ERRORS:
            logger.exception("Error upserting %s %s", target.name, {k: row.get(k) for k in conflict_columns})
            return dict(submitted)
        return stored if stored is not None else dict(submitted)

    # === Drug reference ===

    async def search_drugs(self, term: str, limit: int = 50) -> list[dict[str, Any]]:
        term = term.strip()
        if not term:
            return []
        pattern = _like_pattern(term)
        statement = (
            select(drugs)
            .where(
                or_(
                    drugs.c.name.ilike(pattern),
                    drugs.c.generic_name.ilike(pattern),
                    func.array_to_string(drugs.c.brand_names, " ").ilike(pattern),
                )
            )
            .order_by(drugs.c.name)
            .limit(limit)
        )
        return await self._read_all("searching drugs", statement)

    async def get_drug_by_rxcui(self, rxcui: str) -> dict[str, Any] | None:
        return await self._read_one("getting drug by RXCUI", select(drugs).where(drugs.c.rxcui == rxcui))

    async def upsert_drug(self, drug: Mapping[str, Any]) -> dict[str, Any]:
        row = DrugUpsert.model_validate(drug).to_row()
        return await self._upsert_reference(drugs, row, ["rxcui"], drug)

    # === Interactions ===

    def _interaction_query(self):
        drug1 = drugs.alias("drug1")
        drug2 = drugs.alias("drug2")
        return select(
            drug_interactions,
            drug1.c.name.label("drug1_name"),
            drug1.c.generic_name.label("drug1_generic_name"),
            drug2.c.name.label("drug2_name"),
            drug2.c.generic_name.label("drug2_generic_name"),
        ).select_from(
            drug_interactions.outerjoin(drug1, drug1.c.rxcui == drug_interactions.c.drug1_rxcui).outerjoin(
                drug2, drug2.c.rxcui == drug_interactions.c.drug2_rxcui
            )
        )

    async def get_drug_interactions(self, rxcui: str) -> list[dict[str, Any]]:
        statement = self._interaction_query().where(
            or_(drug_interactions.c.drug1_rxcui == rxcui, drug_interactions.c.drug2_rxcui == rxcui)
        )
        return await self._read_all("getting drug interactions", statement)

    async def check_multiple_interactions(self, rxcuis: Sequence[str]) -> list[dict[str, Any]]:
        codes = sorted({code for code in rxcuis if code})
        if len(codes) < 2:
            return []
        statement = self._interaction_query().where(
            drug_interactions.c.drug1_rxcui.in_(codes),
            drug_interactions.c.drug2_rxcui.in_(codes),
        )
        return await self._read_all("checking multiple interactions", statement)

    async def insert_drug_interaction(self, interaction: Mapping[str, Any]) -> dict[str, Any]:
        row = DrugInteractionCreate.model_validate(interaction).to_row()
        return await self._upsert_reference(drug_interactions, row, ["drug1_rxcui", "drug2_rxcui"], interaction)

    # === Pharmacogenomics ===

    async def upsert_gene(self, gene: Mapping[str, Any]) -> dict[str, Any]:
        row = GeneUpsert.model_validate(gene).to_row()
        return await self._upsert_reference(genes, row, ["symbol"], gene)

    async def insert_gene_drug_interaction(self, interaction: Mapping[str, Any]) -> dict[str, Any]:
        row = GeneDrugInteractionCreate.model_validate(interaction).to_row()
        return await self._upsert_reference(
            gene_drug_interactions, row, ["gene_symbol", "drug_rxcui", "phenotype"], interaction
        )

    async def get_gene_drug_interactions(
        self, gene_symbol: str, drug_rxcui: str | None = None
    ) -> list[dict[str, Any]]:
        statement = (
            select(
                gene_drug_interactions,
                genes.c.name.label("gene_name"),
                drugs.c.name.label("drug_name"),
                drugs.c.generic_name.label("drug_generic_name"),
            )
            .select_from(
                gene_drug_interactions.outerjoin(genes, genes.c.symbol == gene_drug_interactions.c.gene_symbol).outerjoin(
                    drugs, drugs.c.rxcui == gene_drug_interactions.c.drug_rxcui
                )
            )
            .where(gene_drug_interactions.c.gene_symbol == gene_symbol.upper())
        )
        if drug_rxcui:
            statement = statement.where(gene_drug_interactions.c.drug_rxcui == drug_rxcui)
        return await self._read_all("getting gene-drug interactions", statement)

    async def upsert_cpic_guideline(self, guideline: Mapping[str, Any]) -> dict[str, Any]:
        row = CpicGuidelineUpsert.model_validate(guideline).to_row()
        return await self._upsert_reference(
            cpic_guidelines, row, ["gene_symbol", "drug_rxcui", "guideline_version"], guideline
        )

    async def get_cpic_guidelines(self) -> list[dict[str, Any]]:
        statement = (
            select(
                cpic_guidelines,
                genes.c.name.label("gene_name"),
                drugs.c.name.label("drug_name"),
                drugs.c.generic_name.label("drug_generic_name"),
            )
            .select_from(
                cpic_guidelines.outerjoin(genes, genes.c.symbol == cpic_guidelines.c.gene_symbol).outerjoin(
                    drugs, drugs.c.rxcui == cpic_guidelines.c.drug_rxcui
                )
            )
            .order_by(cpic_guidelines.c.gene_symbol, cpic_guidelines.c.drug_rxcui)
        )
        return await self._read_all("getting CPIC guidelines", statement)

    # === Protocols and trials ===

    async def get_oncology_protocols(self, cancer_type: str | None = None) -> list[dict[str, Any]]:
        statement = select(oncology_protocols).order_by(oncology_protocols.c.name)
        if cancer_type:
            statement = statement.where(func.lower(oncology_protocols.c.cancer_type) == cancer_type.lower())
        return await self._read_all("getting oncology protocols", statement)

    async def get_clinical_trials(
        self, condition: str, drugs: Sequence[str] | None = None
    ) -> list[dict[str, Any]]:
        statement = select(clinical_trials).where(clinical_trials.c.condition.ilike(_like_pattern(condition.strip())))
        if drugs:
            statement = statement.where(clinical_trials.c.intervention_drugs.overlap(list(drugs)))
        return await self._read_all("getting clinical trials", statement)

    # === Feedback ===

    async def insert_feedback(self, feedback: Mapping[str, Any]) -> dict[str, Any] | None:
        values = _known_columns(feedback_table, feedback)
        now = _now()
        values["id"] = _as_uuid(values.get("id")) or uuid.uuid4()
        values["user_id"] = _as_uuid(values.get("user_id"))
        values.setdefault("created_at", now)
        values["updated_at"] = now
        statement = pg_insert(feedback_table).values(**values).returning(*feedback_table.c)
        try:
            return await self._fetch_one(statement)
        except BACKEND_ERRORS:
            logger.exception("Error inserting feedback %s", values.get("ticket_number"))
            return None

    async def list_feedback(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        priority: str | None = None,
        type: str | None = None,
    ) -> dict[str, Any] | None:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_FEEDBACK_PAGE_SIZE)

        filters = []
        if status:
            filters.append(feedback_table.c.status == status)
        if priority:
            filters.append(feedback_table.c.priority == priority)
        if type:
            filters.append(feedback_table.c.type == type)

        count_query = select(func.count()).select_from(feedback_table).where(*filters)
        query = (
            select(feedback_table)
            .where(*filters)
            .order_by(feedback_table.c.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        try:
            async with self._session() as session:
                total = (await session.execute(count_query)).scalar() or 0
                result = await session.execute(query)
                items = [_serialize(row) for row in result.mappings().all()]
        except BACKEND_ERRORS:
            logger.exception("Error listing feedback")
            return None
        return {"items": items, "total": total, "page": page, "limit": limit}

    async def list_all_feedback(self) -> list[dict[str, Any]]:
        statement = select(feedback_table).order_by(feedback_table.c.created_at.desc())
        return await self._read_all("listing all feedback", statement)

    async def update_feedback_status(
        self,
        feedback_id: str,
        status: str,
        assignee: str | None = None,
        sprint_target: str | None = None,
    ) -> dict[str, Any] | None:
        fid = _as_uuid(feedback_id)
        if fid is None:
            return None
        values: dict[str, Any] = {"status": status, "updated_at": _now()}
        if assignee is not None:
            values["assignee"] = assignee
        if sprint_target is not None:
            values["sprint_target"] = sprint_target
        statement = (
            update(feedback_table).where(feedback_table.c.id == fid).values(**values).returning(*feedback_table.c)
        )
        try:
            return await self._fetch_one(statement)
        except BACKEND_ERRORS:
            logger.exception("Error updating feedback status for %s", feedback_id)
            return None

    # === Sync log ===

    async def _insert_sync_log(self, kind_column: str, values: dict[str, Any]) -> dict[str, Any] | None:
        sync_logs = _sync_logs(kind_column)
        row = {kind_column if key == "sync_type" else key: value for key, value in values.items()}
        entry = await self._fetch_one(sync_logs.insert().values(**row).returning(*sync_logs.c))
        if entry is not None and kind_column != "sync_type":
            entry["sync_type"] = entry.pop(kind_column)
        return entry

    async def log_sync_activity(self, entry: Mapping[str, Any]) -> dict[str, Any] | None:
        start = SyncLogStart.model_validate(entry)
        values = start.model_dump(mode="python", exclude_none=True)
        values["status"] = start.status.value
        values["id"] = uuid.uuid4()
        values.setdefault("started_at", _now())

        try:
            return await self._insert_sync_log(self._sync_type_column, values)
        except BACKEND_ERRORS as exc:
            if not is_undefined_column(exc, self._sync_type_column):
                logger.exception("Error logging sync activity for %s", start.sync_type)
                return None
            logger.warning(
                "sync_logs has no %s column; retrying with legacy column %s",
                self._sync_type_column,
                self._legacy_sync_type_column,
            )

        try:
            return await self._insert_sync_log(self._legacy_sync_type_column, values)
        except BACKEND_ERRORS:
            logger.exception("Error logging sync activity for %s with legacy column", start.sync_type)
            return None

    async def update_sync_status(self, log_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        lid = _as_uuid(log_id)
        if lid is None:
            return None
        change = SyncLogUpdate.model_validate(changes)
        values = change.model_dump(mode="python", exclude_none=True)
        values["status"] = change.status.value
        values.setdefault("completed_at", _now())

        sync_logs = _sync_logs(None)
        statement = update(sync_logs).where(sync_logs.c.id == lid).values(**values).returning(*sync_logs.c)
        try:
            return await self._fetch_one(statement)
        except BACKEND_ERRORS:
            logger.exception("Error updating sync status for %s", log_id)
            return None
