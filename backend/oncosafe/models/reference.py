"""Reference data: drugs, genes, interactions, guidelines, protocols, trials.

Every table here has a natural key that upserts conflict on. Surrogate
UUIDs exist for joins but are never used to decide insert-vs-update.
"""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from oncosafe.database import Base


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


def _created_at() -> Mapped[datetime]:
    return mapped_column(DateTime(timezone=True), server_default=text("now()"))


def _updated_at() -> Mapped[datetime]:
    return mapped_column(DateTime(timezone=True), server_default=text("now()"))


class Drug(Base):
    """Drug keyed by its RxNorm concept id (``rxcui``)."""

    __tablename__ = "drugs"

    id: Mapped[uuid.UUID] = _uuid_pk()
    rxcui: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    generic_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    brand_names: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    active_ingredients: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    drug_class: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    route: Mapped[str | None] = mapped_column(String(100), nullable=True)
    dosage_form: Mapped[str | None] = mapped_column(String(100), nullable=True)
    strength: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    def __repr__(self) -> str:
        return f"<Drug(rxcui={self.rxcui}, name={self.name})>"


class DrugInteraction(Base):
    """Interaction between two drugs; the pair is stored in sorted order."""

    __tablename__ = "drug_interactions"

    id: Mapped[uuid.UUID] = _uuid_pk()
    drug1_rxcui: Mapped[str] = mapped_column(String(20), ForeignKey("drugs.rxcui"), nullable=False, index=True)
    drug2_rxcui: Mapped[str] = mapped_column(String(20), ForeignKey("drugs.rxcui"), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    mechanism: Mapped[str | None] = mapped_column(Text, nullable=True)
    effect: Mapped[str | None] = mapped_column(Text, nullable=True)
    management: Mapped[str | None] = mapped_column(Text, nullable=True)
    evidence_level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    sources: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        UniqueConstraint("drug1_rxcui", "drug2_rxcui", name="unique_drug_pair"),
        CheckConstraint("drug1_rxcui <> drug2_rxcui", name="no_self_interaction"),
    )


class Gene(Base):
    """Pharmacogenomic gene keyed by HGNC symbol (e.g. CYP2D6)."""

    __tablename__ = "genes"

    id: Mapped[uuid.UUID] = _uuid_pk()
    symbol: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    chromosome: Mapped[str | None] = mapped_column(String(10), nullable=True)
    function: Mapped[str | None] = mapped_column(Text, nullable=True)
    aliases: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class GeneDrugInteraction(Base):
    """Phenotype-specific recommendation for a gene/drug pair."""

    __tablename__ = "gene_drug_interactions"

    id: Mapped[uuid.UUID] = _uuid_pk()
    gene_symbol: Mapped[str] = mapped_column(String(20), ForeignKey("genes.symbol"), nullable=False, index=True)
    drug_rxcui: Mapped[str] = mapped_column(String(20), ForeignKey("drugs.rxcui"), nullable=False, index=True)
    phenotype: Mapped[str] = mapped_column(String(50), nullable=False)
    recommendation: Mapped[str | None] = mapped_column(Text, nullable=True)
    evidence_level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    sources: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    dose_adjustment: Mapped[str | None] = mapped_column(String(100), nullable=True)
    monitoring_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        UniqueConstraint("gene_symbol", "drug_rxcui", "phenotype", name="unique_gene_drug_phenotype"),
    )


class CpicGuideline(Base):
    """Published CPIC guideline for a gene/drug pair."""

    __tablename__ = "cpic_guidelines"

    id: Mapped[uuid.UUID] = _uuid_pk()
    gene_symbol: Mapped[str] = mapped_column(String(20), ForeignKey("genes.symbol"), nullable=False)
    drug_rxcui: Mapped[str] = mapped_column(String(20), ForeignKey("drugs.rxcui"), nullable=False)
    guideline_version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0", server_default="1.0")
    recommendation_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phenotype_recommendations: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    publication_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    doi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pmid: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        UniqueConstraint("gene_symbol", "drug_rxcui", "guideline_version", name="unique_cpic_guideline"),
    )


class OncologyProtocol(Base):
    """Chemotherapy regimen (read-only reference data)."""

    __tablename__ = "oncology_protocols"

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    abbreviation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cancer_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    indication: Mapped[str | None] = mapped_column(Text, nullable=True)
    line_of_therapy: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cycle_length_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_cycles: Mapped[int | None] = mapped_column(Integer, nullable=True)
    drugs: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", server_default="active")
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class ClinicalTrial(Base):
    """ClinicalTrials.gov study keyed by NCT id (read-only reference data)."""

    __tablename__ = "clinical_trials"

    id: Mapped[uuid.UUID] = _uuid_pk()
    nct_id: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    condition: Mapped[str] = mapped_column(String(255), nullable=False)
    intervention_drugs: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    phase: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    biomarkers: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    sponsor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    locations: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("idx_clinical_trials_condition", "condition"),
    )
