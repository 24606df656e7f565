"""Normalisation schemas for reference-data writes.

Sync jobs and older clients send camelCase field names; these models accept
both spellings and emit the column names. Natural keys are trimmed (and
interaction pairs sorted) so repeated writes land on the same row.
"""

from datetime import date
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class _ReferenceModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DrugUpsert(_ReferenceModel):
    rxcui: str = Field(min_length=1)
    name: str = Field(min_length=1)
    generic_name: str | None = Field(default=None, validation_alias=_alias("generic_name", "genericName"))
    brand_names: list[str] | None = Field(default=None, validation_alias=_alias("brand_names", "brandNames"))
    active_ingredients: list[str] | None = Field(
        default=None, validation_alias=_alias("active_ingredients", "activeIngredients")
    )
    drug_class: str | None = Field(default=None, validation_alias=_alias("drug_class", "drugClass"))
    route: str | None = None
    dosage_form: str | None = Field(default=None, validation_alias=_alias("dosage_form", "dosageForm"))
    strength: str | None = None


class DrugInteractionCreate(_ReferenceModel):
    drug1_rxcui: str = Field(min_length=1, validation_alias=_alias("drug1_rxcui", "drug1Rxcui"))
    drug2_rxcui: str = Field(min_length=1, validation_alias=_alias("drug2_rxcui", "drug2Rxcui"))
    severity: str
    mechanism: str | None = None
    effect: str | None = None
    management: str | None = None
    evidence_level: str | None = Field(default=None, validation_alias=_alias("evidence_level", "evidenceLevel"))
    sources: list[str] | None = None

    @model_validator(mode="after")
    def _sorted_pair(self) -> "DrugInteractionCreate":
        if self.drug1_rxcui == self.drug2_rxcui:
            raise ValueError("a drug cannot interact with itself")
        if self.drug2_rxcui < self.drug1_rxcui:
            self.drug1_rxcui, self.drug2_rxcui = self.drug2_rxcui, self.drug1_rxcui
        return self


class GeneUpsert(_ReferenceModel):
    symbol: str = Field(min_length=1)
    name: str | None = None
    chromosome: str | None = None
    function: str | None = None
    aliases: list[str] | None = None

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.upper()


class GeneDrugInteractionCreate(_ReferenceModel):
    gene_symbol: str = Field(min_length=1, validation_alias=_alias("gene_symbol", "geneSymbol", "gene"))
    drug_rxcui: str = Field(min_length=1, validation_alias=_alias("drug_rxcui", "drugRxcui", "rxcui"))
    phenotype: str = Field(min_length=1)
    recommendation: str | None = None
    evidence_level: str | None = Field(default=None, validation_alias=_alias("evidence_level", "evidenceLevel"))
    sources: list[str] | None = None
    dose_adjustment: str | None = Field(default=None, validation_alias=_alias("dose_adjustment", "doseAdjustment"))
    monitoring_required: bool | None = Field(
        default=None, validation_alias=_alias("monitoring_required", "monitoringRequired")
    )

    @field_validator("gene_symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.upper()


class CpicGuidelineUpsert(_ReferenceModel):
    gene_symbol: str = Field(min_length=1, validation_alias=_alias("gene_symbol", "geneSymbol", "gene"))
    drug_rxcui: str = Field(min_length=1, validation_alias=_alias("drug_rxcui", "drugRxcui", "rxcui"))
    guideline_version: str = Field(default="1.0", validation_alias=_alias("guideline_version", "guidelineVersion", "version"))
    recommendation_level: str | None = Field(
        default=None, validation_alias=_alias("recommendation_level", "recommendationLevel")
    )
    phenotype_recommendations: dict[str, Any] | None = Field(
        default=None, validation_alias=_alias("phenotype_recommendations", "phenotypeRecommendations")
    )
    publication_date: date | None = Field(default=None, validation_alias=_alias("publication_date", "publicationDate"))
    doi: str | None = None
    pmid: str | None = None

    @field_validator("gene_symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.upper()
