"""Variant data models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VariantInput(BaseModel):
    """Input for variant annotation and explanation."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "gene": "SOD1",
                "variant": "L144F",
                "variant_id": "SOD1-L144F",
            }
        }
    )

    gene: str = Field(..., description="Gene symbol (e.g., SOD1)")
    variant: str = Field(..., description="Variant notation (e.g., L144F)")
    variant_id: str | None = Field(None, description="Stable identifier; defaults to GENE-variant")

    @field_validator('gene')
    @classmethod
    def normalize_gene(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Gene symbol must not be empty")
        return v

    @field_validator('variant')
    @classmethod
    def strip_variant(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Variant notation must not be empty")
        return v

    @property
    def identifier(self) -> str:
        """Identifier used for cache keys and curated lookups."""
        return self.variant_id or f"{self.gene}-{self.variant}"

    def to_hgvs(self) -> str:
        """Convert to HGVS-like notation for API queries."""
        return f"{self.gene}:{self.variant}"
