from pydantic import BaseModel, ConfigDict, Field
from typing import List


class ExplanationRequest(BaseModel):
    """
    Internal contract between the deterministic risk engine and the
    explanation generator. Everything here is already decided; the generator
    narrates it and must not alter the risk label.
    """
    model_config = ConfigDict(frozen=True)

    drug: str = Field(..., description="Upper-case drug name")
    gene: str = Field(..., description="The gene symbol (e.g., CYP2C19)")
    diplotype: str = Field(..., description="The detected diplotype (e.g., *1/*2)")
    phenotype: str = Field(..., description="The metabolizer status (e.g., Intermediate Metabolizer)")
    risk_label: str = Field(..., description="Risk label fixed by the risk engine")
    detected_variants: List[str] = Field(default_factory=list, description="Reference IDs observed for the gene")


class Explanation(BaseModel):
    """Narrative returned by the explanation generator."""
    summary: str = Field(..., min_length=1)
    mechanism: str = Field(..., min_length=1)
    clinical_impact: str = Field(..., min_length=1)
    llm_available: bool = Field(False, description="True when the text came from the LLM")
