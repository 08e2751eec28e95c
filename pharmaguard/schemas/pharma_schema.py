from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime


class RiskAssessment(BaseModel):
    risk_label: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    severity: str


class DetectedVariant(BaseModel):
    rsid: str


class PharmacogenomicProfile(BaseModel):
    primary_gene: str
    diplotype: str
    phenotype: str
    activity_score: Optional[float] = None
    detected_variants: List[DetectedVariant] = Field(default_factory=list)


class LLMExplanation(BaseModel):
    summary: str
    mechanism: Optional[str] = None
    clinical_impact: Optional[str] = None
    llm_available: bool = False


class ClinicalRecommendation(BaseModel):
    text: str
    source: str = "CPIC Guidelines"


class QualityMetrics(BaseModel):
    vcf_parsing_success: bool = True
    extra_metadata: Optional[Dict[str, Any]] = None


class PharmaGuardResponse(BaseModel):
    patient_id: str
    drug: str
    timestamp: str
    risk_assessment: RiskAssessment
    pharmacogenomic_profile: PharmacogenomicProfile
    clinical_recommendation: ClinicalRecommendation
    llm_generated_explanation: LLMExplanation
    quality_metrics: QualityMetrics

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v):
        try:
            datetime.fromisoformat(v.replace('Z', '+00:00'))
            return v
        except ValueError:
            raise ValueError("Timestamp must be a valid ISO 8601 string")


class SupportedDrug(BaseModel):
    drug: str
    gene: str
    mechanism: str
    description: str = ""
