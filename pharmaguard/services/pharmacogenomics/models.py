"""
Internal data models for the pharmacogenomics service.
These models represent the intermediate structures produced while turning
per-gene allele calls into a genetic profile and a drug risk assessment.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from enum import Enum

from pharmaguard.services.vcf.parser import REFERENCE_ALLELE


class Phenotype(str, Enum):
    """Metabolizer phenotype derived from a combined activity score."""
    POOR = "Poor Metabolizer"
    INTERMEDIATE = "Intermediate Metabolizer"
    NORMAL = "Normal Metabolizer"
    RAPID = "Rapid Metabolizer"
    ULTRA_RAPID = "Ultra-Rapid Metabolizer"
    UNKNOWN = "Unknown"

    @property
    def code(self) -> str:
        return PHENOTYPE_CODES[self]


PHENOTYPE_CODES = {
    Phenotype.POOR: "PM",
    Phenotype.INTERMEDIATE: "IM",
    Phenotype.NORMAL: "NM",
    Phenotype.RAPID: "RM",
    Phenotype.ULTRA_RAPID: "URM",
    Phenotype.UNKNOWN: "Unknown",
}


class RiskLabel(str, Enum):
    SAFE = "Safe"
    ADJUST_DOSAGE = "Adjust Dosage"
    INEFFECTIVE = "Ineffective"
    TOXIC = "Toxic"
    UNKNOWN = "Unknown"


class Severity(str, Enum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class MechanismType(str, Enum):
    """How the governing gene's activity relates to the drug's safety."""
    PRODRUG = "prodrug"          # enzyme must activate the drug
    DETOX = "detox"              # enzyme must clear the drug
    TRANSPORTER = "transporter"  # gene controls hepatic uptake


class DrugRule(BaseModel):
    """Read-only drug configuration entry."""
    model_config = ConfigDict(frozen=True)

    drug: str = Field(..., description="Upper-case drug name")
    gene: str = Field(..., description="Governing pharmacogene")
    mechanism: MechanismType = Field(..., description="Mechanism type driving the risk rules")
    description: str = Field("", description="Human-readable drug-gene relationship")
    recommendations: Dict[RiskLabel, str] = Field(
        default_factory=dict,
        description="Clinical recommendation text per risk label"
    )


class GeneticProfile(BaseModel):
    """Diplotype, activity score and phenotype for one gene."""
    model_config = ConfigDict(frozen=True)

    gene: str = Field(..., description="Gene symbol (e.g., CYP2D6)")
    diplotype: str = Field(..., description="Two-slot diplotype (e.g., *4/*1)")
    activity_score: Optional[float] = Field(None, description="Combined activity score; None when unknown")
    phenotype: Phenotype = Field(..., description="Metabolizer phenotype")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence in the genotype evidence")
    detected_variants: List[str] = Field(default_factory=list, description="Reference IDs observed for the gene")
    allele_calls: int = Field(0, ge=0, description="Number of star alleles observed before padding")


class RiskAssessment(BaseModel):
    """Risk assessment result for a drug-gene interaction."""
    model_config = ConfigDict(frozen=True)

    risk_label: RiskLabel = Field(..., description="Risk classification label")
    severity: Severity = Field(..., description="Severity tier derived from the risk label")
    confidence_score: float = Field(..., ge=0.0, le=1.0, description="Confidence score (0-1)")


class DrugEvaluation(BaseModel):
    """Deterministic outcome for one requested drug, fixed before any narration."""
    model_config = ConfigDict(frozen=True)

    drug: str = Field(..., description="Upper-case drug name")
    supported: bool = Field(..., description="Whether the drug exists in the catalog")
    gene: str = Field(..., description="Governing gene, or UNKNOWN")
    mechanism: Optional[MechanismType] = Field(None, description="Mechanism type, if supported")
    profile: Optional[GeneticProfile] = Field(None, description="Genetic profile; None for unsupported drugs")
    risk: RiskAssessment = Field(..., description="Risk assessment")
    recommendation: str = Field(..., description="Resolved recommendation text")

    @property
    def diplotype(self) -> str:
        return self.profile.diplotype if self.profile else "Unknown"

    @property
    def phenotype(self) -> Phenotype:
        return self.profile.phenotype if self.profile else Phenotype.UNKNOWN

    @property
    def detected_variants(self) -> List[str]:
        return list(self.profile.detected_variants) if self.profile else []
