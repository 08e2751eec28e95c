"""
Risk Engine - Deterministic drug risk classification from activity scores.

Risk is never computed by the LLM. For each drug the engine builds the
governing gene's profile and applies the rule table of the drug's mechanism
type:

    prodrug      0 -> Ineffective, <1 -> Adjust Dosage, 1 -> Safe, >1 -> Toxic
    detox        0 -> Toxic, (0, 1) -> Adjust Dosage, >=1 -> Safe
    transporter  <1 -> Toxic, >=1 -> Safe

Boundaries are exact: an activity of exactly 1.0 is Safe for every type.
"""

from typing import Dict, Mapping, Optional
import logging

from .activity_table import AlleleActivityTable, get_activity_table
from .drug_config import DEFAULT_DRUG_CATALOG, DrugCatalog
from .models import (
    DrugEvaluation,
    DrugRule,
    MechanismType,
    RiskAssessment,
    RiskLabel,
    Severity,
)
from .phenotype_mapper import PhenotypeMapper
from pharmaguard.config import ConfidenceLevels, get_confidence_levels
from pharmaguard.services.vcf.parser import GeneCallSet

logger = logging.getLogger(__name__)

UNKNOWN_GENE = "UNKNOWN"


# ---------------------------------------------------------------------------
# Deterministic severity table
# ---------------------------------------------------------------------------

# Canonical risk label -> severity mapping. Exhaustive over RiskLabel.
RISK_SEVERITY_TABLE: Mapping[RiskLabel, Severity] = {
    RiskLabel.SAFE:          Severity.NONE,
    RiskLabel.ADJUST_DOSAGE: Severity.MODERATE,
    RiskLabel.INEFFECTIVE:   Severity.HIGH,
    RiskLabel.TOXIC:         Severity.CRITICAL,
    RiskLabel.UNKNOWN:       Severity.LOW,
}

# Gene-agnostic fallbacks when a drug has no text for a label
DEFAULT_RECOMMENDATIONS: Mapping[RiskLabel, str] = {
    RiskLabel.SAFE: "Standard dosing acceptable.",
    RiskLabel.ADJUST_DOSAGE: "Consider dose adjustment based on CPIC guidelines.",
    RiskLabel.INEFFECTIVE: "Consider alternative therapy; this drug is unlikely to be effective.",
    RiskLabel.TOXIC: "Avoid this drug and consider a safer alternative.",
    RiskLabel.UNKNOWN: "No pharmacogenomic guidance available. Follow standard clinical protocols.",
}


def severity_for(label: RiskLabel) -> Severity:
    return RISK_SEVERITY_TABLE[label]


def _prodrug_risk(activity_score: float) -> RiskLabel:
    if activity_score == 0:
        return RiskLabel.INEFFECTIVE
    if activity_score > 1:
        return RiskLabel.TOXIC
    if activity_score < 1:
        return RiskLabel.ADJUST_DOSAGE
    return RiskLabel.SAFE


def _detox_risk(activity_score: float) -> RiskLabel:
    if activity_score == 0:
        return RiskLabel.TOXIC
    if activity_score < 1:
        return RiskLabel.ADJUST_DOSAGE
    return RiskLabel.SAFE


def _transporter_risk(activity_score: float) -> RiskLabel:
    if activity_score < 1:
        return RiskLabel.TOXIC
    return RiskLabel.SAFE


def classify_risk(
    mechanism: Optional[MechanismType],
    activity_score: Optional[float],
    base_confidence: float,
    confidence: Optional[ConfidenceLevels] = None,
) -> RiskAssessment:
    """
    Classify risk for one drug mechanism and activity score.

    The returned confidence is `base_confidence`, except when the activity
    score is unknown or the mechanism type is missing/unrecognised; those
    cases carry fixed low confidences.
    """
    confidence = confidence or get_confidence_levels()

    if activity_score is None:
        return RiskAssessment(
            risk_label=RiskLabel.UNKNOWN,
            severity=severity_for(RiskLabel.UNKNOWN),
            confidence_score=confidence.unknown_activity,
        )

    if mechanism == MechanismType.PRODRUG:
        label = _prodrug_risk(activity_score)
    elif mechanism == MechanismType.DETOX:
        label = _detox_risk(activity_score)
    elif mechanism == MechanismType.TRANSPORTER:
        label = _transporter_risk(activity_score)
    else:
        label = RiskLabel.UNKNOWN
        base_confidence = confidence.unsupported_drug

    return RiskAssessment(
        risk_label=label,
        severity=severity_for(label),
        confidence_score=base_confidence,
    )


def resolve_recommendation(label: RiskLabel, rule: Optional[DrugRule]) -> str:
    """Drug-specific text for the label, else the generic template."""
    if rule is not None and rule.recommendations.get(label):
        return rule.recommendations[label]
    return DEFAULT_RECOMMENDATIONS[label]


class RiskEngine:
    """
    Evaluates pharmacogenomic risk for requested drugs.

    The drug catalog, activity table and confidence constants are injected so
    callers and tests can substitute their own; the engine holds no other
    state and `evaluate` is safe to call concurrently.
    """

    def __init__(
        self,
        catalog: Optional[DrugCatalog] = None,
        table: Optional[AlleleActivityTable] = None,
        confidence: Optional[ConfidenceLevels] = None,
    ):
        self.catalog = DEFAULT_DRUG_CATALOG if catalog is None else catalog
        self.confidence = confidence or get_confidence_levels()
        self.mapper = PhenotypeMapper(table or get_activity_table(), self.confidence)

    def evaluate(self, drug: str, gene_calls: Mapping[str, GeneCallSet]) -> DrugEvaluation:
        """Profile + risk + recommendation for one drug."""
        drug_upper = drug.strip().upper()
        rule = self.catalog.get(drug_upper)

        if rule is None:
            return self._create_unsupported_drug_evaluation(drug_upper)

        profile = self.mapper.process_gene(rule.gene, gene_calls.get(rule.gene))
        risk = classify_risk(
            rule.mechanism, profile.activity_score, profile.confidence, self.confidence
        )

        logger.debug(
            "drug=%s gene=%s diplotype=%s activity=%s risk=%s",
            drug_upper, rule.gene, profile.diplotype, profile.activity_score, risk.risk_label.value,
        )

        return DrugEvaluation(
            drug=drug_upper,
            supported=True,
            gene=rule.gene,
            mechanism=rule.mechanism,
            profile=profile,
            risk=risk,
            recommendation=resolve_recommendation(risk.risk_label, rule),
        )

    def evaluate_many(
        self, drugs, gene_calls: Mapping[str, GeneCallSet]
    ) -> Dict[str, DrugEvaluation]:
        """Evaluate several drugs independently."""
        return {d.strip().upper(): self.evaluate(d, gene_calls) for d in drugs}

    def _create_unsupported_drug_evaluation(self, drug: str) -> DrugEvaluation:
        """Drugs outside the catalog never reach profile building or risk rules."""
        return DrugEvaluation(
            drug=drug,
            supported=False,
            gene=UNKNOWN_GENE,
            mechanism=None,
            profile=None,
            risk=RiskAssessment(
                risk_label=RiskLabel.UNKNOWN,
                severity=severity_for(RiskLabel.UNKNOWN),
                confidence_score=self.confidence.unsupported_drug,
            ),
            recommendation=DEFAULT_RECOMMENDATIONS[RiskLabel.UNKNOWN],
        )


def create_risk_engine(confidence: Optional[ConfidenceLevels] = None) -> RiskEngine:
    """Factory function to create a RiskEngine with the default tables."""
    return RiskEngine(confidence=confidence)
