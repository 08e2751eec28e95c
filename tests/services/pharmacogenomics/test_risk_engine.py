"""
Unit tests for the deterministic risk engine.
Tests the per-mechanism rule tables, severity mapping and unsupported inputs.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from pharmaguard.config import ConfidenceLevels
from pharmaguard.services.pharmacogenomics.drug_config import (
    DEFAULT_DRUG_CATALOG,
    build_drug_catalog,
)
from pharmaguard.services.pharmacogenomics.models import (
    MechanismType,
    Phenotype,
    RiskLabel,
    Severity,
)
from pharmaguard.services.pharmacogenomics.risk_engine import (
    DEFAULT_RECOMMENDATIONS,
    RISK_SEVERITY_TABLE,
    RiskEngine,
    classify_risk,
    create_risk_engine,
    resolve_recommendation,
    severity_for,
)
from pharmaguard.services.vcf.parser import GeneCallSet


@pytest.fixture
def confidence():
    return ConfidenceLevels()


@pytest.fixture
def engine(confidence):
    return RiskEngine(confidence=confidence)


def calls(gene, *alleles):
    return {gene: GeneCallSet(alleles=alleles)}


class TestRuleTables:

    @pytest.mark.parametrize("score,expected", [
        (0.0, RiskLabel.INEFFECTIVE),
        (0.5, RiskLabel.ADJUST_DOSAGE),
        (0.99, RiskLabel.ADJUST_DOSAGE),
        (1.0, RiskLabel.SAFE),
        (1.01, RiskLabel.TOXIC),
        (3.0, RiskLabel.TOXIC),
    ])
    def test_prodrug(self, score, expected, confidence):
        assert classify_risk(MechanismType.PRODRUG, score, 0.9, confidence).risk_label == expected

    @pytest.mark.parametrize("score,expected", [
        (0.0, RiskLabel.TOXIC),
        (0.5, RiskLabel.ADJUST_DOSAGE),
        (1.0, RiskLabel.SAFE),
        (2.0, RiskLabel.SAFE),
    ])
    def test_detox(self, score, expected, confidence):
        assert classify_risk(MechanismType.DETOX, score, 0.9, confidence).risk_label == expected

    @pytest.mark.parametrize("score,expected", [
        (0.0, RiskLabel.TOXIC),
        (0.5, RiskLabel.TOXIC),
        (1.0, RiskLabel.SAFE),
        (1.5, RiskLabel.SAFE),
    ])
    def test_transporter(self, score, expected, confidence):
        assert classify_risk(MechanismType.TRANSPORTER, score, 0.9, confidence).risk_label == expected

    @pytest.mark.parametrize("mechanism", list(MechanismType))
    def test_exact_one_is_safe_for_every_mechanism(self, mechanism, confidence):
        assert classify_risk(mechanism, 1.0, 0.9, confidence).risk_label == RiskLabel.SAFE

    def test_base_confidence_is_passed_through(self, confidence):
        assert classify_risk(MechanismType.DETOX, 0.5, 0.7, confidence).confidence_score == 0.7

    def test_unknown_activity(self, confidence):
        """
        GIVEN: No activity score could be computed
        WHEN: Risk is classified
        THEN: Unknown with the fixed low confidence and low severity
        """
        risk = classify_risk(MechanismType.PRODRUG, None, 0.9, confidence)

        assert risk.risk_label == RiskLabel.UNKNOWN
        assert risk.severity == Severity.LOW
        assert risk.confidence_score == confidence.unknown_activity

    def test_missing_mechanism(self, confidence):
        risk = classify_risk(None, 1.0, 0.9, confidence)

        assert risk.risk_label == RiskLabel.UNKNOWN
        assert risk.confidence_score == confidence.unsupported_drug


class TestSeverity:

    def test_table_covers_every_label(self):
        assert set(RISK_SEVERITY_TABLE) == set(RiskLabel)
        assert set(DEFAULT_RECOMMENDATIONS) == set(RiskLabel)

    @pytest.mark.parametrize("label,severity", [
        (RiskLabel.SAFE, Severity.NONE),
        (RiskLabel.ADJUST_DOSAGE, Severity.MODERATE),
        (RiskLabel.INEFFECTIVE, Severity.HIGH),
        (RiskLabel.TOXIC, Severity.CRITICAL),
        (RiskLabel.UNKNOWN, Severity.LOW),
    ])
    def test_severity_for(self, label, severity):
        assert severity_for(label) == severity


class TestRecommendations:

    def test_drug_specific_text(self):
        rule = DEFAULT_DRUG_CATALOG["CODEINE"]
        text = resolve_recommendation(RiskLabel.TOXIC, rule)
        assert text == rule.recommendations[RiskLabel.TOXIC]

    def test_generic_text_when_drug_has_none(self):
        rule = DEFAULT_DRUG_CATALOG["SIMVASTATIN"]
        assert RiskLabel.ADJUST_DOSAGE not in rule.recommendations
        text = resolve_recommendation(RiskLabel.ADJUST_DOSAGE, rule)
        assert text == DEFAULT_RECOMMENDATIONS[RiskLabel.ADJUST_DOSAGE]

    def test_generic_text_without_rule(self):
        assert resolve_recommendation(RiskLabel.SAFE, None) == DEFAULT_RECOMMENDATIONS[RiskLabel.SAFE]


class TestRiskEngine:

    @pytest.mark.parametrize("drug,gene,alleles,label,severity", [
        ("CODEINE", "CYP2D6", ("*4", "*4"), RiskLabel.INEFFECTIVE, Severity.HIGH),
        ("CODEINE", "CYP2D6", ("*1", "*4"), RiskLabel.SAFE, Severity.NONE),
        ("CODEINE", "CYP2D6", ("*1", "*1"), RiskLabel.TOXIC, Severity.CRITICAL),
        ("CODEINE", "CYP2D6", ("*1xN", "*1"), RiskLabel.TOXIC, Severity.CRITICAL),
        ("CODEINE", "CYP2D6", ("*10", "*4"), RiskLabel.ADJUST_DOSAGE, Severity.MODERATE),
        ("WARFARIN", "CYP2C9", ("*3", "*3"), RiskLabel.TOXIC, Severity.CRITICAL),
        ("WARFARIN", "CYP2C9", ("*2", "*3"), RiskLabel.ADJUST_DOSAGE, Severity.MODERATE),
        ("CLOPIDOGREL", "CYP2C19", ("*2", "*3"), RiskLabel.ADJUST_DOSAGE, Severity.MODERATE),
        ("SIMVASTATIN", "SLCO1B1", ("*5", "*5"), RiskLabel.TOXIC, Severity.CRITICAL),
        ("SIMVASTATIN", "SLCO1B1", ("*5", "*1"), RiskLabel.SAFE, Severity.NONE),
        ("AZATHIOPRINE", "TPMT", ("*3C", "*3C"), RiskLabel.SAFE, Severity.NONE),
        ("FLUOROURACIL", "DPYD", ("*2A", "*2A"), RiskLabel.TOXIC, Severity.CRITICAL),
    ])
    def test_evaluate(self, engine, drug, gene, alleles, label, severity):
        evaluation = engine.evaluate(drug, calls(gene, *alleles))

        assert evaluation.supported is True
        assert evaluation.gene == gene
        assert evaluation.risk.risk_label == label
        assert evaluation.risk.severity == severity
        assert evaluation.risk.confidence_score == 0.9

    def test_factory_builds_default_engine(self):
        engine = create_risk_engine(ConfidenceLevels(observed_diplotype=0.95))

        evaluation = engine.evaluate("CODEINE", calls("CYP2D6", "*1", "*4"))

        assert engine.catalog is DEFAULT_DRUG_CATALOG
        assert evaluation.risk.risk_label == RiskLabel.SAFE
        assert evaluation.risk.confidence_score == 0.95

    def test_drug_name_is_normalized(self, engine):
        evaluation = engine.evaluate("  codeine ", calls("CYP2D6", "*4", "*4"))
        assert evaluation.drug == "CODEINE"

    def test_other_genes_are_ignored(self, engine):
        gene_calls = {
            "CYP2C19": GeneCallSet(alleles=("*2", "*2")),
            "CYP2D6": GeneCallSet(alleles=("*1", "*4")),
        }
        assert engine.evaluate("CODEINE", gene_calls).risk.risk_label == RiskLabel.SAFE

    def test_single_allele_lowers_confidence(self, engine, confidence):
        evaluation = engine.evaluate("CODEINE", calls("CYP2D6", "*4"))

        assert evaluation.diplotype == "*4/*1"
        assert evaluation.risk.risk_label == RiskLabel.SAFE
        assert evaluation.risk.confidence_score == confidence.single_allele_call

    def test_gene_without_calls_is_unknown(self, engine, confidence):
        """
        GIVEN: The VCF holds no star allele for the drug's gene
        WHEN: The drug is evaluated
        THEN: Unknown risk with the unknown-activity confidence
        """
        evaluation = engine.evaluate("WARFARIN", {})

        assert evaluation.supported is True
        assert evaluation.phenotype == Phenotype.UNKNOWN
        assert evaluation.risk.risk_label == RiskLabel.UNKNOWN
        assert evaluation.risk.severity == Severity.LOW
        assert evaluation.risk.confidence_score == confidence.unknown_activity
        assert evaluation.recommendation == DEFAULT_DRUG_CATALOG["WARFARIN"].recommendations[RiskLabel.UNKNOWN]

    def test_unsupported_drug(self, engine, confidence):
        evaluation = engine.evaluate("ASPIRIN", calls("CYP2D6", "*4", "*4"))

        assert evaluation.supported is False
        assert evaluation.gene == "UNKNOWN"
        assert evaluation.mechanism is None
        assert evaluation.profile is None
        assert evaluation.diplotype == "Unknown"
        assert evaluation.detected_variants == []
        assert evaluation.risk.risk_label == RiskLabel.UNKNOWN
        assert evaluation.risk.severity == Severity.LOW
        assert evaluation.risk.confidence_score == confidence.unsupported_drug
        assert evaluation.recommendation == DEFAULT_RECOMMENDATIONS[RiskLabel.UNKNOWN]

    def test_injected_catalog(self, confidence):
        catalog = build_drug_catalog({
            "testdrug": {"gene": "tpmt", "mechanism": "transporter"},
        })
        engine = RiskEngine(catalog=catalog, confidence=confidence)

        evaluation = engine.evaluate("TestDrug", calls("TPMT", "*3C", "*1"))

        assert evaluation.gene == "TPMT"
        assert evaluation.risk.risk_label == RiskLabel.SAFE
        assert evaluation.recommendation == DEFAULT_RECOMMENDATIONS[RiskLabel.SAFE]
        assert engine.evaluate("CODEINE", {}).supported is False

    def test_evaluate_many(self, engine):
        results = engine.evaluate_many(["codeine", "warfarin"], calls("CYP2D6", "*4", "*4"))

        assert set(results) == {"CODEINE", "WARFARIN"}
        assert results["CODEINE"].risk.risk_label == RiskLabel.INEFFECTIVE
        assert results["WARFARIN"].risk.risk_label == RiskLabel.UNKNOWN

    def test_concurrent_evaluation_matches_sequential(self, engine):
        """Evaluations share no mutable state."""
        gene_calls = {
            "CYP2D6": GeneCallSet(alleles=("*4", "*10")),
            "CYP2C9": GeneCallSet(alleles=("*2", "*2")),
            "SLCO1B1": GeneCallSet(alleles=("*5",)),
        }
        drugs = list(DEFAULT_DRUG_CATALOG) * 20 + ["ASPIRIN"] * 5

        sequential = [engine.evaluate(d, gene_calls) for d in drugs]
        with ThreadPoolExecutor(max_workers=8) as pool:
            concurrent = list(pool.map(lambda d: engine.evaluate(d, gene_calls), drugs))

        assert concurrent == sequential
