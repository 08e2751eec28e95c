"""Shared fixtures: small VCF builders and an isolated pipeline."""

import pytest

from pharmaguard.config import ConfidenceLevels, LLMSettings
from pharmaguard.services.llm.explanation_service import ExplanationService
from pharmaguard.services.llm.groq_client import GroqClient
from pharmaguard.services.persistence.analysis_store import NullAnalysisStore
from pharmaguard.services.pharmacogenomics.risk_engine import RiskEngine
from pharmaguard.services.pipeline.analysis_pipeline import AnalysisPipeline

VCF_HEADER = (
    "##fileformat=VCFv4.2\n"
    "##source=PharmaGuardTest\n"
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE\n"
)


def _vcf_row(gene, star=None, rsid="rs0", gt="0/1", chrom="chr22", pos=100):
    info = f"GENE={gene}"
    if star is not None:
        info += f";STAR={star}"
    return "\t".join([chrom, str(pos), rsid, "C", "T", "50", "PASS", info, "GT:DP", f"{gt}:30"])


def _make_vcf(*rows):
    return VCF_HEADER + "".join(row + "\n" for row in rows)


@pytest.fixture
def vcf_header():
    return VCF_HEADER


@pytest.fixture
def vcf_row():
    """Builds one tab-separated data line annotated with GENE/STAR."""
    return _vcf_row


@pytest.fixture
def make_vcf():
    """Joins data lines under a minimal VCF header."""
    return _make_vcf


@pytest.fixture
def confidence():
    return ConfidenceLevels()


@pytest.fixture
def offline_explainer():
    """Explanation service with no credentials: always templated."""
    return ExplanationService(client=GroqClient(settings=LLMSettings(api_key="")))


@pytest.fixture
def pipeline(offline_explainer, confidence):
    return AnalysisPipeline(
        engine=RiskEngine(confidence=confidence),
        explainer=offline_explainer,
        store=NullAnalysisStore(),
    )
