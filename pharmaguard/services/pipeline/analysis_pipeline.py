"""
Analysis Pipeline - Orchestrates VCF -> Profile -> Risk -> Explanation -> Response.

Risk label, severity and confidence are fixed by the deterministic engine
before the explanation generator is called; the explanation only narrates
them. Drugs in one request are analysed concurrently and independently.
Persistence runs in the background and never fails a response.
"""
import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Union

from pharmaguard.config import PharmaGuardConfig, get_config
from pharmaguard.schemas.internal_contracts import Explanation, ExplanationRequest
from pharmaguard.schemas.pharma_schema import (
    ClinicalRecommendation,
    DetectedVariant,
    LLMExplanation,
    PharmaGuardResponse,
    PharmacogenomicProfile,
    QualityMetrics,
    RiskAssessment,
)
from pharmaguard.services.llm.explanation_service import (
    ExplanationService,
    build_fallback_explanation,
    build_unsupported_drug_explanation,
)
from pharmaguard.services.persistence.analysis_store import (
    AnalysisStore,
    JsonlAnalysisStore,
    NullAnalysisStore,
)
from pharmaguard.services.pharmacogenomics.models import DrugEvaluation
from pharmaguard.services.pharmacogenomics.risk_engine import RiskEngine, create_risk_engine
from pharmaguard.services.vcf.parser import VcfParseError, VcfParseResult, parse_vcf

logger = logging.getLogger(__name__)


def normalize_drug_names(drugs: Union[str, Iterable[str]]) -> List[str]:
    """
    "codeine, Warfarin" or ["codeine", "warfarin"] -> ["CODEINE", "WARFARIN"].
    Blank entries are dropped and duplicates removed, keeping request order.
    """
    if isinstance(drugs, str):
        drugs = drugs.split(",")
    seen = {}
    for d in drugs:
        name = (d or "").strip().upper()
        if name:
            seen.setdefault(name, None)
    return list(seen)


def generate_patient_id() -> str:
    return f"PATIENT_{uuid.uuid4().hex[:8].upper()}"


class AnalysisPipeline:
    """
    Runs the full analysis for one uploaded file and a list of drugs.

    Collaborators are injected: the risk engine (with its drug catalog and
    activity table), the explanation service and the result store.
    """

    def __init__(
        self,
        engine: Optional[RiskEngine] = None,
        explainer: Optional[ExplanationService] = None,
        store: Optional[AnalysisStore] = None,
        config: Optional[PharmaGuardConfig] = None,
    ):
        self.config = config or get_config()
        self.engine = engine or create_risk_engine(self.config.confidence)
        self.explainer = explainer or ExplanationService()
        if store is None:
            store = (
                JsonlAnalysisStore(self.config.storage.results_path)
                if self.config.storage.enabled
                else NullAnalysisStore()
            )
        self.store = store
        self._background_tasks: Set[asyncio.Task] = set()

    async def run(
        self,
        content: Union[str, bytes],
        drugs: Union[str, Iterable[str]],
        patient_id: Optional[str] = None,
    ) -> List[PharmaGuardResponse]:
        """
        Parse the file and analyse every requested drug.

        Raises VcfParseError when the file cannot be parsed; every other
        condition yields a per-drug result.
        """
        drug_names = normalize_drug_names(drugs)
        if not drug_names:
            raise ValueError("At least one drug name is required")

        patient_id = patient_id or generate_patient_id()
        start_time = time.time()
        logger.info("Starting analysis for patient %s, drugs %s", patient_id, ",".join(drug_names))

        parsed = parse_vcf(content)
        if not parsed.success:
            raise VcfParseError(f"Failed to parse the VCF file: {parsed.error}")

        results = await asyncio.gather(
            *(self.analyze_drug(drug, parsed, patient_id) for drug in drug_names)
        )

        logger.info("Pipeline execution time: %.2fs", time.time() - start_time)
        return list(results)

    async def analyze_drug(
        self, drug: str, parsed: VcfParseResult, patient_id: str
    ) -> PharmaGuardResponse:
        evaluation = self.engine.evaluate(drug, parsed.gene_calls)

        if evaluation.supported:
            explanation = await self._explain(evaluation)
        else:
            logger.info("Drug %s is not supported; returning Unknown result", evaluation.drug)
            explanation = build_unsupported_drug_explanation(evaluation.drug)

        response = self._assemble_response(evaluation, explanation, parsed, patient_id)
        self._schedule_persistence(response, evaluation.gene, evaluation.risk.confidence_score)
        return response

    async def _explain(self, evaluation: DrugEvaluation) -> Explanation:
        request = ExplanationRequest(
            drug=evaluation.drug,
            gene=evaluation.gene,
            diplotype=evaluation.diplotype,
            phenotype=evaluation.phenotype.value,
            risk_label=evaluation.risk.risk_label.value,
            detected_variants=evaluation.detected_variants,
        )
        try:
            return await self.explainer.explain(request)
        except Exception:
            # One drug's explanation failure must not fail the others
            logger.exception("Explanation service raised for %s; using templated explanation", evaluation.drug)
            return build_fallback_explanation(request)

    def _assemble_response(
        self,
        evaluation: DrugEvaluation,
        explanation: Explanation,
        parsed: VcfParseResult,
        patient_id: str,
    ) -> PharmaGuardResponse:
        profile = evaluation.profile
        return PharmaGuardResponse(
            patient_id=patient_id,
            drug=evaluation.drug,
            timestamp=datetime.now(timezone.utc).isoformat(),
            risk_assessment=RiskAssessment(
                risk_label=evaluation.risk.risk_label.value,
                confidence_score=evaluation.risk.confidence_score,
                severity=evaluation.risk.severity.value,
            ),
            pharmacogenomic_profile=PharmacogenomicProfile(
                primary_gene=evaluation.gene,
                diplotype=evaluation.diplotype,
                phenotype=evaluation.phenotype.value,
                activity_score=profile.activity_score if profile else None,
                detected_variants=[DetectedVariant(rsid=r) for r in evaluation.detected_variants],
            ),
            clinical_recommendation=ClinicalRecommendation(text=evaluation.recommendation),
            llm_generated_explanation=LLMExplanation(
                summary=explanation.summary,
                mechanism=explanation.mechanism,
                clinical_impact=explanation.clinical_impact,
                llm_available=explanation.llm_available,
            ),
            quality_metrics=QualityMetrics(
                vcf_parsing_success=parsed.success,
                extra_metadata={
                    "variant_count": len(parsed.records),
                    "genes_detected": sorted(parsed.gene_calls),
                    "allele_calls": profile.allele_calls if profile else 0,
                    "mechanism": evaluation.mechanism.value if evaluation.mechanism else None,
                },
            ),
        )

    def _schedule_persistence(self, response: PharmaGuardResponse, gene: str, confidence: float):
        task = asyncio.create_task(self._persist(response, gene, confidence))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _persist(self, response: PharmaGuardResponse, gene: str, confidence: float):
        try:
            await self.store.save(response, gene, confidence)
        except Exception as e:
            logger.error("Failed to save analysis for %s (%s): %s", response.drug, response.patient_id, e)

    async def wait_for_background_tasks(self):
        """Wait for scheduled persistence to finish (shutdown, tests)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))


_pipeline: Optional[AnalysisPipeline] = None


def get_analysis_pipeline() -> AnalysisPipeline:
    """Process-wide pipeline built from the global configuration."""
    global _pipeline
    if _pipeline is None:
        _pipeline = AnalysisPipeline()
    return _pipeline

