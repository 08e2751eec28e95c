import asyncio
import json
import logging
import re
import time
from collections import OrderedDict
from typing import Optional, Tuple

import httpx
from pydantic import ValidationError

from pharmaguard.schemas.internal_contracts import Explanation, ExplanationRequest
from pharmaguard.services.llm.groq_client import GroqClient, LLMUnavailableError
from pharmaguard.services.llm.prompt_builder import build_prompt

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

# Successful explanations kept per service; oldest evicted first
MAX_CACHED_EXPLANATIONS = 256

# Failures that end in the templated explanation
RECOVERABLE_ERRORS = (
    asyncio.TimeoutError,
    httpx.HTTPError,
    LLMUnavailableError,
    ValidationError,
    ValueError,
    KeyError,
    IndexError,
    TypeError,
)


def _title(drug: str) -> str:
    return drug[:1].upper() + drug[1:].lower()


def build_fallback_explanation(request: ExplanationRequest) -> Explanation:
    """
    Rule-based explanation used when the LLM is unavailable or fails.
    Needs no network access and is keyed only by the fixed risk label.
    """
    drug = _title(request.drug)
    gene, diplotype, phenotype = request.gene, request.diplotype, request.phenotype

    summaries = {
        "Safe": (
            f"This patient's {gene} diplotype ({diplotype}) confers a {phenotype} phenotype, "
            f"indicating standard {drug} metabolism. No pharmacogenomic dose adjustment is required."
        ),
        "Adjust Dosage": (
            f"The {gene} {diplotype} diplotype results in a {phenotype} phenotype with reduced enzymatic "
            f"activity. {drug} dosing may need adjustment to prevent suboptimal plasma levels."
        ),
        "Toxic": (
            f"The patient's {gene} {diplotype} diplotype yields a {phenotype} phenotype that substantially "
            f"impairs {drug} clearance or over-produces its active metabolite, posing a high toxicity risk."
        ),
        "Ineffective": (
            f"With {gene} diplotype {diplotype} and a {phenotype} phenotype, the patient lacks sufficient "
            f"enzymatic capacity to activate {drug} (a prodrug). The drug is unlikely to provide therapeutic benefit."
        ),
        "Unknown": (
            f"Pharmacogenomic guidance could not be determined for {drug}. "
            f"Standard clinical protocols should be followed."
        ),
    }

    mechanisms = {
        "Safe": (
            f"{gene} encodes a key drug-handling protein. A normal diplotype preserves full activity, "
            f"so {drug} is processed at expected rates without accumulation or under-conversion."
        ),
        "Adjust Dosage": (
            f"Reduced-function alleles in {gene} lower enzyme expression or efficiency. This impairs "
            f"normal {drug} processing and alters plasma levels compared to normal metabolizers."
        ),
        "Toxic": (
            f"Variant alleles in {gene} critically change its activity. Depending on the drug, this leads "
            f"either to accumulation of the parent drug or to excessive production of an active metabolite."
        ),
        "Ineffective": (
            f"{gene} is required to convert {drug} from its prodrug form. Loss-of-function variants "
            f"prevent this step, so the active form is never adequately produced."
        ),
        "Unknown": (
            f"No {gene} star alleles were detected in the uploaded file, or the interaction for {drug} "
            f"is not characterized, so enzyme activity could not be estimated."
        ),
    }

    impacts = {
        "Safe": (
            "Standard dosing per the FDA label is appropriate. No CPIC-based dose modification "
            "is indicated for this phenotype."
        ),
        "Adjust Dosage": (
            "CPIC guidelines recommend a dose reduction or extended dosing interval. Therapeutic drug "
            "monitoring and clinical pharmacist consultation are advised."
        ),
        "Toxic": (
            "CPIC recommends avoiding this drug or using the minimum effective dose with intensive "
            "monitoring. A pharmacogenomically appropriate alternative should be considered."
        ),
        "Ineffective": (
            "Select an alternative medication with a different metabolic pathway. Review alternative "
            "agents with the prescribing team."
        ),
        "Unknown": (
            "Manual clinical review is required. Comprehensive pharmacogenomic testing may be warranted "
            "if clinically indicated."
        ),
    }

    label = request.risk_label if request.risk_label in summaries else "Unknown"
    return Explanation(
        summary=summaries[label],
        mechanism=mechanisms[label],
        clinical_impact=impacts[label],
        llm_available=False,
    )


def build_unsupported_drug_explanation(drug: str) -> Explanation:
    """Canned explanation for drugs outside the catalog; no LLM call is made."""
    return Explanation(
        summary=f"{drug} is not in the PharmaGuard supported drug list.",
        mechanism="Drug-gene interaction data not available for this compound.",
        clinical_impact="Follow standard prescribing guidelines and consult a clinical pharmacist.",
        llm_available=False,
    )


def parse_llm_explanation(raw: Optional[str]) -> Explanation:
    """
    Parse the model's JSON reply. Raises ValueError (or ValidationError) when
    the reply is empty, not JSON, or misses a required field.
    """
    if not raw or not raw.strip():
        raise ValueError("LLM returned an empty response")

    data = json.loads(_CODE_FENCE.sub("", raw).strip())
    if not isinstance(data, dict):
        raise ValueError("LLM response is not a JSON object")

    return Explanation(
        summary=str(data.get("summary") or "").strip(),
        mechanism=str(data.get("mechanism") or "").strip(),
        clinical_impact=str(data.get("clinical_impact") or "").strip(),
        llm_available=True,
    )


class ExplanationService:
    """
    Narrates a fixed finding. Never raises: timeouts, transport errors,
    missing credentials and malformed replies all end in the templated
    explanation.
    """

    def __init__(
        self,
        client: Optional[GroqClient] = None,
        timeout_seconds: Optional[float] = None,
        max_cached: int = MAX_CACHED_EXPLANATIONS,
    ):
        self.client = client or GroqClient()
        self.timeout_seconds = timeout_seconds or self.client.settings.timeout_seconds
        self.max_cached = max_cached
        self._cache: "OrderedDict[Tuple, Explanation]" = OrderedDict()

    @staticmethod
    def _cache_key(request: ExplanationRequest) -> Tuple:
        # rsIDs are quoted in the prompt
        return (
            request.drug,
            request.gene,
            request.diplotype,
            request.phenotype,
            request.risk_label,
            tuple(request.detected_variants),
        )

    async def explain(self, request: ExplanationRequest) -> Explanation:
        key = self._cache_key(request)
        if key in self._cache:
            logger.info("Using cached explanation for %s", ":".join(key[:3]))
            self._cache.move_to_end(key)
            return self._cache[key]

        if not self.client.is_configured:
            logger.warning("GROQ_API_KEY not set; using templated explanation for %s", request.drug)
            return build_fallback_explanation(request)

        start = time.time()
        prompt = build_prompt(
            drug=request.drug,
            gene=request.gene,
            diplotype=request.diplotype,
            phenotype=request.phenotype,
            risk_label=request.risk_label,
            detected_variants=request.detected_variants,
        )

        try:
            raw = await asyncio.wait_for(self.client.generate_json(prompt), timeout=self.timeout_seconds)
            explanation = parse_llm_explanation(raw)
        except RECOVERABLE_ERRORS as e:
            logger.warning(
                "LLM explanation failed for %s (%s: %s); using templated explanation",
                request.drug, type(e).__name__, e,
            )
            return build_fallback_explanation(request)

        self._cache[key] = explanation
        while len(self._cache) > self.max_cached:
            self._cache.popitem(last=False)
        logger.info("LLM explanation for %s generated in %.2fs", request.drug, time.time() - start)
        return explanation
