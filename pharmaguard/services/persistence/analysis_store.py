"""
Analysis Store - durable record of each drug analysis.

One JSON document per line, appended as results are produced. Storage is a
collaborator of the pipeline: the pipeline schedules `save` after the
response is assembled and only logs its failures.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union

from pharmaguard.schemas.pharma_schema import PharmaGuardResponse

logger = logging.getLogger(__name__)


class AnalysisStore(Protocol):
    async def save(self, result: PharmaGuardResponse, gene: str, confidence: float) -> None:
        ...


def build_analysis_document(result: PharmaGuardResponse, gene: str, confidence: float) -> Dict[str, Any]:
    """Flattened, queryable fields plus the full response for audit/replay."""
    return {
        "patient_id": result.patient_id,
        "drug": result.drug,
        "gene": gene,
        "diplotype": result.pharmacogenomic_profile.diplotype,
        "phenotype": result.pharmacogenomic_profile.phenotype,
        "risk": result.risk_assessment.risk_label,
        "severity": result.risk_assessment.severity,
        "confidence": confidence,
        "stored_at": datetime.now(timezone.utc).isoformat(),
        "full_response": result.model_dump(mode="json"),
    }


class JsonlAnalysisStore:
    """Appends analysis documents to a JSON-lines file."""

    def __init__(self, file_path: Union[str, Path] = Path("data/analyses.jsonl")):
        self.file_path = Path(file_path)
        self._lock = threading.Lock()

    async def save(self, result: PharmaGuardResponse, gene: str, confidence: float) -> None:
        document = build_analysis_document(result, gene, confidence)
        await asyncio.to_thread(self._append, document)
        logger.info("Saved analysis for %s (%s)", result.drug, result.patient_id)

    def _append(self, document: Dict[str, Any]):
        line = json.dumps(document, ensure_ascii=False)
        with self._lock:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def load_all(self) -> List[Dict[str, Any]]:
        """Read every stored document back, oldest first."""
        if not self.file_path.exists():
            return []
        with open(self.file_path, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


class NullAnalysisStore:
    """Store used when persistence is disabled."""

    async def save(self, result: PharmaGuardResponse, gene: str, confidence: float) -> None:
        return None
