from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException, status
from typing import List, Optional
import logging

from pharmaguard.config import get_config
from pharmaguard.schemas.pharma_schema import PharmaGuardResponse, SupportedDrug
from pharmaguard.services.pipeline.analysis_pipeline import (
    AnalysisPipeline,
    get_analysis_pipeline,
    normalize_drug_names,
)
from pharmaguard.services.vcf.parser import VcfParseError

router = APIRouter()
logger = logging.getLogger(__name__)


def get_pipeline() -> AnalysisPipeline:
    return get_analysis_pipeline()


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": True, "code": code, "message": message},
    )


@router.post(
    "/analyze",
    response_model=List[PharmaGuardResponse],
    status_code=status.HTTP_200_OK,
    summary="Analyze Pharmacogenomic Risk",
    description="Upload a VCF file and one or more drug names to receive a risk assessment per drug."
)
async def analyze_pharmacogenomics(
    vcf_file: UploadFile = File(..., description="Patient's VCF file containing genetic variants"),
    drug_name: str = Form("", description="Single or comma-separated drug names (e.g., CODEINE,WARFARIN)"),
    patient_id: Optional[str] = Form(None, description="Optional patient identifier"),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
) -> List[PharmaGuardResponse]:
    """
    Endpoint to trigger the pharmacogenomic analysis pipeline.

    - **vcf_file**: Genetic data file (.vcf)
    - **drug_name**: Target drug name(s)
    - **patient_id**: Optional identifier; generated when omitted
    """
    config = get_config()

    drugs = normalize_drug_names(drug_name)
    if not drugs:
        raise _error(
            status.HTTP_400_BAD_REQUEST,
            "MISSING_DRUG_NAME",
            'The "drug_name" field is required (e.g., "CODEINE" or "CODEINE,WARFARIN").',
        )

    filename = (vcf_file.filename or "").lower()
    if not filename.endswith(tuple(config.allowed_extensions)):
        raise _error(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_FILE_TYPE",
            "Invalid file format. Please upload a .vcf file.",
        )

    content = await vcf_file.read(config.max_upload_bytes + 1)
    if len(content) > config.max_upload_bytes:
        raise _error(
            413,
            "FILE_TOO_LARGE",
            f"Uploaded file exceeds the {config.max_upload_bytes // (1024 * 1024)} MB limit.",
        )

    logger.info(
        "Analyze request: drugs=%s file=%s (%dB)", ",".join(drugs), vcf_file.filename, len(content)
    )

    try:
        return await pipeline.run(content, drugs, patient_id=patient_id)
    except VcfParseError as e:
        logger.warning("VCF parse error: %s", e)
        raise _error(422, "VCF_PARSE_ERROR", str(e))


@router.get("/drugs", response_model=List[SupportedDrug], summary="List supported drugs")
async def list_supported_drugs(pipeline: AnalysisPipeline = Depends(get_pipeline)) -> List[SupportedDrug]:
    return [
        SupportedDrug(
            drug=rule.drug,
            gene=rule.gene,
            mechanism=rule.mechanism.value,
            description=rule.description,
        )
        for rule in pipeline.engine.catalog.values()
    ]
