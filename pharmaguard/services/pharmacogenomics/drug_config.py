"""
Drug configuration: which gene governs each drug, how that gene's activity
relates to the drug (mechanism type) and the clinical action per risk label.

This is data consumed by the risk engine, not logic. A catalog can also be
loaded from a JSON file shaped like:

    {"CODEINE": {"gene": "CYP2D6", "mechanism": "prodrug",
                 "description": "...", "recommendations": {"Safe": "..."}}}
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from pydantic import ValidationError

from .models import DrugRule, MechanismType, RiskLabel

DrugCatalog = Mapping[str, DrugRule]


class DrugCatalogError(ValueError):
    pass


_DEFAULT_ENTRIES: Dict[str, Dict[str, Any]] = {
    "CODEINE": {
        "gene": "CYP2D6",
        "mechanism": MechanismType.PRODRUG,
        "description": "Codeine is a prodrug converted to morphine by CYP2D6.",
        "recommendations": {
            RiskLabel.SAFE: "Standard codeine dosing is acceptable. Monitor for efficacy and side effects.",
            RiskLabel.ADJUST_DOSAGE: "Consider dose reduction. Reduced CYP2D6 activity may lower morphine conversion.",
            RiskLabel.INEFFECTIVE: "Codeine is likely ineffective. Select an alternative opioid (e.g., morphine, oxycodone).",
            RiskLabel.TOXIC: "Avoid codeine. Ultra-rapid CYP2D6 metabolism produces excessive morphine with risk of respiratory depression.",
            RiskLabel.UNKNOWN: "No pharmacogenomic guidance available. Follow standard prescribing protocols.",
        },
    },
    "WARFARIN": {
        "gene": "CYP2C9",
        "mechanism": MechanismType.DETOX,
        "description": "Warfarin is metabolized and cleared by CYP2C9.",
        "recommendations": {
            RiskLabel.SAFE: "Standard warfarin dosing per INR-guided protocol is appropriate.",
            RiskLabel.ADJUST_DOSAGE: "Reduce warfarin starting dose. Reduced CYP2C9 activity increases bleeding risk.",
            RiskLabel.TOXIC: "Avoid standard warfarin doses. CYP2C9 loss-of-function causes drug accumulation and hemorrhage risk.",
            RiskLabel.UNKNOWN: "No pharmacogenomic guidance available. Follow standard INR monitoring.",
        },
    },
    "CLOPIDOGREL": {
        "gene": "CYP2C19",
        "mechanism": MechanismType.PRODRUG,
        "description": "Clopidogrel is a prodrug activated by CYP2C19 to its active thiol metabolite.",
        "recommendations": {
            RiskLabel.SAFE: "Standard clopidogrel dosing is appropriate.",
            RiskLabel.ADJUST_DOSAGE: "Consider alternative antiplatelet agent. Reduced activation may lower efficacy.",
            RiskLabel.INEFFECTIVE: "Clopidogrel is likely ineffective. Use alternative therapy (e.g., prasugrel, ticagrelor).",
            RiskLabel.TOXIC: "Elevated active metabolite risk. Monitor for increased bleeding. Consider dose reduction.",
            RiskLabel.UNKNOWN: "No pharmacogenomic guidance available.",
        },
    },
    "SIMVASTATIN": {
        "gene": "SLCO1B1",
        "mechanism": MechanismType.TRANSPORTER,
        "description": "SLCO1B1 encodes OATP1B1, which transports simvastatin into the liver for clearance.",
        "recommendations": {
            RiskLabel.SAFE: "Standard simvastatin dosing is acceptable.",
            RiskLabel.TOXIC: (
                "Reduced SLCO1B1 function impairs hepatic uptake, increasing simvastatin plasma levels "
                "and myopathy risk. Consider a lower dose or switch to pravastatin/rosuvastatin."
            ),
            RiskLabel.UNKNOWN: "No pharmacogenomic guidance available.",
        },
    },
    "AZATHIOPRINE": {
        "gene": "TPMT",
        "mechanism": MechanismType.DETOX,
        "description": "TPMT metabolizes azathioprine thiopurine metabolites; low activity causes toxic accumulation.",
        "recommendations": {
            RiskLabel.SAFE: "Standard azathioprine dosing is appropriate with routine monitoring.",
            RiskLabel.ADJUST_DOSAGE: "Consider dose reduction (30-70% of standard). Monitor CBC for myelosuppression.",
            RiskLabel.TOXIC: (
                "Avoid azathioprine or use only with significantly reduced doses under specialist supervision. "
                "TPMT deficiency causes life-threatening myelosuppression."
            ),
            RiskLabel.UNKNOWN: "No pharmacogenomic guidance available.",
        },
    },
    "FLUOROURACIL": {
        "gene": "DPYD",
        "mechanism": MechanismType.DETOX,
        "description": "DPYD degrades 5-fluorouracil; deficiency causes severe systemic toxicity.",
        "recommendations": {
            RiskLabel.SAFE: "Standard fluorouracil dosing is acceptable. Monitor for toxicity.",
            RiskLabel.ADJUST_DOSAGE: "Reduce starting dose by 25-50%. DPYD partial deficiency increases toxicity risk.",
            RiskLabel.TOXIC: "Avoid fluorouracil. DPYD deficiency causes life-threatening mucositis, neutropenia, and neurotoxicity.",
            RiskLabel.UNKNOWN: "No pharmacogenomic guidance available.",
        },
    },
}


def build_drug_catalog(entries: Mapping[str, Mapping[str, Any]]) -> DrugCatalog:
    """Validate raw entries into an immutable drug-name -> DrugRule mapping."""
    catalog: Dict[str, DrugRule] = {}
    for name, entry in entries.items():
        drug = name.strip().upper()
        try:
            rule = DrugRule(drug=drug, **entry)
        except (TypeError, ValidationError) as e:
            raise DrugCatalogError(f"Invalid drug configuration for {drug}: {e}") from e
        catalog[drug] = rule.model_copy(update={"gene": rule.gene.upper()})
    return MappingProxyType(catalog)


def load_drug_catalog(path: Union[str, Path]) -> DrugCatalog:
    """Load a drug catalog from a JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            entries = json.load(f)
    except json.JSONDecodeError as e:
        raise DrugCatalogError(f"Drug configuration {path} is not valid JSON: {e}") from e
    if not isinstance(entries, dict):
        raise DrugCatalogError(f"Drug configuration {path} must be a JSON object keyed by drug name")
    return build_drug_catalog(entries)


DEFAULT_DRUG_CATALOG: DrugCatalog = build_drug_catalog(_DEFAULT_ENTRIES)

SUPPORTED_DRUGS = tuple(DEFAULT_DRUG_CATALOG)
