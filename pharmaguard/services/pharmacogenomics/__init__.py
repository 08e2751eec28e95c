"""
Pharmacogenomics Service

Deterministic, table-driven engine turning per-gene star-allele calls into a
genetic profile and a drug risk assessment.
"""

from .models import (
    REFERENCE_ALLELE,
    DrugEvaluation,
    DrugRule,
    GeneticProfile,
    MechanismType,
    Phenotype,
    RiskAssessment,
    RiskLabel,
    Severity,
)
from .activity_table import AlleleActivityTable, get_activity_table, is_duplication
from .drug_config import (
    DEFAULT_DRUG_CATALOG,
    SUPPORTED_DRUGS,
    DrugCatalog,
    DrugCatalogError,
    build_drug_catalog,
    load_drug_catalog,
)
from .phenotype_mapper import PhenotypeMapper, build_genetic_profile, classify_phenotype
from .risk_engine import (
    DEFAULT_RECOMMENDATIONS,
    RISK_SEVERITY_TABLE,
    RiskEngine,
    classify_risk,
    create_risk_engine,
    resolve_recommendation,
)

__all__ = [
    # Models
    'REFERENCE_ALLELE',
    'DrugEvaluation',
    'DrugRule',
    'GeneticProfile',
    'MechanismType',
    'Phenotype',
    'RiskAssessment',
    'RiskLabel',
    'Severity',

    # Tables
    'AlleleActivityTable',
    'get_activity_table',
    'is_duplication',
    'DEFAULT_DRUG_CATALOG',
    'SUPPORTED_DRUGS',
    'DrugCatalog',
    'DrugCatalogError',
    'build_drug_catalog',
    'load_drug_catalog',

    # Phenotype Mapping
    'PhenotypeMapper',
    'build_genetic_profile',
    'classify_phenotype',

    # Risk Engine
    'DEFAULT_RECOMMENDATIONS',
    'RISK_SEVERITY_TABLE',
    'RiskEngine',
    'classify_risk',
    'create_risk_engine',
    'resolve_recommendation',
]
