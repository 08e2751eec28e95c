"""
Unit tests for the drug catalog.
"""

import json

import pytest

from pharmaguard.services.pharmacogenomics.drug_config import (
    DEFAULT_DRUG_CATALOG,
    SUPPORTED_DRUGS,
    DrugCatalogError,
    build_drug_catalog,
    load_drug_catalog,
)
from pharmaguard.services.pharmacogenomics.models import MechanismType, RiskLabel


class TestDefaultCatalog:

    @pytest.mark.parametrize("drug,gene,mechanism", [
        ("CODEINE", "CYP2D6", MechanismType.PRODRUG),
        ("WARFARIN", "CYP2C9", MechanismType.DETOX),
        ("CLOPIDOGREL", "CYP2C19", MechanismType.PRODRUG),
        ("SIMVASTATIN", "SLCO1B1", MechanismType.TRANSPORTER),
        ("AZATHIOPRINE", "TPMT", MechanismType.DETOX),
        ("FLUOROURACIL", "DPYD", MechanismType.DETOX),
    ])
    def test_entries(self, drug, gene, mechanism):
        rule = DEFAULT_DRUG_CATALOG[drug]
        assert rule.drug == drug
        assert rule.gene == gene
        assert rule.mechanism == mechanism
        assert rule.description

    def test_supported_drugs(self):
        assert len(SUPPORTED_DRUGS) == 6
        assert all(name == name.upper() for name in SUPPORTED_DRUGS)

    def test_every_entry_has_unknown_guidance(self):
        for rule in DEFAULT_DRUG_CATALOG.values():
            assert rule.recommendations[RiskLabel.UNKNOWN]

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_DRUG_CATALOG["ASPIRIN"] = DEFAULT_DRUG_CATALOG["CODEINE"]


class TestBuildCatalog:

    def test_names_and_genes_are_upper_cased(self):
        catalog = build_drug_catalog({
            " tramadol ": {
                "gene": "cyp2d6",
                "mechanism": "prodrug",
                "recommendations": {"Toxic": "Avoid tramadol."},
            },
        })

        rule = catalog["TRAMADOL"]
        assert rule.gene == "CYP2D6"
        assert rule.mechanism == MechanismType.PRODRUG
        assert rule.recommendations[RiskLabel.TOXIC] == "Avoid tramadol."

    def test_unknown_mechanism_is_rejected(self):
        with pytest.raises(DrugCatalogError, match="TRAMADOL"):
            build_drug_catalog({"tramadol": {"gene": "CYP2D6", "mechanism": "inducer"}})

    def test_missing_gene_is_rejected(self):
        with pytest.raises(DrugCatalogError):
            build_drug_catalog({"tramadol": {"mechanism": "prodrug"}})

    def test_unexpected_key_shape_is_rejected(self):
        with pytest.raises(DrugCatalogError):
            build_drug_catalog({"tramadol": {"gene": "CYP2D6", "mechanism": "prodrug", "drug": "X"}})


class TestLoadCatalog:

    def test_load_from_json(self, tmp_path):
        path = tmp_path / "drugs.json"
        path.write_text(json.dumps({
            "ONDANSETRON": {"gene": "CYP2D6", "mechanism": "detox", "description": "5-HT3 antagonist"},
        }))

        catalog = load_drug_catalog(path)

        assert list(catalog) == ["ONDANSETRON"]
        assert catalog["ONDANSETRON"].mechanism == MechanismType.DETOX

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "drugs.json"
        path.write_text("{not json")
        with pytest.raises(DrugCatalogError):
            load_drug_catalog(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "drugs.json"
        path.write_text("[1, 2]")
        with pytest.raises(DrugCatalogError):
            load_drug_catalog(path)
