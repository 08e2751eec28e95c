"""
Phenotype Mapper - Diplotype construction and phenotype determination.

Builds a genetic profile for one gene from the star alleles reported in the
VCF. Scoring is deterministic: the first two alleles in order of appearance
form the diplotype, their activity values are summed, and the sum is placed
in a fixed phenotype band shared by every gene.
"""

from typing import List, Optional, Tuple
import logging

from .activity_table import AlleleActivityTable, get_activity_table
from .models import GeneticProfile, Phenotype, REFERENCE_ALLELE
from pharmaguard.config import ConfidenceLevels, get_confidence_levels
from pharmaguard.services.vcf.parser import GeneCallSet

logger = logging.getLogger(__name__)

# Upper bounds (inclusive) of each phenotype band; a score of exactly 0 is PM
# and anything above the last bound is URM.
PHENOTYPE_BANDS: Tuple[Tuple[float, Phenotype], ...] = (
    (0.75, Phenotype.INTERMEDIATE),
    (1.25, Phenotype.NORMAL),
    (1.75, Phenotype.RAPID),
)


def classify_phenotype(activity_score: Optional[float]) -> Phenotype:
    """
    Map a combined activity score to a metabolizer phenotype:

        0            -> Poor
        (0, 0.75]    -> Intermediate
        (0.75, 1.25] -> Normal
        (1.25, 1.75] -> Rapid
        > 1.75       -> Ultra-Rapid
    """
    if activity_score is None:
        return Phenotype.UNKNOWN
    if activity_score == 0:
        return Phenotype.POOR
    for upper, phenotype in PHENOTYPE_BANDS:
        if activity_score <= upper:
            return phenotype
    return Phenotype.ULTRA_RAPID


def build_genetic_profile(
    gene: str,
    calls: Optional[GeneCallSet],
    table: Optional[AlleleActivityTable] = None,
    confidence: Optional[ConfidenceLevels] = None,
) -> GeneticProfile:
    """
    Build the genetic profile for one gene.

    With no alleles the activity score and phenotype stay unknown: absence of
    data is never read as normal function. The `*1/*1` diplotype reported in
    that case is cosmetic. With a single allele the second slot is padded
    with the reference allele for display and scoring, and confidence is
    lowered accordingly.
    """
    table = table or get_activity_table()
    confidence = confidence or get_confidence_levels()
    calls = calls or GeneCallSet()
    alleles: List[str] = list(calls.alleles)
    rsids = list(calls.rsids)

    if not alleles:
        return GeneticProfile(
            gene=gene,
            diplotype=f"{REFERENCE_ALLELE}/{REFERENCE_ALLELE}",
            activity_score=None,
            phenotype=Phenotype.UNKNOWN,
            confidence=confidence.no_genotype_data,
            detected_variants=rsids,
            allele_calls=0,
        )

    allele1 = alleles[0]
    allele2 = alleles[1] if len(alleles) > 1 else REFERENCE_ALLELE
    activity_score = table.activity(allele1) + table.activity(allele2)

    if len(alleles) > 1:
        profile_confidence = confidence.observed_diplotype
    else:
        profile_confidence = confidence.single_allele_call

    return GeneticProfile(
        gene=gene,
        diplotype=f"{allele1}/{allele2}",
        activity_score=activity_score,
        phenotype=classify_phenotype(activity_score),
        confidence=profile_confidence,
        detected_variants=rsids,
        allele_calls=len(alleles),
    )


class PhenotypeMapper:
    """Builds genetic profiles against an injected activity table."""

    def __init__(
        self,
        table: Optional[AlleleActivityTable] = None,
        confidence: Optional[ConfidenceLevels] = None,
    ):
        self.table = table or get_activity_table()
        self.confidence = confidence or get_confidence_levels()

    def process_gene(self, gene: str, calls: Optional[GeneCallSet]) -> GeneticProfile:
        profile = build_genetic_profile(gene, calls, self.table, self.confidence)
        logger.debug(
            "gene=%s diplotype=%s activity=%s phenotype=%s confidence=%.2f",
            profile.gene, profile.diplotype, profile.activity_score,
            profile.phenotype.value, profile.confidence,
        )
        return profile
