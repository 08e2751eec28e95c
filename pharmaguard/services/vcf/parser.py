from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Union

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Constants & Configuration
# ----------------------------------------------------------------------

TARGET_PHARMACOGENES: Set[str] = {
    "CYP2D6",
    "CYP2C19",
    "CYP2C9",
    "SLCO1B1",
    "TPMT",
    "DPYD",
}

COMMENT_MARKER = "#"

# Star allele assumed when a record carries no STAR annotation
REFERENCE_ALLELE = "*1"

# Genotype value when FORMAT/SAMPLE carry no GT
NO_CALL = "."

MIN_DATA_COLUMNS = 8

InfoValue = Union[str, bool]


@dataclass(frozen=True)
class VariantRecord:
    gene: str
    star_allele: Optional[str]
    rsid: Optional[str]
    genotype: str = NO_CALL
    info: Mapping[str, InfoValue] = field(default_factory=dict)

    @property
    def allele(self) -> str:
        """Star allele, or the reference allele when the record carries none."""
        return self.star_allele or REFERENCE_ALLELE


@dataclass(frozen=True)
class GeneCallSet:
    alleles: Tuple[str, ...] = ()
    rsids: Tuple[str, ...] = ()


@dataclass
class VcfParseResult:
    gene_calls: Dict[str, GeneCallSet]
    records: List[VariantRecord]
    success: bool
    error: Optional[str] = None

    @property
    def quality_metrics(self) -> Dict[str, Union[bool, int, str, List[str]]]:
        metrics: Dict[str, Union[bool, int, str, List[str]]] = {
            "vcf_parsing_success": self.success,
            "variant_count": len(self.records),
            "genes_detected": sorted(self.gene_calls),
        }
        if self.error:
            metrics["error_reason"] = self.error
        return metrics


class VcfParseError(ValueError):
    pass


def parse_vcf(content: Union[str, bytes]) -> VcfParseResult:
    """
    Parse VCF text into per-gene star-allele calls for the 6 target genes:
    CYP2D6, CYP2C19, CYP2C9, SLCO1B1, TPMT, DPYD.

    The contract is all-or-nothing: any exception raised while scanning
    (including a UTF-8 decode failure on bytes input) yields a failed result
    with an empty gene map. A file with no relevant records is a success.
    """
    alleles_by_gene: Dict[str, List[str]] = {}
    rsids_by_gene: Dict[str, Dict[str, None]] = {}
    records: List[VariantRecord] = []

    try:
        for line in _normalize_to_lines(content):
            record = _parse_variant_line(line)
            if record is None:
                continue
            records.append(record)

            gene_alleles = alleles_by_gene.setdefault(record.gene, [])
            gene_rsids = rsids_by_gene.setdefault(record.gene, {})
            if record.star_allele:
                gene_alleles.append(record.star_allele)
            if record.rsid:
                gene_rsids[record.rsid] = None
    except Exception as e:
        reason = f"{type(e).__name__}: {e}"
        logger.warning("VCF parsing failed: %s", reason)
        return _create_failed_result(reason)

    gene_calls = {
        gene: GeneCallSet(alleles=tuple(alleles), rsids=tuple(rsids_by_gene[gene]))
        for gene, alleles in alleles_by_gene.items()
    }
    logger.info(
        "Parsed VCF: %d pharmacogene records, genes=%s",
        len(records), ",".join(sorted(gene_calls)) or "none",
    )
    return VcfParseResult(gene_calls=gene_calls, records=records, success=True)


def _create_failed_result(reason: str) -> VcfParseResult:
    return VcfParseResult(gene_calls={}, records=[], success=False, error=reason)


def _normalize_to_lines(content: Union[str, bytes]) -> Iterator[str]:
    if isinstance(content, bytes):
        # strict: undecodable content is a parse failure, not replacement characters
        content = content.decode("utf-8-sig")
    if not isinstance(content, str):
        raise TypeError(f"VCF content must be str or bytes, got {type(content).__name__}")
    for raw in content.split("\n"):
        line = raw.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue
        yield line


def parse_info_field(info: str) -> Dict[str, InfoValue]:
    """
    Parse a VCF INFO column: "GENE=CYP2D6;STAR=*4;DB" ->
    {"GENE": "CYP2D6", "STAR": "*4", "DB": True}. Values stay raw strings.
    """
    out: Dict[str, InfoValue] = {}
    if info in (".", ""):
        return out
    for item in info.split(";"):
        if not item:
            continue
        if "=" not in item:
            out[item.strip()] = True
            continue
        k, v = item.split("=", 1)
        out[k.strip()] = v.strip()
    return out


def extract_genotype(format_col: str, sample_col: str) -> str:
    """Return the GT value aligned from FORMAT/SAMPLE, or NO_CALL."""
    if not format_col or not sample_col:
        return NO_CALL
    format_keys: Sequence[str] = format_col.split(":")
    sample_values: Sequence[str] = sample_col.split(":")
    if "GT" not in format_keys:
        return NO_CALL
    idx = format_keys.index("GT")
    if idx >= len(sample_values) or not sample_values[idx]:
        return NO_CALL
    return sample_values[idx]


def _info_str(value: Optional[InfoValue]) -> Optional[str]:
    # A bare flag (True) carries no usable value
    if isinstance(value, str) and value:
        return value
    return None


def _parse_variant_line(line: str) -> Optional[VariantRecord]:
    cols = line.split("\t")
    if len(cols) < MIN_DATA_COLUMNS:
        # Malformed line -> skip gracefully
        return None

    vid = cols[2]
    info = parse_info_field(cols[7])
    format_col = cols[8] if len(cols) > 8 else ""
    sample_col = cols[9] if len(cols) > 9 else ""

    gene = _info_str(info.get("GENE"))
    gene = gene.upper() if gene else None
    if gene not in TARGET_PHARMACOGENES:
        return None

    return VariantRecord(
        gene=gene,
        star_allele=_info_str(info.get("STAR")),
        rsid=vid if vid and vid != "." else None,
        genotype=extract_genotype(format_col, sample_col),
        info=info,
    )
