from .parser import (
    GeneCallSet,
    VariantRecord,
    VcfParseError,
    VcfParseResult,
    extract_genotype,
    parse_info_field,
    parse_vcf,
)

__all__ = [
    "GeneCallSet",
    "VariantRecord",
    "VcfParseError",
    "VcfParseResult",
    "extract_genotype",
    "parse_info_field",
    "parse_vcf",
]
