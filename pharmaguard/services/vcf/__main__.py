from __future__ import annotations

import json
import sys
from pathlib import Path

from .parser import parse_vcf


def main(argv: list[str]) -> int:
    if len(argv) < 2 or "--help" in argv:
        print("Usage: python -m pharmaguard.services.vcf <path-to.vcf> [--records]")
        return 0

    path = Path(argv[1])
    if not path.exists():
        print(f"File not found: {path}")
        return 2

    parsed = parse_vcf(path.read_bytes())
    if not parsed.success:
        print(f"VCF parsing failed: {parsed.error}")
        return 1

    payload = {
        "quality_metrics": parsed.quality_metrics,
        "gene_calls": {
            g: {"alleles": list(calls.alleles), "rsids": list(calls.rsids)}
            for g, calls in sorted(parsed.gene_calls.items())
        },
    }
    if "--records" in argv:
        payload["records"] = [
            {
                "gene": r.gene,
                "star": r.allele,
                "rsid": r.rsid,
                "gt": r.genotype,
            }
            for r in parsed.records
        ]
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
