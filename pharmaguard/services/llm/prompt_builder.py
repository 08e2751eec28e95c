from typing import Sequence


def build_prompt(
    drug: str,
    gene: str,
    diplotype: str,
    phenotype: str,
    risk_label: str,
    detected_variants: Sequence[str],
) -> str:
    """
    Constructs the explanation prompt for a finding that is already computed.

    The risk label is stated as fixed input; the model is asked to narrate it
    and return a JSON object with summary, mechanism and clinical_impact.
    """
    rsids = ", ".join(detected_variants) or "none detected"

    return f"""You are a pharmacogenomics assistant explaining genetic drug risk in simple, easy-to-understand language.

IMPORTANT:
The risk has ALREADY been calculated.
Do NOT change or question the risk label.
Your job is only to explain it clearly.

Pre-computed findings:
- Drug: {drug}
- Gene involved: {gene}
- Patient Diplotype: {diplotype}
- Metabolizer Type: {phenotype}
- Risk Label: {risk_label}
- Detected Variant rsIDs: {rsids}

Instructions:
1. Return ONLY a valid JSON object, with no markdown, code fences or extra text.
2. Use simple language. If a medical term must be used, explain it briefly.
3. Do NOT fabricate claims. If evidence is limited, say so.
4. Keep the tone informative and reassuring, not alarming.

Required JSON schema:
{{
  "summary": "2-3 sentences explaining what this result means for the patient.",
  "mechanism": "2-3 sentences explaining how this gene affects how the body handles the drug.",
  "clinical_impact": "2-3 sentences explaining what this means for dosing or treatment decisions."
}}"""
