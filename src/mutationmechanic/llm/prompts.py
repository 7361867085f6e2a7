"""Prompts for variant mechanism explanations."""

from mutationmechanic.models.genomics import GenomicContext

MECHANISM_SYSTEM_PROMPT = """You are a molecular geneticist explaining how a protein variant causes disease.

Use ONLY the annotation data provided. If a section is missing, do not invent it.

Respond with strictly valid JSON:
{
  "summary": "2-3 sentence plain-language explanation",
  "mechanism": "molecular mechanism (structure, stability, function)",
  "disease_associations": ["..."],
  "therapies": ["approved or investigational therapies, empty if none"]
}
"""

MECHANISM_USER_PROMPT = """Gene: {gene}
Variant: {variant}

Annotation Data:
{context_summary}

Provide your explanation as strictly valid JSON only (no markdown, no preamble, no postamble).
"""


def summarize_context(context: GenomicContext) -> str:
    """Compact text rendering of an annotation bundle."""
    lines = [f"Source: {context.source}"]
    if context.position:
        lines.append(f"Position: {context.position}")
    if context.frequency and context.frequency.gnomad_global is not None:
        lines.append(
            f"gnomAD AF: {context.frequency.gnomad_global:g} ({context.frequency.rarity_label or 'n/a'})"
        )
    if context.conservation:
        c = context.conservation
        lines.append(f"Conservation: phyloP={c.phylo_p} phastCons={c.phast_cons} GERP={c.gerp}")
    if context.impact:
        i = context.impact
        sift = i.sift.prediction if i.sift else None
        polyphen = i.polyphen.prediction if i.polyphen else None
        lines.append(f"Impact: CADD={i.cadd} SIFT={sift} PolyPhen={polyphen} verdict={i.verdict}")
    if context.orthologs:
        conserved = sum(1 for o in context.orthologs if o.conserved)
        lines.append(f"Orthologs: residue conserved in {conserved}/{len(context.orthologs)} species")
    if context.domains:
        lines.append("Domains: " + ", ".join(f"{d.name} ({d.start}-{d.end})" for d in context.domains))
    if context.clinvar:
        lines.append(
            f"ClinVar: {context.clinvar.significance} ({context.clinvar.stars or 0} stars); "
            f"phenotypes: {', '.join(context.clinvar.phenotypes) or 'none'}"
        )
    if context.omim:
        lines.append(f"OMIM: {context.omim.title} ({', '.join(context.omim.inheritance)})")
    return "\n".join(lines)


def create_mechanism_prompt(gene: str, variant: str, context: GenomicContext) -> list[dict]:
    """Message list for litellm with system + user roles."""
    user_content = MECHANISM_USER_PROMPT.format(
        gene=gene,
        variant=variant,
        context_summary=summarize_context(context),
    )
    return [
        {"role": "system", "content": MECHANISM_SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]
