"""Variant normalization utilities.

Normalizes protein change notations and classifies variant types:
- One-letter amino acid codes (L144F)
- Three-letter amino acid codes (Leu144Phe)
- HGVS protein notation (p.L144F, p.Leu144Phe)
- Deletions, frameshifts and nonsense changes (F508del, Q2fs, R553*)
- Intronic cDNA notation near exon boundaries (c.3718-2477C>T)
"""

import re
from typing import Any, Dict, Optional

from mutationmechanic.constants import AMINO_ACID_1TO3, AMINO_ACID_3TO1
from mutationmechanic.models.history import VariantType


class VariantNormalizer:
    """Normalizes variant representations to standard formats."""

    AA_3TO1 = AMINO_ACID_3TO1
    AA_1TO3 = AMINO_ACID_1TO3

    MISSENSE_PATTERN = re.compile(r'^([A-Z*])(\d+)([A-Z*])$', re.IGNORECASE)
    MISSENSE_3LETTER_PATTERN = re.compile(r'^([A-Z]{3})(\d+)([A-Z]{3})$', re.IGNORECASE)
    RESIDUE_PATTERN = re.compile(r'^([A-Z]{1,3})(\d+)', re.IGNORECASE)
    INTRONIC_PATTERN = re.compile(r'c\.-?\d+[+-]\d+', re.IGNORECASE)
    DELETION_PATTERN = re.compile(r'del', re.IGNORECASE)
    INSERTION_PATTERN = re.compile(r'ins', re.IGNORECASE)
    DUPLICATION_PATTERN = re.compile(r'dup', re.IGNORECASE)
    FRAMESHIFT_PATTERN = re.compile(r'fs', re.IGNORECASE)
    NONSENSE_PATTERN = re.compile(r'([A-Z*])(\d+)(\*|Ter|X)$', re.IGNORECASE)

    @staticmethod
    def normalize_protein_change(variant: str) -> Dict[str, Any]:
        """Normalize a protein change to multiple standard formats.

        Args:
            variant: Protein change in any format (L144F, Leu144Phe, p.L144F, etc.)

        Returns:
            Dictionary with normalized representations:
            - short_form: One-letter code (L144F)
            - hgvs_protein: HGVS protein notation (p.L144F)
            - long_form: Three-letter code (LEU144PHE)
            - position: Residue number (144)
            - ref_aa: Reference amino acid one-letter (L)
            - alt_aa: Alternate amino acid one-letter (F)
            - is_missense: Boolean indicating if this is a missense variant

        e.g.
        p.L144F ->
        {'alt_aa': 'F', 'hgvs_protein': 'p.L144F', 'is_missense': True, 'long_form': 'LEU144PHE', 'position': 144, 'ref_aa': 'L', 'short_form': 'L144F'}
        """
        variant = variant.strip()

        if variant.lower().startswith('p.'):
            variant = variant[2:]

        result = {
            'short_form': None,
            'hgvs_protein': None,
            'long_form': None,
            'position': None,
            'ref_aa': None,
            'alt_aa': None,
            'is_missense': False
        }

        match = VariantNormalizer.MISSENSE_PATTERN.match(variant)
        if match:
            ref, pos, alt = match.groups()
            ref = ref.upper()
            alt = alt.upper()
            result['short_form'] = f"{ref}{pos}{alt}"
            result['hgvs_protein'] = f"p.{ref}{pos}{alt}"
            result['position'] = int(pos)
            result['ref_aa'] = ref
            result['alt_aa'] = alt
            result['is_missense'] = alt != '*'
            if ref in VariantNormalizer.AA_1TO3 and alt in VariantNormalizer.AA_1TO3:
                result['long_form'] = f"{VariantNormalizer.AA_1TO3[ref]}{pos}{VariantNormalizer.AA_1TO3[alt]}"
            return result

        match = VariantNormalizer.MISSENSE_3LETTER_PATTERN.match(variant)
        if match:
            ref_3, pos, alt_3 = match.groups()
            ref_3 = ref_3.upper()
            alt_3 = alt_3.upper()

            if ref_3 in VariantNormalizer.AA_3TO1 and alt_3 in VariantNormalizer.AA_3TO1:
                ref = VariantNormalizer.AA_3TO1[ref_3]
                alt = VariantNormalizer.AA_3TO1[alt_3]
                result['short_form'] = f"{ref}{pos}{alt}"
                result['hgvs_protein'] = f"p.{ref}{pos}{alt}"
                result['long_form'] = f"{ref_3}{pos}{alt_3}"
                result['position'] = int(pos)
                result['ref_aa'] = ref
                result['alt_aa'] = alt
                result['is_missense'] = alt != '*'
                return result

        return result

    @staticmethod
    def classify_variant_type(variant: str) -> VariantType:
        """Classify the type of variant.

        Args:
            variant: Variant string in any format

        Returns:
            VariantType; UNKNOWN when nothing matches
        """
        variant_lower = variant.lower()

        if 'splice' in variant_lower or VariantNormalizer.INTRONIC_PATTERN.search(variant):
            return VariantType.SPLICE_SITE
        if VariantNormalizer.FRAMESHIFT_PATTERN.search(variant):
            return VariantType.FRAMESHIFT
        if (
            VariantNormalizer.DELETION_PATTERN.search(variant)
            or VariantNormalizer.INSERTION_PATTERN.search(variant)
            or VariantNormalizer.DUPLICATION_PATTERN.search(variant)
        ):
            return VariantType.INDEL

        protein = variant[2:] if variant_lower.startswith('p.') else variant
        if VariantNormalizer.NONSENSE_PATTERN.search(protein):
            return VariantType.NONSENSE

        if VariantNormalizer.normalize_protein_change(variant)['is_missense']:
            return VariantType.MISSENSE

        return VariantType.UNKNOWN

    @classmethod
    def normalize_variant(cls, gene: str, variant: str) -> Dict[str, Any]:
        """Full variant normalization pipeline.

        Args:
            gene: Gene symbol (e.g., 'SOD1')
            variant: Variant string in any format

        Returns:
            Dictionary with:
            - gene: Normalized gene symbol (uppercase)
            - variant_original: Original input variant
            - variant_normalized: Best normalized form
            - variant_type: Classified VariantType
            - position: Residue number, when one can be read
            - protein_change: Normalized protein change details (if applicable)
        """
        result = {
            'gene': gene.upper().strip(),
            'variant_original': variant,
            'variant_normalized': variant.strip(),
            'variant_type': cls.classify_variant_type(variant),
            'position': get_protein_position(variant),
            'protein_change': None
        }

        protein_norm = cls.normalize_protein_change(variant)
        if protein_norm['short_form']:
            result['variant_normalized'] = protein_norm['short_form']
            result['protein_change'] = protein_norm

        return result


def normalize_variant(gene: str, variant: str) -> Dict[str, Any]:
    """Normalize a variant to standard representation.

    Examples:
        >>> normalize_variant('SOD1', 'Leu144Phe')
        {'gene': 'SOD1', 'variant_normalized': 'L144F', 'variant_type': VariantType.MISSENSE, ...}
    """
    return VariantNormalizer.normalize_variant(gene, variant)


def get_protein_position(variant: str) -> Optional[int]:
    """Extract the residue number from a protein change.

    Examples:
        >>> get_protein_position('L144F')
        144

        >>> get_protein_position('p.Phe508del')
        508

        >>> get_protein_position('c.3718-2477C>T')
        None
    """
    protein_norm = VariantNormalizer.normalize_protein_change(variant)
    if protein_norm['position'] is not None:
        return protein_norm['position']

    stripped = variant.strip()
    if stripped.lower().startswith('c.'):
        return None
    if stripped.lower().startswith('p.'):
        stripped = stripped[2:]
    match = VariantNormalizer.RESIDUE_PATTERN.match(stripped)
    return int(match.group(2)) if match else None


def to_hgvs_protein(variant: str) -> Optional[str]:
    """Convert a variant to HGVS protein notation.

    Examples:
        >>> to_hgvs_protein('Leu144Phe')
        'p.L144F'

        >>> to_hgvs_protein('F508del')
        None
    """
    return VariantNormalizer.normalize_protein_change(variant).get('hgvs_protein')
