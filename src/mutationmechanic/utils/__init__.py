"""Utility functions."""

from mutationmechanic.utils.variant_normalization import (
    VariantNormalizer,
    get_protein_position,
    normalize_variant,
    to_hgvs_protein,
)

__all__ = [
    'VariantNormalizer',
    'normalize_variant',
    'get_protein_position',
    'to_hgvs_protein',
]
