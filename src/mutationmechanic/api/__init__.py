"""Annotation provider clients."""

from mutationmechanic.api.alphagenome import AlphaGenomeAPIError, AlphaGenomeClient
from mutationmechanic.api.clinvar import ClinVarAPIError, ClinVarClient
from mutationmechanic.api.ensembl import EnsemblAPIError, EnsemblClient
from mutationmechanic.api.myvariant import MyVariantAPIError, MyVariantClient

__all__ = [
    "AlphaGenomeClient",
    "AlphaGenomeAPIError",
    "ClinVarClient",
    "ClinVarAPIError",
    "EnsemblClient",
    "EnsemblAPIError",
    "MyVariantClient",
    "MyVariantAPIError",
]
