"""Centralized constants and mappings for MutationMechanic.

This module consolidates the hardcoded values used across the codebase:
- Cache tier lifetimes and storage keys
- Pathogenicity classification thresholds
- Amino acid codes
- Data source provenance manifest
- Curated annotation records for demonstration variants

Centralizing these makes maintenance easier and ensures consistency.
"""

from typing import Any

# =============================================================================
# CACHE TIERS
# =============================================================================
# All durations are epoch milliseconds, matching stored timestamps.

DAY_MS = 24 * 60 * 60 * 1000

FAST_TIER_TTL_MS = 7 * DAY_MS  # 7 days
DURABLE_TIER_TTL_MS = 30 * DAY_MS  # 30 days
ARCHIVE_THRESHOLD_MS = 365 * DAY_MS  # history retention horizon

DEFAULT_FAST_TIER_QUOTA_BYTES = 5 * 1024 * 1024

DATABASE_FILENAME = "mutationmechanic.db"
FAST_TIER_FILENAME = "fast_tier.json"

# Key prefixes. Namespacing is a convention, not enforced by the cache.
ANNOTATION_CACHE_PREFIX = "alphagenome_cache_"
PRESET_STORAGE_KEY = "mutationMechanic_presets_v1"


# =============================================================================
# HISTORY
# =============================================================================

# pathogenicityScore < 10 -> BENIGN, < 20 -> VUS, otherwise PATHOGENIC
BENIGN_SCORE_THRESHOLD = 10
VUS_SCORE_THRESHOLD = 20

# Explainer-derived risk: CADD > 20 -> HIGH, > 10 -> MEDIUM, otherwise LOW
HIGH_RISK_CADD = 20
MEDIUM_RISK_CADD = 10

# phyloP above this counts as a conserved site for explainer confidence
CONSERVED_PHYLOP = 3
CONSERVED_CONFIDENCE = 95
DEFAULT_CONFIDENCE = 75


# =============================================================================
# PRESETS
# =============================================================================

MAX_PRESETS = 200


# =============================================================================
# ANNOTATION PROVIDERS
# =============================================================================

REQUEST_TIMEOUT_SECONDS = 15.0

DEFAULT_METADATA: list[dict[str, str]] = [
    {"name": "gnomAD", "version": "v4.0.0", "url": "https://gnomad.broadinstitute.org/"},
    {"name": "ClinVar", "version": "2024-01-07", "url": "https://www.ncbi.nlm.nih.gov/clinvar/"},
    {"name": "PhyloP", "version": "hg38/100way", "url": "http://hgdownload.cse.ucsc.edu/goldenpath/hg38/phyloP100way/"},
    {"name": "UniProtKB", "version": "2024_01", "url": "https://www.uniprot.org/"},
    {"name": "Ensembl Compara", "version": "111", "url": "https://rest.ensembl.org/"},
]

# Ensembl species identifiers to display names
SPECIES_COMMON_NAMES: dict[str, str] = {
    "homo_sapiens": "Human",
    "pan_troglodytes": "Chimp",
    "mus_musculus": "Mouse",
    "rattus_norvegicus": "Rat",
    "gallus_gallus": "Chicken",
    "xenopus_tropicalis": "Frog",
    "danio_rerio": "Zebrafish",
    "drosophila_melanogaster": "Fruit Fly",
    "caenorhabditis_elegans": "Nematode",
    "saccharomyces_cerevisiae": "Yeast",
}

ORTHOLOG_TARGET_SPECIES: list[str] = [
    "pan_troglodytes",
    "mus_musculus",
    "danio_rerio",
    "drosophila_melanogaster",
]

# Residues shown either side of the variant position in ortholog snippets
ORTHOLOG_SNIPPET_FLANK = 3

# gnomAD global allele frequency bands
RARITY_BANDS: list[tuple[float, str]] = [
    (0.0001, "Very Rare"),
    (0.01, "Rare"),
    (0.05, "Low Frequency"),
]
COMMON_RARITY_LABEL = "Common"


# =============================================================================
# AMINO ACID CODES
# =============================================================================
# Standard amino acid code conversions (3-letter to 1-letter and vice versa)

AMINO_ACID_3TO1: dict[str, str] = {
    'ALA': 'A', 'CYS': 'C', 'ASP': 'D', 'GLU': 'E', 'PHE': 'F',
    'GLY': 'G', 'HIS': 'H', 'ILE': 'I', 'LYS': 'K', 'LEU': 'L',
    'MET': 'M', 'ASN': 'N', 'PRO': 'P', 'GLN': 'Q', 'ARG': 'R',
    'SER': 'S', 'THR': 'T', 'VAL': 'V', 'TRP': 'W', 'TYR': 'Y',
    'TER': '*', 'STP': '*', 'STOP': '*',  # Stop codons
    'SEC': 'U',  # Selenocysteine (rare)
    'PYL': 'O',  # Pyrrolysine (rare)
}

AMINO_ACID_1TO3: dict[str, str] = {v: k for k, v in AMINO_ACID_3TO1.items() if v not in ('*',)}
AMINO_ACID_1TO3['*'] = 'TER'  # Prefer TER for stop codon


# =============================================================================
# CURATED ANNOTATIONS
# =============================================================================
# Reviewed records for the demonstration variants. Served as-is without
# contacting any provider. Keyed by variant id ("{GENE}-{variant}").

CURATED_ANNOTATIONS: dict[str, dict[str, Any]] = {
    "SOD1-L144F": {
        "position": "chr21:33039648",
        "proteinLength": 154,
        "domains": [
            {"name": "Copper/Zinc Superoxide Dismutase", "start": 1, "end": 154, "type": "Family"},
            {"name": "Beta-barrel", "start": 10, "end": 80, "type": "Structural"},
            {"name": "Active Site Loop", "start": 120, "end": 145, "type": "Functional"},
        ],
        "frequency": {
            "gnomadGlobal": 0.000004,
            "populations": {"afr": 0, "amr": 0, "eas": 0, "nfe": 0.000008, "sas": 0},
            "rarityLabel": "Very Rare",
        },
        "conservation": {"phyloP": 4.5, "phastCons": 0.98, "gerp": 5.2},
        "impact": {
            "sift": {"score": 0.01, "prediction": "Deleterious"},
            "polyphen": {"score": 0.99, "prediction": "Probably Damaging"},
            "cadd": 26.4,
            "mutationTaster": "Disease-causing",
            "verdict": "HIGH IMPACT",
        },
        "orthologs": [
            {"species": "Homo sapiens", "commonName": "Human", "position": 144, "aa": "L", "conserved": True,
             "sequenceSnippet": "MTEYLL", "phylogeneticDistance": 0, "start": 140, "end": 145},
            {"species": "Mus musculus", "commonName": "Mouse", "position": 142, "aa": "L", "conserved": True,
             "sequenceSnippet": "MTEYLL", "phylogeneticDistance": 0.08, "start": 138, "end": 143},
            {"species": "Danio rerio", "commonName": "Zebrafish", "position": 140, "aa": "L", "conserved": True,
             "sequenceSnippet": "VTEYLF", "phylogeneticDistance": 0.45, "start": 136, "end": 141,
             "differences": [{"pos": 136, "ref": "M", "alt": "V"}, {"pos": 141, "ref": "L", "alt": "F"}]},
        ],
        "regulatory": [
            {"type": "Enhancer", "name": "GH21J033039", "impactScore": 0.2,
             "description": "Distal enhancer element, low variant impact predicted."},
        ],
        "clinvar": {
            "id": "VCV000010672",
            "significance": "Pathogenic",
            "reviewStatus": "criteria provided, multiple submitters, no conflicts",
            "stars": 2,
            "lastEvaluated": "2023-05-12",
            "phenotypes": ["Amyotrophic lateral sclerosis type 1"],
        },
        "omim": {
            "id": "105400",
            "title": "AMYOTROPHIC LATERAL SCLEROSIS 1; ALS1",
            "inheritance": ["Autosomal Dominant"],
            "phenotypes": ["Motor neuron degeneration", "Muscle weakness"],
            "url": "https://www.omim.org/entry/105400",
        },
    },
    "TP53-R248Q": {
        "position": "chr17:7577538",
        "proteinLength": 393,
        "domains": [
            {"name": "TAD", "start": 1, "end": 42, "type": "Transactivation"},
            {"name": "DNA Binding", "start": 102, "end": 292, "type": "Functional"},
            {"name": "Tetramerization", "start": 325, "end": 356, "type": "Oligomerization"},
        ],
        "frequency": {
            "gnomadGlobal": 0.00002,
            "populations": {"afr": 0, "amr": 0.00001, "eas": 0, "nfe": 0.00003, "sas": 0.00001},
            "rarityLabel": "Very Rare",
        },
        "conservation": {"phyloP": 5.8, "phastCons": 1.0, "gerp": 6.1},
        "impact": {
            "sift": {"score": 0.0, "prediction": "Deleterious"},
            "polyphen": {"score": 1.0, "prediction": "Probably Damaging"},
            "cadd": 32.0,
            "mutationTaster": "Disease-causing",
            "verdict": "HIGH IMPACT",
        },
        "orthologs": [
            {"species": "Homo sapiens", "commonName": "Human", "position": 248, "aa": "R", "conserved": True,
             "sequenceSnippet": "CMNYRL", "phylogeneticDistance": 0, "start": 244, "end": 249},
            {"species": "Mus musculus", "commonName": "Mouse", "position": 245, "aa": "R", "conserved": True,
             "sequenceSnippet": "CMNYRL", "phylogeneticDistance": 0.08, "start": 241, "end": 246},
            {"species": "Danio rerio", "commonName": "Zebrafish", "position": 230, "aa": "R", "conserved": True,
             "sequenceSnippet": "CMNYRL", "phylogeneticDistance": 0.45, "start": 226, "end": 231},
        ],
        "regulatory": [
            {"type": "TFBS", "name": "NF-kB, STAT1", "impactScore": 0.85,
             "description": "Disrupts binding motif for inflammatory regulators."},
        ],
        "clinvar": {
            "id": "VCV000012356",
            "significance": "Pathogenic",
            "reviewStatus": "practice guideline",
            "stars": 4,
            "lastEvaluated": "2024-01-15",
            "phenotypes": ["Li-Fraumeni syndrome", "Hereditary cancer-predisposing syndrome"],
        },
        "omim": {
            "id": "191170",
            "title": "TP53 GENE",
            "inheritance": ["Autosomal Dominant"],
            "phenotypes": ["Li-Fraumeni syndrome", "Multiple cancer types"],
            "url": "https://www.omim.org/entry/191170",
        },
    },
    "CFTR-F508del": {
        "position": "chr7:117199644",
        "proteinLength": 1480,
        "domains": [
            {"name": "TMD1", "start": 70, "end": 388, "type": "Transmembrane"},
            {"name": "NBD1", "start": 389, "end": 678, "type": "Nucleotide Binding"},
            {"name": "R Domain", "start": 679, "end": 830, "type": "Regulatory"},
            {"name": "TMD2", "start": 831, "end": 1197, "type": "Transmembrane"},
            {"name": "NBD2", "start": 1198, "end": 1480, "type": "Nucleotide Binding"},
        ],
        "frequency": {
            "gnomadGlobal": 0.007,
            "populations": {"afr": 0.0003, "amr": 0.004, "eas": 0.0001, "nfe": 0.015, "sas": 0.002},
            "rarityLabel": "Common",
        },
        "conservation": {"phyloP": 3.2, "phastCons": 0.99, "gerp": 4.8},
        "impact": {
            "sift": {"score": 0.0, "prediction": "Deleterious"},
            "polyphen": {"score": 1.0, "prediction": "Probably Damaging"},
            "cadd": 24.5,
            "mutationTaster": "Disease-causing",
            "verdict": "PATHOGENIC",
        },
        "orthologs": [
            {"species": "Homo sapiens", "commonName": "Human", "position": 508, "aa": "F", "conserved": True,
             "sequenceSnippet": "IKGFFG", "phylogeneticDistance": 0, "start": 505, "end": 510},
            {"species": "Mus musculus", "commonName": "Mouse", "position": 508, "aa": "F", "conserved": True,
             "sequenceSnippet": "IKGFFG", "phylogeneticDistance": 0.08, "start": 505, "end": 510},
        ],
        "regulatory": [
            {"type": "CpG Island", "name": "Promoter-associated CpG", "impactScore": 0.05,
             "description": "Minimal effect on gene expression."},
        ],
        "clinvar": {
            "id": "VCV000007892",
            "significance": "Pathogenic",
            "reviewStatus": "reviewed by expert panel",
            "stars": 3,
            "lastEvaluated": "2023-11-01",
            "phenotypes": ["Cystic fibrosis"],
        },
        "omim": {
            "id": "602421",
            "title": "CYSTIC FIBROSIS; CF",
            "inheritance": ["Autosomal Recessive"],
            "phenotypes": ["Pulmonary disease", "Pancreatic insufficiency"],
            "url": "https://www.omim.org/entry/602421",
        },
    },
}
