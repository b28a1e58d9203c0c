"""cluster-policies: pluggable numeric policies for clustering pipelines.

Two independent families of pure, thread-safe strategies:

* **Linkage policies** — the Lance–Williams merge updates an
  agglomerative hierarchical clustering driver calls after every merge
  (single, complete, UPGMA, WPGMA, UPGMC, WPGMC, Ward, flexible-β).
* **Eigenpair filters** — split a descending covariance spectrum into
  strong (signal) and weak (noise) eigenpairs for subspace and
  correlation clustering (percentage, first-n, limit, relative,
  significant-drop).

Distance matrices, eigendecomposition and dendrogram bookkeeping belong
to the calling pipeline.
"""
from .exceptions import (
    PolicyError, InvalidParameter, ConfigurationError,
    PreconditionViolation, DegenerateInput,
)
from .parameters import (
    ParameterRegistry, DEFAULT_PARAMETERS, DEFAULT_ALPHA,
    validate_alpha, validate_parameter,
)

# Linkage policies
from .linkage import (
    LanceWilliamsCoefficients, lance_williams, Linkage,
    SingleLinkage, CompleteLinkage, GroupAverageLinkage,
    WeightedAverageLinkage, CentroidLinkage, MedianLinkage,
    WardLinkage, FlexibleBetaLinkage,
    LINKAGES, get_linkage, build_linkage, update_distances,
)

# Eigenpair filters
from .eigenpairs import EigenPair, SortedEigenPairs, FilteredEigenPairs, check_descending
from .filters import (
    EigenPairFilter, PercentageEigenPairFilter, FirstNEigenPairFilter,
    LimitEigenPairFilter, RelativeEigenPairFilter, SignificantEigenPairFilter,
    FILTERS, build_filter, percentage_split,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "PolicyError", "InvalidParameter", "ConfigurationError",
    "PreconditionViolation", "DegenerateInput",
    # Configuration
    "ParameterRegistry", "DEFAULT_PARAMETERS", "DEFAULT_ALPHA",
    "validate_alpha", "validate_parameter",
    # Linkage policies
    "LanceWilliamsCoefficients", "lance_williams", "Linkage",
    "SingleLinkage", "CompleteLinkage", "GroupAverageLinkage",
    "WeightedAverageLinkage", "CentroidLinkage", "MedianLinkage",
    "WardLinkage", "FlexibleBetaLinkage",
    "LINKAGES", "get_linkage", "build_linkage", "update_distances",
    # Eigenpair filters
    "EigenPair", "SortedEigenPairs", "FilteredEigenPairs", "check_descending",
    "EigenPairFilter", "PercentageEigenPairFilter", "FirstNEigenPairFilter",
    "LimitEigenPairFilter", "RelativeEigenPairFilter", "SignificantEigenPairFilter",
    "FILTERS", "build_filter", "percentage_split",
]
