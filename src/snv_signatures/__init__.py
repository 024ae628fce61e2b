"""SNV mutational signature counting package."""

__version__ = "0.1.0"

from .config import SignatureConfig
from .context import ContextKey, ContextResolver, enumerate_keys
from .errors import (
    AccumulatorFinalizedError,
    CountOverflowError,
    ReferenceLoadError,
    SignatureError,
    VariantParseError,
)
from .extract import Genotype, VariantRecord, VcfReader, save_counts_matrix
from .homogeneity import HomogeneityFilter, is_homogeneous
from .matrix_builder import SignatureAccumulator, SignatureBuilder, SkipStats, build_signature_matrix, count_variants
from .reference import ReferenceIndex

__all__ = [
    'SignatureConfig',
    'ContextKey',
    'ContextResolver',
    'enumerate_keys',
    'AccumulatorFinalizedError',
    'CountOverflowError',
    'ReferenceLoadError',
    'SignatureError',
    'VariantParseError',
    'Genotype',
    'VariantRecord',
    'VcfReader',
    'save_counts_matrix',
    'HomogeneityFilter',
    'is_homogeneous',
    'SignatureAccumulator',
    'SignatureBuilder',
    'SkipStats',
    'build_signature_matrix',
    'count_variants',
    'ReferenceIndex',
]
