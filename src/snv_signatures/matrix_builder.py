import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import SignatureConfig
from .context import ContextKey, ContextResolver, enumerate_keys
from .errors import AccumulatorFinalizedError, CountOverflowError
from .extract import VariantRecord
from .homogeneity import HomogeneityFilter
from .reference import ReferenceIndex

logger = logging.getLogger(__name__)

INDEX_NAME = "Variant"

SKIP_REASONS = (
    "parse_error",
    "filtered",
    "non_snv",
    "no_alternative",
    "unknown_sequence",
    "boundary",
    "ambiguous_base",
    "reference_mismatch",
    "homogeneous",
)

_INT64_MAX = np.iinfo(np.int64).max


class AccumulatorState(enum.Enum):
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


@dataclass
class SkipStats:
    """Tally of processed records and of the reasons records were skipped."""

    processed: int = 0
    counted: int = 0
    skipped: Counter = field(default_factory=Counter)

    def skip(self, reason: str, n: int = 1) -> None:
        if reason not in SKIP_REASONS:
            raise ValueError(f"unknown skip reason '{reason}'")
        self.skipped[reason] += n

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    def summary(self) -> List[str]:
        lines = [f"Processed {self.processed} records, counted {self.counted} alleles"]
        for reason in SKIP_REASONS:
            if self.skipped[reason]:
                lines.append(f"  skipped ({reason}): {self.skipped[reason]}")
        return lines


class SignatureAccumulator:
    """
    Dense per-sample count matrix over substitution-context keys.

    Samples keep the order in which they were first seen; keys are sorted by
    their literal encoding when the matrix is finalized. Every sample gets a
    value for every key observed in any sample, unobserved combinations
    being 0.
    """

    def __init__(self, samples: Optional[Iterable[str]] = None, keys: Optional[Iterable[ContextKey]] = None):
        self._counts: Dict[str, Counter] = {}
        self._keys = set(keys) if keys is not None else set()
        self.state = AccumulatorState.ACCUMULATING
        self._matrix: Optional[pd.DataFrame] = None
        for sample in samples or ():
            self.register_sample(sample)

    @property
    def samples(self) -> List[str]:
        return list(self._counts)

    @property
    def keys(self) -> List[ContextKey]:
        return sorted(self._keys, key=str)

    def _check_open(self):
        if self.state is AccumulatorState.FINALIZED:
            raise AccumulatorFinalizedError("matrix has already been finalized")

    def register_sample(self, sample_id: str) -> None:
        self._check_open()
        if sample_id not in self._counts:
            self._counts[sample_id] = Counter()

    def record(self, sample_id: str, key: ContextKey, n: int = 1) -> None:
        """Add ``n`` to the count of ``key`` for ``sample_id``."""
        self._check_open()
        if n < 0:
            raise ValueError("counts can only grow")
        if sample_id not in self._counts:
            self._counts[sample_id] = Counter()
        self._counts[sample_id][key] += n
        self._keys.add(key)

    def count(self, sample_id: str, key: ContextKey) -> int:
        row = self._counts.get(sample_id)
        if row is None:
            return 0
        return row[key]

    def merge(self, other: "SignatureAccumulator") -> None:
        """Fold the counts of another (sharded) accumulator into this one."""
        self._check_open()
        for sample_id, row in other._counts.items():
            self.register_sample(sample_id)
            self._counts[sample_id].update(row)
        self._keys.update(other._keys)

    def finalize(self) -> pd.DataFrame:
        """
        Freeze the accumulator and return the count matrix.

        Returns
        -------
        pandas.DataFrame
            - index: keys such as ``CTA>CGA``, sorted, named ``Variant``
            - columns: samples in first-seen order
            - entries: int64 counts
        """
        if self.state is AccumulatorState.FINALIZED:
            return self._matrix

        keys = self.keys
        labels = [str(k) for k in keys]
        samples = self.samples

        values = np.zeros((len(keys), len(samples)), dtype=np.int64)
        for j, sample_id in enumerate(samples):
            row = self._counts[sample_id]
            for i, key in enumerate(keys):
                c = row.get(key, 0)
                if c > _INT64_MAX:
                    raise CountOverflowError(f"count for {sample_id} / {key} exceeds {_INT64_MAX}")
                values[i, j] = c

        matrix = pd.DataFrame(values, index=pd.Index(labels, name=INDEX_NAME), columns=samples)
        self._matrix = matrix
        self.state = AccumulatorState.FINALIZED
        return matrix


def count_variants(
    records: Iterable[VariantRecord],
    samples: Sequence[str],
    resolver: ContextResolver,
    accumulator: SignatureAccumulator,
    homogeneity: Optional[HomogeneityFilter] = None,
    stats: Optional[SkipStats] = None,
) -> SkipStats:
    """
    Stream variant records into the accumulator.

    Records are consumed one at a time and not retained. Genotypes of each
    record must follow the order of ``samples``.
    """
    if len(set(samples)) != len(samples):
        raise ValueError(f"duplicate sample names in {list(samples)}")
    stats = stats if stats is not None else SkipStats()
    for sample_id in samples:
        accumulator.register_sample(sample_id)

    for record in records:
        stats.processed += 1

        if homogeneity is not None and homogeneity.excludes(record):
            stats.skip("homogeneous")
            logger.debug("Skipping homogeneous site %s", record.site)
            continue

        resolution = resolver.resolve(record)
        if resolution.reason is not None:
            stats.skip(resolution.reason)
            logger.debug("Skipping %s: %s", record.site, resolution.reason)
            continue

        for sample_id, genotype in zip(samples, record.genotypes):
            for allele in genotype.alleles():
                if allele == 0:
                    continue
                key = resolution.keys.get(allele)
                if key is None:
                    continue
                accumulator.record(sample_id, key)
                stats.counted += 1

    return stats


def make_accumulator(samples: Sequence[str] = (), config: Optional[SignatureConfig] = None) -> SignatureAccumulator:
    config = config or SignatureConfig()
    keys = enumerate_keys(config.radius, config.collapse_strand) if config.all_contexts else None
    return SignatureAccumulator(samples, keys=keys)


class SignatureBuilder:
    """
    One counting run: resolver, homogeneity filter, accumulator and skip tally
    wired from a SignatureConfig. Several record streams (e.g. one per VCF)
    can be added before the matrix is finalized.
    """

    def __init__(self, reference: ReferenceIndex, config: Optional[SignatureConfig] = None):
        self.config = config or SignatureConfig()
        self.resolver = ContextResolver(reference, self.config.radius, collapse_strand=self.config.collapse_strand)
        self.homogeneity = HomogeneityFilter(enabled=self.config.ignore_homogeneous)
        self.accumulator = make_accumulator(config=self.config)
        self.stats = SkipStats()

    def add(self, records: Iterable[VariantRecord], samples: Sequence[str]) -> SkipStats:
        if self.config.ignore_homogeneous and len(samples) < 2:
            logger.info("Only %d sample(s); ignoring homogeneous sites has no effect", len(samples))
        return count_variants(records, samples, self.resolver, self.accumulator, self.homogeneity, self.stats)

    def finalize(self) -> pd.DataFrame:
        return self.accumulator.finalize()


def build_signature_matrix(
    records: Iterable[VariantRecord],
    reference: ReferenceIndex,
    samples: Sequence[str],
    config: Optional[SignatureConfig] = None,
) -> Tuple[pd.DataFrame, SkipStats]:
    """
    Count substitution contexts per sample from a stream of variant records.

    Parameters
    ----------
    records : iterable of VariantRecord
        Consumed lazily in a single pass.
    reference : ReferenceIndex
        Reference the record coordinates refer to.
    samples : sequence of str
        Sample names matching the genotype order of the records.
    config : SignatureConfig, optional
        Window radius, homogeneity filtering and key options.

    Returns
    -------
    (pandas.DataFrame, SkipStats)
        The finalized matrix (keys x samples) and the skip tally.
    """
    builder = SignatureBuilder(reference, config)
    builder.add(records, samples)
    return builder.finalize(), builder.stats
