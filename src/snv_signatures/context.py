import itertools
import logging
from typing import Dict, Iterator, NamedTuple, Optional

from .extract import VariantRecord
from .reference import ReferenceIndex

logger = logging.getLogger(__name__)

NUCLEOTIDES = "ACGT"
PYRIMIDINES = "CT"

_COMPLEMENT = str.maketrans("ACGT", "TGCA")


def reverse_complement(seq: str) -> str:
    return seq.translate(_COMPLEMENT)[::-1]


class ContextKey(NamedTuple):
    """
    Reference context and the same context carrying the substituted base.

    ``str(key)`` gives the literal encoding used in output, e.g. ``CTA>CGA``
    for a T>G substitution between C and A, or ``T>G`` without flanks.
    """

    context: str
    mutated: str

    @classmethod
    def build(cls, context: str, alternative: str) -> "ContextKey":
        centre = len(context) // 2
        return cls(context, context[:centre] + alternative + context[centre + 1:])

    @property
    def radius(self) -> int:
        return len(self.context) // 2

    @property
    def reference_base(self) -> str:
        return self.context[self.radius]

    @property
    def alternative(self) -> str:
        return self.mutated[self.radius]

    def collapsed(self) -> "ContextKey":
        """Return the pyrimidine-centred equivalent of this key."""
        if self.reference_base in PYRIMIDINES:
            return self
        return ContextKey(reverse_complement(self.context), reverse_complement(self.mutated))

    def __str__(self):
        return f"{self.context}>{self.mutated}"


def enumerate_keys(radius: int, collapse_strand: bool = False) -> Iterator[ContextKey]:
    """Yield every possible key for a window radius, in output order."""
    references = PYRIMIDINES if collapse_strand else NUCLEOTIDES
    for upstream in itertools.product(NUCLEOTIDES, repeat=radius):
        for ref in references:
            for downstream in itertools.product(NUCLEOTIDES, repeat=radius):
                context = "".join(upstream) + ref + "".join(downstream)
                for alt in NUCLEOTIDES:
                    if alt != ref:
                        yield ContextKey.build(context, alt)


class Resolution(NamedTuple):
    """
    Outcome of resolving one record.

    ``keys`` maps ALT allele index (1-based, as in genotypes) to its key;
    alleles that cannot be classified are absent. ``reason`` names why the
    whole record was skipped and is None when it was resolved.
    """

    keys: Dict[int, ContextKey]
    reason: Optional[str] = None


class ContextResolver:
    """
    Derive substitution-context keys for variant records.

    The window ``[pos - radius, pos + radius]`` is fetched all-or-nothing;
    a window that runs past either end of the sequence, an unknown sequence
    or any base outside ACGT (after upper-casing) makes the record
    unresolvable.
    """

    def __init__(self, reference: ReferenceIndex, radius: int = 0, collapse_strand: bool = False):
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")
        self.reference = reference
        self.radius = radius
        self.collapse_strand = collapse_strand

    def context(self, chrom: str, pos: int) -> Optional[str]:
        window = self.reference.fetch(chrom, pos - self.radius, pos + self.radius)
        if window is None:
            return None
        return window.upper()

    def resolve(self, variant: VariantRecord) -> Resolution:
        if not variant.is_snv():
            return Resolution({}, "non_snv")
        if not variant.alts:
            return Resolution({}, "no_alternative")

        if variant.chrom not in self.reference:
            return Resolution({}, "unknown_sequence")
        context = self.context(variant.chrom, variant.pos)
        if context is None:
            return Resolution({}, "boundary")
        if any(base not in NUCLEOTIDES for base in context):
            return Resolution({}, "ambiguous_base")

        ref = variant.ref.upper()
        if context[self.radius] != ref:
            logger.warning(
                "Reference base %s at %s does not match the record's REF %s",
                context[self.radius], variant.site, ref,
            )
            return Resolution({}, "reference_mismatch")

        keys = {}
        for index, alt in enumerate(variant.alts, start=1):
            alt = alt.upper()
            if alt not in NUCLEOTIDES or alt == ref:
                logger.debug("No substitution class for ALT %s at %s", alt, variant.site)
                continue
            key = ContextKey.build(context, alt)
            keys[index] = key.collapsed() if self.collapse_strand else key

        if not keys:
            return Resolution({}, "no_alternative")
        return Resolution(keys)
