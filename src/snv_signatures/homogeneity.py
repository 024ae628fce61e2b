from typing import Sequence

from .extract import Genotype, VariantRecord


def is_homogeneous(genotypes: Sequence[Genotype]) -> bool:
    """
    True when every fully called sample carries the same genotype.

    Samples with a missing allele (``./.``, ``0/.``) take no part in the
    comparison, which keeps the answer independent of sample order. At
    least two called samples are needed; with fewer there is nothing to
    compare and the site is never reported as homogeneous.
    """
    called = [gt for gt in genotypes if gt.is_called]
    if len(called) < 2:
        return False
    first = called[0]
    return all(gt == first for gt in called[1:])


class HomogeneityFilter:
    """Per-site veto of variants that look the same in every sample."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.excluded = 0

    def is_homogeneous(self, variant: VariantRecord) -> bool:
        return is_homogeneous(variant.genotypes)

    def excludes(self, variant: VariantRecord) -> bool:
        if not self.enabled or not self.is_homogeneous(variant):
            return False
        self.excluded += 1
        return True
