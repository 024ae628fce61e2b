from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class SignatureConfig:
    """
    Settings of one counting run.

    radius : int
        Number of flanking bases on each side of the variant; 0 counts
        bare substitutions such as ``T>G``.
    ignore_homogeneous : bool
        Drop sites where all samples share the same genotype call.
    collapse_strand : bool
        Report pyrimidine-centred keys, folding purine substitutions onto
        their reverse complement.
    all_contexts : bool
        Emit every possible key for the radius, not only the observed ones.
    pass_only : bool
        Skip records whose FILTER is not PASS.
    samples : tuple of str, optional
        Restrict counting to these samples, in this order.
    """

    radius: int = 0
    ignore_homogeneous: bool = False
    collapse_strand: bool = False
    all_contexts: bool = False
    pass_only: bool = False
    samples: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        if isinstance(self.radius, bool) or not isinstance(self.radius, int):
            raise ValueError(f"radius must be an integer, got {self.radius!r}")
        if self.radius < 0:
            raise ValueError(f"radius must be non-negative, got {self.radius}")
        if self.samples is not None:
            object.__setattr__(self, "samples", tuple(dict.fromkeys(self.samples)))
