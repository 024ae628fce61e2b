import gzip
import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .errors import VariantParseError

logger = logging.getLogger(__name__)

PASSING_FILTERS = ("PASS", ".")


def open_maybe_gzip(path: str):
    if str(path).endswith(".gz"):
        return gzip.open(path, "rt")
    return open(path, "r")


class Genotype:
    """
    Genotype call of one sample at one site.

    Holds the allele indices sorted ascending (phasing is irrelevant for
    counting). Missing calls are stored as None and sort first. Works for
    any ploidy; haploid and diploid calls are the common cases.
    """

    __slots__ = ("calls",)

    def __init__(self, calls):
        self.calls = tuple(sorted(calls, key=lambda c: -1 if c is None else c))

    @classmethod
    def parse(cls, gt: str) -> "Genotype":
        calls = []
        for part in gt.replace("|", "/").split("/"):
            if part == ".":
                calls.append(None)
            elif part.isdigit():
                calls.append(int(part))
            else:
                raise ValueError(f"malformed genotype '{gt}'")
        return cls(calls)

    @property
    def ploidy(self) -> int:
        return len(self.calls)

    def alleles(self) -> Iterator[int]:
        """Enumerate the called allele indices, skipping missing calls."""
        return (c for c in self.calls if c is not None)

    @property
    def is_called(self) -> bool:
        """True when every allele of the call is known."""
        return bool(self.calls) and None not in self.calls

    def __eq__(self, other):
        if not isinstance(other, Genotype):
            return NotImplemented
        return self.calls == other.calls

    def __hash__(self):
        return hash(self.calls)

    def __repr__(self):
        return "Genotype({})".format("/".join("." if c is None else str(c) for c in self.calls))


@dataclass(frozen=True)
class VariantRecord:
    chrom: str
    pos: int
    ref: str
    alts: Tuple[str, ...]
    genotypes: Tuple[Genotype, ...]
    filter: str = "."

    @property
    def site(self) -> str:
        return f"{self.chrom}:{self.pos}"

    def is_snv(self) -> bool:
        return len(self.ref) == 1 and all(len(a) == 1 for a in self.alts)


def parse_record(cols: Sequence[str], sample_indices: Sequence[int], line_number=None) -> VariantRecord:
    """
    Build a VariantRecord from the tab-separated columns of one VCF data line.

    ``sample_indices`` are column offsets of the wanted samples, in output order.
    """
    n_required = 8 if not sample_indices else max(sample_indices) + 1
    if len(cols) < max(n_required, 8):
        raise VariantParseError(f"expected at least {max(n_required, 8)} columns, found {len(cols)}", line_number)

    chrom, pos_str, _id, ref, alt = cols[:5]
    try:
        pos = int(pos_str)
    except ValueError:
        raise VariantParseError(f"invalid position '{pos_str}'", line_number) from None
    if pos < 1:
        raise VariantParseError(f"position must be >= 1, got {pos}", line_number)
    if not chrom:
        raise VariantParseError("empty sequence name", line_number)

    alts = tuple(a for a in alt.split(",") if a and a != ".")

    genotypes: List[Genotype] = []
    if sample_indices:
        format_fields = cols[8].split(":")
        if "GT" not in format_fields:
            raise VariantParseError(f"FORMAT has no GT field at {chrom}:{pos}", line_number)
        gt_index = format_fields.index("GT")
        for idx in sample_indices:
            values = cols[idx].split(":")
            gt = values[gt_index] if gt_index < len(values) else "."
            try:
                genotype = Genotype.parse(gt)
            except ValueError as e:
                raise VariantParseError(f"{e} at {chrom}:{pos}", line_number) from None
            if any(a > len(alts) for a in genotype.alleles()):
                raise VariantParseError(
                    f"genotype '{gt}' refers to an undeclared allele at {chrom}:{pos}", line_number
                )
            genotypes.append(genotype)

    return VariantRecord(
        chrom=chrom,
        pos=pos,
        ref=ref,
        alts=alts,
        genotypes=tuple(genotypes),
        filter=cols[6],
    )


class VcfReader:
    """
    Lazy, single-pass reader of a (possibly gzipped) VCF file.

    The ``#CHROM`` header is read on construction and fixes the sample
    order. Malformed data lines are logged, counted in ``parse_errors`` and
    skipped so one bad line does not discard the rest of the file.
    """

    def __init__(self, path, samples: Optional[Sequence[str]] = None, pass_only: bool = False):
        self.path = os.fspath(path)
        self.pass_only = pass_only
        self.parse_errors = 0
        self.filtered = 0
        self.records = 0

        header_cols = self._read_header()
        self._sample_indices = self._select_samples(header_cols, samples)
        self.samples: List[str] = [header_cols[i] for i in self._sample_indices]

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def _read_header(self) -> List[str]:
        with open_maybe_gzip(self.path) as f:
            for line_number, line in enumerate(f, start=1):
                if line.startswith("#CHROM"):
                    return line.rstrip("\r\n").split("\t")
                if line.startswith("#") or not line.strip():
                    continue
                raise ValueError(f"{self.name}: data line {line_number} before the #CHROM header")
        raise ValueError(f"{self.name}: missing #CHROM header line")

    def _select_samples(self, header_cols, samples) -> List[int]:
        available = header_cols[9:]
        if not samples:
            return list(range(9, len(header_cols)))

        indices = []
        for sample in dict.fromkeys(samples):
            if sample not in available:
                raise ValueError(
                    f"Can not find sample '{sample}' in {self.name}; available: {', '.join(available)}"
                )
            indices.append(available.index(sample) + 9)
        return indices

    def __iter__(self) -> Iterator[VariantRecord]:
        with open_maybe_gzip(self.path) as f:
            for line_number, line in enumerate(f, start=1):
                if line.startswith("#") or not line.strip():
                    continue

                cols = line.rstrip("\r\n").split("\t")
                try:
                    record = parse_record(cols, self._sample_indices, line_number)
                except VariantParseError as e:
                    self.parse_errors += 1
                    logger.warning("%s: skipping malformed record, %s", self.name, e)
                    continue

                if self.pass_only and record.filter not in PASSING_FILTERS:
                    self.filtered += 1
                    continue

                self.records += 1
                yield record

        total = self.records + self.filtered
        if self.filtered and total:
            logger.info(
                "%s: skipped %d (%.2f%%) variants due to FILTER != PASS",
                self.name, self.filtered, self.filtered / total * 100,
            )


def save_counts_matrix(counts_df: pd.DataFrame, output) -> None:
    """Write the matrix as TSV; ``-`` writes to standard output."""
    if output == "-":
        counts_df.to_csv(sys.stdout, sep="\t")
    else:
        counts_df.to_csv(output, sep="\t")
