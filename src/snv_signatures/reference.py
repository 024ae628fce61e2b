import logging
import os
import re
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from Bio import SeqIO

from .errors import ReferenceLoadError
from .extract import open_maybe_gzip

logger = logging.getLogger(__name__)

_SEQUENCE = re.compile(r"^[A-Za-z*\-]+$")


def parse_fasta(handle: Iterable[str]) -> Dict[str, str]:
    """
    Parse FASTA text into ``{name: sequence}``.

    The name is the record id (first word of the header line). Bases are
    kept exactly as written, soft-masked lowercase included.
    """
    sequences: Dict[str, str] = {}
    try:
        for record in SeqIO.parse(handle, "fasta"):
            name = record.id
            sequence = str(record.seq)
            if not name:
                raise ReferenceLoadError("FASTA header without a sequence name")
            if name in sequences:
                raise ReferenceLoadError(f"duplicate sequence name '{name}'")
            if not sequence:
                raise ReferenceLoadError(f"sequence '{name}' has no bases")
            if not _SEQUENCE.match(sequence):
                raise ReferenceLoadError(f"invalid characters in sequence '{name}'")
            sequences[name] = sequence
    except ValueError as e:
        raise ReferenceLoadError(f"malformed FASTA: {e}") from e

    if not sequences:
        raise ReferenceLoadError("reference contains no sequences")
    return sequences


class ReferenceIndex:
    """
    Read-only, in-memory index of named reference sequences.

    Positions are 1-based: position ``p`` maps to offset ``p - 1`` and
    anything outside ``[1, length]`` is unresolvable. Sequence names are
    matched exactly; "chr1" and "1" are different sequences.
    """

    def __init__(self, sequences: Mapping[str, str]):
        self._sequences = MappingProxyType(dict(sequences))

    @classmethod
    def from_sequences(cls, sequences: Mapping[str, str]) -> "ReferenceIndex":
        if not sequences:
            raise ReferenceLoadError("reference contains no sequences")
        return cls(sequences)

    @classmethod
    def load(cls, source) -> "ReferenceIndex":
        """
        Load a FASTA reference from a path (optionally gzipped) or an open text handle.

        Raises
        ------
        ReferenceLoadError
            If the source cannot be read, holds no sequence or is malformed.
        """
        if isinstance(source, (str, os.PathLike)):
            label = os.fspath(source)
            try:
                with open_maybe_gzip(label) as handle:
                    sequences = parse_fasta(handle)
            except (OSError, UnicodeDecodeError, EOFError) as e:
                raise ReferenceLoadError(f"Can not read reference '{label}': {e}") from e
        else:
            label = getattr(source, "name", "<stream>")
            try:
                sequences = parse_fasta(source)
            except (OSError, EOFError) as e:
                raise ReferenceLoadError(f"Can not read reference '{label}': {e}") from e

        total = sum(len(s) for s in sequences.values())
        logger.info("Loaded %d reference sequences (%d bases) from %s", len(sequences), total, label)
        return cls(sequences)

    @property
    def names(self):
        return list(self._sequences)

    def __contains__(self, name) -> bool:
        return name in self._sequences

    def __len__(self) -> int:
        return len(self._sequences)

    def length(self, name: str) -> Optional[int]:
        sequence = self._sequences.get(name)
        if sequence is None:
            return None
        return len(sequence)

    def get_base(self, name: str, position: int) -> Optional[str]:
        """Return the base at a 1-based position, or None when it cannot be resolved."""
        sequence = self._sequences.get(name)
        if sequence is None or position < 1 or position > len(sequence):
            return None
        return sequence[position - 1]

    def fetch(self, name: str, start: int, end: int) -> Optional[str]:
        """
        Return bases ``start..end`` (1-based, inclusive).

        The window is all-or-nothing: if any position falls outside the
        sequence, or the sequence is unknown, None is returned rather than a
        truncated string.
        """
        sequence = self._sequences.get(name)
        if sequence is None or start < 1 or end > len(sequence) or start > end:
            return None
        return sequence[start - 1:end]
