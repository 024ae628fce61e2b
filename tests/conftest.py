import os

import pytest

from snv_signatures import ReferenceIndex

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

VCF_HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT"


def pytest_addoption(parser):
    parser.addoption(
        "--update-vcf-hashes",
        action="store_true",
        default=False,
        help="Print matrix hashes instead of checking them",
    )


@pytest.fixture(scope="session")
def data_dir():
    return DATA_DIR


@pytest.fixture(scope="session")
def output_dir(tmp_path_factory):
    return str(tmp_path_factory.mktemp("matrices"))


@pytest.fixture(scope="session")
def reference_path(data_dir):
    return os.path.join(data_dir, "reference.fa")


@pytest.fixture(scope="session")
def trio_vcf(data_dir):
    return os.path.join(data_dir, "vcfs", "trio.vcf")


@pytest.fixture
def reference():
    #                                   123456789012
    return ReferenceIndex.from_sequences({"chr1": "ACGTAGCTAGCA", "chr2": "acgtNNacgt"})


@pytest.fixture
def write_vcf(tmp_path):
    """Write a VCF with the given samples and data lines, return its path."""

    def _write(samples, rows, name="input.vcf"):
        path = tmp_path / name
        lines = ["##fileformat=VCFv4.2", "\t".join([VCF_HEADER] + list(samples))]
        lines.extend("\t".join(str(c) for c in row) for row in rows)
        path.write_text("\n".join(lines) + "\n")
        return str(path)

    return _write
