import itertools

import pytest

from snv_signatures import Genotype, HomogeneityFilter, VariantRecord, is_homogeneous


def site(*genotypes):
    return VariantRecord(
        chrom="chr1",
        pos=8,
        ref="T",
        alts=("G", "C"),
        genotypes=tuple(Genotype.parse(g) for g in genotypes),
    )


def test_single_sample_is_never_homogeneous():
    assert not is_homogeneous([Genotype.parse("1/1")])
    assert not HomogeneityFilter(enabled=True).excludes(site("0/1"))


def test_no_samples():
    assert not is_homogeneous([])


def test_identical_calls():
    assert HomogeneityFilter().is_homogeneous(site("0/1", "1|0", "0/1"))


def test_differing_calls():
    assert not HomogeneityFilter().is_homogeneous(site("0/1", "0/1", "0/0"))
    assert not HomogeneityFilter().is_homogeneous(site("0/1", "0/2"))


def test_missing_calls_are_left_out():
    assert HomogeneityFilter().is_homogeneous(site("0/1", "./.", "0/1"))
    assert HomogeneityFilter().is_homogeneous(site("0/.", "1/1", "1/1"))


def test_missing_calls_with_one_called_sample():
    assert not HomogeneityFilter().is_homogeneous(site("./.", "0/1"))
    assert not HomogeneityFilter().is_homogeneous(site("./.", "./."))


@pytest.mark.parametrize(
    "genotypes, expected",
    [
        (("./.", "0/1", "1/1"), False),
        (("0/.", "0/1", "0/0"), False),
        (("./.", "0/1", "0/1"), True),
        (("./.", "1/.", "1/1", "1/1"), True),
        (("0/1", "0/1", "0/0"), False),
    ],
)
def test_independent_of_sample_order(genotypes, expected):
    for order in itertools.permutations(genotypes):
        assert HomogeneityFilter().is_homogeneous(site(*order)) is expected, order


def test_mixed_ploidy_is_not_homogeneous():
    assert not HomogeneityFilter().is_homogeneous(site("1", "1/1"))


def test_disabled_filter_never_excludes():
    flt = HomogeneityFilter(enabled=False)

    assert not flt.excludes(site("0/1", "0/1"))
    assert flt.excluded == 0


def test_excluded_counter():
    flt = HomogeneityFilter(enabled=True)

    assert flt.excludes(site("0/1", "0/1"))
    assert not flt.excludes(site("0/1", "1/1"))
    assert flt.excluded == 1
