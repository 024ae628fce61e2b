import logging
import os
import sys

import click

from . import __version__
from .config import SignatureConfig
from .context import enumerate_keys
from .errors import CountOverflowError, ReferenceLoadError
from .extract import VcfReader, save_counts_matrix
from .matrix_builder import SignatureBuilder
from .reference import ReferenceIndex


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(__version__)
def cli():
    """SNV mutational signature counting tool."""
    pass


@cli.command()
@click.argument('vcf', nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option('--reference', '-r', required=True, type=click.Path(dir_okay=False),
              help='Reference FASTA file (optionally gzipped)')
@click.option('--window', '-w', 'radius', default=0, show_default=True, type=click.IntRange(min=0),
              help='Number of bases to consider up- and downstream of the variant')
@click.option('--ignore-homogeneous', '-i', is_flag=True,
              help='Ignore sites where all samples have the same genotype')
@click.option('--samples', '-s', multiple=True,
              help='Include this sample (defaults to all); can be given multiple times')
@click.option('--collapse-strand', is_flag=True,
              help='Report pyrimidine-centred (C/T) substitutions only, folding in reverse complements')
@click.option('--all-contexts', is_flag=True,
              help='Report every possible context, including unobserved ones')
@click.option('--pass-only', is_flag=True, help='Skip records whose FILTER is not PASS')
@click.option('--out-matrix', '-o', default='-', show_default=True,
              help='Output counts matrix file ("-" for standard output)')
@click.option('--verbose', '-v', count=True, help='Increase log verbosity (-v info, -vv debug)')
def extract(vcf, reference, radius, ignore_homogeneous, samples, collapse_strand, all_contexts,
            pass_only, out_matrix, verbose):
    """Count SNV substitution contexts per sample from VCF files."""
    _setup_logging(verbose)

    for path in vcf:
        if not os.path.exists(path):
            raise click.ClickException(f"VCF file does not exist: {path}")

    config = SignatureConfig(
        radius=radius,
        ignore_homogeneous=ignore_homogeneous,
        collapse_strand=collapse_strand,
        all_contexts=all_contexts,
        pass_only=pass_only,
        samples=samples or None,
    )

    click.echo(f"Loading reference from: {reference} (window: {radius})", err=True)
    try:
        index = ReferenceIndex.load(reference)
    except ReferenceLoadError as e:
        raise click.ClickException(str(e))

    builder = SignatureBuilder(index, config)
    stats = builder.stats

    for path in vcf:
        click.echo(f"Processing {path}...", err=True)
        try:
            reader = VcfReader(path, samples=config.samples, pass_only=config.pass_only)
        except (OSError, ValueError) as e:
            raise click.ClickException(f"Can not open VCF file '{path}': {e}")

        if config.ignore_homogeneous and len(reader.samples) < 2:
            click.echo(f"{path}: only one sample, --ignore-homogeneous has no effect", err=True)

        try:
            builder.add(reader, reader.samples)
        except (OSError, ValueError) as e:
            raise click.ClickException(f"Can not read VCF file '{path}': {e}")
        stats.skip("parse_error", reader.parse_errors)
        stats.skip("filtered", reader.filtered)

    try:
        counts_df = builder.finalize()
    except CountOverflowError as e:
        raise click.ClickException(str(e))

    for line in stats.summary():
        click.echo(line, err=True)

    if counts_df.empty:
        click.echo("No substitutions to count after filtering.", err=True)

    save_counts_matrix(counts_df, out_matrix)
    if out_matrix != '-':
        click.echo(f"Counts matrix saved to: {out_matrix}", err=True)
    click.echo(f"Matrix shape: {counts_df.shape}", err=True)


@cli.command()
@click.option('--window', '-w', 'radius', default=0, show_default=True, type=click.IntRange(min=0),
              help='Number of bases up- and downstream of the substituted base')
@click.option('--collapse-strand', is_flag=True, help='List pyrimidine-centred contexts only')
def contexts(radius, collapse_strand):
    """List every substitution context for a window size."""
    for key in enumerate_keys(radius, collapse_strand):
        click.echo(str(key))


if __name__ == '__main__':
    cli()
