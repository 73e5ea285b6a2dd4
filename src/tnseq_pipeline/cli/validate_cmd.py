"""Validate command: check both input tables before annotating."""

import logging
import sys
from pathlib import Path

import click

from tnseq_pipeline.cli.annotate_cmd import resolve_input
from tnseq_pipeline.config.loader import load_config
from tnseq_pipeline.errors import ParseError
from tnseq_pipeline.features import FeatureValidator, load_features
from tnseq_pipeline.observations import load_pool

logger = logging.getLogger(__name__)


@click.command('validate')
@click.option(
    '--features',
    'features_path',
    type=click.Path(path_type=Path),
    default=None,
    help='Gene-feature table (default: inputs.feature_table from config)'
)
@click.option(
    '--pool',
    'pool_path',
    type=click.Path(path_type=Path),
    default=None,
    help='Mapped barcode pool table (default: inputs.pool_table from config)'
)
@click.option(
    '--rejected-report',
    type=click.Path(path_type=Path),
    default=None,
    help='Write rejected feature rows to this file'
)
@click.pass_context
def validate(ctx, features_path, pool_path, rejected_report):
    """Validate the feature and pool tables without annotating.

    Reports rejected feature rows (empty scaffold, begin > end), duplicate
    locus tags, zero-length and overlapping features, and any malformed pool
    row. Exits with status 1 if either table fails.
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Input Validation ===", bold=True))
    click.echo()

    try:
        config = load_config(config_path)
        features_path = resolve_input(features_path, config.inputs.feature_table, "feature table")
        pool_path = resolve_input(pool_path, config.inputs.pool_table, "pool table")

        passed = True

        click.echo(click.style(f"Feature table: {features_path}", bold=True))
        try:
            feature_result = load_features(features_path)
        except ParseError as e:
            click.echo(click.style(f"  FAILED: {e}", fg='red'))
            passed = False
        else:
            validator = FeatureValidator(max_rejected_rate=config.summary.max_rejected_rate)
            result = validator.validate(feature_result)
            for message in result.messages:
                click.echo(f"  {message}")
            passed = passed and result.passed
            if rejected_report is not None and feature_result.rejected:
                validator.save_rejected_report(feature_result, rejected_report)
                click.echo(f"  Rejected rows saved to {rejected_report}")
        click.echo()

        click.echo(click.style(f"Pool table: {pool_path}", bold=True))
        try:
            pool = load_pool(pool_path, drop_unmapped=config.annotation.drop_unmapped)
        except ParseError as e:
            click.echo(click.style(f"  FAILED: {e}", fg='red'))
            passed = False
        else:
            click.echo(f"  PASSED: {len(pool.observations)} barcodes")
            if pool.dropped_unmapped:
                click.echo(f"  {pool.dropped_unmapped} rows without a position would be dropped")
        click.echo()

        if passed:
            click.echo(click.style("Validation PASSED", fg='green', bold=True))
        else:
            click.echo(click.style("Validation FAILED", fg='red', bold=True), err=True)
            sys.exit(1)

    except click.UsageError:
        raise
    except Exception as e:
        click.echo(click.style(f"Validate command failed: {e}", fg='red'), err=True)
        logger.exception("Validate command failed")
        sys.exit(1)
