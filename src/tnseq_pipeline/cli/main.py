"""Main CLI entry point for tnseq-pipeline.

Provides command group with global options and subcommands for pipeline operations.
"""

import logging
from pathlib import Path

import click

from tnseq_pipeline import __version__
from tnseq_pipeline.config.loader import load_config
from tnseq_pipeline.cli.annotate_cmd import annotate
from tnseq_pipeline.cli.summary_cmd import summary
from tnseq_pipeline.cli.validate_cmd import validate


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """tnseq-pipeline: Annotate mapped transposon-insertion barcodes with the genes they hit.

    Assigns each barcode position to at most one containing gene, flags
    insertions in the central 80% of the gene, and summarizes hits per gene.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"tnseq-pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Inputs:", bold=True))
        click.echo(f"  Feature Table: {config.inputs.feature_table}")
        click.echo(f"  Pool Table:    {config.inputs.pool_table}")
        click.echo()

        click.echo(click.style("Annotation:", bold=True))
        click.echo(
            f"  Central Region: [{config.annotation.central_min}, {config.annotation.central_max}]"
        )
        click.echo(f"  Workers:        {config.annotation.workers}")
        click.echo(f"  Drop Unmapped:  {config.annotation.drop_unmapped}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Data Directory:   {config.data_dir}")
        click.echo(f"  Output Directory: {config.output.output_dir}")
        click.echo(f"  DuckDB Path:      {config.duckdb_path}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


# Register commands
cli.add_command(annotate)
cli.add_command(summary)
cli.add_command(validate)


if __name__ == '__main__':
    cli()
