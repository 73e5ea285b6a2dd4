"""Summary command: recompute per-gene statistics from the stored annotated pool."""

import logging
import sys
from pathlib import Path

import click

from tnseq_pipeline.annotation import ANNOTATED_TABLE_NAME
from tnseq_pipeline.config.loader import load_config
from tnseq_pipeline.output import write_summary
from tnseq_pipeline.persistence import PipelineStore
from tnseq_pipeline.summary import (
    DESCRIPTION_HITS_TABLE_NAME,
    FEATURE_HITS_TABLE_NAME,
    summarize,
)

logger = logging.getLogger(__name__)


@click.command('summary')
@click.option(
    '--top-n',
    type=int,
    default=None,
    help='Number of most-hit genes to list (default: summary.top_n from config)'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output.output_dir from config)'
)
@click.pass_context
def summary(ctx, top_n, output_dir):
    """Summarize the annotated pool: hits per gene, per description, central counts.

    Reads annotated_pool from DuckDB (run 'tnseq-pipeline annotate' first),
    so thresholds for the top-N list can be changed without re-annotating.

    Examples:

        tnseq-pipeline summary --top-n 50
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Annotation Summary ===", bold=True))
    click.echo()

    store = None
    try:
        config = load_config(config_path)
        top_n = config.summary.top_n if top_n is None else top_n
        output_dir = Path(output_dir if output_dir is not None else config.output.output_dir)

        store = PipelineStore.from_config(config)
        if not store.has_checkpoint(ANNOTATED_TABLE_NAME):
            click.echo(click.style(
                "Error: annotated_pool table not found. Run 'tnseq-pipeline annotate' first.",
                fg='red'
            ), err=True)
            sys.exit(1)

        annotated = store.load_dataframe(ANNOTATED_TABLE_NAME)
        result = summarize(annotated, top_n=top_n)
        store.save_dataframe(
            result.by_feature,
            FEATURE_HITS_TABLE_NAME,
            description="Distinct barcodes per gene",
        )
        store.save_dataframe(
            result.by_description,
            DESCRIPTION_HITS_TABLE_NAME,
            description="Barcodes per gene description",
        )
        paths = write_summary(result, output_dir)

        click.echo(click.style("Insertions:", bold=True))
        click.echo(f"  Central:     {result.central['central']}")
        click.echo(f"  Non-central: {result.central['non_central']}")
        click.echo(f"  Intergenic:  {result.central['intergenic']}")
        click.echo()

        click.echo(click.style("Genes:", bold=True))
        click.echo(
            f"  Hit: {result.hit_rates['hit_features']}/{result.hit_rates['total_features']} "
            f"({result.hit_rates['hit_rate']:.1%})"
        )
        click.echo(
            f"  Central hit: {result.hit_rates['central_hit_features']} "
            f"({result.hit_rates['central_hit_rate']:.1%})"
        )
        click.echo()

        if result.top.height:
            click.echo(click.style(f"Top {result.top.height} genes by barcodes:", bold=True))
            for row in result.top.iter_rows(named=True):
                click.echo(
                    f"  {row['feature_id']}\t{row['n_barcodes']}\t{row['n_central']}\t{row['desc'] or ''}"
                )
            click.echo()

        for path in paths.values():
            click.echo(click.style(f"  {path}", fg='green'))

    except Exception as e:
        click.echo(click.style(f"Summary command failed: {e}", fg='red'), err=True)
        logger.exception("Summary command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
