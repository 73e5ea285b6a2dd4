"""Annotate command: assign pooled barcodes to the genes they fall in.

Orchestrates the full annotation pipeline:
- Loads and validates the gene-feature table
- Loads the mapped barcode pool
- Matches, classifies and merges (annotate_pool)
- Persists annotated_pool and feature_hits to DuckDB
- Writes the annotated pool and summary files
"""

import logging
import sys
from pathlib import Path

import click

from tnseq_pipeline.annotation import ANNOTATED_TABLE_NAME, annotate_pool
from tnseq_pipeline.config.loader import apply_overrides, load_config
from tnseq_pipeline.features import (
    FEATURES_TABLE_NAME,
    FeatureValidator,
    features_to_dataframe,
    load_features,
)
from tnseq_pipeline.observations import load_pool
from tnseq_pipeline.output import write_annotated_pool, write_summary
from tnseq_pipeline.persistence import PipelineStore, ProvenanceTracker
from tnseq_pipeline.summary import (
    DESCRIPTION_HITS_TABLE_NAME,
    FEATURE_HITS_TABLE_NAME,
    summarize,
)

logger = logging.getLogger(__name__)


def resolve_input(option_value: Path | None, config_value: Path | None, name: str) -> Path:
    """Pick the CLI path over the config path; fail if neither is set or it is missing."""
    path = option_value if option_value is not None else config_value
    if path is None:
        raise click.UsageError(f"No {name} given (use the option or set it in the config)")
    path = Path(path)
    if not path.exists():
        raise click.UsageError(f"{name} not found: {path}")
    return path


@click.command('annotate')
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
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output.output_dir from config)'
)
@click.option(
    '--workers',
    type=int,
    default=None,
    help='Threads for per-scaffold annotation (default: annotation.workers)'
)
@click.option(
    '--central-min',
    type=float,
    default=None,
    help='Lower bound of the central gene region (default: 0.1)'
)
@click.option(
    '--central-max',
    type=float,
    default=None,
    help='Upper bound of the central gene region (default: 0.9)'
)
@click.option(
    '--drop-unmapped',
    is_flag=True,
    help='Drop pool rows without a position instead of failing'
)
@click.option(
    '--force',
    is_flag=True,
    help='Re-annotate even if an annotated_pool checkpoint exists'
)
@click.pass_context
def annotate(ctx, features_path, pool_path, output_dir, workers,
             central_min, central_max, drop_unmapped, force):
    """Annotate a mapped barcode pool with the genes each insertion falls in.

    Each barcode is assigned to at most one gene that contains its position
    (closed interval). Where genes overlap, the one with the smallest begin
    wins, then the smallest locus tag. Insertions between 10% and 90% of the
    gene length are flagged central.

    Supports checkpoint-restart: skips annotation if annotated_pool already
    exists in DuckDB (use --force to re-run).

    Examples:

        # Annotate using paths from the config
        tnseq-pipeline annotate

        # Explicit inputs, four worker threads
        tnseq-pipeline annotate --features genes.tab --pool pool.tab --workers 4

        # Raw pool with pastEnd rows
        tnseq-pipeline annotate --drop-unmapped
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Barcode Pool Annotation ===", bold=True))
    click.echo()

    store = None
    try:
        # Load config with CLI overrides
        click.echo("Loading configuration...")
        config = apply_overrides(load_config(config_path), {
            "annotation.workers": workers,
            "annotation.central_min": central_min,
            "annotation.central_max": central_max,
            "annotation.drop_unmapped": True if drop_unmapped else None,
        })
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo(
            f"  Central region: [{config.annotation.central_min}, {config.annotation.central_max}]"
        )
        click.echo()

        features_path = resolve_input(features_path, config.inputs.feature_table, "feature table")
        pool_path = resolve_input(pool_path, config.inputs.pool_table, "pool table")
        output_dir = Path(output_dir if output_dir is not None else config.output.output_dir)

        click.echo("Initializing storage and provenance tracking...")
        store = PipelineStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)
        click.echo(click.style("  Storage initialized", fg='green'))
        click.echo()

        if store.has_checkpoint(ANNOTATED_TABLE_NAME) and not force:
            click.echo(click.style(
                "annotated_pool checkpoint exists. Skipping annotation (use --force to re-run).",
                fg='yellow'
            ))
            annotated = store.load_dataframe(ANNOTATED_TABLE_NAME)
            if annotated is not None:
                click.echo(f"Annotated rows: {annotated.height}")
                click.echo(f"DuckDB Path: {config.duckdb_path}")
            return

        # Step 1: Feature table
        click.echo(click.style("Step 1: Loading feature table...", bold=True))
        provenance.record_input("feature_table", features_path)
        feature_result = load_features(features_path, strict=config.annotation.strict_features)
        validation = FeatureValidator(
            max_rejected_rate=config.summary.max_rejected_rate
        ).validate(feature_result)
        for message in validation.messages:
            click.echo(f"  {message}")
        if not validation.passed:
            click.echo(click.style("  Feature table failed validation", fg='red'), err=True)
            sys.exit(1)
        click.echo(click.style(
            f"  Loaded {len(feature_result.features)} features on "
            f"{len(feature_result.by_scaffold)} scaffolds",
            fg='green'
        ))
        click.echo()
        provenance.record_step('load_features', {
            'accepted': len(feature_result.features),
            'rejected': len(feature_result.rejected),
            'overlapping': validation.overlapping_features,
            'degenerate': validation.degenerate_features,
        })

        # Step 2: Pool table
        click.echo(click.style("Step 2: Loading barcode pool...", bold=True))
        provenance.record_input("pool_table", pool_path)
        pool = load_pool(pool_path, drop_unmapped=config.annotation.drop_unmapped)
        click.echo(click.style(f"  Loaded {len(pool.observations)} barcodes", fg='green'))
        if pool.dropped_unmapped:
            click.echo(click.style(
                f"  Dropped {pool.dropped_unmapped} rows without a position",
                fg='yellow'
            ))
        click.echo()
        provenance.record_step('load_pool', {
            'observations': len(pool.observations),
            'dropped_unmapped': pool.dropped_unmapped,
        })

        # Step 3: Annotate
        click.echo(click.style("Step 3: Annotating insertions...", bold=True))
        run = annotate_pool(
            pool,
            feature_result,
            central_min=config.annotation.central_min,
            central_max=config.annotation.central_max,
            workers=config.annotation.workers,
        )
        stats = run.stats()
        click.echo(click.style(
            f"  Matched: {stats['matched']}, intergenic: {stats['intergenic']}, "
            f"central: {stats['central']}, unhit genes: {stats['unhit_features']}",
            fg='green'
        ))
        if stats['ambiguous']:
            click.echo(f"  Barcodes inside overlapping genes: {stats['ambiguous']}")
        for scaffold, count in sorted(stats['missing_scaffolds'].items()):
            click.echo(click.style(
                f"  Scaffold {scaffold} has no features ({count} barcodes intergenic)",
                fg='yellow'
            ))
        click.echo()
        provenance.record_step('annotate_pool', stats)

        # Step 4: Summaries and persistence
        click.echo(click.style("Step 4: Saving to DuckDB...", bold=True))
        summary = summarize(run.annotated, top_n=config.summary.top_n)
        store.save_dataframe(
            features_to_dataframe(feature_result.features),
            FEATURES_TABLE_NAME,
            description="Accepted gene features",
        )
        store.save_dataframe(
            run.annotated,
            ANNOTATED_TABLE_NAME,
            description="Annotated barcode pool including zero-hit genes",
        )
        store.save_dataframe(
            summary.by_feature,
            FEATURE_HITS_TABLE_NAME,
            description="Distinct barcodes per gene",
        )
        store.save_dataframe(
            summary.by_description,
            DESCRIPTION_HITS_TABLE_NAME,
            description="Barcodes per gene description",
        )
        click.echo(click.style(f"  DuckDB Path: {config.duckdb_path}", fg='green'))
        click.echo()

        # Step 5: Output files
        click.echo(click.style("Step 5: Writing output files...", bold=True))
        pool_paths = write_annotated_pool(
            run.annotated,
            output_dir,
            write_parquet=config.output.write_parquet,
        )
        summary_paths = write_summary(summary, output_dir)
        for path in [pool_paths['tsv'], pool_paths['parquet'], *summary_paths.values()]:
            if path is not None:
                click.echo(click.style(f"  {path}", fg='green'))
        click.echo()
        provenance.record_step('write_output', {
            'output_dir': str(output_dir),
            'annotated_pool': str(pool_paths['tsv']),
        })

        provenance_path = provenance.save_sidecar(output_dir / "annotate")
        provenance.save_to_store(store)

        click.echo(click.style("=== Summary ===", bold=True))
        click.echo(f"Genes hit: {summary.hit_rates['hit_features']}/{summary.hit_rates['total_features']} "
                   f"({summary.hit_rates['hit_rate']:.1%})")
        click.echo(f"Genes with central hits: {summary.hit_rates['central_hit_features']} "
                   f"({summary.hit_rates['central_hit_rate']:.1%})")
        click.echo(f"Provenance: {provenance_path}")
        click.echo()
        click.echo(click.style("Annotation complete!", fg='green', bold=True))

    except click.UsageError:
        raise
    except Exception as e:
        click.echo(click.style(f"Annotate command failed: {e}", fg='red'), err=True)
        logger.exception("Annotate command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
