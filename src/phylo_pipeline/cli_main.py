"""
Command-line interface for the phylogenetic batch pipeline.

Each stage has its own command; ``auto`` runs all of them in order.
"""

import sys
import time
import functools
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from .core.exceptions import PipelineError
from .core.types import InputFormat
from .config.settings import Settings, create_environment_config
from .inference import (
    GeneTreeBatch,
    build_species_tree,
    estimate_concordance_factor,
    estimate_msc_tree,
    run_full_pipeline,
)
from .utils.dependencies import check_dependencies, write_astral_wrapper
from .utils.logging import setup_logging, log_execution_time

console = Console(stderr=True)

dir_option = click.option(
    '--dir', '-d', 'input_dir', required=True,
    type=click.Path(exists=True, file_okay=False),
    help='Directory containing the locus alignments',
)
format_option = click.option(
    '--input-format', '-f',
    type=click.Choice([fmt.value for fmt in InputFormat]),
    default=InputFormat.NEXUS.value, show_default=True,
    help='Alignment format',
)


def handle_errors(func):
    """Decorator to turn fatal pipeline errors into a clean exit."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PipelineError as e:
            logger.error(str(e))
            console.print(f"[red]Error: {e.message}[/red]")
            sys.exit(1)
    return wrapper


def spinner(message: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
    progress.add_task(message, total=None)
    return progress


@click.group()
@click.version_option(package_name='phylo-pipeline')
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False), help='Configuration file path')
@click.option('--env', type=click.Choice(['development', 'production']), default='production', help='Environment')
@click.option('--work-dir', '-w', type=click.Path(file_okay=False), help='Directory for all outputs')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Write the run log to this file')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config, env, work_dir, log_file, debug):
    """
    Phylo Pipeline - batch phylogenomic tree building with IQ-TREE and ASTRAL.
    """
    ctx.ensure_object(dict)

    if config:
        settings = Settings.load_config(Path(config), work_dir=work_dir)
    else:
        settings = create_environment_config(env, work_dir=work_dir)

    if debug:
        settings.debug = True
        settings.logging.level = "DEBUG"
    if log_file:
        settings.logging.log_file = Path(log_file)

    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.log_file,
        format_string=settings.logging.format,
    )
    ctx.obj['settings'] = settings

    started = time.perf_counter()
    ctx.call_on_close(lambda: log_execution_time(time.perf_counter() - started))


@cli.command()
@dir_option
@click.option('--species-params', help='IQ-TREE arguments replacing the species tree defaults')
@click.option('--gene-params', help='IQ-TREE arguments replacing the gene tree defaults')
@format_option
@click.pass_context
@handle_errors
def auto(ctx, input_dir, species_params, gene_params, input_format):
    """Run species tree, gene trees, concordance factors and MSC tree."""
    settings = ctx.obj['settings']
    summary = run_full_pipeline(
        input_dir,
        species_params=species_params,
        gene_params=gene_params,
        input_format=InputFormat(input_format),
        settings=settings,
    )
    click.echo(
        f"Gene trees: {summary.trees_written}/{summary.total_jobs} written to "
        f"{summary.collection_file}"
    )


@cli.command()
@dir_option
@click.option('--params', '-p', help='IQ-TREE arguments replacing the defaults (-T 1 -B 1000)')
@click.pass_context
@handle_errors
def species(ctx, input_dir, params):
    """Estimate a species tree from the concatenated alignments."""
    with spinner(f"IQ-TREE is processing species tree for alignments in {input_dir}..."):
        build_species_tree(input_dir, params, ctx.obj['settings'])


@cli.command()
@dir_option
@click.option('--params', '-p', help='IQ-TREE arguments replacing the defaults (-T 1 -B 1000)')
@format_option
@click.pass_context
@handle_errors
def gene(ctx, input_dir, params, input_format):
    """Estimate one gene tree per alignment."""
    batch = GeneTreeBatch(input_dir, params, InputFormat(input_format), ctx.obj['settings'])
    with spinner("IQ-TREE is processing gene trees..."):
        summary = batch.run()
    if summary.failed_prefixes:
        click.echo(
            click.style(f"✗ {len(summary.failed_prefixes)} alignment(s) failed", fg='red')
        )
    click.echo(
        click.style(
            f"✓ {summary.trees_written} gene trees written to {summary.collection_file}",
            fg='green',
        )
    )


@cli.command()
@dir_option
@click.pass_context
@handle_errors
def concord(ctx, input_dir):
    """Compute gene and site concordance factors."""
    with spinner("IQ-TREE is processing concordance factor..."):
        estimate_concordance_factor(input_dir, ctx.obj['settings'])


@cli.command()
@dir_option
@click.pass_context
@handle_errors
def msc(ctx, input_dir):
    """Estimate an MSC tree from the combined gene trees with ASTRAL."""
    with spinner("ASTRAL is processing MSC tree..."):
        estimate_msc_tree(input_dir, ctx.obj['settings'])


@cli.command()
@click.pass_context
def check(ctx):
    """Check that the external programs are installed."""
    statuses = check_dependencies(ctx.obj['settings'])
    for status in statuses:
        click.echo(status.render())
    if not all(status.found for status in statuses):
        sys.exit(1)


@cli.command('setup-astral')
@click.option('--jar', 'jar_path', required=True, type=click.Path(dir_okay=False), help='Path to the ASTRAL jar')
@click.option('--output', '-o', default='astral', show_default=True, type=click.Path(dir_okay=False),
              help='Launcher script to create')
@handle_errors
def setup_astral(jar_path, output):
    """Create an executable launcher for an ASTRAL jar file."""
    launcher = write_astral_wrapper(jar_path, output)
    click.echo(f"ASTRAL launcher: {launcher}")


if __name__ == "__main__":
    cli()
