"""
Main entry point for the phylogenetic batch pipeline.

This allows the package to be run as a module:
python -m phylo_pipeline
"""

from .cli_main import cli

if __name__ == '__main__':
    cli()
