"""
Main entry point for running the package as a module.

Allows running: python -m multiscreener screen magic_formula
"""

from .utils.cli import cli

if __name__ == '__main__':
    cli()
