"""
Command Line Interface for the Bifurcate crawler

This package provides command line argument parsing and validation for the
crawl, extract, mirror, analyze, sanitize and history commands.

Classes:
    CLIManager: Command line interface manager for the crawler
"""

from bifurcate.cli.arguments import CLIManager

__all__ = ['CLIManager']
