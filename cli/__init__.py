"""
Groundwork - Command Line Interface

Main CLI entry point: serve, check and migrate.
"""
from cli.main import app, main

__all__ = ["app", "main"]
