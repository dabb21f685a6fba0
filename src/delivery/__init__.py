"""
Number Drills: terminal front-end.

Components:
- drills_cli: typer commands rendering engine transitions with Rich
"""

from .drills_cli import app, main

__all__ = [
    "app",
    "main",
]
