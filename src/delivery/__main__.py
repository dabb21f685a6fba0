"""
Entry point for running Number Drills as a module.

Usage:
    python -m src.delivery start
    python -m src.delivery stats
    python -m src.delivery --help
"""
from .drills_cli import main

if __name__ == "__main__":
    main()
