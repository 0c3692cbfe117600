"""
Typer command-line front end
"""
from .app import app, run

__all__ = ["app", "run"]
