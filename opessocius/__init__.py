"""Opessocius site backend: investment calculator, email relay and document store."""

__version__ = "1.0.0"
