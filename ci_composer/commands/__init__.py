"""Typer command modules registered on the shared ``cci`` application."""
