"""Operational command-line entry points."""
