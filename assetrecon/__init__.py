"""Blue/red asset hierarchy export, code reconciliation and comparison reports."""

__version__ = "0.1.0"
