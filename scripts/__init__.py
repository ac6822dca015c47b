"""LoanScope command-line entry points."""
