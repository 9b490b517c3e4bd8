"""Command line interface for the KPI health engine."""
