"""
Test fixtures for deterministic testing.

This directory provides:
- snapshot.yaml: sample evaluation document with pinned expectations
- thresholds_strict.yaml: override file that tightens the progress bands
"""
