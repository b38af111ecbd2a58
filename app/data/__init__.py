"""Transcript acquisition: providers, orchestration, caching and diagnostics."""
