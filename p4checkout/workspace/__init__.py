"""Perforce workspace reconciliation and sync for CI jobs."""
