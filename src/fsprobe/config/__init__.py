"""Probe configuration models and persisted defaults."""
