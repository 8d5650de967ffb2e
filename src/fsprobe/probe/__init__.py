"""Deadline-guarded probing engine."""
