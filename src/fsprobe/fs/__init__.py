"""Filesystem traversal and path filtering."""
