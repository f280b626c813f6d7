"""Utilities for the curation service."""
