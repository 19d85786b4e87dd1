"""Matching services: normalization, scoring, candidate indexing and the engine."""
