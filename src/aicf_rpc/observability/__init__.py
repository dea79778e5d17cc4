"""Structured request tracing for the dispatch core."""
