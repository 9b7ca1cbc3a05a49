"""Formatting helpers."""
