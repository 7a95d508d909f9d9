"""CLI utility helpers."""
