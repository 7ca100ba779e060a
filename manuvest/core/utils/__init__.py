"""Shared utilities: logging setup and API helpers."""
