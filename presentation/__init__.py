"""Presentation layer - CLI and HTTP API."""
