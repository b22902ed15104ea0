"""Boundary adapters: persistence and external AI providers."""
