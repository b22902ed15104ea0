"""Application services: generation submission and status queries."""
