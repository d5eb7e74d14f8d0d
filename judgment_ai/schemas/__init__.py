"""Canonical schemas and typed record models."""
