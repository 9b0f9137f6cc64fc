"""Pydantic API contracts, one module per resource."""
