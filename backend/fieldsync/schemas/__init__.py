"""Pydantic API contracts: request bodies, response bodies, error envelope."""
