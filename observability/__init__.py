"""Structured domain events and their in-memory store."""
