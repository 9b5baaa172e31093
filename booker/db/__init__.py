"""Persistence layer: engine/session wiring and ORM models."""
