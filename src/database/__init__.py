"""Declarative base, engines and the per-request session dependency."""
