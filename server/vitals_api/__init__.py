"""Vitals Emergency API - FastAPI service around the vitals severity engine."""
