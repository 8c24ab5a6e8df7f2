"""Shared services for the vitals API."""
