"""Shared HTTP boundary for the JSON API.

Holds the error taxonomy every app raises and the base view that maps
those errors to ``{"error": ...}`` responses.
"""
