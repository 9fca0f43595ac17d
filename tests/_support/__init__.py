"""
Test support utilities for wikiconvert tests.

Helpers that don't fit as pytest fixtures but are shared across test
files, chiefly the in-memory edit surface in :mod:`fake_surface`.
"""
