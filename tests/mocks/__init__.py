"""
Centralized mock objects for testing.

This package provides reusable fakes for the transport boundary and the
clock, reducing code duplication across test files.
"""
