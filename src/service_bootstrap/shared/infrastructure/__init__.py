"""
Shared Infrastructure
=====================

Structured logging setup.
"""
