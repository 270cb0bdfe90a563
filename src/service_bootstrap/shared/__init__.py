"""
Shared Module
=============

Logging and HTTP plumbing used by every helper group.
"""
