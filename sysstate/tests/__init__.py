"""
Tests for sysstate.
"""
