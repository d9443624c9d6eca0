"""
Property-based tests for the instruction codec and the chunk editor.

This package hosts Hypothesis strategies and the test entrypoints for both
the fast CI lane and the nightly run.
"""
