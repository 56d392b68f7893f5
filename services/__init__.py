"""
Services package for the facial screening engine.

This package contains host-delivery services:
- Result channel: one-shot serialized delivery of a finished session's result
"""
