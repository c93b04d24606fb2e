# tests/fixtures/__init__.py
"""Shared test doubles for logstream tests.

Available helpers:
- stream: transports, byte streams, sinks and app providers for the
  streaming pipeline
"""
