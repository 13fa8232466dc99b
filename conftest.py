"""
Root conftest.py for pytest configuration

Pins the environment before any application module reads settings.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ENABLE_OPENAI", "false")
os.environ.setdefault("LOG_FORMAT", "text")
