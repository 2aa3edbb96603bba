"""Lending Library - Utilities

- Input validation for the HTTP and CLI layers (validators.py)
- CLI output formatting (ui_helpers.py)
"""
