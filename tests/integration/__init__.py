"""
nexus-wire — integration test package

File: tests/integration/__init__.py
Last updated: 2026-10-17

Purpose
- Test package marker file for subprocess-level CLI checks.

Functional requirements
- Must not trigger provider calls or network access.
"""
