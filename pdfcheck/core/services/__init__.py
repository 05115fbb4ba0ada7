"""Orchestration services for analysis, guideline and session-loading runs."""
