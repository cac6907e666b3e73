"""Dispatch pipeline: configuration, data model, errors and orchestrator."""
