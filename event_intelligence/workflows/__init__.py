"""Workflow entry points."""

from .intelligence_pipeline import run  # noqa: F401

__all__ = ["run"]
