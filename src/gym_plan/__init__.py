"""Gym Plan - personalization and scoring engine for training and nutrition plans."""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("gym-plan-engine")
except importlib.metadata.PackageNotFoundError:
    __version__ = "unknown"
