"""Tiered membership panel: entitlement policy, tool gate and upgrade workflow."""

__version__ = "0.1.0"
