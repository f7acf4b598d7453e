"""Accelerated shift clock and task lifecycle engine."""
