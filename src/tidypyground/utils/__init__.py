"""Helpers that aren't tied to a specific part of the engine.

Rendering tables as text, describing python objects
and setting up logging are needed here and there,
but none of them knows anything about query plans.
"""

from . import inspect, logging, tabulate

__all__ = ("inspect", "logging", "tabulate")
