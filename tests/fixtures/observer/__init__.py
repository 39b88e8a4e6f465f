"""
Test doubles for the PR observer.

Provides a scripted CheckSource so scheduler, worker and lifecycle tests can
replay a sequence of CI states without touching the network.
"""

from .sources import ScriptedCheckSource

__all__ = ["ScriptedCheckSource"]
