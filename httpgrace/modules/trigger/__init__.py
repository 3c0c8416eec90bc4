"""Trigger sources that ask a running server to shut down."""

from .source import TriggerSignal, TriggerSource

__all__ = ['TriggerSignal', 'TriggerSource']
