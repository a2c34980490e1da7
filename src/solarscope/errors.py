"""
Exception hierarchy for Solarscope.
"""


class SolarscopeError(Exception):
    """Base class for all Solarscope errors."""


class RenderTargetLost(SolarscopeError):
    """The drawing surface went away (or pygame refused to draw on it)."""


class SignalSourceError(SolarscopeError):
    """A signal feed could not be loaded or parsed."""
