"""
Synthesis-time errors.

Every error here aborts synthesis. Nothing at this layer is retried.
"""


class SynthesisError(Exception):
    """Base class for errors raised while assembling the stack."""


class ConfigurationError(SynthesisError):
    """The stack configuration or a declarative table is invalid."""


class UnresolvedReferenceError(SynthesisError):
    """A policy statement or binding refers to a resource that was never declared."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Resource '{name}' is referenced before it was declared")
        self.name = name
