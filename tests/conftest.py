import os

import pytest

# Disable Powertools tracing before any service module creates a Tracer
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "test")


def pytest_configure(config):
    """
    Pytest hook that runs before test collection.
    """
    os.environ["POWERTOOLS_TRACE_DISABLED"] = "true"
    os.environ["POWERTOOLS_SERVICE_NAME"] = "test"


@pytest.fixture
def make_stack():
    """Factory for an InfractionApiStack synthesized in a fresh app."""
    from aws_cdk import App

    from infra.config import load_config
    from infra.infraction_stack import InfractionApiStack

    def _make(stage: str = "beta", variant: str = "prefixed") -> InfractionApiStack:
        return InfractionApiStack(App(), "TestStack", config=load_config(stage, variant))

    return _make
