"""
Build context threaded through every resource builder.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import structlog
from aws_cdk import Stack
from constructs import Construct

from infra.config import StackConfig
from infra.errors import UnresolvedReferenceError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BuildContext:
    """Construct scope plus the configuration the builders read."""

    scope: Construct
    config: StackConfig

    @property
    def stage(self) -> str:
        return self.config.stage

    @property
    def region(self) -> str:
        return Stack.of(self.scope).region

    def name(self, suffix: str) -> str | None:
        return self.config.physical_name(suffix)

    def log(self, event: str, **fields: Any) -> None:
        logger.info(event, stage=self.stage, **fields)


def require(value: Any, name: str) -> Any:
    """Return ``value`` or fail the synthesis when it was never declared."""
    if value is None:
        raise UnresolvedReferenceError(name)
    return value


def require_all(values: Iterable[Any], name: str) -> list[Any]:
    resolved = [require(v, name) for v in values]
    if not resolved:
        raise UnresolvedReferenceError(name)
    return resolved
