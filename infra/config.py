"""
Stack configuration.

One ``StackConfig`` drives the whole synthesis. The named presets in
``VARIANTS`` cover the deployment variants: stage-prefixed names with a
fan-out topic and a deployment role, generated names, and a direct-to-queue
layout without a topic.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from infra.errors import ConfigurationError


class Stage(str, Enum):
    """Deployment stage used to namespace resources."""

    ALPHA = "alpha"
    BETA = "beta"
    GAMMA = "gamma"
    PROD = "prod"


class NamingStrategy(str, Enum):
    """How physical resource names are chosen."""

    STAGE_PREFIXED = "stage-prefixed"
    GENERATED = "generated"


class StackConfig(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True, validate_default=True, extra="forbid")

    stage: Stage = Field(default=Stage.ALPHA, description="Target deployment stage")
    naming: NamingStrategy = Field(
        default=NamingStrategy.STAGE_PREFIXED,
        description="Prefix physical names with the stage, or let CloudFormation generate them",
    )
    fanout_topic: bool = Field(default=True, description="Declare an SNS topic that fans out into the queue")
    deployment_role: bool = Field(default=True, description="Declare a role for CodeDeploy over all functions")
    api_stage_name: str | None = Field(default=None, description="API Gateway stage name, defaults to the stage")

    @property
    def is_prod(self) -> bool:
        return self.stage == Stage.PROD

    @property
    def rest_api_stage(self) -> str:
        return self.api_stage_name or self.stage

    def physical_name(self, suffix: str) -> str | None:
        """Return the physical name for a resource, or None to let CloudFormation pick one."""
        if self.naming == NamingStrategy.GENERATED:
            return None
        return f"{self.stage}_{suffix}"


VARIANTS: dict[str, dict[str, object]] = {
    "prefixed": {
        "naming": NamingStrategy.STAGE_PREFIXED,
        "fanout_topic": True,
        "deployment_role": True,
    },
    "generated": {
        "naming": NamingStrategy.GENERATED,
        "fanout_topic": True,
        "deployment_role": False,
    },
    "direct": {
        "naming": NamingStrategy.STAGE_PREFIXED,
        "fanout_topic": False,
        "deployment_role": False,
    },
}

DEFAULT_VARIANT = "prefixed"


def load_config(stage: str, variant: str = DEFAULT_VARIANT) -> StackConfig:
    """
    Build a validated configuration for a stage and variant.

    Args:
        stage: Stage name, one of alpha, beta, gamma, prod
        variant: Name of a preset in VARIANTS

    Returns:
        Frozen StackConfig

    Raises:
        ConfigurationError: if the stage or the variant is not recognised
    """
    preset = VARIANTS.get(variant)
    if preset is None:
        raise ConfigurationError(f"Unknown variant '{variant}', expected one of {sorted(VARIANTS)}")

    try:
        return StackConfig(stage=stage, **preset)
    except ValidationError as e:
        allowed = [s.value for s in Stage]
        raise ConfigurationError(f"Invalid stage '{stage}', expected one of {allowed}") from e
