"""
Infraction API CDK app.

Synthesizes one stack for a stage and a variant:
- prefixed: stage-prefixed names, fan-out topic, CodeDeploy role
- generated: CloudFormation-generated names, fan-out topic
- direct: stage-prefixed names, producers write straight to the queue

Usage:
    cdk synth --app "python app.py" -c stage=beta -c variant=direct
    STAGE=gamma VARIANT=generated cdk deploy --app "python app.py"
"""

import os

import structlog
from aws_cdk import App, Aspects, Environment, Tags
from cdk_nag import AwsSolutionsChecks

from constants import ENV_CONFIG, PREFIX
from infra import constants
from infra.config import DEFAULT_VARIANT, load_config
from infra.infraction_stack import InfractionApiStack
from infra.log import configure_logging

logger = structlog.get_logger(__name__)


def resolve_target(app: App) -> tuple[str, str]:
    """Stage and variant to synthesize; context wins over the environment."""
    stage = app.node.try_get_context("stage") or os.getenv("STAGE", "alpha")
    variant = app.node.try_get_context("variant") or os.getenv("VARIANT", DEFAULT_VARIANT)
    return stage, variant


def build(app: App) -> InfractionApiStack:
    stage, variant = resolve_target(app)
    # An unknown stage or variant aborts synthesis here
    config = load_config(stage, variant)

    logger.info("Synthesizing", stage=config.stage, variant=variant, naming=config.naming)

    account_config = ENV_CONFIG.get(config.stage)
    environment = (
        Environment(account=account_config["account"], region=account_config["region"]) if account_config else None
    )

    stack = InfractionApiStack(
        app,
        f"{PREFIX}-{variant}-{config.stage}",
        config=config,
        env=environment,
        description=f"Infraction API ({variant}, {config.stage})",
    )

    # Global tags
    Tags.of(app).add(constants.TAG_PROJECT, PREFIX)
    Tags.of(app).add(constants.TAG_VARIANT, variant)
    Tags.of(app).add("ManagedBy", "CDK")

    Aspects.of(app).add(AwsSolutionsChecks())
    return stack


if __name__ == "__main__":
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    app = App()
    build(app)
    app.synth()
