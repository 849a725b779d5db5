"""
Infraction API stack.

Architecture:
- DynamoDB tables for devices and infractions (reporter/timestamp index)
- Validation queue, optionally fed by a fan-out topic
- Lambda placeholders behind a REST API, plus a queue-triggered validator
- Least-privilege execution role (including its log groups) and optional
  CodeDeploy role

Resources are declared strictly in dependency order; each builder returns
the handles the next one needs.
"""

from typing import Any

from aws_cdk import Stack, Tags
from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_iam as iam
from cdk_nag import NagSuppressions
from constructs import Construct

from infra import constants
from infra.access import create_deployment_role, create_execution_role, grant_log_delivery
from infra.api import create_api
from infra.compute import ComputeHandles, create_functions
from infra.config import StackConfig
from infra.context import BuildContext
from infra.messaging import MessagingHandles, create_messaging
from infra.storage import StorageHandles, create_tables


class InfractionApiStack(Stack):
    """
    Tables, messaging, IAM, function placeholders and REST API for one stage.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        config: StackConfig,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, id, **kwargs)

        self.config = config
        ctx = BuildContext(scope=self, config=config)

        Tags.of(self).add(constants.TAG_ENVIRONMENT, config.stage)

        # Producers before consumers: storage and messaging, then IAM, then compute, then API
        self.storage: StorageHandles = create_tables(ctx)
        self.messaging: MessagingHandles = create_messaging(ctx)
        self.execution_role: iam.Role = create_execution_role(ctx, self.storage, self.messaging)
        self.compute: ComputeHandles = create_functions(ctx, self.execution_role, self.storage, self.messaging)
        self.logging_policy: iam.ManagedPolicy = grant_log_delivery(ctx, self.execution_role, self.compute)
        self.deployment_role: iam.Role | None = create_deployment_role(ctx, self.compute)
        self.api: apigw.RestApi = create_api(ctx, self.compute)

        # cdk-nag suppressions
        self._add_nag_suppressions()

    def _add_nag_suppressions(self) -> None:
        """Add cdk-nag suppressions for expected findings."""
        if self.deployment_role is not None:
            NagSuppressions.add_resource_suppressions(
                self.deployment_role,
                [{"id": "AwsSolutions-IAM5", "reason": "CodeDeploy manages all function versions and aliases"}],
                apply_to_children=True,
            )

        for table in self.storage.tables.values():
            NagSuppressions.add_resource_suppressions(
                table,
                [
                    {"id": "AwsSolutions-DDB3", "reason": "Point-in-time recovery not required for these tables"},
                ],
            )

        NagSuppressions.add_resource_suppressions(
            self.messaging.queue,
            [
                {"id": "AwsSolutions-SQS2", "reason": "Validation messages carry no sensitive data"},
                {"id": "AwsSolutions-SQS3", "reason": "Validator reports partial batch failures, no DLQ"},
                {"id": "AwsSolutions-SQS4", "reason": "Queue is only reached by SNS and Lambda"},
            ],
            apply_to_children=True,
        )

        if self.messaging.topic is not None:
            NagSuppressions.add_resource_suppressions(
                self.messaging.topic,
                [
                    {"id": "AwsSolutions-SNS2", "reason": "Validation messages carry no sensitive data"},
                    {"id": "AwsSolutions-SNS3", "reason": "Publishers use the AWS SDK over TLS"},
                ],
            )

        for function in self.compute.functions:
            NagSuppressions.add_resource_suppressions(
                function,
                [{"id": "AwsSolutions-L1", "reason": "Using Python 3.13 which is the latest supported runtime"}],
            )

        NagSuppressions.add_resource_suppressions(
            self.api,
            [
                {"id": "AwsSolutions-APIG1", "reason": "Access logging not required for the placeholder API"},
                {"id": "AwsSolutions-APIG2", "reason": "Request validation happens in the functions"},
                {"id": "AwsSolutions-APIG3", "reason": "No WAF in front of the placeholder API"},
                {"id": "AwsSolutions-APIG4", "reason": "Authorization is out of scope for this API"},
                {"id": "AwsSolutions-APIG6", "reason": "Execution logging at INFO is set on the stage"},
                {"id": "AwsSolutions-COG4", "reason": "No Cognito user pool for this API"},
                {"id": "AwsSolutions-IAM4", "reason": "API Gateway CloudWatch role uses the AWS managed policy"},
            ],
            apply_to_children=True,
        )
