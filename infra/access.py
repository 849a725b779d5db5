"""
IAM roles and policies.

Creates:
- Lambda execution role with managed policies scoped to the declared tables,
  queue, (optional) topic and function log groups
- CodeDeploy deployment role over the declared functions

Statements only ever name ARNs of resources declared earlier in the same
synthesis; the deployment role's qualified function ARNs are the single
wildcard.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

from aws_cdk import aws_iam as iam

from infra import constants
from infra.context import BuildContext, require, require_all
from infra.errors import ConfigurationError
from infra.messaging import MessagingHandles
from infra.storage import StorageHandles

if TYPE_CHECKING:
    from infra.compute import ComputeHandles

DYNAMODB_ITEM_ACTIONS = ["dynamodb:GetItem", "dynamodb:PutItem", "dynamodb:UpdateItem", "dynamodb:DeleteItem"]
DYNAMODB_INDEX_ACTIONS = ["dynamodb:Query"]
SQS_ACTIONS = ["sqs:SendMessage", "sqs:GetQueueAttributes", "sqs:ReceiveMessage", "sqs:DeleteMessage"]
SNS_ACTIONS = ["sns:Publish"]
LOGS_ACTIONS = ["logs:CreateLogStream", "logs:PutLogEvents"]
LAMBDA_DEPLOYMENT_ACTIONS = ["lambda:*"]


def scoped_statement(actions: Sequence[str], resources: Sequence[str | None], name: str) -> iam.PolicyStatement:
    """
    Build an allow statement over concrete resource ARNs.

    Args:
        actions: IAM actions to allow
        resources: ARNs of declared resources
        name: What the resources are, used in error messages

    Raises:
        UnresolvedReferenceError: if a resource is missing
        ConfigurationError: if a resource is a bare wildcard
    """
    arns = require_all(resources, name)
    if "*" in arns:
        raise ConfigurationError(f"Wildcard resource is not allowed for {name}")
    return iam.PolicyStatement(actions=list(actions), resources=arns)


def create_execution_role(
    ctx: BuildContext,
    storage: StorageHandles,
    messaging: MessagingHandles,
) -> iam.Role:
    """Create the role every function placeholder runs as."""
    dynamo_policy = iam.ManagedPolicy(
        ctx.scope,
        "LambdaDynamoExecutionPolicy",
        statements=[
            scoped_statement(DYNAMODB_ITEM_ACTIONS, storage.table_arns(), "tables"),
            scoped_statement(DYNAMODB_INDEX_ACTIONS, storage.index_arns(), "table indexes"),
        ],
    )

    sqs_policy = iam.ManagedPolicy(
        ctx.scope,
        "LambdaSQSPolicy",
        statements=[scoped_statement(SQS_ACTIONS, messaging.queue_arns(), "queue:validation")],
    )

    managed_policies: list[iam.IManagedPolicy] = [dynamo_policy, sqs_policy]

    # Producers publish to the topic only when one exists
    if messaging.has_topic:
        managed_policies.append(
            iam.ManagedPolicy(
                ctx.scope,
                "LambdaSNSPolicy",
                statements=[scoped_statement(SNS_ACTIONS, messaging.topic_arns(), "topic:validation")],
            )
        )

    role = iam.Role(
        ctx.scope,
        "LambdaExecutionRole",
        assumed_by=iam.ServicePrincipal(constants.LAMBDA_PRINCIPAL),
        description="Execution role for lambda",
        managed_policies=managed_policies,
    )
    ctx.log("Declared execution role", sns_publish=messaging.has_topic)
    return role


def grant_log_delivery(ctx: BuildContext, role: iam.Role, compute: "ComputeHandles") -> iam.ManagedPolicy:
    """
    Let the execution role write to the function log groups.

    The log groups only exist once the functions are declared, so this runs
    after compute and attaches to the role created before it.
    """
    logging_policy = iam.ManagedPolicy(
        ctx.scope,
        "LambdaLoggingPolicy",
        statements=[scoped_statement(LOGS_ACTIONS, require(compute, "functions").log_group_arns(), "log groups")],
    )
    require(role, "role:execution").add_managed_policy(logging_policy)
    ctx.log("Granted log delivery", log_groups=len(compute.log_groups))
    return logging_policy


def create_deployment_role(ctx: BuildContext, compute: "ComputeHandles") -> iam.Role | None:
    """
    Create the role CodeDeploy assumes to roll out new function versions.

    Returns None when the configuration does not ask for one.
    """
    if not ctx.config.deployment_role:
        return None

    resources: list[str] = []
    for function in require(compute, "functions").functions:
        resources.append(function.function_arn)
        resources.append(f"{function.function_arn}:*")

    deployment_policy = iam.ManagedPolicy(
        ctx.scope,
        "LambdaDeploymentPolicy",
        statements=[scoped_statement(LAMBDA_DEPLOYMENT_ACTIONS, resources, "functions")],
    )

    role = iam.Role(
        ctx.scope,
        "LambdaDeploymentRole",
        assumed_by=iam.ServicePrincipal(constants.CODEDEPLOY_PRINCIPAL),
        description="Role for lambda CodeDeployment",
        managed_policies=[deployment_policy],
    )
    ctx.log("Declared deployment role", functions=len(compute.functions))
    return role
