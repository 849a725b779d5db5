"""
Lambda function placeholders.

Every function shares one code bundle, one handler reference and the
execution role. Functions that touch storage or messaging get environment
variables carrying the deployed resource identifiers, so the same bundle
runs against any stage.
"""

from dataclasses import dataclass, field

from aws_cdk import Duration, RemovalPolicy
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_lambda_event_sources as lambda_events
from aws_cdk import aws_logs as logs

from infra import constants
from infra.config import Stage
from infra.context import BuildContext, require
from infra.messaging import MessagingHandles
from infra.storage import StorageHandles

HELLO = "hello"
INFRACTIONS = "infractions"
INFRACTION_TYPES = "infraction_types"
DEVICES = "devices"
WALL_OF_SHAME = "wall_of_shame"
INFRACTION_VALIDATOR = "infraction_validator"


@dataclass(frozen=True)
class FunctionSpec:
    capability: str
    construct_id: str
    name_suffix: str
    description: str
    api_bound: bool = True
    env_keys: tuple[str, ...] = ()


FUNCTION_SPECS: tuple[FunctionSpec, ...] = (
    FunctionSpec(
        capability=HELLO,
        construct_id="LambdaFunction_HelloWorld",
        name_suffix="helloworld",
        description="Greeting and health check",
    ),
    FunctionSpec(
        capability=INFRACTIONS,
        construct_id="LambdaFunction_Infractions",
        name_suffix="infractions",
        description="Submits and fetches infractions",
        env_keys=(
            constants.ENV_REGION,
            constants.ENV_DBTBL_INFRACTIONS,
            constants.ENV_QUEUE_VALIDATION,
            constants.ENV_TOPIC_VALIDATION,
        ),
    ),
    FunctionSpec(
        capability=INFRACTION_TYPES,
        construct_id="LambdaFunction_InfractionTypes",
        name_suffix="infraction_types",
        description="Lists infraction types",
    ),
    FunctionSpec(
        capability=DEVICES,
        construct_id="LambdaFunction_Devices",
        name_suffix="devices",
        description="Registers and fetches devices",
        env_keys=(constants.ENV_REGION, constants.ENV_DBTBL_DEVICES),
    ),
    FunctionSpec(
        capability=WALL_OF_SHAME,
        construct_id="LambdaFunction_WallOfShame",
        name_suffix="reports_wos",
        description="Wall of shame leaderboard report",
    ),
    FunctionSpec(
        capability=INFRACTION_VALIDATOR,
        construct_id="LambdaFunction_InfractionValidator",
        name_suffix="infraction_validator",
        description="Validates queued infractions",
        api_bound=False,
    ),
)


@dataclass(frozen=True)
class ComputeHandles:
    """Declared functions keyed by capability, in declaration order."""

    by_capability: dict[str, lambda_.Function]
    log_groups: dict[str, logs.LogGroup] = field(default_factory=dict)

    def function(self, capability: str) -> lambda_.Function:
        return require(self.by_capability.get(capability), f"function:{capability}")

    @property
    def functions(self) -> list[lambda_.Function]:
        return [self.function(spec.capability) for spec in FUNCTION_SPECS]

    @property
    def api_functions(self) -> list[lambda_.Function]:
        return [self.function(spec.capability) for spec in FUNCTION_SPECS if spec.api_bound]

    @property
    def queue_functions(self) -> list[lambda_.Function]:
        return [self.function(spec.capability) for spec in FUNCTION_SPECS if not spec.api_bound]

    def log_group_arns(self) -> list[str]:
        return [
            require(self.log_groups.get(spec.capability), f"log_group:{spec.capability}").log_group_arn
            for spec in FUNCTION_SPECS
        ]

    def is_api_bound(self, capability: str) -> bool:
        return any(spec.capability == capability and spec.api_bound for spec in FUNCTION_SPECS)


def _resource_environment(
    ctx: BuildContext,
    storage: StorageHandles,
    messaging: MessagingHandles,
) -> dict[str, str]:
    """Environment values for every resource a function may be pointed at."""
    values = {
        constants.ENV_REGION: ctx.region,
        constants.ENV_DBTBL_INFRACTIONS: storage.infractions.table_name,
        constants.ENV_DBTBL_DEVICES: storage.devices.table_name,
        constants.ENV_QUEUE_VALIDATION: require(messaging.queue, "queue:validation").queue_name,
    }
    if messaging.topic is not None:
        values[constants.ENV_TOPIC_VALIDATION] = messaging.topic.topic_arn
    return values


def _create_log_group(ctx: BuildContext, spec: FunctionSpec) -> logs.LogGroup:
    return logs.LogGroup(
        ctx.scope,
        f"{spec.construct_id}LogGroup",
        retention=logs.RetentionDays.ONE_MONTH if ctx.config.is_prod else logs.RetentionDays.ONE_WEEK,
        removal_policy=RemovalPolicy.DESTROY,
    )


def _create_function(
    ctx: BuildContext,
    spec: FunctionSpec,
    code: lambda_.Code,
    role: iam.IRole,
    resource_env: dict[str, str],
    log_group: logs.ILogGroup,
) -> lambda_.Function:
    environment = {
        constants.POWERTOOLS_SERVICE_NAME: constants.SERVICE_NAME,
        constants.POWERTOOLS_LOG_LEVEL: "DEBUG" if ctx.stage == Stage.ALPHA else "INFO",
    }
    environment.update({key: resource_env[key] for key in spec.env_keys if key in resource_env})

    return lambda_.Function(
        ctx.scope,
        spec.construct_id,
        function_name=ctx.name(spec.name_suffix),
        runtime=lambda_.Runtime.PYTHON_3_13,
        handler=constants.LAMBDA_HANDLER,
        code=code,
        role=role,
        memory_size=constants.LAMBDA_MEMORY_SIZE,
        timeout=Duration.seconds(constants.LAMBDA_TIMEOUT),
        log_group=log_group,
        logging_format=lambda_.LoggingFormat.JSON,
        environment=environment,
        description=spec.description,
    )


def create_functions(
    ctx: BuildContext,
    role: iam.IRole,
    storage: StorageHandles,
    messaging: MessagingHandles,
) -> ComputeHandles:
    """
    Declare one placeholder per capability in FUNCTION_SPECS.

    Args:
        ctx: Build context
        role: Execution role shared by every function
        storage: Declared tables
        messaging: Declared queue and optional topic

    Returns:
        Functions and their log groups keyed by capability
    """
    role = require(role, "role:execution")
    code = lambda_.Code.from_asset(constants.SERVICE_CODE_ROOT, exclude=constants.SERVICE_CODE_EXCLUDES)
    resource_env = _resource_environment(ctx, storage, messaging)

    log_groups = {spec.capability: _create_log_group(ctx, spec) for spec in FUNCTION_SPECS}
    by_capability = {
        spec.capability: _create_function(ctx, spec, code, role, resource_env, log_groups[spec.capability])
        for spec in FUNCTION_SPECS
    }
    handles = ComputeHandles(by_capability=by_capability, log_groups=log_groups)

    # Queue consumers are only ever invoked by the event source mapping
    for function in handles.queue_functions:
        function.add_event_source(
            lambda_events.SqsEventSource(
                messaging.queue,
                batch_size=constants.SQS_BATCH_SIZE,
                report_batch_item_failures=True,
            )
        )

    ctx.log(
        "Declared functions",
        api=[spec.capability for spec in FUNCTION_SPECS if spec.api_bound],
        queue=[spec.capability for spec in FUNCTION_SPECS if not spec.api_bound],
    )
    return handles
