"""
Storage declarations: the devices and infractions tables.
"""

from dataclasses import dataclass

from aws_cdk import CfnOutput, RemovalPolicy
from aws_cdk import aws_dynamodb as dynamodb

from infra import constants
from infra.context import BuildContext, require

DEVICES = "devices"
INFRACTIONS = "infractions"


@dataclass(frozen=True)
class KeySpec:
    name: str
    type: dynamodb.AttributeType = dynamodb.AttributeType.STRING

    def to_attribute(self) -> dynamodb.Attribute:
        return dynamodb.Attribute(name=self.name, type=self.type)


@dataclass(frozen=True)
class IndexSpec:
    name: str
    partition_key: KeySpec
    sort_key: KeySpec | None = None
    read_capacity: int = constants.INDEX_READ_CAPACITY
    write_capacity: int = constants.INDEX_WRITE_CAPACITY


@dataclass(frozen=True)
class TableSpec:
    """Declarative description of one table."""

    logical_name: str
    construct_id: str
    output_id: str
    partition_key: KeySpec
    sort_key: KeySpec | None = None
    index: IndexSpec | None = None
    read_capacity: int = constants.TABLE_READ_CAPACITY
    write_capacity: int = constants.TABLE_WRITE_CAPACITY


TABLE_SPECS: tuple[TableSpec, ...] = (
    TableSpec(
        logical_name=DEVICES,
        construct_id="DynamoDBDevices",
        output_id="DevicesTableArn",
        partition_key=KeySpec("id"),
    ),
    TableSpec(
        logical_name=INFRACTIONS,
        construct_id="DynamoDBInfractions",
        output_id="InfractionsTableArn",
        partition_key=KeySpec("id"),
        # "all infractions filed by reporter X ordered by time"
        index=IndexSpec(
            name=constants.REPORTER_INDEX_NAME,
            partition_key=KeySpec("reporter"),
            sort_key=KeySpec("timestamp"),
        ),
    ),
)


@dataclass(frozen=True)
class StorageHandles:
    """Tables keyed by logical name."""

    tables: dict[str, dynamodb.Table]

    def table(self, logical_name: str) -> dynamodb.Table:
        return require(self.tables.get(logical_name), f"table:{logical_name}")

    @property
    def devices(self) -> dynamodb.Table:
        return self.table(DEVICES)

    @property
    def infractions(self) -> dynamodb.Table:
        return self.table(INFRACTIONS)

    def table_arns(self) -> list[str]:
        return [self.table(spec.logical_name).table_arn for spec in TABLE_SPECS]

    def index_arns(self) -> list[str]:
        """ARNs of the secondary indexes, for query permissions."""
        return [
            f"{self.table(spec.logical_name).table_arn}/index/{spec.index.name}"
            for spec in TABLE_SPECS
            if spec.index is not None
        ]


def _create_table(ctx: BuildContext, spec: TableSpec) -> dynamodb.Table:
    table = dynamodb.Table(
        ctx.scope,
        spec.construct_id,
        table_name=ctx.name(spec.logical_name),
        partition_key=spec.partition_key.to_attribute(),
        sort_key=spec.sort_key.to_attribute() if spec.sort_key else None,
        billing_mode=dynamodb.BillingMode.PROVISIONED,
        read_capacity=spec.read_capacity,
        write_capacity=spec.write_capacity,
        removal_policy=RemovalPolicy.RETAIN if ctx.config.is_prod else RemovalPolicy.DESTROY,
    )

    if spec.index is not None:
        table.add_global_secondary_index(
            index_name=spec.index.name,
            partition_key=spec.index.partition_key.to_attribute(),
            sort_key=spec.index.sort_key.to_attribute() if spec.index.sort_key else None,
            read_capacity=spec.index.read_capacity,
            write_capacity=spec.index.write_capacity,
        )

    CfnOutput(
        ctx.scope,
        spec.output_id,
        value=table.table_arn,
        description=f"The arn for the {spec.logical_name} table",
    )
    ctx.log("Declared table", table=spec.logical_name, index=spec.index.name if spec.index else None)
    return table


def create_tables(ctx: BuildContext) -> StorageHandles:
    """
    Declare every table in TABLE_SPECS.

    Args:
        ctx: Build context

    Returns:
        Handles keyed by logical table name
    """
    return StorageHandles(tables={spec.logical_name: _create_table(ctx, spec) for spec in TABLE_SPECS})
