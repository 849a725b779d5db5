"""
Unit tests for the table declarations.
"""

import pytest
from aws_cdk import App, Stack
from aws_cdk.assertions import Match, Template

from infra.config import NamingStrategy, StackConfig
from infra.context import BuildContext
from infra.errors import UnresolvedReferenceError
from infra.storage import TABLE_SPECS, StorageHandles, create_tables


@pytest.fixture
def stack() -> Stack:
    return Stack(App(), "TestStack")


@pytest.fixture
def storage(stack: Stack) -> StorageHandles:
    return create_tables(BuildContext(scope=stack, config=StackConfig(stage="beta")))


@pytest.fixture
def template(stack: Stack, storage: StorageHandles) -> Template:
    return Template.from_stack(stack)


def test_creates_two_tables(template: Template) -> None:
    template.resource_count_is("AWS::DynamoDB::Table", 2)


def test_tables_keyed_by_string_id(template: Template) -> None:
    tables = template.find_resources("AWS::DynamoDB::Table")
    for table in tables.values():
        assert table["Properties"]["KeySchema"] == [{"AttributeName": "id", "KeyType": "HASH"}]
        assert {"AttributeName": "id", "AttributeType": "S"} in table["Properties"]["AttributeDefinitions"]


def test_tables_use_provisioned_capacity(template: Template) -> None:
    template.all_resources_properties(
        "AWS::DynamoDB::Table",
        {"ProvisionedThroughput": {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}},
    )


def test_infractions_reporter_index(template: Template) -> None:
    template.has_resource_properties(
        "AWS::DynamoDB::Table",
        {
            "TableName": "beta_infractions",
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "reporter-timestamp-index",
                    "KeySchema": [
                        {"AttributeName": "reporter", "KeyType": "HASH"},
                        {"AttributeName": "timestamp", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                    "ProvisionedThroughput": {"ReadCapacityUnits": 1, "WriteCapacityUnits": 1},
                }
            ],
        },
    )


def test_devices_table_has_no_index(template: Template) -> None:
    template.has_resource_properties(
        "AWS::DynamoDB::Table",
        {"TableName": "beta_devices", "GlobalSecondaryIndexes": Match.absent()},
    )


def test_non_prod_tables_are_destroyed(template: Template) -> None:
    template.all_resources("AWS::DynamoDB::Table", {"DeletionPolicy": "Delete"})


def test_prod_tables_are_retained() -> None:
    stack = Stack(App(), "ProdStack")
    create_tables(BuildContext(scope=stack, config=StackConfig(stage="prod")))
    Template.from_stack(stack).all_resources("AWS::DynamoDB::Table", {"DeletionPolicy": "Retain"})


def test_generated_names_leave_table_name_unset() -> None:
    stack = Stack(App(), "GeneratedStack")
    create_tables(BuildContext(scope=stack, config=StackConfig(stage="beta", naming=NamingStrategy.GENERATED)))
    Template.from_stack(stack).all_resources_properties("AWS::DynamoDB::Table", {"TableName": Match.absent()})


def test_table_arn_outputs(template: Template) -> None:
    template.has_output("DevicesTableArn", {"Description": "The arn for the devices table"})
    template.has_output("InfractionsTableArn", {"Description": "The arn for the infractions table"})


class TestStorageHandles:
    def test_handles_by_logical_name(self, storage: StorageHandles) -> None:
        assert set(storage.tables) == {spec.logical_name for spec in TABLE_SPECS}
        assert storage.devices is storage.tables["devices"]
        assert storage.infractions is storage.tables["infractions"]

    def test_arns(self, storage: StorageHandles) -> None:
        assert len(storage.table_arns()) == 2
        assert len(storage.index_arns()) == 1
        assert storage.index_arns()[0].endswith("/index/reporter-timestamp-index")

    def test_missing_table_is_unresolved(self) -> None:
        with pytest.raises(UnresolvedReferenceError, match="table:devices"):
            StorageHandles(tables={}).devices
