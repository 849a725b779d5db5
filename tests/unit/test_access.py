"""
Unit tests for IAM roles and policies.
"""

from typing import Any

import pytest
from aws_cdk import App, Stack
from aws_cdk.assertions import Template

from infra.access import LOGS_ACTIONS, create_execution_role, grant_log_delivery, scoped_statement
from infra.compute import ComputeHandles
from infra.config import StackConfig
from infra.context import BuildContext
from infra.errors import ConfigurationError, UnresolvedReferenceError
from infra.infraction_stack import InfractionApiStack
from infra.messaging import MessagingHandles, create_messaging
from infra.storage import StorageHandles, create_tables


def _managed_policy_actions(template: Template) -> dict[str, list[str]]:
    actions: dict[str, list[str]] = {}
    for logical_id, policy in template.find_resources("AWS::IAM::ManagedPolicy").items():
        statements: list[dict[str, Any]] = policy["Properties"]["PolicyDocument"]["Statement"]
        actions[logical_id] = []
        for statement in statements:
            value = statement["Action"]
            actions[logical_id].extend(value if isinstance(value, list) else [value])
    return actions


def _build(fanout_topic: bool) -> tuple[Stack, Template]:
    stack = Stack(App(), "TestStack")
    ctx = BuildContext(scope=stack, config=StackConfig(stage="beta", fanout_topic=fanout_topic))
    storage = create_tables(ctx)
    messaging = create_messaging(ctx)
    create_execution_role(ctx, storage, messaging)
    return stack, Template.from_stack(stack)


class TestScopedStatement:
    def test_builds_statement(self) -> None:
        statement = scoped_statement(["sqs:SendMessage"], ["arn:aws:sqs:us-east-1:123456789012:q"], "queue")
        assert statement.to_statement_json()["Resource"] == "arn:aws:sqs:us-east-1:123456789012:q"

    def test_missing_resource_is_unresolved(self) -> None:
        with pytest.raises(UnresolvedReferenceError, match="queue"):
            scoped_statement(["sqs:SendMessage"], [None], "queue")

    def test_empty_resources_are_unresolved(self) -> None:
        with pytest.raises(UnresolvedReferenceError):
            scoped_statement(["sns:Publish"], [], "topic")

    def test_wildcard_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Wildcard resource is not allowed for tables"):
            scoped_statement(["dynamodb:GetItem"], ["*"], "tables")


class TestExecutionRole:
    def test_role_assumed_by_lambda(self) -> None:
        _, template = _build(fanout_topic=True)
        template.has_resource_properties(
            "AWS::IAM::Role",
            {
                "AssumeRolePolicyDocument": {
                    "Statement": [
                        {
                            "Action": "sts:AssumeRole",
                            "Effect": "Allow",
                            "Principal": {"Service": "lambda.amazonaws.com"},
                        }
                    ],
                },
                "Description": "Execution role for lambda",
            },
        )

    def test_policies_with_topic(self) -> None:
        _, template = _build(fanout_topic=True)
        template.resource_count_is("AWS::IAM::ManagedPolicy", 3)

        actions = [action for values in _managed_policy_actions(template).values() for action in values]
        assert "sns:Publish" in actions
        assert "dynamodb:Query" in actions
        assert {"sqs:SendMessage", "sqs:GetQueueAttributes", "sqs:ReceiveMessage", "sqs:DeleteMessage"} <= set(
            actions
        )
        assert {"dynamodb:GetItem", "dynamodb:PutItem", "dynamodb:UpdateItem", "dynamodb:DeleteItem"} <= set(
            actions
        )

    def test_no_publish_statement_without_topic(self) -> None:
        _, template = _build(fanout_topic=False)
        template.resource_count_is("AWS::IAM::ManagedPolicy", 2)

        actions = [action for values in _managed_policy_actions(template).values() for action in values]
        assert "sns:Publish" not in actions
        assert "sqs:SendMessage" in actions

    def test_statements_scoped_to_declared_resources(self) -> None:
        stack, template = _build(fanout_topic=True)
        declared = set(template.to_json()["Resources"])

        for policy in template.find_resources("AWS::IAM::ManagedPolicy").values():
            for statement in policy["Properties"]["PolicyDocument"]["Statement"]:
                resources = statement["Resource"]
                for resource in resources if isinstance(resources, list) else [resources]:
                    assert resource != "*"
                    text = str(resource)
                    assert any(logical_id in text for logical_id in declared)

    def test_missing_queue_fails_synthesis(self) -> None:
        stack = Stack(App(), "TestStack")
        ctx = BuildContext(scope=stack, config=StackConfig(stage="beta"))
        storage = create_tables(ctx)

        with pytest.raises(UnresolvedReferenceError, match="queue:validation"):
            create_execution_role(ctx, storage, MessagingHandles(queue=None))

    def test_missing_tables_fail_synthesis(self) -> None:
        stack = Stack(App(), "TestStack")
        ctx = BuildContext(scope=stack, config=StackConfig(stage="beta"))
        messaging = create_messaging(ctx)

        with pytest.raises(UnresolvedReferenceError, match="table:devices"):
            create_execution_role(ctx, StorageHandles(tables={}), messaging)

    @pytest.mark.parametrize("fanout_topic", [True, False])
    def test_no_aws_managed_policy(self, fanout_topic: bool) -> None:
        stack, template = _build(fanout_topic=fanout_topic)
        role_id = stack.get_logical_id(stack.node.find_child("LambdaExecutionRole").node.default_child)
        declared_policies = set(template.find_resources("AWS::IAM::ManagedPolicy"))

        arns = template.find_resources("AWS::IAM::Role")[role_id]["Properties"]["ManagedPolicyArns"]
        assert all(set(arn) == {"Ref"} and arn["Ref"] in declared_policies for arn in arns)
        assert "AWSLambdaBasicExecutionRole" not in str(arns)


class TestLogDelivery:
    @pytest.fixture
    def stack(self, make_stack) -> InfractionApiStack:
        return make_stack("beta", "direct")

    def test_attached_to_execution_role(self, stack: InfractionApiStack) -> None:
        template = Template.from_stack(stack)
        role_id = stack.get_logical_id(stack.execution_role.node.default_child)
        policy_id = stack.get_logical_id(stack.logging_policy.node.default_child)

        arns = template.find_resources("AWS::IAM::Role")[role_id]["Properties"]["ManagedPolicyArns"]
        assert {"Ref": policy_id} in arns

    def test_scoped_to_function_log_groups(self, stack: InfractionApiStack) -> None:
        template = Template.from_stack(stack)
        policy_id = stack.get_logical_id(stack.logging_policy.node.default_child)
        log_group_ids = {
            stack.get_logical_id(log_group.node.default_child) for log_group in stack.compute.log_groups.values()
        }

        statements = template.find_resources("AWS::IAM::ManagedPolicy")[policy_id]["Properties"]["PolicyDocument"][
            "Statement"
        ]
        assert len(statements) == 1
        assert set(statements[0]["Action"]) == set(LOGS_ACTIONS)
        assert {resource["Fn::GetAtt"][0] for resource in statements[0]["Resource"]} == log_group_ids
        assert all(resource["Fn::GetAtt"][1] == "Arn" for resource in statements[0]["Resource"])

    def test_missing_log_groups_fail_synthesis(self) -> None:
        stack = Stack(App(), "TestStack")
        ctx = BuildContext(scope=stack, config=StackConfig(stage="beta"))
        role = create_execution_role(ctx, create_tables(ctx), create_messaging(ctx))

        with pytest.raises(UnresolvedReferenceError, match="log_group:hello"):
            grant_log_delivery(ctx, role, ComputeHandles(by_capability={}))
