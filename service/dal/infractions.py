"""
DynamoDB access for the infractions table.
"""

import os
from typing import Any

import boto3
from aws_lambda_powertools import Logger, Tracer
from boto3.dynamodb.conditions import Key

logger = Logger()
tracer = Tracer()

REPORTER_INDEX_NAME = "reporter-timestamp-index"


class InfractionsTable:
    """Reads infractions by id and by reporter."""

    def __init__(self, table_name: str | None = None, region: str | None = None) -> None:
        self.table_name = table_name or os.environ["DBTBL_INFRACTIONS"]
        self.dynamodb = boto3.resource("dynamodb", region_name=region or os.environ.get("REGION"))
        self.table = self.dynamodb.Table(self.table_name)

    @tracer.capture_method
    def get_infraction(self, infraction_id: str) -> dict[str, Any] | None:
        response = self.table.get_item(Key={"id": infraction_id})
        item: dict[str, Any] | None = response.get("Item")
        if item is None:
            logger.debug("Infraction not found", extra={"id": infraction_id})
        return item

    @tracer.capture_method
    def list_by_reporter(self, reporter: str, limit: int | None = None) -> list[dict[str, Any]]:
        """
        Return every infraction filed by a reporter, oldest first.

        Args:
            reporter: Reporter identifier (index partition key)
            limit: Maximum number of items to return

        Returns:
            Items ordered by timestamp ascending
        """
        kwargs: dict[str, Any] = {
            "IndexName": REPORTER_INDEX_NAME,
            "KeyConditionExpression": Key("reporter").eq(reporter),
            "ScanIndexForward": True,
        }

        items: list[dict[str, Any]] = []
        while True:
            if limit:
                kwargs["Limit"] = limit - len(items)
            response = self.table.query(**kwargs)
            items.extend(response.get("Items", []))

            last_key = response.get("LastEvaluatedKey")
            if not last_key or (limit and len(items) >= limit):
                break
            kwargs["ExclusiveStartKey"] = last_key

        logger.debug("Queried infractions by reporter", extra={"reporter": reporter, "count": len(items)})
        return items
