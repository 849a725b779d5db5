"""
Placeholder handler shared by every function.

API Gateway events get a JSON body naming the function that answered, except
``GET /infraction/{id}`` which reads the infraction from its table. SQS
events from the validation queue are processed as a batch with partial
failure reporting; the record handler only logs, so redelivery of a message
has no further effect.
"""

import json
from http import HTTPStatus
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.batch import (
    BatchProcessor,
    EventType,
    process_partial_response,
)
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext

from service.dal import InfractionsTable

logger = Logger()
tracer = Tracer()

processor = BatchProcessor(event_type=EventType.SQS)

INFRACTION_RESOURCE = "/infraction/{id}"


def is_sqs_event(event: dict[str, Any]) -> bool:
    records = event.get("Records") or []
    return bool(records) and all(record.get("eventSource") == "aws:sqs" for record in records)


@tracer.capture_method
def record_handler(record: SQSRecord) -> None:
    """Log one queued infraction."""
    try:
        body = json.loads(record.body)
    except json.JSONDecodeError:
        logger.error("Failed to parse message body", extra={"message_id": record.message_id})
        raise

    logger.info(
        "Received infraction for validation",
        extra={"message_id": record.message_id, "infraction_id": body.get("id")},
    )


def _json_response(status: HTTPStatus, body: Any) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def api_response(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    body = {
        "message": f"Hello from {context.function_name}",
        "path": event.get("path"),
        "method": event.get("httpMethod"),
    }
    return _json_response(HTTPStatus.OK, body)


def get_infraction_response(event: dict[str, Any]) -> dict[str, Any]:
    path_params = event.get("pathParameters") or {}
    infraction_id = path_params.get("id")
    if not infraction_id:
        return _json_response(HTTPStatus.BAD_REQUEST, {"error": "id is required"})

    item = InfractionsTable().get_infraction(infraction_id)
    if item is None:
        logger.info("Infraction not found", extra={"id": infraction_id})
        return _json_response(HTTPStatus.NOT_FOUND, {"error": "Infraction not found"})

    return _json_response(HTTPStatus.OK, item)


@logger.inject_lambda_context
@tracer.capture_lambda_handler(capture_response=False)
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    if is_sqs_event(event):
        return process_partial_response(
            event=event,
            record_handler=record_handler,
            processor=processor,
            context=context,
        )

    logger.info("Processing API request", extra={"path": event.get("path"), "method": event.get("httpMethod")})
    if event.get("httpMethod") == "GET" and event.get("resource") == INFRACTION_RESOURCE:
        return get_infraction_response(event)
    return api_response(event, context)
