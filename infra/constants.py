"""
CDK constants for the infraction API infrastructure.
"""

from pathlib import Path

# Service configuration
SERVICE_NAME = "InfractionApi"
POWERTOOLS_SERVICE_NAME = "POWERTOOLS_SERVICE_NAME"
POWERTOOLS_LOG_LEVEL = "LOG_LEVEL"

# Code bundle shared by every function placeholder: the repository root
# filtered down to the service package, so handlers import as service.*
SERVICE_CODE_ROOT = str(Path(__file__).resolve().parent.parent)
SERVICE_CODE_EXCLUDES = ["**", ".*", "!service", "!service/**", "**/__pycache__", "**/*.pyc"]
LAMBDA_HANDLER = "service.index.handler"

# IAM
LAMBDA_PRINCIPAL = "lambda.amazonaws.com"
CODEDEPLOY_PRINCIPAL = "codedeploy.amazonaws.com"
APIGATEWAY_PRINCIPAL = "apigateway.amazonaws.com"

# Environment variable keys read by the function code at invocation time
ENV_REGION = "REGION"
ENV_DBTBL_INFRACTIONS = "DBTBL_INFRACTIONS"
ENV_DBTBL_DEVICES = "DBTBL_DEVICES"
ENV_QUEUE_VALIDATION = "QUEUE_VALIDATION"
ENV_TOPIC_VALIDATION = "TOPIC_VALIDATION"

# DynamoDB
TABLE_READ_CAPACITY = 5
TABLE_WRITE_CAPACITY = 5
INDEX_READ_CAPACITY = 1
INDEX_WRITE_CAPACITY = 1
REPORTER_INDEX_NAME = "reporter-timestamp-index"

# SQS
SQS_BATCH_SIZE = 10

# Lambda configuration
LAMBDA_MEMORY_SIZE = 128  # MB
LAMBDA_TIMEOUT = 10  # seconds

# Tag keys
TAG_PROJECT = "Project"
TAG_ENVIRONMENT = "Environment"
TAG_VARIANT = "Variant"
