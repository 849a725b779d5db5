import os

# =============================================================================
# PROJECT CONFIGURATION
# =============================================================================

# Stage-specific AWS account configuration. A stage without an entry is
# synthesized environment-agnostic.
ENV_CONFIG = {
    "alpha": {
        "account": os.getenv("CDK_DEFAULT_ACCOUNT"),
        "region": os.getenv("CDK_DEFAULT_REGION", "us-east-1"),
    },
    # "prod": {
    #     "account": "123456789013",  # Your AWS prod account ID
    #     "region": "us-east-1",  # AWS region
    # },
}

# Project name used for tagging and stack ids
PREFIX = "infractions"

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
