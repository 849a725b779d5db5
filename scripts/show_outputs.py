"""
Print the outputs of a deployed infraction API stack.

Usage:
    python -m scripts.show_outputs --stage beta --variant direct
"""

import argparse
import sys

import boto3
from botocore.exceptions import ClientError

from constants import PREFIX
from infra.config import DEFAULT_VARIANT, VARIANTS, Stage

OUTPUT_KEYS = [
    "RestApiUrl",
    "InfractionsTableArn",
    "DevicesTableArn",
    "ValidationQueueArn",
    "ValidationTopicArn",
]


def stack_name(stage: str, variant: str) -> str:
    return f"{PREFIX}-{variant}-{stage}"


def get_stack_outputs(stage: str, variant: str) -> dict[str, str]:
    cf_client = boto3.client("cloudformation")
    name = stack_name(stage, variant)

    try:
        response = cf_client.describe_stacks(StackName=name)
    except ClientError:
        print(f"Error: Stack {name} not found. Deploy it first with:")
        print(f'  cdk deploy --app "python app.py" -c stage={stage} -c variant={variant}')
        sys.exit(1)

    outputs = response["Stacks"][0].get("Outputs", [])
    return {output["OutputKey"]: output["OutputValue"] for output in outputs if output["OutputKey"] in OUTPUT_KEYS}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Show the outputs of a deployed infraction API stack")
    parser.add_argument(
        "--stage",
        type=str,
        default=Stage.ALPHA.value,
        choices=[s.value for s in Stage],
        help="Deployment stage",
    )
    parser.add_argument(
        "--variant",
        type=str,
        default=DEFAULT_VARIANT,
        choices=sorted(VARIANTS),
        help="Stack variant",
    )
    args = parser.parse_args(argv)

    outputs = get_stack_outputs(args.stage, args.variant)
    print(f"=== {stack_name(args.stage, args.variant)} ===")
    for key in OUTPUT_KEYS:
        if key in outputs:
            print(f"{key}: {outputs[key]}")


if __name__ == "__main__":
    main()
