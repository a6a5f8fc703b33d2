"""
Read-only queries against AWS: stack lookup, outputs, quotas, keys.

Nothing in this module mutates anything.
"""

import logging
from dataclasses import dataclass

from botocore.exceptions import ClientError

from .constants import (
    ELASTIC_IP,
    OUTPUT_AVAILABILITY_ZONES,
    OUTPUT_PRIVATE_CONF_BUCKET,
    OUTPUT_REGION,
)
from .errors import NotFound

logger = logging.getLogger(__name__)


@dataclass
class StackInfo:
    region: str
    availability_zones: list[str]


def _is_missing_stack(error: ClientError) -> bool:
    return "does not exist" in str(error)


def describe_stack(cloudformation, stack_name_or_id: str) -> dict | None:
    """Return the stack description, or None if there is no such stack."""
    try:
        response = cloudformation.describe_stacks(StackName=stack_name_or_id)
    except ClientError as e:
        if _is_missing_stack(e):
            return None
        raise

    stacks = response.get("Stacks", [])
    return stacks[0] if stacks else None


def find_stack_id(cloudformation, stack_name: str) -> str | None:
    """Look up a stack id by name. Absence is not an error."""
    stack = describe_stack(cloudformation, stack_name)
    if not stack:
        logger.debug("stack %s not found", stack_name)
        return None
    return stack["StackId"]


def get_stack_outputs(cloudformation, stack_name_or_id: str) -> dict:
    stack = describe_stack(cloudformation, stack_name_or_id)
    if not stack:
        raise NotFound(f"stack {stack_name_or_id}")

    outputs = {}
    for output in stack.get("Outputs", []):
        outputs[output["OutputKey"]] = output["OutputValue"]
    return outputs


def get_output(outputs: dict, key: str, stack: str) -> str:
    if key not in outputs:
        raise NotFound(f"output '{key}' in stack {stack}")
    return outputs[key]


def get_stack_info(cloudformation, stack_id: str) -> StackInfo:
    """Read region and availability zones from services stack outputs."""
    outputs = get_stack_outputs(cloudformation, stack_id)
    zones = get_output(outputs, OUTPUT_AVAILABILITY_ZONES, stack_id)
    return StackInfo(
        region=get_output(outputs, OUTPUT_REGION, stack_id),
        availability_zones=[zone.strip() for zone in zones.split(",") if zone.strip()],
    )


def get_private_conf_bucket(cloudformation, primary_stack: str) -> str:
    """Resolve the primary stack's private configuration bucket."""
    outputs = get_stack_outputs(cloudformation, primary_stack)
    return get_output(outputs, OUTPUT_PRIVATE_CONF_BUCKET, primary_stack)


def count_elastic_ips(ec2) -> int:
    return len(ec2.describe_addresses().get("Addresses", []))


QUOTA_COUNTERS = {
    ELASTIC_IP: count_elastic_ips,
}


def get_used_quota_count(ec2, kind: str) -> int:
    if kind not in QUOTA_COUNTERS:
        raise ValueError(f"Unknown quota kind: {kind}")
    count = QUOTA_COUNTERS[kind](ec2)
    logger.debug("%s in use: %d", kind, count)
    return count


def get_encryption_key(s3, bucket: str) -> str | None:
    """KMS key id used for the bucket's default encryption, if any."""
    try:
        response = s3.get_bucket_encryption(Bucket=bucket)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        if code == "ServerSideEncryptionConfigurationNotFoundError":
            return None
        raise

    rules = response.get("ServerSideEncryptionConfiguration", {}).get("Rules", [])
    for rule in rules:
        default = rule.get("ApplyServerSideEncryptionByDefault", {})
        if default.get("SSEAlgorithm") == "aws:kms" and default.get("KMSMasterKeyID"):
            return default["KMSMasterKeyID"]
    return None


def get_account_id(sts) -> str:
    return sts.get_caller_identity()["Account"]


def list_availability_zones(ec2) -> list[str]:
    response = ec2.describe_availability_zones()
    return sorted(
        zone["ZoneName"]
        for zone in response.get("AvailabilityZones", [])
        if zone.get("State", "available") == "available"
    )


def list_key_pairs(ec2) -> list[str]:
    response = ec2.describe_key_pairs()
    return sorted(pair["KeyName"] for pair in response.get("KeyPairs", []))


def parse_stack_arn(stack_id: str) -> dict:
    """Split arn:aws:cloudformation:<region>:<account>:stack/<name>/<uuid>."""
    parts = stack_id.split(":")
    if len(parts) < 6 or not parts[5].startswith("stack/"):
        raise ValueError(f"Not a stack ARN: {stack_id}")

    _, name, *_ = parts[5].split("/")
    return {
        "region": parts[3],
        "account_id": parts[4],
        "stack_name": name,
    }
