"""
Checks that must pass before the services stack is touched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable

from botocore.exceptions import ClientError

from .constants import ELASTIC_IP, SERVICES_BY_NAME
from .discovery import get_used_quota_count
from .errors import NotFound, PreconditionDeclined

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

LIMIT_INCREASE_URL = (
    "https://console.aws.amazon.com/support/v1#/case/create"
    "?issueType=service-limit-increase&limitType=service-code-vpc"
)


def confirm_or_abort(confirm: Confirm, question: str):
    """Ask the operator; anything but yes aborts the whole flow."""
    if not confirm(question):
        raise PreconditionDeclined(question)


def object_exists(s3, bucket: str, key: str) -> bool:
    try:
        s3.head_object(Bucket=bucket, Key=key)
    except ClientError as e:
        code = str(e.response.get("Error", {}).get("Code", ""))
        if code in ("404", "NoSuchKey", "NotFound"):
            return False
        raise
    return True


def check_licenses(s3, services: Iterable[str], bucket: str, confirm: Confirm):
    """Verify a license object exists for every service.

    All services are checked before failing, so the error names every
    missing license rather than the first one found.
    """
    services = [SERVICES_BY_NAME[name] for name in services]
    if not services:
        return

    destinations = "\n\n".join(
        f"{service.name}:\n\n  bucket: {bucket}\n  key: {service.license_path}"
        for service in services
    )
    confirm_or_abort(
        confirm, f"have you uploaded the following licenses?\n\n{destinations}\n"
    )

    with ThreadPoolExecutor(max_workers=len(services)) as pool:
        found = list(
            pool.map(lambda s: object_exists(s3, bucket, s.license_path), services)
        )

    missing = [
        f"{service.name} (s3://{bucket}/{service.license_path})"
        for service, exists in zip(services, found)
        if not exists
    ]
    if missing:
        raise NotFound(f"Missing license file(s): {', '.join(missing)}")

    logger.info("licenses present for: %s", ", ".join(s.name for s in services))


def check_quota(
    ec2,
    exists: bool,
    zone_count: int,
    region: str,
    confirm: Confirm,
    limit: int = 5,
):
    """Warn when a new stack may exceed the Elastic IP limit.

    Only a new stack allocates addresses, so an existing stack is skipped.
    """
    if exists:
        return

    used = get_used_quota_count(ec2, ELASTIC_IP)
    if limit - used >= zone_count:
        return

    confirm_or_abort(
        confirm,
        f"WARNING: your account has {used} Elastic IPs in use in region {region}.\n"
        f"This stack will create {zone_count} more. AWS's base limit is {limit} "
        "per region, so this stack may fail.\n"
        f"You can request a limit increase from AWS here: {LIMIT_INCREASE_URL}\n"
        "Continue?",
    )
