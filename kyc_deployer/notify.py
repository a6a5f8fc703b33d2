"""
Tell a MyCloud deployment to reload its configuration.
"""

import json
import logging

from botocore.exceptions import ClientError

from .constants import REBOOT_FUNCTION
from .errors import ProviderOperationFailed

logger = logging.getLogger(__name__)


def get_function_name(stack_name: str, function: str) -> str:
    return f"{stack_name}-{function}"


def read_payload(payload) -> str:
    """Lambda returns a streaming body; tests and callers may pass bytes or str."""
    if payload is None:
        return ""
    if hasattr(payload, "read"):
        payload = payload.read()
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    return payload


def invoke(lambda_client, function_name: str, payload: dict) -> str:
    """Invoke a function synchronously; a failed invocation raises."""
    try:
        response = lambda_client.invoke(
            FunctionName=function_name,
            InvocationType="RequestResponse",
            Payload=json.dumps(payload),
        )
    except ClientError as e:
        raise ProviderOperationFailed(
            f"Invocation of {function_name} failed", str(e)
        ) from e

    body = read_payload(response.get("Payload"))
    function_error = response.get("FunctionError")
    if function_error or response.get("StatusCode", 200) >= 300:
        raise ProviderOperationFailed(
            f"Invocation of {function_name} failed", body or function_error
        )
    return body


def notify_reboot(lambda_client, stack_name: str) -> str:
    """Poke MyCloud so running containers pick up the new services."""
    function_name = get_function_name(stack_name, REBOOT_FUNCTION)
    logger.info("asking %s to reload configuration", stack_name)
    return invoke(lambda_client, function_name, {})
