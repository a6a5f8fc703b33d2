"""
CloudFormation stack operations for the services stack.

Submitting an operation returns a StackOperation; await_operation blocks
on the matching waiter until CloudFormation reports a terminal status.
"""

import logging
from dataclasses import dataclass

from botocore.exceptions import ClientError, WaiterError

from .constants import CAPABILITIES
from .errors import InvariantViolation, ProviderOperationFailed

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
DELETE = "delete"

WAITERS = {
    CREATE: "stack_create_complete",
    UPDATE: "stack_update_complete",
    DELETE: "stack_delete_complete",
}

WAITER_CONFIG = {"Delay": 10, "MaxAttempts": 360}


@dataclass
class StackOperation:
    kind: str
    stack_id: str
    # CloudFormation had nothing to change; there is nothing to wait for
    no_changes: bool = False


def validate_template(cloudformation, template_url: str) -> dict:
    try:
        return cloudformation.validate_template(TemplateURL=template_url)
    except ClientError as e:
        raise ProviderOperationFailed("Template validation failed", str(e)) from e


def create_stack(
    cloudformation, stack_name: str, template_url: str, parameters: list[dict]
) -> StackOperation:
    """Submit a create. Rollback is disabled so a failed stack stays inspectable."""
    try:
        response = cloudformation.create_stack(
            StackName=stack_name,
            TemplateURL=template_url,
            Parameters=parameters,
            Capabilities=CAPABILITIES,
            DisableRollback=True,
        )
    except ClientError as e:
        raise ProviderOperationFailed(f"Failed to create {stack_name}", str(e)) from e

    logger.info("creating stack %s", response["StackId"])
    return StackOperation(CREATE, response["StackId"])


def update_stack(
    cloudformation, stack_id: str, template_url: str, parameters: list[dict]
) -> StackOperation:
    if not stack_id:
        raise InvariantViolation("update requires an existing stack id")

    try:
        cloudformation.update_stack(
            StackName=stack_id,
            TemplateURL=template_url,
            Parameters=parameters,
            Capabilities=CAPABILITIES,
        )
    except ClientError as e:
        if "No updates" in str(e):
            logger.info("no changes to deploy for %s", stack_id)
            return StackOperation(UPDATE, stack_id, no_changes=True)
        raise ProviderOperationFailed(f"Failed to update {stack_id}", str(e)) from e

    logger.info("updating stack %s", stack_id)
    return StackOperation(UPDATE, stack_id)


def delete_stack(cloudformation, stack_id: str) -> StackOperation:
    if not stack_id:
        raise InvariantViolation("delete requires an existing stack id")

    try:
        cloudformation.delete_stack(StackName=stack_id)
    except ClientError as e:
        raise ProviderOperationFailed(f"Failed to delete {stack_id}", str(e)) from e

    logger.info("deleting stack %s", stack_id)
    return StackOperation(DELETE, stack_id)


def get_failure_detail(cloudformation, stack_id: str, limit: int = 5) -> str:
    """Collect the stack status reason and the latest failed resource events."""
    details = []
    try:
        stacks = cloudformation.describe_stacks(StackName=stack_id).get("Stacks", [])
        if stacks:
            stack = stacks[0]
            reason = stack.get("StackStatusReason")
            details.append(
                f"{stack['StackStatus']}: {reason}" if reason else stack["StackStatus"]
            )

        events = cloudformation.describe_stack_events(StackName=stack_id).get(
            "StackEvents", []
        )
        failed = [
            e for e in events if e.get("ResourceStatus", "").endswith("_FAILED")
        ]
        for event in failed[:limit]:
            details.append(
                f"{event['LogicalResourceId']} {event['ResourceStatus']}: "
                f"{event.get('ResourceStatusReason', '')}"
            )
    except ClientError as e:
        logger.debug("could not read failure detail for %s: %s", stack_id, e)

    return "; ".join(details)


def await_operation(cloudformation, operation: StackOperation):
    """Block until the operation completes; raise with detail if it failed."""
    if operation.no_changes:
        return

    waiter = cloudformation.get_waiter(WAITERS[operation.kind])
    try:
        waiter.wait(StackName=operation.stack_id, WaiterConfig=WAITER_CONFIG)
    except WaiterError as e:
        detail = get_failure_detail(cloudformation, operation.stack_id) or str(e)
        raise ProviderOperationFailed(
            f"Stack {operation.kind} failed for {operation.stack_id}", detail
        ) from e

    logger.info("stack %s complete: %s", operation.kind, operation.stack_id)
