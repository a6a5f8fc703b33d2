"""
KYC services stack lifecycle.

configure() compares what the operator asked for with what is deployed
and picks one transition:

    no stack  + no services   -> nothing
    no stack  + services      -> create
    stack     + services      -> update
    stack     + no services   -> delete

Every confirmation and precondition runs before the first mutating call.
"""

import logging
from enum import Enum
from typing import Any, Callable

from .config import AwsClients, DeployContext, get_services_stack_name
from .constants import (
    KEY_NAME_PARAM,
    PROXY_REPO_NAME,
    SERVICES_BY_ENABLE_PARAM,
    SERVICES_BY_NAME,
)
from .discovery import (
    describe_stack,
    find_stack_id,
    get_account_id,
    get_encryption_key,
    get_private_conf_bucket,
    get_stack_info,
    parse_stack_arn,
)
from .errors import (
    ConfigurationError,
    DeployerError,
    InvariantViolation,
    NotFound,
    ProviderOperationFailed,
)
from .notify import notify_reboot
from .parameters import (
    DiscoveryResult,
    EnablementRequest,
    build_parameters,
    to_cfn_parameters,
)
from .preconditions import Confirm, check_licenses, check_quota, confirm_or_abort
from .provider import (
    await_operation,
    create_stack,
    delete_stack,
    update_stack,
    validate_template,
)
from .tasks import Progress, Task, print_progress, run_tasks

logger = logging.getLogger(__name__)


class Transition(Enum):
    NOOP = "noop"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def plan_transition(exists: bool, request: EnablementRequest) -> Transition:
    wants_services = bool(request.enabled)
    if exists:
        return Transition.UPDATE if wants_services else Transition.DELETE
    return Transition.CREATE if wants_services else Transition.NOOP


class ServicesStackManager:
    """Drives the services stack of one MyCloud deployment.

    Operator interaction comes in through callables so the decision logic
    runs the same with a terminal or with test doubles:

        confirm(question) -> bool
        choose_azs(region, count) -> list of zone names
        choose_key_pair() -> EC2 key pair name
        notifier() -> tells MyCloud to reload (defaults to a reboot invoke)
    """

    def __init__(
        self,
        ctx: DeployContext,
        clients: AwsClients,
        confirm: Confirm,
        choose_azs: Callable[[str, int], list[str]],
        choose_key_pair: Callable[[], str],
        notifier: Callable[[], Any] = None,
        on_progress: Progress = print_progress,
    ):
        self.ctx = ctx
        self.clients = clients
        self.confirm = confirm
        self.choose_azs = choose_azs
        self.choose_key_pair = choose_key_pair
        self.notifier = notifier or (
            lambda: notify_reboot(clients.lambda_, ctx.stack_name)
        )
        self.on_progress = on_progress

    @property
    def template_url(self) -> str:
        return self.ctx.settings["template_url"]

    @property
    def zone_count(self) -> int:
        return int(self.ctx.settings["availability_zone_count"])

    def get_stack_id(self) -> str | None:
        return find_stack_id(self.clients.cloudformation, self.ctx.services_stack_name)

    def get_bucket(self) -> str:
        if self.ctx.private_conf_bucket:
            return self.ctx.private_conf_bucket
        return get_private_conf_bucket(self.clients.cloudformation, self.ctx.stack_name)

    def configure(self, request: EnablementRequest) -> Transition:
        stack_id = self.get_stack_id()
        transition = plan_transition(stack_id is not None, request)
        logger.info(
            "services stack %s: %s (%s)",
            self.ctx.services_stack_name,
            transition.value,
            ", ".join(request.enabled) or "no services",
        )

        if transition is Transition.NOOP:
            print("\nNo services enabled and no services stack deployed. Nothing to do.")
            return transition

        if not request.explicit:
            confirm_or_abort(self.confirm, f"{request.describe()}?")

        if transition is Transition.DELETE:
            self.delete(stack_id)
        else:
            self.deploy(transition, stack_id, request)

        return transition

    def delete(self, stack_id: str):
        if not stack_id:
            raise InvariantViolation("no services stack id to delete")

        confirm_or_abort(
            self.confirm,
            "you've disabled all the services, can I delete the KYC services stack?",
        )
        print(f"\n  Deleting KYC services stack: {stack_id}, ETA: 5-10 minutes")
        cloudformation = self.clients.cloudformation
        run_tasks(
            [
                Task(
                    "delete KYC services stack",
                    lambda shared: await_operation(
                        cloudformation, delete_stack(cloudformation, stack_id)
                    ),
                )
            ],
            self.on_progress,
        )

    def resolve_zones(self, transition: Transition, stack_id: str | None) -> list[str]:
        """Existing stacks keep their zones; new ones get a fresh selection."""
        if transition is Transition.UPDATE:
            if not stack_id:
                raise InvariantViolation("no services stack id to update")
            info = get_stack_info(self.clients.cloudformation, stack_id)
            return info.availability_zones

        zones = list(self.choose_azs(self.ctx.aws_region, self.zone_count))
        if len(zones) != self.zone_count:
            raise ConfigurationError(
                f"Expected {self.zone_count} availability zones, got {len(zones)}"
            )
        return zones

    def deploy(
        self, transition: Transition, stack_id: str | None, request: EnablementRequest
    ):
        exists = transition is Transition.UPDATE
        bucket = self.get_bucket()

        repo_names = [PROXY_REPO_NAME] + [
            SERVICES_BY_NAME[name].repo_name for name in request.enabled
        ]
        confirm_or_abort(
            self.confirm,
            "has Tradle given you access to the following ECR repositories? "
            + ", ".join(repo_names),
        )

        check_licenses(self.clients.s3, request.enabled, bucket, self.confirm)

        zones = self.resolve_zones(transition, stack_id)
        check_quota(
            self.clients.ec2,
            exists,
            len(zones),
            self.ctx.aws_region,
            self.confirm,
            limit=int(self.ctx.settings["eip_limit"]),
        )

        key_name = self.choose_key_pair() if request.enable_ssh else None

        encryption_key = get_encryption_key(self.clients.s3, bucket)
        discovery = DiscoveryResult(
            availability_zones=zones,
            bucket=bucket,
            region=self.ctx.aws_region,
            account_id=get_account_id(self.clients.sts) if encryption_key else "",
            encryption_key=encryption_key,
        )
        parameters = build_parameters(request, discovery, key_name=key_name)
        cfn_parameters = to_cfn_parameters(parameters, upsert=exists)

        print(f"\n  Services stack: {self.ctx.services_stack_name}")
        print(f"    Zones:    {', '.join(zones)}")
        print(f"    Services: {', '.join(request.enabled)}")
        print(f"    Params:   {[p['ParameterKey'] for p in cfn_parameters]}")

        confirm_or_abort(
            self.confirm, f"ready to {transition.value} the KYC services stack?"
        )
        run_tasks(self.stack_tasks(transition, stack_id, cfn_parameters), self.on_progress)

    def stack_tasks(
        self, transition: Transition, stack_id: str | None, cfn_parameters: list[dict]
    ) -> list[Task]:
        cloudformation = self.clients.cloudformation

        def submit(shared: dict):
            validate_template(cloudformation, self.template_url)
            if transition is Transition.UPDATE:
                operation = update_stack(
                    cloudformation, stack_id, self.template_url, cfn_parameters
                )
            else:
                operation = create_stack(
                    cloudformation,
                    self.ctx.services_stack_name,
                    self.template_url,
                    cfn_parameters,
                )
            shared["wait"] = lambda: await_operation(cloudformation, operation)

        def notify(shared: dict):
            try:
                self.notifier()
            except DeployerError as e:
                raise ProviderOperationFailed(
                    "KYC services stack is deployed but MyCloud was not notified",
                    str(e),
                ) from e

        if transition is Transition.UPDATE:
            wait_title = "update KYC services stack"
        else:
            wait_title = "create KYC services stack (this will take ~20 minutes)"

        return [
            Task("validate template", submit),
            Task(wait_title, lambda shared: shared["wait"]()),
            Task("poke MyCloud to pick up update", notify),
        ]


def delete_services_stack_for(cloudformation, primary_stack_id: str, settings: dict = None):
    """Delete the services stack belonging to a MyCloud stack (given by ARN)."""
    stack_name = parse_stack_arn(primary_stack_id)["stack_name"]
    services_stack_id = find_stack_id(
        cloudformation, get_services_stack_name(stack_name, settings)
    )
    if not services_stack_id:
        raise NotFound(f"services stack for mycloud stack: {primary_stack_id}")

    logger.info("KYC services stack: deleting %s, ETA: 5-10 minutes", services_stack_id)
    await_operation(cloudformation, delete_stack(cloudformation, services_stack_id))
    logger.info("KYC services stack: deleted %s", services_stack_id)
    return services_stack_id


def describe_services_stack(cloudformation, services_stack_name: str) -> dict | None:
    """Summarise a deployed services stack, or None when there is none."""
    stack = describe_stack(cloudformation, services_stack_name)
    if not stack:
        return None

    parameters = {
        p["ParameterKey"]: p.get("ParameterValue") for p in stack.get("Parameters", [])
    }
    enabled = [
        service.name
        for key, service in SERVICES_BY_ENABLE_PARAM.items()
        if parameters.get(key) == "true"
    ]
    summary = {
        "stack_id": stack["StackId"],
        "status": stack["StackStatus"],
        "enabled_services": enabled,
        "ssh_enabled": bool(parameters.get(KEY_NAME_PARAM)),
        "region": None,
        "availability_zones": [],
    }
    try:
        info = get_stack_info(cloudformation, stack["StackId"])
    except NotFound:
        # outputs only appear once the stack finished creating
        return summary

    summary["region"] = info.region
    summary["availability_zones"] = info.availability_zones
    return summary
