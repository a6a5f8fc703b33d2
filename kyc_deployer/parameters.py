"""
Services stack parameter building.

build_parameters is pure: the same request and discovery produce the same
list. Zone and key-pair selection happen before it is called.
"""

from dataclasses import dataclass, field
from typing import Iterable

from .constants import (
    AZ_PARAM_PREFIX,
    DISCOVERY_OBJECT_PATH,
    DISCOVERY_PARAM,
    FACE_MATCH,
    KEY_NAME_PARAM,
    KMS_KEY_PARAM,
    LIVENESS_CHECK,
    PAID_SERVICES,
    SPOOF_DETECTION,
)
from .errors import ConfigurationError

Parameter = tuple[str, str]


@dataclass
class EnablementRequest:
    spoof_detection: bool = False
    face_match: bool = False
    liveness_check: bool = False
    enable_ssh: bool = False
    overrides: list[Parameter] = field(default_factory=list)
    # False when the operator left some flag unstated and defaults were used
    explicit: bool = True

    @property
    def enabled(self) -> list[str]:
        """Enabled paid services, in template order."""
        flags = {
            SPOOF_DETECTION: self.spoof_detection,
            FACE_MATCH: self.face_match,
            LIVENESS_CHECK: self.liveness_check,
        }
        return [service.name for service in PAID_SERVICES if flags[service.name]]

    def describe(self) -> str:
        flags = set(self.enabled)
        return ", ".join(
            f"{'enable' if service.name in flags else 'disable'} {service.title}"
            for service in PAID_SERVICES
        )


@dataclass
class DiscoveryResult:
    availability_zones: list[str]
    bucket: str
    region: str
    account_id: str = ""
    encryption_key: str | None = None

    @property
    def discovery_path(self) -> str:
        return f"{self.bucket}/{DISCOVERY_OBJECT_PATH}"


def kms_key_arn(region: str, account_id: str, key: str) -> str:
    if key.startswith("arn:"):
        return key
    return f"arn:aws:kms:{region}:{account_id}:{key}"


def build_parameters(
    request: EnablementRequest,
    discovery: DiscoveryResult,
    key_name: str | None = None,
) -> list[Parameter]:
    """Ordered (key, value) parameters for a create or update."""
    parameters = [
        (f"{AZ_PARAM_PREFIX}{i}", zone)
        for i, zone in enumerate(discovery.availability_zones, 1)
    ]
    parameters.append((DISCOVERY_PARAM, discovery.discovery_path))

    # Disabled services fall back to the template defaults
    enabled = set(request.enabled)
    for service in PAID_SERVICES:
        if service.name not in enabled:
            continue
        parameters.append((service.enable_param, "true"))
        parameters.append(
            (service.license_param, f"{discovery.bucket}/{service.license_path}")
        )

    if request.enable_ssh:
        if not key_name:
            raise ConfigurationError("SSH was requested but no key pair was given")
        parameters.append((KEY_NAME_PARAM, key_name))

    if discovery.encryption_key:
        parameters.append(
            (
                KMS_KEY_PARAM,
                kms_key_arn(
                    discovery.region, discovery.account_id, discovery.encryption_key
                ),
            )
        )

    for key, value in request.overrides:
        parameters.append((key, str(value)))

    return parameters


def to_cfn_parameters(parameters: Iterable[Parameter], upsert: bool) -> list[dict]:
    """Render parameters for the CloudFormation API.

    With upsert, a repeated key keeps its first position and takes the last
    value. Without it, a repeated key is rejected.
    """
    merged: dict[str, str] = {}
    for key, value in parameters:
        if key in merged and not upsert:
            raise ConfigurationError(f"Duplicate stack parameter: {key}")
        merged[key] = value

    return [{"ParameterKey": k, "ParameterValue": v} for k, v in merged.items()]


def parse_overrides(pairs: Iterable[str]) -> list[Parameter]:
    """Parse KEY=VALUE strings from the command line."""
    overrides = []
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Expected KEY=VALUE, got '{pair}'")
        overrides.append((key.strip(), value))
    return overrides
