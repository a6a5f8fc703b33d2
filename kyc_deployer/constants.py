"""
Fixed vocabulary shared with the services stack template.

Keys here must match the template's parameters; adding a service means
changing the template first.
"""

from dataclasses import dataclass

SPOOF_DETECTION = "spoofDetection"
FACE_MATCH = "faceMatch"
LIVENESS_CHECK = "livenessCheck"


@dataclass(frozen=True)
class PaidService:
    name: str
    title: str
    enable_param: str
    license_param: str
    license_path: str
    repo_name: str


# Order here is the order parameters are emitted in.
PAID_SERVICES = (
    PaidService(
        name=SPOOF_DETECTION,
        title="Spoof Detection",
        enable_param="EnableSpoofDetection",
        license_param="S3PathToSpoofLicense",
        license_path="licenses/spoof-detection.lic",
        repo_name="tradle-kyc-spoof-detection",
    ),
    PaidService(
        name=FACE_MATCH,
        title="Face Match",
        enable_param="EnableFaceMatch",
        license_param="S3PathToFaceMatchLicense",
        license_path="licenses/face-match.lic",
        repo_name="tradle-kyc-face-match",
    ),
    PaidService(
        name=LIVENESS_CHECK,
        title="Liveness Check",
        enable_param="EnableLivenessCheck",
        license_param="S3PathToLivenessLicense",
        license_path="licenses/liveness-check.lic",
        repo_name="tradle-kyc-liveness-check",
    ),
)

SERVICES_BY_NAME = {service.name: service for service in PAID_SERVICES}
SERVICES_BY_ENABLE_PARAM = {service.enable_param: service for service in PAID_SERVICES}

# Always pulled, whatever services are enabled.
PROXY_REPO_NAME = "tradle-kyc-nginx-proxy"

DISCOVERY_OBJECT_PATH = "discovery/ecs-services.json"

AZ_PARAM_PREFIX = "AZ"
DISCOVERY_PARAM = "S3PathToWriteDiscovery"
KEY_NAME_PARAM = "KeyName"
KMS_KEY_PARAM = "S3KMSKey"

# Stack outputs read back from an existing services stack.
OUTPUT_AVAILABILITY_ZONES = "AvailabilityZones"
OUTPUT_REGION = "Region"

# Primary stack output naming its private configuration bucket.
OUTPUT_PRIVATE_CONF_BUCKET = "PrivateConfBucket"

CAPABILITIES = ["CAPABILITY_NAMED_IAM"]

ELASTIC_IP = "elastic-ip"

SETCONF_FUNCTION = "setconf"
REBOOT_FUNCTION = "reinitialize-containers"
