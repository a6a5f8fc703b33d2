"""
Shared configuration loader for the KYC services deployer.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import boto3
import yaml

DEFAULT_SETTINGS = {
    "template_url": "https://s3.amazonaws.com/tradle.io/cf-templates/kyc-in-tradle/main.yml",
    "stack_name_suffix": "kyc-services",
    "eip_limit": 5,
    "availability_zone_count": 3,
    "conf_dir": "conf",
    "profiles_file": "profiles.yaml",
}


def get_project_root() -> Path:
    """Get project directory (configs, conf items)."""
    return Path(__file__).parent.parent


def load_profiles(profiles_file: str = "profiles.yaml", root: Path = None) -> dict:
    """Load profiles from profiles.yaml."""
    path = Path(profiles_file)
    if not path.is_absolute():
        path = (root or get_project_root()) / path
    if not path.exists():
        return {"profiles": {}}
    with open(path) as f:
        return yaml.safe_load(f) or {"profiles": {}}


def load_config(path: Path = None) -> dict:
    """Load deployer.yaml, fill in default settings and merge in profiles."""
    if path is None:
        path = get_project_root() / "deployer.yaml"

    config = {}
    if path.exists():
        with open(path) as f:
            config = yaml.safe_load(f) or {}

    settings = dict(DEFAULT_SETTINGS)
    settings.update(config.get("settings") or {})
    config["settings"] = settings

    profiles_data = load_profiles(settings["profiles_file"], root=path.parent)
    config["profiles"] = profiles_data.get("profiles", {})
    return config


def get_environment_config(config: dict, environment: str) -> dict:
    """Get configuration for a specific environment."""
    env_config = config.get("profiles", {}).get(environment, {})
    if not env_config:
        raise ValueError(
            f"Environment '{environment}' not found in profiles.yaml"
        )
    return env_config


@dataclass
class DeployContext:
    settings: dict
    environment: str
    aws_profile: str
    aws_region: str
    stack_name: str
    private_conf_bucket: str | None = None
    root: Path = field(default_factory=get_project_root)

    @property
    def services_stack_name(self) -> str:
        return get_services_stack_name(self.stack_name, self.settings)

    @property
    def conf_dir(self) -> Path:
        conf_dir = Path(self.settings["conf_dir"])
        if not conf_dir.is_absolute():
            conf_dir = self.root / conf_dir
        return conf_dir


def get_services_stack_name(stack_name: str, settings: dict = None) -> str:
    suffix = (settings or DEFAULT_SETTINGS)["stack_name_suffix"]
    return f"{stack_name}-{suffix}"


def build_context(
    config: dict,
    environment: str,
    aws_profile: str = None,
    aws_region: str = None,
) -> DeployContext:
    """Build a DeployContext from loaded config plus CLI overrides."""
    env_config = get_environment_config(config, environment)
    stack_name = env_config.get("stack_name")
    if not stack_name:
        raise ValueError(
            f"stack_name not configured for environment '{environment}'"
        )

    return DeployContext(
        settings=config["settings"],
        environment=environment,
        aws_profile=aws_profile or env_config.get("aws_profile", "default"),
        aws_region=aws_region or env_config.get("aws_region", "us-east-1"),
        stack_name=stack_name,
        private_conf_bucket=env_config.get("private_conf_bucket"),
    )


@dataclass
class AwsClients:
    cloudformation: Any
    s3: Any
    ec2: Any
    sts: Any
    lambda_: Any


def get_session(ctx: DeployContext):
    return boto3.Session(profile_name=ctx.aws_profile, region_name=ctx.aws_region)


def create_clients(session) -> AwsClients:
    """Create every boto3 client the deployer talks to from one session."""
    return AwsClients(
        cloudformation=session.client("cloudformation"),
        s3=session.client("s3"),
        ec2=session.client("ec2"),
        sts=session.client("sts"),
        lambda_=session.client("lambda"),
    )
