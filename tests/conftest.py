"""
Pytest configuration and shared fixtures for deployer tests.
"""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from kyc_deployer.config import DEFAULT_SETTINGS, AwsClients, DeployContext

BUCKET = "tdl-test-privateconfbucket"
NEW_STACK_ID = (
    "arn:aws:cloudformation:us-east-1:123456789012:stack/tdl-test-kyc-services/new"
)


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def client_error(code: str, message: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def add_stack(cloudformation, name, stack_id, outputs=None, parameters=None, status="CREATE_COMPLETE"):
    """Register a stack with the fake CloudFormation client, by name and id."""
    stack = {
        "StackId": stack_id,
        "StackName": name,
        "StackStatus": status,
        "Outputs": [
            {"OutputKey": k, "OutputValue": v} for k, v in (outputs or {}).items()
        ],
        "Parameters": [
            {"ParameterKey": k, "ParameterValue": v}
            for k, v in (parameters or {}).items()
        ],
    }
    cloudformation.stacks[name] = stack
    cloudformation.stacks[stack_id] = stack
    return stack


@pytest.fixture
def project_root() -> Path:
    """Fixture providing project root path."""
    return get_project_root()


@pytest.fixture
def cloudformation():
    """CloudFormation double backed by a dict of known stacks."""
    cfn = MagicMock()
    cfn.stacks = {}

    def describe_stacks(StackName):
        if StackName in cfn.stacks:
            return {"Stacks": [cfn.stacks[StackName]]}
        raise client_error(
            "ValidationError",
            f"Stack with id {StackName} does not exist",
            "DescribeStacks",
        )

    cfn.describe_stacks.side_effect = describe_stacks
    cfn.create_stack.return_value = {"StackId": NEW_STACK_ID}
    cfn.update_stack.return_value = {"StackId": "stack-123"}
    cfn.describe_stack_events.return_value = {"StackEvents": []}
    return cfn


@pytest.fixture
def s3():
    """S3 double: every license exists, no default encryption."""
    client = MagicMock()
    client.head_object.return_value = {}
    client.get_bucket_encryption.side_effect = client_error(
        "ServerSideEncryptionConfigurationNotFoundError",
        "The server side encryption configuration was not found",
        "GetBucketEncryption",
    )
    return client


@pytest.fixture
def ec2():
    client = MagicMock()
    client.describe_addresses.return_value = {"Addresses": []}
    return client


@pytest.fixture
def clients(cloudformation, s3, ec2):
    sts = MagicMock()
    sts.get_caller_identity.return_value = {"Account": "123456789012"}
    return AwsClients(
        cloudformation=cloudformation,
        s3=s3,
        ec2=ec2,
        sts=sts,
        lambda_=MagicMock(),
    )


@pytest.fixture
def ctx(tmp_path) -> DeployContext:
    return DeployContext(
        settings=dict(DEFAULT_SETTINGS),
        environment="test",
        aws_profile="default",
        aws_region="us-east-1",
        stack_name="tdl-test",
        private_conf_bucket=BUCKET,
        root=tmp_path,
    )


class Confirmations:
    """Records every question; answers yes unless a declining prefix matches."""

    def __init__(self, decline: tuple = ()):
        self.questions = []
        self.decline = decline

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        return not any(question.startswith(prefix) for prefix in self.decline)


@pytest.fixture
def confirmations():
    return Confirmations()


@pytest.fixture
def make_confirmations():
    """Factory for confirmations that decline questions with given prefixes."""
    return lambda *decline: Confirmations(decline)


# Moto-backed fixtures


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mocked_aws(aws_credentials):
    import boto3
    from moto import mock_aws

    with mock_aws():
        session = boto3.Session(region_name="us-east-1")
        yield session


# Integration test fixtures


@pytest.fixture
def aws_session():
    """
    Fixture providing AWS session for integration tests.
    Requires AWS_PROFILE and AWS_REGION environment variables.
    """
    import boto3

    profile = os.environ.get("AWS_PROFILE", "default")
    region = os.environ.get("AWS_REGION", "us-east-1")

    return boto3.Session(profile_name=profile, region_name=region)


@pytest.fixture
def mycloud_stack_name():
    """MyCloud stack under test, from the environment."""
    name = os.environ.get("MYCLOUD_STACK_NAME")
    if not name:
        pytest.skip("MYCLOUD_STACK_NAME not set - no deployed MyCloud to test against")
    return name


@pytest.fixture
def make_stack(cloudformation):
    """Factory fixture registering a stack with the CloudFormation double."""
    def _make(name, stack_id, **kwargs):
        return add_stack(cloudformation, name, stack_id, **kwargs)
    return _make


@pytest.fixture
def make_client_error():
    return client_error
