"""
Unit tests for the MyCloud reload notification.
"""

import io
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from kyc_deployer.errors import ProviderOperationFailed
from kyc_deployer.notify import invoke, notify_reboot, read_payload


class TestNotifyReboot:
    def test_invokes_reboot_function(self):
        lambda_client = MagicMock()
        lambda_client.invoke.return_value = {"StatusCode": 200, "Payload": io.BytesIO(b"{}")}

        notify_reboot(lambda_client, "tdl-test")

        kwargs = lambda_client.invoke.call_args.kwargs
        assert kwargs["FunctionName"] == "tdl-test-reinitialize-containers"
        assert kwargs["InvocationType"] == "RequestResponse"
        assert json.loads(kwargs["Payload"]) == {}

    def test_function_error(self):
        lambda_client = MagicMock()
        lambda_client.invoke.return_value = {
            "StatusCode": 200,
            "FunctionError": "Unhandled",
            "Payload": io.BytesIO(b'{"errorMessage": "no containers"}'),
        }

        with pytest.raises(ProviderOperationFailed, match="no containers"):
            notify_reboot(lambda_client, "tdl-test")


class TestInvoke:
    def test_error_without_payload_uses_function_error(self):
        lambda_client = MagicMock()
        lambda_client.invoke.return_value = {"StatusCode": 200, "FunctionError": "Handled"}

        with pytest.raises(ProviderOperationFailed) as exc_info:
            invoke(lambda_client, "fn", {})

        assert exc_info.value.detail == "Handled"

    def test_client_error_wrapped(self):
        lambda_client = MagicMock()
        lambda_client.invoke.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "not allowed"}},
            "Invoke",
        )

        with pytest.raises(ProviderOperationFailed, match="Invocation of fn failed") as exc_info:
            invoke(lambda_client, "fn", {})

        assert "not allowed" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, ClientError)


class TestReadPayload:
    @pytest.mark.parametrize("payload,expected", [
        (None, ""),
        (b"abc", "abc"),
        ("abc", "abc"),
        (io.BytesIO(b"abc"), "abc"),
    ])
    def test_forms(self, payload, expected):
        assert read_payload(payload) == expected
