"""
Unit tests for operator prompts.

questionary is replaced with canned answers.
"""

from unittest.mock import MagicMock

import pytest

from kyc_deployer import prompts
from kyc_deployer.errors import NotFound, PreconditionDeclined


def answer(monkeypatch, kind, value):
    question = MagicMock()
    question.ask.return_value = value
    factory = MagicMock(return_value=question)
    monkeypatch.setattr(prompts.questionary, kind, factory)
    return factory


class TestChooseAzs:
    def test_too_few_zones_is_not_found(self, monkeypatch):
        monkeypatch.setattr(prompts, "list_availability_zones", lambda ec2: ["a", "b"])
        checkbox = answer(monkeypatch, "checkbox", ["a", "b"])

        with pytest.raises(NotFound, match="has 2 availability zones, need 3"):
            prompts.choose_azs(MagicMock(), "us-east-1", 3)

        checkbox.assert_not_called()

    def test_chosen_zones(self, monkeypatch):
        monkeypatch.setattr(
            prompts, "list_availability_zones", lambda ec2: ["a", "b", "c", "d"]
        )
        answer(monkeypatch, "checkbox", ["a", "c", "d"])

        assert prompts.choose_azs(MagicMock(), "us-east-1", 3) == ["a", "c", "d"]

    def test_cancelled(self, monkeypatch):
        monkeypatch.setattr(prompts, "list_availability_zones", lambda ec2: ["a", "b", "c"])
        answer(monkeypatch, "checkbox", None)

        with pytest.raises(PreconditionDeclined):
            prompts.choose_azs(MagicMock(), "us-east-1", 3)


class TestChooseKeyPair:
    def test_no_key_pairs_is_not_found(self, monkeypatch):
        monkeypatch.setattr(prompts, "list_key_pairs", lambda ec2: [])

        with pytest.raises(NotFound):
            prompts.choose_key_pair(MagicMock())

    def test_selected(self, monkeypatch):
        monkeypatch.setattr(prompts, "list_key_pairs", lambda ec2: ["admin", "ops"])
        answer(monkeypatch, "select", "ops")

        assert prompts.choose_key_pair(MagicMock()) == "ops"


class TestConfirm:
    def test_interrupt_counts_as_no(self, monkeypatch):
        answer(monkeypatch, "confirm", None)

        assert prompts.confirm("go?") is False
