"""
Interactive prompts, backed by questionary.
"""

import questionary
from questionary import Style

from .discovery import list_availability_zones, list_key_pairs
from .errors import NotFound, PreconditionDeclined

custom_style = Style([
    ("qmark", "fg:cyan bold"),
    ("question", "fg:white bold"),
    ("answer", "fg:green bold"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("selected", "fg:green"),
    ("separator", "fg:gray"),
    ("instruction", "fg:gray"),
])


def confirm(question: str, default: bool = True) -> bool:
    """Yes/no question. Ctrl-C counts as no."""
    answer = questionary.confirm(question, default=default, style=custom_style).ask()
    return bool(answer)


def assume_yes(question: str) -> bool:
    print(f"  {question} [yes]")
    return True


def choose_azs(ec2, region: str, count: int) -> list[str]:
    zones = list_availability_zones(ec2)
    if len(zones) < count:
        raise NotFound(
            f"region {region} has {len(zones)} availability zones, need {count}"
        )

    chosen = questionary.checkbox(
        f"choose {count} availability zones in {region}",
        choices=zones,
        validate=lambda picked: len(picked) == count or f"pick exactly {count}",
        style=custom_style,
    ).ask()
    if not chosen:
        raise PreconditionDeclined("no availability zones chosen")
    return chosen


def choose_key_pair(ec2) -> str:
    key_pairs = list_key_pairs(ec2)
    if not key_pairs:
        raise NotFound("no EC2 key pairs found in this region")

    key_name = questionary.select(
        "choose the key pair to use for SSH",
        choices=key_pairs,
        style=custom_style,
    ).ask()
    if not key_name:
        raise PreconditionDeclined("no key pair chosen")
    return key_name
