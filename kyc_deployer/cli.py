"""
KYC services deployer CLI.

Usage:
    kyc-deployer configure -e dev --spoof-detection --no-face-match --no-liveness-check
    kyc-deployer configure -e dev --face-match --ssh -P InstanceType=t3.large
    kyc-deployer delete -e dev
    kyc-deployer status -e dev
    kyc-deployer setconf -e dev --bot --models
    kyc-deployer setconf -e dev --style --local --project ../mycloud
"""

import argparse
import json
import logging
import sys

from botocore.exceptions import ProfileNotFound

from .config import build_context, create_clients, get_session, load_config
from .discovery import find_stack_id
from .errors import DeployerError, PreconditionDeclined
from .parameters import EnablementRequest, parse_overrides
from .preconditions import confirm_or_abort
from .prompts import assume_yes, choose_azs, choose_key_pair, confirm
from .services_stack import (
    ServicesStackManager,
    delete_services_stack_for,
    describe_services_stack,
)
from .setconf import DEPLOY_ITEMS, deploy, load_items


def build_request(args) -> EnablementRequest:
    flags = (args.spoof_detection, args.face_match, args.liveness_check)
    return EnablementRequest(
        spoof_detection=bool(args.spoof_detection),
        face_match=bool(args.face_match),
        liveness_check=bool(args.liveness_check),
        enable_ssh=args.ssh,
        overrides=parse_overrides(args.param),
        explicit=all(flag is not None for flag in flags),
    )


def cmd_configure(ctx, clients, args):
    """Create, update or delete the services stack to match the flags."""
    print(f"\n{'='*60}")
    print(f"KYC SERVICES: {ctx.environment}")
    print(f"MyCloud:   {ctx.stack_name}")
    print(f"Region:    {ctx.aws_region}")
    print(f"Profile:   {ctx.aws_profile}")
    print(f"{'='*60}")

    manager = ServicesStackManager(
        ctx,
        clients,
        confirm=assume_yes if args.yes else confirm,
        choose_azs=lambda region, count: choose_azs(clients.ec2, region, count),
        choose_key_pair=lambda: choose_key_pair(clients.ec2),
    )
    transition = manager.configure(build_request(args))
    print(f"\nKYC services stack: {transition.value} complete!")


def cmd_delete(ctx, clients, args):
    """Delete the services stack belonging to the MyCloud stack."""
    primary_stack_id = args.stack_arn or find_stack_id(
        clients.cloudformation, ctx.stack_name
    )
    if not primary_stack_id:
        print(f"\nMyCloud stack '{ctx.stack_name}' not found")
        sys.exit(1)

    if not args.yes:
        confirm_or_abort(
            confirm, f"delete the KYC services stack of {ctx.stack_name}?"
        )

    deleted = delete_services_stack_for(
        clients.cloudformation, primary_stack_id, ctx.settings
    )
    print(f"\nDeleted: {deleted}")


def cmd_status(ctx, clients, args):
    """Show the services stack status."""
    summary = describe_services_stack(clients.cloudformation, ctx.services_stack_name)

    print(f"\nStatus: {ctx.services_stack_name}")
    print("=" * 60)
    if not summary:
        print("  Not deployed")
        return

    print(f"  Stack:    {summary['stack_id']}")
    print(f"  Status:   {summary['status']}")
    print(f"  Region:   {summary['region'] or '-'}")
    print(f"  Zones:    {', '.join(summary['availability_zones']) or '-'}")
    print(f"  Services: {', '.join(summary['enabled_services']) or '(none)'}")
    print(f"  SSH:      {'enabled' if summary['ssh_enabled'] else 'disabled'}")


def cmd_setconf(ctx, clients, args):
    """Push configuration items into MyCloud."""
    items = [item for item in DEPLOY_ITEMS if getattr(args, item)]
    if not items:
        print("Nothing to deploy. Pick at least one of: " + ", ".join(DEPLOY_ITEMS))
        return

    print("DEPLOYING TO " + ("LOCAL" if args.local else "REMOTE") + " ENVIRONMENT")
    payload = load_items(ctx.conf_dir, items)
    node_flags = {
        "inspect": args.inspect,
        "debug": args.debug,
        "debug-brk": args.debug_brk,
    }
    result = deploy(
        payload,
        stack_name=ctx.stack_name,
        lambda_client=clients.lambda_ if clients else None,
        local=args.local,
        project_dir=args.project,
        node_flags=node_flags,
    )
    try:
        print(json.dumps(json.loads(result), indent=2))
    except ValueError:
        print(result)


def main():
    parser = argparse.ArgumentParser(
        description="KYC services stack deployer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kyc-deployer configure -e dev --spoof-detection --no-face-match --no-liveness-check
  kyc-deployer configure -e dev --no-spoof-detection --no-face-match --no-liveness-check
  kyc-deployer status -e dev
  kyc-deployer setconf -e dev --bot --models --style --terms
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Common arguments
    def add_common_args(p):
        p.add_argument("-e", "--environment", default="dev", help="Target environment")
        p.add_argument("--profile", help="Override AWS profile")
        p.add_argument("--region", help="Override AWS region")
        p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # configure
    configure_parser = subparsers.add_parser(
        "configure", help="Enable/disable KYC services"
    )
    add_common_args(configure_parser)
    for flag in ("spoof-detection", "face-match", "liveness-check"):
        configure_parser.add_argument(
            f"--{flag}", action=argparse.BooleanOptionalAction, default=None
        )
    configure_parser.add_argument(
        "--ssh", action="store_true", help="Enable SSH into the instances"
    )
    configure_parser.add_argument(
        "-P", "--param", action="append", default=[],
        help="Extra stack parameter KEY=VALUE (repeatable)",
    )
    configure_parser.add_argument(
        "-y", "--yes", action="store_true", help="Answer yes to every confirmation"
    )

    # delete
    delete_parser = subparsers.add_parser("delete", help="Delete the services stack")
    add_common_args(delete_parser)
    delete_parser.add_argument("--stack-arn", help="MyCloud stack ARN")
    delete_parser.add_argument(
        "-y", "--yes", action="store_true", help="Skip confirmation prompt"
    )

    # status
    status_parser = subparsers.add_parser("status", help="Show services stack status")
    add_common_args(status_parser)

    # setconf
    setconf_parser = subparsers.add_parser("setconf", help="Push configuration")
    add_common_args(setconf_parser)
    for item in DEPLOY_ITEMS:
        setconf_parser.add_argument(
            f"-{item[0]}", f"--{item}", action="store_true", help=f"Deploy {item}"
        )
    setconf_parser.add_argument(
        "-l", "--local", action="store_true", help="Deploy to a local serverless project"
    )
    setconf_parser.add_argument("-x", "--project", help="Path to serverless project")
    setconf_parser.add_argument("--inspect", action="store_true")
    setconf_parser.add_argument("--debug", action="store_true")
    setconf_parser.add_argument("--debug-brk", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Load config and build context
    try:
        config = load_config()
        ctx = build_context(
            config,
            args.environment,
            aws_profile=args.profile,
            aws_region=args.region,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.command == "setconf" and args.local:
        clients = None
    else:
        try:
            clients = create_clients(get_session(ctx))
        except ProfileNotFound as e:
            print(f"Error: {e}")
            sys.exit(1)

    commands = {
        "configure": cmd_configure,
        "delete": cmd_delete,
        "status": cmd_status,
        "setconf": cmd_setconf,
    }
    try:
        commands[args.command](ctx, clients, args)
    except PreconditionDeclined:
        print("Aborted.")
        sys.exit(1)
    except (DeployerError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
