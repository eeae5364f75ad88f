"""Operator CLI for cloud onboarding (CCE) workflows.

This module serves as a CLI wrapper around onboarding.core.cce services.
"""
from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from onboarding.config import load_settings
from onboarding.core.cce import (
    AddOrganizationAccountSync,
    AWSService,
    AzureService,
    CancellationToken,
    CCEClient,
    ServiceInput,
    WorkspaceFilter,
)
from onboarding.core.cce.exceptions import CCEError


def parse_service(value: str) -> ServiceInput:
    """Parse ``NAME`` or ``NAME:{json resources}`` into a ``ServiceInput``."""
    name, sep, raw = value.partition(":")
    name = name.strip()
    if not name:
        raise argparse.ArgumentTypeError(f"invalid service '{value}': missing name")
    resources = {}
    if sep:
        try:
            resources = json.loads(raw)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid resources JSON for service '{name}': {exc}") from exc
        if not isinstance(resources, dict):
            raise argparse.ArgumentTypeError(f"resources for service '{name}' must be a JSON object")
    return ServiceInput(service_name=name, resources=resources)


def _to_jsonable(result):
    if dataclasses.is_dataclass(result):
        return dataclasses.asdict(result)
    if isinstance(result, list):
        return [_to_jsonable(item) for item in result]
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cloud onboarding helper")
    parser.add_argument("--token", help="Access token (default: /run/secrets/cce_token or CCE_TOKEN)")
    parser.add_argument("--tenant-subdomain", help="Tenant subdomain (default: CCE_TENANT_SUBDOMAIN)")
    parser.add_argument("--deadline", type=float, default=None,
                        help="Abort waits after this many seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd")

    scan = sub.add_parser("scan-organization", help="Trigger an AWS organization discovery scan")
    scan.add_argument("--organization-id", default="", help="Native AWS organization ID (o-...)")

    add = sub.add_parser("add-org-account", help="Add an account to an organization, scanning if needed")
    add.add_argument("--organization-id", required=True, help="Organization onboarding ID")
    add.add_argument("--account-id", required=True)
    add.add_argument("--service", dest="services", action="append", type=parse_service, required=True)
    add.add_argument("--scan-max-retries", type=int, default=None)
    add.add_argument("--scan-interval", type=float, default=None)

    for cmd in ("update-account", "update-organization", "update-entra",
                "update-management-group", "update-subscription"):
        sp = sub.add_parser(cmd, help="Reconcile attached services")
        sp.add_argument("--id", required=True, help="Onboarding ID")
        sp.add_argument("--service", dest="services", action="append", type=parse_service, required=True)

    get = sub.add_parser("get-account", help="Show an onboarded AWS account")
    get.add_argument("--id", required=True)

    lw = sub.add_parser("list-workspaces", help="List workspaces across all pages")
    lw.add_argument("--cloud", choices=["aws", "azure"], default="aws")
    lw.add_argument("--services", default="", help="Comma-separated service filter")
    lw.add_argument("--include-empty", action="store_true")

    return parser


def run(args, settings) -> object:
    """Dispatch a parsed command and return its result."""
    client = CCEClient(
        args.token or settings.token,
        tenant_subdomain=args.tenant_subdomain or settings.tenant_subdomain,
        base_tenant_url=settings.base_tenant_url,
        deploy_env=settings.deploy_env,
        timeout=settings.request_timeout,
    )
    cancel_token = CancellationToken(timeout=args.deadline) if args.deadline else None
    aws = AWSService(client, retry_policy=settings.retry_policy(), cancel_token=cancel_token)
    azure = AzureService(client, retry_policy=settings.retry_policy(), cancel_token=cancel_token)

    if args.cmd == "scan-organization":
        aws.scan_organization(args.organization_id)
        return {"scan_triggered": True, "organization_id": args.organization_id}
    if args.cmd == "add-org-account":
        probe = settings.scan_probe()
        if args.scan_max_retries is not None:
            probe.max_retries = args.scan_max_retries
        if args.scan_interval is not None:
            probe.interval_seconds = args.scan_interval
        request = AddOrganizationAccountSync(args.organization_id, args.account_id, args.services, probe)
        return aws.add_organization_account_sync(request)
    if args.cmd == "update-account":
        return aws.update_account(args.id, args.services)
    if args.cmd == "update-organization":
        return aws.update_organization(args.id, args.services)
    if args.cmd == "update-entra":
        return azure.update_entra(args.id, args.services)
    if args.cmd == "update-management-group":
        return azure.update_management_group(args.id, args.services)
    if args.cmd == "update-subscription":
        return azure.update_subscription(args.id, args.services)
    if args.cmd == "get-account":
        return aws.get_account(args.id)
    if args.cmd == "list-workspaces":
        filters = WorkspaceFilter(
            include_empty_workspaces=args.include_empty,
            services=[name for name in args.services.split(",") if name.strip()],
        )
        service = aws if args.cloud == "aws" else azure
        return service.list_workspaces(filters)
    raise ValueError(f"unknown command {args.cmd}")


def main() -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings()
    except RuntimeError as e:
        parser.error(str(e))
    if not (args.token or settings.token):
        parser.error("Missing access token (use --token, CCE_TOKEN or /run/secrets/cce_token)")

    try:
        result = run(args, settings)
    except CCEError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(_to_jsonable(result), indent=2, default=str))


if __name__ == "__main__":
    main()
