"""Command line interface for the AWS self review tool."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import AuditSettings, configure_logging
from .core import Auditor, normalize_services, run_audit, validate_catalog
from .report import Report, export_results_to_excel, export_results_to_json
from .rules import RuleCatalog, RuleCatalogError
from .services import COLLECTORS

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(
        prog="aws-self-review",
        description="Check AWS resource configurations against best-practice rules.",
    )
    parser.add_argument("--profile", help="AWS CLI profile to use", default=None)
    parser.add_argument("--region", help="AWS region for regional checks", default=None)
    parser.add_argument(
        "--services",
        nargs="*",
        default=None,
        help=f"Subset of services to audit (default: all). Choices: {', '.join(COLLECTORS.keys())}",
    )
    parser.add_argument(
        "-f",
        "--fail-only",
        action="store_true",
        help="Show only failed checks",
    )
    parser.add_argument("--rules", dest="rules_path", help="Path to an alternative rules.yaml")
    parser.add_argument("--json", dest="json_path", help="Optional path to export results as JSON")
    parser.add_argument(
        "--excel",
        dest="excel_path",
        help="Optional path to export results as an Excel workbook (.xlsx)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def section_name(services: List[str]) -> str:
    """Return the report heading for the selected services."""

    if len(services) == 1:
        return COLLECTORS.display_name(services[0])
    return "All Services"


def print_caller_identity(session: boto3.session.Session) -> None:
    try:
        identity = session.client("sts").get_caller_identity()
    except (ClientError, BotoCoreError) as exc:
        logger.warning("Failed to get AWS identity: %s", exc)
        return
    print(f"Executing on AWS Account: {identity['Account']}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point used by ``aws-self-review`` and ``python -m aws_self_review``."""

    settings = AuditSettings.from_args(parse_args(argv))
    configure_logging(settings.verbose)

    try:
        catalog = RuleCatalog.load(settings.rules_path)
        validate_catalog(catalog)
        services = normalize_services(settings.services, COLLECTORS.keys())
    except (RuleCatalogError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    session = boto3.Session(profile_name=settings.profile, region_name=settings.region)
    print_caller_identity(session)

    auditor = Auditor(catalog, Report(fail_only=settings.fail_only))
    try:
        report = run_audit(session, services, auditor)
    except RuleCatalogError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    report.render(section_name(services))
    report.render_skipped()

    if settings.json_path:
        path = export_results_to_json(report.rows, settings.json_path)
        print(f"Results exported to {path}")

    if settings.excel_path:
        try:
            path = export_results_to_excel(report.rows, settings.excel_path)
        except OSError as exc:
            print(f"Failed to export Excel report: {exc}", file=sys.stderr)
        else:
            print(f"Excel report written to {path}")

    return 0


__all__ = ["main", "parse_args", "section_name"]
