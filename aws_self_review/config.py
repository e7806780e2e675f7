"""Run-wide settings resolved from the command line."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class AuditSettings:
    """Immutable settings for one audit run."""

    profile: Optional[str] = None
    region: Optional[str] = None
    services: Tuple[str, ...] = ()
    fail_only: bool = False
    rules_path: Optional[str] = None
    json_path: Optional[str] = None
    excel_path: Optional[str] = None
    verbose: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "AuditSettings":
        return cls(
            profile=args.profile,
            region=args.region,
            services=tuple(args.services or ()),
            fail_only=args.fail_only,
            rules_path=args.rules_path,
            json_path=args.json_path,
            excel_path=args.excel_path,
            verbose=args.verbose,
        )


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr; DEBUG when *verbose*, WARNING otherwise."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    # botocore is chatty at DEBUG.
    logging.getLogger("botocore").setLevel(logging.WARNING)


__all__ = ["AuditSettings", "configure_logging"]
