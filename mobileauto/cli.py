# mobileauto/cli.py
"""
@file cli.py
@brief Command-line interface for mobileauto.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, List, Optional

from .appium import AppiumSession
from .capabilities import (DEVICE_PROFILES, get_capabilities, is_browserstack, load_env,
                           redact, remote_endpoint)
from .config import TimeConfig
from .exceptions import MobileAutoError
from .metrics import ScenarioMetrics
from .repository import Repository
from .resolver import Resolver


def _resolve_timing_options(args: argparse.Namespace) -> tuple[Optional[str], Dict[str, Any]]:
    """Preset from CLI flags (None keeps the object-map preset) plus timeout override."""
    preset = None
    if getattr(args, "ci", False):
        preset = "ci"
    elif getattr(args, "fast", False):
        preset = "fast"
    elif getattr(args, "slow", False):
        preset = "slow"

    overrides: Dict[str, Any] = {}
    timeout = getattr(args, "timeout", None)
    if timeout is not None:
        overrides = {
            "resolve_element": {"timeout": timeout},
            "visibility_poll": {"timeout": timeout},
        }
    return preset, overrides


def _build_time_config(repo: Repository, args: argparse.Namespace) -> TimeConfig:
    preset, overrides = _resolve_timing_options(args)
    if preset is None:
        return repo.time_config(overrides)
    return TimeConfig.build_from(
        preset=preset,
        overrides=overrides,
        app_defaults={"retry_attempts": repo.app.retry_attempts},
    )


def _cmd_validate(args: argparse.Namespace) -> int:
    try:
        repo = Repository(args.elements)
    except MobileAutoError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2
    print(f"[OK] {repo.path}: {len(repo.list_elements())} elements")
    return 0


def _cmd_list_elements(args: argparse.Namespace) -> int:
    try:
        repo = Repository(args.elements)
    except MobileAutoError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    for name in repo.list_elements():
        chain = repo.candidates(name)
        print(f"{name}: {chain[0]}")
        for fallback in chain[1:]:
            print(f"    fallback: {fallback}")
    return 0


def _cmd_capabilities(args: argparse.Namespace) -> int:
    try:
        if is_browserstack():
            caps = get_capabilities(device_profile=args.profile, session_name=args.session_name)
        else:
            caps = get_capabilities()
    except MobileAutoError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    print(json.dumps(redact(caps), indent=2, sort_keys=True))
    return 0


def _cmd_probe(args: argparse.Namespace) -> int:
    """Create a session, resolve the named elements one by one, report timings."""
    try:
        repo = Repository(args.elements)
        descriptors = [repo.descriptor(name) for name in args.names]
        capabilities = get_capabilities()
    except MobileAutoError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    cfg = _build_time_config(repo, args)
    metrics = ScenarioMetrics(name="probe")
    server = args.server or remote_endpoint()

    with AppiumSession(server) as session:
        try:
            session.create_session(capabilities)
        except MobileAutoError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 1
        session.sleep(cfg.app_ready_pause)

        resolver = Resolver(session, config=cfg, artifacts_dir=args.artifacts or repo.app.artifacts_dir)
        status = 0
        for descriptor in descriptors:
            started = time.monotonic()
            try:
                resolver.resolve(descriptor)
                metrics.record(descriptor.description, time.monotonic() - started)
                print(f"[OK] {descriptor}")
            except MobileAutoError as e:
                metrics.record(descriptor.description, time.monotonic() - started, status="failed", error=str(e))
                print(f"[FAIL] {e}", file=sys.stderr)
                status = 2
        print(resolver.counters.summary())
        print(metrics.summary())
    return status


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = argv if argv is not None else sys.argv[1:]

    p = argparse.ArgumentParser(
        prog="mobileauto",
        description="mobileauto - cached, retrying element resolution for Appium sessions",
    )
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--env-file", default=None, help="Optional .env file to load before running")
    sub = p.add_subparsers(dest="cmd", required=True)

    valp = sub.add_parser("validate", help="Validate an object map YAML")
    valp.add_argument("--elements", "-e", required=True, help="Path to elements.yaml file")

    listp = sub.add_parser("list-elements", help="List all defined elements and their fallbacks")
    listp.add_argument("--elements", "-e", required=True, help="Path to elements.yaml file")

    capp = sub.add_parser("capabilities", help="Print the capabilities for the current environment")
    capp.add_argument("--profile", default="samsung_s22", choices=sorted(DEVICE_PROFILES), help="BrowserStack device profile")
    capp.add_argument("--session-name", default="Wiki App Test", help="BrowserStack session name")

    probep = sub.add_parser("probe", help="Resolve elements against a live Appium server")
    probep.add_argument("--elements", "-e", required=True, help="Path to elements.yaml file")
    probep.add_argument("names", nargs="+", help="Element names from the object map")
    probep.add_argument("--server", default=None, help="Appium hub URL (defaults from environment)")
    probep.add_argument("--artifacts", default=None, help="Directory for failure screenshots")
    probep.add_argument("--timeout", "-t", type=float, default=None, help="Override per-attempt timeout in seconds")
    probep.add_argument("--ci", action="store_true", help="Use CI-optimized timeout settings")
    probep.add_argument("--fast", action="store_true", help="Use fast timeout settings for local development")
    probep.add_argument("--slow", action="store_true", help="Use slow timeout settings for unstable environments")

    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_env(args.env_file)

    if args.cmd == "validate":
        return _cmd_validate(args)
    if args.cmd == "list-elements":
        return _cmd_list_elements(args)
    if args.cmd == "capabilities":
        return _cmd_capabilities(args)
    if args.cmd == "probe":
        return _cmd_probe(args)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
