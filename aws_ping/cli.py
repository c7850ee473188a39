"""Argument parsing, configuration loading, and discovery bootstrap."""

from __future__ import annotations

import argparse
import logging
import sys

from .config import load_config
from .daemon import Daemon
from .discovery.filters import parse_filters, parse_tag_names
from .discovery.resolver import MembershipResolver
from .exceptions import ConfigurationError, DiscoveryError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aws-ping",
        description="EC2 cluster membership discovery",
    )
    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--cluster",
        help="Cluster name to resolve (overrides discovery.cluster_name)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Resolve members once, print one address per line and exit",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration file and discovery criteria, then exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.validate:
            # Parse here too so malformed criteria fail without touching the network.
            if config.discovery.filters is not None:
                parse_filters(config.discovery.filters)
            if config.discovery.tag_names is not None:
                parse_tag_names(config.discovery.tag_names)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    cluster_name = args.cluster or config.discovery.cluster_name

    try:
        resolver = MembershipResolver.from_config(config)
        daemon = Daemon(resolver, cluster_name, config.polling)
        if args.once:
            for member in daemon.run_once():
                print(member)
        else:
            daemon.run()
    except DiscoveryError as exc:
        logger.error("Fatal error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0

    return 0
