#!/usr/bin/env python3
"""
Network Map

Main entry point: loads the network description, runs poll cycles and
prints the inferred topology.

Usage:
    python scripts/netmap.py --config network.json
    python scripts/netmap.py -c network.yaml -f text --validate
    python scripts/netmap.py -c network.yaml -f json -o topology.json --cycles 3 --interval 2
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

# Add parent directory to path for imports when running as script
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
if project_root not in sys.path:
    sys.path.insert(0, project_root)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def map_network(
    config_path: str,
    root: Optional[str] = None,
    cycles: int = 1,
    interval: float = 0.0,
    validate: bool = False,
) -> tuple:
    """
    Load the network, poll it and infer its topology.

    Args:
        config_path: Path to the network description
        root: Collector root directory, defaults to the config file's directory
        cycles: Number of poll cycles to run before mapping
        interval: Seconds to wait between poll cycles
        validate: Whether to run the topology validator

    Returns:
        Tuple of (Topology, List[ValidationIssue])
    """
    from inventory import load_inventory
    from engine import Network, TopologyValidator

    logger = logging.getLogger(__name__)

    logger.info(f"Loading network description from {config_path}")
    config = load_inventory(config_path, root=root)
    network = Network(config)

    for cycle in range(cycles):
        if cycle and interval > 0:
            time.sleep(interval)
        logger.info(f"Poll cycle {cycle + 1}/{cycles}")
        network.poll()

    topology = network.map()

    issues = []
    if validate:
        issues = TopologyValidator().validate(topology, network.devices)

    return topology, issues


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Infer network topology from MAC visibility reports"
    )
    parser.add_argument(
        "-c", "--config",
        default="network.json",
        help="Path to network description, YAML or JSON (default: network.json)"
    )
    parser.add_argument(
        "--root",
        help="Directory collector files are relative to (default: config file directory)"
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file path (default: stdout, required for JSON)"
    )
    parser.add_argument(
        "-f", "--format",
        choices=["dot", "text", "json"],
        default="dot",
        help="Output format: dot (Graphviz), text, or json (default: dot)"
    )
    parser.add_argument(
        "--cycles",
        type=int,
        default=1,
        help="Number of poll cycles to run before mapping (default: 1)"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=0.0,
        help="Seconds between poll cycles (default: 0)"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Run topology health checks and include their results"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    from inventory import InventoryError
    from collector import PollError
    from output import to_dot, to_json, to_text, format_issues

    if args.cycles < 1:
        logger.error("--cycles must be at least 1")
        return 1

    if args.format == "json" and not args.output:
        logger.error("--output is required for JSON format")
        return 1

    try:
        topology, issues = map_network(
            args.config,
            root=args.root,
            cycles=args.cycles,
            interval=args.interval,
            validate=args.validate,
        )
    except InventoryError as e:
        logger.error(f"Inventory error: {e}")
        return 1
    except PollError as e:
        logger.error(f"Poll error: {e}")
        return 1

    if args.format == "json":
        to_json(topology, args.output, issues if args.validate else None)
        print(f"Topology written to {args.output}")
        if issues:
            print(format_issues(issues))
        return 0

    if args.format == "text":
        text = to_text(topology, issues)
    else:
        text = to_dot(topology)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Topology written to {args.output}")
        if issues and args.format == "dot":
            print(format_issues(issues))
    else:
        print(text)
        if issues and args.format == "dot":
            print(format_issues(issues), file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
