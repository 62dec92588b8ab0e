#!/usr/bin/env python3
"""
Main entry point for the Driver Ranking Engine.
"""

import argparse
import sys
from pathlib import Path

from driver_ranking.logging_config import configure_logging, get_logger
from driver_ranking.ranking import (
    AHPCalculator,
    HierarchyPayloadSchema,
    Orchestrator,
    RankingRequestSchema,
    ValidationError,
    build_driver_hierarchy,
)

logger = get_logger(__name__)

EXIT_INVALID_INPUT = 2


def run_weights(path: str) -> None:
    """Solve a comparison payload and print the AHP result."""
    payload = HierarchyPayloadSchema.model_validate_json(Path(path).read_text(encoding="utf-8"))
    calculator = AHPCalculator(build_driver_hierarchy())
    result = calculator.solve_hierarchy(payload)
    print(result.model_dump_json(indent=2))


def run_rank(path: str) -> None:
    """Rank the drivers of a request file and print the response."""
    request = RankingRequestSchema.model_validate_json(Path(path).read_text(encoding="utf-8"))
    response = Orchestrator().rank_drivers(request)
    print(response.model_dump_json(indent=2))


def run_template() -> None:
    """Print an empty comparison payload for the driver criteria."""
    payload = build_driver_hierarchy().empty_payload()
    print(payload.model_dump_json(indent=2, by_alias=True))


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Driver Ranking Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  weights   Solve a hierarchical AHP comparison payload
  rank      Filter, weight and rank drivers from a request file
  template  Print an empty comparison payload

Examples:
  python main.py template > payload.json
  python main.py weights payload.json
  python main.py rank request.json
        """,
    )

    parser.add_argument(
        "command",
        choices=["weights", "rank", "template"],
        help="Command to run",
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="JSON input file (weights, rank)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level",
    )

    args = parser.parse_args(argv)

    # Configure logging
    configure_logging(log_level=args.log_level)

    if args.command in ("weights", "rank") and not args.path:
        parser.error(f"'{args.command}' requires a JSON input file")

    # Run command
    try:
        if args.command == "weights":
            run_weights(args.path)
        elif args.command == "rank":
            run_rank(args.path)
        elif args.command == "template":
            run_template()
    except ValidationError as e:
        logger.error("invalid_input", command=args.command, **e.to_dict())
        return EXIT_INVALID_INPUT
    except ValueError as e:
        # Schema validation errors raised while parsing the input file
        logger.error("invalid_input", command=args.command, error=str(e))
        return EXIT_INVALID_INPUT
    except OSError as e:
        logger.error("unreadable_input", command=args.command, path=args.path, error=str(e))
        return EXIT_INVALID_INPUT

    return 0


if __name__ == "__main__":
    sys.exit(main())
