import argparse
import asyncio
import logging

from goldenflower.errors import ConfigurationError
from goldenflower.models import TableConfig
from .server import run_server

logging.basicConfig(level=logging.INFO)


def main() -> None:
    parser = argparse.ArgumentParser(description="Golden Flower practice server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=9876)
    parser.add_argument("--automated-seats", type=int, default=3, help="House bots at the table (1-5)")
    parser.add_argument("--starting-stack", type=int, default=1_000)
    parser.add_argument("--ante", type=int, default=10)
    parser.add_argument("--round-cap", type=int, default=5)
    parser.add_argument("--pot-cap", type=int, default=1_000)
    parser.add_argument(
        "--decision-time",
        type=int,
        default=15_000,
        help="Decision budget per automated turn in milliseconds (late answers become a call)",
    )
    parser.add_argument("--hands", type=int, default=0, help="Stop after this many hands (0 = until bust)")
    args = parser.parse_args()

    config = TableConfig(
        automated_seats=args.automated_seats,
        starting_stack=args.starting_stack,
        ante=args.ante,
        round_cap=args.round_cap,
        pot_cap=args.pot_cap,
        decision_timeout_ms=args.decision_time,
    )
    try:
        config.validate()
    except ConfigurationError as exc:
        parser.error(str(exc))

    asyncio.run(run_server(args.host, args.port, config, max_hands=args.hands))


if __name__ == "__main__":
    main()
