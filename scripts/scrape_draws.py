import argparse
import json
import sys

from loguru import logger

from app import schemas
from app.core.config import get_settings
from app.services.container import ServiceContainer
from app.services.lottery_service import (
    DEFAULT_METHOD,
    UnknownDrawMethodError,
    parse_draw_numbers,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve lottery NGR, prize breakdowns, or token revenue once"
    )
    parser.add_argument(
        "--draws",
        default=None,
        metavar="N[,N...]",
        help="Comma-separated draw numbers to reconcile (e.g. --draws 63,64)",
    )
    parser.add_argument(
        "--prizes", type=int, default=None, metavar="N", help="Dump the prize table of draw N"
    )
    parser.add_argument(
        "--revenue", action="store_true", help="Fetch weekly/annual revenue for every token"
    )
    parser.add_argument(
        "--method",
        default=DEFAULT_METHOD,
        help="Draw source used for --draws/--prizes (scraper|graphql)",
    )
    return parser.parse_args()


def _emit(model: schemas.ApiModel) -> None:
    print(json.dumps(model.model_dump(mode="json", by_alias=True), indent=2))


def main() -> int:
    args = parse_args()
    if not (args.draws or args.prizes or args.revenue):
        logger.error("Nothing to do: pass --draws, --prizes, or --revenue")
        return 2

    services = ServiceContainer.build(get_settings())
    try:
        if args.draws:
            draw_numbers = parse_draw_numbers(args.draws)
            if not draw_numbers:
                logger.error("No valid draw numbers in {!r}", args.draws)
                return 2
            batch = services.lottery.compute_ngr(draw_numbers, method=args.method)
            _emit(schemas.NGRResponse.from_batch(batch))

        if args.prizes:
            lookup = services.lottery.lookup_prizes(args.prizes, method=args.method)
            _emit(schemas.PrizeResponse.from_lookup(lookup))

        if args.revenue:
            report = services.revenue.get_revenue(refresh=True)
            _emit(schemas.RevenueResponse.from_report(report))
    except UnknownDrawMethodError as exc:
        logger.error("{}", exc)
        return 2
    finally:
        services.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
