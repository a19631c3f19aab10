"""
Entry point for running one swap from the command line.

Usage:
    python -m tokenswap.runtime FROM TO AMOUNT

AMOUNT is read in the configured display notation (TOKENSWAP_NUMBER_FORMAT).
"""

import argparse
import sys
from typing import NoReturn

import anyio
import structlog

from tokenswap.bus.topics import SwapTopics, WalletTopics
from tokenswap.core.config import get_settings
from tokenswap.core.errors import TokenSwapError
from tokenswap.core.log_config import configure_logging
from tokenswap.core.messages import Message
from tokenswap.runtime.bootstrap import build_app

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tokenswap", description="Run a simulated token swap")
    parser.add_argument("from_currency")
    parser.add_argument("to_currency")
    parser.add_argument("amount")
    return parser.parse_args(argv)


async def run_swap(args: argparse.Namespace) -> None:
    """Fill the form from `args`, report what it shows, and submit."""
    settings = get_settings()
    app = build_app(
        settings,
        from_currency=args.from_currency,
        to_currency=args.to_currency,
    )
    form = app.form

    async def log_event(message: Message) -> None:
        logger.info("bus_event", topic=message.topic, payload=message.payload)

    await app.bus.subscribe(SwapTopics.ALL, log_event)
    await app.bus.subscribe(WalletTopics.ALL, log_event)

    form.type_from(args.amount)
    logger.info(
        "swap_quote",
        pay=f"{form.from_display} {form.state.from_currency}",
        receive=f"{form.to_display} {form.state.to_currency}",
        rate=form.rate_display,
        balance=form.balance_display,
        errors=form.errors,
    )

    if not form.can_submit:
        logger.error("swap_blocked", errors=form.errors)
        raise SystemExit(2)

    receipt = await form.submit()
    logger.info(
        "swap_receipt",
        receipt_id=receipt.id,
        from_balance=str(receipt.from_balance.current),
        to_balance=str(receipt.to_balance.current),
    )


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    args = parse_args(argv)
    try:
        anyio.run(run_swap, args)
        sys.exit(0)
    except KeyboardInterrupt:
        logger.info("interrupted")
        sys.exit(130)
    except TokenSwapError:
        logger.exception("swap_failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
