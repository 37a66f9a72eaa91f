#!/usr/bin/env python
"""Evaluate one account snapshot for a margin call and report the orders."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from margin_engine.apps._cli import add_print_config_arg, print_config
from margin_engine.cli import (
    DEFAULT_LOGGING,
    add_config_arg,
    add_logging_args,
    build_config,
    collect_logging_overrides,
    resolve_path,
    setup_logging_from_config,
)
from margin_engine.config import MarginCallConfig
from margin_engine.evaluator import MarginCallEvaluator
from margin_engine.io import load_account
from margin_engine.orders import OrderProperties
from margin_engine.reporting import holdings_to_frame, orders_to_frame

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": DEFAULT_LOGGING,
    "account": None,
    "output": None,
    "margin_call": MarginCallConfig().to_dict(),
    "order_properties": {
        "time_in_force": "gtc",
        "exchange": None,
    },
}


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Evaluate an account snapshot for margin-call liquidation orders."
    )
    add_config_arg(parser)
    add_logging_args(parser)
    add_print_config_arg(parser)

    parser.add_argument("--account", type=str, default=None, help="Account YAML file.")
    parser.add_argument(
        "--output", type=str, default=None, help="Optional CSV path for the orders."
    )
    parser.add_argument("--margin-buffer", type=float, default=None)
    parser.add_argument("--warning-threshold", type=float, default=None)
    return parser.parse_args(argv)


def _build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    margin_call: dict[str, Any] = {}

    if args.account is not None:
        overrides["account"] = args.account
    if args.output is not None:
        overrides["output"] = args.output
    if args.margin_buffer is not None:
        margin_call["margin_buffer"] = args.margin_buffer
    if args.warning_threshold is not None:
        margin_call["warning_threshold"] = args.warning_threshold
    if margin_call:
        overrides["margin_call"] = margin_call

    logging_overrides = collect_logging_overrides(args)
    if logging_overrides:
        overrides["logging"] = logging_overrides
    return overrides


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    config = build_config(DEFAULT_CONFIG, args.config, _build_overrides(args))
    if args.print_config:
        print_config(config)
        return

    setup_logging_from_config(config.get("logging"))
    logger = logging.getLogger(__name__)

    account_path = resolve_path(config.get("account"))
    if account_path is None:
        raise ValueError("account must be set (--account or `account:` in config).")

    margin_config = MarginCallConfig.from_mapping(config.get("margin_call"))
    properties = OrderProperties(**(config.get("order_properties") or {}))
    account = load_account(account_path)

    logger.info("Account:    %s", account_path)
    logger.info("Holdings:\n%s", holdings_to_frame(account).to_string(index=False))

    evaluation = MarginCallEvaluator(
        account,
        config=margin_config,
        default_order_properties=properties,
    ).evaluate()
    metrics = evaluation.metrics
    if metrics is not None:
        logger.info("Portfolio:  %.2f", metrics.total_portfolio_value)
        logger.info(
            "Margin:     %.2f used, %.2f remaining",
            metrics.total_margin_used,
            metrics.margin_remaining,
        )
        logger.info("Leverage:   %.4f", metrics.average_leverage)
    if evaluation.issue_warning:
        logger.warning("Margin call warning issued.")

    orders = orders_to_frame(evaluation.orders)
    if orders.empty:
        logger.info("No margin call orders.")
    else:
        logger.info("Margin call orders:\n%s", orders.to_string(index=False))

    output = resolve_path(config.get("output"))
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        orders.to_csv(output, index=False)
        logger.info("Orders written to %s", output)


if __name__ == "__main__":
    main()
