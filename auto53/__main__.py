"""
Main entry point for auto53.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from auto53.config.config import Config
from auto53.controller.controller import Controller
from auto53.models.errors import Auto53Error
from auto53.provider.route53 import Route53Provider
from auto53.source.ec2_autoscaling import AutoScalingGroupSource
from auto53.utils.health import HealthCheckServer
from auto53.utils.status import ReconciliationStatus


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="auto53",
        description="Keep Route53 A records in sync with EC2 autoscaling groups",
    )
    parser.add_argument("--config", help="path to the naming rules configuration file")
    parser.add_argument("--debug", action="store_true", help="activates debug-level logging")
    parser.add_argument(
        "--dry", action="store_true", help="run without performing modifications"
    )
    parser.add_argument("--interval", help="interval between reconciliations (e.g. 2m)")
    parser.add_argument(
        "--listen", action="store_true", help="serve health and metrics endpoints"
    )
    parser.add_argument("--once", action="store_true", help="run one time and exit")
    parser.add_argument("--port", type=int, help="port for the health endpoints")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """
    Load the configuration file and apply command line overrides.
    """
    config = Config.from_yaml(args.config)
    overrides = {}
    if args.debug:
        overrides["log_level"] = "debug"
    if args.dry:
        overrides["dry_run"] = True
    if args.interval:
        overrides["interval"] = args.interval
    if args.listen:
        overrides["listen"] = True
    if args.once:
        overrides["once"] = True
    if args.port is not None:
        overrides["port"] = args.port
    return config.model_copy(update=overrides)


def setup_logging(level_name: str) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    logging.getLogger().setLevel(log_level)
    # Keep AWS SDK logging quiet unless debugging
    aws_log_level = logging.DEBUG if log_level == logging.DEBUG else logging.WARNING
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(aws_log_level)


async def run(config: Config) -> int:
    """Build the components and run one pass or the reconciliation loop."""
    logger = logging.getLogger("auto53")

    rules = config.naming_rules()
    status = ReconciliationStatus()
    source = AutoScalingGroupSource(
        region=config.aws_region, logger=logging.getLogger("auto53.source.ec2")
    )
    provider = Route53Provider(
        region=config.aws_region,
        dry_run=config.dry_run,
        logger=logging.getLogger("auto53.provider.route53"),
    )
    controller = Controller(
        source,
        provider,
        rules,
        interval=config.interval,
        dry_run=config.dry_run,
        status=status,
        logger=logging.getLogger("auto53.controller"),
    )

    health_server = None
    if config.listen:
        health_server = HealthCheckServer(status, port=config.port)
        health_server.start()

    try:
        if config.once:
            try:
                await controller.run_once()
            except Auto53Error as e:
                logger.error(f"Reconciliation failed: {e}")
                return 1
        else:
            await controller.run_reconciliation_loop()
    finally:
        if health_server:
            health_server.stop()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point."""
    args = parse_args(argv)
    setup_logging("debug" if args.debug else "info")
    logger = logging.getLogger("auto53")

    try:
        config = load_config(args)
        setup_logging(config.log_level)
        logger.info(
            f"Starting auto53 with {len(config.rules)} rules "
            f"({'dry run' if config.dry_run else 'applying changes'})"
        )
        return asyncio.run(run(config))
    except Auto53Error as e:
        logger.error(f"main execution failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nShutting down auto53")
        return 0


if __name__ == "__main__":
    sys.exit(main())
