#!/usr/bin/env python3

import logging
import argparse
import asyncio

from pydantic import ValidationError

from geolocate import config as agent_config
from geolocate.clock import AsyncioClock
from geolocate.context import LocationContext
from geolocate.continuous import ContinuousUpdateLoop
from geolocate.gpsd import GpsdLocationService
from geolocate.log import ColorLogHandler
from geolocate.models import Platform
from geolocate.permission import PermissionCoordinator
from geolocate.permissions import RemotePermissionService, StaticPermissionService
from geolocate.server import LocationServer
from geolocate.service import SimulatedLocationService

APP_NAME = "geolocate-agent"

logger = logging.getLogger()


def build(config: agent_config.AgentConfig):
    clock = AsyncioClock(config.location.tick_interval, config.location.frame_rate)
    platform = config.location.platform

    if platform == Platform.SIMULATED:
        service = SimulatedLocationService(
            clock,
            fix=config.simulation.fix,
            initialization_ticks=config.simulation.initialization_ticks,
        )
    else:
        service = GpsdLocationService(
            config.gpsd.host, config.gpsd.port, enabled=config.gpsd.enabled
        )

    permissions = None
    if platform == Platform.PERMISSION_GATED:
        if config.permission.mode == "remote":
            permissions = RemotePermissionService()
        else:
            permissions = StaticPermissionService(
                config.permission.granted, config.permission.grant_on_request
            )

    context = LocationContext(service)
    coordinator = PermissionCoordinator(context, clock, platform, permissions)
    updater = ContinuousUpdateLoop(
        context, clock, simulated=platform == Platform.SIMULATED
    )

    return coordinator, updater, permissions


async def request_once(config: agent_config.AgentConfig) -> bool:
    coordinator, _, _ = build(config)

    logger.info(f"Location enabled by user: {coordinator.get_permission_status()}")

    outcome = await coordinator.request_permission()
    if outcome.granted:
        logger.info(f"Permission granted, {outcome.fix}")
    else:
        logger.error("Permission denied or location unavailable")
    return outcome.granted


async def main(config: agent_config.AgentConfig):
    logger.info(f"Starting {APP_NAME} on {config.location.platform} platform")

    coordinator, updater, permissions = build(config)
    server = LocationServer(coordinator, updater, permissions)

    try:
        await server.serve(config.server.host, config.server.port)
    except asyncio.CancelledError:
        updater.stop()
        logger.info("Agent is gracefully shutting down")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Device location permission and update agent"
    )
    parser.add_argument(
        "-l",
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level",
    )
    parser.add_argument(
        "--log-systemd",
        action="store_true",
        help="Enable logging to systemd journal",
    )
    parser.add_argument(
        "--log-names",
        action="store_true",
        help="Show the logger name in console output",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.ini",
        help="Specify the configuration file to use",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Request permission and a single location fix, then exit",
    )
    args = parser.parse_args()

    log_level = logging.getLevelName(args.log_level.upper())
    logger.setLevel(log_level)

    if args.log_systemd:
        from systemd import journal

        logger.addHandler(journal.JournaldLogHandler(identifier=APP_NAME))
    else:
        logger.addHandler(ColorLogHandler(show_name=args.log_names))

    try:
        config = agent_config.load(args.config)
    except ValidationError as e:
        logger.critical(f"Invalid configuration: {e}")
        exit(1)

    try:
        if args.once:
            exit(0 if asyncio.run(request_once(config)) else 1)
        asyncio.run(main(config))
    except KeyboardInterrupt:
        pass
