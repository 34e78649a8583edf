"""
Development Launcher

Runs the auth, orders and feedback services in one process, each on its
own port from the settings (3001, 3002, 3003 by default).

Run from project root: python scripts/start_dev.py
Stop with Ctrl+C.
"""

import asyncio
import sys
import os
import argparse

import uvicorn
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from restaurant_services.core.config import get_settings

SERVICES = {
    "auth": ("Auth Service", "restaurant_services.auth.main:app", "auth_port"),
    "orders": ("Orders Service", "restaurant_services.orders.main:app", "orders_port"),
    "feedback": ("Feedback Service", "restaurant_services.feedback.main:app", "feedback_port"),
}


async def serve(names: list[str], access_log: bool) -> None:
    settings = get_settings()
    servers = []

    for name in names:
        label, app_path, port_field = SERVICES[name]
        port = getattr(settings, port_field)
        print(f"[{label}] Starting on port {port}...")
        config = uvicorn.Config(
            app_path,
            host=settings.api_host,
            port=port,
            log_level="debug" if settings.debug else "info",
            access_log=access_log,
        )
        servers.append(uvicorn.Server(config))

    print("\nService ports:")
    for name in names:
        label, _, port_field = SERVICES[name]
        print(f"- {label}: http://localhost:{getattr(settings, port_field)}")
    print("\nPress Ctrl+C to stop all services\n")

    await asyncio.gather(*(server.serve() for server in servers))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the restaurant services")
    parser.add_argument(
        "services",
        nargs="*",
        help=f"Services to start: {', '.join(SERVICES)} (default: all)",
    )
    parser.add_argument("--access-log", action="store_true", help="Log every request")
    args = parser.parse_args()

    unknown = [s for s in args.services if s not in SERVICES]
    if unknown:
        parser.error(f"unknown services: {unknown}")

    try:
        asyncio.run(serve(args.services or list(SERVICES), args.access_log))
    except KeyboardInterrupt:
        print("\nStopping all services...")
