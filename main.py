"""
Studio receptionist entry point.

The telephony webhook transport lives outside this package; it creates
sessions with ``ConversationEngine.start_session`` and forwards each
gathered input as a ``Turn``. Locally, the console transport stands in
for it.

Usage:
    Console chat:   python main.py console
    Scripted call:  python main.py scenario booking
"""

import asyncio
import logging
import sys

from call_agent.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode() -> None:
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession().run())


def _run_scenario(name: str) -> None:
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession().run_scenario(name))


if __name__ == "__main__":
    logger.info(
        "Starting %s for %s (env=%s)",
        settings.agent_name,
        settings.business.name,
        settings.environment,
    )
    if len(sys.argv) > 2 and sys.argv[1] == "scenario":
        _run_scenario(sys.argv[2])
    else:
        _run_console_mode()
