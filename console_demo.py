"""
Offline console demo: runs full receptionist conversations in the terminal.

Drives the real ConversationEngine (session store, intent cascade, state
machine, slot filler, composer, and mock order/booking tools). With no
OPENROUTER_API_KEY set there are no network calls at all.

Usage:
    python console_demo.py
    python console_demo.py --channel voice
    python console_demo.py --scenario booking
    python console_demo.py --scenario tracking
"""

import argparse
import asyncio
import uuid

from call_agent.config import settings
from call_agent.conversation.engine import ConversationEngine
from call_agent.schemas.conversation_schema import Channel, Language, Turn, TurnResponse

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

# Keypad presses are written as "#<digit>"
SCENARIOS: dict[str, list[str]] = {
    "booking": [
        "#2",
        "I want to book a wedding shoot",
        "My name is Asha",
        "something for my shop",
        "product photos please",
        "98765 43210",
        "tomorrow at 11 am",
        "thank you, bye",
    ],
    "hindi": [
        "#1",
        "मुझे बुकिंग करनी है",
        "मेरा नाम राहुल है",
        "शादी",
        "9876543210",
        "परसों",
        "धन्यवाद",
    ],
    "pricing": [
        "#2",
        "how much does it cost?",
    ],
    "tracking": [
        "#2",
        "I want to track my order",
        "it is 100235",
    ],
    "unclear": [
        "#2",
        "umm",
        "what?",
        "goodbye",
    ],
}

MAX_INPUT_LENGTH = 500


class ConsoleSession:
    """One simulated call against a live engine."""

    def __init__(self, channel: Channel = Channel.CHAT) -> None:
        self.engine = ConversationEngine.from_settings()
        self.channel = channel
        self.session_id = f"console-{uuid.uuid4().hex[:8]}"

    def agent_say(self, response: TurnResponse) -> None:
        if not response.ok:
            print(f"{RED}[error] {response.error}{RESET}")
            return
        print(f"{GREEN}{BOLD}[{settings.agent_name}]{RESET} {GREEN}{response.spoken_text}{RESET}")
        gather = response.input_mode.value
        if response.hangup:
            gather = "hangup"
        print(f"{DIM}  >> state={response.state.value if response.state else '-'} "
              f"next={gather} route={response.next_route_key or '-'}{RESET}")

    def _turn(self, text: str) -> Turn:
        if text.startswith("#"):
            return Turn(session_id=self.session_id, digits=text[1:])
        return Turn(session_id=self.session_id, utterance=text)

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  STUDIO RECEPTIONIST - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _summary(self) -> None:
        ledger = self.engine.sink
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Conversation complete.{RESET}")
        for event in getattr(ledger, "all", lambda: [])():
            print(f"{YELLOW}  Booking {event.booking_id}: {event.slots}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        await self.engine.start()
        try:
            self.agent_say(self.engine.start_session(self.session_id, "+910000000000", Channel.VOICE))
            for step in steps:
                print(f"\n{BLUE}[Caller] {RESET}{step}")
                response = await self.engine.handle_turn(self._turn(step))
                self.agent_say(response)
                if response.session_ended:
                    break
        finally:
            await self.engine.close()
        self._summary()

    async def run(self) -> None:
        self._banner("Console Demo")
        print(f"{DIM}  Type 'quit' to exit. Prefix keypad presses with '#'.{RESET}\n")
        await self.engine.start()
        try:
            self.agent_say(self.engine.start_session(
                self.session_id,
                "+910000000000",
                self.channel,
                language=Language.ENGLISH if self.channel == Channel.CHAT else None,
            ))
            while True:
                user_input = input(f"\n{BLUE}[Caller] {RESET}").strip()
                if not user_input:
                    continue
                if user_input.lower() in ("quit", "exit", "q"):
                    self.engine.end_session(self.session_id)
                    print(f"\n{DIM}Session ended.{RESET}")
                    return
                if len(user_input) > MAX_INPUT_LENGTH:
                    print(f"{RED}Input too long, keep it under {MAX_INPUT_LENGTH} characters.{RESET}")
                    continue

                response = await self.engine.handle_turn(self._turn(user_input))
                self.agent_say(response)
                if response.session_ended or not response.ok:
                    break
        finally:
            await self.engine.close()
        self._summary()


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--channel",
        choices=[c.value for c in Channel],
        default=Channel.CHAT.value,
        help="Start as a chat session (main menu) or a voice call (language selection)",
    )
    args = parser.parse_args()

    session = ConsoleSession(Channel(args.channel))
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
