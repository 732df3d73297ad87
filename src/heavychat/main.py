"""
Main entry point for heavychat with interactive user input.

This script allows users to:
1. Chat with a single model (light mode)
2. Run each message through the agent graph (heavy mode)
3. Inspect, load and save agent presets
4. View every agent's response behind the last heavy mode answer

Run with: heavychat [path/to/config.yaml]
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .core import (
    ConfigurationManager,
    InvalidPresetFormat,
    create_llm_client,
)
from .session import ChatSession, HEAVY_AGENT_LABEL

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"

HELP_TEXT = """Commands:
  /heavy          Enable heavy mode (multi-agent)
  /light          Disable heavy mode (single model)
  /agents         Show the agent graph
  /details        Show every agent's output for the last answer
  /load <file>    Load an agent preset
  /save <file>    Save the agent graph as a preset
  /help           Show this help
  /quit           Exit"""


def print_banner(session: ChatSession):
    """Print welcome banner."""
    print("\n" + "=" * 80)
    print("HEAVYCHAT - MULTI-AGENT CHAT")
    print("=" * 80)
    print("\nAsk anything. In heavy mode, your message is answered by a graph")
    print("of specialized agents whose outputs are merged into one answer.\n")
    print(HELP_TEXT)
    print(f"\nMode: {'heavy' if session.heavy_mode else 'light'}")


def print_agents(session: ChatSession):
    """Print the agent graph grouped by order."""
    print("\n--- Agents ---")
    for node in sorted(session.agents, key=lambda n: n.order):
        targets = ", ".join(session.agents.get(c).name if c in session.agents else c
                            for c in node.connections) or "(final)"
        print(f"  [order {node.order}] {node.name} ({node.model.value}, "
              f"context {node.context_messages or 'all'}) -> {targets}")


def print_details(session: ChatSession):
    """Print agent responses of the most recent heavy mode answer."""
    for message in reversed(session.messages):
        if message.agent == HEAVY_AGENT_LABEL:
            for response in message.agent_responses:
                print(f"\n--- {response.agent_name} ---\n{response.text}")
            return
    print("No multi-agent response yet.")


def handle_command(session: ChatSession, line: str) -> bool:
    """
    Execute a slash command.

    Returns:
        False when the user asked to quit
    """
    command, _, argument = line.partition(" ")
    argument = argument.strip()

    if command == "/quit":
        return False
    elif command == "/heavy":
        session.set_heavy_mode(True)
        print("Heavy mode on")
    elif command == "/light":
        session.set_heavy_mode(False)
        print("Heavy mode off")
    elif command == "/agents":
        print_agents(session)
    elif command == "/details":
        print_details(session)
    elif command == "/load":
        if not argument:
            print("Usage: /load <file>")
        else:
            try:
                agents = session.load_preset(argument)
                print(f"Loaded {len(agents)} agents from {argument}")
            except InvalidPresetFormat as e:
                print(f"Invalid preset file format: {e}")
    elif command == "/save":
        if not argument:
            print("Usage: /save <file>")
        else:
            try:
                path = session.save_preset(argument)
                print(f"Saved agents to {path}")
            except (OSError, ValueError) as e:
                print(f"Could not save preset: {e}")
    else:
        print(HELP_TEXT)
    return True


async def chat_loop(session: ChatSession):
    """Read user messages until /quit or EOF."""
    while True:
        try:
            line = input("\nYou: ").strip()
        except EOFError:
            break

        if not line:
            continue
        if line.startswith("/"):
            if not handle_command(session, line):
                break
            continue

        print("Generating response..." if not session.heavy_mode else "Agents are deliberating...")
        reply = await session.send(line)
        if reply is not None:
            print(f"\n[{reply.agent}]\n{reply.text}")


def build_session(config_path: Optional[Path] = None) -> ChatSession:
    """Create a chat session from the configuration file."""
    manager = ConfigurationManager(config_path)
    logging.basicConfig(
        level=manager.get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = manager.get_heavy_mode_config()
    llm_client = create_llm_client(manager.get_llm_config())
    session = ChatSession(llm_client, config)

    if config.preset_path:
        try:
            session.load_preset(config.preset_path)
        except InvalidPresetFormat:
            logger.warning("Using built-in agents")

    return session


async def main():
    """Main entry point with user interaction."""
    load_dotenv()

    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH

    try:
        session = build_session(config_path)
        print_banner(session)
        await chat_loop(session)

    except KeyboardInterrupt:
        print("\n\nExiting...")
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
