"""
chat-handoff CLI - runs the Telegram relay.

Minimal CLI for starting the bot; operator actions go through the
ChatHandoff API.
"""

import asyncio
import logging
import signal

import typer

from chat_handoff.config import ChatHandoffConfig
from chat_handoff.infra.llm import PROVIDERS
from chat_handoff.infra.mongo.repositories import MongoStorageRepository
from chat_handoff.infra.telegram.transport import TelegramTransport
from chat_handoff.logging import configure_logging, get_logger
from chat_handoff.orchestrator import ChatHandoff

app = typer.Typer(
    name="chat-handoff",
    help="Telegram customer-service bot with operator takeover",
    no_args_is_help=False,
)

logger = get_logger(__name__)


@app.command()
def run(
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Start polling Telegram and answering messages until interrupted."""
    configure_logging(level=logging.DEBUG if debug else logging.INFO, json_output=json_logs)

    config = ChatHandoffConfig()
    if config.telegram.bot_token is None:
        logger.error(
            "telegram_token_missing",
            hint="Set TELEGRAM_BOT_TOKEN or TELE_BOT_TOKEN",
        )
        raise typer.Exit(code=1)

    provider_class = PROVIDERS.get(config.llm.provider)
    if provider_class is None:
        logger.error("unknown_llm_provider", provider=config.llm.provider)
        raise typer.Exit(code=1)

    if not config.llm_configured:
        logger.warning(
            "llm_api_key_missing",
            hint="Bot will answer non-greeting messages with the not-configured reply",
        )

    asyncio.run(_serve(config, provider_class))


async def _serve(config: ChatHandoffConfig, provider_class: type) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with ChatHandoff(
        storage_class=MongoStorageRepository,
        llm_class=provider_class,
        transport_class=TelegramTransport,
        config=config,
    ) as handoff:
        await handoff.serve(stop)


if __name__ == "__main__":
    app()
