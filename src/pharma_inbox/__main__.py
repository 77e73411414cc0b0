"""Entrypoint: python -m pharma_inbox

Commands: ``/list``, ``/open <n>``, ``/retry``, ``/quit``; any other line
is sent to the open conversation and an empty line redraws it.
"""
from __future__ import annotations

import asyncio
import logging

from pharma_inbox.application.exceptions import AppError
from pharma_inbox.config import settings
from pharma_inbox.infrastructure.auth.token import credentials_from_token
from pharma_inbox.services.inbox import Inbox

logger = logging.getLogger(__name__)


def _print_partners(inbox: Inbox) -> None:
    partners = inbox.view.partners
    if not partners:
        print(inbox.view.render())
        return
    for index, partner in enumerate(partners, start=1):
        print(f"{index:>3}. {partner.name} ({partner.role})")


async def _handle(inbox: Inbox, line: str) -> bool:
    if line == "/quit":
        return False
    if line == "/list":
        await inbox.load_conversations()
        _print_partners(inbox)
        return True
    if line.startswith("/open"):
        _, _, arg = line.partition(" ")
        partners = inbox.view.partners
        if not arg.strip().isdigit() or not 1 <= int(arg) <= len(partners):
            print("usage: /open <n> (see /list)")
            return True
        await inbox.open_conversation(partners[int(arg) - 1])
    elif line == "/retry":
        await inbox.controller.retry_failed()
    else:
        inbox.view.set_input(line)
        await inbox.view.key("Enter")
    print(inbox.view.render())
    return True


async def run() -> None:
    credentials = credentials_from_token(settings.API_TOKEN, settings.USER_ID)
    async with Inbox.from_settings(credentials) as inbox:
        _print_partners(inbox)
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if not await _handle(inbox, line.strip()):
                break


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run())
    except AppError as exc:
        logger.error("Inbox could not start: %s", exc.detail)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
