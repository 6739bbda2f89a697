from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from application.registry import AccountRegistry
from domain.gateways import CodeGenerator, MessageGateway

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 10.0


@dataclass
class RefreshFailure:
    account_id: int
    error: str


@dataclass
class RefreshReport:
    """Summary of one sweep over the registry."""

    updated: int = 0
    failures: List[RefreshFailure] = field(default_factory=list)


async def refresh_codes(
    registry: AccountRegistry,
    code_generator: CodeGenerator,
    gateway: MessageGateway,
) -> RefreshReport:
    """
    Edit every account's code message to show its current code.

    Accounts are handled one at a time in registry order. A failure on one
    account is logged and recorded, and the sweep moves on to the next.
    """

    report = RefreshReport()
    accounts = registry.snapshot()
    logger.info("Issuing code updates for %d account(s)", len(accounts))

    for account in accounts:
        try:
            code = code_generator.generate_code(account.shared_secret)
            await gateway.edit_code_message(
                account.message_ref, account.account_name, code
            )
            report.updated += 1
        except Exception as exc:
            logger.exception("Failed refreshing account %s", account.id)
            report.failures.append(RefreshFailure(account_id=account.id, error=str(exc)))

    return report


class CodeRefresher:
    """
    Runs `refresh_codes` at a fixed rate for the lifetime of the process.

    Sweeps never overlap: a tick that fires while a sweep is still running
    is skipped, and ticks missed by a long sweep are dropped rather than
    queued.
    """

    def __init__(
        self,
        registry: AccountRegistry,
        code_generator: CodeGenerator,
        gateway: MessageGateway,
        interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
    ):
        self.registry = registry
        self.code_generator = code_generator
        self.gateway = gateway
        self.interval = interval
        self._sweep_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()

    async def tick(self) -> Optional[RefreshReport]:
        if self._sweep_lock.locked():
            logger.warning("Previous sweep still running, skipping tick")
            return None

        async with self._sweep_lock:
            return await refresh_codes(self.registry, self.code_generator, self.gateway)

    async def run_forever(self) -> None:
        logger.info("CodeRefresher started (interval=%ss)", self.interval)
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while not self._stop_event.is_set():
            await self.tick()

            next_tick += self.interval
            now = loop.time()
            if next_tick <= now:
                missed = int((now - next_tick) // self.interval) + 1
                logger.warning("Sweep overran its period, skipping %d tick(s)", missed)
                next_tick += missed * self.interval

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=next_tick - now)
            except asyncio.TimeoutError:
                pass

        logger.info("CodeRefresher stopped")

    def stop(self) -> None:
        self._stop_event.set()
