"""Ordered fallback over sign-in strategies."""
from typing import Awaitable, Callable, Optional

from toolkit_auth.auth.account import Account
from toolkit_auth.config import get_logger
from toolkit_auth.logging import with_context
from toolkit_auth.models.errors import AuthError, NoStrategyAvailableError

logger = get_logger(__name__)

AccountProducer = Callable[[], Awaitable[Account]]

DEFAULT_TERMINAL_MESSAGE = "Cannot authenticate with the requested configuration."


class StrategyChain:
    """
    Runs account producers in order until one signs in.

    A producer is a zero-argument callable returning an awaitable signed-in
    account; it is only called when every earlier producer has failed. A
    failure is any exception, including an unavailable strategy. When all
    producers fail the chain raises ``NoStrategyAvailableError`` with the
    terminal message rather than whichever error came last.

    Usage:
        chain = StrategyChain()
        chain.add(lambda: AzureCliAccount().login())
        chain.add(lambda: DeviceCodeAccount().login())
        account = await chain.run()
    """

    def __init__(self, terminal_message: str = DEFAULT_TERMINAL_MESSAGE) -> None:
        self._producers: list[tuple[str, AccountProducer]] = []
        self._terminal_message = terminal_message

    def add(self, producer: AccountProducer, name: Optional[str] = None) -> "StrategyChain":
        """Append a producer; ``name`` only labels it in logs and error details."""
        self._producers.append((name or f"strategy-{len(self._producers) + 1}", producer))
        return self

    def __len__(self) -> int:
        return len(self._producers)

    async def _terminal(self, attempts: list[dict[str, str]]) -> Account:
        raise NoStrategyAvailableError(self._terminal_message, {"attempts": attempts})

    async def run(self) -> Account:
        """
        Sign in with the first producer that succeeds.

        Raises:
            NoStrategyAvailableError: If every producer failed.
        """
        attempts: list[dict[str, str]] = []
        for name, producer in self._producers:
            try:
                account = await producer()
            except Exception as e:
                code = e.error_code if isinstance(e, AuthError) else type(e).__name__
                logger.info(
                    f"Skipping '{name}': {e}",
                    extra=with_context(strategy=name, error_code=code),
                )
                attempts.append({"strategy": name, "error": code, "message": str(e)})
                continue
            logger.info(f"Signed in with '{name}'", extra=with_context(strategy=name))
            return account
        return await self._terminal(attempts)
