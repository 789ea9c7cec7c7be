import logging

from machine_booking.application.interfaces.document_store import WriteConflictError
from machine_booking.application.interfaces.token_repo import TokenRepo
from machine_booking.domain.entities.token import Token
from machine_booking.domain.errors import NoAvailableTokensError


class RewardLedger:
    """Token balance and consumption per user. Tokens are only minted by settlement."""

    def __init__(self, token_repo: TokenRepo, max_use_attempts: int = 3) -> None:
        self._token_repo = token_repo
        self._max_use_attempts = max_use_attempts
        self._logger = logging.getLogger(__name__)

    async def available_token_count(self, user_id: str) -> int:
        # A soft-benefit read: any failure reports an empty balance.
        try:
            return await self._token_repo.count_unused(user_id)
        except Exception:
            self._logger.warning(
                "Token count failed, reporting zero",
                exc_info=True,
                extra={"user_id": user_id},
            )
            return 0

    async def use_token(self, user_id: str) -> Token:
        """
        Consumes any one unused token of the user.

        The flip to ``used`` is conditional; when another request consumed the
        same token first, the next unused one is tried.

        Raises:
            NoAvailableTokensError: the user has no unused token left.
        """
        for attempt in range(1, self._max_use_attempts + 1):
            tokens = await self._token_repo.find_unused(user_id, limit=1)
            if not tokens:
                break
            token = tokens[0]
            try:
                await self._token_repo.mark_used(token.id)
            except WriteConflictError:
                self._logger.info(
                    "Token consumed concurrently, retrying",
                    extra={"user_id": user_id, "token_id": token.id, "attempt": attempt},
                )
                continue
            token.used = True
            self._logger.info(
                "Token used",
                extra={"user_id": user_id, "token_id": token.id, "order_id": token.order_id},
            )
            return token
        raise NoAvailableTokensError(user_id)

    async def return_token(self, token: Token) -> None:
        """Undoes ``use_token`` when whatever the token paid for could not be granted."""
        await self._token_repo.mark_unused(token.id)
        token.used = False
        self._logger.info(
            "Token returned",
            extra={"user_id": token.user_id, "token_id": token.id},
        )
