import logging
from datetime import timedelta
from typing import Sequence

from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.document_store import PermissionDeniedError, StoreError
from machine_booking.application.interfaces.voucher_repo import VoucherRepo
from machine_booking.application.use_cases.reward_ledger import RewardLedger
from machine_booking.domain.constants import VOUCHER_DISCOUNTS, VOUCHER_TYPE_RM5_OFF
from machine_booking.domain.entities.voucher import Voucher
from machine_booking.domain.errors import ValidationError, VoucherNotFoundError


class ListVouchersUseCase:
    def __init__(self, voucher_repo: VoucherRepo, clock: Clock) -> None:
        self._voucher_repo = voucher_repo
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(self, user_id: str, valid_only: bool = False) -> Sequence[Voucher]:
        try:
            vouchers = await self._voucher_repo.list_for_user(user_id)
        except PermissionDeniedError:
            self._logger.warning(
                "Permission denied listing vouchers, returning empty list",
                extra={"user_id": user_id},
            )
            return []
        if valid_only:
            now = self._clock.now()
            vouchers = [voucher for voucher in vouchers if voucher.is_valid(now)]
        return list(vouchers)


class GetVoucherUseCase:
    def __init__(self, voucher_repo: VoucherRepo) -> None:
        self._voucher_repo = voucher_repo

    async def execute(self, voucher_id: str, user_id: str) -> Voucher:
        voucher = await self._voucher_repo.get(voucher_id)
        if voucher is None or voucher.user_id != user_id:
            raise VoucherNotFoundError(voucher_id)
        return voucher


class IssueVoucherUseCase:
    def __init__(self, voucher_repo: VoucherRepo, clock: Clock, validity_days: int = 30) -> None:
        self._voucher_repo = voucher_repo
        self._clock = clock
        self._validity_days = validity_days
        self._logger = logging.getLogger(__name__)

    async def execute(self, user_id: str, voucher_type: str = VOUCHER_TYPE_RM5_OFF) -> Voucher:
        if voucher_type not in VOUCHER_DISCOUNTS:
            raise ValidationError("type", f"unsupported voucher type '{voucher_type}'")
        now = self._clock.now()
        voucher = Voucher(
            user_id=user_id,
            type=voucher_type,
            used=False,
            expires_at=now + timedelta(days=self._validity_days),
            created_at=now,
        )
        await self._voucher_repo.add(voucher)
        self._logger.info(
            "Voucher issued",
            extra={"voucher_id": voucher.id, "user_id": user_id, "voucher_type": voucher_type},
        )
        return voucher


class RedeemTokenForVoucherUseCase:
    """
    Exchanges one unused reward token for a voucher.

    The token is consumed first; if the voucher cannot be written the token
    is handed back before the error propagates.

    Raises:
        ValidationError: unsupported voucher type (no token is consumed).
        NoAvailableTokensError: the user has no unused token.
    """

    def __init__(self, reward_ledger: RewardLedger, issue_voucher: IssueVoucherUseCase) -> None:
        self._reward_ledger = reward_ledger
        self._issue_voucher = issue_voucher
        self._logger = logging.getLogger(__name__)

    async def execute(self, user_id: str, voucher_type: str = VOUCHER_TYPE_RM5_OFF) -> Voucher:
        if voucher_type not in VOUCHER_DISCOUNTS:
            raise ValidationError("type", f"unsupported voucher type '{voucher_type}'")

        token = await self._reward_ledger.use_token(user_id)
        try:
            voucher = await self._issue_voucher.execute(user_id, voucher_type)
        except StoreError:
            self._logger.error(
                "Voucher issue failed after token was used, returning token",
                exc_info=True,
                extra={"user_id": user_id, "token_id": token.id},
            )
            try:
                await self._reward_ledger.return_token(token)
            except StoreError:
                self._logger.error(
                    "Token return failed, token stays used",
                    exc_info=True,
                    extra={"user_id": user_id, "token_id": token.id},
                )
            raise

        self._logger.info(
            "Token redeemed for voucher",
            extra={"user_id": user_id, "token_id": token.id, "voucher_id": voucher.id},
        )
        return voucher
