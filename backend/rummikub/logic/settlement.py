"""
Prize settlement for finished games.

The claim is ordered so that a payout can never happen twice: the record is
zeroed and marked claimed, the zeroed record is committed, and only then are
the credits issued. A reentrant claim made while credits are in flight
observes the committed record and is rejected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

from rummikub.logic.enums import GameErrorCode, GameStatus
from rummikub.logic.exceptions import PayoutError, SettlementError
from rummikub.logic.settings import BASIS_POINTS
from rummikub.logic.state_utils import bump_revision
from rummikub.logic.types import Payout

if TYPE_CHECKING:
    from collections.abc import Callable

    from rummikub.logic.state import GameRecord

logger = structlog.get_logger()

DEFAULT_TREASURY = "treasury"


class Ledger(Protocol):
    """Escrow collaborator that moves funds out of a game's prize pool."""

    def credit(self, recipient: str, amount: int) -> None: ...


class InMemoryLedger:
    """Ledger keeping balances in a dict, for local play and tests."""

    def __init__(self) -> None:
        self.balances: dict[str, int] = {}

    def credit(self, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"credit amount must not be negative, got {amount}")
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

    def balance(self, identity: str) -> int:
        return self.balances.get(identity, 0)


def split_prize(prize_pool: int, house_fee_bps: int) -> tuple[int, int]:
    """Return (winner_amount, house_amount); the winner share is floored."""
    winner_amount = prize_pool * (BASIS_POINTS - house_fee_bps) // BASIS_POINTS
    return winner_amount, prize_pool - winner_amount


def settle_prize(
    record: GameRecord,
    claimant: str,
    *,
    treasury: str = DEFAULT_TREASURY,
) -> tuple[GameRecord, Payout]:
    """
    Validate a claim and compute the payout.

    Returns the settled record (pool zeroed, claim flag set) together with
    the credits to issue. Issues no credits itself.
    """
    if record.status != GameStatus.FINISHED:
        raise SettlementError(GameErrorCode.GAME_NOT_FINISHED)
    if claimant != record.winner:
        raise SettlementError(GameErrorCode.NOT_THE_WINNER)
    if record.prize_claimed:
        raise SettlementError(GameErrorCode.PRIZE_ALREADY_CLAIMED)

    winner_amount, house_amount = split_prize(record.prize_pool, record.settings.house_fee_bps)
    payout = Payout(
        game_id=record.game_id,
        winner=claimant,
        winner_amount=winner_amount,
        house=treasury,
        house_amount=house_amount,
    )
    settled = record.model_copy(update={"prize_pool": 0, "prize_claimed": True})
    return bump_revision(settled), payout


def pay_out(payout: Payout, ledger: Ledger) -> None:
    """
    Issue the credits of a settled payout, winner first.

    Any ledger failure is raised as PayoutError, recording whether the
    winner's credit had already gone through.
    """
    try:
        ledger.credit(payout.winner, payout.winner_amount)
    except Exception as e:
        raise PayoutError(f"winner credit to {payout.winner} failed: {e}", winner_paid=False) from e
    if payout.house_amount:
        try:
            ledger.credit(payout.house, payout.house_amount)
        except Exception as e:
            raise PayoutError(
                f"house credit of {payout.house_amount} to {payout.house} failed: {e}",
                winner_paid=True,
            ) from e
    logger.info(
        "prize paid",
        game_id=payout.game_id,
        winner_amount=payout.winner_amount,
        house_amount=payout.house_amount,
    )


def claim_prize(
    record: GameRecord,
    claimant: str,
    *,
    ledger: Ledger,
    commit: Callable[[GameRecord], None],
    treasury: str = DEFAULT_TREASURY,
) -> tuple[GameRecord, Payout]:
    """
    Settle, commit the zeroed record, then pay out.

    ``commit`` must make the settled record visible to any later claim
    before it returns. If the ledger rejects the winner's credit nothing has
    moved, so the pre-claim record is committed back and the claim may be
    retried. Once the winner has been paid the claim stands even if the
    house credit fails.
    """
    settled, payout = settle_prize(record, claimant, treasury=treasury)
    commit(settled)
    try:
        pay_out(payout, ledger)
    except PayoutError as e:
        if not e.winner_paid:
            commit(record)
            logger.warning("payout failed, claim rolled back", game_id=record.game_id, error=e.message)
        else:
            logger.error(
                "house credit failed after winner was paid",
                game_id=record.game_id,
                house=payout.house,
                house_amount=payout.house_amount,
            )
        raise
    return settled, payout
