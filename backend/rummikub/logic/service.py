from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rummikub.logic.enums import GameAction
    from rummikub.logic.events import ServiceEvent
    from rummikub.logic.state import GameRecord
    from rummikub.logic.types import GameView


class GameService(ABC):
    """
    Abstract interface for game logic.

    Events returned by methods include a 'target' field:
    - "all": broadcast to all players in the game
    - "seat_0", "seat_1", etc.: send only to player at that seat
    - "player:<identity>": send to one identity, seated or not
    """

    @abstractmethod
    def create_game(
        self,
        game_id: str,
        max_players: int,
        *,
        authority: str = "",
        seed: str | None = None,
    ) -> GameRecord:
        """
        Create a game waiting for players.

        When seed is provided, the shuffle at game start is reproducible.
        When seed is None, a random seed is generated once the last seat fills.
        """
        ...

    @abstractmethod
    async def handle_action(
        self,
        game_id: str,
        identity: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        """
        Handle a game action from a player.

        Returns a list of service events to broadcast.
        """
        ...

    @abstractmethod
    def get_game_state(self, game_id: str) -> GameRecord | None:
        """Return the current game record, or None if game doesn't exist."""
        ...

    @abstractmethod
    def get_player_view(self, game_id: str, identity: str) -> GameView | None:
        """Return the game as visible to one player, or None if game doesn't exist."""
        ...

    @abstractmethod
    def cleanup_game(self, game_id: str) -> None:
        """
        Remove all game state for a game that was abandoned or cleaned up externally.
        """
        ...
