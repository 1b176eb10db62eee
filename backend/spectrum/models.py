from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

LOBBY = 'LOBBY'
CLUE = 'CLUE'
GUESS = 'GUESS'
REVEAL = 'REVEAL'
GAMEOVER = 'GAMEOVER'

PHASES = (LOBBY, CLUE, GUESS, REVEAL, GAMEOVER)

DEFAULT_PLAYER_NAME = 'Player'


@dataclass
class Player:
    id: str
    name: str = DEFAULT_PLAYER_NAME

    def to_dict(self):
        return {'id': self.id, 'name': self.name}


@dataclass
class Room:
    """One game session, owned by the room registry.

    Only the functions in ``spectrum.services.games.rounds`` and the
    registry mutate a room; the socket layer reads it through ``to_dict``.
    """
    code: str
    host_id: Optional[str]
    players: List[Player] = field(default_factory=list)
    player_scores: Dict[str, int] = field(default_factory=dict)
    phase: str = LOBBY
    cluegiver_id: Optional[str] = None
    spectrum: Optional[Dict[str, str]] = None
    target: Optional[int] = None
    clue: str = ''
    guesses: Dict[str, int] = field(default_factory=dict)
    locked: Set[str] = field(default_factory=set)
    final_guess: Optional[int] = None
    last_reveal: Optional[dict] = None
    score: int = 0
    prompt_pool: List[Dict[str, str]] = field(default_factory=list)
    total_rounds: int = 5
    current_round: int = 0

    @property
    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    @property
    def guesser_ids(self) -> List[str]:
        return [p.id for p in self.players if p.id != self.cluegiver_id]

    def has_player(self, player_id) -> bool:
        return any(p.id == player_id for p in self.players)

    def leaderboard(self):
        rows = [
            {'id': p.id, 'name': p.name, 'score': self.player_scores.get(p.id, 0)}
            for p in self.players
        ]
        return sorted(rows, key=lambda r: (-r['score'], r['name']))

    def to_dict(self, for_player_id=None):
        """Serialize the room for one recipient.

        The secret target is only included for the clue-giver while the
        room is in the CLUE phase; everyone else sees it via ``lastReveal``.
        """
        payload = {
            'code': self.code,
            'hostId': self.host_id,
            'players': [p.to_dict() for p in self.players],
            'playerScores': dict(self.player_scores),
            'phase': self.phase,
            'cluegiverId': self.cluegiver_id,
            'spectrum': dict(self.spectrum) if self.spectrum else None,
            'clue': self.clue,
            'guesses': [{'id': pid, 'value': value} for pid, value in self.guesses.items()],
            'locked': [pid for pid in self.player_ids if pid in self.locked],
            'score': self.score,
            'finalGuess': self.final_guess,
            'lastReveal': self.last_reveal,
            'promptPoolCount': len(self.prompt_pool),
            'totalRounds': self.total_rounds,
            'currentRound': self.current_round,
            'leaderboard': self.leaderboard() if self.phase == GAMEOVER else None,
        }
        if for_player_id is not None and for_player_id == self.cluegiver_id and self.phase == CLUE:
            payload['secretTarget'] = self.target
        return payload
