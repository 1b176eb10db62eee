import math
from typing import Dict, Iterable, Optional

from spectrum.models import Room

# (max distance, points); anything further than the last bracket scores 0
TIERS = ((10, 4), (17, 3), (24, 2), (34, 1))

NO_LOCKED_GUESS = 50


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_from_distance(dist) -> int:
    for max_dist, points in TIERS:
        if dist <= max_dist:
            return points
    return 0


def compute_final_guess(guesser_ids: Iterable[str], guesses: Dict[str, int], locked) -> int:
    """Mean of the guesses from players who both guessed and locked."""
    values = [guesses[pid] for pid in guesser_ids if pid in locked and pid in guesses]
    if not values:
        return NO_LOCKED_GUESS
    return round_half_up(sum(values) / len(values))


def score_round(target: int, cluegiver_id: Optional[str], player_ids: Iterable[str],
                guesses: Dict[str, int], locked) -> dict:
    """Build the reveal snapshot for one round.

    Every guesser who submitted a value scores by distance, locked or not.
    The clue-giver earns the rounded mean of those points and the team
    delta is their sum. ``finalGuess`` only counts locked guesses and its
    tier (``delta``) is informational. ``total`` is left for the caller
    to fill in once the delta has been applied.
    """
    guesser_ids = [pid for pid in player_ids if pid != cluegiver_id]

    per_player = {}
    scored = []
    for pid in guesser_ids:
        value = guesses.get(pid)
        if value is None:
            per_player[pid] = {'guess': None, 'dist': None, 'pts': 0}
            continue
        dist = abs(value - target)
        pts = score_from_distance(dist)
        per_player[pid] = {'guess': value, 'dist': dist, 'pts': pts}
        scored.append(pts)

    team_points = sum(scored)
    clue_points = round_half_up(team_points / len(scored)) if scored else 0

    final_guess = compute_final_guess(guesser_ids, guesses, locked)
    final_dist = abs(final_guess - target)

    return {
        'target': target,
        'finalGuess': final_guess,
        'dist': final_dist,
        'delta': score_from_distance(final_dist),
        'teamPoints': team_points,
        'total': None,
        'perPlayer': per_player,
        'cluePts': clue_points,
    }


def apply_reveal(room: Room, reveal: dict) -> dict:
    """Credit a reveal snapshot to the room's player and team scores."""
    for pid, result in reveal['perPlayer'].items():
        room.player_scores[pid] = room.player_scores.get(pid, 0) + result['pts']
    if room.cluegiver_id:
        room.player_scores[room.cluegiver_id] = (
            room.player_scores.get(room.cluegiver_id, 0) + reveal['cluePts']
        )
    room.score += reveal['teamPoints']
    reveal['total'] = room.score
    room.final_guess = reveal['finalGuess']
    room.last_reveal = reveal
    return reveal
