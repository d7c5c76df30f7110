from typing import List

from .models import Attempt, Player, Room, Round, Winner
from .settings import BattleConfig


def award_correct(round_: Round, player: Player, config: BattleConfig, now: int, message=None) -> Winner:
    """Record a correct answer at the next placement and credit its award."""
    placement = len(round_.correct) + 1
    awarded = config.award_for(placement)
    player.score += awarded
    player.correct_count += 1
    winner = Winner(
        token=player.token,
        player_id=player.id,
        name=player.name,
        placement=placement,
        awarded=awarded,
        at=now,
        elapsed_ms=max(0, now - round_.started_at),
    )
    round_.correct.append(winner)
    round_.attempts.append(Attempt(
        token=player.token, at=now, correct=True,
        placement=placement, awarded=awarded, message=message,
    ))
    return winner


def apply_penalty(round_: Round, player: Player, config: BattleConfig, now: int, message=None) -> int:
    """Subtract the wrong-answer penalty; scores are allowed to go negative."""
    penalty = config.penalty
    player.score -= penalty
    player.wrong_count += 1
    round_.attempts.append(Attempt(
        token=player.token, at=now, correct=False, penalty=penalty, message=message,
    ))
    return penalty


def summarize_round(round_: Round) -> dict:
    """History entry for a finished round."""
    return {
        'index': round_.index,
        'problemId': round_.problem.id,
        'problemTitle': round_.problem.title,
        'winners': [w.to_dict() for w in round_.correct],
        'attemptCount': len(round_.attempts),
        'startedAt': round_.started_at,
        'endsAt': round_.ends_at,
        'finishedAt': round_.finished_at,
        'reason': round_.finish_reason,
    }


def final_results(room: Room) -> List[dict]:
    """Standings by score; equal scores share a rank."""
    results = []
    previous_score = None
    rank = 0
    for position, player in enumerate(room.leaderboard(), start=1):
        if player.score != previous_score:
            rank = position
            previous_score = player.score
        results.append({
            'rank': rank,
            'id': player.id,
            'name': player.name,
            'score': player.score,
            'correctCount': player.correct_count,
            'wrongCount': player.wrong_count,
        })
    return results
