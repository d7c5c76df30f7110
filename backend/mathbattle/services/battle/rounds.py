"""Round controller: problem selection, deadlines, answer arbitration.

All methods expect the caller to hold ``room.lock``. Timer callbacks are
invoked by ``RoomTimers`` with the lock already taken and return True when
the room changed, so listeners are told once the lock is released.
"""
import logging
import random
from typing import Callable, Dict, List, Optional

from mathbattle.services.problems import Problem
from .errors import NotActive, PlayerNotFound, RoundResolved
from .models import (
    FINISH_MAX_CORRECT,
    FINISH_TIME,
    ROOM_ACTIVE,
    ROOM_RESULTS,
    ROUND_FINISHED,
    Room,
    Round,
)
from .scheduler import RoomTimers
from .scoring import apply_penalty, award_correct, summarize_round

logger = logging.getLogger(__name__)

DEFAULT_NEXT_ROUND_DELAY_MS = 3000


class RoundController:
    def __init__(self, catalog: List[Problem], timers: RoomTimers, clock: Callable[[], int],
                 next_round_delay_ms: int = DEFAULT_NEXT_ROUND_DELAY_MS,
                 rng: Optional[random.Random] = None):
        self.catalog = list(catalog)
        self.timers = timers
        self.clock = clock
        self.next_round_delay_ms = next_round_delay_ms
        self.rng = rng or random.Random()

    # ---- transitions ----

    def begin(self, room: Room) -> bool:
        """Open the next round, or move the room to results when none is left."""
        now = self.clock()
        config = room.config
        if config is None or len(room.history) >= config.rounds or not self.catalog:
            self._to_results(room, now)
            return False

        problem = self._pick_problem(room)
        round_ = Round(
            index=len(room.history) + 1,
            problem=problem,
            started_at=now,
            ends_at=now + config.round_time_ms,
        )
        room.round = round_
        room.state = ROOM_ACTIVE
        room.touch(now)
        self.timers.schedule(
            room, 'round-expire', round_.ends_at - now,
            lambda: self._on_round_expired(room, round_),
        )
        logger.info(
            f"[round-begin] room={room.id} round={round_.index}/{config.rounds} "
            f"problem={problem.id} ends_at={round_.ends_at}"
        )
        return True

    def finish(self, room: Room, reason: str) -> bool:
        round_ = room.round
        if round_ is None or round_.status == ROUND_FINISHED:
            return False

        now = self.clock()
        round_.status = ROUND_FINISHED
        round_.finish_reason = reason
        round_.finished_at = now
        self.timers.cancel(room.id)
        room.history.append(summarize_round(round_))
        room.touch(now)
        logger.info(
            f"[round-finish] room={room.id} round={round_.index} reason={reason} "
            f"winners={len(round_.correct)}"
        )

        config = room.config
        if config is None or len(room.history) >= config.rounds:
            round_.next_start_at = None
            self._to_results(room, now, keep_round=True)
            return True

        round_.next_start_at = now + self.next_round_delay_ms
        self.timers.schedule(
            room, 'next-round', self.next_round_delay_ms,
            lambda: self._on_next_round_due(room, round_),
        )
        return True

    def resume(self, room: Room) -> None:
        """Re-arm the pending transition of a running game, e.g. after the room emptied."""
        round_ = room.round
        if room.state != ROOM_ACTIVE or round_ is None:
            return
        now = self.clock()
        if round_.is_active:
            self.timers.schedule(
                room, 'round-expire', round_.ends_at - now,
                lambda: self._on_round_expired(room, round_),
            )
        elif round_.next_start_at is not None:
            self.timers.schedule(
                room, 'next-round', round_.next_start_at - now,
                lambda: self._on_next_round_due(room, round_),
            )

    def halt(self, room: Room) -> None:
        self.timers.cancel(room.id)

    # ---- answers ----

    def submit(self, room: Room, token: str, answers) -> Dict:
        player = room.players.get(token)
        if player is None:
            raise PlayerNotFound()
        round_ = room.round
        if room.state != ROOM_ACTIVE or round_ is None or not round_.is_active:
            raise NotActive()

        now = self.clock()
        player.last_seen_at = now
        room.touch(now)
        if round_.has_solved(token):
            return {
                'ok': True,
                'correct': True,
                'alreadySolved': True,
                'score': player.score,
                'message': 'Already solved.',
            }

        verdict = self._evaluate(room, round_, answers)
        config = room.config
        if verdict['ok']:
            if len(round_.correct) >= config.max_correct:
                raise RoundResolved()
            winner = award_correct(round_, player, config, now, verdict['message'])
            logger.info(
                f"[answer-correct] room={room.id} round={round_.index} player={player.id} "
                f"placement={winner.placement} awarded={winner.awarded}"
            )
            if len(round_.correct) >= config.max_correct:
                self.finish(room, FINISH_MAX_CORRECT)
            return {
                'ok': True,
                'correct': True,
                'placement': winner.placement,
                'awarded': winner.awarded,
                'alreadySolved': False,
                'penaltyApplied': False,
                'score': player.score,
                'message': verdict['message'],
            }

        penalty = apply_penalty(round_, player, config, now, verdict['message'])
        return {
            'ok': True,
            'correct': False,
            'alreadySolved': False,
            'penaltyApplied': penalty > 0,
            'penalty': penalty,
            'score': player.score,
            'message': verdict['message'],
        }

    # ---- internals ----

    def _evaluate(self, room: Room, round_: Round, answers) -> Dict:
        if not isinstance(answers, dict):
            answers = {}
        try:
            return round_.problem.evaluate(answers)
        except Exception:
            logger.exception(
                f"[answer-check-error] room={room.id} round={round_.index} problem={round_.problem.id}"
            )
            return {'ok': False, 'message': 'Your answer could not be evaluated.'}

    def _pick_problem(self, room: Room) -> Problem:
        pool = [p for p in self.catalog if p.id not in room.used_problem_ids]
        if not pool:
            room.used_problem_ids.clear()
            pool = list(self.catalog)
        problem = self.rng.choice(pool)
        room.used_problem_ids.add(problem.id)
        return problem

    def _to_results(self, room: Room, now: int, keep_round: bool = False) -> None:
        self.timers.cancel(room.id)
        room.state = ROOM_RESULTS
        room.finished_at = now
        if not keep_round:
            room.round = None
        room.touch(now)
        logger.info(f"[game-results] room={room.id} rounds_played={len(room.history)}")

    def _on_round_expired(self, room: Room, round_: Round) -> bool:
        if room.round is not round_ or not round_.is_active:
            return False
        return self.finish(room, FINISH_TIME)

    def _on_next_round_due(self, room: Room, round_: Round) -> bool:
        if room.round is not round_ or room.state != ROOM_ACTIVE:
            return False
        # begin() returning False still moved the room to results
        self.begin(room)
        return True
