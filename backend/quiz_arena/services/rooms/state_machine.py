import logging
from contextlib import contextmanager

from quiz_arena.models import GAME_OVER, IN_ROUND, LOBBY, REVEAL, Room
from .errors import (
    GameAlreadyStarted,
    GenerationInProgress,
    InvalidPlayerName,
    NotAcceptingAnswers,
    NotHost,
    NotInRoom,
    QuestionGenerationEmpty,
    RoomNotFound,
)
from .scoring import score_answer

logger = logging.getLogger(__name__)

JOIN_AFTER_START_MESSAGE = 'Игра уже началась в этой комнате.'


class RoomStateMachine:
    """Room lifecycle: lobby -> in_round -> reveal -> in_round | game_over.

    ``events`` is the outbound side of the transport. It must provide
    ``emit(event, data=None, to=None)``, ``subscribe(sid, room_id)``,
    ``unsubscribe(sid, room_id)`` and ``close_room(room_id)``.

    Every mutation of a room happens while holding ``room.lock``. Intents
    that violate a precondition raise a ``RoomError`` before any state is
    touched.
    """

    def __init__(self, store, provider, scheduler, events, *, topic, reveal_delay=3.0,
                 points_per_correct=10, max_name_length=32):
        self.store = store
        self.provider = provider
        self.scheduler = scheduler
        self.events = events
        self.topic = topic
        self.reveal_delay = reveal_delay
        self.points_per_correct = points_per_correct
        self.max_name_length = max_name_length

    @contextmanager
    def _locked(self, room_id):
        room = self.store.require(room_id)
        with room.lock:
            # The room may have been deleted while we waited for the lock
            if self.store.get(room.room_id) is not room:
                raise RoomNotFound()
            yield room

    def _clean_name(self, player_name) -> str:
        if not isinstance(player_name, str) or not player_name.strip():
            raise InvalidPlayerName()
        return player_name.strip()[:self.max_name_length]

    # ---- Intents ----

    def create_room(self, sid: str, player_name) -> Room:
        name = self._clean_name(player_name)
        room = self.store.create(sid, name)
        with room.lock:
            self.events.subscribe(sid, room.room_id)
            self.events.emit('roomCreated', {'roomId': room.room_id, 'players': room.players_dict()}, to=sid)
        logger.info(f"[room-create] room={room.room_id} player={name!r} sid={sid}")
        return room

    def join_room(self, room_id, sid: str, player_name) -> Room:
        name = self._clean_name(player_name)
        with self._locked(room_id) as room:
            if room.game_started:
                raise GameAlreadyStarted(JOIN_AFTER_START_MESSAGE)
            if sid in room.players:
                room.players[sid].name = name
            else:
                room.add_player(sid, name)
            self.events.subscribe(sid, room.room_id)
            self.events.emit('playerJoined', {
                'roomId': room.room_id,
                'players': room.players_dict(),
                'newPlayerName': name,
            }, to=room.room_id)
            logger.info(f"[room-join] room={room.room_id} player={name!r} sid={sid} players={len(room.players)}")
            return room

    def start_game(self, room_id, sid: str) -> bool:
        """Fetch questions and start the first round.

        Returns False when the game could not start because generation
        produced nothing; the room then stays in the lobby.
        """
        with self._locked(room_id) as room:
            if sid not in room.players:
                raise NotInRoom()
            if room.game_started:
                raise GameAlreadyStarted()
            if sid != room.host_sid:
                raise NotHost()
            if room.generating:
                raise GenerationInProgress()
            room.generating = True
        logger.info(f"[game-generate] room={room.room_id} topic={self.topic!r}")

        # No lock held while waiting on the provider
        try:
            questions = list(self.provider.fetch(self.topic))
        except Exception:
            with room.lock:
                room.generating = False
            raise

        with room.lock:
            room.generating = False
            if self.store.get(room.room_id) is not room:
                logger.info(f"[game-generate] room={room.room_id} closed during generation, discarding")
                return False
            if room.phase != LOBBY:
                return False
            if not questions:
                logger.warning(f"[game-generate] room={room.room_id} no questions available")
                self.events.emit('error', QuestionGenerationEmpty.message, to=room.room_id)
                return False
            room.questions = questions
            room.current_question_index = 0
            room.answered.clear()
            room.phase = IN_ROUND
            logger.info(f"[game-start] room={room.room_id} questions={len(questions)} players={len(room.players)}")
            self.events.emit('gameStarted', to=room.room_id)
            self._dispatch_question(room)
            return True

    def submit_answer(self, room_id, sid: str, selected_option) -> bool:
        """Returns whether the answer was accepted (duplicates are not)."""
        with self._locked(room_id) as room:
            if sid not in room.players:
                raise NotInRoom()
            if room.phase != IN_ROUND:
                raise NotAcceptingAnswers()
            if sid in room.answered:
                logger.debug(f"[answer-duplicate] room={room.room_id} sid={sid} question={room.current_question_index}")
                return False
            is_correct = score_answer(room, sid, selected_option, self.points_per_correct)
            player = room.players[sid]
            self.events.emit('answerResult', {'isCorrect': is_correct, 'yourScore': player.score}, to=sid)
            self.events.emit('updateScores', room.players_dict(), to=room.room_id)
            logger.info(
                f"[answer] room={room.room_id} question={room.current_question_index + 1} "
                f"player={player.name!r} correct={is_correct} answered={len(room.answered)}/{len(room.players)}"
            )
            if room.all_answered():
                self._reveal(room)
            return True

    def leave(self, room_id, sid: str, reason: str = 'leave') -> str:
        """Remove ``sid`` from the room and return the room's normalised id."""
        with self._locked(room_id) as room:
            player = room.remove_player(sid)
            if player is None:
                raise NotInRoom()
            self.events.unsubscribe(sid, room.room_id)
            logger.info(f"[room-{reason}] room={room.room_id} player={player.name!r} sid={sid} remaining={len(room.players)}")

            if not room.players:
                self._close(room)
                return room.room_id

            self.events.emit('playerLeft', {
                'playerId': sid,
                'playerName': player.name,
                'players': room.players_dict(),
            }, to=room.room_id)

            if sid == room.host_sid:
                room.host_sid = room.earliest_player_sid()
                self.events.emit('newHost', room.host_sid, to=room.room_id)
                logger.info(f"[room-host] room={room.room_id} host={room.host_sid}")

            # The remaining players may now all have answered
            if room.phase == IN_ROUND and room.all_answered():
                self._reveal(room)
            return room.room_id

    def advance(self, room_id, expected_index=None) -> None:
        """Move past the current question: next question or game over.

        With ``expected_index`` (timer path) this is a no-op unless the room
        still exists, is revealing and sits on that question.
        """
        try:
            with self._locked(room_id) as room:
                if expected_index is not None and (
                    room.phase != REVEAL or room.current_question_index != expected_index
                ):
                    logger.info(
                        f"[timer-abort] room={room.room_id} expected={expected_index} "
                        f"actual={room.current_question_index} phase={room.phase}"
                    )
                    return
                if not room.game_started:
                    return
                if room.timer is not None:
                    if expected_index is None:
                        room.timer.cancel()
                    room.timer = None
                room.current_question_index += 1
                if room.current_question_index < len(room.questions):
                    self._dispatch_question(room)
                else:
                    self._finish(room)
        except RoomNotFound:
            logger.info(f"[timer-abort] room={room_id} no longer exists")

    # ---- Transitions (room lock held) ----

    def _dispatch_question(self, room: Room) -> None:
        question = room.current_question
        room.answered.clear()
        room.phase = IN_ROUND
        payload = question.to_dict()
        payload['questionNumber'] = room.current_question_index + 1
        payload['totalQuestions'] = len(room.questions)
        self.events.emit('newQuestion', payload, to=room.room_id)
        logger.info(f"[question] room={room.room_id} number={payload['questionNumber']}/{payload['totalQuestions']}")

    def _reveal(self, room: Room) -> None:
        question = room.current_question
        index = room.current_question_index
        room.phase = REVEAL
        self.events.emit('revealAnswer', {
            'correctAnswer': question.correct_answer,
            'players': room.players_dict(),
        }, to=room.room_id)
        logger.info(f"[reveal] room={room.room_id} question={index + 1}")
        room.timer = self.scheduler.schedule(
            (room.room_id, index),
            self.reveal_delay,
            lambda: self.advance(room.room_id, expected_index=index),
        )

    def _finish(self, room: Room) -> None:
        room.phase = GAME_OVER
        self.events.emit('gameOver', {'finalPlayers': room.players_dict()}, to=room.room_id)
        logger.info(f"[game-over] room={room.room_id} players={len(room.players)}")
        self._close(room)

    def _close(self, room: Room) -> None:
        self.store.delete(room.room_id)
        self.events.close_room(room.room_id)
