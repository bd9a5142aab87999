import random
import string
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Room phases
LOBBY = 'lobby'
IN_ROUND = 'in_round'
REVEAL = 'reveal'
GAME_OVER = 'game_over'


def generate_room_code(exists: Callable[[str], bool], length: int = ROOM_CODE_LENGTH) -> str:
    """Generate a short room code that no open room uses."""
    while True:
        code = ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))
        if not exists(code):
            return code


def normalize_room_code(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value.strip().upper() or None


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: Tuple[str, ...]
    correct_answer: str

    def to_dict(self, include_answer: bool = False):
        data = {
            'question': self.question,
            'options': list(self.options),
        }
        if include_answer:
            data['correct_answer'] = self.correct_answer
        return data


@dataclass
class Player:
    name: str
    join_seq: int
    score: int = 0

    def to_dict(self):
        return {
            'name': self.name,
            'score': self.score,
        }


@dataclass
class Room:
    room_id: str
    host_sid: str
    players: Dict[str, Player] = field(default_factory=dict)
    questions: List[QuizQuestion] = field(default_factory=list)
    current_question_index: int = 0
    answered: Set[str] = field(default_factory=set)
    phase: str = LOBBY
    generating: bool = False
    # Pending reveal -> advance timer, cancelled when the room is deleted
    timer: Optional[object] = field(default=None, repr=False)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)
    _next_seq: int = field(default=0, repr=False)

    @property
    def game_started(self) -> bool:
        return self.phase != LOBBY

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def add_player(self, sid: str, name: str) -> Player:
        player = Player(name=name, join_seq=self._next_seq)
        self._next_seq += 1
        self.players[sid] = player
        return player

    def remove_player(self, sid: str) -> Optional[Player]:
        self.answered.discard(sid)
        return self.players.pop(sid, None)

    def earliest_player_sid(self) -> Optional[str]:
        """Remaining player who joined first; used to pick a new host."""
        if not self.players:
            return None
        return min(self.players, key=lambda sid: self.players[sid].join_seq)

    def all_answered(self) -> bool:
        return bool(self.players) and all(sid in self.answered for sid in self.players)

    def players_dict(self):
        return {sid: p.to_dict() for sid, p in self.players.items()}

    def to_dict(self):
        return {
            'room_id': self.room_id,
            'host_id': self.host_sid,
            'phase': self.phase,
            'game_started': self.game_started,
            'generating': self.generating,
            'players': self.players_dict(),
            'question_number': self.current_question_index + 1 if self.game_started else None,
            'total_questions': len(self.questions),
            'answered_count': len(self.answered),
        }
