from quiz_arena.models import Room


def score_answer(room: Room, sid: str, selected_option, points: int) -> bool:
    """Record ``sid``'s answer to the current question and apply scoring.

    Exact string match against the correct answer earns ``points``. The
    caller must have checked that the player has not answered yet.
    """
    question = room.current_question
    is_correct = question is not None and selected_option == question.correct_answer
    if is_correct:
        room.players[sid].score += points
    room.answered.add(sid)
    return is_correct
