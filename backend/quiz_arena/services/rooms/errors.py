class RoomError(Exception):
    """Rejected client intent. ``message`` is shown to the player."""

    message = 'Некорректный запрос.'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(RoomError):
    message = 'Комната не найдена.'


class GameAlreadyStarted(RoomError):
    message = 'Игра уже началась.'


class NotHost(RoomError):
    message = 'Только хост может начать игру.'


class QuestionGenerationEmpty(RoomError):
    message = 'Не удалось сгенерировать вопросы. Возможно, проблема с API ключом или ответом от ИИ.'


class GenerationInProgress(RoomError):
    message = 'Вопросы уже генерируются.'


class NotInRoom(RoomError):
    message = 'Вы не находитесь в этой комнате.'


class NotAcceptingAnswers(RoomError):
    message = 'Сейчас нельзя отвечать на вопрос.'


class InvalidPlayerName(RoomError):
    message = 'Введите имя игрока.'
