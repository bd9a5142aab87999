import os

from dotenv import load_dotenv

load_dotenv()


def _origins(value):
    return [origin.strip() for origin in value.split(',') if origin.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Question generation (OpenRouter, OpenAI-compatible API)
    OPENROUTER_API_KEY = os.environ.get('OPENROUTER_API_KEY')
    OPENROUTER_MODEL = os.environ.get('OPENROUTER_MODEL', 'deepseek/deepseek-chat')
    OPENROUTER_BASE_URL = os.environ.get('OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1')
    OPENROUTER_TIMEOUT_SEC = float(os.environ.get('OPENROUTER_TIMEOUT_SEC', '120'))
    QUESTION_COUNT = int(os.environ.get('QUESTION_COUNT', '50'))
    QUESTION_TOPIC = os.environ.get(
        'QUESTION_TOPIC',
        'различные области знаний, такие как наука, история, география, технологии, кино, музыка, литература, спорт',
    )
    # Pause between revealing the answer and the next question (seconds)
    REVEAL_DELAY_SEC = float(os.environ.get('REVEAL_DELAY_SEC', '3'))
    POINTS_PER_CORRECT = int(os.environ.get('POINTS_PER_CORRECT', '10'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '32'))
