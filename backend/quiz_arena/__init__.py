from typing import TYPE_CHECKING, NamedTuple

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

if TYPE_CHECKING:
    from quiz_arena.services.questions import QuestionProvider
    from quiz_arena.services.rooms import RoomStateMachine, RoomStore
    from quiz_arena.socketio_events import SocketIOEvents

socketio = SocketIO(async_mode=None)


class Arena(NamedTuple):
    """Per-application game services, stored in ``app.extensions``."""
    store: 'RoomStore'
    machine: 'RoomStateMachine'
    events: 'SocketIOEvents'
    provider: 'QuestionProvider'


def get_arena(flask_app) -> Arena:
    return flask_app.extensions['quiz_arena']


def create_app(config_class=Config, question_provider=None, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from quiz_arena.services.questions import QuestionProvider
    from quiz_arena.services.rooms import RevealScheduler, RoomStateMachine, RoomStore
    from quiz_arena.socketio_events import SocketIOEvents, register_socketio_handlers

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    provider = question_provider or QuestionProvider.from_config(flask_app.config)
    store = RoomStore()
    events = SocketIOEvents(socketio, namespace)
    machine = RoomStateMachine(
        store,
        provider,
        scheduler or RevealScheduler(socketio),
        events,
        topic=flask_app.config['QUESTION_TOPIC'],
        reveal_delay=float(flask_app.config.get('REVEAL_DELAY_SEC', 3)),
        points_per_correct=int(flask_app.config.get('POINTS_PER_CORRECT', 10)),
        max_name_length=int(flask_app.config.get('MAX_NAME_LENGTH', 32)),
    )
    flask_app.extensions['quiz_arena'] = Arena(store=store, machine=machine, events=events, provider=provider)

    from quiz_arena.main import main
    flask_app.register_blueprint(main)

    from quiz_arena.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    register_socketio_handlers(namespace)

    @click.command('preview-questions')
    @click.option('--topic', default=None, help='Override the configured topic.')
    @click.option('--limit', default=5, show_default=True, help='How many questions to print.')
    def preview_questions_command(topic, limit):
        """Fetch a question set and print the first few."""
        questions = provider.fetch(topic or flask_app.config['QUESTION_TOPIC'])
        click.echo(f'{len(questions)} questions')
        for number, q in enumerate(questions[:limit], start=1):
            click.echo(f'{number}. {q.question}')
            for option in q.options:
                marker = '*' if option == q.correct_answer else ' '
                click.echo(f'   {marker} {option}')

    flask_app.cli.add_command(preview_questions_command)

    flask_app.logger.debug(f"[app] namespace={namespace} origins={origins}")
    return flask_app
