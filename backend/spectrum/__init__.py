from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from spectrum.config import Config
from spectrum.services.games.registry import RoomRegistry

socketio = SocketIO(async_mode=None)
rooms = RoomRegistry()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)
    rooms.init_app(flask_app)

    from spectrum.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from spectrum.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    @click.command('prompts-check')
    @click.argument('prompt_file', type=click.File('r', encoding='utf-8'))
    def prompts_check_command(prompt_file):
        """Parses a prompt list and prints the pairs a room would accept."""
        from spectrum.services.games.prompts import parse_prompt_lines
        prompts = parse_prompt_lines(prompt_file.read())
        for pair in prompts:
            click.echo(f"{pair['left']} | {pair['right']}")
        click.echo(f'{len(prompts)} prompt(s) accepted.')

    flask_app.cli.add_command(prompts_check_command)

    return flask_app
