"""portterm command line: loads the configuration, sets up logging and runs the terminal UI."""
import asyncio
import logging
import sys

import click

from portterm.app import Application
from portterm.config.config import load_settings
from portterm.exceptions import BridgeShutdownError, ConfigurationError
from portterm.model import Screen, PortParameters

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def setup_logging(file, level):
    """
    Sends log records to a file, since the console belongs to the UI.
    :param file: the log file. An empty name disables logging.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    if not file:
        root.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())


@click.command()
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="Configuration file that overrides the defaults and ~/portterm.cfg")
@click.option("--log-file", help="Log to this file instead of the configured one. Empty disables logging.")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Logging threshold")
@click.option("--port", help="Port name to pre-fill in the menu")
def main(config_file, log_file, log_level, port):
    """Interactive serial terminal."""
    try:
        settings = load_settings(config_file)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    setup_logging(settings.logging.file if log_file is None else log_file, log_level or settings.logging.level)
    logger.info("portterm starting")

    app = Application(settings)
    if port:
        app.scene.switch(Screen.MENU, PortParameters(name=port))
    try:
        asyncio.run(app.run())
    except BridgeShutdownError as e:
        logger.exception("the serial bridge did not shut down")
        click.echo("portterm: %s" % e, err=True)
        sys.exit(1)
    logger.info("portterm exiting")
