"""
The application loop: takes events from the EventSource, routes them through the scene,
and draws frames.
"""
import logging

from rich import box
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from portterm.config.config import Settings
from portterm.keys import Keymap, open_keyboard
from portterm.model import Quit, Stopping, Error
from portterm.scene import Scene
from portterm.screens.base import centered, INVALID_STYLE, PLACEHOLDER_STYLE
from portterm.support.events import EventSource, TickEvent, RenderEvent, UserEvent, ErrorEvent

logger = logging.getLogger(__name__)

TITLE = ' portterm '
# panel border above and below the screen plus the status bar
FRAME_HEIGHT = 3
# panel border and padding either side of the screen
FRAME_WIDTH = 4


class Application:
    """
    Runs the UI until the user quits, the menu's Cancel is chosen, or keyboard input fails.

    Ticks drive the scene's periodic work, key presses are translated to messages for the
    scene, and each render event redraws the frame. The scene is closed on the way out,
    stopping any running bridge.
    """

    def __init__(self, settings: Settings=None, console: Console=None, keyboard_factory=open_keyboard,
                 scene: Scene=None):
        self.settings = settings or Settings()
        self.keymap = Keymap(self.settings.keys)
        self.console = console or Console()
        self.keyboard_factory = keyboard_factory
        self.scene = scene or Scene(self.settings, self.keymap)
        self.live = None
        self.running = False

    async def run(self):
        """
        Runs the loop to completion.
        :raises BridgeShutdownError: if a bridge could not be stopped
        """
        timing = self.settings.timing
        self.running = True
        try:
            with self.keyboard_factory() as keyboard, \
                    Live(console=self.console, screen=True, auto_refresh=False, transient=True) as live:
                self.live = live
                async with EventSource(keyboard, timing.tick_interval, timing.render_interval) as source:
                    async for event in source:
                        self.handle(event)
                        if not self.running:
                            break
        finally:
            self.live = None
            self.running = False
            self.scene.close()

    def handle(self, event):
        """ applies a single event """
        if isinstance(event, TickEvent):
            self.scene.tick()
        elif isinstance(event, RenderEvent):
            self.render()
        elif isinstance(event, UserEvent):
            self._key(event.key)
        elif isinstance(event, ErrorEvent):
            logger.error("keyboard input failed: %s" % event.error)
            self.running = False

    def _key(self, key):
        message = self.keymap.translate(key)
        if message is None:
            return
        if isinstance(message, Quit):
            logger.info("quit requested")
            self.running = False
            return
        if isinstance(self.scene.update(message), Stopping):
            self.running = False

    def render(self):
        if self.live is not None:
            self.live.update(self.frame(), refresh=True)

    def frame(self):
        """ the complete screen: the bordered active screen above the status bar """
        width, height = self.console.size
        layout = Layout()
        layout.split_column(
            Layout(self.scene.model.view(width - FRAME_WIDTH, height - FRAME_HEIGHT), name='screen'),
            Layout(self.status(), name='status', size=1),
        )
        return Panel(layout, title=TITLE, box=box.ROUNDED, height=height)

    def status(self) -> Text:
        """ the status bar shows the screen's error, else its notice, else the key hints """
        model = self.scene.model
        if isinstance(model.state, Error):
            return centered(' %s ' % model.state.message, INVALID_STYLE)
        if model.notice:
            return centered(' %s ' % model.notice, INVALID_STYLE)
        return centered(' Help (%s) | Quit (%s) ' % (self.keymap.describe('help'), self.keymap.describe('quit')),
                        PLACEHOLDER_STYLE)
