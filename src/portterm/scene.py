"""
Owns the active screen model and performs the transitions between screens.
"""
import logging

from portterm.config.config import Settings
from portterm.connector.bridge import SerialBridge
from portterm.keys import Keymap
from portterm.model import Screen, Switching, Running, State, Message, PortParameters
from portterm.screens.device_list import DeviceListModel
from portterm.screens.help import HelpModel
from portterm.screens.menu import MenuModel
from portterm.screens.terminal import TerminalModel
from portterm.support.shared import SerialChannel

logger = logging.getLogger(__name__)


class Scene:
    """
    Exactly one screen model is active at a time. The scene starts the serial bridge on the
    way into the terminal and stops it on the way out, so a bridge runs only while the
    terminal is the active screen.

    Switching states produced by a model, and switching messages from global shortcuts,
    are consumed here. The loop sees Running in their place.
    """

    def __init__(self, settings: Settings=None, keymap: Keymap=None, bridge_factory=SerialBridge):
        self.settings = settings or Settings()
        self.keymap = keymap or Keymap(self.settings.keys)
        self.bridge_factory = bridge_factory
        self.bridge = None
        self.model = MenuModel()

    @property
    def screen(self) -> Screen:
        return self.model.screen

    def update(self, message: Message) -> State:
        """
        Passes a message to the active model, or performs the switch it requests.
        :return: the resulting state, which is never Switching
        :raises BridgeShutdownError: if leaving the terminal could not stop the bridge
        """
        if isinstance(message, Switching):
            self.switch(message.screen, message.parameters)
            return Running()
        state = self.model.update(message)
        if isinstance(state, Switching):
            self.switch(state.screen, state.parameters)
            return Running()
        return state

    def tick(self):
        self.model.tick()

    def switch(self, screen: Screen, parameters: PortParameters=None):
        """
        Replaces the active model with a new model for the given screen.
        """
        caller = self.model.screen
        if screen is Screen.HELP:
            if caller is Screen.HELP:
                return      # keeps the original caller
            if parameters is None:
                parameters = self.model.parameters
        logger.debug("switching from %s to %s" % (caller.value, screen.value))
        self._stop_bridge()
        if screen is Screen.MENU:
            self.model = MenuModel(parameters)
        elif screen is Screen.DEVICE_LIST:
            self.model = DeviceListModel(self.settings.timing.device_refresh)
        elif screen is Screen.HELP:
            self.model = HelpModel(caller, parameters, self.keymap)
        elif screen is Screen.TERMINAL:
            self.model = self._open_terminal(parameters)
        else:
            raise ValueError("unknown screen %r" % screen)

    def _open_terminal(self, parameters):
        if parameters is None or not parameters.complete():
            raise ValueError("the terminal requires complete port parameters, got %r" % (parameters,))
        channel = SerialChannel()
        self.bridge = self.bridge_factory(parameters, channel, self.settings.bridge).start()
        model = TerminalModel(parameters, channel, self.bridge)
        # an open still in progress is reported by a later tick
        if self.bridge.wait_opened(0) is False:
            model.open_failed(channel.error.try_take() or "Failed to open %s" % parameters.name)
        return model

    def _stop_bridge(self):
        bridge, self.bridge = self.bridge, None
        if bridge is not None:
            bridge.stop()

    def close(self):
        """ stops the bridge, if one is running """
        self._stop_bridge()
