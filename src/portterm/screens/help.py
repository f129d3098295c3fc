"""
Shows the keyboard shortcuts and the values the menu expects.
"""
from rich.text import Text

from portterm.keys import Keymap
from portterm.model import Screen, Switching, PreviousElement, NextElement, Enter, PortParameters
from portterm.screens.base import ScreenModel, titled, PLACEHOLDER_STYLE

KEY_WIDTH = 10
DESCRIPTION_WIDTH = 24

view_keys = (
    ('menu', "Displays menu"),
    ('device_list', "Displays device list"),
    ('help', "Displays this help"),
    ('quit', "Quits application"),
)

movement_keys = (
    ('previous', "Previous/scroll up"),
    ('next', "Next/scroll down"),
)

terminal_keys = (
    ('pause', "Pauses the display"),
    ('resume', "Resumes the display"),
)

menu_values = (
    ('Port', "Port name/path"),
    ('Baudrate', "Serialport baudrate"),
    ('Data bits', "5 - 8"),
    ('Stop bits', "1|2"),
    ('Parity', "None|Even|Odd"),
    ('Mode', "Ascii|Decimal|Hex|Octal"),
)


def entry(name, description):
    return Text.assemble(name.ljust(KEY_WIDTH), (description.rjust(DESCRIPTION_WIDTH), PLACEHOLDER_STYLE))


def help_content(keymap: Keymap):
    """ :return: the help text as a list of lines """
    def section(heading, entries):
        return [Text(heading), Text('')] + entries + [Text('')]

    def shortcuts(actions):
        return [entry(keymap.describe(action), description) for action, description in actions]

    return section("Keymap (Views)", shortcuts(view_keys)) \
        + section("Keymap (Movement)", shortcuts(movement_keys)) \
        + section("Keymap (Terminal)", shortcuts(terminal_keys)) \
        + section("Menu Input - Expected Value", [entry(name, value) for name, value in menu_values])[:-1]


class HelpModel(ScreenModel):
    """
    A scrollable help page. Enter returns to the screen that opened it, carrying back
    the parameters that screen had.
    """
    screen = Screen.HELP

    def __init__(self, caller=Screen.MENU, parameters: PortParameters=None, keymap: Keymap=None):
        super().__init__()
        self.caller = caller
        self._parameters = parameters
        self.offset = 0
        self.content = help_content(keymap or Keymap())
        self.handlers = {
            PreviousElement: lambda m: self._scroll(-1),
            NextElement: lambda m: self._scroll(1),
            Enter: self._enter,
        }

    @property
    def parameters(self):
        return self._parameters

    @property
    def content_length(self):
        return len(self.content)

    def _scroll(self, step):
        # the offset runs from the first line to one past the last
        self.offset = (self.offset + step) % (self.content_length + 1)

    def _enter(self, message):
        self.state = Switching(self.caller, self._parameters)

    def view(self, width, height):
        return titled('Help', self.content, height, self.offset)
