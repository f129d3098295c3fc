"""
The live serial session: an encoded log of the bytes exchanged with the device above a
one-line input box.
"""
import logging
import math

from rich import box
from rich.console import Group
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from portterm.model import Screen, Running, Pausing, Error, PortParameters, DataByte, Direction, Input, \
    Backspace, Pause, Resume, Enter, Rx
from portterm.screens.base import ScreenModel, centered, SELECTED_STYLE, PLACEHOLDER_STYLE, INVALID_STYLE
from portterm.support.shared import SerialChannel

logger = logging.getLogger(__name__)

INPUT_LIMIT = 50
PADDING = 1
INPUT_HEIGHT = 3
# lines taken by the input box and the log padding
RESERVED_HEIGHT = INPUT_HEIGHT + 2 * PADDING


class TerminalModel(ScreenModel):
    """
    Shows what the device sends and echoes what the user sends, each byte encoded in a
    fixed-width cell according to the port's display mode.

    Received data is drained from the channel on each tick. When the log would no longer
    fit the visible area it is cleared before the new bytes are added.

    Pausing clears the log and drops bytes received until the terminal is resumed.
    """
    screen = Screen.TERMINAL

    def __init__(self, parameters: PortParameters, channel: SerialChannel, bridge=None):
        """
        :param parameters: the complete parameters the port was opened with
        :param channel: the cells shared with the bridge
        :param bridge: the running bridge, consulted for the outcome of the open attempt
        """
        super().__init__()
        if not parameters.complete():
            raise ValueError("port parameters are incomplete: %r" % parameters)
        self._parameters = parameters.copy()
        self.channel = channel
        self.bridge = bridge
        self.mode = parameters.mode
        self.input = ''
        self.buffer = []
        self.pending_tx = bytearray()       # sent bytes waiting for the tx lock
        self.width = None
        self.height = None
        self.handlers = {
            Input: self._input,
            Backspace: self._backspace,
            Pause: self._pause,
            Resume: self._resume,
            Enter: self._enter,
            Rx: self._receive,
        }

    @property
    def parameters(self):
        return self._parameters

    @property
    def accepting_input(self):
        return isinstance(self.state, Running)

    def open_failed(self, message):
        """ the port could not be opened. The terminal stays in this error. """
        self.state = Error(message)

    def _input(self, message):
        if self.accepting_input and len(self.input) < INPUT_LIMIT:
            self.input += message.char

    def _backspace(self, message):
        if self.accepting_input:
            self.input = self.input[:-1]

    def _pause(self, message):
        if not isinstance(self.state, Pausing):
            self.buffer = []
            self.state = Pausing()

    def _resume(self, message):
        if isinstance(self.state, Pausing):
            self.state = Running()

    def _enter(self, message):
        if self.accepting_input and self.input:
            data = self.input.encode('utf-8')
            self.input = ''
            self._append(data, Direction.INPUT)
            self.pending_tx.extend(data)
            self._flush()

    def _receive(self, message):
        if isinstance(self.state, Pausing):
            return
        self.notice = None
        self._append(message.data, Direction.OUTPUT)

    def _flush(self):
        if self.pending_tx and self.channel.tx.try_extend(self.pending_tx):
            self.pending_tx.clear()

    def tick(self):
        """ exchanges data with the bridge: sends held bytes, takes received bytes and errors """
        self._flush()
        data = self.channel.rx.try_drain()
        if data:
            self.update(Rx(data))
        error = self.channel.error.try_take()
        if self.bridge is not None and self.bridge.open_failed:
            if not isinstance(self.state, Error):
                self.open_failed(error or "Failed to open %s" % self._parameters.name)
        elif error:
            self.notice = error

    @property
    def cells_per_line(self):
        return max(1, (self.width - 2 * PADDING) // self.mode.cell_width)

    @property
    def visible_lines(self):
        return max(1, self.height - RESERVED_HEIGHT)

    def _append(self, values, direction):
        if self.width is not None:
            lines = math.ceil((len(self.buffer) + len(values)) / self.cells_per_line)
            if lines > self.visible_lines:
                self.buffer = []
        self.buffer.extend(DataByte(value, direction) for value in values)

    def encoded(self):
        """ the log as plain text, without line breaks """
        return ''.join(self.mode.encode(b.value) for b in self.buffer)

    def view(self, width, height):
        self.width, self.height = width, height
        if isinstance(self.state, Pausing):
            return self._message_view(Text('PAUSED', style='bold ' + PLACEHOLDER_STYLE), height)
        if isinstance(self.state, Error):
            text = Text("There was an error connecting to %s" % self._parameters.name, style='bold ' + INVALID_STYLE)
            return self._message_view(text, height)
        return Group(self._log_view(), self._input_view())

    @staticmethod
    def _message_view(text, height):
        return Group(*([Text('')] * (height // 2 - 1)), centered(text))

    def _log_view(self):
        per_line = self.cells_per_line
        lines = []
        for start in range(0, len(self.buffer), per_line):
            line = Text(no_wrap=True, overflow='crop')
            for b in self.buffer[start:start + per_line]:
                line.append(self.mode.encode(b.value), style=PLACEHOLDER_STYLE if b.direction is Direction.INPUT else '')
            lines.append(line)
        lines = lines[-self.visible_lines:]
        lines.extend(Text('') for _ in range(self.visible_lines - len(lines)))
        return Padding(Group(*lines), PADDING)

    def _input_view(self):
        if self.input:
            text = Text(self.input, style=SELECTED_STYLE, no_wrap=True, overflow='crop')
        else:
            text = Text('...', style=PLACEHOLDER_STYLE)
        return Panel(text, title=' Input ', title_align='left', box=box.ROUNDED, height=INPUT_HEIGHT)
