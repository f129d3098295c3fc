"""
Value types shared by the screens, the scene and the serial bridge.

States and messages are small value objects compared by content, so a screen's
update() result can be checked with a plain equality test.
"""
import string
from enum import Enum

from portterm.support.mixins import ValueObject


class Screen(Enum):
    """ The top level UI modes. Exactly one is active at a time. """
    MENU = 'Menu'
    HELP = 'Help'
    DEVICE_LIST = 'Device List'
    TERMINAL = 'Terminal'


class _NamedChoice(Enum):
    """ An enum whose values are the display names typed in the menu. """

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text):
        """
        Case-insensitive lookup by display name.
        >>> Parity.parse('EVEN')
        <Parity.EVEN: 'Even'>
        """
        wanted = text.strip().lower()
        for choice in cls:
            if choice.value.lower() == wanted:
                return choice
        raise ValueError("%r is not a valid %s" % (text, cls.__name__.lower()))


class Parity(_NamedChoice):
    ODD = 'Odd'
    EVEN = 'Even'
    NONE = 'None'


class Mode(_NamedChoice):
    """ How each logged byte is displayed in the terminal. """
    HEX = 'Hex'
    OCTAL = 'Octal'
    ASCII = 'Ascii'
    DECIMAL = 'Decimal'

    @property
    def cell_width(self):
        """ the number of columns each encoded byte occupies, including the separator """
        return _cell_widths[self]

    def encode(self, value):
        """
        Encodes a single byte as a fixed-width cell.
        >>> Mode.ASCII.encode(0x41)
        'A '
        >>> Mode.HEX.encode(0x41)
        '41 '
        >>> Mode.DECIMAL.encode(0x41)
        '065 '
        >>> Mode.OCTAL.encode(0x41)
        '0o101 '
        """
        if self is Mode.HEX:
            return '%02X ' % value
        if self is Mode.OCTAL:
            return format(value, '#05o') + ' '
        if self is Mode.DECIMAL:
            return '%03d ' % value
        char = chr(value)
        if char not in _printable or char in '\t\n\r\x0b\x0c':
            char = '.'
        return char + ' '


_cell_widths = {Mode.HEX: 3, Mode.OCTAL: 6, Mode.ASCII: 2, Mode.DECIMAL: 4}
_printable = frozenset(string.printable)

DATA_BITS = range(5, 9)
STOP_BITS = range(1, 3)
BAUD_RATES = range(1, 2 ** 32)


class PortParameters(ValueObject):
    """
    Serial port settings, filled in field by field from the menu.
    Any field may be None while the form is being edited. Only complete
    parameters may be used to open a port.
    """

    def __init__(self, name=None, baud_rate=None, data_bits=None, stop_bits=None, parity=None, mode=None):
        self.name = name
        self.baud_rate = baud_rate
        self.data_bits = data_bits
        self.stop_bits = stop_bits
        self.parity = parity
        self.mode = mode

    def complete(self) -> bool:
        """
        :return: True when every field is set and within its valid range.
        """
        return bool(self.name) \
            and self.baud_rate in BAUD_RATES \
            and self.data_bits in DATA_BITS \
            and self.stop_bits in STOP_BITS \
            and isinstance(self.parity, Parity) \
            and isinstance(self.mode, Mode)

    def copy(self):
        return PortParameters(**self.__dict__)

    def with_name(self, name):
        """ returns a copy of these parameters with the port name replaced """
        result = self.copy()
        result.name = name
        return result


class Direction(Enum):
    INPUT = 'input'     # typed by the user, sent to the device
    OUTPUT = 'output'   # produced by the device


class DataByte(ValueObject):
    """ One logged byte together with where it came from. """

    def __init__(self, value, direction: Direction):
        self.value = value
        self.direction = direction


class State(ValueObject):
    """ The outcome of a screen update. """


class Running(State):
    pass


class Pausing(State):
    pass


class Stopping(State):
    pass


class Error(State):

    def __init__(self, message):
        self.message = message


class Message(ValueObject):
    """ An intent derived from user input or from the serial bridge. """


class Quit(Message):
    pass


class Enter(Message):
    pass


class Pause(Message):
    pass


class Resume(Message):
    pass


class Backspace(Message):
    pass


class NextElement(Message):
    pass


class PreviousElement(Message):
    pass


class Rx(Message):
    """ bytes received from the device """

    def __init__(self, data):
        self.data = bytes(data)


class Input(Message):
    """ a single typed character """

    def __init__(self, char):
        self.char = char


class Switching(State, Message):
    """
    A request to change screens, optionally carrying port parameters.
    It is both a message (from a global shortcut) and a state (from a screen update).

    Switching to the terminal requires complete parameters; anything else is rejected
    here, so an invalid terminal switch cannot be built.
    """

    def __init__(self, screen: Screen, parameters: PortParameters=None):
        if screen is Screen.TERMINAL and (parameters is None or not parameters.complete()):
            raise ValueError("the terminal requires complete port parameters, got %r" % (parameters,))
        self.screen = screen
        self.parameters = parameters
