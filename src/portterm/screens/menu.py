"""
The connection form: one text input per port parameter, followed by Cancel and Start buttons.
"""
import logging
import string

from rich.text import Text

from portterm.model import Screen, Switching, Stopping, Running, Error, PortParameters, Parity, Mode, \
    DATA_BITS, STOP_BITS, BAUD_RATES, PreviousElement, NextElement, Input, Backspace, Enter, Quit
from portterm.screens.base import ScreenModel, cycle, titled, SELECTED_STYLE, INVALID_STYLE, PLACEHOLDER_STYLE

logger = logging.getLogger(__name__)

INVALID_INPUT = "Invalid input (ctrl+h for help)"

INPUT_WIDTH = 18
GAP_WIDTH = 10
UNDERLINE = '▔' * INPUT_WIDTH


def _accept_any(char):
    return True


def _accept_digits(char):
    return char in string.digits


def _accept_from(chars):
    def accept(char):
        return char in chars
    return accept


def _parse_name(text):
    if not text:
        raise ValueError("no port name")
    return text


def _parse_int_in(valid):
    def parse(text):
        value = int(text)
        if value not in valid:
            raise ValueError("%d is out of range" % value)
        return value
    return parse


class MenuInput:
    """ A single labelled text field. """

    def __init__(self, title, placeholder, limit=100, accept=_accept_any, parse=_parse_name):
        """
        :param limit: the maximum number of characters
        :param accept: filters each typed character
        :param parse: converts the text to a parameter value, raising ValueError if it is not valid
        """
        self.title = title
        self.placeholder = placeholder
        self.limit = limit
        self.accept = accept
        self.parse = parse
        self.value = ''
        self.invalid = False

    def add(self, char):
        if len(self.value) < self.limit and self.accept(char):
            self.value += char

    def remove(self):
        self.value = self.value[:-1]

    def read(self):
        """ :return: the parsed value, or None if the text does not parse """
        try:
            return self.parse(self.value)
        except ValueError:
            return None

    def visible_text(self):
        """ the tail of the value that fits the field, or the placeholder """
        if self.value:
            return Text(self.value[-INPUT_WIDTH:])
        return Text(self.placeholder, style=PLACEHOLDER_STYLE)


def default_inputs():
    return [
        MenuInput('Port', 'COM4', limit=100),
        MenuInput('Baudrate', '9600', limit=10, accept=_accept_digits, parse=_parse_int_in(BAUD_RATES)),
        MenuInput('Data bits', '8', limit=1, accept=_accept_from('5678'), parse=_parse_int_in(DATA_BITS)),
        MenuInput('Stop bits', '1', limit=1, accept=_accept_from('12'), parse=_parse_int_in(STOP_BITS)),
        MenuInput('Parity', 'Even', limit=4, parse=Parity.parse),
        MenuInput('Mode', 'Ascii', limit=7, parse=Mode.parse),
    ]


class MenuModel(ScreenModel):
    """
    The port parameter form. The selection cycles over the inputs and then the
    Cancel and Start buttons. Start validates every input, marking those that fail.
    """
    screen = Screen.MENU

    def __init__(self, parameters: PortParameters=None):
        """
        :param parameters: values to pre-fill the form with. Fields that are None are left empty.
        """
        super().__init__()
        self.inputs = default_inputs()
        self.selected = 0
        if parameters is not None:
            values = (parameters.name, parameters.baud_rate, parameters.data_bits, parameters.stop_bits,
                      parameters.parity, parameters.mode)
            for field, value in zip(self.inputs, values):
                field.value = '' if value is None else str(value)
        self.handlers = {
            PreviousElement: lambda m: self._select(-1),
            NextElement: lambda m: self._select(1),
            Input: lambda m: self._edit(lambda field: field.add(m.char)),
            Backspace: lambda m: self._edit(lambda field: field.remove()),
            Enter: self._enter,
            Quit: self._quit,
        }

    @property
    def cancel_index(self):
        return len(self.inputs)

    @property
    def start_index(self):
        return len(self.inputs) + 1

    @property
    def element_count(self):
        return len(self.inputs) + 2

    @property
    def parameters(self):
        """ the form contents as parameters. Fields that do not parse are None. """
        return PortParameters(*(field.read() for field in self.inputs))

    def _select(self, step):
        self.selected = cycle(self.selected, self.element_count, step)

    def _edit(self, change):
        if self.selected >= len(self.inputs):
            return      # buttons take no text
        change(self.inputs[self.selected])
        if isinstance(self.state, Error):
            self.state = Running()

    def _enter(self, message):
        if self.selected == self.cancel_index:
            self.state = Stopping()
        elif self.selected == self.start_index:
            parameters = self.validate()
            if parameters is None:
                self.state = Error(INVALID_INPUT)
            else:
                logger.debug("menu accepted %r" % parameters)
                self.state = Switching(Screen.TERMINAL, parameters)

    def _quit(self, message):
        self.state = Stopping()

    def validate(self):
        """
        Parses every input and marks those that fail.
        :return: complete parameters, or None if any input is invalid
        """
        values = []
        for field in self.inputs:
            value = field.read()
            field.invalid = value is None
            values.append(value)
        parameters = PortParameters(*values)
        return parameters if parameters.complete() else None

    def view(self, width, height):
        split = width >= INPUT_WIDTH * 2 + GAP_WIDTH
        lines = self._field_lines(split) + self._button_lines(split)
        return titled('Menu', lines, height, self._offset(split, len(lines), height))

    def _offset(self, split, line_count, height):
        """ scrolls the form so that the selected element stays in view """
        visible = max(1, height - 3)
        if line_count <= visible:
            return 0
        if split:
            top = (min(self.selected, len(self.inputs)) // 2) * 3
        else:
            top = self.selected * 3 if self.selected < self.start_index else self.selected * 3 - 2
        return max(0, min(top, line_count - visible))

    def _field_style(self, index):
        if index == self.selected:
            return SELECTED_STYLE
        if self.inputs[index].invalid:
            return INVALID_STYLE
        return ''

    def _field_lines(self, split):
        step = 2 if split else 1
        lines = []
        for row in range(0, len(self.inputs), step):
            titles, values, underlines = Text(), Text(), Text()
            for index in range(row, min(row + step, len(self.inputs))):
                if index > row:
                    for line in (titles, values, underlines):
                        line.append(' ' * GAP_WIDTH)
                field = self.inputs[index]
                style = self._field_style(index)
                titles.append(field.title.ljust(INPUT_WIDTH), style=style)
                text = field.visible_text()
                text.pad_right(INPUT_WIDTH - len(text))
                values.append_text(text)
                underlines.append(UNDERLINE, style=style)
            lines.extend((titles, values, underlines))
        return lines

    def _button_lines(self, split):
        cancel = Text('Cancel', style=SELECTED_STYLE if self.selected == self.cancel_index else '')
        start = Text('Start', style=SELECTED_STYLE if self.selected == self.start_index else '')
        if split:
            return [Text.assemble(cancel, ' ' * GAP_WIDTH, start)]
        return [cancel, start]
