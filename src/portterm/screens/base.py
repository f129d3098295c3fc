"""
The contract shared by the screens.

Each screen is a model with an update/view pair: update() folds a message into the
model and returns the resulting state, view() describes the model as a rich renderable
for the area it is given. Models never draw directly and never block.
"""
from rich.console import Group
from rich.text import Text

from portterm.model import Running, State, Message

INVALID_STYLE = 'bright_red'
SELECTED_STYLE = 'bright_blue'
PLACEHOLDER_STYLE = 'bright_black'

# lines used by a screen title and the margin below it
TITLE_HEIGHT = 3


def cycle(index, count, step):
    """
    Moves a selection by step positions, wrapping at both ends.
    An empty selection is left where it is.
    >>> cycle(0, 8, -1)
    7
    >>> cycle(7, 8, 1)
    0
    """
    if count <= 0:
        return index
    return (index + step) % count


def centered(text, style=None) -> Text:
    if not isinstance(text, Text):
        text = Text(text, style=style or '')
    text.justify = 'center'
    text.no_wrap = True
    text.overflow = 'ellipsis'
    return text


def titled(title, lines, height, offset=0):
    """
    Lays out a bold centered title above centered content lines, showing only the lines
    that fit below the title starting from offset.
    """
    visible = max(1, height - TITLE_HEIGHT)
    body = [centered(line) for line in lines[offset:offset + visible]]
    return Group(centered(Text(title, style='bold')), Text(''), Text(''), *body)


class ScreenModel:
    """
    Base for the screen models.

    Subclasses register a handler per message type in self.handlers. Messages without a
    handler leave the model unchanged, so update() accepts every message.
    """
    screen = None

    def __init__(self):
        self.state = Running()
        self.notice = None      # a transient condition to show in the status bar
        self.handlers = {}

    @property
    def parameters(self):
        """ the port parameters the screen carries, if any """
        return None

    def update(self, message: Message) -> State:
        handler = self.handlers.get(type(message))
        if handler is not None:
            handler(message)
        return self.state

    def tick(self):
        """ periodic work, driven by the tick timer """

    def view(self, width, height):
        """
        :param width: the columns available to the screen
        :param height: the lines available to the screen
        :return: a rich renderable
        """
        raise NotImplementedError
