"""
Keyboard input: reading raw key presses from the console, naming them, and mapping
the names to screen messages.

Keys are named as strings: a single printable character, 'enter', 'backspace', 'tab',
'escape', 'up', 'down', 'left', 'right', 'f1', or 'ctrl+<c>' for control characters.
"""
import asyncio
import logging
import os
import sys

from portterm.model import Quit, Switching, Screen, Pause, Resume, NextElement, PreviousElement, Enter, \
    Backspace, Input

logger = logging.getLogger(__name__)

escape_sequences = {
    '\x1b[A': 'up',
    '\x1b[B': 'down',
    '\x1b[C': 'right',
    '\x1b[D': 'left',
    '\x1bOA': 'up',
    '\x1bOB': 'down',
    '\x1bOC': 'right',
    '\x1bOD': 'left',
    '\x1bOP': 'f1',
    '\x1b[11~': 'f1',
    '\x1b[[A': 'f1',
}

named_controls = {
    '\r': 'enter',
    '\n': 'enter',
    '\t': 'tab',
    '\x7f': 'backspace',
    '\x1b': 'escape',
}

windows_extended = {
    'H': 'up',
    'P': 'down',
    'K': 'left',
    'M': 'right',
    ';': 'f1',
}


def control_name(char):
    """
    >>> control_name('\\x11')
    'ctrl+q'
    >>> control_name('\\x1d')
    'ctrl+]'
    """
    return 'ctrl+' + chr(ord(char) + 0x60).replace('{', '[').replace('|', '\\').replace('}', ']') \
        .replace('~', '^').replace('\x7f', '_')


def decode_keys(text):
    """
    Splits a chunk of raw terminal input into key names.
    >>> decode_keys('ab\\x1b[A\\r')
    ['a', 'b', 'up', 'enter']
    >>> decode_keys('\\x1b')
    ['escape']
    """
    keys = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == '\x1b' and i + 1 < len(text):
            length = _escape_length(text, i)
            sequence = text[i:i + length]
            if length > 1:
                i += length
                if sequence in escape_sequences:
                    keys.append(escape_sequences[sequence])
                else:
                    logger.debug("ignoring escape sequence %r" % sequence)
                continue
        i += 1
        if char in named_controls:
            keys.append(named_controls[char])
        elif '\x00' < char < ' ':
            keys.append(control_name(char))
        elif char.isprintable():
            keys.append(char)
    return keys


def _escape_length(text, start):
    """ the length of the escape sequence at start, or 1 for a lone escape """
    introducer = text[start + 1]
    if introducer == 'O' and start + 2 < len(text):
        return 3
    if introducer != '[':
        return 1
    end = start + 2
    if end < len(text) and text[end] == '[':     # linux console function keys
        return min(4, len(text) - start)
    while end < len(text) and not ('@' <= text[end] <= '~'):
        end += 1
    return min(end + 1, len(text)) - start


class KeySettings:
    """ The characters combined with ctrl for each global shortcut. Attribute names match the [keys] config. """

    def __init__(self, quit='q', menu='n', device_list='l', help='h', pause='p', resume='r', next=']',
                 previous='['):
        self.quit = quit
        self.menu = menu
        self.device_list = device_list
        self.help = help
        self.pause = pause
        self.resume = resume
        self.next = next
        self.previous = previous


class Keymap:
    """ Translates key names to messages. """

    def __init__(self, settings: KeySettings=None):
        self.settings = settings = settings or KeySettings()
        self.bindings = {
            'ctrl+' + settings.quit: Quit,
            'ctrl+' + settings.menu: lambda: Switching(Screen.MENU),
            'ctrl+' + settings.device_list: lambda: Switching(Screen.DEVICE_LIST),
            'ctrl+' + settings.help: lambda: Switching(Screen.HELP),
            'f1': lambda: Switching(Screen.HELP),
            'ctrl+' + settings.pause: Pause,
            'ctrl+' + settings.resume: Resume,
            'ctrl+' + settings.next: NextElement,
            'down': NextElement,
            'ctrl+' + settings.previous: PreviousElement,
            'up': PreviousElement,
            'enter': Enter,
            'backspace': Backspace,
        }
        if settings.previous == '[':
            self.bindings['escape'] = PreviousElement    # ctrl+[ arrives as a bare escape

    def translate(self, key):
        """
        :return: the message for the key, or None if the key has no meaning
        """
        binding = self.bindings.get(key)
        if binding is not None:
            return binding()
        if len(key) == 1 and key.isprintable():
            return Input(key)
        return None

    def describe(self, action):
        """ the shortcut for a named action, as shown to the user """
        return 'ctrl+%s' % getattr(self.settings, action)


class PosixKeyboard:
    """
    Reads key presses from a POSIX terminal in raw mode, so that control keys reach the
    application instead of the line discipline. Output processing is left enabled.

    Use as a context manager around the session, and as an async iterator of key names.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stdin
        self.fd = self.stream.fileno()
        self._saved = None
        self._queue = None
        self._loop = None

    def __enter__(self):
        import termios
        import tty
        self._saved = termios.tcgetattr(self.fd)
        tty.setraw(self.fd)
        attrs = termios.tcgetattr(self.fd)
        attrs[1] |= termios.OPOST       # keep newline translation for the renderer
        termios.tcsetattr(self.fd, termios.TCSADRAIN, attrs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        import termios
        self._detach()
        if self._saved is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def __aiter__(self):
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._loop.add_reader(self.fd, self._readable)
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if isinstance(item, BaseException):
            self._detach()
            raise item
        return item

    def _readable(self):
        try:
            data = os.read(self.fd, 1024)
        except OSError as e:
            self._queue.put_nowait(e)
            return
        if not data:
            self._queue.put_nowait(EOFError("keyboard input closed"))
            return
        for key in decode_keys(data.decode('utf-8', errors='replace')):
            self._queue.put_nowait(key)

    def _detach(self):
        if self._loop is not None:
            self._loop.remove_reader(self.fd)
            self._loop = None


class WindowsKeyboard:
    """ Polls the Windows console for key presses. """

    def __init__(self, poll_interval=0.01):
        self.poll_interval = poll_interval

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    def __aiter__(self):
        return self

    async def __anext__(self):
        import msvcrt
        while True:
            while not msvcrt.kbhit():
                await asyncio.sleep(self.poll_interval)
            key = self._read(msvcrt)
            if key:
                return key

    @staticmethod
    def _read(msvcrt):
        char = msvcrt.getwch()
        if char in ('\x00', '\xe0'):
            return windows_extended.get(msvcrt.getwch())
        if char == '\x08':
            return 'backspace'
        keys = decode_keys(char)
        return keys[0] if keys else None


def open_keyboard():
    """ the keyboard reader for this platform """
    return WindowsKeyboard() if os.name == 'nt' else PosixKeyboard()
