"""
Cells shared between the serial bridge thread and the UI loop.

All access from either side goes through non-blocking lock attempts. A contended
lock is not an error: the caller gets a "nothing done" result and tries again on its
next cycle.
"""
import threading

from portterm.exceptions import BridgeShutdownError


class SharedBuffer:
    """
    A byte sequence guarded by a lock. The producer appends, the consumer drains.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._data = bytearray()

    def try_extend(self, data) -> bool:
        """
        Appends data without waiting for the lock.
        :return: True if the data was appended, False if the lock was held elsewhere.
        """
        if not self._lock.acquire(blocking=False):
            return False
        try:
            self._data.extend(data)
            return True
        finally:
            self._lock.release()

    def try_drain(self):
        """
        Removes and returns everything buffered.
        :return: the buffered bytes (possibly empty), or None if the lock was held elsewhere.
        """
        if not self._lock.acquire(blocking=False):
            return None
        try:
            data = bytes(self._data)
            self._data.clear()
            return data
        finally:
            self._lock.release()

    def try_transfer(self, send) -> bool:
        """
        Passes the buffered bytes to send() while holding the lock, and clears the buffer
        only if send() returns normally. Exceptions from send() propagate and leave the
        buffer untouched.
        :return: True if the lock was acquired, False otherwise.
        """
        if not self._lock.acquire(blocking=False):
            return False
        try:
            if self._data:
                send(bytes(self._data))
                self._data.clear()
            return True
        finally:
            self._lock.release()

    def __len__(self):
        return len(self._data)


class SharedSlot:
    """ An optional value, set by the bridge and taken by the UI. """

    def __init__(self):
        self._lock = threading.Lock()
        self._value = None

    def try_set(self, value) -> bool:
        if not self._lock.acquire(blocking=False):
            return False
        try:
            self._value = value
            return True
        finally:
            self._lock.release()

    def try_take(self):
        """ returns the current value and clears it. Returns None when empty or contended. """
        if not self._lock.acquire(blocking=False):
            return None
        try:
            value, self._value = self._value, None
            return value
        finally:
            self._lock.release()


class SerialFlag:
    """
    True while the bridge should keep the port open.
    Only the scene clears it, and only the bridge polls it.
    """

    def __init__(self, value=True):
        self._lock = threading.Lock()
        self._value = value

    def is_set(self) -> bool:
        """
        The bridge's view of the flag. A contended read keeps the bridge running for
        another cycle.
        """
        if not self._lock.acquire(blocking=False):
            return True
        try:
            return self._value
        finally:
            self._lock.release()

    def clear(self, timeout=1.0):
        """
        Requests shutdown. Clearing an already cleared flag has no further effect.
        :raises BridgeShutdownError: if the flag could not be cleared within timeout seconds.
        """
        if not self._lock.acquire(timeout=timeout):
            raise BridgeShutdownError("unable to clear the serial flag")
        try:
            self._value = False
        finally:
            self._lock.release()


class SerialChannel:
    """ The complete set of cells connecting one bridge to the UI. """

    def __init__(self):
        self.rx = SharedBuffer()        # device -> UI
        self.tx = SharedBuffer()        # UI -> device
        self.error = SharedSlot()
        self.flag = SerialFlag()
