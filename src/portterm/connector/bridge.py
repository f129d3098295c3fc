"""
Moves bytes between an open serial port and the shared rx/tx buffers on a background thread.
"""
import logging
import threading
import time

import serial

from portterm.conduit.serial_conduit import PortHandle
from portterm.exceptions import BridgeShutdownError, PortOpenError
from portterm.model import PortParameters
from portterm.support.shared import SerialChannel

logger = logging.getLogger(__name__)


class BridgeSettings:
    """ Timing for the bridge. The attribute names match the configuration keys. """

    def __init__(self, bridge_interval=0.02, read_timeout=0.05, write_timeout=1.0, read_size=4096,
                 join_timeout=5.0):
        self.bridge_interval = bridge_interval
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.read_size = read_size
        self.join_timeout = join_timeout


class SerialBridge:
    """ Continually shuttles data between a serial port and a SerialChannel on a background thread.

        The thread opens the port itself. A failed open is reported through the channel's
        error slot and ends the thread without retrying. Once open, each cycle writes any
        pending tx bytes, appends any received bytes to rx, and sleeps for bridge_interval.
        The loop ends when the channel's flag is cleared, and the port is closed on the way out.

        Bytes still queued in tx at shutdown are not sent.
    """

    def __init__(self, parameters: PortParameters, channel: SerialChannel=None, settings: BridgeSettings=None,
                 handle_factory=PortHandle, log=logger):
        """
        :param parameters: complete port parameters. A copy is kept.
        :param channel: the cells shared with the UI. A new channel is created when not given.
        :param handle_factory: builds the port handle from the parameters and timeouts
        """
        if not parameters.complete():
            raise ValueError("port parameters are incomplete: %r" % parameters)
        self.parameters = parameters.copy()
        self.channel = channel if channel is not None else SerialChannel()
        self.settings = settings or BridgeSettings()
        self.handle_factory = handle_factory
        self.logger = log
        self.handle = None
        self.background_thread = None
        self.opened = threading.Event()     # set once the open attempt has completed, either way
        self.open_failed = False
        self._pending_rx = bytearray()      # received bytes waiting for the rx lock

    def start(self):
        """
        Starts the background thread.
        :return: this bridge, which serves as the handle used to stop it.
        """
        if self.background_thread is None:
            t = threading.Thread(target=self._run, name="serial-bridge %s" % self.parameters.name)
            t.daemon = True
            self.background_thread = t
            t.start()
        return self

    def wait_opened(self, timeout=None):
        """
        Waits for the outcome of the open attempt.
        :return: True if the port opened, False if it failed to open, None if still pending.
        """
        if not self.opened.wait(timeout):
            return None
        return not self.open_failed

    @property
    def alive(self):
        thread = self.background_thread
        return thread is not None and thread.is_alive()

    def _run(self):
        """ The processing loop for the background thread. """
        if not self.startup():
            return
        try:
            while self.running():
                self._do(self.loop)
                time.sleep(self.settings.bridge_interval)
        finally:
            self.shutdown()
        self.logger.info("serial bridge for %s exiting" % self.parameters.name)

    def _do(self, callme):
        """ runs one cycle and captures any unexpected exceptions """
        try:
            callme()
        except Exception as e:
            self.logger.exception(e)
            self._post_error("Unexpected error on %s: %s" % (self.parameters.name, e))

    def startup(self):
        """
        Opens the port.
        :return: True if the port is open and the loop should run.
        """
        s = self.settings
        try:
            self.handle = self.handle_factory(self.parameters, read_timeout=s.read_timeout,
                                              write_timeout=s.write_timeout, read_size=s.read_size)
            self.handle.connect()
            return True
        except PortOpenError as e:
            self._open_error(str(e))
            return False
        except Exception as e:
            self.logger.exception(e)
            self._open_error("Failed to open %s: %s" % (self.parameters.name, e))
            return False
        finally:
            self.opened.set()

    def _open_error(self, message):
        self.logger.warning(message)
        self.open_failed = True
        self.channel.error.try_set(message)

    def loop(self):
        """ One bridge cycle: drain tx to the device, then read from the device into rx. """
        self._write_cycle()
        self._read_cycle()

    def _write_cycle(self):
        try:
            self.channel.tx.try_transfer(self.handle.write)
        except serial.SerialTimeoutException:
            pass        # tx is left untouched and retried next cycle
        except (serial.SerialException, OSError) as e:
            self._io_error("write", e)

    def _read_cycle(self):
        try:
            self._pending_rx.extend(self.handle.read())
        except (serial.SerialException, OSError) as e:
            self._io_error("read", e)
        if self._pending_rx and self.channel.rx.try_extend(self._pending_rx):
            self._pending_rx.clear()

    def _io_error(self, operation, e):
        message = "Error during %s on %s: %s" % (operation, self.parameters.name, e)
        self.logger.warning(message)
        self._post_error(message)

    def _post_error(self, message):
        # an error lost to contention will be reported again if the fault persists
        self.channel.error.try_set(message)

    def shutdown(self):
        """ closes the port once the flag has been cleared """
        handle = self.handle
        if handle is not None:
            try:
                handle.close()
            except (serial.SerialException, OSError) as e:
                self.logger.warning("error closing %s: %s" % (self.parameters.name, e))

    def running(self):
        return self.channel.flag.is_set()

    def stop(self, timeout=None):
        """
        Clears the flag and waits for the thread to close the port and exit.
        Calling stop again after a successful stop has no further effect.
        :param timeout: seconds to wait for the thread, defaults to the join_timeout setting
        :raises BridgeShutdownError: if the flag could not be cleared or the thread did not exit.
        """
        if timeout is None:
            timeout = self.settings.join_timeout
        self.channel.flag.clear(timeout)
        thread = self.background_thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                raise BridgeShutdownError("serial bridge for %s did not stop within %ss"
                                          % (self.parameters.name, timeout))
        self.background_thread = None
