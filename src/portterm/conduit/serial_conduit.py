"""
Implements access to a local serial port.
"""

import logging

import serial
from serial.tools import list_ports

from portterm.exceptions import DeviceListError, PortOpenError
from portterm.model import Parity, PortParameters

logger = logging.getLogger(__name__)

data_bits_map = {
    5: serial.FIVEBITS,
    6: serial.SIXBITS,
    7: serial.SEVENBITS,
    8: serial.EIGHTBITS,
}

stop_bits_map = {
    1: serial.STOPBITS_ONE,
    2: serial.STOPBITS_TWO,
}

parity_map = {
    Parity.ODD: serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
    Parity.NONE: serial.PARITY_NONE,
}


class PortHandle:
    """
    A serial port configured from complete port parameters. The port is not opened
    until connect() is called, and is only ever opened and closed by the bridge thread.
    """

    def __init__(self, parameters: PortParameters, read_timeout=0.05, write_timeout=1.0, read_size=4096):
        """
        :param parameters: complete port parameters
        :param read_timeout: seconds a read waits for the first byte
        :param write_timeout: seconds a write may block before raising SerialTimeoutException
        :param read_size: upper bound on the number of bytes fetched by a single read
        """
        if not parameters.complete():
            raise ValueError("port parameters are incomplete: %r" % parameters)
        self.parameters = parameters.copy()
        self.read_size = read_size
        # accepts plain device names as well as pyserial URLs such as loop://
        try:
            self.ser = serial.serial_for_url(parameters.name, do_not_open=True)
            self.ser.baudrate = parameters.baud_rate
            self.ser.bytesize = data_bits_map[parameters.data_bits]
            self.ser.stopbits = stop_bits_map[parameters.stop_bits]
            self.ser.parity = parity_map[parameters.parity]
            self.ser.timeout = read_timeout
            self.ser.write_timeout = write_timeout
        except (serial.SerialException, ValueError) as e:
            raise PortOpenError("Failed to open %s: %s" % (parameters.name, e)) from e

    @property
    def name(self):
        return self.parameters.name

    @property
    def open(self) -> bool:
        return self.ser.is_open

    def connect(self):
        """
        Opens the port.
        :raises PortOpenError: when the port cannot be opened.
        """
        try:
            self.ser.open()
        except (serial.SerialException, OSError, ValueError) as e:
            raise PortOpenError("Failed to open %s: %s" % (self.name, e)) from e
        logger.info("opened serial port %s at %s baud" % (self.name, self.parameters.baud_rate))

    def read(self):
        """
        Reads whatever is waiting, or waits up to the read timeout for at least one byte.
        :return: the bytes read. An empty result means the read timed out.
        """
        size = min(max(1, self.ser.in_waiting), self.read_size)
        return self.ser.read(size)

    def write(self, data):
        """
        Writes all of data.
        :raises serial.SerialTimeoutException: when the write timeout elapses first
        """
        self.ser.write(data)

    def close(self):
        if self.ser.is_open:
            self.ser.close()
            logger.info("closed serial port %s" % self.name)


def serial_port_info():
    """
    :return: a tuple of ListPortInfo instances, one per local serial port
    :rtype:
    """
    return tuple(list_ports.comports())


def list_available_ports():
    """
    Lists the device names of the local serial ports, sorted by name.
    :raises DeviceListError: when the platform cannot enumerate its ports.
    """
    try:
        return sorted(port.device for port in serial_port_info())
    except (serial.SerialException, OSError) as e:
        raise DeviceListError("Failed to list devices: %s" % e) from e
