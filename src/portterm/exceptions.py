class PortTermError(Exception):
    """ Base class for errors raised by portterm. """


class PortOpenError(PortTermError):
    """ The serial port could not be opened with the requested parameters. """


class DeviceListError(PortTermError):
    """ The platform could not enumerate the available serial ports. """


class BridgeShutdownError(PortTermError):
    """
    The serial bridge could not be signalled or joined when leaving the terminal.
    This is not recoverable: the port handle would leak.
    """


class ConfigurationError(PortTermError):
    """ The configuration files could not be loaded or failed validation. """
