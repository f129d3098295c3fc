"""
Lists the serial ports present on this machine and lets the user pick one for the menu.
"""
import logging
import time

from rich.text import Text

from portterm.conduit.serial_conduit import list_available_ports
from portterm.exceptions import DeviceListError
from portterm.model import Screen, Switching, Error, Running, PortParameters, PreviousElement, NextElement, Enter
from portterm.screens.base import ScreenModel, cycle, titled, SELECTED_STYLE, INVALID_STYLE
from portterm.support.schedule import PeriodSchedule

logger = logging.getLogger(__name__)


class DeviceListModel(ScreenModel):
    """
    The device names are fetched when the list is first viewed, then refreshed from tick()
    at most once per refresh interval. Enter hands the selected name to the menu.
    """
    screen = Screen.DEVICE_LIST

    def __init__(self, refresh_interval=1.0, lister=list_available_ports, clock=time.monotonic):
        super().__init__()
        self.devices = None     # not yet loaded
        self.selected = 0
        self.lister = lister
        self.clock = clock
        self.schedule = PeriodSchedule(refresh_interval)
        self.handlers = {
            PreviousElement: lambda m: self._select(-1),
            NextElement: lambda m: self._select(1),
            Enter: self._enter,
        }

    @property
    def loaded(self):
        return self.devices is not None

    def _select(self, step):
        if self.devices:
            self.selected = cycle(self.selected, len(self.devices), step)

    def _enter(self, message):
        if self.devices:
            self.state = Switching(Screen.MENU, PortParameters(name=self.devices[self.selected]))
        else:
            self.state = Switching(Screen.MENU)

    def tick(self):
        if self.loaded and self.schedule(self.clock()) <= 0:
            self.refresh()

    def refresh(self):
        """ re-reads the device names, keeping the selection within the new list """
        try:
            devices = self.lister()
        except DeviceListError as e:
            logger.warning(str(e))
            self.devices = self.devices or []
            self.state = Error(str(e))
            return
        if devices != self.devices:
            logger.debug("devices: %s" % devices)
        self.devices = devices
        self.selected = min(self.selected, max(0, len(devices) - 1))
        if isinstance(self.state, Error):
            self.state = Running()

    def view(self, width, height):
        if not self.loaded:
            self.schedule(self.clock())
            self.refresh()
        if not self.devices:
            lines = [Text('No devices available', style=INVALID_STYLE)]
            return titled('Device List', lines, height)
        lines = [Text(name, style=SELECTED_STYLE if index == self.selected else '')
                 for index, name in enumerate(self.devices)]
        visible = max(1, height - 3)
        offset = 0 if len(lines) <= visible else min(self.selected, len(lines) - visible)
        return titled('Device List', lines, height, offset)
