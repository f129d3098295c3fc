import time
import unittest
from functools import partial
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_, instance_of, calling, raises, none, same_instance, less_than, starts_with

from portterm.connector.bridge import SerialBridge
from portterm.exceptions import BridgeShutdownError
from portterm.model import Screen, Switching, Running, Stopping, Error, PortParameters, Parity, Mode, Enter, \
    NextElement, Input, Rx
from portterm.scene import Scene
from portterm.screens.device_list import DeviceListModel
from portterm.screens.help import HelpModel
from portterm.screens.menu import MenuModel
from portterm.screens.terminal import TerminalModel


def parameters():
    return PortParameters('COM4', 9600, 8, 1, Parity.EVEN, Mode.ASCII)


class FakeBridge:

    def __init__(self, parameters, channel, settings, opened=True):
        self.parameters = parameters
        self.channel = channel
        self.settings = settings
        self.open_failed = opened is False
        self.opened = opened
        self.started = False
        self.stopped = 0
        self.waited = None

    def start(self):
        self.started = True
        if self.opened is False:
            self.channel.error.try_set("Failed to open %s: not found" % self.parameters.name)
        return self

    def wait_opened(self, timeout=None):
        self.waited = timeout
        return self.opened

    def stop(self, timeout=None):
        self.stopped += 1


class SceneTest(unittest.TestCase):

    def setUp(self):
        self.bridges = []
        self.opened = True
        self.sut = Scene(bridge_factory=self.make_bridge)

    def make_bridge(self, parameters, channel, settings):
        bridge = FakeBridge(parameters, channel, settings, self.opened)
        self.bridges.append(bridge)
        return bridge

    def enter_terminal(self):
        self.sut.update(Switching(Screen.MENU, parameters()))
        self.sut.model.selected = self.sut.model.start_index
        return self.sut.update(Enter())

    def test_starts_at_empty_menu(self):
        assert_that(self.sut.screen, is_(Screen.MENU))
        assert_that(self.sut.model.parameters, is_(PortParameters()))

    def test_switch_message_is_consumed(self):
        assert_that(self.sut.update(Switching(Screen.DEVICE_LIST)), is_(Running()))
        assert_that(self.sut.model, is_(instance_of(DeviceListModel)))

    def test_menu_prefilled(self):
        self.sut.update(Switching(Screen.MENU, PortParameters(name='COM9')))
        assert_that(self.sut.model.inputs[0].value, is_('COM9'))

    def test_device_list_uses_configured_refresh(self):
        self.sut.settings.timing.device_refresh = 3.0
        self.sut.update(Switching(Screen.DEVICE_LIST))
        assert_that(self.sut.model.schedule.period, is_(3.0))

    def test_start_opens_terminal(self):
        assert_that(self.enter_terminal(), is_(Running()))
        assert_that(self.sut.model, is_(instance_of(TerminalModel)))
        bridge = self.bridges[0]
        assert_that(bridge.started, is_(True))
        assert_that(bridge.parameters, is_(parameters()))
        assert_that(self.sut.bridge, is_(same_instance(bridge)))
        assert_that(self.sut.model.channel, is_(same_instance(bridge.channel)))

    def test_open_failure_starts_terminal_in_error(self):
        self.opened = False
        self.enter_terminal()
        assert_that(self.sut.model.state, is_(Error("Failed to open COM4: not found")))

    def test_switch_does_not_wait_for_open(self):
        self.enter_terminal()
        assert_that(self.bridges[0].waited, is_(0))

    def test_late_open_failure_surfaces_on_tick(self):
        self.opened = None
        self.enter_terminal()
        assert_that(self.sut.model.state, is_(Running()))
        bridge = self.bridges[0]
        bridge.open_failed = True
        bridge.channel.error.try_set("Failed to open COM4: busy")
        self.sut.tick()
        assert_that(self.sut.model.state, is_(Error("Failed to open COM4: busy")))

    def test_leaving_terminal_stops_bridge(self):
        self.enter_terminal()
        self.sut.update(Switching(Screen.MENU))
        assert_that(self.bridges[0].stopped, is_(1))
        assert_that(self.sut.bridge, is_(none()))
        self.sut.close()
        assert_that(self.bridges[0].stopped, is_(1))

    def test_shutdown_failure_propagates(self):
        self.enter_terminal()
        self.bridges[0].stop = Mock(side_effect=BridgeShutdownError("stuck"))
        assert_that(calling(self.sut.update).with_args(Switching(Screen.DEVICE_LIST)), raises(BridgeShutdownError))

    def test_help_remembers_terminal(self):
        self.enter_terminal()
        self.sut.update(Switching(Screen.HELP))
        assert_that(self.sut.model, is_(instance_of(HelpModel)))
        assert_that(self.sut.model.caller, is_(Screen.TERMINAL))
        assert_that(self.sut.model.parameters, is_(parameters()))
        assert_that(self.bridges[0].stopped, is_(1))
        self.sut.update(Enter())
        assert_that(self.sut.model, is_(instance_of(TerminalModel)))
        assert_that(len(self.bridges), is_(2))
        assert_that(self.bridges[1].started, is_(True))

    def test_help_from_menu_keeps_partial_form(self):
        self.sut.update(Input('C'))
        self.sut.update(Switching(Screen.HELP))
        self.sut.update(Enter())
        assert_that(self.sut.model, is_(instance_of(MenuModel)))
        assert_that(self.sut.model.inputs[0].value, is_('C'))

    def test_help_twice_keeps_caller(self):
        self.sut.update(Switching(Screen.DEVICE_LIST))
        self.sut.update(Switching(Screen.HELP))
        help_model = self.sut.model
        self.sut.update(Switching(Screen.HELP))
        assert_that(self.sut.model, is_(same_instance(help_model)))
        assert_that(help_model.caller, is_(Screen.DEVICE_LIST))

    def test_device_selection_goes_to_menu(self):
        self.sut.update(Switching(Screen.DEVICE_LIST))
        self.sut.model.devices = ['COM1', 'COM2']
        self.sut.update(NextElement())
        self.sut.update(Enter())
        assert_that(self.sut.model, is_(instance_of(MenuModel)))
        assert_that(self.sut.model.inputs[0].value, is_('COM2'))

    def test_stopping_is_returned(self):
        self.sut.model.selected = self.sut.model.cancel_index
        assert_that(self.sut.update(Enter()), is_(Stopping()))

    def test_tick_reaches_terminal(self):
        self.enter_terminal()
        self.sut.model.channel.rx.try_extend(b'A')
        self.sut.tick()
        assert_that(self.sut.model.encoded(), is_('A '))

    def test_messages_forwarded(self):
        self.enter_terminal()
        self.sut.update(Rx(b'B'))
        assert_that(self.sut.model.encoded(), is_('B '))

    def test_terminal_requires_complete_parameters(self):
        assert_that(calling(self.sut.switch).with_args(Screen.TERMINAL, PortParameters('COM4')),
                    raises(ValueError))


class SceneBridgeTest(unittest.TestCase):
    """ enters the terminal with real bridge threads """

    def setUp(self):
        self.sut = None

    def tearDown(self):
        self.sut and self.sut.close()

    @timeout_decorator.timeout(5)
    def test_slow_open_does_not_block_switch(self):
        handle = Mock()
        handle.connect.side_effect = lambda: time.sleep(0.5)
        handle.read.return_value = b''
        self.sut = Scene(bridge_factory=partial(SerialBridge, handle_factory=Mock(return_value=handle)))
        start = time.monotonic()
        self.sut.update(Switching(Screen.TERMINAL, parameters()))
        assert_that(time.monotonic() - start, is_(less_than(0.1)))
        assert_that(self.sut.model.state, is_(Running()))

    @timeout_decorator.timeout(5)
    def test_unknown_url_scheme_ends_in_error(self):
        self.sut = Scene()
        self.sut.update(Switching(Screen.TERMINAL, PortParameters('foo://x', 9600, 8, 1, Parity.NONE, Mode.ASCII)))
        bridge = self.sut.bridge
        bridge.wait_opened(2)
        bridge.background_thread.join(2)
        self.sut.tick()
        assert_that(self.sut.model.state, is_(instance_of(Error)))
        assert_that(self.sut.model.state.message, starts_with("Failed to open foo://x"))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
