import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, contains_string, none

from portterm.exceptions import DeviceListError
from portterm.model import Screen, Switching, Running, Error, PortParameters, PreviousElement, NextElement, \
    Enter, Quit, Input
from portterm.screens.device_list import DeviceListModel
from portterm.screens.menu_test import render


class FakeClock:

    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class DeviceListModelTest(unittest.TestCase):

    def setUp(self):
        self.lister = Mock(return_value=['COM1', 'COM2'])
        self.clock = FakeClock()
        self.sut = DeviceListModel(refresh_interval=1.0, lister=self.lister, clock=self.clock)

    def test_previous_wraps(self):
        self.sut.devices = ['COM1', 'COM2']
        self.sut.selected = 1
        self.sut.update(PreviousElement())
        assert_that(self.sut.selected, is_(0))
        self.sut.update(PreviousElement())
        assert_that(self.sut.selected, is_(1))

    def test_navigation_is_cyclic(self):
        self.sut.devices = ['COM1', 'COM2', 'COM3']
        for _ in range(3):
            self.sut.update(NextElement())
        assert_that(self.sut.selected, is_(0))

    def test_navigation_without_devices(self):
        self.sut.devices = []
        self.sut.update(NextElement())
        self.sut.update(PreviousElement())
        assert_that(self.sut.selected, is_(0))

    def test_enter_selects_device(self):
        self.sut.devices = ['COM1', 'COM2']
        self.sut.update(NextElement())
        assert_that(self.sut.update(Enter()), is_(Switching(Screen.MENU, PortParameters(name='COM2'))))

    def test_enter_without_devices(self):
        assert_that(self.sut.update(Enter()), is_(Switching(Screen.MENU, None)))

    def test_other_messages_ignored(self):
        assert_that(self.sut.update(Quit()), is_(Running()))
        assert_that(self.sut.update(Input('a')), is_(Running()))

    def test_loaded_lazily_on_view(self):
        assert_that(self.sut.devices, is_(none()))
        self.sut.tick()
        self.lister.assert_not_called()
        text = render(self.sut.view(76, 20))
        assert_that(self.sut.devices, is_(['COM1', 'COM2']))
        assert_that(text, contains_string('COM2'))
        self.sut.view(76, 20)
        assert_that(self.lister.call_count, is_(1))

    def test_refresh_is_rate_limited(self):
        self.sut.view(76, 20)
        self.clock.now += 0.5
        self.sut.tick()
        assert_that(self.lister.call_count, is_(1))
        self.clock.now += 0.6
        self.sut.tick()
        assert_that(self.lister.call_count, is_(2))

    def test_refresh_clamps_selection(self):
        self.sut.devices = ['COM1', 'COM2', 'COM3']
        self.sut.selected = 2
        self.sut.refresh()
        assert_that(self.sut.selected, is_(1))
        self.lister.return_value = []
        self.sut.refresh()
        assert_that(self.sut.selected, is_(0))

    def test_list_failure_is_an_error(self):
        self.lister.side_effect = DeviceListError("Failed to list devices: denied")
        self.sut.view(76, 20)
        assert_that(self.sut.state, is_(Error("Failed to list devices: denied")))
        assert_that(self.sut.devices, is_([]))

    def test_recovery_after_failure(self):
        self.lister.side_effect = DeviceListError("Failed to list devices: denied")
        self.sut.refresh()
        self.lister.side_effect = None
        self.sut.refresh()
        assert_that(self.sut.state, is_(Running()))
        assert_that(self.sut.devices, is_(['COM1', 'COM2']))

    def test_empty_view(self):
        self.lister.return_value = []
        assert_that(render(self.sut.view(76, 20)), contains_string('No devices available'))

    def test_short_view_follows_selection(self):
        self.lister.return_value = ['COM%d' % i for i in range(10)]
        self.sut.view(76, 6)
        self.sut.selected = 9
        text = render(self.sut.view(76, 6))
        assert_that(text, contains_string('COM9'))
        assert_that(text, is_(contains_string('COM7')))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
