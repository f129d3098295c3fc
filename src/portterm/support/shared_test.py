import threading
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, none, calling, raises

from portterm.exceptions import BridgeShutdownError
from portterm.support.shared import SharedBuffer, SharedSlot, SerialFlag, SerialChannel


class SharedBufferTest(unittest.TestCase):
    def setUp(self):
        self.sut = SharedBuffer()

    def test_extend_then_drain(self):
        assert_that(self.sut.try_extend(b'ab'), is_(True))
        assert_that(self.sut.try_extend(b'c'), is_(True))
        assert_that(self.sut.try_drain(), is_(b'abc'))
        assert_that(self.sut.try_drain(), is_(b''))

    def test_contended_extend_is_refused(self):
        self.sut._lock.acquire()
        try:
            assert_that(self.sut.try_extend(b'x'), is_(False))
        finally:
            self.sut._lock.release()
        assert_that(len(self.sut), is_(0))

    def test_contended_drain_returns_none(self):
        self.sut.try_extend(b'x')
        self.sut._lock.acquire()
        try:
            assert_that(self.sut.try_drain(), is_(none()))
        finally:
            self.sut._lock.release()
        assert_that(self.sut.try_drain(), is_(b'x'))

    def test_transfer_clears_on_success(self):
        send = Mock()
        self.sut.try_extend(b'hello')
        assert_that(self.sut.try_transfer(send), is_(True))
        send.assert_called_once_with(b'hello')
        assert_that(len(self.sut), is_(0))

    def test_transfer_skips_send_when_empty(self):
        send = Mock()
        assert_that(self.sut.try_transfer(send), is_(True))
        send.assert_not_called()

    def test_transfer_keeps_data_on_failure(self):
        send = Mock(side_effect=IOError("boom"))
        self.sut.try_extend(b'hello')
        assert_that(calling(self.sut.try_transfer).with_args(send), raises(IOError))
        assert_that(self.sut.try_drain(), is_(b'hello'))

    def test_transfer_contended(self):
        send = Mock()
        self.sut.try_extend(b'x')
        self.sut._lock.acquire()
        try:
            assert_that(self.sut.try_transfer(send), is_(False))
        finally:
            self.sut._lock.release()
        send.assert_not_called()


class SharedSlotTest(unittest.TestCase):
    def test_take_clears(self):
        sut = SharedSlot()
        assert_that(sut.try_take(), is_(none()))
        assert_that(sut.try_set("oops"), is_(True))
        assert_that(sut.try_take(), is_("oops"))
        assert_that(sut.try_take(), is_(none()))

    def test_contended(self):
        sut = SharedSlot()
        sut._lock.acquire()
        try:
            assert_that(sut.try_set("oops"), is_(False))
            assert_that(sut.try_take(), is_(none()))
        finally:
            sut._lock.release()


class SerialFlagTest(unittest.TestCase):
    def test_initially_set(self):
        assert_that(SerialFlag().is_set(), is_(True))

    def test_clear_is_idempotent(self):
        sut = SerialFlag()
        sut.clear()
        sut.clear()
        assert_that(sut.is_set(), is_(False))

    def test_contended_read_keeps_running(self):
        sut = SerialFlag(False)
        sut._lock.acquire()
        try:
            assert_that(sut.is_set(), is_(True))
        finally:
            sut._lock.release()

    def test_clear_fails_when_lock_not_released(self):
        sut = SerialFlag()
        holder = threading.Thread(target=sut._lock.acquire)
        holder.start()
        holder.join()
        assert_that(calling(sut.clear).with_args(0.01), raises(BridgeShutdownError))


class SerialChannelTest(unittest.TestCase):
    def test_cells_are_independent(self):
        sut = SerialChannel()
        assert_that(sut.rx is sut.tx, is_(False))
        assert_that(sut.flag.is_set(), is_(True))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
