import time

from portterm.support.mixins import CommonEqualityMixin


class Schedule:
    def __call__(self, current_time=None):
        return 0


class PeriodSchedule(Schedule, CommonEqualityMixin):
    """
    A fixed-rate schedule. Each call reports how long until the next occurrence is due,
    and a call that finds the occurrence due marks it as taken.
    """

    def __init__(self, period, last_fired=None):
        """
        :param period: The period in seconds.
        :param last_fired: The time the schedule last fired, or None if it never has.
        """
        self.last_fired = last_fired
        self.period = period

    def __call__(self, current_time=None, dry_run=False):
        """return the length of time until the next occurrence is due. Zero or less means it is due now.
            :param current_time: the current time, defaults to time.monotonic()
            :param dry_run: when True, the last fired time is not updated
        """
        if current_time is None:
            current_time = time.monotonic()
        result = self._time_to_next(current_time)
        if not dry_run and result <= 0:
            self._advance(current_time)
        return result

    def _time_to_next(self, current_time):
        return 0 if self.last_fired is None else self.period - (current_time - self.last_fired)

    def _advance(self, current_time):
        """
        Moves the last fired time forward by whole periods so the rate does not drift,
        unless the schedule has fallen more than a period behind, in which case it restarts
        from the current time instead of firing a burst.
        """
        last = self.last_fired
        if last is None or current_time - last >= 2 * self.period:
            self.last_fired = current_time
        else:
            self.last_fired = last + self.period

    def reset(self):
        """ makes the schedule due immediately """
        self.last_fired = None
