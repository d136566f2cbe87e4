import pytest
from pydantic import ValidationError

from housesync.transport.kill_switch import KillSwitch, KillSwitchSettings, KillSwitchState
from housesync.transport.policy import RetryPolicy


class TestRetryPolicy:

    def test_delays_double_up_to_the_cap(self):
        policy = RetryPolicy(max_attempts=8, initial_delay=1, max_delay=30, multiplier=2)

        assert [policy.delay_for(n) for n in range(1, 8)] == [1, 2, 4, 8, 16, 30, 30]

    def test_exhaustion_is_bounded_by_max_attempts(self):
        policy = RetryPolicy(max_attempts=5)

        assert not policy.is_exhausted(4)
        assert policy.is_exhausted(5)

    def test_rejects_inverted_delays(self):
        with pytest.raises(ValidationError):
            RetryPolicy(initial_delay=10, max_delay=1)


class TestKillSwitch:

    def _switch(self, clock, **overrides):
        settings = dict(activation_threshold=4, trip_threshold=0.5, window=60, restart_timeout=30)
        settings.update(overrides)
        return KillSwitch(KillSwitchSettings(**settings), clock=clock)

    def test_does_not_trip_before_activation_threshold(self, clock):
        switch = self._switch(clock)
        for _ in range(3):
            switch.record_failure()

        assert switch.state is KillSwitchState.ACTIVE

    def test_trips_when_failure_ratio_reached(self, clock):
        switch = self._switch(clock)
        switch.record_success()
        switch.record_success()
        switch.record_failure()
        assert not switch.is_tripped

        switch.record_failure()

        assert switch.is_tripped
        assert switch.remaining() == 30
        assert switch.trip_count == 1

    def test_resumes_after_restart_timeout(self, clock):
        switch = self._switch(clock)
        for _ in range(4):
            switch.record_failure()
        assert switch.is_tripped

        clock.advance(30)

        assert not switch.is_tripped
        assert switch.remaining() == 0
        # Fresh window: one failure does not re-trip it
        switch.record_failure()
        assert not switch.is_tripped

    def test_old_outcomes_leave_the_window(self, clock):
        switch = self._switch(clock)
        for _ in range(3):
            switch.record_failure()
        clock.advance(61)

        switch.record_failure()

        assert not switch.is_tripped
