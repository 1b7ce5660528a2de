"""Countdown state machine: ticks, single expiry, cancellation."""
import asyncio

from exam_runner.timer import Timer, TimerState, format_time, time_alert

SLOW = 3600.0  # tick task never fires on its own; ticks are driven by hand


def test_start_with_no_time_left_stays_idle():
    async def main():
        timer = Timer(on_expire=lambda: None, interval=SLOW)
        assert timer.start(0) is False
        assert timer.state is TimerState.IDLE

    asyncio.run(main())


def test_tick_decrements_by_one_and_reports():
    ticks = []

    async def main():
        timer = Timer(on_expire=lambda: None, on_tick=ticks.append, interval=SLOW)
        timer.start(3)
        timer.tick()
        timer.tick()
        assert timer.remaining == 1
        assert timer.state is TimerState.RUNNING
        timer.cancel()

    asyncio.run(main())
    assert ticks == [2, 1]


def test_expires_once_at_zero():
    expired = []

    async def main():
        timer = Timer(on_expire=lambda: expired.append(True), interval=SLOW)
        timer.start(2)
        timer.tick()
        timer.tick()
        timer.tick()
        timer.tick()
        assert timer.remaining == 0
        assert timer.state is TimerState.EXPIRED

    asyncio.run(main())
    assert expired == [True]


def test_cancel_returns_to_idle_and_stops_ticking():
    async def main():
        timer = Timer(on_expire=lambda: None, interval=SLOW)
        timer.start(10)
        timer.cancel()
        timer.tick()
        assert timer.state is TimerState.IDLE
        assert timer.remaining == 10

    asyncio.run(main())


def test_restart_replaces_previous_tick_task():
    async def main():
        timer = Timer(on_expire=lambda: None, interval=SLOW)
        timer.start(10)
        first = timer._task
        timer.start(5)
        await asyncio.sleep(0)
        assert first.cancelled()
        assert timer._task is not first
        assert timer.remaining == 5
        timer.cancel()

    asyncio.run(main())


def test_tick_task_drives_expiry():
    async def main():
        done = asyncio.Event()
        timer = Timer(on_expire=done.set, interval=0.01)
        timer.start(3)
        await asyncio.wait_for(done.wait(), timeout=2)
        assert timer.state is TimerState.EXPIRED
        assert timer.remaining == 0

    asyncio.run(main())


def test_format_time():
    assert format_time(0) == "0:00"
    assert format_time(59) == "0:59"
    assert format_time(605) == "10:05"
    assert format_time(-3) == "0:00"


def test_time_alert_thresholds():
    assert time_alert(299) == "critical"
    assert time_alert(300) == "warning"
    assert time_alert(599) == "warning"
    assert time_alert(600) == "normal"
