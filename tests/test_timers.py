import threading

from epub_shell.timers import EventLoop, ManualScheduler


def test_call_later_fires_once():
    scheduler = ManualScheduler()
    fired = []
    scheduler.call_later(0.15, lambda: fired.append(scheduler.now))

    scheduler.advance(0.1)
    assert fired == []
    scheduler.advance(0.1)
    assert fired == [0.15]
    scheduler.advance(1)
    assert fired == [0.15]
    assert scheduler.active_timers == []


def test_cancelled_timer_never_fires():
    scheduler = ManualScheduler()
    fired = []
    handle = scheduler.call_later(1, lambda: fired.append(1))
    handle.cancel()
    scheduler.advance(5)

    assert fired == []
    assert not handle.active


def test_call_every_repeats_until_cancelled():
    scheduler = ManualScheduler()
    fired = []
    handle = scheduler.call_every(30, lambda: fired.append(scheduler.now))

    scheduler.advance(95)
    assert fired == [30, 60, 90]
    assert handle.active

    handle.cancel()
    scheduler.advance(100)
    assert fired == [30, 60, 90]


def test_timers_fire_in_time_order():
    scheduler = ManualScheduler()
    order = []
    scheduler.call_later(2, lambda: order.append("late"))
    scheduler.call_later(1, lambda: order.append("early"))
    scheduler.advance(3)

    assert order == ["early", "late"]


def test_event_loop_runs_timer_callbacks_on_loop_thread():
    loop = EventLoop()
    seen = []
    done = threading.Event()

    def callback():
        seen.append(threading.current_thread())
        loop.stop()
        done.set()

    loop.call_later(0.01, callback)
    loop.run_forever()

    assert done.is_set()
    assert seen == [threading.current_thread()]
    loop.close()


def test_event_loop_cancel_before_expiry():
    loop = EventLoop()
    fired = []
    handle = loop.call_later(0.05, lambda: fired.append(1))
    handle.cancel()
    loop.call_later(0.1, loop.stop)
    loop.run_forever()

    assert fired == []
    loop.close()


def test_run_pending_drains_posted_callbacks():
    loop = EventLoop()
    out = []
    loop.post(lambda: out.append(1))
    loop.post(lambda: out.append(2))

    assert loop.run_pending() == 2
    assert out == [1, 2]
    assert loop.run_pending() == 0
    loop.close()


def test_run_pending_keeps_going_after_a_failing_callback():
    loop = EventLoop()
    out = []

    def broken():
        raise RuntimeError("boom")

    loop.post(lambda: out.append(1))
    loop.post(broken)
    loop.post(lambda: out.append(3))

    assert loop.run_pending() == 3
    assert out == [1, 3]
    loop.close()


def test_event_loop_handles_carry_absolute_deadlines():
    loop = EventLoop()
    now = loop.loop.time()
    once = loop.call_later(5, lambda: None)
    every = loop.call_every(30, lambda: None)

    assert now + 5 <= once.when <= loop.loop.time() + 5
    assert now + 30 <= every.when <= loop.loop.time() + 30
    once.cancel()
    every.cancel()
    loop.close()


def test_event_loop_call_every_repeats():
    loop = EventLoop()
    fired = []

    def tick():
        fired.append(loop.loop.time())
        if len(fired) == 3:
            handle.cancel()
            loop.stop()

    handle = loop.call_every(0.01, tick)
    loop.run_forever()

    assert len(fired) == 3
    assert not handle.active
    loop.close()
