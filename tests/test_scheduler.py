from sandbox.scheduler import FrameScheduler


class FakeClock:
    def __init__(self):
        self.ticks = []

    def tick(self, fps):
        self.ticks.append(fps)
        return 1000 // fps


def test_runs_until_callback_declines():
    frames = []

    def callback():
        frames.append(len(frames))
        return len(frames) < 5

    clock = FakeClock()
    scheduler = FrameScheduler(callback, 60, clock)
    scheduler.run()

    assert scheduler.frame_count == 5
    assert clock.ticks == [60] * 5
    assert not scheduler.running
    assert scheduler.pending is None


def test_stop_from_inside_callback_ends_loop():
    scheduler = None

    def callback():
        if scheduler.frame_count == 3:
            scheduler.stop()
        return True

    scheduler = FrameScheduler(callback, 30, FakeClock())
    scheduler.run()

    assert scheduler.frame_count == 3
    assert scheduler.pending is None


def test_stop_releases_pending_frame():
    scheduler = FrameScheduler(lambda: True, 60, FakeClock())
    scheduler.start()
    assert scheduler.pending is not None

    scheduler.stop()
    scheduler.stop()

    assert scheduler.pending is None
    assert scheduler.run_frame() is False
    assert scheduler.frame_count == 0


def test_request_frame_is_ignored_when_stopped():
    scheduler = FrameScheduler(lambda: True, 60, FakeClock())
    assert scheduler.request_frame() is None


def test_handles_are_unique():
    scheduler = FrameScheduler(lambda: True, 60, FakeClock())
    scheduler.start()
    first = scheduler.pending
    scheduler.run_frame()
    assert scheduler.pending != first
