import logging

import pygame

logger = logging.getLogger("sandbox")


class FrameScheduler:
    """
    Single-threaded frame loop at a fixed rate.

    Each frame runs the callback; a truthy return requests the next frame.
    stop() releases the pending request, so the loop exits after the current
    frame, even when stop() is called from inside the callback.
    """

    def __init__(self, callback, fps, clock=None):
        self.callback = callback
        self.fps = fps
        self.clock = clock if clock is not None else pygame.time.Clock()
        self.frame_count = 0
        self._pending = None
        self._next_handle = 0
        self._stopped = True

    @property
    def running(self):
        return not self._stopped

    @property
    def pending(self):
        return self._pending

    def request_frame(self):
        """Schedule the next frame and return its handle."""
        if self._stopped:
            return None
        self._next_handle += 1
        self._pending = self._next_handle
        return self._pending

    def start(self):
        if self.running:
            return
        self._stopped = False
        self.request_frame()
        logger.debug(f"Frame loop started at {self.fps} FPS")

    def stop(self):
        if self._stopped:
            return
        self._stopped = True
        self._pending = None
        logger.debug(f"Frame loop stopped after {self.frame_count} frames")

    def run_frame(self):
        """
        Run the pending frame, if any.

        Returns:
            True if a frame ran
        """
        if self._pending is None:
            return False
        self._pending = None
        self.frame_count += 1
        if self.callback():
            self.request_frame()
        else:
            self.stop()
        return True

    def run(self):
        """Block, running frames until stop() is called or the callback declines to continue."""
        self.start()
        while self.run_frame():
            self.clock.tick(self.fps)
