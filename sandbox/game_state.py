import logging
import random
from collections import namedtuple

from sandbox.config import SCREEN_HEIGHT, SCREEN_WIDTH, SimulationConfig

logger = logging.getLogger("sandbox")

Stats = namedtuple("Stats", ["ball_count", "collision_count"])


class SimulationState:
    """
    Everything the simulation owns for one run.

    A single SimulationState is created by the app and handed to the engine,
    the entities and the audio layer explicitly.
    """

    def __init__(self, width=SCREEN_WIDTH, height=SCREEN_HEIGHT, config=None, seed=None):
        # Entity collection
        self.balls = []

        # Counters
        self.collision_counter = 0
        self.tick = 0

        # Indices already involved in a collision during the current frame
        self.processed = set()

        # Frame configuration snapshot
        self.config = config if config is not None else SimulationConfig()

        # Drawing surface dimensions
        self.width = width
        self.height = height

        self.rng = random.Random(seed)

        # Population observers (see add_listener)
        self.listeners = []

    def add_listener(self, listener):
        """
        Register an observer of population changes.

        The listener must provide on_ball_spawned(ball) and on_ball_removed(ball).
        """
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def add_ball(self, ball):
        self.balls.append(ball)
        for listener in self.listeners:
            listener.on_ball_spawned(ball)
        return ball

    def remove_ball_at(self, index):
        ball = self.balls.pop(index)
        for listener in self.listeners:
            listener.on_ball_removed(ball)
        return ball

    def clear_balls(self):
        """Remove every ball, notifying listeners for each one before the list is emptied."""
        for ball in self.balls:
            for listener in self.listeners:
                listener.on_ball_removed(ball)
        self.balls = []

    def resize(self, width, height):
        self.width = width
        self.height = height

    def snapshot_stats(self):
        return Stats(len(self.balls), self.collision_counter)


class StatsSampler:
    """Pollable stats snapshot, refreshed at a low, random rate."""

    def __init__(self, probability, rng=None):
        self.probability = probability
        self.rng = rng if rng is not None else random.Random()
        self.latest = Stats(0, 0)
        self.samples = 0

    def maybe_publish(self, state):
        """
        Publish a snapshot with the configured probability.

        Returns:
            True if a snapshot was published this call
        """
        if self.rng.random() < self.probability:
            self.publish(state)
            return True
        return False

    def publish(self, state):
        self.latest = state.snapshot_stats()
        self.samples += 1
        return self.latest
