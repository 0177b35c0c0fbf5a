"""Pytest configuration and shared fixtures."""

import os

# Headless pygame: must be set before pygame is imported anywhere
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pygame
import pytest

from sandbox.config import ConfigStore, SimulationConfig
from sandbox.entities import Ball
from sandbox.game_state import SimulationState
from sandbox.utilities import hsl_color


class FakeCanvas:
    """Records drawing calls instead of rasterizing them."""

    def __init__(self, width=400, height=300):
        self.width = width
        self.height = height
        self.fills = []
        self.circles = []

    def fill(self, color, alpha=1.0):
        self.fills.append((tuple(pygame.Color(color)), alpha))

    def circle(self, center, radius, color):
        self.circles.append((tuple(center), radius))

    def resize(self, width, height):
        self.width = width
        self.height = height


class FakeOutput:
    """Stands in for the PyAudio output stream."""

    def __init__(self, sample_rate, block_size, render):
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.render = render
        self.close_calls = 0
        self.suspended = False

    def suspend(self):
        self.suspended = True

    def resume(self):
        self.suspended = False

    def close(self):
        self.close_calls += 1


class SequenceRng:
    """numpy-Generator lookalike whose uniform() replays fixed values."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=np.float64)
        self.position = 0

    def uniform(self, low, high, size):
        out = np.take(self.values, range(self.position, self.position + size), mode="wrap")
        self.position += size
        return out


@pytest.fixture
def fake_canvas():
    return FakeCanvas()


@pytest.fixture
def fake_output_cls():
    return FakeOutput


@pytest.fixture
def sequence_rng():
    return SequenceRng


@pytest.fixture
def config():
    return SimulationConfig()


@pytest.fixture
def config_store():
    return ConfigStore()


@pytest.fixture
def state():
    """Seeded 400x300 simulation state with default configuration."""
    return SimulationState(400, 300, SimulationConfig(), seed=1234)


@pytest.fixture
def make_ball():
    """Factory for balls with a fixed color; velocity defaults to zero."""

    def _make(x, y, size, vel_x=0, vel_y=0, hue=120.0, tick=0):
        return Ball(x, y, vel_x, vel_y, (hsl_color(hue), hue), size, tick)

    return _make
