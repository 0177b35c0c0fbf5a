import math
import random

import pygame

from sandbox.config import BALL_LIGHTNESS, BALL_SATURATION, HUE_RANGE

# --- Random Utilities ---

def random_int(low, high, rng=random):
    """
    Random integer drawn from [low, high).

    Degenerate ranges never fail: low == high returns low, and an inverted
    range yields a value between the two bounds.

    Args:
        low, high: Range bounds
        rng: random.Random instance (defaults to the module-level generator)

    Returns:
        Integer
    """
    return int(math.floor(rng.random() * (high - low))) + int(low)


# --- Color and Visual Utilities ---

def hsl_color(hue):
    """
    Build the fixed saturation/lightness color used for every ball.

    Args:
        hue: Hue in degrees, wrapped into [0, 360)

    Returns:
        A pygame Color object
    """
    color = pygame.Color(0)
    color.hsla = (hue % HUE_RANGE, BALL_SATURATION, BALL_LIGHTNESS, 100)
    return color


def random_color(rng=random):
    """
    Generate a random ball color.

    Returns:
        Tuple of (pygame Color, hue in degrees)
    """
    hue = random_int(0, HUE_RANGE, rng)
    return hsl_color(hue), float(hue)


def copy_color(color_data):
    """Copy a (color, hue) pair so that balls never share a Color instance."""
    color, hue = color_data
    return pygame.Color(color), hue


# --- Numeric Utilities ---

def clamp(value, low, high):
    return max(low, min(high, value))


def inverse_lerp(value, low, high, default=0.5):
    """
    Position of value within [low, high] as a ratio clamped to [0, 1].

    A zero-width range returns `default` instead of dividing by zero.
    """
    span = high - low
    if span == 0:
        return default
    return clamp((value - low) / span, 0.0, 1.0)
