"""
Stateful noise generators.

Every generator produces float32 blocks in [-1, 1] on demand and keeps its
recurrence state between calls, so consecutive blocks form one continuous
stream. Blocks are pulled from the audio callback thread; a generator is only
ever used by one thread at a time.
"""

import logging

import numpy as np
from scipy.signal import lfilter

logger = logging.getLogger("sandbox")

# Pink noise: one-pole decay and input gain per state (Paul Kellet's filter bank)
PINK_POLES = (0.99886, 0.99332, 0.96900, 0.86650, 0.55000, -0.7616)
PINK_GAINS = (0.0555179, 0.0750759, 0.1538520, 0.3104856, 0.5329522, -0.0168980)
PINK_DIRECT_GAIN = 0.5362
PINK_OUTPUT_GAIN = 0.11
PINK_DAMPING_INTERVAL = 48000  # Samples between state dampings
PINK_DAMPING = 0.9

# Brown noise: leaky integrator with soft clamp
BROWN_STEP = 0.02
BROWN_LEAK = 1.02
BROWN_CLAMP_THRESHOLD = 0.25
BROWN_CLAMP_FACTOR = 0.998
BROWN_OUTPUT_GAIN = 3.5

# LFSR: x^32 + x^22 + x^2 + x + 1
LFSR_SEED = 0xACE1ACE1
LFSR_TAPS = (0, 10, 30, 31)  # Bit offsets for taps 32, 22, 2, 1
LFSR_AMPLITUDE = 0.5

VELVET_DENSITY = 0.1
VELVET_AMPLITUDE = 0.7


class NoiseGenerator:
    """Base class: subclasses implement _render(frame_count)."""

    name = None

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.reset()

    def reset(self):
        pass

    def generate(self, frame_count):
        """
        Produce the next block of samples.

        Args:
            frame_count: Number of samples

        Returns:
            float32 numpy array of shape (frame_count,) with values in [-1, 1]
        """
        if frame_count <= 0:
            return np.zeros(0, dtype=np.float32)
        block = self._render(frame_count)
        return np.clip(block, -1.0, 1.0).astype(np.float32)

    def _white(self, frame_count):
        return self.rng.uniform(-1.0, 1.0, frame_count)

    def _render(self, frame_count):
        raise NotImplementedError


class WhiteNoise(NoiseGenerator):
    name = "white"

    def _render(self, frame_count):
        return self._white(frame_count)


class PinkNoise(NoiseGenerator):
    """
    Approximate 1/f spectrum from six parallel one-pole filters over white noise.

    Rather than zeroing the filter bank, its state is damped every
    PINK_DAMPING_INTERVAL samples to keep long runs from drifting.
    """

    name = "pink"

    def reset(self):
        self.states = np.zeros(len(PINK_POLES))
        self.samples_until_damping = PINK_DAMPING_INTERVAL

    def _render(self, frame_count):
        out = np.empty(frame_count)
        start = 0
        while start < frame_count:
            length = min(frame_count - start, self.samples_until_damping)
            out[start:start + length] = self._render_segment(length)
            start += length
            self.samples_until_damping -= length
            if self.samples_until_damping == 0:
                self.states *= PINK_DAMPING
                self.samples_until_damping = PINK_DAMPING_INTERVAL
        return out

    def _render_segment(self, length):
        white = self._white(length)
        total = white * PINK_DIRECT_GAIN
        for k, (pole, gain) in enumerate(zip(PINK_POLES, PINK_GAINS)):
            filtered, zf = lfilter([gain], [1.0, -pole], white, zi=[self.states[k] * pole])
            total += filtered
            self.states[k] = filtered[-1]
        return total * PINK_OUTPUT_GAIN


class BrownNoise(NoiseGenerator):
    name = "brown"

    def reset(self):
        self.last = 0.0

    def _render(self, frame_count):
        white = self._white(frame_count)
        out = np.empty(frame_count)
        last = self.last
        for i in range(frame_count):
            last = (last + BROWN_STEP * white[i]) / BROWN_LEAK
            if abs(last) > BROWN_CLAMP_THRESHOLD:
                last *= BROWN_CLAMP_FACTOR
            out[i] = last * BROWN_OUTPUT_GAIN
        self.last = last
        return out


class BlueNoise(NoiseGenerator):
    """First difference of white noise."""

    name = "blue"

    def reset(self):
        self.previous = 0.0

    def _render(self, frame_count):
        white = self._white(frame_count)
        history = np.concatenate(([self.previous], white))
        self.previous = white[-1]
        return np.diff(history) * 0.5


class VioletNoise(NoiseGenerator):
    """Second difference of white noise."""

    name = "violet"

    def reset(self):
        self.history = np.zeros(2)

    def _render(self, frame_count):
        white = self._white(frame_count)
        extended = np.concatenate((self.history, white))
        self.history = extended[-2:].copy()
        return np.diff(extended, n=2) * 0.25


class LfsrNoise(NoiseGenerator):
    """32-bit linear-feedback shift register read out as a pseudo square wave."""

    name = "lfsr"

    def reset(self):
        self.register = LFSR_SEED

    def _render(self, frame_count):
        out = np.empty(frame_count)
        register = self.register
        for i in range(frame_count):
            bit = 0
            for tap in LFSR_TAPS:
                bit ^= (register >> tap) & 1
            register = (register >> 1) | (bit << 31)
            out[i] = LFSR_AMPLITUDE if register & 1 else -LFSR_AMPLITUDE
        self.register = register
        return out


class VelvetNoise(NoiseGenerator):
    """Sparse train of randomly signed impulses."""

    name = "velvet"

    def _render(self, frame_count):
        impulses = self.rng.random(frame_count) < VELVET_DENSITY
        signs = np.where(self.rng.random(frame_count) < 0.5, -1.0, 1.0)
        return np.where(impulses, signs * VELVET_AMPLITUDE, 0.0)


GENERATORS = {
    generator.name: generator
    for generator in (WhiteNoise, PinkNoise, BrownNoise, BlueNoise, VioletNoise, LfsrNoise, VelvetNoise)
}


def create_noise(name, rng=None):
    """
    Build a fresh generator for a noise type.

    Args:
        name: One of GENERATORS
        rng: Optional numpy Generator (seed it for reproducible streams)

    Returns:
        NoiseGenerator instance with clean state
    """
    try:
        generator_cls = GENERATORS[name]
    except KeyError:
        raise ValueError(f"Unknown noise type '{name}'") from None
    logger.debug(f"Created {name} noise generator")
    return generator_cls(rng)
