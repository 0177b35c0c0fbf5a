import logging

import numpy as np
from scipy.signal import iirpeak, lfilter

from sandbox.config import AUDIO_BLOCK_SIZE, MIN_FILTER_Q, SAMPLE_RATE
from sandbox.noise import create_noise
from sandbox.utilities import inverse_lerp

logger = logging.getLogger("sandbox")


def frequency_for_size(size, config):
    """
    Map a ball size to a filter center frequency.

    Sizes are placed within [min_ball_size, max_ball_size] and mapped inversely
    onto [min_frequency, max_frequency]: the smallest ball gets the highest
    frequency. Sizes outside the current bounds are clamped to the ends, and
    a zero-width size range maps to the middle of the frequency range.

    Args:
        size: Ball size
        config: SimulationConfig snapshot

    Returns:
        Frequency in Hz
    """
    ratio = inverse_lerp(size, config.min_ball_size, config.max_ball_size)
    return config.max_frequency - ratio * (config.max_frequency - config.min_frequency)


class GainNode:
    def __init__(self, value=1.0):
        self.value = value

    def process(self, block):
        return block * self.value


class NoiseSource:
    """Pull-based node wrapping one noise generator."""

    def __init__(self, generator):
        self.generator = generator

    @property
    def noise_type(self):
        return self.generator.name

    def pull(self, frame_count):
        return self.generator.generate(frame_count)


class BandpassFilter:
    """Second-order bandpass with persistent state across blocks."""

    def __init__(self, sample_rate=SAMPLE_RATE):
        self.sample_rate = sample_rate
        self.frequency = None
        self.q = None
        self.connected = True
        self._coeffs = None
        self._zi = np.zeros(2)

    def set_params(self, frequency, q):
        """
        Retarget the filter; coefficients are only recomputed on change.

        The frequency is kept strictly inside (0, Nyquist) and Q above zero so
        that the design never produces non-finite coefficients.
        """
        nyquist = self.sample_rate / 2.0
        frequency = min(max(frequency, 1.0), nyquist - 1.0)
        q = max(q, MIN_FILTER_Q)
        if frequency == self.frequency and q == self.q:
            return
        self.frequency = frequency
        self.q = q
        # One tuple assignment so the audio thread never sees half an update
        self._coeffs = iirpeak(frequency, q, fs=self.sample_rate)

    def process(self, block):
        coeffs = self._coeffs
        if not self.connected or coeffs is None:
            return np.zeros_like(block)
        b, a = coeffs
        out, self._zi = lfilter(b, a, block, zi=self._zi)
        return out

    def disconnect(self):
        if not self.connected:
            logger.debug("Filter already disconnected")
            return
        self.connected = False


class RoutingGraph:
    """
    Immutable routing of one audio render.

    source -> gain -> output when bypassed, otherwise
    source -> gain -> each filter -> output (summed).
    """

    def __init__(self, source, gain, filters, bypass):
        self.source = source
        self.gain = gain
        self.filters = tuple(filters)
        self.bypass = bypass

    def render(self, frame_count):
        block = self.gain.process(self.source.pull(frame_count).astype(np.float64))
        if not self.bypass:
            mixed = np.zeros(frame_count)
            for bandpass in self.filters:
                mixed += bandpass.process(block)
            block = mixed
        return np.tanh(block).astype(np.float32)


class PyAudioOutput:
    """Mono float32 PyAudio output stream driven by a render callback."""

    def __init__(self, sample_rate, block_size, render):
        import pyaudio

        self._pyaudio = pyaudio
        self._render = render
        self._closed = False
        self.pa = pyaudio.PyAudio()
        try:
            self.stream = self.pa.open(
                format=pyaudio.paFloat32,
                channels=1,
                rate=sample_rate,
                output=True,
                frames_per_buffer=block_size,
                stream_callback=self._callback,
            )
            self.stream.start_stream()
        except Exception:
            self.pa.terminate()
            raise
        logger.info(f"Audio output opened ({sample_rate} Hz, {block_size} frames per buffer)")

    def _callback(self, in_data, frame_count, time_info, status_flags):
        try:
            samples = self._render(frame_count)
        except Exception as e:
            logger.error(f"Error rendering audio block: {e}")
            samples = np.zeros(frame_count, dtype=np.float32)
        return samples.tobytes(), self._pyaudio.paContinue

    def suspend(self):
        if not self._closed and self.stream.is_active():
            self.stream.stop_stream()

    def resume(self):
        if not self._closed and not self.stream.is_active():
            self.stream.start_stream()

    def close(self):
        if self._closed:
            logger.debug("Audio output already closed")
            return
        self._closed = True
        try:
            if self.stream.is_active():
                self.stream.stop_stream()
            self.stream.close()
        except Exception as e:
            logger.warning(f"Error closing audio stream: {e}")
        try:
            self.pa.terminate()
        except Exception as e:
            logger.warning(f"Error terminating PyAudio: {e}")
        logger.info("Audio output closed")


class AudioManager:
    """
    Noise-through-bandpass audio layer, one filter per live ball.

    Registered with the SimulationState as a population listener, so balls
    never know about audio. The simulation thread calls sync() once per frame;
    the output's callback thread only calls render().
    """

    def __init__(self, config_store, sample_rate=SAMPLE_RATE, block_size=AUDIO_BLOCK_SIZE,
                 output_factory=PyAudioOutput, rng=None):
        self.config_store = config_store
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.output_factory = output_factory
        self.rng = rng if rng is not None else np.random.default_rng()

        self.output = None
        self.enabled = False
        self.suspended = False

        # Ball (by identity) -> BandpassFilter
        self.bindings = {}

        self.source = None
        self.gain = GainNode(config_store.snapshot().volume)
        self.graph = None
        self.rebuild_count = 0
        self._dirty = True
        self._bypass = None
        self._config_version = None

    # --- Population hooks ---

    def on_ball_spawned(self, ball):
        self._dirty = True

    def on_ball_removed(self, ball):
        bandpass = self.bindings.pop(ball, None)
        if bandpass is not None:
            bandpass.disconnect()
        self._dirty = True

    # --- Simulation-side sync ---

    def sync(self, state):
        """
        Bring the audio graph in line with the latest config and population.

        Args:
            state: SimulationState whose balls should each own a filter
        """
        # Read the version before the snapshot so no update goes unseen
        version = self.config_store.version
        config = self.config_store.snapshot()

        if config.audio_enabled and not self.enabled:
            if not self.start():
                return
        elif not config.audio_enabled and self.enabled:
            self.stop()
        if not self.enabled:
            return

        if self.source is None or self.source.noise_type != config.noise_type:
            # Old generator state is discarded, not cross-faded
            self.source = NoiseSource(create_noise(config.noise_type, self.rng))
            self._dirty = True
            logger.info(f"Noise source switched to {config.noise_type}")

        self.gain.value = config.volume
        self._set_suspended(config.paused)

        for ball in state.balls:
            if ball not in self.bindings:
                bandpass = BandpassFilter(self.sample_rate)
                bandpass.set_params(frequency_for_size(ball.size, config), config.filter_q)
                self.bindings[ball] = bandpass
                self._dirty = True

        # Existing filters only need retuning when the configuration moved
        if version != self._config_version:
            for ball, bandpass in self.bindings.items():
                bandpass.set_params(frequency_for_size(ball.size, config), config.filter_q)
            self._config_version = version

        if config.filter_bypass != self._bypass:
            self._bypass = config.filter_bypass
            self._dirty = True

        if self._dirty:
            self.rebuild()

    def rebuild(self):
        """Tear down the whole fan-out and route every live filter again."""
        self.graph = RoutingGraph(self.source, self.gain, self.bindings.values(), bool(self._bypass))
        self.rebuild_count += 1
        self._dirty = False
        logger.debug(f"Audio graph rebuilt: {len(self.graph.filters)} filters, bypass={self.graph.bypass}")

    # --- Audio-side render ---

    def render(self, frame_count):
        graph = self.graph
        if graph is None or self.suspended:
            return np.zeros(frame_count, dtype=np.float32)
        return graph.render(frame_count)

    # --- Lifecycle ---

    def start(self):
        """
        Open the audio output.

        Returns:
            True on success. On failure audio is disabled and the audio_enabled
            flag is reverted so the simulation carries on silently.
        """
        if self.enabled:
            return True
        try:
            self.output = self.output_factory(self.sample_rate, self.block_size, self.render)
        except Exception as e:
            logger.warning(f"Audio unavailable, disabling: {e}")
            self.output = None
            self.enabled = False
            self.config_store.set("audio_enabled", False)
            return False
        self.enabled = True
        self.suspended = False
        self._dirty = True
        return True

    def stop(self):
        """Release every binding and close the output. Safe to call repeatedly."""
        self.graph = None
        for bandpass in self.bindings.values():
            bandpass.disconnect()
        self.bindings.clear()
        self.source = None
        self._bypass = None
        self._config_version = None
        self._dirty = True
        if self.output is not None:
            self.output.close()
            self.output = None
        if self.enabled:
            logger.info("Audio disabled")
        self.enabled = False

    close = stop

    def _set_suspended(self, suspended):
        if suspended == self.suspended:
            return
        self.suspended = suspended
        if self.output is None:
            return
        try:
            if suspended:
                self.output.suspend()
            else:
                self.output.resume()
        except Exception as e:
            logger.warning(f"Error {'suspending' if suspended else 'resuming'} audio output: {e}")
