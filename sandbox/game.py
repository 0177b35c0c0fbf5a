import logging

import pygame

from sandbox.audio import AudioManager
from sandbox.canvas import Canvas
from sandbox.config import *
from sandbox.game_state import SimulationState, StatsSampler
from sandbox.physics import reset_simulation, resize_simulation, step_frame
from sandbox.recording import Recorder
from sandbox.scheduler import FrameScheduler

logger = logging.getLogger("sandbox")

HUD_COLOR = pygame.Color(170, 180, 210)
HUD_MARGIN = 10
HUD_LINE_HEIGHT = 20

HELP_TEXT = (
    "Space pause | R reset | A audio | N noise | B bypass | H hud | Esc quit",
    "Up/Down speed | Left/Right trails | [ ] max balls | - = initial | , . spawns",
    "1 2 min size | 3 4 max size | 5 6 min velocity | 7 8 max velocity",
    "Z X min freq | C V max freq | 9 0 filter Q | O P volume",
)

# key -> (parameter, step) for stepped numeric controls
STEP_BINDINGS = {
    pygame.K_UP: ("velocity_scale", 0.05),
    pygame.K_DOWN: ("velocity_scale", -0.05),
    pygame.K_RIGHT: ("trail_opacity", 0.05),
    pygame.K_LEFT: ("trail_opacity", -0.05),
    pygame.K_RIGHTBRACKET: ("max_balls", 10),
    pygame.K_LEFTBRACKET: ("max_balls", -10),
    pygame.K_EQUALS: ("initial_balls", 1),
    pygame.K_MINUS: ("initial_balls", -1),
    pygame.K_PERIOD: ("max_spawn_per_collision", 1),
    pygame.K_COMMA: ("max_spawn_per_collision", -1),
    # Ball size range
    pygame.K_1: ("min_ball_size", -1),
    pygame.K_2: ("min_ball_size", 1),
    pygame.K_3: ("max_ball_size", -1),
    pygame.K_4: ("max_ball_size", 1),
    # Velocity range
    pygame.K_5: ("min_velocity", -1),
    pygame.K_6: ("min_velocity", 1),
    pygame.K_7: ("max_velocity", -1),
    pygame.K_8: ("max_velocity", 1),
    # Filter bank
    pygame.K_z: ("min_frequency", -50.0),
    pygame.K_x: ("min_frequency", 50.0),
    pygame.K_c: ("max_frequency", -250.0),
    pygame.K_v: ("max_frequency", 250.0),
    pygame.K_9: ("filter_q", -1.0),
    pygame.K_0: ("filter_q", 1.0),
    pygame.K_o: ("volume", -0.05),
    pygame.K_p: ("volume", 0.05),
}

TOGGLE_BINDINGS = {
    pygame.K_SPACE: "paused",
    pygame.K_a: "audio_enabled",
    pygame.K_b: "filter_bypass",
}


def config_change_for_key(key, config):
    """
    Translate a key press into a single-parameter configuration change.

    Args:
        key: pygame key code
        config: Current SimulationConfig

    Returns:
        Dictionary with one parameter, or None if the key is not a control
    """
    if key in TOGGLE_BINDINGS:
        name = TOGGLE_BINDINGS[key]
        return {name: not getattr(config, name)}
    if key in STEP_BINDINGS:
        name, step = STEP_BINDINGS[key]
        value = getattr(config, name) + step
        if isinstance(step, float):
            value = round(value, 2)
        return {name: value}
    if key == pygame.K_n:
        index = NOISE_TYPES.index(config.noise_type)
        return {"noise_type": NOISE_TYPES[(index + 1) % len(NOISE_TYPES)]}
    return None


class HudRenderer:
    """Draws stats and settings over the simulation"""

    def __init__(self):
        self.font = pygame.font.Font(None, 22)

    def draw(self, screen, stats, config, fps, audio_active):
        lines = [
            f"FPS: {fps:.1f}  Balls: {stats.ball_count}  Collisions: {stats.collision_count}",
            f"Max balls: {config.max_balls}  Initial: {config.initial_balls}  "
            f"Spawns: {config.max_spawn_per_collision}  Size: {config.min_ball_size}-{config.max_ball_size}",
            f"Velocity: {config.velocity_scale:.2f} ({config.min_velocity} to {config.max_velocity})  "
            f"Trails: {config.trail_opacity:.2f}"
            + ("  [PAUSED]" if config.paused else ""),
            f"Audio: {'on' if audio_active else 'off'}  Noise: {config.noise_type}  "
            f"Bypass: {'on' if config.filter_bypass else 'off'}  "
            f"Band: {config.min_frequency:.0f}-{config.max_frequency:.0f} Hz  "
            f"Q: {config.filter_q:.1f}  Volume: {config.volume:.2f}",
        ]
        try:
            for i, text in enumerate(lines):
                surf = self.font.render(text, True, HUD_COLOR)
                screen.blit(surf, (HUD_MARGIN, HUD_MARGIN + i * HUD_LINE_HEIGHT))
            help_top = screen.get_height() - HUD_MARGIN - len(HELP_TEXT) * HUD_LINE_HEIGHT
            for i, text in enumerate(HELP_TEXT):
                help_surf = self.font.render(text, True, HUD_COLOR)
                screen.blit(help_surf, (HUD_MARGIN, help_top + i * HUD_LINE_HEIGHT))
        except pygame.error as e:
            logger.warning(f"Error rendering HUD: {e}")


class SandboxApp:
    """Window, controls and frame loop around the simulation"""

    def __init__(self, width=SCREEN_WIDTH, height=SCREEN_HEIGHT, fps=FPS,
                 config_overrides=None, seed=None, record=False):
        pygame.init()
        pygame.font.init()
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption(WINDOW_TITLE)

        self.config_store = ConfigStore(config_overrides)
        self.state = SimulationState(width, height, self.config_store.snapshot(), seed)
        self.canvas = Canvas(width, height)
        self.stats = StatsSampler(STATS_SAMPLE_PROBABILITY)

        self.audio = AudioManager(self.config_store)
        self.state.add_listener(self.audio)

        self.recorder = Recorder(fps=fps)
        if record:
            self.recorder.start_recording((width, height))

        self.hud = HudRenderer()
        self.show_hud = True
        self.scheduler = FrameScheduler(self._frame, fps)

        reset_simulation(self.state, self.config_store.snapshot(), self.stats)
        logger.info(f"Sandbox ready: {width}x{height} at {fps} FPS")

    def run(self):
        try:
            self.scheduler.run()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self._cleanup()

    def _frame(self):
        if not self._handle_events():
            return False

        config = self.config_store.snapshot()
        step_frame(self.state, self.canvas, config, self.stats)
        self.audio.sync(self.state)

        self.screen.blit(self.canvas.surface, (0, 0))
        if self.show_hud:
            self.hud.draw(self.screen, self.stats.latest, config,
                          self.scheduler.clock.get_fps(), self.audio.enabled)
        pygame.display.flip()

        self.recorder.capture_frame(self.canvas.surface)
        return True

    def _handle_events(self):
        """Returns False once the user asked to quit"""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.VIDEORESIZE:
                resize_simulation(self.state, self.canvas, event.w, event.h)
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    return False
                self._handle_key(event.key)
        return True

    def _handle_key(self, key):
        if key == pygame.K_r:
            reset_simulation(self.state, self.config_store.snapshot(), self.stats)
        elif key == pygame.K_h:
            self.show_hud = not self.show_hud
        else:
            change = config_change_for_key(key, self.config_store.snapshot())
            if change:
                self.config_store.update(change)

    def _cleanup(self):
        logger.info("Cleaning up...")
        self.scheduler.stop()
        self.recorder.stop_recording()
        self.state.remove_listener(self.audio)
        self.audio.close()
        pygame.quit()


def run_game(**kwargs):
    app = SandboxApp(**kwargs)
    app.run()
