import math

from sandbox.config import *
from sandbox.utilities import copy_color, hsl_color, random_color, random_int


class Ball:
    """Circular body that drifts, wraps at the edges, and reproduces on collision"""

    def __init__(self, x, y, vel_x, vel_y, color_data, size, tick=0):
        self.x = float(x)
        self.y = float(y)

        # Origin velocity is kept apart so that velocity_scale changes never drift
        self.orig_vel_x = vel_x
        self.orig_vel_y = vel_y
        self.vel_x = float(vel_x)
        self.vel_y = float(vel_y)

        self.color, self.base_hue = copy_color(color_data)
        self.size = size
        self.last_collision_tick = tick

    def __repr__(self):
        return f"Ball(x={self.x:.1f}, y={self.y:.1f}, size={self.size}, hue={self.base_hue:.0f})"

    def draw(self, canvas):
        canvas.circle((self.x, self.y), self.size, self.color)

    def update(self, state):
        self.advance(state.width, state.height, state.config)
        self.drift_color(state.tick)

    def advance(self, width, height, config):
        self.vel_x = self.orig_vel_x * config.velocity_scale
        self.vel_y = self.orig_vel_y * config.velocity_scale

        self.x += self.vel_x
        self.y += self.vel_y

        # Wrap around once the ball has fully left the surface
        if self.x - self.size > width:
            self.x = -self.size
        elif self.x + self.size < 0:
            self.x = width + self.size
        if self.y - self.size > height:
            self.y = -self.size
        elif self.y + self.size < 0:
            self.y = height + self.size

    def hue_at(self, tick):
        """
        Hue of the ball at a given tick, rotating slowly once it has gone
        HUE_DRIFT_DELAY ticks without a collision.
        """
        elapsed = tick - self.last_collision_tick - HUE_DRIFT_DELAY
        if elapsed <= 0:
            return self.base_hue
        return (self.base_hue + elapsed * (HUE_RANGE / HUE_DRIFT_PERIOD)) % HUE_RANGE

    def drift_color(self, tick):
        if tick - self.last_collision_tick > HUE_DRIFT_DELAY:
            self.color = hsl_color(self.hue_at(tick))

    def collide(self, state):
        """
        Resolve at most one collision against the other live balls.

        The first overlapping candidate in collection order is the victim: it
        takes on the collision color, may leave offspring at its position, and
        is removed. This ball survives.

        Args:
            state: SimulationState holding the ball list and processed set

        Returns:
            The removed ball, or None if nothing was hit
        """
        balls = state.balls
        processed = state.processed
        config = state.config
        tick = state.tick

        for j, other in enumerate(balls):
            if other is self or j in processed:
                continue

            distance = math.hypot(self.x - other.x, self.y - other.y)
            if distance >= self.size + other.size:
                continue

            processed.add(j)

            keep_color = tick - self.last_collision_tick < COLLISION_COLOR_PERSISTENCE
            if keep_color:
                collision_color = (self.color, self.base_hue)
            else:
                collision_color = random_color(state.rng)
                self.last_collision_tick = tick
                other.last_collision_tick = tick

            self.color, self.base_hue = copy_color(collision_color)
            other.color, other.base_hue = copy_color(collision_color)

            state.collision_counter += 1

            if len(balls) < config.max_balls:
                self._spawn_offspring(state, other, collision_color)

            state.remove_ball_at(j)
            return other

        return None

    def _spawn_offspring(self, state, victim, collision_color):
        config = state.config
        rng = state.rng
        spawn_amount = random_int(1, config.max_spawn_per_collision + 1, rng)
        spawn_amount = max(1, min(spawn_amount, config.max_balls - len(state.balls)))

        for _ in range(spawn_amount):
            child = Ball(
                victim.x + random_int(-SPAWN_JITTER, SPAWN_JITTER, rng),
                victim.y + random_int(-SPAWN_JITTER, SPAWN_JITTER, rng),
                random_int(config.min_velocity, config.max_velocity, rng),
                random_int(config.min_velocity, config.max_velocity, rng),
                collision_color,
                random_int(config.min_ball_size, config.max_ball_size, rng),
                state.tick,
            )
            state.add_ball(child)
