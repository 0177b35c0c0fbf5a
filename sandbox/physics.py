import logging

from sandbox.config import BACKGROUND_COLOR
from sandbox.entities import Ball
from sandbox.utilities import random_color, random_int

logger = logging.getLogger("sandbox")


def step_frame(state, canvas, config, stats=None):
    """
    Run one animation frame.

    Order matters: tick, background, population floor, then the per-ball
    draw/update/collide pass, then stats sampling. The floor is topped up
    before the processed set is cleared so no freshly spawned ball can alias
    an index that was already handled this frame.

    Args:
        state: SimulationState
        canvas: Drawing surface
        config: SimulationConfig snapshot for this frame
        stats: Optional StatsSampler
    """
    state.tick += 1
    state.config = config

    # Solid when paused, low alpha otherwise to leave motion trails
    if config.paused:
        canvas.fill(BACKGROUND_COLOR)
    else:
        canvas.fill(BACKGROUND_COLOR, config.trail_opacity)

    maintain_population(state)

    if config.paused:
        for ball in state.balls:
            ball.draw(canvas)
    else:
        update_balls(state, canvas)

    if stats is not None:
        stats.maybe_publish(state)


def update_balls(state, canvas):
    """
    Draw, advance and collide every ball in collection order.

    The list may shrink (victims) and grow (offspring) while it is walked, so
    it is indexed afresh on every iteration.
    """
    state.processed.clear()
    i = 0
    while i < len(state.balls):
        if i not in state.processed:
            ball = state.balls[i]
            ball.draw(canvas)
            ball.update(state)
            ball.collide(state)
        i += 1


def maintain_population(state):
    """
    Top the population up to initial_balls.

    This is a floor, not a target: collisions can push the count above it.

    Returns:
        Number of balls spawned
    """
    spawned = 0
    while len(state.balls) < state.config.initial_balls:
        spawn_random_ball(state)
        spawned += 1
    return spawned


def spawn_random_ball(state):
    """
    Spawn a ball at a random position with random velocity, size and color.

    Returns:
        The new Ball
    """
    config = state.config
    rng = state.rng
    ball = Ball(
        random_int(0, state.width, rng),
        random_int(0, state.height, rng),
        random_int(config.min_velocity, config.max_velocity, rng),
        random_int(config.min_velocity, config.max_velocity, rng),
        random_color(rng),
        random_int(config.min_ball_size, config.max_ball_size, rng),
        state.tick,
    )
    return state.add_ball(ball)


def reset_simulation(state, config=None, stats=None):
    """
    Clear every ball and the collision counter, then re-apply the floor.

    Listeners are told about each removed ball before the list is cleared, so
    external bindings (audio filters) are released.

    Args:
        state: SimulationState
        config: Optional fresh SimulationConfig snapshot to apply first
        stats: Optional StatsSampler, published immediately
    """
    if config is not None:
        state.config = config
    removed = len(state.balls)
    state.clear_balls()
    state.collision_counter = 0
    state.processed.clear()
    maintain_population(state)
    if stats is not None:
        stats.publish(state)
    logger.info(f"Simulation reset: removed {removed} balls, spawned {len(state.balls)}")


def resize_simulation(state, canvas, width, height):
    """
    Adopt new surface dimensions and redraw the current balls at once.
    """
    state.resize(width, height)
    canvas.resize(width, height)
    canvas.fill(BACKGROUND_COLOR)
    for ball in state.balls:
        ball.draw(canvas)
    logger.debug(f"Resized to {width}x{height}")
