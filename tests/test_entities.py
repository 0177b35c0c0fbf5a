import math

import pytest

from sandbox.config import SimulationConfig
from sandbox.game_state import SimulationState
from sandbox.utilities import hsl_color


class PopulationSpy:
    """Listener recording the population size after every spawn."""

    def __init__(self, state):
        self.state = state
        self.sizes_after_spawn = []
        self.removed = []

    def on_ball_spawned(self, ball):
        self.sizes_after_spawn.append(len(self.state.balls))

    def on_ball_removed(self, ball):
        self.removed.append(ball)


# --- Movement and wrapping ---

@pytest.mark.parametrize(
    "start, expected",
    [
        ((411.0, 100.0), (-10.0, 100.0)),   # past the right edge
        ((-11.0, 100.0), (410.0, 100.0)),   # past the left edge
        ((200.0, 311.0), (200.0, -10.0)),   # past the bottom edge
        ((200.0, -11.0), (200.0, 310.0)),   # past the top edge
    ],
)
def test_wrap_teleports_to_opposite_edge(make_ball, config, start, expected):
    ball = make_ball(start[0], start[1], 10)
    ball.advance(400, 300, config)
    assert (ball.x, ball.y) == expected


def test_partial_overlap_is_not_wrapped(make_ball, config):
    ball = make_ball(405.0, 150.0, 10)
    ball.advance(400, 300, config)
    assert ball.x == 405.0


def test_velocity_is_derived_from_origin_velocity(make_ball):
    ball = make_ball(100, 100, 5, vel_x=4, vel_y=-2)
    ball.advance(400, 300, SimulationConfig(velocity_scale=0.5))
    assert (ball.vel_x, ball.vel_y) == (2.0, -1.0)
    assert (ball.x, ball.y) == (102.0, 99.0)

    # Changing the scale takes effect at once, without accumulating
    ball.advance(400, 300, SimulationConfig(velocity_scale=2.0))
    assert (ball.vel_x, ball.vel_y) == (8.0, -4.0)
    assert (ball.x, ball.y) == (110.0, 95.0)
    assert (ball.orig_vel_x, ball.orig_vel_y) == (4, -2)


# --- Hue drift ---

@pytest.mark.parametrize("k", [0, 1, 37, 500, 10000, 123456])
def test_hue_drift_is_deterministic(make_ball, k):
    ball = make_ball(0, 0, 5, hue=200.0, tick=100)
    hue = ball.hue_at(100 + 20 + k)
    assert hue == pytest.approx((200.0 + k * 36 / 1000) % 360)


def test_drift_waits_for_persistence_window(make_ball):
    ball = make_ball(0, 0, 5, hue=200.0, tick=100)
    original = ball.color
    ball.drift_color(120)
    assert ball.color == original

    ball.drift_color(120 + 5000)
    assert ball.color == hsl_color(200.0 + 5000 * 0.036)
    assert ball.base_hue == 200.0


def test_update_advances_then_drifts(make_ball):
    state = SimulationState(400, 300, SimulationConfig(velocity_scale=1.0))
    state.tick = 2000
    ball = make_ball(10, 10, 5, vel_x=3, vel_y=0, hue=50.0, tick=0)
    ball.update(state)
    assert ball.x == 13.0
    assert ball.color == hsl_color(ball.hue_at(2000))


# --- Collisions ---

def test_collision_scenario(state, make_ball):
    a = make_ball(100, 100, 3)
    b = make_ball(105, 100, 4)
    state.add_ball(a)
    state.add_ball(b)
    state.tick = 50
    victim_position = (b.x, b.y)

    removed = a.collide(state)

    assert removed is b
    assert a in state.balls
    assert b not in state.balls
    assert state.collision_counter == 1

    offspring = [ball for ball in state.balls if ball is not a]
    assert 1 <= len(offspring) <= state.config.max_spawn_per_collision
    for child in offspring:
        assert abs(child.x - victim_position[0]) <= 10
        assert abs(child.y - victim_position[1]) <= 10
        assert child.color == a.color
        assert child.base_hue == a.base_hue
        assert child.last_collision_tick == 50
        assert state.config.min_ball_size <= child.size <= state.config.max_ball_size


def test_touching_balls_do_not_collide(state, make_ball):
    a = make_ball(100, 100, 3)
    b = make_ball(107, 100, 4)  # distance == sum of radii
    state.add_ball(a)
    state.add_ball(b)
    assert a.collide(state) is None
    assert state.collision_counter == 0
    assert len(state.balls) == 2


def test_ball_never_collides_with_itself(state, make_ball):
    a = make_ball(100, 100, 30)
    state.add_ball(a)
    assert a.collide(state) is None
    assert state.balls == [a]


def test_processed_candidates_are_skipped(state, make_ball):
    a = make_ball(100, 100, 10)
    b = make_ball(105, 100, 10)
    state.add_ball(a)
    state.add_ball(b)
    state.processed.add(1)
    assert a.collide(state) is None
    assert state.collision_counter == 0


def test_first_candidate_in_collection_order_wins(state, make_ball):
    a = make_ball(100, 100, 10)
    far = make_ball(300, 200, 5)
    first = make_ball(108, 100, 5)
    second = make_ball(92, 100, 5)
    for ball in (a, far, first, second):
        state.add_ball(ball)

    assert a.collide(state) is first
    assert second in state.balls
    assert state.processed == {2}


def test_recent_collision_keeps_color(state, make_ball):
    a = make_ball(100, 100, 5, hue=10.0, tick=45)
    b = make_ball(104, 100, 5, hue=300.0, tick=0)
    state.add_ball(a)
    state.add_ball(b)
    state.tick = 50
    a_color = a.color

    a.collide(state)

    assert a.color == a_color
    assert a.base_hue == 10.0
    assert b.color == a_color
    assert a.last_collision_tick == 45


def test_stale_collision_picks_fresh_color_and_stamps_both(state, make_ball):
    a = make_ball(100, 100, 5, hue=10.0, tick=0)
    b = make_ball(104, 100, 5, hue=300.0, tick=0)
    state.add_ball(a)
    state.add_ball(b)
    state.tick = 500

    a.collide(state)

    assert a.last_collision_tick == 500
    assert b.last_collision_tick == 500
    assert a.color == b.color
    assert a.base_hue == b.base_hue
    assert a.color is not b.color


def test_spawn_respects_population_cap(make_ball):
    config = SimulationConfig(max_balls=10, max_spawn_per_collision=10)
    state = SimulationState(1000, 1000, config, seed=5)
    spy = PopulationSpy(state)
    for i in range(7):
        state.add_ball(make_ball(50 + i * 120, 900, 2))
    a = make_ball(500, 500, 5)
    b = make_ball(503, 500, 5)
    state.add_ball(a)
    state.add_ball(b)
    state.add_listener(spy)

    a.collide(state)

    assert spy.sizes_after_spawn  # 9 < 10, so at least one child
    assert max(spy.sizes_after_spawn) <= config.max_balls
    assert len(state.balls) <= config.max_balls
    assert spy.removed == [b]


def test_no_spawn_at_cap(make_ball):
    config = SimulationConfig(max_balls=10)
    state = SimulationState(1000, 1000, config, seed=5)
    for i in range(8):
        state.add_ball(make_ball(50 + i * 110, 900, 2))
    a = make_ball(500, 500, 5)
    b = make_ball(503, 500, 5)
    state.add_ball(a)
    state.add_ball(b)

    a.collide(state)

    assert len(state.balls) == 9
    assert state.collision_counter == 1


def test_balls_compare_by_identity(make_ball):
    a = make_ball(1, 1, 3)
    b = make_ball(1, 1, 3)
    assert a != b
    assert len({a: 1, b: 2}) == 2
    assert math.isfinite(hash(a))
