from __future__ import annotations

from ...config import SimulationConfig, TunableParams
from ...rng import SimulationRng
from ..core.agent import Agent, AgentKind
from ..core.world import kind_config
from ..utils.math2d import clamp_length


def speed_multiplier(agent: Agent, params: TunableParams, config: SimulationConfig) -> float:
    if agent.kind is AgentKind.HERBIVORE:
        return params.herbivore_speed
    if agent.kind is AgentKind.CARNIVORE:
        return params.carnivore_speed
    return config.neutral_speed_multiplier


def move(
    agent: Agent,
    params: TunableParams,
    config: SimulationConfig,
    rng: SimulationRng,
    width: float,
    height: float,
) -> None:
    """Integrate one step of motion, then damp, clamp and unstick the velocity.

    Low-speed policy: every tick below ``min_speed`` gets a small random kick;
    ``stuck_ticks`` counts sustained stalls below ``stall_speed`` and, once past
    ``stuck_limit``, one strong impulse is applied and the counter resets.
    """
    max_velocity = kind_config(config, agent.kind).max_velocity
    step = agent.speed * speed_multiplier(agent, params, config) * params.time_scale
    agent.position.x += agent.velocity.x * step
    agent.position.y += agent.velocity.y * step

    agent.velocity *= config.damping
    agent.velocity = clamp_length(agent.velocity, max_velocity)

    speed = agent.velocity.length()
    if speed < config.stall_speed:
        agent.stuck_ticks += 1
    elif agent.stuck_ticks > 0:
        agent.stuck_ticks -= 1

    if agent.stuck_ticks > config.stuck_limit:
        agent.velocity += rng.next_unit_circle() * config.stuck_impulse
        agent.stuck_ticks = 0
    elif speed < config.min_speed:
        agent.velocity += rng.next_unit_circle() * config.min_speed_kick
    agent.velocity = clamp_length(agent.velocity, max_velocity)

    _contain(agent, config.boundary_nudge, width, height)


def _contain(agent: Agent, nudge: float, width: float, height: float) -> None:
    position = agent.position
    velocity = agent.velocity
    if position.x < 0:
        position.x = nudge
        velocity.x = abs(velocity.x)
    elif position.x > width:
        position.x = width - nudge
        velocity.x = -abs(velocity.x)
    if position.y < 0:
        position.y = nudge
        velocity.y = abs(velocity.y)
    elif position.y > height:
        position.y = height - nudge
        velocity.y = -abs(velocity.y)
