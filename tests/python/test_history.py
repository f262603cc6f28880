from __future__ import annotations

import pytest
from pygame.math import Vector2

from lifesim.sim.core.agent import Agent, AgentKind
from lifesim.sim.core.world import World
from lifesim.sim.systems.history import PopulationHistory, PopulationSample


def _world(tick: int, kinds: list[AgentKind]) -> World:
    agents = [
        Agent(
            id=i,
            kind=kind,
            position=Vector2(),
            velocity=Vector2(),
            energy=10.0,
            age=0.0,
            speed=1.0,
            vision=40.0,
            metabolism=0.1,
            size=4.0,
        )
        for i, kind in enumerate(kinds)
    ]
    return World(width=100.0, height=100.0, agents=agents, next_id=len(agents), tick=tick)


def test_record_counts_each_kind():
    history = PopulationHistory(capacity=5)
    sample = history.record(
        _world(3, [AgentKind.HERBIVORE, AgentKind.HERBIVORE, AgentKind.CARNIVORE, AgentKind.NEUTRAL])
    )

    assert sample == PopulationSample(tick=3, herbivores=2, carnivores=1, neutrals=1)
    assert history.latest() == sample
    assert len(history) == 1


def test_oldest_samples_are_dropped_beyond_capacity():
    history = PopulationHistory(capacity=3)
    for tick in range(5):
        history.record(_world(tick, [AgentKind.HERBIVORE] * tick))

    assert [sample.tick for sample in history.samples()] == [2, 3, 4]
    assert history.series()["herbivores"] == [2, 3, 4]
    assert history.capacity == 3


def test_samples_are_read_only_copies():
    history = PopulationHistory(capacity=2)
    history.record(_world(0, []))

    samples = history.samples()
    history.record(_world(1, []))

    assert isinstance(samples, tuple)
    assert len(samples) == 1


def test_clear_and_empty_history():
    history = PopulationHistory()
    assert history.latest() is None
    history.record(_world(0, [AgentKind.NEUTRAL]))
    history.clear()
    assert len(history) == 0
    assert history.as_payload() == []


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        PopulationHistory(capacity=0)
