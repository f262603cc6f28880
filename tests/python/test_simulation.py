from __future__ import annotations

import logging

import pytest

from lifesim.config import SimulationConfig
from lifesim.sim.core.simulation import Simulation


def test_step_advances_and_records_history():
    simulation = Simulation(SimulationConfig(seed=3, initial_agents=30))

    metrics = simulation.step()
    simulation.step()

    assert metrics.tick == 1
    assert simulation.tick == 2
    assert [sample.tick for sample in simulation.history.samples()] == [0, 1, 2]
    assert simulation.metrics.tick == 2


def test_reset_restores_the_seeded_starting_world():
    simulation = Simulation(SimulationConfig(seed=8, initial_agents=20))
    initial = simulation.snapshot()

    for _ in range(5):
        simulation.step()
    simulation.reset()

    assert simulation.tick == 0
    assert len(simulation.history) == 1
    restored = simulation.snapshot()
    assert restored.agents == initial.agents
    assert restored.food == initial.food
    assert restored.history == initial.history


def test_set_params_clamps_and_applies_to_following_ticks(caplog):
    simulation = Simulation(SimulationConfig(seed=1))

    with caplog.at_level(logging.INFO, logger="lifesim"):
        params = simulation.set_params(carnivore_cap=-5, time_scale=1.2)

    assert params.carnivore_cap == 0
    assert simulation.params.time_scale == 1.2
    assert "parameters updated" in caplog.text


def test_set_params_rejects_unknown_names():
    simulation = Simulation(SimulationConfig(seed=1))

    with pytest.raises(ValueError):
        simulation.set_params(wind=3.0)


def test_extinction_is_logged_once(caplog):
    simulation = Simulation(SimulationConfig(seed=6, initial_agents=0, initial_food=0))

    with caplog.at_level(logging.INFO, logger="lifesim"):
        simulation.step()
        simulation.step()

    messages = [record.getMessage() for record in caplog.records if "went extinct" in record.getMessage()]
    assert len(messages) == 3
    assert all("tick 1" in message for message in messages)
