import csv
import json

from lifesim.app.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_log_header_and_rows(tmp_path):
    log_path = tmp_path / "run.csv"
    run_headless(steps=3, seed=1, log_path=log_path, deterministic_log=True)
    rows = _read_csv(log_path)
    assert len(rows) == 4
    assert rows[0] == [
        "tick",
        "herbivores",
        "carnivores",
        "neutrals",
        "food",
        "births",
        "deaths_starved",
        "deaths_old_age",
        "deaths_eaten",
        "food_eaten",
        "tick_ms",
    ]
    assert [row[0] for row in rows[1:]] == ["1", "2", "3"]
    assert all(row[-1] == "0.000" for row in rows[1:])


def test_deterministic_logs_match_for_equal_seeds(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    run_headless(steps=20, seed=7, log_path=first, deterministic_log=True)
    run_headless(steps=20, seed=7, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    simulation = run_headless(steps=4, seed=3, deterministic_log=True, summary_path=summary_path)
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["final_tick"] == simulation.tick == 4
    assert payload["tick_ms"]["max"] == 0.0
    assert set(payload["herbivores"]) == {"min", "max", "avg", "p50", "p90", "p99"}
    assert set(payload["extinct_at"]) == {"herbivore", "carnivore", "neutral"}
    assert set(payload["peaks"]) == {"herbivores", "carnivores", "neutrals", "food", "tick_ms"}
    for name in ("herbivores", "carnivores", "neutrals", "food"):
        peak = payload["peaks"][name]
        assert peak["value"] == payload[name]["max"]
        assert 1 <= peak["tick"] <= 4
    assert payload["peaks"]["tick_ms"] == {"value": 0.0, "tick": 1}


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "small.yaml"
    config_path.write_text("initial_agents: 0\ninitial_food: 0\n")
    summary_path = tmp_path / "summary.json"
    run_headless(steps=2, seed=2, config_path=config_path, summary_path=summary_path)
    payload = json.loads(summary_path.read_text())
    assert payload["extinct_at"] == {"herbivore": 1, "carnivore": 1, "neutral": 1}
