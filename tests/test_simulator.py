# tests/test_simulator.py
import json
import math

import numpy as np
import pytest

from voter_sim import ConfigurationError, VoterConfig, VoterSimulator, run_model, utils


def _small_config(**overrides):
    params = dict(height=40, width=60, horizon=4.0, workers=3, seed=11, backend="thread", verbose=False)
    params.update(overrides)
    return VoterConfig(**params)


@pytest.mark.parametrize(
    "overrides",
    [
        {"workers": 0},
        {"workers": -2},
        {"rate": 0.0},
        {"rate": -1.0},
        {"horizon": 0.0},
        {"horizon": float("nan")},
        {"horizon": math.inf},
        {"rate": math.inf},
        {"workers": True},
        {"height": False},
        {"workers": 2.0},
        {"height": 0},
        {"width": 0},
        {"seed": -1},
        {"backend": "gpu"},
    ],
)
def test_invalid_configuration_fails_before_generation(overrides):
    with pytest.raises(ConfigurationError):
        VoterSimulator(_small_config(**overrides))


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigurationError):
        VoterConfig.from_dict({"height": 10, "colours": 3})
    cfg = VoterConfig.from_dict({"height": 10, "width": 20})
    assert cfg.height == 10 and cfg.width == 20
    assert cfg.slice_width == pytest.approx(cfg.horizon / 20)


def test_full_run_fills_every_column():
    sim = VoterSimulator(_small_config())
    grid = sim.run()

    assert grid.num_columns == 60
    assert grid.range() == range(0, 40)
    lo, raw = grid.to_array()
    assert raw.shape == (40, 60)
    assert set(np.unique(raw)) <= {utils.WHITE, utils.BLACK, -1}
    # seed column is fully known
    assert np.all(raw[:, 0] >= 0)
    assert sim.color_at(0, 0) in (utils.WHITE, utils.BLACK)
    assert sim.color_at(-1, 5) is None


def test_seeded_runs_are_reproducible():
    a = VoterSimulator(_small_config()).run().to_array()[1]
    b = VoterSimulator(_small_config()).run().to_array()[1]
    assert np.array_equal(a, b)


def test_explicit_seed_row_without_swaps_in_window():
    # tiny horizon and rate: almost surely no swap falls before the horizon
    sim = VoterSimulator(_small_config(height=5, width=4, horizon=1e-9, rate=1e-3))
    row = [utils.WHITE, utils.BLACK, utils.WHITE, utils.BLACK, None]
    grid = sim.run(seed_row=row)
    for position, color in enumerate(row):
        assert [grid.get(position, t) for t in range(4)] == [color] * 4


def test_rgb_buffer_paints_unknown_cells():
    sim = VoterSimulator(_small_config(height=5, width=3, horizon=1e-9, rate=1e-3))
    sim.run(seed_row=[utils.WHITE, None, utils.BLACK, None, utils.WHITE])

    frame = sim.rgb_buffer()
    assert frame.shape == (5, 3)
    assert frame.dtype == np.uint32
    assert np.all(frame[1] == utils.MAGENTA)
    assert np.all(frame[0] == utils.WHITE)

    image = utils.to_rgb_image(sim.grid, fallback=utils.from_u8_rgb(1, 2, 3))
    assert image.shape == (5, 3, 3)
    assert tuple(image[0, 0]) == (255, 255, 255)
    assert tuple(image[2, 0]) == (0, 0, 0)
    assert tuple(image[3, 2]) == (1, 2, 3)


def test_run_model_reports_meta(capsys):
    result = run_model({"height": 12, "width": 10, "workers": 2, "seed": 3, "backend": "thread"})
    out = capsys.readouterr().out
    assert "Running Voter Model" in out
    assert result.meta["model"] == "voter"
    assert result.meta["height"] == 12
    assert result.meta["num_swaps"] == result.swaps.num_events
    assert result.grid.num_columns == 10


def test_load_params_json(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"height": 8, "width": 16, "rate": 0.5}))
    params = utils.load_params(path)
    cfg = VoterConfig.from_dict(params)
    assert (cfg.height, cfg.width, cfg.rate) == (8, 16, 0.5)
    yaml_path = tmp_path / "params.yaml"
    yaml_path.write_text("height: 8\n")
    with pytest.raises(ValueError):
        utils.load_params(yaml_path)


def test_random_seed_row_uses_palette():
    row = utils.random_seed_row(200, 0)
    assert set(row) == {utils.WHITE, utils.BLACK}
    assert utils.random_seed_row(3, 0, (utils.MAGENTA,)) == [utils.MAGENTA] * 3
    with pytest.raises(ValueError):
        utils.random_seed_row(3, 0, ())


def test_numpy_integers_are_accepted_and_normalised():
    cfg = _small_config(workers=np.int64(2), height=np.int32(6), width=np.int64(5), seed=np.int64(4)).validate()
    assert (cfg.workers, cfg.height, cfg.width, cfg.seed) == (2, 6, 5, 4)
    assert type(cfg.workers) is int and type(cfg.seed) is int
    grid = VoterSimulator(cfg).run()
    assert grid.num_columns == 5
