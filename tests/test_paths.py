# tests/test_paths.py
from estimation_engine import paths


def test_relative_outputs_land_in_results_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(paths, "RESULTS_DIR", tmp_path / "results")

    resolved = paths.resolve_results_path("game_scores.csv")
    assert resolved == tmp_path / "results" / "game_scores.csv"
    assert (tmp_path / "results").is_dir()


def test_absolute_outputs_are_used_as_given(tmp_path, monkeypatch):
    monkeypatch.setattr(paths, "RESULTS_DIR", tmp_path / "results")

    target = tmp_path / "elsewhere" / "audit.txt"
    assert paths.resolve_results_path(target) == target
    assert not (tmp_path / "results").exists()
