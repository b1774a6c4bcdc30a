"""Tests for the inspect_sequence command line script."""

import importlib.util
import sys
from pathlib import Path

import numpy as np
import pytest

SCRIPT = Path(__file__).parent.parent / "scripts" / "inspect_sequence.py"


@pytest.fixture
def inspect_sequence():
    spec = importlib.util.spec_from_file_location("inspect_sequence", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run(module, monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["inspect_sequence.py", *argv])
    return module.main()


class TestInspectSequence:
    """main() of scripts/inspect_sequence.py."""

    def test_reports_sequence(self, inspect_sequence, make_sequence, monkeypatch, capsys):
        path = make_sequence([np.eye(4)] * 3, [True, False, True], width=8, height=6)

        code = run(inspect_sequence, monkeypatch, "--sequence", str(path), "--frame", "1")
        out = capsys.readouterr().out

        assert code == 0
        assert "Load status: OK (3 frames parsed)" in out
        assert "Image dimensions: 8x6" in out
        assert "Frames: 3 (2 valid)" in out
        assert "Available transforms: ProbeToTracker" in out
        assert "Frame 1/3: INVALID" in out

    def test_prints_matches(self, inspect_sequence, make_sequence, monkeypatch, capsys):
        poses = []
        for z in (0.0, 6.0, 2.0):
            pose = np.eye(4)
            pose[2, 3] = z
            poses.append(pose)
        path = make_sequence(poses, [True, False, True])
        pointer = ["1", "0", "0", "0", "0", "1", "0", "0", "0", "0", "1", "3"]

        code = run(
            inspect_sequence, monkeypatch,
            "--sequence", str(path), "--pointer", *pointer, "--top", "3",
        )
        lines = capsys.readouterr().out.splitlines()
        ranked = [line for line in lines if line.strip().startswith("[")]

        assert code == 0
        assert "frame 2: 1.000 mm" in ranked[0]
        assert "frame 0: 3.000 mm" in ranked[1]
        assert "frame 1: INVALID" in ranked[2]
        assert "Pointer tip in frame 2:" in lines[-1]

    def test_pointer_tip_in_best_frame(self, inspect_sequence, make_sequence, tmp_path, monkeypatch, capsys):
        poses = []
        for z in (0.0, 2.0):
            pose = np.eye(4)
            pose[2, 3] = z
            poses.append(pose)
        path = make_sequence(poses, [True, True])
        calib = tmp_path / "identity.csv"
        calib.write_text("image_to_probe\n1,0,0,0\n0,1,0,0\n0,0,1,0\n0,0,0,1\n")
        pointer = ["1", "0", "0", "5", "0", "1", "0", "7", "0", "0", "1", "3"]

        code = run(
            inspect_sequence, monkeypatch,
            "--sequence", str(path), "--calib_path", str(calib), "--pointer", *pointer,
        )
        out = capsys.readouterr().out

        assert code == 0
        assert "Pointer tip in frame 1: (5.0, 7.0) px" in out

    def test_print_params(self, inspect_sequence, make_sequence, monkeypatch, capsys):
        pytest.importorskip("pytorch3d")
        pose = np.eye(4)
        pose[2, 3] = 2.0
        path = make_sequence([pose], [True])
        pointer = ["1", "0", "0", "0", "0", "1", "0", "0", "0", "0", "1", "3"]

        code = run(
            inspect_sequence, monkeypatch,
            "--sequence", str(path), "--pointer", *pointer, "--print_params",
        )
        last = capsys.readouterr().out.splitlines()[-1]

        assert code == 0
        assert last.startswith("Frame pose (rx ry rz tx ty tz): ")
        assert last.split()[-1] == "2.0000"

    def test_missing_file_fails(self, inspect_sequence, tmp_path, monkeypatch, capsys):
        code = run(inspect_sequence, monkeypatch, "--sequence", str(tmp_path / "missing.mha"))

        assert code == 1
        assert "ERROR" in capsys.readouterr().out
