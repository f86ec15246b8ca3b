"""CLI integration tests for tools/inspect_smf.py and tools/sample_controls.py."""

from __future__ import annotations

import json
import os
from pathlib import Path
import subprocess
import sys

import mido

REPO_ROOT = Path(__file__).resolve().parents[1]
INSPECT = REPO_ROOT / "tools" / "inspect_smf.py"
SAMPLE = REPO_ROOT / "tools" / "sample_controls.py"


def _run(script: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT)
    return subprocess.run(
        [sys.executable, str(script), *args],
        cwd=str(REPO_ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def _write_song(path: Path) -> Path:
    mid = mido.MidiFile(type=0, ticks_per_beat=96)
    trk = mido.MidiTrack()
    trk.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(120), time=0))
    trk.append(mido.Message("control_change", control=1, value=0, time=0))
    trk.append(mido.Message("note_on", note=60, velocity=100, time=0))
    trk.append(mido.Message("note_off", note=60, velocity=0, time=96))
    trk.append(mido.Message("control_change", control=1, value=127, time=0))
    trk.append(mido.Message("note_on", note=64, velocity=80, time=96))
    trk.append(mido.Message("note_off", note=64, velocity=0, time=96))
    mid.tracks.append(trk)
    mid.save(str(path))
    return path


def test_inspect_reports_tracks(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run(INSPECT, str(song), "--events")
    assert result.returncode == 0, result.stderr
    assert "1 tracks, 96 ticks/quarter" in result.stdout
    assert "notes=2" in result.stdout
    assert "duration=384 ticks (2.000s)" in result.stdout


def test_inspect_matches_mido(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run(INSPECT, str(song), "--compare-mido")
    assert result.returncode == 0, result.stdout
    assert "mido match: yes" in result.stdout


def test_inspect_rejects_bad_header(tmp_path: Path) -> None:
    bad = tmp_path / "bad.mid"
    bad.write_bytes(b"XXXX\x00\x00\x00\x06\x00\x00\x00\x01\x00\x60")
    result = _run(INSPECT, str(bad))
    assert result.returncode == 1
    assert result.stderr.startswith("error:")


def test_sample_controls_prints_frames(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run(SAMPLE, str(song), "--fps", "4", "--cc", "1")
    assert result.returncode == 0, result.stderr
    rows = [line for line in result.stdout.splitlines() if not line.startswith("flush")]
    assert len(rows) == 8
    assert rows[1].startswith("0.2500,0.5000")
    assert "on:ch0:60:100" in result.stdout
    assert "flush  off:ch0:64:0" in result.stdout


def test_sample_controls_from_json(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    controls = tmp_path / "controls.json"
    controls.write_text(
        json.dumps({"controls": [{"cc_number": 1}, {"mode": "note_envelope", "note_filter": {"note": "E"}}]}),
        encoding="utf-8",
    )
    result = _run(SAMPLE, str(song), "--controls", str(controls), "--seconds", "1", "--fps", "2")
    assert result.returncode == 0, result.stderr
    rows = [line for line in result.stdout.splitlines() if not line.startswith("flush")]
    assert len(rows) == 2
    assert rows[0].count(",") == 2


def test_sample_controls_rejects_bad_track(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    result = _run(SAMPLE, str(song), "--track", "3")
    assert result.returncode == 1
    assert "out of range" in result.stderr
