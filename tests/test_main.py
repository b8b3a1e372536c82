"""End-to-end tests for the WAV filtering driver."""

import numpy as np
import pytest
from scipy.io import wavfile

from main import main


def _write_tone(path, freqs, sample_rate=8000, seconds=0.5):
    t = np.arange(int(sample_rate * seconds)) / sample_rate
    tone = sum(np.sin(2 * np.pi * f * t) for f in freqs) / len(freqs)
    wavfile.write(path, sample_rate, (tone * 16000).astype(np.int16))


def test_low_pass_file(tmp_path):
    src = tmp_path / "in.wav"
    dst = tmp_path / "out.wav"
    _write_tone(src, [3500])

    assert main([str(src), str(dst), "--kind", "lowpass", "--cutoff", "200"]) == 0

    sr, out = wavfile.read(dst)
    assert sr == 8000
    assert out.dtype == np.float32
    assert len(out) == 4000
    assert np.max(np.abs(out[-1000:])) < 0.05


def test_band_pass_with_normalize(tmp_path):
    src = tmp_path / "in.wav"
    dst = tmp_path / "out.wav"
    _write_tone(src, [1000])

    argv = [
        str(src),
        str(dst),
        "--kind",
        "bandpass",
        "--cutoff",
        "1000",
        "--bandwidth",
        "100",
        "--normalize",
    ]
    assert main(argv) == 0

    _, out = wavfile.read(dst)
    assert 0.9 < np.max(np.abs(out[-1000:])) < 1.1


def test_invalid_design_exit_code(tmp_path):
    src = tmp_path / "in.wav"
    _write_tone(src, [440])
    argv = [str(src), str(tmp_path / "out.wav"), "--kind", "bandpass"]
    assert main(argv) == 2
    assert not (tmp_path / "out.wav").exists()


def test_malformed_wav_is_not_a_design_error(tmp_path):
    src = tmp_path / "in.wav"
    src.write_bytes(b"not a wav file at all")
    with pytest.raises(ValueError):
        main([str(src), str(tmp_path / "out.wav")])
    assert not (tmp_path / "out.wav").exists()
