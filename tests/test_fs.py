"""Test atomic filesystem operations.

Tests for aquarelle.utils.fs:
    - Atomic writes leave no temp files behind
    - Image save/load for float and uint8 inputs
    - YAML roundtrip preserves structure and key order
    - ensure_dir creates parents

Run:
    pytest tests/test_fs.py -v
"""

import numpy as np
import pytest
import yaml

from aquarelle.utils import fs


def test_ensure_dir_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    out = fs.ensure_dir(target)
    assert out.is_dir()
    # second call is a no-op
    assert fs.ensure_dir(target) == target


def test_atomic_write_bytes(tmp_path):
    path = tmp_path / "sub" / "data.bin"
    fs.atomic_write_bytes(path, b"watercolor")
    assert path.read_bytes() == b"watercolor"
    assert not list(path.parent.glob("*.tmp*"))


def test_atomic_write_bytes_overwrites(tmp_path):
    path = tmp_path / "data.bin"
    fs.atomic_write_bytes(path, b"first")
    fs.atomic_write_bytes(path, b"second")
    assert path.read_bytes() == b"second"


def test_atomic_save_image_float(tmp_path):
    img = np.zeros((4, 6, 3), dtype=np.float32)
    img[..., 0] = 1.0
    img[1, 2] = (0.5, 0.25, 0.0)
    path = tmp_path / "img.png"
    fs.atomic_save_image(img, path)

    loaded = fs.load_image(path)
    assert loaded.shape == (4, 6, 3)
    assert loaded.dtype == np.uint8
    assert tuple(loaded[0, 0]) == (255, 0, 0)
    assert tuple(loaded[1, 2]) == (128, 64, 0)
    assert not list(tmp_path.glob("*.tmp*"))


def test_atomic_save_image_uint8_untouched(tmp_path):
    img = np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3)
    path = tmp_path / "img.png"
    fs.atomic_save_image(img, path)
    np.testing.assert_array_equal(fs.load_image(path), img)


def test_atomic_save_image_bad_format(tmp_path):
    with pytest.raises(RuntimeError):
        fs.atomic_save_image(np.zeros((2, 2, 3)), tmp_path / "img.unknownext")


def test_load_image_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_image(tmp_path / "missing.png")


def test_yaml_roundtrip(tmp_path):
    data = {'seed': 42.0, 'counts': {'flowers': 7, 'stems': 3}, 'outputs': [{'path': 'a.png'}]}
    path = tmp_path / "meta.yaml"
    fs.atomic_yaml_dump(data, path)
    loaded = fs.load_yaml(path)
    assert loaded == data
    assert list(loaded) == ['seed', 'counts', 'outputs']


def test_load_yaml_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert fs.load_yaml(path) == {}


def test_load_yaml_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "nope.yaml")


def test_load_yaml_malformed(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("canvas: [1, 2\n")
    with pytest.raises(yaml.YAMLError):
        fs.load_yaml(path)


def test_atomic_save_image_rejects_bad_shape(tmp_path):
    with pytest.raises(ValueError):
        fs.atomic_save_image(np.zeros((2, 2, 2)), tmp_path / "img.png")


def test_atomic_target_cleans_up_on_error(tmp_path):
    path = tmp_path / "frame.png"
    with pytest.raises(RuntimeError):
        with fs.atomic_target(path) as tmp:
            tmp.write_bytes(b"partial")
            raise OSError("disk full")
    assert not path.exists()
    assert not list(tmp_path.iterdir())


def test_frame_path():
    assert fs.frame_path("out", "art").name == "art.png"
    assert fs.frame_path("out", "art", 7).name == "art_0007.png"
    assert fs.frame_path("out", "art", 0, ext="jpg").name == "art_0000.jpg"
