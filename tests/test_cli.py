"""Tests for the command-line interface."""

import json
import os

import yaml

from framerender.cli import main
from framerender.io.save_artifacts import save_json


def test_init_config(temp_dir, capsys):
    path = os.path.join(temp_dir, "config.yaml")

    assert main(["init-config", "--out", path]) == 0
    assert os.path.exists(path)


def test_no_command(capsys):
    assert main([]) == 0
    assert "render" in capsys.readouterr().out


def test_render(sample_design, flat_material, temp_dir, capsys):
    design_path = os.path.join(temp_dir, "design.json")
    material_path = os.path.join(temp_dir, "material.json")
    out_dir = os.path.join(temp_dir, "static")
    save_json(sample_design, design_path)
    save_json(flat_material, material_path)

    code = main([
        "render", "--design", design_path, "--material", material_path,
        "--out", out_dir, "--base-url", "http://cdn.test",
    ])

    assert code == 0
    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["material_id"] == "black"
    assert record["url"] == "http://cdn.test/design1-black.png"
    assert record["y_origin"] == 740
    assert os.path.exists(os.path.join(out_dir, "design1-black.png"))


def test_render_without_material(sample_design, temp_dir, capsys):
    design_path = os.path.join(temp_dir, "design.json")
    save_json(sample_design, design_path)

    assert main(["render", "--design", design_path]) == 1
    assert "--material" in capsys.readouterr().err


def test_render_missing_design(temp_dir, capsys):
    code = main([
        "render", "--design", os.path.join(temp_dir, "absent.json"),
        "--material", os.path.join(temp_dir, "absent-material.json"),
    ])

    assert code == 1


def test_import_design(temp_dir, capsys):
    legacy_path = os.path.join(temp_dir, "legacy.json")
    out_path = os.path.join(temp_dir, "design.json")
    with open(legacy_path, "w", encoding="utf-8") as f:
        json.dump({
            "name": "round",
            "outercurve": {"points": [{"x": 0, "y": -1}, {"x": 2, "y": 0}]},
            "eyehole": {"points": [{"x": 1, "y": 0}, {"x": 1.5, "y": 0.5}, {"x": 1, "y": 0.5}]},
        }, f)

    assert main(["import-design", "--legacy", legacy_path, "--out", out_path, "--id", "r1"]) == 0

    with open(out_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    assert data["id"] == "r1"
    assert data["front"]["outer_curve"] == [[0, -100], [200, 0]]


def test_render_default_material(sample_design, flat_material, temp_dir, capsys):
    library = os.path.join(temp_dir, "materials")
    design_path = os.path.join(temp_dir, "design.json")
    config_path = os.path.join(temp_dir, "config.yaml")
    save_json(sample_design, design_path)
    save_json(flat_material, os.path.join(library, "black.json"))
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump({"material": {"default_material_id": "black", "library_dir": library}}, f)

    code = main([
        "render", "--design", design_path, "--config", config_path,
        "--out", os.path.join(temp_dir, "static"),
    ])

    assert code == 0
    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["material_id"] == "black"


def test_render_out_of_range_material(sample_design, temp_dir, capsys):
    design_path = os.path.join(temp_dir, "design.json")
    material_path = os.path.join(temp_dir, "material.json")
    save_json(sample_design, design_path)
    with open(material_path, "w", encoding="utf-8") as f:
        json.dump({"id": "bad", "top_color": [300, 0, 0, 255]}, f)

    code = main([
        "render", "--design", design_path, "--material", material_path,
        "--out", os.path.join(temp_dir, "static"),
    ])

    assert code == 1
    assert "Invalid material" in capsys.readouterr().err
