import json

import numpy as np

from pyimgscatter.cli import main


def test_cli_importable():
    assert callable(main)


def test_cli_resize_filter_and_report(tmp_path, write_png, gradient_rgb):
    src = write_png(gradient_rgb)
    out = tmp_path / "out.png"
    report = tmp_path / "reports" / "run.json"

    code = main(
        [
            "--input",
            str(src),
            "--output",
            str(out),
            "--filter",
            "Invert",
            "--height",
            "5",
            "--workers",
            "2",
            "--save-report",
            str(report),
            "--log-level",
            "WARNING",
        ]
    )
    assert code == 0
    assert out.exists()

    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["filter"] == "invert"
    assert data["worker_count"] == 2
    assert data["source"]["height"] == 10
    assert data["output"] == {"width": 4, "height": 5, "channels": 3}
    assert data["shortfall_rows"] == 0
    assert [row["rank"] for row in data["partition"]] == [0, 1]
    assert sum(row["dest_rows"] for row in data["partition"]) == 5
    assert {"schema_version", "timestamp_utc", "environment"}.issubset(data)


def test_cli_config_file_with_flag_override(tmp_path, write_png):
    src = write_png(np.full((4, 2, 3), 10, dtype=np.uint8))
    out = tmp_path / "out.png"
    cfg = tmp_path / "run.json"
    cfg.write_text(
        json.dumps({"input_path": str(src), "output_path": str(out), "filter": "invert"}),
        encoding="utf-8",
    )

    code = main(["--config", str(cfg), "--filter", "brightness"])
    assert code == 0

    from pyimgscatter.io.image import load_image

    assert int(load_image(out).pixels.min()) == 60


def test_cli_missing_input_returns_2(tmp_path, capsys):
    missing = tmp_path / "missing.png"
    code = main(["--input", str(missing), "--workers", "2"])
    assert code == 2

    err = capsys.readouterr().err
    assert "error:" in err
    assert "context: cause=ConfigError" in err
    assert "missing.png" in err


def test_cli_requires_an_input(capsys):
    code = main([])
    assert code == 2
    assert "input_path is required" in capsys.readouterr().err


def test_cli_unknown_filter_returns_2(tmp_path, write_png, capsys):
    src = write_png(np.zeros((2, 2, 3), dtype=np.uint8))
    code = main(["--input", str(src), "--filter", "sepia"])
    assert code == 2
    assert "Unknown filter" in capsys.readouterr().err
