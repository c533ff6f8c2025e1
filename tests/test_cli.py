from PIL import Image

from patternpic.cli import main
from patternpic.settings import Settings

SIZES = ["--width", "96", "--height", "72", "--preview-width", "48", "--preview-height", "36", "--cell", "12x8"]


def test_renders_output_and_preview(tmp_path, image_files):
    source, stamp = image_files
    out = tmp_path / "out.png"
    preview = tmp_path / "preview.png"
    config = tmp_path / "settings.json"
    code = main([str(source), str(stamp), "-o", str(out), "-p", str(preview), "--config", str(config), *SIZES])
    assert code == 0
    with Image.open(out) as img:
        assert img.size == (96, 72)
    with Image.open(preview) as img:
        assert img.size == (48, 36)
    assert not config.exists()


def test_save_then_reuse_settings(tmp_path, image_files):
    source, stamp = image_files
    config = tmp_path / "settings.json"
    out = tmp_path / "first.png"
    assert main([str(source), str(stamp), "-o", str(out), "--config", str(config), "--save", *SIZES]) == 0

    saved = Settings.load(config)
    assert saved.source_path == str(source.resolve())
    assert (saved.cell_width, saved.cell_height) == (12.0, 8.0)

    second = tmp_path / "second.png"
    assert main(["-o", str(second), "--config", str(config)]) == 0
    assert second.read_bytes() == out.read_bytes()


def test_missing_file(tmp_path, capsys, image_files):
    _, stamp = image_files
    code = main([str(tmp_path / "nope.png"), str(stamp), "--config", str(tmp_path / "s.json")])
    assert code == 1
    assert "File not found" in capsys.readouterr().err


def test_no_source_given(tmp_path, capsys):
    code = main(["--config", str(tmp_path / "s.json")])
    assert code == 1
    assert "No source image given" in capsys.readouterr().err


def test_bad_saved_settings(tmp_path, capsys):
    config = tmp_path / "s.json"
    config.write_text("[]")
    assert main(["--config", str(config)]) == 1
    assert "Bad settings" in capsys.readouterr().err


def test_saved_relative_paths_work_from_another_directory(tmp_path, monkeypatch, image_files):
    config = tmp_path / "settings.json"
    monkeypatch.chdir(tmp_path)
    assert main(["source.png", "stamp.png", "-o", "first.png", "--config", str(config), "--save", *SIZES]) == 0
    assert Settings.load(config).stamp_path == str((tmp_path / "stamp.png").resolve())

    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)
    assert main(["-o", "second.png", "--config", str(config)]) == 0
    assert (elsewhere / "second.png").exists()


def test_wrong_typed_saved_setting(tmp_path, capsys):
    config = tmp_path / "s.json"
    config.write_text('{"version": 1, "cell_width": "24"}')
    assert main(["--config", str(config)]) == 1
    assert "cell_width must be a number" in capsys.readouterr().err
