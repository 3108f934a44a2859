"""Tests for the command line entry point."""

import pytest
from PIL import Image
from chip8vm.cli import build_parser, main, read_rom


# I = glyph 0, draw it at (0, 0), then loop forever
LOOP_ROM = bytes([0xA0, 0x50, 0xD0, 0x05, 0x12, 0x04])


@pytest.fixture
def rom_path(tmp_path):
    path = tmp_path / "loop.ch8"
    path.write_bytes(LOOP_ROM)
    return path


def test_read_rom(rom_path):
    assert read_rom(str(rom_path)) == LOOP_ROM


def test_read_missing_rom(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_rom(str(tmp_path / "missing.ch8"))


def test_read_oversized_rom(tmp_path):
    path = tmp_path / "big.ch8"
    path.write_bytes(bytes(4096))
    with pytest.raises(ValueError):
        read_rom(str(path))


def test_parser_defaults():
    args = build_parser().parse_args(["game.ch8"])
    assert args.rom == "game.ch8"
    assert not args.headless
    assert args.ips == 1000
    assert args.log_level == "INFO"


def test_headless_run_with_screenshot(rom_path, tmp_path):
    screenshot = tmp_path / "out.png"

    code = main([str(rom_path), "--headless", "--steps", "20", "--scale", "1",
                 "--screenshot", str(screenshot), "--log-level", "error"])

    assert code == 0
    with Image.open(screenshot) as image:
        assert image.size == (64, 32)
        assert image.convert("RGB").getpixel((0, 0)) == (0, 255, 0)


def test_headless_fault_exit_code(tmp_path):
    path = tmp_path / "bad.ch8"
    path.write_bytes(bytes([0x00, 0xEE]))

    assert main([str(path), "--headless", "--steps", "5", "--log-level", "critical"]) == 1


def test_missing_rom_exit_code(tmp_path):
    assert main([str(tmp_path / "missing.ch8"), "--headless", "--log-level", "critical"]) == 1


def test_unknown_color_scheme_rejected(rom_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(rom_path), "--headless", "--color-scheme", "neon"])

    assert excinfo.value.code == 2
    assert "invalid choice" in capsys.readouterr().err
