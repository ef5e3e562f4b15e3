"""Tests for the dorkroom command line."""

import json
import logging
import os
import pytest
from dorkroom.cli.main import (
    build_border_settings,
    build_parser,
    load_user_config,
    load_user_preset,
    main,
)
from dorkroom.features.border.models import BorderPolicy


@pytest.fixture(autouse=True)
def isolate_user_dir(tmp_path, monkeypatch):
    """Redirects config and presets to a temp dir so tests never touch the real home dir."""
    fake_dir = tmp_path / ".dorkroom"
    monkeypatch.setattr("dorkroom.cli.main.CONFIG_FILE", str(fake_dir / "config.json"))
    monkeypatch.setattr("dorkroom.cli.main.PRESETS_DIR", str(fake_dir / "presets"))
    yield fake_dir
    # main() binds the log handler to the captured stderr of this test
    logger = logging.getLogger("dorkroom")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


def _border_args(*argv):
    return build_parser().parse_args(["border", *argv])


class TestParser:
    def test_border_defaults(self):
        args = _border_args()
        assert args.command == "border"
        assert args.paper is None
        assert args.optimize is False
        assert args.ppi == 40

    def test_invalid_paper_choice_raises(self):
        with pytest.raises(SystemExit):
            _border_args("--paper", "a4")

    def test_custom_paper_takes_two_values(self):
        args = _border_args("--custom-paper", "9", "12")
        assert args.custom_paper == [9.0, 12.0]

    def test_camera_defaults(self):
        args = build_parser().parse_args(["camera"])
        assert (args.aperture, args.shutter, args.iso) == (8.0, "1/125", 100.0)

    def test_preset_requires_subcommand(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["preset"])


class TestBuildBorderSettings:
    def test_defaults(self):
        settings = build_border_settings(_border_args(), {"border": {}})
        assert settings.paper_size == "8x10"
        assert settings.aspect_ratio == "3:2"
        assert settings.enable_offset is False

    def test_user_config_then_flags(self):
        user = {"border": {"paper_size": "11x14", "min_border": 1.0}}
        settings = build_border_settings(_border_args("--min-border", "0.75"), user)
        assert settings.paper_size == "11x14"
        assert settings.min_border == 0.75

    def test_offsets_enable_offset(self):
        settings = build_border_settings(_border_args("--v-offset", "0.25"), {})
        assert settings.enable_offset is True
        assert settings.vertical_offset == 0.25
        assert settings.horizontal_offset == 0.0

    def test_flags(self):
        args = _border_args("--ignore-min-border", "--portrait", "--flip-ratio", "--custom-ratio", "2", "1")
        settings = build_border_settings(args, {})
        assert settings.policy is BorderPolicy.IGNORE
        assert settings.is_landscape is False
        assert settings.is_ratio_flipped is True
        assert settings.aspect_ratio == "custom"
        assert (settings.custom_aspect_width, settings.custom_aspect_height) == (2.0, 1.0)

    def test_user_preset_file(self, isolate_user_dir):
        presets = isolate_user_dir / "presets"
        presets.mkdir(parents=True)
        (presets / "big.json").write_text(json.dumps({"paper_size": "16x20", "ignore_min_border": True}))

        settings = build_border_settings(_border_args("--preset", "big"), {})
        assert settings.paper_size == "16x20"
        assert settings.policy is BorderPolicy.IGNORE

    def test_builtin_preset(self):
        assert load_user_preset("default-8x10")["paper_size"] == "8x10"

    def test_missing_preset_raises(self):
        with pytest.raises(FileNotFoundError):
            load_user_preset("nope")


class TestUserConfig:
    def test_missing_config_is_empty(self):
        assert load_user_config() == {"border": {}}

    def test_init_config_creates_once(self, isolate_user_dir):
        assert main(["--init-config"]) == 0
        assert (isolate_user_dir / "config.json").is_file()
        assert (isolate_user_dir / "presets").is_dir()

        data = load_user_config()
        assert data["border"]["paper_size"] == "8x10"
        assert data["border"]["policy"] == "strict"

        assert main(["--init-config"]) == 1


class TestMain:
    def test_no_command_returns_1(self):
        assert main([]) == 1

    def test_border_json(self, capsys):
        assert main(["border", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["result"]["left_border"] == pytest.approx(0.5)
        assert payload["result"]["easel_size_label"] == "8x10"
        assert payload["settings"]["policy"] == "strict"
        assert payload["warnings"] == []

    def test_border_summary(self, capsys):
        assert main(["border", "--paper", "11x14", "--ratio", "4:3"]) == 0
        out = capsys.readouterr().out
        assert "Paper:  14 x 11 in" in out
        assert "Blades:" in out

    def test_border_optimize(self, capsys):
        assert main(["border", "--min-border", "0.6", "--optimize", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["settings"]["min_border"] == pytest.approx(0.5)

    def test_border_unknown_preset_returns_1(self, capsys):
        assert main(["border", "--preset", "missing"]) == 1
        assert "Preset not found" in capsys.readouterr().err

    def test_warnings_go_to_stderr(self, capsys):
        assert main(["border", "--min-border", "9"]) == 0
        captured = capsys.readouterr()
        assert "Minimum border too large" in captured.err
        assert "Minimum border too large" not in captured.out

    def test_share_and_decode(self, capsys):
        assert main(["border", "--share", "--name", "test-print", "--paper", "5x7"]) == 0
        out = capsys.readouterr().out
        code = [line for line in out.splitlines() if line.startswith("Share code: ")][0].split(": ")[1]

        assert main(["preset", "decode", code]) == 0
        decoded = json.loads(capsys.readouterr().out)
        assert decoded["name"] == "test-print"
        assert decoded["settings"]["paper_size"] == "5x7"

    def test_decode_invalid_code(self, capsys):
        assert main(["preset", "decode", "!!!"]) == 1
        assert "invalid share code" in capsys.readouterr().err

    def test_preset_list(self, capsys, isolate_user_dir):
        presets = isolate_user_dir / "presets"
        presets.mkdir(parents=True)
        (presets / "mine.json").write_text("{}")

        assert main(["preset", "list"]) == 0
        out = capsys.readouterr().out
        assert "default-8x10" in out
        assert "mine" in out

    def test_preview_written(self, tmp_path):
        out = tmp_path / "preview.png"
        assert main(["border", "--preview", str(out), "--ppi", "10"]) == 0
        assert os.path.isfile(out)

    def test_exposure(self, capsys):
        assert main(["exposure", "--time", "10", "--stops", "1"]) == 0
        assert "New time: 20s  (+100.0%)" in capsys.readouterr().out

    def test_exposure_rejects_non_positive_time(self):
        assert main(["exposure", "--time", "0", "--stops", "1"]) == 1

    def test_camera(self, capsys):
        assert main(["camera", "--aperture", "8", "--shutter", "1/125", "--iso", "100"]) == 0
        out = capsys.readouterr().out
        assert "EV 13 at f/8 1/125 ISO 100" in out
        assert "Barely visible shadows" in out

    def test_camera_equivalents(self, capsys):
        assert main(["camera", "--equivalents"]) == 0
        out = capsys.readouterr().out
        assert "f/8  1/125 *" in out

    def test_lens(self, capsys):
        assert main(["lens", "50", "--from", "aps-c-nikon", "--to", "full-frame"]) == 0
        out = capsys.readouterr().out
        assert "50mm on APS-C ~ 76.7mm on Full Frame" in out

    def test_lens_defaults_with_presets(self, capsys):
        assert main(["lens", "--presets"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("50mm on Full Frame ~ ")
        assert "Portrait" in out
        assert "Telephoto" in out

    def test_lens_invalid_focal_length(self):
        assert main(["lens", "0"]) == 1

    def test_preview_with_negative_custom_paper(self, tmp_path):
        out = tmp_path / "bad.png"
        assert main(["border", "--custom-paper", "-5", "8", "--preview", str(out), "--ppi", "10"]) == 0
        assert os.path.isfile(out)

    def test_string_valued_preset(self, capsys, isolate_user_dir):
        presets = isolate_user_dir / "presets"
        presets.mkdir(parents=True)
        (presets / "s.json").write_text(json.dumps({"min_border": "0.75", "ignore_min_border": "no"}))

        assert main(["border", "--preset", "s", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["settings"]["min_border"] == pytest.approx(0.75)
        assert payload["settings"]["policy"] == "strict"

    def test_preview_rejects_non_positive_ppi(self, tmp_path, capsys):
        assert main(["border", "--preview", str(tmp_path / "p.png"), "--ppi", "0"]) == 1
        assert "--ppi must be positive" in capsys.readouterr().err

    def test_optimize_non_numeric_min_border(self, capsys):
        assert main(["border", "--min-border", "nan", "--optimize"]) == 0
        captured = capsys.readouterr()
        assert "Border must be a number" in captured.err
        assert "min border 0.5" in captured.out
