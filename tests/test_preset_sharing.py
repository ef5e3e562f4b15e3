import base64
from dorkroom.features.border.models import BorderPolicy, BorderSettings
from dorkroom.features.sharing.logic import (
    OFFSET_BIAS,
    boolean_bitmask,
    decode_preset,
    encode_preset,
    flags_from_bitmask,
    is_valid_encoded_preset,
)


def _raw(encoded: str) -> str:
    return base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode("utf-8")


def test_bitmask_bits():
    assert boolean_bitmask(BorderSettings()) == 8
    settings = BorderSettings(
        enable_offset=True,
        policy=BorderPolicy.IGNORE,
        show_blades=True,
        is_landscape=False,
        is_ratio_flipped=True,
        show_blade_readings=True,
    )
    assert boolean_bitmask(settings) == 1 | 2 | 4 | 16 | 32
    assert flags_from_bitmask(9) == {
        "enable_offset": True,
        "ignore_min_border": False,
        "show_blades": False,
        "is_landscape": True,
        "is_ratio_flipped": False,
        "show_blade_readings": False,
    }


def test_wire_fields():
    encoded = encode_preset("Test", BorderSettings())
    assert "=" not in encoded
    # name | 3:2 | 8x10 | 0.5 | offsets | landscape
    assert _raw(encoded) == f"Test-0-2-50-{OFFSET_BIAS}-{OFFSET_BIAS}-8"


def test_round_trip_with_signed_offsets_and_dash_in_name():
    settings = BorderSettings(
        aspect_ratio="65:24",
        paper_size="11x14",
        min_border=0.75,
        enable_offset=True,
        horizontal_offset=-0.25,
        vertical_offset=1.5,
        policy=BorderPolicy.IGNORE,
        last_valid_min_border=0.75,
    )
    shared = decode_preset(encode_preset("XPan - wide & tall", settings))
    assert shared is not None
    assert shared.name == "XPan - wide & tall"
    assert shared.settings == settings


def test_round_trip_custom_ratio_and_paper():
    settings = BorderSettings(
        aspect_ratio="custom",
        custom_aspect_width=2.2,
        custom_aspect_height=1,
        paper_size="custom",
        custom_paper_width=9.5,
        custom_paper_height=12,
        min_border=0.5,
    )
    shared = decode_preset(encode_preset("odd", settings))
    assert shared is not None
    assert shared.settings.custom_aspect_width == 2.2
    assert shared.settings.custom_paper_width == 9.5
    assert shared.settings.custom_paper_height == 12


def test_unknown_key_encodes_to_empty(caplog):
    assert encode_preset("x", BorderSettings(paper_size="a4")) == ""
    assert "Cannot share preset" in caplog.text


def test_malformed_codes_decode_to_none():
    assert decode_preset("") is None
    assert decode_preset("!!!") is None
    bad_index = base64.urlsafe_b64encode(b"x-99-0-50-10000-10000-0").decode().rstrip("=")
    assert decode_preset(bad_index) is None
    missing_custom = base64.urlsafe_b64encode(b"x-14-0-50-10000-10000-0").decode().rstrip("=")
    assert decode_preset(missing_custom) is None


def test_is_valid_encoded_preset():
    assert is_valid_encoded_preset(encode_preset("ok", BorderSettings())) is True
    assert is_valid_encoded_preset("not base64!") is False
    assert is_valid_encoded_preset("") is False
