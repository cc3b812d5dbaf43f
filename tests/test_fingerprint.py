import pytest

from fortrust.fingerprint import (
    AudioNoise,
    CanvasNoise,
    FingerprintGuard,
    NoiseStrategy,
)

PIXELS = bytes(range(0, 256, 7))


def test_canvas_noise_is_deterministic_per_seed():
    first = CanvasNoise(42).perturb_pixels(PIXELS)
    second = CanvasNoise(42).perturb_pixels(PIXELS)
    assert len(first) == len(PIXELS)
    assert second == first


def test_xor_noise_stays_within_level():
    noise = CanvasNoise(7)
    out = noise.perturb_pixels(PIXELS)
    assert len(out) == len(PIXELS)
    assert all((a ^ b) <= noise.noise_level for a, b in zip(PIXELS, out))


def test_additive_noise_wraps_and_stays_within_level():
    noise = CanvasNoise(9)
    noise.strategy = NoiseStrategy.ADDITIVE
    out = noise.perturb_pixels(bytes([255, 254, 0, 10]))
    assert all((b - a) % 256 <= noise.noise_level for a, b in zip([255, 254, 0, 10], out))


def test_rounding_clears_low_bits():
    noise = CanvasNoise(1)
    noise.strategy = NoiseStrategy.ROUNDING
    out = noise.perturb_pixels(PIXELS)
    assert all(b == a & 0b1111_1100 for a, b in zip(PIXELS, out))


def test_disabled_canvas_returns_input():
    noise = CanvasNoise(3)
    noise.enabled = False
    assert noise.perturb_pixels(PIXELS) == PIXELS
    assert noise.perturb_value(1.5) == 1.5


def test_empty_pixels_unchanged():
    assert CanvasNoise(3).perturb_pixels(b"") == b""


def test_perturb_value_is_small_and_repeatable():
    noise = CanvasNoise(11)
    first = noise.perturb_value(10.0)
    assert abs(first - 10.0) <= 0.0001
    assert noise.perturb_value(10.0) == first


def test_audio_noise_bounds_and_disable():
    audio = AudioNoise(5)
    assert abs(audio.perturb_sample(0.25) - 0.25) <= 0.00005
    audio.enabled = False
    assert audio.perturb_sample(0.25) == 0.25


def test_guard_defaults():
    guard = FingerprintGuard.with_seed(123)
    assert guard.seed == 123
    assert guard.canvas.seed == 123
    assert guard.audio.seed == 123
    assert guard.effective_screen_resolution() == (1920, 1080)
    assert guard.effective_timezone() == "UTC"


def test_overrides_are_used():
    guard = FingerprintGuard.with_seed(1)
    guard.screen_resolution = None
    assert guard.effective_screen_resolution() == (1920, 1080)
    guard.timezone_override = "Europe/Berlin"
    assert guard.effective_timezone() == "Europe/Berlin"
    guard.user_agent_override = "TestAgent"
    assert guard.navigator_property("userAgent") == "TestAgent"


@pytest.mark.parametrize("name", ["userAgent", "appVersion", "platform"])
def test_user_agent_properties_share_default(name):
    guard = FingerprintGuard.with_seed(1)
    assert guard.navigator_property(name).startswith("Mozilla/5.0 (Windows NT 10.0")


def test_navigator_values():
    guard = FingerprintGuard.with_seed(1)
    assert guard.navigator_property("language") == "en-US"
    assert guard.navigator_property("doNotTrack") == "1"
    assert guard.navigator_property("hardwareConcurrency") == "4"
    assert guard.navigator_property("deviceMemory") == "8"
    assert guard.navigator_property("vendorSub") == ""
    assert guard.navigator_property("unknown") is None


def test_regenerate_seed_propagates():
    guard = FingerprintGuard.with_seed(0)
    guard.regenerate_seed()
    assert guard.canvas.seed == guard.seed
    assert guard.audio.seed == guard.seed