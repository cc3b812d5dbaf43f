"""Anti-fingerprinting noise and spoofed navigator properties."""

from __future__ import annotations

import enum
import logging
import random
import secrets

log = logging.getLogger(__name__)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
_DEFAULT_RESOLUTION = (1920, 1080)

_STATIC_NAVIGATOR = {
    "language": "en-US",
    "languages": "en-US,en",
    "doNotTrack": "1",
    "cookieEnabled": "true",
    "maxTouchPoints": "0",
    "vendor": "Google Inc.",
    "vendorSub": "",
    "product": "Gecko",
    "productSub": "20100101",
    "appName": "Netscape",
    "appCodeName": "Mozilla",
    "oscpu": "Windows NT 10.0",
    "webdriver": "false",
}


def _format_number(value: float) -> str:
    """Format a float the way a whole number is shown without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class NoiseStrategy(enum.Enum):
    ADDITIVE = "additive"
    XOR = "xor"
    ROUNDING = "rounding"


class CanvasNoise:
    """Seeded, repeatable noise applied to canvas pixel data and readings."""

    def __init__(self, seed: int) -> None:
        self.enabled = True
        self.noise_level = 3
        self.strategy = NoiseStrategy.XOR
        self.seed = seed

    def perturb_pixels(self, pixels: bytes | bytearray) -> bytes:
        """Return a noisy copy of ``pixels``; the same seed gives the same result."""
        if not self.enabled or not pixels:
            return bytes(pixels)
        rng = random.Random(self.seed)
        out = bytearray()
        for pixel in pixels:
            if self.strategy is NoiseStrategy.ADDITIVE:
                out.append((pixel + rng.randint(0, self.noise_level)) & 0xFF)
            elif self.strategy is NoiseStrategy.XOR:
                out.append(pixel ^ rng.randint(0, self.noise_level))
            else:
                out.append(pixel & 0b1111_1100)
        return bytes(out)

    def perturb_value(self, value: float) -> float:
        if not self.enabled:
            return value
        rng = random.Random(self.seed)
        return value + rng.uniform(-0.0001, 0.0001)


class AudioNoise:
    """Seeded noise added to audio samples."""

    def __init__(self, seed: int) -> None:
        self.enabled = True
        self.seed = seed

    def perturb_sample(self, sample: float) -> float:
        if not self.enabled:
            return sample
        rng = random.Random(self.seed)
        return sample + rng.uniform(-0.00005, 0.00005)


class FingerprintGuard:
    """Holds the noise generators and the values reported to page scripts."""

    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = secrets.randbits(64)
        self._seed = seed
        self.canvas = CanvasNoise(seed)
        self.audio = AudioNoise(seed)
        self.screen_resolution: tuple[int, int] | None = _DEFAULT_RESOLUTION
        self.timezone_override: str | None = None
        self.user_agent_override: str | None = None
        self.hardware_concurrency = 4
        self.device_memory = 8.0
        self.platform_override: str | None = "Win32"

    @classmethod
    def with_seed(cls, seed: int) -> FingerprintGuard:
        return cls(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def regenerate_seed(self) -> None:
        self._seed = secrets.randbits(64)
        self.canvas.seed = self._seed
        self.audio.seed = self._seed
        log.debug("Fingerprint noise seed regenerated")

    def navigator_property(self, name: str) -> str | None:
        """Value reported for ``navigator.<name>``, or None if it is not spoofed."""
        if name in ("userAgent", "appVersion", "platform"):
            return self.user_agent_override or _DEFAULT_USER_AGENT
        if name == "hardwareConcurrency":
            return str(self.hardware_concurrency)
        if name == "deviceMemory":
            return _format_number(self.device_memory)
        return _STATIC_NAVIGATOR.get(name)

    def effective_screen_resolution(self) -> tuple[int, int]:
        return self.screen_resolution or _DEFAULT_RESOLUTION

    def effective_timezone(self) -> str:
        return self.timezone_override or "UTC"