"""Ad and tracker blocking, CSP, HTTPS upgrades, fingerprint noise, cookies,
local history/bookmark/settings storage and metasearch for a privacy browser."""

__version__ = "0.0.1"