[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fortrust"
version = "0.0.1"
description = "Privacy-focused browser components: ad and tracker blocking, CSP, cookie isolation, HTTPS upgrades, local storage and metasearch"
requires-python = ">=3.10"
keywords = ["browser", "privacy", "adblock", "cookies", "csp", "search", "history", "bookmarks"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Browsers",
    "Topic :: Security",
]
dependencies = [
    "httpx",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[tool.hatch.build.targets.wheel]
packages = ["fortrust"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
