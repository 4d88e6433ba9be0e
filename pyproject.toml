[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tsfilters"
version = "0.1.0"
description = "Touchscreen sample sources and filter chain modules: raw device readers, calibration, smoothing and thresholding"
requires-python = ">=3.10"
dependencies = []
keywords = ["touchscreen", "evdev", "multitouch", "calibration", "filter", "input"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tsfilters"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
