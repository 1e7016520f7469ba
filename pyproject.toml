[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sunclock"
version = "1.0.0"
description = "Full-screen clock whose colours and monitor brightness follow the sun through the day"
requires-python = ">=3.10"
keywords = ["clock", "sunrise", "ddc", "brightness", "framebuffer", "kiosk"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: Screen Savers",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sunclock = "sunclock.app:main"

[tool.hatch.build.targets.wheel]
packages = ["sunclock"]

[tool.pytest.ini_options]
addopts = "-ra"
