[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "groupbot"
version = "0.1.0"
description = "Building blocks for a group chat bot: reminders, moderation helpers, MIDI ear training and small games"
requires-python = ">=3.10"
keywords = ["chatbot", "group chat", "reminders", "cron", "midi", "cq code", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]
dependencies = [
    "mido",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["groupbot"]

[tool.pytest.ini_options]
addopts = "-ra"
