from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="song-drum-machine",
    version="0.1.0",
    description="Compile drum machine song arrangements into humanized MIDI drum tracks.",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "numpy",
        "pandas",
        "pretty_midi",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["song-drum-machine=song_drum_machine.cli:main"]},
)
