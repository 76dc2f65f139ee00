from setuptools import find_packages, setup


setup(
    name="steamshortcuts",
    version="1.0.0",
    description=(
        "Add Windows games to a Linux Steam library as non-Steam shortcuts"
    ),
    license="GPLv3",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "vdf>=3.4",
    ],
    extras_require={
        "test": ["pytest>=6.0"],
    },
    entry_points={
        "console_scripts": [
            "steam-shortcuts = steamshortcuts.cli.main:cli",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
        "Topic :: Games/Entertainment",
    ],
)
