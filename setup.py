from setuptools import find_packages, setup

__version__ = "0.3.0"
VERSION = __version__

#TODO: read version from graphwire/__init__.py instead of repeating it here

setup(
    name="graphwire",
    version=VERSION,
    description="Auto-wiring of partially initialized object graphs from field directives",
    packages=find_packages(include=["graphwire", "graphwire.*"]),
    python_requires=">=3.9",
    install_requires=["typing_extensions>=4.13"],
    extras_require={
        "graphviz": ["graphviz"],
        "test": ["pytest", "graphviz"],
    },
)
