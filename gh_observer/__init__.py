"""gh-observer: watch a pull request's CI checks from the terminal."""

__version__ = "0.1.0"
