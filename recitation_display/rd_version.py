"""Single version source for the whole project."""

VERSION = "1.0.0"
