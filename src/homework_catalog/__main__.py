"""Allow running the console script with ``python -m homework_catalog``."""

from .cli import app

app(prog_name="homework-catalog")
