"""ASGI entrypoint for the calorie logger API."""

from calorie_logger.api.app import create_app
from calorie_logger.containers import build_container

app = create_app(build_container())
