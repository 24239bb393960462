"""ASGI entrypoint for the MuscleMath API."""

from muscle_math.api.app import create_app
from muscle_math.containers import build_container

app = create_app(build_container())
