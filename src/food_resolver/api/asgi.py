"""ASGI entrypoint for the food resolver API."""

from food_resolver.api.app import create_app
from food_resolver.containers import build_container

app = create_app(build_container())
