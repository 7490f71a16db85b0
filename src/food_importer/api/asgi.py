"""ASGI entrypoint for the food import API."""

from food_importer.api.app import create_app
from food_importer.containers import build_container

app = create_app(build_container())
