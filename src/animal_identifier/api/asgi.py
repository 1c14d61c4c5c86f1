"""ASGI application built from environment settings."""

from animal_identifier.api.app import create_app
from animal_identifier.config import Settings
from animal_identifier.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
