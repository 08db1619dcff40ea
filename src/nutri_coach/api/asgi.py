"""ASGI entrypoint for the coaching API."""

from nutri_coach.api.app import create_app
from nutri_coach.containers import build_container

app = create_app(build_container())
