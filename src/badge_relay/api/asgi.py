"""ASGI entrypoint for the badge relay console."""

from badge_relay.api.app import create_app
from badge_relay.containers import build_container

app = create_app(build_container())
