"""ASGI entrypoint for the swipe review API."""

from swipe_review.api.app import create_app
from swipe_review.containers import build_container

app = create_app(build_container())
