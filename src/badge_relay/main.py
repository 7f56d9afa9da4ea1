"""Run the console with uvicorn."""

import uvicorn


def main() -> None:
    """Serve the ASGI app on localhost."""
    uvicorn.run("badge_relay.api.asgi:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
