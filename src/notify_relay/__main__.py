"""Run the relay with uvicorn (``python -m notify_relay`` or ``notify-relay``)."""

import uvicorn

from notify_relay.infra.settings import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "notify_relay.api.app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
