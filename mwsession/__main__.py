"""
Sample socket client.

    python -m mwsession server userid password
"""
from __future__ import annotations

import logging
import sys

from .client import SocketClient
from .config import merged_config
from .errors import TransportConnectionError


HELP = (
    "Meanwhile sample socket client\n"
    "Usage: %s server userid password\n"
    "\n"
    "Connects to a sametime server and logs in with the supplied user ID\n"
    "and password. Doesn't actually do anything useful after that.\n\n"
)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv if argv is None else argv)

    if len(argv) != 4:
        sys.stderr.write(HELP % (argv[0] if argv else "mwsession"))
        return 1

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = merged_config()
    except ValueError as e:
        sys.stderr.write(f"Invalid configuration: {e}\n")
        return 1

    _, server, user_id, password = argv
    client = SocketClient(server, user_id, password, config=config)
    try:
        reason = client.run()
    except TransportConnectionError as e:
        sys.stderr.write(f"{e}\n")
        return 2

    if reason is not None:
        logging.getLogger(__name__).info("Session ended: %s", reason)
    return 0


if __name__ == "__main__":
    sys.exit(main())
