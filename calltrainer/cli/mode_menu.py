# calltrainer/cli/mode_menu.py
import logging

import httpx

from calltrainer.models import DEFAULT_MODE, Mode

logger = logging.getLogger(__name__)


def pick_mode(client, read=input, write=print) -> Mode:
    """Show the server's mode list and ask which one to practice. Enter keeps the default."""
    try:
        modes = client.list_modes()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Could not load modes from the server, using %s: %s", DEFAULT_MODE.value, e)
        return DEFAULT_MODE

    for i, m in enumerate(modes, start=1):
        write(f"{i}. {m['label']} Mode - {m['description']}")

    answer = read(f"Pick a mode [1-{len(modes)}, Enter for {DEFAULT_MODE.label}]: ").strip()
    if answer.isdigit() and 1 <= int(answer) <= len(modes):
        return Mode.coerce(modes[int(answer) - 1]["id"])
    return Mode.coerce(answer)
