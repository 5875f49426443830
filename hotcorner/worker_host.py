"""Worker process entry point.

Reads newline-terminated commands from stdin:

- ``TRIGGER``: perform the corner action, no output
- ``STATUS``: write one compact JSON line describing the foreground window
  (``{}`` on failure)
- ``EXIT``: exit with code 0

Unknown lines are ignored; end of input also exits cleanly.

Usage:
    python -m hotcorner.worker_host                  # long-lived worker
    python -m hotcorner.worker_host --once trigger   # one-shot action
    python -m hotcorner.worker_host --once status    # one-shot probe
"""

import argparse
import json
import sys
from typing import Any, Optional, Protocol, Sequence, TextIO

CMD_TRIGGER = "TRIGGER"
CMD_STATUS = "STATUS"
CMD_EXIT = "EXIT"


class NativeDesktop(Protocol):
    """What the worker needs from the platform."""

    def perform_action(self) -> None: ...

    def foreground(self) -> dict[str, Any]: ...


class PlatformDesktop:
    """NativeDesktop backed by pynput and the user32 foreground probe."""

    def perform_action(self) -> None:
        from hotcorner.core.os_adapter.input_inject import perform_corner_action

        perform_corner_action()

    def foreground(self) -> dict[str, Any]:
        from hotcorner.core.os_adapter.foreground import get_foreground_info

        return get_foreground_info()


def write_status(stdout: TextIO, desktop: NativeDesktop) -> None:
    """Write exactly one JSON line for a STATUS command."""
    try:
        payload = json.dumps(desktop.foreground(), separators=(",", ":"))
    except Exception as e:
        print(f"status failed: {e}", file=sys.stderr, flush=True)
        payload = "{}"
    stdout.write(payload + "\n")
    stdout.flush()


def perform(desktop: NativeDesktop) -> bool:
    try:
        desktop.perform_action()
    except Exception as e:
        print(f"trigger failed: {e}", file=sys.stderr, flush=True)
        return False
    return True


def serve(stdin: TextIO, stdout: TextIO, desktop: NativeDesktop) -> int:
    """Command loop of the long-lived worker.

    Returns:
        Process exit code
    """
    for raw in iter(stdin.readline, ""):
        command = raw.strip()
        if command == CMD_TRIGGER:
            perform(desktop)
        elif command == CMD_STATUS:
            write_status(stdout, desktop)
        elif command == CMD_EXIT:
            return 0
    return 0


def main(argv: Optional[Sequence[str]] = None, desktop: Optional[NativeDesktop] = None) -> int:
    parser = argparse.ArgumentParser(prog="hotcorner.worker_host")
    parser.add_argument("--once", choices=("trigger", "status"), default=None)
    args = parser.parse_args(argv)

    from hotcorner.core.os_adapter import IS_WINDOWS

    if IS_WINDOWS:
        from hotcorner.core.os_adapter.win_dpi import setup_dpi_awareness

        ok, warning = setup_dpi_awareness()
        if not ok:
            print(warning, file=sys.stderr, flush=True)

    desktop = desktop or PlatformDesktop()

    if args.once == "trigger":
        return 0 if perform(desktop) else 1
    if args.once == "status":
        write_status(sys.stdout, desktop)
        return 0

    return serve(sys.stdin, sys.stdout, desktop)


if __name__ == "__main__":
    sys.exit(main())
