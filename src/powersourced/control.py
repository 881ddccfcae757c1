"""
Privileged battery control commands.

Thin, validated pass-throughs to the charge controller: disabling inflow
(run from battery while on AC) and inhibiting charging. Both take a level
of 0 or 1 and require administrator privilege.
"""

import argparse
import logging
import os
import sys
from enum import IntEnum
from pathlib import Path

from .config import CHARGE_BEHAVIOUR_PATH, load_settings

logger = logging.getLogger(__name__)


class ReturnCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    BAD_ARGUMENT = 2
    NOT_PRIVILEGED = 3


def _is_root() -> bool:
    return os.geteuid() == 0


class BatteryManagerClient:
    """Command surface handed to a client process."""

    def __init__(self, owner, is_admin=_is_root):
        self.owner = owner
        self.is_admin = is_admin

    def secure_inflow_disable(self, level: int) -> ReturnCode:
        if level not in (0, 1):
            return ReturnCode.BAD_ARGUMENT
        if not self.is_admin() or self.owner is None:
            logger.warning("Inflow disable refused: not privileged")
            return ReturnCode.NOT_PRIVILEGED
        return ReturnCode(self.owner.disable_inflow(level))

    def secure_charge_inhibit(self, level: int) -> ReturnCode:
        if level not in (0, 1):
            return ReturnCode.BAD_ARGUMENT
        if not self.is_admin() or self.owner is None:
            logger.warning("Charge inhibit refused: not privileged")
            return ReturnCode.NOT_PRIVILEGED
        return ReturnCode(self.owner.inhibit_charging(level))

    def set_polling_interval(self, seconds) -> ReturnCode:
        if seconds <= 0:
            return ReturnCode.BAD_ARGUMENT
        if self.owner is None:
            return ReturnCode.ERROR
        return ReturnCode(self.owner.set_polling_interval(seconds))


class SysfsChargeController:
    """
    Charge control through the kernel's power_supply charge_behaviour file.

    Inflow disable maps to "force-discharge", charge inhibit to
    "inhibit-charge"; level 0 of either returns to "auto".
    """

    def __init__(self, path=CHARGE_BEHAVIOUR_PATH, poller=None):
        self.path = Path(path)
        self.poller = poller
        self._inflow_disabled = False
        self._charge_inhibited = False

    def disable_inflow(self, level):
        self._inflow_disabled = bool(level)
        return self._apply()

    def inhibit_charging(self, level):
        self._charge_inhibited = bool(level)
        return self._apply()

    def set_polling_interval(self, seconds):
        if self.poller is None:
            return ReturnCode.ERROR
        self.poller.set_poll_interval(seconds)
        return ReturnCode.SUCCESS

    def _apply(self):
        if self._inflow_disabled:
            behaviour = "force-discharge"
        elif self._charge_inhibited:
            behaviour = "inhibit-charge"
        else:
            behaviour = "auto"
        try:
            self.path.write_text(behaviour + "\n")
        except OSError as e:
            logger.error("Could not set charge behaviour %s on %s: %s", behaviour, self.path, e)
            return ReturnCode.ERROR
        logger.info("Charge behaviour set to %s", behaviour)
        return ReturnCode.SUCCESS


def main(argv=None):
    """Entry point for powersource-ctl."""
    parser = argparse.ArgumentParser(prog="powersource-ctl", description=__doc__.strip().splitlines()[0])
    parser.add_argument("command", choices=["inflow", "inhibit"], help="inflow: disable AC inflow, inhibit: inhibit charging")
    parser.add_argument("level", type=int, help="1 to enable, 0 to return to normal")
    parser.add_argument("--path", help="charge_behaviour file to write")
    args = parser.parse_args(argv)

    path = args.path or load_settings()["charge_behaviour_path"]
    client = BatteryManagerClient(SysfsChargeController(path), is_admin=_is_root)
    if args.command == "inflow":
        result = client.secure_inflow_disable(args.level)
    else:
        result = client.secure_charge_inhibit(args.level)

    if result is not ReturnCode.SUCCESS:
        print(f"{args.command} {args.level}: {result.name.lower().replace('_', ' ')}", file=sys.stderr)
        return 1
    print(f"{args.command} {args.level}: ok")
    return 0


if __name__ == "__main__":
    sys.exit(main())
