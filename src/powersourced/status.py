"""
Battery status helper for conky and other scripts.
Prints the published power source state with time remaining.
"""

import sys

from .config import load_settings
from .store import load_state


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_time_remaining(record: dict) -> str:
    """Get formatted string for time remaining/to full."""
    if not record.get("Is Present", False):
        return ""
    if record.get("Is Charging"):
        to_full = record.get("Time to Full Charge", -1)
        if to_full > 0:
            return f"{format_minutes(to_full)} to full"
        return "Calculating..." if to_full < 0 else "Charging..."

    to_empty = record.get("Time to Empty", -1)
    if to_empty > 0:
        return f"{format_minutes(to_empty)} remaining"
    if to_empty < 0:
        return "Calculating..."
    if record.get("Power Source State") == "AC Power":
        return "Charged"
    return ""


def format_status(record: dict) -> list:
    if not record.get("Is Present", False):
        return ["> --"]

    status = " CHG" if record.get("Is Charging") else ""
    lines = [f"> {record.get('Current Capacity', 0)}%{status}"]

    time_str = format_time_remaining(record)
    if time_str:
        lines.append(f"${{color4}}  {time_str}")
    if record.get("BatteryHealth") and record["BatteryHealth"] != "Good":
        lines.append(f"${{color4}}  Health: {record['BatteryHealth']}")
    if record.get("Failure"):
        lines.append(f"${{color4}}  {record['Failure']}")
    return lines


def main(argv=None):
    """Entry point for battery status output."""
    argv = sys.argv[1:] if argv is None else argv
    state_file = argv[0] if argv else load_settings()["state_file"]

    state = load_state(state_file)
    if not state:
        print("> N/A")
        return 0

    for key in sorted(state):
        for line in format_status(state[key]):
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
