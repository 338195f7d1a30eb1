from datetime import datetime

NOW = datetime(2024, 3, 15, 12, 0, 0)


def make_event(timestamp, **overrides):
    """A valid SARFI-70 event (voltage-dip mother, not false) unless overridden."""
    ev = {
        "id": overrides.pop("id", f"ev-{timestamp}"),
        "timestamp": timestamp,
        "event_type": "voltage_dip",
        "is_mother_event": True,
        "false_event": False,
        "sarfi_70": 1.0,
    }
    ev.update(overrides)
    return ev
