# pqmonitor/filters.py
from __future__ import annotations

from typing import Dict, Optional

import pandas as pd

from pqmonitor.stats import Events, events_frame


def filter_events(
    events: Events,
    only_mother: bool = False,
    hide_false: bool = True,
    event_type: Optional[str] = None,
) -> pd.DataFrame:
    """
    Event list filter. False-event hiding applies whether or not the
    mother-event filter is on, so both views agree on what is hidden.
    """
    df = events_frame(events)
    keep = pd.Series(True, index=df.index)

    if hide_false:
        keep &= ~df["false_event"]
    if only_mother:
        keep &= df["is_mother_event"]
    if event_type and event_type != "all":
        keep &= df["event_type"] == event_type

    return df[keep].sort_values("ts", ascending=False, na_position="last")


def mother_event_counts(events: Events) -> Dict[str, int]:
    df = events_frame(events)
    mothers = df[df["is_mother_event"]]
    hidden = int(mothers["false_event"].sum())
    return {
        "total": int(len(mothers)),
        "visible": int(len(mothers)) - hidden,
        "hidden_false": hidden,
    }
