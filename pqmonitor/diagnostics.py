# pqmonitor/diagnostics.py
"""
Mother events filter analysis.

Prints the write-up of the "only mother events" filter showing fewer mother
events than the store holds. The figures come from an earlier debug session;
nothing is queried here.
"""
from __future__ import annotations

import sys
from typing import List, Optional, TextIO

TOTAL_MOTHER_EVENTS = 29
SHOWN_MOTHER_EVENTS = 24


def report_lines() -> List[str]:
    missing = TOTAL_MOTHER_EVENTS - SHOWN_MOTHER_EVENTS
    return [
        "Mother Events Filter Analysis",
        "",
        "Based on the debug output:",
        f"  Total mother events in database: {TOTAL_MOTHER_EVENTS}",
        f"  Mother events showing in filter: {SHOWN_MOTHER_EVENTS}",
        f"  Missing events: {missing}",
        "",
        "ISSUE IDENTIFIED:",
        f"The {missing} missing mother events are being hidden by the False Event Detection system.",
        "They have shouldBeHidden: true due to false event rules.",
        "",
        "FIX APPLIED:",
        "The event list now applies false event hiding consistently",
        "regardless of the mother event filter state.",
        "",
        "TO VERIFY THE FIX:",
        "1. Open the dashboard in the browser",
        "2. Go to Event Management",
        '3. Check "Only mother events" filter',
        f"4. All {TOTAL_MOTHER_EVENTS} mother events should now appear",
        "",
        "If events are still missing:",
        "  - Check False Event Configuration to disable autoHide rules",
        "  - Clear browser localStorage for false event rules",
    ]


def print_report(stream: Optional[TextIO] = None) -> int:
    out = stream or sys.stdout
    for line in report_lines():
        print(line, file=out)
    return 0


def main() -> int:
    return print_report()


if __name__ == "__main__":
    sys.exit(main())
