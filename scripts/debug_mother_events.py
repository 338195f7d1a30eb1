import sys

from pqmonitor.diagnostics import print_report

sys.exit(print_report())
