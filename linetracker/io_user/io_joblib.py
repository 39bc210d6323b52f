# --------------------------------------------------
# User IO for linetracker
# --------------------------------------------------
## The following function needs to be defined:
## 1. load(filename, *args, **kwargs):
##      """
##      Load the events of a file.
##
##      INPUT:
##      ---
##      filename: str
##          the filename of the input file
##      *args, **kwargs:
##          additional optional arguments
##
##      Return:
##      ---
##          events: list
##              One list of Point (t, x, y, z) per event
##          metadata: dict
##              Anything else stored in the file. If it has a "geometry" entry
##              (a Geometry object), run.py uses it instead of the configured one.
##      """

import joblib

from linetracker import datatypes


def load(filename, printn=2000, start_event=0, end_event=-1):
    """
    Load a joblib file holding either a list of events, or a dict
    {"events": list of events, **metadata}.
    An event is a list of (t, x, y, z).
    """
    data = joblib.load(filename)
    if isinstance(data, dict):
        metadata = {key: value for key, value in data.items() if key != "events"}
        events_raw = data["events"]
    else:
        metadata = {}
        events_raw = data

    end_event = len(events_raw) if end_event < 0 else min(end_event, len(events_raw))
    print(f"Loading events {start_event} to {end_event} of {filename}")

    events = []
    for entry in range(start_event, end_event):
        if (entry + 1) % printn == 0:
            print("  Event is", entry)
        events.append([datatypes.Point(*hit) for hit in events_raw[entry]])

    return events, metadata
