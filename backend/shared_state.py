"""
In-memory view state of the dashboard.
Owned by the controller and read by the API endpoints and WebSocket stream.
Nothing here is persisted; a restart starts from all-off / unknown.
"""

from device_api import OUTPUTS

UNKNOWN = "--"       # no successful reading yet
SENSOR_ERROR = "Error"  # device reported a combined-sensor failure

CHANNELS = ("ldr", "distance", "combined")


class DashboardState:
    def __init__(self):
        # Tracks the last confirmed state of each output
        self.outputs = {dev: False for dev in OUTPUTS}

        # Last successfully parsed reading per channel
        self.sensors = {
            "ldr": UNKNOWN,
            "distance": UNKNOWN,
            "combined": {"distance": UNKNOWN, "ldr": UNKNOWN},
        }

        # True only while the matching request is in flight
        self.loading = {key: False for key in (*OUTPUTS, *CHANNELS)}

    def snapshot(self) -> dict:
        """
        Returns a copy of the current state, safe to serialise.
        """
        return {
            "outputs": dict(self.outputs),
            "sensors": {
                "ldr": self.sensors["ldr"],
                "distance": self.sensors["distance"],
                "combined": dict(self.sensors["combined"]),
            },
            "loading": dict(self.loading),
        }
