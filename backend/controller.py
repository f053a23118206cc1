"""
Dashboard view/state controller.
Turns button presses and poll ticks into device-server requests and folds
each reply (or failure) back into the dashboard state.

Failure policy:
• control actions always raise a notice (confirmation or error)
• polling failures are only logged and the last good reading is kept
"""

import asyncio
import logging
from functools import partial

import settings
from device_api import (
    DeviceClient,
    DeviceError,
    MalformedPayload,
    SensorFault,
    output_path,
)
from notices import Notice, NoticeBoard
from poller import PollCycle
from shared_state import CHANNELS, SENSOR_ERROR, DashboardState


class OutputBusy(Exception):
    """A control request for this output is already in flight."""


def output_label(output_id: str) -> str:
    """'led3' -> 'LED 3', 'buzzer' -> 'Buzzer'."""
    if output_id.startswith("led"):
        return f"LED {output_id[len('led'):]}"
    return output_id.capitalize()


class DashboardController:
    def __init__(
        self,
        client: DeviceClient,
        interval: float = settings.POLL_INTERVAL,
        notices: NoticeBoard | None = None,
    ):
        self.client = client
        self.state = DashboardState()
        self.notices = notices or NoticeBoard()
        self.poll_cycle = PollCycle(
            [partial(self.poll_channel, ch) for ch in CHANNELS], interval
        )

    # ─────────────────────── Lifecycle ───────────────────────
    def start(self) -> None:
        self.poll_cycle.start()

    async def stop(self) -> None:
        await self.poll_cycle.stop()

    # ─────────────────────── Outputs ───────────────────────
    async def set_output(self, output_id: str, state: str) -> tuple[bool, Notice]:
        """
        Switch one output and report the outcome as a notice.

        Returns (ok, notice). Raises ValueError for unknown ids/states and
        OutputBusy if a request for the same output has not settled yet.
        """
        output_path(output_id, state)  # validates id and state
        if self.state.loading[output_id]:
            raise OutputBusy(output_id)

        label = output_label(output_id)
        self.state.loading[output_id] = True
        try:
            result = await asyncio.to_thread(self.client.set_output, output_id, state)
        except DeviceError as exc:
            logging.warning("Control %s %s failed: %s", output_id, state, exc)
            control_name = label if output_id.startswith("led") else label.lower()
            return False, self.notices.error("Error", f"Failed to control {control_name}")
        finally:
            self.state.loading[output_id] = False

        self.state.outputs[output_id] = state == "on"
        logging.info("%s %s -> %s", label, state.upper(), result)
        return True, self.notices.post(f"{label} {state.upper()}", result)

    # ─────────────────────── Sensors ───────────────────────
    async def poll_channel(self, channel: str) -> bool:
        """
        Refresh one channel ('ldr', 'distance' or 'combined').

        Returns True when the stored reading was updated from the device.
        A channel that is already being read is skipped.
        """
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel}")
        if self.state.loading[channel]:
            logging.debug("Skipping %s poll, previous read still in flight", channel)
            return False

        self.state.loading[channel] = True
        try:
            if channel == "combined":
                return await self._poll_combined()
            return await self._poll_single(channel)
        finally:
            self.state.loading[channel] = False

    async def _poll_single(self, channel: str) -> bool:
        read = self.client.read_ldr if channel == "ldr" else self.client.read_distance
        try:
            value = await asyncio.to_thread(read)
        except MalformedPayload as exc:
            logging.error("Malformed %s payload: %s", channel, exc)
            return False
        except DeviceError as exc:
            logging.warning("Failed to get %s value: %s", channel, exc)
            return False

        self.state.sensors[channel] = value
        return True

    async def _poll_combined(self) -> bool:
        combined = self.state.sensors["combined"]
        try:
            distance, ldr = await asyncio.to_thread(self.client.read_sensors)
        except SensorFault as exc:
            logging.warning("Sensor error: %s", exc.raw)
            combined.update(distance=SENSOR_ERROR, ldr=SENSOR_ERROR)
            return True
        except MalformedPayload as exc:
            logging.error("Malformed combined sensor payload: %s", exc)
            return False
        except DeviceError as exc:
            logging.warning("Failed to get sensor data: %s", exc)
            return False

        combined.update(distance=distance, ldr=ldr)
        return True

    async def poll_all(self) -> None:
        """Read every channel once, concurrently, and wait for all of them."""
        await asyncio.gather(*(self.poll_channel(ch) for ch in CHANNELS))

    # ─────────────────────── View ───────────────────────
    def snapshot(self) -> dict:
        view = self.state.snapshot()
        view["notices"] = [n.model_dump() for n in self.notices.active()]
        view["base_url"] = self.client.base_url
        view["polling"] = self.poll_cycle.running
        return view
