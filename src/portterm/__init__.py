"""

Serial port terminal

- PortHandle: a configured, not yet open serial port. Built from complete PortParameters.
- SerialBridge: a background thread that owns the open port and shuttles bytes
  between the device and two shared buffers (rx, tx). I/O errors are posted to a
  shared error slot. The bridge runs until the shared flag is cleared.
- EventSource: an asyncio task set that merges keyboard input, a periodic tick
  and a render signal into one ordered stream of events.
- Screen models: Menu, DeviceList, Help and Terminal. Each has update(message) -> state
  and view(width, height) -> renderable.
- Scene: holds the single active screen model and performs screen switches, starting
  and stopping the bridge when entering and leaving the terminal.
- Application: drains the event source, dispatches to the scene and draws frames.


More rough notes:

- The UI thread never blocks on the device. Both sides use non-blocking lock attempts
on the shared cells, and a contended lock just means "try again next cycle".

- Leaving the terminal screen clears the flag and joins the bridge thread before the
terminal model is discarded, so the port is always closed before it can be reopened.

"""
