"""
An example that shows a Rich Presence for ten seconds.
"""
import logging
import time

from richipc import IPCClient, RichPresence

# Show the IPC traffic.
logging.basicConfig(level=logging.DEBUG)

# Build the presence. Assets must be uploaded to your app in the developer portal first.
presence = RichPresence(state="A test", details="A placeholder")
presence.assets = {"large_image": "large-image", "large_text": "Large text"}
presence.start = int(time.time())
presence.add_button("A button", "https://github.com")

# Connecting sends the handshake; leaving the block sends the close notice.
with IPCClient(771124766517755954) as ipc:
    # send_rich_presence waits for Discord's reply, and raises IPCError if it failed.
    response = ipc.send_rich_presence(presence)
    print("Presence set: {}".format(response.data))

    time.sleep(10)

    ipc.clear_activity()
