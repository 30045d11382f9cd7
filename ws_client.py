import asyncio
import json
import sys
import websockets

async def watch_session(session_id: str, host: str = "ws://localhost:8002"):
    """Print the countdown of a live exam session until it is submitted."""
    uri = f"{host}/ws/sessions/{session_id}"

    print(f"Connecting to {uri}")

    try:
        async with websockets.connect(uri) as websocket:
            print("Connected to WebSocket server!")

            while True:
                try:
                    message = json.loads(await websocket.recv())
                except websockets.exceptions.ConnectionClosed:
                    print("Connection closed")
                    break

                if message["type"] == "tick":
                    minutes, seconds = divmod(message["time_left"], 60)
                    print(f"{minutes:02d}:{seconds:02d}")
                else:
                    print(f"Received message: {message}")

    except Exception as e:
        print(f"Error: {e}")

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("usage: python ws_client.py <session_id> [ws://host:port]")
        sys.exit(1)
    asyncio.run(watch_session(*sys.argv[1:3]))
