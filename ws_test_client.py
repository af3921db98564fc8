#!/usr/bin/env python3
"""
WebSocket Test Client for the teamcall signaling server

Usage:
    python ws_test_client.py <server_url> <user_id> [display_name]

Examples:
    python ws_test_client.py ws://localhost:8000 u1 Alice
    python ws_test_client.py wss://your-server.com u2 Bob  # For HTTPS

Commands (while connected):
    /join <room_id>              join a call room
    /leave <room_id>             leave a call room
    /call <target> <json|text>   send a call signal to a user_id or connection_id
    quit | exit                  disconnect
    Ctrl+C                       force disconnect
"""

import asyncio
import json
import sys

import websockets


def print_message(msg: dict) -> None:
    """Pretty print a received WebSocket message."""
    msg_type = msg.get("type", "unknown")

    print()
    print("=" * 60)

    if msg_type == "presence_list":
        users = msg.get("users", [])
        print(f"👥 ONLINE USERS ({len(users)})")
        for user in users:
            profile = user.get("profile")
            name = profile.get("name", "") if isinstance(profile, dict) else profile or ""
            print(f"   {user.get('user_id')} {name} [{user.get('connection_id')}]")

    elif msg_type == "peer_joined":
        print(f"➕ PEER JOINED room {msg.get('room_id')}: {msg.get('user_id')}")

    elif msg_type == "peer_left":
        print(f"➖ PEER LEFT room {msg.get('room_id')}: {msg.get('user_id')}")

    elif msg_type == "call_signal":
        sender = msg.get("from_user_id") or msg.get("from_connection_id")
        print(f"📞 CALL SIGNAL from {sender}")
        print(f"   {json.dumps(msg.get('payload'), indent=2, default=str)}")

    else:
        print(f"📨 UNKNOWN MESSAGE TYPE: {msg_type}")
        print(f"   {json.dumps(msg, indent=2, default=str)}")

    print("=" * 60)


def parse_command(user_input: str, user_id: str) -> dict | None:
    """Turn a command line into a client message, or None if it is not one."""
    cmd, _, rest = user_input.partition(" ")
    rest = rest.strip()

    if cmd == "/join" and rest:
        return {"type": "join_room", "room_id": rest, "user_id": user_id}
    if cmd == "/leave" and rest:
        return {"type": "leave_room", "room_id": rest}
    if cmd == "/call" and rest:
        target, _, body = rest.partition(" ")
        try:
            payload = json.loads(body) if body else None
        except json.JSONDecodeError:
            payload = body
        return {"type": "call_signal", "target": target, "payload": payload}
    return None


async def receive_messages(websocket) -> None:
    """Task to continuously receive and print messages."""
    try:
        async for message in websocket:
            try:
                msg = json.loads(message)
                print_message(msg)
                print("\n[You] > ", end="", flush=True)
            except json.JSONDecodeError:
                print(f"\n⚠️  Received non-JSON message: {message}")
                print("\n[You] > ", end="", flush=True)
    except websockets.exceptions.ConnectionClosed as e:
        print(f"\n❌ Connection closed: {e.code} - {e.reason}")


async def send_messages(websocket, user_id: str) -> None:
    """Task to read user input and send commands."""
    loop = asyncio.get_running_loop()

    print("\n✅ Connected! Commands: /join <room>, /leave <room>, /call <target> <payload>")
    print("   Type 'quit' or 'exit' to disconnect.\n")

    while True:
        try:
            print("[You] > ", end="", flush=True)
            user_input = await loop.run_in_executor(None, sys.stdin.readline)
            user_input = user_input.strip()

            if not user_input:
                continue

            if user_input.lower() in ("quit", "exit"):
                print("👋 Disconnecting...")
                await websocket.close()
                break

            msg = parse_command(user_input, user_id)
            if msg is None:
                print("   ⚠️  Unknown command")
                continue

            await websocket.send(json.dumps(msg))
            print(f"   ✓ Sent: {msg['type']}")

        except websockets.exceptions.ConnectionClosed:
            print("\n❌ Connection was closed")
            break


async def main(server_url: str, user_id: str, display_name: str) -> None:
    """Connect, register the identity, then pump input and output."""
    ws_url = f"{server_url}/v1/ws"

    print(f"🔌 Connecting to: {ws_url}")
    print("-" * 60)

    try:
        async with websockets.connect(ws_url) as websocket:
            await websocket.send(json.dumps({
                "type": "register_identity",
                "user_id": user_id,
                "profile": {"name": display_name},
            }))

            receive_task = asyncio.create_task(receive_messages(websocket))
            send_task = asyncio.create_task(send_messages(websocket, user_id))

            done, pending = await asyncio.wait(
                [receive_task, send_task],
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    except websockets.exceptions.InvalidURI as e:
        print(f"❌ Invalid URI: {e}")
        print("   Make sure the server URL starts with ws:// or wss://")
    except ConnectionRefusedError:
        print("❌ Connection refused. Is the server running?")


if __name__ == "__main__":
    if len(sys.argv) not in (3, 4):
        print(__doc__)
        print("\nError: Missing arguments!")
        print(f"Usage: python {sys.argv[0]} <server_url> <user_id> [display_name]")
        sys.exit(1)

    server_url = sys.argv[1].rstrip("/")
    user_id = sys.argv[2]
    display_name = sys.argv[3] if len(sys.argv) == 4 else user_id

    if not server_url.startswith(("ws://", "wss://")):
        print("⚠️  Warning: URL should start with ws:// or wss://")
        print("   Assuming ws:// prefix...")
        server_url = f"ws://{server_url}"

    try:
        asyncio.run(main(server_url, user_id, display_name))
    except KeyboardInterrupt:
        print("\n\n👋 Interrupted by user. Goodbye!")
        sys.exit(0)
