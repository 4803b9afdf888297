#!/usr/bin/env python3
"""Tail the live dispatch feed from a running server, one line per event."""

import argparse
import asyncio
import json
from typing import Any, Dict

from websockets import connect


def format_event(msg: Dict[str, Any]) -> str:
    typ = msg.get('type', '?')
    if typ == 'snapshot':
        ambulances = msg.get('ambulances', [])
        free = sum(1 for a in ambulances if a.get('status') == 'available')
        return f"snapshot: {len(ambulances)} ambulances ({free} available), {len(msg.get('incidents', []))} incidents"
    if typ == 'incident:update':
        i = msg['incident']
        unit = i.get('assigned_ambulance_id') or '-'
        return f"incident {i['id']}: {i['status']} unit={unit} eta={i.get('eta') or '-'} at {i.get('created_label', '')}"
    if typ in ('ambulance:update', 'fleet:positions'):
        parts = [
            f"{a['vehicle_number']}={a['status']}@({a['latitude']:.4f},{a['longitude']:.4f})"
            for a in msg.get('ambulances', [])
        ]
        return f"{typ}: " + " ".join(parts)
    return f"{typ}: {json.dumps(msg)}"


async def run(ws_url: str, show_positions: bool):
    async with connect(ws_url) as websocket:
        print('Connected to', ws_url)
        async for raw in websocket:
            msg = json.loads(raw)
            if msg.get('type') == 'fleet:positions' and not show_positions:
                continue
            print(format_event(msg))


def main():
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument('--ws', default='ws://localhost:8000/ws')
    p.add_argument('--positions', action='store_true', help='also print simulator position ticks')
    args = p.parse_args()
    try:
        asyncio.run(run(args.ws, args.positions))
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main()
