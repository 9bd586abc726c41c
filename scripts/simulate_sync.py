#!/usr/bin/env python3
"""
Simulate a client scrolling through a large list over an unreliable channel.

The simulated client applies every committed batch to its own copy of the
window and echoes the update id back. The channel drops, duplicates and delays
acknowledgments at configurable rates. At the end the client copy is checked
against the data provider.

Usage:
    python scripts/simulate_sync.py [--config CONFIG_PATH] [--rows N] [--steps N]
        [--drop-rate P] [--duplicate-rate P] [--seed N]
"""

import argparse
import random
import sys
from datetime import datetime
from typing import Any

import structlog

from windowsync import ListDataProvider, RecordingTransport, create_engine
from windowsync.models.operations import ClearItems, Confirm, SetItems, UpdateData, UpdateSize
from windowsync.utils.config_loader import ConfigLoader, ConfigurationError
from windowsync.utils.logging_config import configure_logging_from_config

log = structlog.stdlib.get_logger()


class SimulatedClient:
    """Client-side mirror of the window, built only from received operations."""

    def __init__(self, key_field: str) -> None:
        self.key_field = key_field
        self.rows: list[dict[str, Any] | None] = []
        self.confirmed: list[int] = []

    def apply(self, operations: list) -> None:
        for operation in operations:
            if isinstance(operation, UpdateSize):
                self.rows = (self.rows + [None] * operation.size)[: operation.size]
            elif isinstance(operation, SetItems):
                for offset, item in enumerate(operation.items):
                    self.rows[operation.start + offset] = item
            elif isinstance(operation, ClearItems):
                for index in range(operation.start, operation.start + operation.length):
                    self.rows[index] = None
            elif isinstance(operation, UpdateData):
                by_key = {item[self.key_field]: item for item in operation.items}
                self.rows = [
                    by_key.get(row[self.key_field], row) if row is not None else None
                    for row in self.rows
                ]
            elif isinstance(operation, Confirm):
                self.confirmed.append(operation.update_id)


def run_simulation(
    config_path: str | None = None,
    rows: int = 10_000,
    steps: int = 200,
    drop_rate: float = 0.1,
    duplicate_rate: float = 0.1,
    seed: int = 0,
) -> dict:
    """
    Run one simulated session.

    Args:
        config_path: Optional path to configuration file
        rows: Number of rows in the simulated dataset
        steps: Number of scroll steps
        drop_rate: Probability that an acknowledgment is lost
        duplicate_rate: Probability that an acknowledgment is delivered twice
        seed: Random seed

    Returns:
        Dictionary with simulation statistics
    """
    start_time = datetime.now()
    rng = random.Random(seed)

    config = ConfigLoader().load_config(config_path)
    configure_logging_from_config(config.logging)

    provider = ListDataProvider([f"row-{i}" for i in range(rows)])
    transport = RecordingTransport()
    engine = create_engine(provider, transport, config=config.sync)
    client = SimulatedClient(config.sync.key_field)

    pending_acks: list[int] = []
    accepted = stale = batches = 0
    window_length = 50

    for _ in range(steps):
        engine.request_range(rng.randrange(0, max(1, rows - window_length)), window_length)

        batch = engine.flush()
        if batch is not None:
            batches += 1
            client.apply(transport.operations)
            transport.clear()
            if rng.random() >= drop_rate:
                pending_acks.append(batch.update_id)
            if rng.random() < duplicate_rate:
                pending_acks.append(batch.update_id)

        rng.shuffle(pending_acks)
        while pending_acks:
            if engine.acknowledge(pending_acks.pop()):
                accepted += 1
            else:
                stale += 1

        if engine.in_flight is not None and rng.random() < 0.5:
            # client retransmits its last confirmation
            pending_acks.append(client.confirmed[-1])

    if engine.in_flight is not None:
        engine.acknowledge(engine.in_flight.update_id)

    window = engine.acknowledged_range
    expected = provider.fetch(window.start, window.length)
    shown = [client.rows[index] for index in window.indices()]
    consistent = [row["label"]["value"] if row else None for row in shown] == expected

    stats = {
        "success": consistent,
        "rows": rows,
        "steps": steps,
        "batches": batches,
        "accepted_acks": accepted,
        "stale_acks": stale,
        "tracked_keys": len(engine.key_registry),
        "duration_seconds": (datetime.now() - start_time).total_seconds(),
    }
    log.info("simulation_completed", **stats)
    return stats


def main():
    """Main entry point for the simulation script."""
    parser = argparse.ArgumentParser(description="Simulate window synchronization over a lossy channel")
    parser.add_argument("--config", type=str, help="Path to configuration file", default=None)
    parser.add_argument("--rows", type=int, default=10_000, help="Number of rows in the dataset")
    parser.add_argument("--steps", type=int, default=200, help="Number of scroll steps")
    parser.add_argument("--drop-rate", type=float, default=0.1, help="Acknowledgment loss rate")
    parser.add_argument(
        "--duplicate-rate", type=float, default=0.1, help="Acknowledgment duplication rate"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")

    args = parser.parse_args()

    try:
        stats = run_simulation(
            config_path=args.config,
            rows=args.rows,
            steps=args.steps,
            drop_rate=args.drop_rate,
            duplicate_rate=args.duplicate_rate,
            seed=args.seed,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    print("\n" + "=" * 60)
    print("SIMULATION SUMMARY")
    print("=" * 60)
    print(f"Status: {'CONSISTENT' if stats['success'] else 'INCONSISTENT'}")
    print(f"Batches: {stats['batches']}")
    print(f"Accepted Acks: {stats['accepted_acks']}")
    print(f"Stale Acks: {stats['stale_acks']}")
    print(f"Tracked Keys: {stats['tracked_keys']}")
    print(f"Duration: {stats['duration_seconds']:.2f} seconds")
    print("=" * 60)

    sys.exit(0 if stats["success"] else 1)


if __name__ == "__main__":
    main()
