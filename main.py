#!/usr/bin/env python3
# pdptw-dispatch/main.py
"""
Command-Line Interface for comparing the PDPTW allocation engines.

Generates a seeded synthetic snapshot and runs the selected engines on it,
then prints a comparison table.

Usage:
    python main.py                                   # Run with defaults
    python main.py --requests 30 --vehicles 5        # Bigger instance
    python main.py --solvers cheapest_insertion auction
    python main.py -v                                # INFO logging (-vv for DEBUG)

Exit Codes:
    0: Success
    1: Invalid arguments
    2: Solver error
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from pdptw import (
    AuctionCoordinator,
    Bidder,
    ChangeEvent,
    DispatchError,
    GlobalState,
    InfeasibleInsertion,
    InsertionCostBidStrategy,
    ObjectiveFunction,
    ParcelState,
    Request,
    Schedule,
    TimeWindow,
    VehicleState,
    create_solver,
)
from pdptw.cheapest_insertion import cheapest_route_insertion
from pdptw.objective import compute_route_stats

AVAILABLE_ENGINES = ["cheapest_insertion", "late_acceptance", "auction"]

AREA_SIZE = 100.0
DEPOT = (AREA_SIZE / 2, AREA_SIZE / 2)


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  PDPTW DISPATCH - Allocation Engine Comparison")
    print("  Cheapest Insertion / Late Acceptance / Auction")
    print("=" * 60 + "\n")


def generate_snapshot(num_requests: int, num_vehicles: int, seed: int) -> GlobalState:
    """
    Build a random snapshot in a square area around a central depot.

    Pickup windows open somewhere in the first 200 time units and stay open
    for 60 to 120 units; the delivery window opens at the pickup window
    begin and closes 100 to 200 units after the pickup window closes.
    """
    rng = random.Random(seed)

    def point() -> tuple:
        return (rng.uniform(0, AREA_SIZE), rng.uniform(0, AREA_SIZE))

    requests: List[Request] = []
    for i in range(num_requests):
        begin = rng.uniform(0, 200)
        pickup_end = begin + rng.uniform(60, 120)
        requests.append(Request(
            request_id=f"R{i:03d}",
            pickup_location=point(),
            delivery_location=point(),
            pickup_window=TimeWindow(begin, pickup_end),
            delivery_window=TimeWindow(begin, pickup_end + rng.uniform(100, 200)),
            pickup_duration=5.0,
            delivery_duration=5.0,
        ))

    vehicles = [VehicleState(vehicle_id=f"V{k}", position=DEPOT) for k in range(num_vehicles)]
    return GlobalState(available=tuple(requests), vehicles=tuple(vehicles), time=0.0, depot=DEPOT)


def run_auction(state: GlobalState, seed: int, objective: ObjectiveFunction) -> Schedule:
    """
    Allocate the requests one by one through an auction.

    Every bidder bids its marginal insertion cost; the winner's change
    listener inserts the request into that vehicle's route.
    """
    coordinator = AuctionCoordinator(random.Random(seed))
    strategies = [InsertionCostBidStrategy(state, i, objective) for i in range(len(state.vehicles))]
    bidders = [
        Bidder(strategy, lambda request: ParcelState.AVAILABLE, name=vehicle.vehicle_id)
        for strategy, vehicle in zip(strategies, state.vehicles)
    ]
    current = {"state": state}

    def replan(event: ChangeEvent) -> None:
        index = bidders.index(event.issuer)
        snapshot = current["state"]
        route = snapshot.vehicles[index].committed_route()
        for request in sorted(event.issuer.parcels, key=lambda r: r.request_id):
            if request in route:
                continue
            found = cheapest_route_insertion(objective, snapshot, index, route, request)
            if found is None:
                raise InfeasibleInsertion(f"{event.issuer} cannot insert {request}", request=request)
            route = found[1]

        vehicles = list(snapshot.vehicles)
        vehicles[index] = replace(vehicles[index], route=route)
        current["state"] = replace(snapshot, vehicles=tuple(vehicles))
        for strategy in strategies:
            strategy.snapshot = current["state"]

    for bidder in bidders:
        bidder.add_change_listener(replan)
        coordinator.register(bidder)

    for request in sorted(state.available, key=lambda r: r.pickup_window.begin):
        coordinator.receive_parcel(request, request.pickup_window.begin)

    return [vehicle.committed_route() for vehicle in current["state"].vehicles]


def summarize(state: GlobalState, schedule: Schedule, objective: ObjectiveFunction, runtime: float) -> Dict[str, Any]:
    """Compute the comparison metrics of one schedule."""
    stats = [compute_route_stats(state, i, route) for i, route in enumerate(schedule)]
    return {
        "Objective": objective.schedule_cost(state, schedule),
        "Travel Time": sum(s.travel_time for s in stats),
        "Tardiness": sum(s.tardiness for s in stats),
        "Routes Used": sum(1 for route in schedule if route),
        "Runtime (s)": runtime,
    }


def run_engine_safe(
    engine: str,
    state: GlobalState,
    seed: int,
    iterations: int,
    history: int
) -> Optional[Dict[str, Any]]:
    """
    Run one engine with error handling.

    Returns:
        Metrics dictionary or None if the engine failed
    """
    objective = ObjectiveFunction()
    runners: Dict[str, Callable[[], Schedule]] = {
        "cheapest_insertion": lambda: create_solver("cheapest_insertion", objective=objective).solve(state),
        "late_acceptance": lambda: create_solver(
            "late_acceptance", objective=objective, history_length=history, max_iterations=iterations
        ).solve(state, seed=seed),
        "auction": lambda: run_auction(state, seed, objective),
    }

    started = time.perf_counter()
    try:
        schedule = runners[engine]()
    except (DispatchError, ValueError) as e:
        print(f"ERROR: Engine '{engine}' failed: {e}")
        return None
    return summarize(state, schedule, objective, time.perf_counter() - started)


def print_results_table(results: Dict[str, Dict[str, Any]]) -> None:
    """
    Print a formatted comparison table of results.

    Args:
        results: Dictionary mapping engine name to metrics
    """
    df = pd.DataFrame.from_dict(results, orient="index")
    df.index.name = "Engine"

    print("\n" + "=" * 60)
    print("  FINAL RESULTS COMPARISON")
    print("=" * 60 + "\n")
    print(df.to_string(float_format=lambda v: f"{v:.2f}"))

    best = df["Objective"].idxmin()
    print(f"\n  Best objective: {best} ({df.loc[best, 'Objective']:.2f})")
    print("=" * 60 + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="PDPTW allocation engine comparison CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # 10 requests, 3 vehicles, all engines
  python main.py --requests 40 --vehicles 6       # Bigger instance
  python main.py --solvers late_acceptance --iterations 50000
        """
    )

    parser.add_argument(
        "--requests", "-n",
        type=int,
        default=10,
        help="Number of requests in the synthetic snapshot (default: 10)"
    )

    parser.add_argument(
        "--vehicles", "-k",
        type=int,
        default=3,
        help="Number of vehicles (default: 3)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for the snapshot and every stochastic engine (default: 42)"
    )

    parser.add_argument(
        "--solvers", "-s",
        nargs="+",
        default=list(AVAILABLE_ENGINES),
        help=f"Engines to compare. Options: {', '.join(AVAILABLE_ENGINES)}"
    )

    parser.add_argument(
        "--iterations",
        type=int,
        default=20000,
        help="Late acceptance iteration budget (default: 20000)"
    )

    parser.add_argument(
        "--history",
        type=int,
        default=500,
        help="Late acceptance history length L (default: 500)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log engine activity (-v INFO, -vv DEBUG)"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    # Validate arguments
    for engine in args.solvers:
        if engine not in AVAILABLE_ENGINES:
            print(f"ERROR: Unknown engine '{engine}'")
            print(f"Available engines: {', '.join(AVAILABLE_ENGINES)}")
            return 1
    if args.requests < 0 or args.vehicles < 1:
        print("ERROR: Need at least one vehicle and a non-negative number of requests")
        return 1
    if args.iterations < 0 or args.history < 1:
        print("ERROR: Iterations must be non-negative and history positive")
        return 1

    print_header()

    state = generate_snapshot(args.requests, args.vehicles, args.seed)
    print(f"Generated {len(state.available)} requests and {len(state.vehicles)} vehicles (seed {args.seed})")

    print(f"\nRunning engines: {', '.join(args.solvers)}")
    print("-" * 40)

    all_results: Dict[str, Dict[str, Any]] = {}

    for engine in args.solvers:
        print(f"\n[{engine.upper()}] Solving...")
        results = run_engine_safe(engine, state, args.seed, args.iterations, args.history)

        if results is None:
            print(f"WARN: Skipping '{engine}' due to error")
            continue

        all_results[engine] = results

    if not all_results:
        print("ERROR: No engine completed successfully")
        return 2

    print_results_table(all_results)

    return 0


if __name__ == "__main__":
    sys.exit(main())
