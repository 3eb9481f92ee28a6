#!/usr/bin/env python3
"""
Seed a running Fleet Maintenance API with the demo fleet.

Creates ten vehicles across the three depots and four technicians, then
optionally runs task generation and assignment so the dashboard has data.

Usage:
    python scripts/seed_demo_fleet.py --base-url http://localhost:8000 --generate --assign
"""

import argparse
import os
import sys
from datetime import date, timedelta

import requests
from dotenv import load_dotenv

load_dotenv()

DEMO_VEHICLES = [
    ("TRK-001", "Truck", "Depot A", 45680, 30, "Monthly"),
    ("TRK-002", "Truck", "Depot B", 32450, 25, "Monthly"),
    ("VAN-205", "Van", "Depot A", 28900, 10, "Bi-weekly"),
    ("VAN-206", "Van", "Field Office", 19800, 3, "Weekly"),
    ("VAN-207", "Van", "Depot B", 41200, 35, "Monthly"),
    ("CAR-101", "Car", "Field Office", 15600, 2, "Weekly"),
    ("CAR-102", "Car", "Depot A", 23400, 12, "Bi-weekly"),
    ("MOTO-301", "Motorcycle", "Depot B", 8900, 4, "Weekly"),
    ("MOTO-302", "Motorcycle", "Field Office", 12300, 9, "Bi-weekly"),
    ("TRK-003", "Truck", "Field Office", 67800, 28, "Monthly"),
]

DEMO_TECHNICIANS = [
    ("TECH-001", "Mike Johnson", ["Depot A", "Field Office"], 3, "mike.johnson@fleet.example", "+1-555-0101"),
    ("TECH-002", "Sarah Williams", ["Depot B"], 3, "sarah.williams@fleet.example", "+1-555-0102"),
    ("TECH-003", "David Chen", ["Depot A", "Depot B"], 3, "david.chen@fleet.example", "+1-555-0103"),
    ("TECH-004", "Lisa Rodriguez", ["Field Office"], 2, "lisa.rodriguez@fleet.example", "+1-555-0104"),
]


def build_vehicles(today: date):
    """Demo vehicles with last service dates relative to today."""
    return [
        {
            "vehicle_id": vehicle_id,
            "type": vehicle_type,
            "location_base": depot,
            "mileage": mileage,
            "last_service_date": (today - timedelta(days=days_ago)).isoformat(),
            "service_interval": interval,
            "status": "Active",
        }
        for vehicle_id, vehicle_type, depot, mileage, days_ago, interval in DEMO_VEHICLES
    ]


def build_technicians():
    return [
        {
            "technician_id": technician_id,
            "name": name,
            "assigned_depots": depots,
            "max_tasks": max_tasks,
            "email": email,
            "phone": phone,
        }
        for technician_id, name, depots, max_tasks, email, phone in DEMO_TECHNICIANS
    ]


def post(session: requests.Session, url: str, payload) -> requests.Response:
    response = session.post(url, json=payload, timeout=30)
    if response.status_code == 409:
        print(f"  already exists: {url}")
    elif response.status_code >= 400:
        print(f"  ERROR {response.status_code} from {url}: {response.text}")
    return response


def seed(base_url: str, api_key: str = None, generate: bool = False, force: bool = False,
         assign: bool = False) -> int:
    """Seed the API and return a process exit code."""
    session = requests.Session()
    if api_key:
        session.headers["X-API-Key"] = api_key

    print(f"Seeding demo fleet into {base_url}")
    print("=" * 60)

    try:
        for vehicle in build_vehicles(date.today()):
            post(session, f"{base_url}/vehicles/", vehicle)
        print(f"Vehicles: {len(DEMO_VEHICLES)} submitted")

        for technician in build_technicians():
            post(session, f"{base_url}/technicians/", technician)
        print(f"Technicians: {len(DEMO_TECHNICIANS)} submitted")

        if generate:
            response = post(session, f"{base_url}/maintenance/generate", {"force_generate": force})
            if response.ok:
                print(f"Generated tasks: {response.json()['generated_count']}")

        if assign:
            response = post(session, f"{base_url}/maintenance/assign", None)
            if response.ok:
                body = response.json()
                print(f"Assigned tasks: {body['assigned_count']} ({body['unassigned_count']} left pending)")
                for task_id, technician_id in body["assignments"].items():
                    print(f"    {task_id:30s} -> {technician_id}")

    except requests.RequestException as e:
        print(f"\nRequest failed: {e}")
        print("Make sure the API is running and reachable")
        return 1

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Fleet Maintenance API with demo data")
    parser.add_argument("--base-url", default=os.getenv("FLEET_API_URL", "http://localhost:8000"))
    parser.add_argument("--api-key", default=os.getenv("API_KEY"))
    parser.add_argument("--generate", action="store_true", help="Run task generation after seeding")
    parser.add_argument("--force", action="store_true", help="Use force mode for generation")
    parser.add_argument("--assign", action="store_true", help="Run task assignment after seeding")
    args = parser.parse_args()

    sys.exit(seed(args.base_url.rstrip("/"), args.api_key, args.generate, args.force, args.assign))
