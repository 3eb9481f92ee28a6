"""
CSV Parser Utility Module for fleet vehicle import.

This module provides pure functions for parsing vehicle records from CSV
exports, handling the header and formatting variations fleet spreadsheets
commonly have.
"""

import csv
import io
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from models.vehicle import LocationBase, ServiceInterval, VehicleStatus, VehicleType


# Accepted header spellings for each vehicle field
COLUMN_ALIASES = {
    'vehicle_id': ['id', 'vehicle_id', 'vehicle id'],
    'type': ['type', 'vehicle type', 'category'],
    'location_base': ['location_base', 'location base', 'depot', 'location'],
    'mileage': ['mileage', 'odometer'],
    'last_service_date': ['last_service_date', 'last service date', 'last service'],
    'service_interval': ['service_interval', 'service interval', 'interval'],
    'status': ['status'],
}

DATE_FORMATS = ['%Y-%m-%d', '%m/%d/%Y', '%d.%m.%Y']


def parse_number(value: str) -> Optional[int]:
    """
    Parse number string with commas to integer.

    Handles:
    - "45,680" -> 45680
    - "  156  " -> 156
    - "-", "", None -> None

    Args:
        value: String representation of number

    Returns:
        Integer value or None if unparseable
    """
    if not value or str(value).strip() in ['-', '', 'n/a', 'N/A']:
        return None

    try:
        cleaned = str(value).replace(',', '').replace(' ', '').replace('"', '').strip()
        return int(cleaned)
    except (ValueError, TypeError):
        return None


def parse_date(value: str) -> Optional[date]:
    """
    Parse a service date in ISO, US or European notation.

    Args:
        value: String representation of a date

    Returns:
        date or None if unparseable
    """
    if not value or not str(value).strip():
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(str(value).strip(), fmt).date()
        except ValueError:
            continue
    return None


def parse_enum(value: str, enum_cls) -> Optional[str]:
    """Match a free-text value against an enum's values, case-insensitively."""
    if not value:
        return None
    normalized = " ".join(str(value).split()).lower()
    for member in enum_cls:
        if member.value.lower() == normalized:
            return member.value
    return None


def _normalize_row(row: Dict[str, str]) -> Dict[str, str]:
    """Map raw CSV headers onto vehicle field names."""
    lowered = {
        (key or '').strip().lower(): (value or '').strip()
        for key, value in row.items()
    }
    normalized = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lowered:
                normalized[field_name] = lowered[alias]
                break
        else:
            normalized[field_name] = ''
    return normalized


def parse_vehicles_csv(csv_content: str) -> List[Dict]:
    """
    Parse vehicles from CSV content.

    Values that cannot be parsed are kept as None so validation can report
    them with their row number.

    Args:
        csv_content: CSV text with a header row

    Returns:
        List of vehicle dictionaries, each with a ``row_number``

    Raises:
        ValueError: If the CSV has no header row
    """
    # Skip empty lines at the beginning
    lines = [line for line in csv_content.split('\n') if line.strip()]
    reader = csv.DictReader(io.StringIO('\n'.join(lines)))

    if not reader.fieldnames:
        raise ValueError("CSV file appears to be empty or invalid")

    vehicles = []
    for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is line 1)
        if all(not (v or '').strip() for v in row.values()):
            continue

        raw = _normalize_row(row)
        vehicles.append({
            'vehicle_id': raw['vehicle_id'],
            'type': parse_enum(raw['type'], VehicleType),
            'location_base': parse_enum(raw['location_base'], LocationBase),
            'mileage': parse_number(raw['mileage']),
            'last_service_date': parse_date(raw['last_service_date']),
            'service_interval': parse_enum(raw['service_interval'], ServiceInterval),
            'status': parse_enum(raw['status'], VehicleStatus) or VehicleStatus.ACTIVE.value,
            'row_number': row_num,
        })

    return vehicles


def validate_vehicle_data(vehicle: Dict) -> Tuple[bool, List[str]]:
    """
    Validate parsed vehicle data for required fields and ranges.

    Args:
        vehicle: Dictionary produced by parse_vehicles_csv

    Returns:
        Tuple of (is_valid, list of validation errors)
    """
    errors = []

    if not vehicle.get('vehicle_id'):
        errors.append("Missing required field: vehicle_id")

    for field_name in ('type', 'location_base', 'service_interval', 'last_service_date'):
        if vehicle.get(field_name) is None:
            errors.append(f"Missing or invalid {field_name}")

    mileage = vehicle.get('mileage')
    if mileage is None:
        errors.append("Missing or invalid mileage")
    elif mileage < 0:
        errors.append(f"Invalid mileage value: {mileage}")

    return len(errors) == 0, errors
