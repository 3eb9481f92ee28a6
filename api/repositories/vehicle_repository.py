from typing import Dict, List, Optional
from datetime import datetime, timezone

from database import BaseRepository
from models.vehicle import Vehicle


class VehicleRepository(BaseRepository):
    """Repository for Vehicle entity operations"""

    @staticmethod
    def _to_params(vehicle: Vehicle) -> Dict:
        """Flatten a vehicle into Neo4j-storable properties"""
        params = vehicle.model_dump(mode="json")
        now = datetime.now(timezone.utc).isoformat()
        params['created_at'] = params.get('created_at') or now
        params['updated_at'] = now
        return params

    def create(self, vehicle: Vehicle) -> Dict:
        """Create a new vehicle node"""
        query = """
        CREATE (v:Vehicle {
            vehicle_id: $vehicle_id,
            type: $type,
            location_base: $location_base,
            mileage: $mileage,
            last_service_date: $last_service_date,
            service_interval: $service_interval,
            status: $status,
            created_at: $created_at,
            updated_at: $updated_at
        })
        RETURN v
        """
        result = self.execute_query(query, self._to_params(vehicle))
        return result[0]['v'] if result else None

    def get_by_id(self, vehicle_id: str) -> Optional[Dict]:
        """Get a vehicle by its identifier"""
        query = """
        MATCH (v:Vehicle {vehicle_id: $vehicle_id})
        RETURN v
        """
        result = self.execute_query(query, {"vehicle_id": vehicle_id})
        return result[0]['v'] if result else None

    def get_all(self, skip: int = 0, limit: int = 1000, filters: Dict = None) -> List[Dict]:
        """Get all vehicles with pagination and filters"""
        where_clauses = []
        params = {"skip": skip, "limit": limit}

        if filters:
            for field in ('location_base', 'service_interval', 'status', 'type'):
                if filters.get(field) is not None:
                    where_clauses.append(f"v.{field} = ${field}")
                    params[field] = getattr(filters[field], 'value', filters[field])

        where_clause = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        query = f"""
        MATCH (v:Vehicle)
        {where_clause}
        RETURN v
        ORDER BY v.vehicle_id
        SKIP $skip
        LIMIT $limit
        """

        result = self.execute_query(query, params)
        return [record['v'] for record in result]

    def update(self, vehicle_id: str, updates: Dict) -> Optional[Dict]:
        """Update a vehicle's properties"""
        set_clauses = []
        params = {"vehicle_id": vehicle_id}

        for key, value in updates.items():
            if value is not None:
                set_clauses.append(f"v.{key} = ${key}")
                if hasattr(value, 'isoformat'):
                    params[key] = value.isoformat()
                else:
                    params[key] = getattr(value, 'value', value)

        if not set_clauses:
            return None

        # Always update updated_at
        set_clauses.append("v.updated_at = $updated_at")
        params['updated_at'] = datetime.now(timezone.utc).isoformat()

        set_clause = ", ".join(set_clauses)

        query = f"""
        MATCH (v:Vehicle {{vehicle_id: $vehicle_id}})
        SET {set_clause}
        RETURN v
        """

        result = self.execute_query(query, params)
        return result[0]['v'] if result else None

    def delete(self, vehicle_id: str) -> bool:
        """Delete a vehicle and its relationships"""
        query = """
        MATCH (v:Vehicle {vehicle_id: $vehicle_id})
        DETACH DELETE v
        RETURN count(v) as deleted
        """
        result = self.execute_query(query, {"vehicle_id": vehicle_id})
        return result[0]['deleted'] > 0 if result else False

    def exists(self, vehicle_id: str) -> bool:
        """Check if a vehicle exists"""
        query = """
        MATCH (v:Vehicle {vehicle_id: $vehicle_id})
        RETURN count(v) > 0 as exists
        """
        result = self.execute_query(query, {"vehicle_id": vehicle_id})
        return result[0]['exists'] if result else False

    def bulk_create(self, vehicles: List[Vehicle]) -> Dict:
        """Bulk create vehicles"""
        query = """
        UNWIND $vehicles as vehicle
        CREATE (v:Vehicle)
        SET v = vehicle
        RETURN count(v) as created
        """
        vehicles_data = [self._to_params(vehicle) for vehicle in vehicles]
        result = self.execute_query(query, {"vehicles": vehicles_data})
        return {"created": result[0]['created']} if result else {"created": 0}

    def get_models(self) -> List[Vehicle]:
        """Load the whole fleet as Vehicle models"""
        return [Vehicle(**record) for record in self.get_all(limit=100000)]
