from typing import Dict, List, Optional
from datetime import datetime, timezone

from database import BaseRepository
from models.maintenance_task import ACTIVE_STATUSES
from models.technician import Technician


# Appended to every technician read so active_task_count is derived from the
# live task graph instead of a stored counter
WORKLOAD_PROJECTION = """
OPTIONAL MATCH (m:MaintenanceTask)
WHERE m.technician_id = t.technician_id AND m.status IN $active_statuses
WITH t, count(m) as active_task_count
RETURN t {.*, active_task_count: active_task_count} as t
ORDER BY t.name
"""


class TechnicianRepository(BaseRepository):
    """Repository for Technician entity operations"""

    @staticmethod
    def _active_statuses() -> List[str]:
        return [status.value for status in ACTIVE_STATUSES]

    def create(self, technician: Technician) -> Dict:
        """Create a new technician node"""
        query = """
        CREATE (t:Technician {
            technician_id: $technician_id,
            name: $name,
            assigned_depots: $assigned_depots,
            max_tasks: $max_tasks,
            email: $email,
            phone: $phone,
            created_at: $created_at
        })
        WITH t
        """ + WORKLOAD_PROJECTION

        params = technician.model_dump(mode="json", exclude={"active_task_count"})
        params['created_at'] = datetime.now(timezone.utc).isoformat()
        params['active_statuses'] = self._active_statuses()

        result = self.execute_query(query, params)
        return result[0]['t'] if result else None

    def get_by_id(self, technician_id: str) -> Optional[Dict]:
        """Get a technician by identifier, with derived workload"""
        query = """
        MATCH (t:Technician {technician_id: $technician_id})
        """ + WORKLOAD_PROJECTION
        result = self.execute_query(query, {
            "technician_id": technician_id,
            "active_statuses": self._active_statuses(),
        })
        return result[0]['t'] if result else None

    def get_all(self, depot: Optional[str] = None) -> List[Dict]:
        """Get all technicians, optionally only those covering a depot"""
        where_clause = "WHERE $depot IN t.assigned_depots" if depot else ""
        query = f"""
        MATCH (t:Technician)
        {where_clause}
        """ + WORKLOAD_PROJECTION

        result = self.execute_query(query, {
            "depot": depot,
            "active_statuses": self._active_statuses(),
        })
        return [record['t'] for record in result]

    def update(self, technician_id: str, updates: Dict) -> Optional[Dict]:
        """Update a technician's properties"""
        set_clauses = []
        params = {
            "technician_id": technician_id,
            "active_statuses": self._active_statuses(),
        }

        for key, value in updates.items():
            # Workload is derived, never stored
            if value is None or key == 'active_task_count':
                continue
            set_clauses.append(f"t.{key} = ${key}")
            if isinstance(value, list):
                params[key] = [getattr(item, 'value', item) for item in value]
            else:
                params[key] = value

        if not set_clauses:
            return None

        set_clauses.append("t.updated_at = $updated_at")
        params['updated_at'] = datetime.now(timezone.utc).isoformat()

        query = f"""
        MATCH (t:Technician {{technician_id: $technician_id}})
        SET {", ".join(set_clauses)}
        WITH t
        """ + WORKLOAD_PROJECTION

        result = self.execute_query(query, params)
        return result[0]['t'] if result else None

    def delete(self, technician_id: str) -> bool:
        """Delete a technician and its relationships"""
        query = """
        MATCH (t:Technician {technician_id: $technician_id})
        DETACH DELETE t
        RETURN count(t) as deleted
        """
        result = self.execute_query(query, {"technician_id": technician_id})
        return result[0]['deleted'] > 0 if result else False

    def exists(self, technician_id: str) -> bool:
        """Check if a technician exists"""
        query = """
        MATCH (t:Technician {technician_id: $technician_id})
        RETURN count(t) > 0 as exists
        """
        result = self.execute_query(query, {"technician_id": technician_id})
        return result[0]['exists'] if result else False

    def get_models(self) -> List[Technician]:
        """Load every technician as a Technician model"""
        return [Technician(**record) for record in self.get_all()]
