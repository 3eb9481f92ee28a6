import json
import logging
from typing import Dict, List, Optional
from datetime import datetime, timezone

from database import BaseRepository
from models.maintenance_task import MaintenanceTask

logger = logging.getLogger(__name__)


class MaintenanceTaskRepository(BaseRepository):
    """Repository for MaintenanceTask entity operations.

    Tasks are stored as ``MaintenanceTask`` nodes linked to the vehicle they
    service (``SERVICES``) and, once assigned, to their technician
    (``ASSIGNED_TO``). Dates are stored as ISO strings and ``parts_used`` as a
    JSON string, since Neo4j properties cannot hold nested maps.
    """

    @staticmethod
    def _to_params(task: MaintenanceTask) -> Dict:
        """Flatten a task into Neo4j-storable properties"""
        params = task.model_dump(mode="json")
        params['parts_used'] = json.dumps(params.get('parts_used') or [])
        return params

    @staticmethod
    def _from_node(node: Dict) -> Dict:
        """Decode stored properties back into task fields"""
        record = dict(node)
        parts = record.get('parts_used')
        if isinstance(parts, str):
            record['parts_used'] = json.loads(parts) if parts else []
        record.setdefault('before_photos', [])
        record.setdefault('after_photos', [])
        return record

    def create(self, task: MaintenanceTask) -> Optional[Dict]:
        """Create a single task node and link it to its vehicle"""
        query = """
        CREATE (m:MaintenanceTask)
        SET m = $task
        WITH m
        OPTIONAL MATCH (v:Vehicle {vehicle_id: m.vehicle_id})
        FOREACH (_ IN CASE WHEN v IS NULL THEN [] ELSE [1] END |
            MERGE (m)-[:SERVICES]->(v))
        RETURN m
        """
        result = self.execute_query(query, {"task": self._to_params(task)})
        return self._from_node(result[0]['m']) if result else None

    def bulk_create(self, tasks: List[MaintenanceTask]) -> Dict:
        """Bulk create tasks, linking each to its vehicle"""
        if not tasks:
            return {"created": 0}

        query = """
        UNWIND $tasks as task
        CREATE (m:MaintenanceTask)
        SET m = task
        WITH m
        OPTIONAL MATCH (v:Vehicle {vehicle_id: m.vehicle_id})
        FOREACH (_ IN CASE WHEN v IS NULL THEN [] ELSE [1] END |
            MERGE (m)-[:SERVICES]->(v))
        """
        summary = self.execute_write(query, {"tasks": [self._to_params(task) for task in tasks]})
        return {"created": summary["nodes_created"]}

    def get_by_id(self, task_id: str) -> Optional[Dict]:
        """Get a task by its identifier"""
        query = """
        MATCH (m:MaintenanceTask {task_id: $task_id})
        RETURN m
        """
        result = self.execute_query(query, {"task_id": task_id})
        return self._from_node(result[0]['m']) if result else None

    def exists(self, task_id: str) -> bool:
        """Check if a task exists"""
        query = """
        MATCH (m:MaintenanceTask {task_id: $task_id})
        RETURN count(m) > 0 as exists
        """
        result = self.execute_query(query, {"task_id": task_id})
        return result[0]['exists'] if result else False

    def get_all(self, skip: int = 0, limit: int = 100000, filters: Dict = None) -> List[Dict]:
        """Get tasks with pagination and filters (status, vehicle_id, technician_id)"""
        where_clauses = []
        params = {"skip": skip, "limit": limit}

        if filters:
            if filters.get('status') is not None:
                where_clauses.append("m.status = $status")
                params['status'] = getattr(filters['status'], 'value', filters['status'])

            if filters.get('vehicle_id'):
                where_clauses.append("m.vehicle_id = $vehicle_id")
                params['vehicle_id'] = filters['vehicle_id']

            if filters.get('technician_id'):
                where_clauses.append("m.technician_id = $technician_id")
                params['technician_id'] = filters['technician_id']

        where_clause = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        query = f"""
        MATCH (m:MaintenanceTask)
        {where_clause}
        RETURN m
        ORDER BY m.scheduled_date, m.task_id
        SKIP $skip
        LIMIT $limit
        """

        result = self.execute_query(query, params)
        return [self._from_node(record['m']) for record in result]

    def get_by_technician(self, technician_id: str) -> List[Dict]:
        """Get every task assigned to a technician"""
        return self.get_all(filters={"technician_id": technician_id})

    def get_models(self) -> List[MaintenanceTask]:
        """Load every task as a MaintenanceTask model"""
        return [MaintenanceTask(**record) for record in self.get_all()]

    def save(self, task: MaintenanceTask) -> Optional[Dict]:
        """Overwrite a task's stored properties with the given model"""
        query = """
        MATCH (m:MaintenanceTask {task_id: $task_id})
        SET m += $task, m.updated_at = $updated_at
        WITH m
        OPTIONAL MATCH (m)-[old:ASSIGNED_TO]->(prev:Technician)
        WHERE prev.technician_id <> m.technician_id OR m.technician_id IS NULL
        DELETE old
        WITH DISTINCT m
        OPTIONAL MATCH (t:Technician {technician_id: m.technician_id})
        FOREACH (_ IN CASE WHEN t IS NULL THEN [] ELSE [1] END |
            MERGE (m)-[:ASSIGNED_TO]->(t))
        RETURN m
        """
        params = {
            "task_id": task.task_id,
            "task": self._to_params(task),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        result = self.execute_query(query, params)
        return self._from_node(result[0]['m']) if result else None

    def update_assignments(self, tasks: List[MaintenanceTask]) -> Dict:
        """
        Persist technician assignments for a batch of tasks in one transaction.

        Only technician_id and status are written; all other properties are
        left as stored.

        Args:
            tasks: Tasks carrying their new technician_id and status

        Returns:
            dict: Number of tasks updated
        """
        if not tasks:
            return {"updated": 0}

        query = """
        MATCH (m:MaintenanceTask {task_id: $task_id})
        SET m.technician_id = $technician_id,
            m.status = $status,
            m.updated_at = $updated_at
        WITH m
        MATCH (t:Technician {technician_id: $technician_id})
        MERGE (m)-[:ASSIGNED_TO]->(t)
        """
        updated_at = datetime.now(timezone.utc).isoformat()
        statements = [
            (query, {
                "task_id": task.task_id,
                "technician_id": task.technician_id,
                "status": task.status.value,
                "updated_at": updated_at,
            })
            for task in tasks
        ]

        self.transaction_write(statements)
        logger.debug(f"Persisted {len(statements)} task assignments")
        return {"updated": len(statements)}
