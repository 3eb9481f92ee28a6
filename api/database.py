import logging
from contextlib import contextmanager
from typing import Dict, Generator, List, Tuple

from neo4j import GraphDatabase, Session
from config import settings

logger = logging.getLogger(__name__)


# Identifier uniqueness for the three node labels of the fleet graph
CONSTRAINTS = [
    "CREATE CONSTRAINT vehicle_id_unique IF NOT EXISTS "
    "FOR (v:Vehicle) REQUIRE v.vehicle_id IS UNIQUE",
    "CREATE CONSTRAINT technician_id_unique IF NOT EXISTS "
    "FOR (t:Technician) REQUIRE t.technician_id IS UNIQUE",
    "CREATE CONSTRAINT task_id_unique IF NOT EXISTS "
    "FOR (m:MaintenanceTask) REQUIRE m.task_id IS UNIQUE",
]

# Task lookups used by workload derivation, generation snapshots and filters
INDEXES = [
    "CREATE INDEX task_status IF NOT EXISTS FOR (m:MaintenanceTask) ON (m.status)",
    "CREATE INDEX task_vehicle IF NOT EXISTS FOR (m:MaintenanceTask) ON (m.vehicle_id)",
    "CREATE INDEX task_technician IF NOT EXISTS FOR (m:MaintenanceTask) ON (m.technician_id)",
    "CREATE INDEX vehicle_location IF NOT EXISTS FOR (v:Vehicle) ON (v.location_base)",
]


class Neo4jConnection:
    """Shared driver for the fleet graph (vehicles, technicians, tasks)."""

    def __init__(self):
        self.uri = settings.neo4j_uri
        self.user = settings.neo4j_user
        self.password = settings.neo4j_password
        self.database = settings.neo4j_database

        if not self.password:
            raise ValueError("NEO4J_PASSWORD is required in settings")

        # The driver connects lazily; nothing is opened until the first session
        self.driver = GraphDatabase.driver(
            self.uri,
            auth=(self.user, self.password),
            max_connection_pool_size=settings.neo4j_max_pool_size,
            connection_acquisition_timeout=settings.neo4j_acquisition_timeout,
            max_transaction_retry_time=settings.neo4j_acquisition_timeout
        )

    def close(self):
        """Close the driver connection"""
        if self.driver:
            self.driver.close()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Session on the configured database, closed on exit"""
        session = self.driver.session(database=self.database)
        try:
            yield session
        finally:
            session.close()

    def verify_connectivity(self) -> bool:
        """Verify database connectivity.

        Returns:
            bool: True if connected, False otherwise
        """
        try:
            with self.get_session() as session:
                result = session.run("RETURN 1 as test")
                return result.single()["test"] == 1
        except Exception as e:
            logger.error(f"Database connectivity check failed: {e}")
            return False

    def ensure_schema(self) -> None:
        """Create the fleet graph's uniqueness constraints and lookup indexes.

        Every statement is idempotent, so this runs on each startup.
        """
        with self.get_session() as session:
            for statement in CONSTRAINTS + INDEXES:
                session.run(statement).consume()
        logger.info(f"Ensured {len(CONSTRAINTS)} constraints and {len(INDEXES)} indexes")


# Singleton instance
db = Neo4jConnection()


class BaseRepository:
    """Base repository for the fleet graph.

    Vehicle, technician and maintenance task repositories build their Cypher
    on top of these three primitives: a read returning plain dictionaries, a
    single write returning its change counters, and a batch of writes
    committed atomically.
    """

    def __init__(self):
        self.db = db

    def execute_query(self, query: str, parameters: dict = None) -> List[Dict]:
        """Run a query and return each record as a dictionary.

        Node values come back as property dictionaries, which is the shape
        the repositories hand to the pydantic models.
        """
        with self.db.get_session() as session:
            result = session.run(query, parameters or {})
            return [record.data() for record in result]

    def execute_write(self, query: str, parameters: dict = None) -> Dict[str, int]:
        """Run a write query and return its change counters.

        Returns:
            dict: nodes_created, nodes_deleted, relationships_created,
            relationships_deleted and properties_set
        """
        with self.db.get_session() as session:
            counters = session.run(query, parameters or {}).consume().counters
            return {
                "nodes_created": counters.nodes_created,
                "nodes_deleted": counters.nodes_deleted,
                "relationships_created": counters.relationships_created,
                "relationships_deleted": counters.relationships_deleted,
                "properties_set": counters.properties_set,
            }

    def transaction_write(self, queries: List[Tuple[str, dict]]) -> Dict:
        """Run several write statements in one explicit transaction.

        Either every statement is applied or none is; a failure rolls the
        transaction back and the exception propagates. Batch assignment
        updates rely on this.

        Args:
            queries: List of (query, parameters) tuples

        Returns:
            dict: Success status and number of statements run
        """
        with self.db.get_session() as session:
            with session.begin_transaction() as tx:
                for query, params in queries:
                    tx.run(query, params or {})
                tx.commit()
        logger.debug(f"Committed {len(queries)} statements in one transaction")
        return {"success": True, "statements": len(queries)}
