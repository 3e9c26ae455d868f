"""Database module."""

from mediation.db.database import close_database, get_db, init_database, transaction
from mediation.db.flow_store import FlowStore, flow_store
from mediation.db.node_store import NodeStore, node_store
from mediation.db.parameter_store import ParameterStore, parameter_store
from mediation.db.subnode_store import SubnodeStore, subnode_store

__all__ = [
    "get_db",
    "init_database",
    "close_database",
    "transaction",
    "flow_store",
    "FlowStore",
    "node_store",
    "NodeStore",
    "subnode_store",
    "SubnodeStore",
    "parameter_store",
    "ParameterStore",
]
