"""Stored-procedure gateway for SQL Server with Azure AD token authentication."""

from .config import StaticCredential, TokenAuth, load_config
from .connector import SqlConnector
from .errors import AuthError, ConfigError, DatabaseConnectionError, ExecutionError, GatewayError
from .models import (
    AccessToken,
    ParameterDirection,
    ProcedureCall,
    ProcedureParameter,
    ResultSet,
    Row,
    Table,
)

__all__ = [
    "AccessToken",
    "AuthError",
    "ConfigError",
    "DatabaseConnectionError",
    "ExecutionError",
    "GatewayError",
    "ParameterDirection",
    "ProcedureCall",
    "ProcedureParameter",
    "ResultSet",
    "Row",
    "SqlConnector",
    "StaticCredential",
    "Table",
    "TokenAuth",
    "load_config",
]
