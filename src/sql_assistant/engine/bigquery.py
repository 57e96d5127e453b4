"""
BigQuery Data Engine
====================

Data engine backed by Google BigQuery. The client library is blocking, so
every call runs in a worker thread.
"""

import asyncio
from typing import Optional

import structlog
from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery

from sql_assistant.engine.base import DataEngine, format_rows, split_table_name
from sql_assistant.errors import DataEngineError
from sql_assistant.models import DryRunResult, ExecutionResult
from sql_assistant.schema import format_schema_description

logger = structlog.get_logger(__name__)


class BigQueryEngine(DataEngine):
    """BigQuery implementation of the data engine seam."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        client: Optional[bigquery.Client] = None,
    ) -> None:
        self.client = client or bigquery.Client(project=project_id)

    def _list_tables(self) -> list[str]:
        tables = []
        for dataset in self.client.list_datasets():
            for table in self.client.list_tables(dataset.dataset_id):
                tables.append(f"{dataset.dataset_id}.{table.table_id}")
        return tables

    async def list_tables(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._list_tables)
        except GoogleAPIError as e:
            raise DataEngineError(f"Error listing tables: {e}") from e

    def _get_schema(self, table_name: str) -> str:
        dataset_id, table_id = split_table_name(table_name)
        table = self.client.get_table(f"{self.client.project}.{dataset_id}.{table_id}")
        return format_schema_description(
            table_name.strip(), [(f.name, f.field_type) for f in table.schema]
        )

    async def get_schema(self, table_name: str) -> str:
        try:
            return await asyncio.to_thread(self._get_schema, table_name)
        except ValueError as e:
            return f"Error: {e}"
        except GoogleAPIError as e:
            return f"Error getting schema for table {table_name}: {e}"

    def _list_fields(self) -> list[str]:
        fields = []
        for dataset in self.client.list_datasets():
            for item in self.client.list_tables(dataset.dataset_id):
                name = f"{dataset.dataset_id}.{item.table_id}"
                try:
                    table = self.client.get_table(item.reference)
                except GoogleAPIError as e:
                    # Skip the table, keep the rest of the listing
                    logger.warning("table_metadata_failed", table=name, error=str(e))
                    continue
                fields.extend(f"{name}.{f.name}" for f in table.schema)
        return fields

    async def list_fields(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._list_fields)
        except GoogleAPIError as e:
            raise DataEngineError(f"Error fetching schema information: {e}") from e

    def _dry_run(self, query: str) -> DryRunResult:
        config = bigquery.QueryJobConfig(dry_run=True, use_query_cache=False)
        try:
            self.client.query(query, job_config=config)
        except GoogleAPIError as e:
            return DryRunResult(valid=False, error=str(e))
        return DryRunResult(valid=True)

    async def dry_run(self, query: str) -> DryRunResult:
        return await asyncio.to_thread(self._dry_run, query)

    def _execute(self, query: str) -> ExecutionResult:
        try:
            job = self.client.query(query)
            rows = [dict(row.items()) for row in job.result()]
        except GoogleAPIError as e:
            return ExecutionResult(error=str(e))
        return ExecutionResult(rows=format_rows(rows))

    async def execute(self, query: str) -> ExecutionResult:
        return await asyncio.to_thread(self._execute, query)
