"""Azure Cost Management client for subscription usage."""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional
from datetime import datetime
import structlog
from azure.mgmt.costmanagement import CostManagementClient
from azure.mgmt.costmanagement.models import (
    QueryDefinition, QueryDataset, QueryAggregation, QueryGrouping,
    QueryTimePeriod, QueryResult, TimeframeType
)
from azure.core.exceptions import AzureError
from azure.core.rest import HttpRequest

from clusterscope.auth.session import Session
from clusterscope.core.base_client import BaseClient
from clusterscope.core.utils import parse_resource_id, retry_on_throttle
from .credentials import service_principal_credential
from .errors import translate_azure_error

logger = structlog.get_logger(__name__)

COST_COLUMNS = ("PreTaxCost", "Cost", "CostUSD")


class CostClient(BaseClient):
    """Reads usage records from Cost Management, one page at a time."""
    
    def __init__(self, session: Session, config: Optional[Dict[str, Any]] = None, credential=None):
        super().__init__(config, "CostClient")
        self.session = session
        self.subscription_id = session.subscription_id
        self.credential = credential
        self.retry_attempts = self.config.get("retry_attempts", 3)
        self.retry_backoff_factor = self.config.get("retry_backoff_factor", 1.5)
        self._client = None
    
    async def connect(self) -> None:
        """Connect to Cost Management service."""
        if self.credential is None:
            self.credential = service_principal_credential(self.session)
        self._client = CostManagementClient(credential=self.credential)
        self._connected = True
        self.logger.debug("Cost Management client connected")
    
    async def disconnect(self) -> None:
        """Disconnect from Cost Management service."""
        if self._client:
            self._client.close()
            self._client = None
        self._connected = False
    
    def _build_query(self, start: datetime, end: datetime) -> QueryDefinition:
        return QueryDefinition(
            type="Usage",
            timeframe=TimeframeType.CUSTOM,
            time_period=QueryTimePeriod(from_property=start, to=end),
            dataset=QueryDataset(
                aggregation={"totalCost": QueryAggregation(name="PreTaxCost", function="Sum")},
                grouping=[
                    QueryGrouping(type="Dimension", name="ResourceId"),
                    QueryGrouping(type="Dimension", name="MeterCategory")
                ]
            )
        )
    
    def _fetch_page(self, scope: str, query: QueryDefinition, next_link: Optional[str]) -> QueryResult:
        if not next_link:
            return self._client.query.usage(scope, query)
        request = HttpRequest("POST", next_link, json=query.as_dict())
        response = self._client.send_request(request)
        response.raise_for_status()
        return QueryResult(response.json())
    
    async def _query_page(self, scope: str, query: QueryDefinition, next_link: Optional[str]) -> QueryResult:
        try:
            return await asyncio.to_thread(self._fetch_page, scope, query, next_link)
        except AzureError as e:
            if getattr(e, "status_code", None) == 429:
                self.logger.warning("Cost query throttled", scope=scope)
                raise
            raise translate_azure_error(e, "query_usage") from e
    
    async def iter_usage(self, start: datetime, end: datetime) -> AsyncIterator[Dict[str, Any]]:
        """Yield one ``{name, meterCategory, cost}`` record per usage row, following pages."""
        await self.ensure_connected()
        
        scope = f"/subscriptions/{self.subscription_id}"
        query = self._build_query(start, end)
        query_page = retry_on_throttle(
            max_retries=self.retry_attempts,
            backoff_factor=self.retry_backoff_factor
        )(self._query_page)
        
        next_link = None
        pages = 0
        while True:
            result = await query_page(scope, query, next_link)
            pages += 1
            for record in self._rows_to_records(result):
                yield record
            next_link = getattr(result, "next_link", None)
            if not next_link:
                break
        self.logger.info("Cost query drained", pages=pages)
    
    @staticmethod
    def _rows_to_records(result) -> List[Dict[str, Any]]:
        columns = [column.name for column in (getattr(result, "columns", None) or [])]
        index = {name: i for i, name in enumerate(columns)}
        cost_index = next((index[name] for name in COST_COLUMNS if name in index), None)
        
        records = []
        for row in getattr(result, "rows", None) or []:
            resource_id = row[index["ResourceId"]] if "ResourceId" in index else None
            meter_category = row[index["MeterCategory"]] if "MeterCategory" in index else None
            cost = row[cost_index] if cost_index is not None else 0.0
            records.append({
                'name': parse_resource_id(resource_id)['name'] or 'unknown',
                'meterCategory': meter_category,
                'cost': float(cost or 0.0)
            })
        return records
