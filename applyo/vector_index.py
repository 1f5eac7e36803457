"""
Vector Index Module

Embeds company profiles and employee records and stores them in two Qdrant
collections for semantic search ("AI companies in San Francisco",
"CTOs at semiconductor companies").
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

import requests
from qdrant_client import QdrantClient
from qdrant_client.models import Distance, FieldCondition, Filter, MatchValue, PointStruct, VectorParams

from applyo import companies as repo
from applyo.config import settings
from applyo.database import CompanyProfile, DatabaseManager, Employee, get_db_manager
from applyo.utils import retry

logger = logging.getLogger(__name__)

SEARCH_TYPES = ('companies', 'employees', 'both')


def _text(value: Any) -> str:
    """Metadata values are strings; missing values become ''."""
    if value is None:
        return ''
    return str(value)


def company_text(company: CompanyProfile) -> str:
    """Text embedded for a company."""
    return (
        f"{company.company_name} {company.description or ''} "
        f"{company.tech_stack or ''} {company.industry or ''}"
    )


def employee_text(employee: Employee, company: CompanyProfile) -> str:
    """Text embedded for an employee, with company context."""
    return (
        f"{employee.employee_name} {employee.employee_title or ''} {company.company_name} "
        f"{company.description or ''} {company.industry or ''}"
    )


def company_metadata(company: CompanyProfile) -> Dict[str, str]:
    return {
        'company_id': _text(company.id),
        'company_name': company.company_name,
        'website': _text(company.website),
        'year_founded': _text(company.year_founded),
        'description': _text(company.description),
        'tech_stack': _text(company.tech_stack),
        'employee_count_min': _text(company.employee_count_min),
        'employee_count_max': _text(company.employee_count_max),
        'revenue': _text(company.revenue),
        'funding': _text(company.funding),
        'headquarters': _text(company.headquarters),
        'industry': _text(company.industry),
    }


def employee_metadata(employee: Employee, company: CompanyProfile) -> Dict[str, str]:
    return {
        'employee_id': _text(employee.id),
        'employee_name': employee.employee_name,
        'employee_title': _text(employee.employee_title),
        'email': _text(employee.email),
        'company_id': _text(company.id),
        'company_name': company.company_name,
        'company_website': _text(company.website),
        'company_description': _text(company.description),
        'company_industry': _text(company.industry),
        'company_year_founded': _text(company.year_founded),
        'company_tech_stack': _text(company.tech_stack),
    }


def vector_id(kind: str, record_id: int) -> str:
    """Stable Qdrant point id for 'company_<id>' / 'employee_<id>'."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{kind}_{record_id}"))


class EmbeddingClient:
    """Generates embeddings for text."""

    def __init__(self, host: Optional[str] = None, model: Optional[str] = None):
        """Initialize embedding client."""
        self.embedding_model = model or settings.embedding_model
        # Handle both full URL and host-only formats
        ollama_host = host or settings.ollama_host
        if ollama_host.startswith('http'):
            self.ollama_host = ollama_host.rstrip('/')
        else:
            self.ollama_host = f"http://{ollama_host}:11434"

    @retry(max_attempts=3, delay=1.0, backoff=2.0)
    def embed(self, text: str) -> List[float]:
        """
        Generate embedding for text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            requests.RequestException: If the embedding service fails
            ValueError: If the service returns no embedding
        """
        response = requests.post(
            f"{self.ollama_host}/api/embeddings",
            json={
                "model": self.embedding_model,
                "prompt": text,
            },
            timeout=settings.http_timeout,
        )
        response.raise_for_status()

        embedding = response.json().get('embedding')
        if not embedding:
            raise ValueError("Embedding service returned no vector")
        return embedding


class VectorIndex:
    """Manages the company and employee vector collections in Qdrant."""

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        client: Optional[QdrantClient] = None,
        embedding_client: Optional[EmbeddingClient] = None,
    ):
        """Initialize Qdrant client."""
        self.db = db or get_db_manager()
        self.client = client or QdrantClient(url=settings.qdrant_url, api_key=settings.qdrant_api_key)
        self.embedding_client = embedding_client or EmbeddingClient()
        self.company_collection = settings.company_collection
        self.employee_collection = settings.employee_collection
        self.vector_size = settings.embedding_dimension
        self._ready_collections = set()

    def _ensure_collection(self, name: str):
        """Ensure collection exists in Qdrant."""
        if name in self._ready_collections:
            return
        if not self.client.collection_exists(name):
            logger.info(f"Creating collection {name}")
            self.client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=self.vector_size, distance=Distance.COSINE),
            )
        self._ready_collections.add(name)

    # ============ POPULATION METHODS ============

    @staticmethod
    def _batch_result(kind: str, offset: int, batch_len: int, total: int,
                      processed: int, errors: List[Dict[str, str]]) -> Dict[str, Any]:
        processed_so_far = min(offset + batch_len, total)
        remaining = max(total - processed_so_far, 0)
        percentage = (processed_so_far / total) * 100 if total else 100.0
        result = {
            'success': processed > 0 or batch_len == 0,
            'message': (
                f"Populated {processed} {kind} vectors" if processed
                else (f"No {kind} left to index" if batch_len == 0 else "No vectors generated")
            ),
            'processed': processed,
            'total': total,
            'processedSoFar': processed_so_far,
            'remaining': remaining,
            'progress': f"{processed_so_far}/{total} ({percentage:.1f}%)",
            'hasMore': remaining > 0,
            'nextOffset': offset + batch_len,
        }
        if errors:
            result['errors'] = errors
        return result

    def populate_companies(self, offset: int = 0, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Embed one batch of companies and upsert their vectors.

        Args:
            offset: Number of companies (ordered by id) to skip
            limit: Batch size, defaults to settings.vector_batch_size

        Returns:
            Batch progress report
        """
        limit = limit or settings.vector_batch_size
        try:
            with self.db.session_scope() as session:
                total = repo.count_companies(session)
                if total == 0:
                    return {'success': False, 'message': 'No companies found in database'}

                batch = repo.list_companies(session, offset, limit)
                points, errors = [], []
                for company in batch:
                    try:
                        points.append(PointStruct(
                            id=vector_id('company', company.id),
                            vector=self.embedding_client.embed(company_text(company)),
                            payload=company_metadata(company),
                        ))
                    except Exception as e:
                        logger.warning(f"Embedding failed for company {company.company_name}: {e}")
                        errors.append({'company': company.company_name, 'error': str(e)})

            if points:
                self._ensure_collection(self.company_collection)
                self.client.upsert(collection_name=self.company_collection, points=points)
                logger.info(f"Upserted {len(points)} company vectors")

            return self._batch_result('company', offset, len(batch), total, len(points), errors)

        except Exception as e:
            logger.error(f"Error populating company vectors: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    def populate_employees(self, offset: int = 0, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Embed one batch of employees (with company context) and upsert them.

        Args:
            offset: Number of employees (ordered by id) to skip
            limit: Batch size, defaults to settings.vector_batch_size

        Returns:
            Batch progress report
        """
        limit = limit or settings.vector_batch_size
        try:
            with self.db.session_scope() as session:
                total = repo.count_employees_with_company(session)
                if total == 0:
                    return {'success': False, 'message': 'No employees found in database'}

                batch = repo.list_employees_with_company(session, offset, limit)
                points, errors = [], []
                for employee, company in batch:
                    try:
                        points.append(PointStruct(
                            id=vector_id('employee', employee.id),
                            vector=self.embedding_client.embed(employee_text(employee, company)),
                            payload=employee_metadata(employee, company),
                        ))
                    except Exception as e:
                        logger.warning(f"Embedding failed for employee {employee.employee_name}: {e}")
                        errors.append({'employee': employee.employee_name, 'error': str(e)})

            if points:
                self._ensure_collection(self.employee_collection)
                self.client.upsert(collection_name=self.employee_collection, points=points)
                logger.info(f"Upserted {len(points)} employee vectors")

            return self._batch_result('employee', offset, len(batch), total, len(points), errors)

        except Exception as e:
            logger.error(f"Error populating employee vectors: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    # ============ SEARCH METHODS ============

    @staticmethod
    def _build_filter(conditions: Optional[Dict[str, Any]]) -> Optional[Filter]:
        """Equality filter over metadata fields."""
        if not conditions:
            return None
        return Filter(must=[
            FieldCondition(key=key, match=MatchValue(value=value))
            for key, value in conditions.items()
        ])

    def _query(self, collection: str, vector: List[float], limit: int,
               conditions: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self._ensure_collection(collection)
        response = self.client.query_points(
            collection_name=collection,
            query=vector,
            limit=limit,
            with_payload=True,
            query_filter=self._build_filter(conditions),
        )
        return [{'score': point.score, **(point.payload or {})} for point in response.points]

    def search(
        self,
        query: str,
        type: str = 'both',
        limit: int = 5,
        filter: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Semantic search over companies and/or employees.

        Args:
            query: Natural-language query
            type: 'companies', 'employees' or 'both'
            limit: Maximum results per type
            filter: Optional {"companies": {...}, "employees": {...}} equality filters

        Returns:
            {"success", "query", "type", "results": {"companies": [...], "employees": [...]}}
        """
        if not query or not query.strip():
            return {'success': False, 'error': 'Query is required'}
        if type not in SEARCH_TYPES:
            return {'success': False, 'error': f"type must be one of {', '.join(SEARCH_TYPES)}"}

        filter = filter or {}
        try:
            vector = self.embedding_client.embed(query)
            results: Dict[str, List[Dict[str, Any]]] = {}

            if type in ('companies', 'both'):
                results['companies'] = self._query(
                    self.company_collection, vector, limit, filter.get('companies'))

            if type in ('employees', 'both'):
                results['employees'] = self._query(
                    self.employee_collection, vector, limit, filter.get('employees'))

            return {'success': True, 'query': query, 'type': type, 'results': results}

        except Exception as e:
            logger.error(f"Vector search failed for '{query}': {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    # ============ UTILITY METHODS ============

    def update_company(self, company_id: int) -> Dict[str, Any]:
        """Re-embed a single company and upsert its vector."""
        try:
            with self.db.session_scope() as session:
                company = repo.get_company(session, company_id)
                if company is None:
                    return {'success': False, 'error': 'Company not found'}

                point = PointStruct(
                    id=vector_id('company', company.id),
                    vector=self.embedding_client.embed(company_text(company)),
                    payload=company_metadata(company),
                )
                name = company.company_name

            self._ensure_collection(self.company_collection)
            self.client.upsert(collection_name=self.company_collection, points=[point])
            return {'success': True, 'message': f"Updated vector for {name}"}

        except Exception as e:
            logger.error(f"Error updating company vector {company_id}: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    def _indexed_count(self, collection: str) -> int:
        try:
            if not self.client.collection_exists(collection):
                return 0
            return self.client.count(collection_name=collection, exact=True).count
        except Exception as e:
            logger.warning(f"Could not count vectors in {collection}: {e}")
            return 0

    def get_stats(self) -> Dict[str, Any]:
        """Counts of companies and employees in the database vs the index."""
        try:
            with self.db.session_scope() as session:
                company_total = repo.count_companies(session)
                employee_total = repo.count_employees(session)

            return {
                'companies': {
                    'total_in_db': company_total,
                    'indexed': self._indexed_count(self.company_collection),
                },
                'employees': {
                    'total_in_db': employee_total,
                    'indexed': self._indexed_count(self.employee_collection),
                },
            }
        except Exception as e:
            logger.error(f"Error collecting vector stats: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}
