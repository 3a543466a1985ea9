"""Case Repository - Data access for case records and their documents/payments"""
from typing import Any, Dict, Optional
from datetime import datetime
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..domain.models import CaseRecord
from ..domain.errors import CaseNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CaseRepository:
    """Repository for case records.

    Documents and payments live in their own collections keyed by case_id;
    workflow checks only ever count them.
    """
    
    def __init__(
        self,
        cases: Optional[Collection] = None,
        documents: Optional[Collection] = None,
        payments: Optional[Collection] = None
    ):
        self._cases: Collection = cases if cases is not None else get_collection("cases")
        self._documents: Collection = documents if documents is not None else get_collection("documents")
        self._payments: Collection = payments if payments is not None else get_collection("payments")
    
    def get_case(self, case_id: str) -> Optional[CaseRecord]:
        """Get case by ID"""
        doc = self._cases.find_one({"case_id": case_id})
        if doc:
            doc.pop("_id", None)
            return CaseRecord.model_validate(doc)
        return None
    
    def get_case_or_raise(self, case_id: str) -> CaseRecord:
        """Get case by ID or raise error"""
        case = self.get_case(case_id)
        if not case:
            raise CaseNotFoundError(f"Case {case_id} not found", details={"case_id": case_id})
        return case
    
    def update_case(self, case_id: str, updates: Dict[str, Any]) -> CaseRecord:
        """Apply field updates to a case"""
        updates["updated_at"] = datetime.utcnow()
        result = self._cases.find_one_and_update(
            {"case_id": case_id},
            {"$set": updates},
            return_document=True
        )
        if result is None:
            raise CaseNotFoundError(f"Case {case_id} not found", details={"case_id": case_id})
        
        result.pop("_id", None)
        logger.info(
            f"Updated case: {case_id} ({', '.join(sorted(updates))})",
            extra={"case_id": case_id}
        )
        return CaseRecord.model_validate(result)
    
    def count_documents(self, case_id: str, document_types: Optional[list] = None) -> int:
        """Count documents attached to a case, optionally restricted by type"""
        query: Dict[str, Any] = {"case_id": case_id}
        if document_types:
            query["document_type"] = {"$in": list(document_types)}
        return self._documents.count_documents(query)
    
    def has_completed_payment(self, case_id: str) -> bool:
        """Whether at least one completed payment exists for the case"""
        return self._payments.find_one({"case_id": case_id, "status": "completed"}) is not None
