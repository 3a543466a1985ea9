"""Inspection Repository - Data access for scheduled inspections"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import Inspection
from ..utils.logger import get_logger

logger = get_logger(__name__)


class InspectionRepository:
    """Repository for inspection operations"""
    
    def __init__(self, inspections: Optional[Collection] = None):
        self._inspections: Collection = (
            inspections if inspections is not None else get_collection("inspections")
        )
    
    def create_inspection(self, inspection: Inspection) -> Inspection:
        """Create a scheduled inspection"""
        doc = inspection.model_dump()
        doc["_id"] = inspection.inspection_id
        
        self._inspections.insert_one(doc)
        logger.info(
            f"Scheduled {inspection.inspection_type} inspection {inspection.inspection_id} "
            f"for {inspection.scheduled_date.date().isoformat()}",
            extra={"case_id": inspection.case_id, "execution_id": inspection.execution_id}
        )
        return inspection
    
    def list_for_case(self, case_id: str) -> List[Inspection]:
        cursor = self._inspections.find({"case_id": case_id}).sort("scheduled_date", ASCENDING)
        
        inspections = []
        for doc in cursor:
            doc.pop("_id", None)
            inspections.append(Inspection.model_validate(doc))
        return inspections
