"""Trigger Resolver - Pick the workflow definition a trigger starts for a case"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from ..domain.models import CaseRecord, WorkflowDefinition
from ..domain.enums import WorkflowStatus
from ..repositories.workflow_repo import WorkflowRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)

_EPOCH = datetime.min


class TriggerResolver:
    """
    Resolve the single applicable workflow for (case, trigger)
    
    Among ACTIVE definitions registered for the trigger:
    1. A definition restricted to the case's type is an exact match
    2. A definition with no case type restriction is a wildcard
    3. Definitions restricted to another case type are ignored
    4. Exact matches beat wildcards; within a tier the highest priority
       wins, then the earliest published, then the smallest workflow ID
    """
    
    def __init__(self, workflow_repo: Optional[WorkflowRepository] = None):
        self.workflow_repo = workflow_repo or WorkflowRepository()
    
    def resolve(
        self,
        case_record: CaseRecord,
        trigger_name: str
    ) -> Optional[WorkflowDefinition]:
        """
        Select the workflow definition to start
        
        Returns:
            The winning definition, or None when no definition applies
        """
        candidates = self.workflow_repo.list_active_by_trigger(trigger_name)
        return self.select(candidates, case_record, trigger_name)
    
    def select(
        self,
        candidates: List[WorkflowDefinition],
        case_record: CaseRecord,
        trigger_name: str
    ) -> Optional[WorkflowDefinition]:
        """Apply the matching rules to an already loaded candidate list"""
        exact: List[WorkflowDefinition] = []
        wildcard: List[WorkflowDefinition] = []
        
        for definition in candidates:
            if definition.trigger_type != trigger_name or definition.status != WorkflowStatus.ACTIVE:
                continue
            case_type = definition.matching_case_type
            if case_type is None:
                wildcard.append(definition)
            elif case_type == case_record.case_type:
                exact.append(definition)
        
        tier = exact or wildcard
        if not tier:
            logger.info(
                f"No workflow applies to case {case_record.case_id} for trigger {trigger_name}",
                extra={"case_id": case_record.case_id, "trigger": trigger_name}
            )
            return None
        
        winner = min(tier, key=self._rank)
        if len(tier) > 1:
            logger.info(
                f"{len(tier)} workflows match trigger {trigger_name}; selected {winner.workflow_id}",
                extra={"case_id": case_record.case_id, "workflow_id": winner.workflow_id}
            )
        return winner
    
    @staticmethod
    def _rank(definition: WorkflowDefinition) -> Tuple[int, datetime, str]:
        published = definition.published_at or definition.created_at or _EPOCH
        # Compare as naive UTC; Mongo returns naive UTC values
        if published.tzinfo is not None:
            published = published.astimezone(timezone.utc).replace(tzinfo=None)
        return (-definition.priority, published, definition.workflow_id)
