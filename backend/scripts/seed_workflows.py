"""
Seed Workflows Script - Loads the standard permit workflow templates
Run: python -m scripts.seed_workflows
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Any, Dict, List

from caseflow.repositories.mongo_client import get_collection, create_indexes
from caseflow.domain.enums import WorkflowStatus


PERMIT_WORKFLOW_TEMPLATES: List[Dict[str, Any]] = [
    {
        "name": "Building Permit - Standard Review",
        "description": "Automated workflow for standard building permit applications",
        "workflow_type": "permit_review",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "building"},
        "status": WorkflowStatus.ACTIVE.value,
        "steps": [
            {
                "name": "Initial Notification",
                "step_type": "notification",
                "order": 0,
                "config": {
                    "notification_type": "permit_received",
                    "title": "Permit Application Received",
                    "message": "Your building permit application has been received and is being processed.",
                    "priority": "medium"
                }
            },
            {
                "name": "Document Completeness Check",
                "step_type": "document_check",
                "order": 1,
                "config": {"required_documents": 3, "document_types": ["plans", "survey", "structural"]}
            },
            {
                "name": "AI Classification Verification",
                "step_type": "ai_classification",
                "order": 2,
                "config": {"min_confidence": 0.85}
            },
            {
                "name": "Automatic Review",
                "step_type": "automatic_review",
                "order": 3,
                "config": {
                    "criteria": "- Estimated cost under $50,000\n- Standard construction type\n"
                                "- No zoning violations\n- Complete documentation",
                    "min_confidence": 0.8
                }
            },
            {
                "name": "Manual Staff Review",
                "step_type": "manual_review",
                "order": 4,
                "config": {
                    "task_title": "Review Building Permit Application",
                    "task_description": "Please review the building permit application for completeness and compliance",
                    "priority": "high",
                    "due_days": 5
                },
                "conditions": {"require_step_result": "Automatic Review"}
            },
            {
                "name": "Inspection Scheduling",
                "step_type": "inspection",
                "order": 5,
                "config": {
                    "inspection_type": "pre-construction",
                    "days_from_now": 14,
                    "notes": "Pre-construction site inspection"
                }
            },
            {
                "name": "Approval Notification",
                "step_type": "notification",
                "order": 6,
                "config": {
                    "notification_type": "permit_approved",
                    "title": "Building Permit Approved",
                    "message": "Your building permit has been approved. An inspection has been scheduled.",
                    "priority": "high"
                }
            },
            {
                "name": "Update Status to Approved",
                "step_type": "update_status",
                "order": 7,
                "config": {"status": "approved"}
            }
        ]
    },
    {
        "name": "Electrical Permit - Fast Track",
        "description": "Expedited workflow for minor electrical permits",
        "workflow_type": "permit_review",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "electrical"},
        "status": WorkflowStatus.ACTIVE.value,
        "steps": [
            {
                "name": "Receive Confirmation",
                "step_type": "notification",
                "order": 0,
                "config": {
                    "notification_type": "permit_received",
                    "title": "Electrical Permit Received",
                    "message": "Your electrical permit is being processed on the fast-track.",
                    "priority": "medium"
                }
            },
            {
                "name": "AI Quick Review",
                "step_type": "automatic_review",
                "order": 1,
                "config": {
                    "criteria": "- Minor electrical work only\n- Licensed electrician\n- Cost under $5,000",
                    "min_confidence": 0.9
                }
            },
            {
                "name": "Auto-Approve Low-Risk",
                "step_type": "update_status",
                "order": 2,
                "config": {"status": "approved"},
                "conditions": {"max_value": 5000}
            },
            {
                "name": "Schedule Inspection",
                "step_type": "inspection",
                "order": 3,
                "config": {"inspection_type": "electrical", "days_from_now": 7}
            },
            {
                "name": "Approval Notice",
                "step_type": "notification",
                "order": 4,
                "config": {
                    "notification_type": "permit_approved",
                    "title": "Electrical Permit Approved",
                    "message": "Your electrical permit has been automatically approved. Inspection scheduled.",
                    "priority": "high"
                }
            }
        ]
    },
    {
        "name": "Plumbing Permit - Standard",
        "description": "Standard workflow for plumbing permits",
        "workflow_type": "permit_review",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "plumbing"},
        "status": WorkflowStatus.ACTIVE.value,
        "steps": [
            {
                "name": "Application Received",
                "step_type": "notification",
                "order": 0,
                "config": {
                    "title": "Plumbing Permit Received",
                    "message": "Your plumbing permit application is under review.",
                    "priority": "medium"
                }
            },
            {
                "name": "Check Required Documents",
                "step_type": "document_check",
                "order": 1,
                "config": {"required_documents": 2}
            },
            {
                "name": "Staff Review",
                "step_type": "manual_review",
                "order": 2,
                "config": {
                    "task_title": "Review Plumbing Permit",
                    "task_description": "Review plumbing permit application and plans",
                    "priority": "medium",
                    "due_days": 3
                }
            },
            {
                "name": "Schedule Rough-In Inspection",
                "step_type": "inspection",
                "order": 3,
                "config": {"inspection_type": "plumbing-rough", "days_from_now": 10}
            },
            {
                "name": "Update to Approved",
                "step_type": "update_status",
                "order": 4,
                "config": {"status": "approved"}
            },
            {
                "name": "Send Approval",
                "step_type": "notification",
                "order": 5,
                "config": {
                    "title": "Plumbing Permit Approved",
                    "message": "Your plumbing permit is approved. Inspection scheduled.",
                    "priority": "high"
                }
            }
        ]
    },
    {
        "name": "Demolition Permit - High Priority",
        "description": "Workflow for demolition permits requiring thorough review",
        "workflow_type": "permit_review",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "demolition"},
        "status": WorkflowStatus.ACTIVE.value,
        "steps": [
            {
                "name": "Urgent Review Notice",
                "step_type": "notification",
                "order": 0,
                "config": {
                    "title": "Demolition Permit Received",
                    "message": "Your demolition permit is being prioritized for safety review.",
                    "priority": "urgent"
                }
            },
            {
                "name": "Document Verification",
                "step_type": "document_check",
                "order": 1,
                "config": {
                    "required_documents": 5,
                    "document_types": ["plans", "safety_plan", "asbestos_survey", "utility_clearance", "insurance"]
                }
            },
            {
                "name": "Safety Review",
                "step_type": "manual_review",
                "order": 2,
                "config": {
                    "task_title": "Demolition Safety Review",
                    "task_description": "Conduct thorough safety review of demolition permit",
                    "priority": "urgent",
                    "due_days": 2
                }
            },
            {
                "name": "Environmental Check",
                "step_type": "manual_review",
                "order": 3,
                "config": {
                    "task_title": "Environmental Assessment",
                    "task_description": "Review environmental impact and hazardous materials",
                    "priority": "high",
                    "due_days": 3
                }
            },
            {
                "name": "Final Approval",
                "step_type": "approval",
                "order": 4,
                "config": {
                    "task_title": "Approve Demolition Permit",
                    "task_description": "Final approval for demolition permit",
                    "priority": "urgent",
                    "due_days": 1
                }
            },
            {
                "name": "Pre-Demolition Inspection",
                "step_type": "inspection",
                "order": 5,
                "config": {"inspection_type": "pre-demolition", "days_from_now": 7}
            },
            {
                "name": "Approve Permit",
                "step_type": "update_status",
                "order": 6,
                "config": {"status": "approved"}
            },
            {
                "name": "Approval Confirmation",
                "step_type": "notification",
                "order": 7,
                "config": {
                    "title": "Demolition Permit Approved",
                    "message": "Your demolition permit has been approved after safety review.",
                    "priority": "urgent"
                }
            }
        ]
    },
    {
        "name": "Zoning Variance - Complex Review",
        "description": "Multi-step review process for zoning variance requests",
        "workflow_type": "permit_review",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "zoning"},
        "status": WorkflowStatus.ACTIVE.value,
        "steps": [
            {
                "name": "Application Confirmation",
                "step_type": "notification",
                "order": 0,
                "config": {
                    "title": "Zoning Variance Application Received",
                    "message": "Your zoning variance request has been received and will undergo thorough review.",
                    "priority": "medium"
                }
            },
            {
                "name": "Initial Review",
                "step_type": "manual_review",
                "order": 1,
                "config": {
                    "task_title": "Zoning Variance Initial Review",
                    "task_description": "Review variance request for completeness and feasibility",
                    "priority": "medium",
                    "due_days": 7
                }
            },
            {
                "name": "Planning Department Review",
                "step_type": "manual_review",
                "order": 2,
                "config": {
                    "task_title": "Planning Review",
                    "task_description": "Planning department assessment of variance request",
                    "priority": "high",
                    "due_days": 14
                }
            },
            {
                "name": "Public Notice",
                "step_type": "notification",
                "order": 3,
                "config": {
                    "title": "Variance Under Review",
                    "message": "Your variance request is being reviewed. Public hearing may be required.",
                    "priority": "medium"
                }
            },
            {
                "name": "Final Decision",
                "step_type": "approval",
                "order": 4,
                "config": {
                    "task_title": "Zoning Variance Decision",
                    "task_description": "Final approval/denial of zoning variance",
                    "priority": "high",
                    "due_days": 5
                }
            },
            {
                "name": "Decision Notice",
                "step_type": "notification",
                "order": 5,
                "config": {
                    "title": "Zoning Variance Decision",
                    "message": "A decision has been made on your zoning variance request.",
                    "priority": "high"
                }
            }
        ]
    },
    {
        "name": "General Permit - Simple",
        "description": "Basic workflow for general permits",
        "workflow_type": "permit_review",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "general"},
        "status": WorkflowStatus.ACTIVE.value,
        "steps": [
            {
                "name": "Receipt Confirmation",
                "step_type": "notification",
                "order": 0,
                "config": {
                    "title": "Permit Application Received",
                    "message": "Your permit application has been received.",
                    "priority": "low"
                }
            },
            {
                "name": "Quick Review",
                "step_type": "automatic_review",
                "order": 1,
                "config": {"criteria": "Standard permit requirements", "min_confidence": 0.7}
            },
            {
                "name": "Staff Check",
                "step_type": "manual_review",
                "order": 2,
                "config": {
                    "task_title": "Review General Permit",
                    "task_description": "Quick review of general permit application",
                    "priority": "low",
                    "due_days": 5
                }
            },
            {
                "name": "Approve",
                "step_type": "update_status",
                "order": 3,
                "config": {"status": "approved"}
            },
            {
                "name": "Notify Applicant",
                "step_type": "notification",
                "order": 4,
                "config": {
                    "title": "Permit Approved",
                    "message": "Your permit has been approved.",
                    "priority": "medium"
                }
            }
        ]
    }
]


def seed_workflows() -> int:
    """Create the permit templates that are not in the database yet"""
    # Imported here so the templates can be loaded without a database
    from caseflow.services.workflow_service import WorkflowService
    
    workflows_col = get_collection("workflows")
    service = WorkflowService()
    created = 0
    
    for template in PERMIT_WORKFLOW_TEMPLATES:
        if workflows_col.count_documents({"name": template["name"]}) > 0:
            print(f"Skipping existing workflow: {template['name']}")
            continue
        workflow = service.create_workflow(template)
        print(f"Created workflow: {workflow.name} ({workflow.workflow_id}, {len(workflow.steps)} steps)")
        created += 1
    
    return created


if __name__ == "__main__":
    print("Creating indexes...")
    create_indexes()
    print("Seeding permit workflow templates...")
    count = seed_workflows()
    print(f"Seed complete: {count} workflows created.")
