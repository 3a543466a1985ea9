"""
Backend Scripts Module

This module contains utility scripts for database operations and maintenance.

Available scripts:
    - seed_workflows.py: Loads the standard permit workflow templates
    - validate_workflow.py: Reports stored definitions that fail to load
    
Usage:
    python -m scripts.seed_workflows
    python -m scripts.validate_workflow [workflow_id ...]
"""
