# File: /inline_db/engine/templates.py | Version: 1.0 | Title: Starter schemas for new databases
from __future__ import annotations

from typing import Dict, List, Optional

from inline_db.schemas.columns import Column, parse_columns

BLANK_TEMPLATE_ID = "blank"

_TEMPLATES: List[dict] = [
    {
        "id": "dd-tracker",
        "name": "Due Diligence Tracker",
        "description": "Track due diligence tasks and status",
        "columns": [
            {"id": "task", "name": "Task", "type": "TEXT"},
            {"id": "category", "name": "Category", "type": "SELECT",
             "options": ["Legal", "Financial", "Technical", "Commercial", "HR"]},
            {"id": "status", "name": "Status", "type": "SELECT",
             "options": ["To Do", "In Progress", "Review", "Done"]},
            {"id": "assignee", "name": "Assignee", "type": "PERSON"},
            {"id": "dueDate", "name": "Due Date", "type": "DATE"},
            {"id": "priority", "name": "Priority", "type": "SELECT",
             "options": ["Low", "Medium", "High", "Critical"]},
        ],
    },
    {
        "id": "contact-list",
        "name": "Contact List",
        "description": "Manage key contacts for the deal",
        "columns": [
            {"id": "name", "name": "Name", "type": "TEXT"},
            {"id": "role", "name": "Role", "type": "TEXT"},
            {"id": "company", "name": "Company", "type": "TEXT"},
            {"id": "email", "name": "Email", "type": "URL"},
            {"id": "phone", "name": "Phone", "type": "TEXT"},
            {"id": "notes", "name": "Notes", "type": "TEXT"},
        ],
    },
    {
        "id": "document-log",
        "name": "Document Log",
        "description": "Track document requests and status",
        "columns": [
            {"id": "document", "name": "Document", "type": "TEXT"},
            {"id": "category", "name": "Category", "type": "SELECT",
             "options": ["Financial", "Legal", "Corporate", "Technical", "Other"]},
            {"id": "status", "name": "Status", "type": "SELECT",
             "options": ["Requested", "Received", "Under Review", "Approved"]},
            {"id": "requestDate", "name": "Requested", "type": "DATE"},
            {"id": "receivedDate", "name": "Received", "type": "DATE"},
            {"id": "notes", "name": "Notes", "type": "TEXT"},
        ],
    },
    {
        "id": "risk-register",
        "name": "Risk Register",
        "description": "Track and assess deal risks",
        "columns": [
            {"id": "risk", "name": "Risk", "type": "TEXT"},
            {"id": "category", "name": "Category", "type": "SELECT",
             "options": ["Financial", "Legal", "Operational", "Market", "Regulatory"]},
            {"id": "likelihood", "name": "Likelihood", "type": "SELECT",
             "options": ["Low", "Medium", "High"]},
            {"id": "impact", "name": "Impact", "type": "SELECT",
             "options": ["Low", "Medium", "High"]},
            {"id": "mitigation", "name": "Mitigation", "type": "TEXT"},
            {"id": "owner", "name": "Owner", "type": "PERSON"},
        ],
    },
    {
        "id": BLANK_TEMPLATE_ID,
        "name": "Blank Database",
        "description": "Start from scratch",
        "columns": [{"id": "col_title", "name": "Title", "type": "TEXT"}],
    },
]

_BY_ID: Dict[str, dict] = {t["id"]: t for t in _TEMPLATES}


def list_templates() -> List[dict]:
    return [
        {"id": t["id"], "name": t["name"], "description": t["description"], "columns": t["columns"]}
        for t in _TEMPLATES
    ]


def template_columns(template_id: str) -> Optional[List[Column]]:
    """Fresh column models for a template, or None for an unknown id."""
    template = _BY_ID.get(template_id)
    if template is None:
        return None
    return parse_columns(template["columns"])
