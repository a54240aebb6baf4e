"""Demo workspace: two asset types (restaurant, hotel), their assets,
users, templates, courses and one launched onboarding project.

Loaded at startup when ``WORKFORCE_SEED_DEMO_DATA`` is true.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from src.core.models import (
    ActionItem,
    Address,
    Asset,
    AssetStatus,
    AssetTypeConfig,
    LearningPath,
    ProjectTemplate,
    RecurringProjectTemplate,
    RecurringTaskTemplate,
    TaskAssignment,
    TaskStatus,
    UniversityCourse,
    User,
    UserCertification,
    UserEnrollment,
)
from src.core.workspace import Workspace

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"
ADMIN_PASSWORD = "admin"

_RESTAURANT = {
    "id": "type-restaurant",
    "name": "Restaurant",
    "positions": [
        {"id": "pos-res-sm", "title": "Store Manager"},
        {"id": "pos-res-sl", "title": "Shift Lead"},
        {"id": "pos-res-crew", "title": "Crew Member"},
    ],
    "pages": [
        {"id": "page-res-dash", "name": "Dashboard", "icon": "home"},
        {
            "id": "page-res-playbook",
            "name": "Shift Playbook",
            "icon": "clipboard-document-list",
            "permissions": [
                {"id": "perm-playbook-complete", "description": "Can complete items"},
                {"id": "perm-playbook-submit", "description": "Can submit & close shift"},
            ],
        },
        {
            "id": "page-res-reports",
            "name": "Reports",
            "icon": "chart-bar",
            "permissions": [
                {"id": "perm-reports-view-pnl", "description": "Can view P&L Report"},
                {"id": "perm-reports-view-sales", "description": "Can view Sales Report"},
            ],
        },
    ],
    "permission_matrix": {
        "pos-res-sm": {
            "page-res-dash": True,
            "page-res-playbook": True,
            "page-res-reports": True,
            "perm-playbook-complete": True,
            "perm-playbook-submit": True,
            "perm-reports-view-pnl": True,
            "perm-reports-view-sales": True,
        },
        "pos-res-sl": {
            "page-res-dash": True,
            "page-res-playbook": True,
            "page-res-reports": True,
            "perm-playbook-complete": True,
            "perm-playbook-submit": True,
            "perm-reports-view-pnl": False,
            "perm-reports-view-sales": True,
        },
        "pos-res-crew": {
            "page-res-dash": True,
            "page-res-playbook": True,
            "page-res-reports": False,
            "perm-playbook-complete": True,
            "perm-playbook-submit": False,
            "perm-reports-view-pnl": False,
            "perm-reports-view-sales": False,
        },
    },
}

_HOTEL = {
    "id": "type-hotel",
    "name": "Hotel",
    "positions": [
        {"id": "pos-hot-gm", "title": "General Manager"},
        {"id": "pos-hot-fdm", "title": "Front Desk Manager"},
        {"id": "pos-hot-fda", "title": "Front Desk Agent"},
        {"id": "pos-hot-na", "title": "Night Auditor"},
    ],
    "pages": [
        {"id": "page-hot-dash", "name": "Hotel Dashboard", "icon": "home"},
        {
            "id": "page-hot-reservations",
            "name": "Reservations",
            "icon": "users",
            "permissions": [
                {"id": "perm-res-view", "description": "Can view all reservations"},
                {"id": "perm-res-create", "description": "Can create new reservations"},
                {"id": "perm-res-cancel", "description": "Can cancel reservations"},
            ],
        },
        {
            "id": "page-hot-eod",
            "name": "End of Day Report",
            "icon": "chart-bar",
            "permissions": [
                {"id": "perm-eod-view", "description": "Can view EOD reports"},
                {"id": "perm-eod-run", "description": "Can run and close out the day"},
            ],
        },
    ],
    "permission_matrix": {
        "pos-hot-gm": dict.fromkeys(
            [
                "page-hot-dash",
                "page-hot-reservations",
                "page-hot-eod",
                "perm-res-view",
                "perm-res-create",
                "perm-res-cancel",
                "perm-eod-view",
                "perm-eod-run",
            ],
            True,
        ),
        "pos-hot-fdm": {
            "page-hot-dash": True,
            "page-hot-reservations": True,
            "page-hot-eod": True,
            "perm-res-view": True,
            "perm-res-create": True,
            "perm-res-cancel": True,
            "perm-eod-view": True,
            "perm-eod-run": False,
        },
        "pos-hot-fda": {
            "page-hot-dash": True,
            "page-hot-reservations": True,
            "page-hot-eod": False,
            "perm-res-view": True,
            "perm-res-create": True,
            "perm-res-cancel": False,
            "perm-eod-view": False,
            "perm-eod-run": False,
        },
        "pos-hot-na": {
            "page-hot-dash": True,
            "page-hot-reservations": True,
            "page-hot-eod": True,
            "perm-res-view": True,
            "perm-res-create": False,
            "perm-res-cancel": False,
            "perm-eod-view": True,
            "perm-eod-run": True,
        },
    },
}

_ASSETS = [
    Asset(
        id="asset-store-0142",
        name="Lumina Cafe #0142",
        location=Address(
            street="123 Main St", city="Anytown", state="CA", zip="90210", country="USA"
        ),
        asset_type_id="type-restaurant",
    ),
    Asset(
        id="asset-store-0255",
        name="Lumina Cafe #0255",
        location=Address(
            street="456 Oak Ave", city="Otherville", state="NY", zip="10001", country="USA"
        ),
        asset_type_id="type-restaurant",
    ),
    Asset(
        id="asset-hotel-1",
        name="Pebble Beach Hotel",
        location=Address(
            street="789 Ocean Blvd", city="Seaside", state="FL", zip="33139", country="USA"
        ),
        asset_type_id="type-hotel",
    ),
    Asset(
        id="asset-hotel-2",
        name="Mountain View Lodge",
        location=Address(
            street="101 Ridge Rd", city="Summits", state="CO", zip="80401", country="USA"
        ),
        asset_type_id="type-hotel",
        status=AssetStatus.UNDER_CONSTRUCTION,
    ),
]

_USERS = [
    {
        "id": "user-admin",
        "first_name": "Admin",
        "last_name": "User",
        "username": "admin",
        "email": "admin@lumina-pebble.com",
        "global_permissions": ["ACCESS_ADMIN_PANEL"],
    },
    {
        "id": "user-alex-chen",
        "first_name": "Alex",
        "last_name": "Chen",
        "username": "achen",
        "email": "alex.chen@lumina-pebble.com",
        "assignments": [
            {"id": "assign-ac-1", "asset_id": "asset-store-0142", "position_id": "pos-res-sm"}
        ],
        # P&L explicitly revoked despite the Store Manager matrix row
        "overrides": [
            {
                "asset_id": "asset-store-0142",
                "permission_id": "perm-reports-view-pnl",
                "has_permission": False,
            }
        ],
    },
    {
        "id": "user-maria-garcia",
        "first_name": "Maria",
        "last_name": "Garcia",
        "username": "mgarcia",
        "email": "maria.garcia@lumina-pebble.com",
        "assignments": [
            {"id": "assign-mg-1", "asset_id": "asset-store-0142", "position_id": "pos-res-crew"}
        ],
    },
    {
        "id": "user-sam-jones",
        "first_name": "Sam",
        "last_name": "Jones",
        "username": "sjones",
        "email": "sam.jones@lumina-pebble.com",
        "is_active": False,
        "assignments": [
            {"id": "assign-sj-1", "asset_id": "asset-hotel-1", "position_id": "pos-hot-fda"}
        ],
    },
    {
        "id": "user-jenna-williams",
        "first_name": "Jenna",
        "last_name": "Williams",
        "username": "jwilliams",
        "email": "jenna.williams@lumina-pebble.com",
    },
]


def _after(value: int, unit: str = "Days", direction: str = "After", ref: str = "Project Start"):
    return {"value": value, "unit": unit, "direction": direction, "ref": ref}


def _to(*, roles=(), users=(), placeholders=()):
    return {"role_ids": list(roles), "user_ids": list(users), "placeholder_ids": list(placeholders)}


_TEMPLATES = [
    {
        "id": "template-1",
        "name": "New Restaurant Employee Onboarding",
        "description": "Standard onboarding checklist for all new restaurant hires.",
        "applies_to_asset_type_ids": ["type-restaurant"],
        "defined_placeholders": [
            {"id": "ph-new-hire", "name": "New Hire", "description": "The person being onboarded."},
            {
                "id": "ph-hiring-manager",
                "name": "Hiring Manager",
                "description": "The manager responsible for the new hire.",
                "default_assignment": _to(roles=["pos-res-sm"]),
            },
        ],
        "access_permissions": {"position_ids": ["pos-res-sm", "pos-hot-gm"]},
        "tasks": [
            {
                "id": "t1-1",
                "type": "Task",
                "display_order": 1,
                "title": "Complete I-9 and W-4 forms",
                "description": "HR must receive all paperwork before first shift.",
                "assignment": _to(placeholders=["ph-hiring-manager"]),
                "due_date": _after(0),
                "attachment_count": 1,
            },
            {
                "id": "t1-2",
                "type": "Learning Module",
                "display_order": 2,
                "title": 'Watch "Welcome to Lumina" video',
                "lms_course_ids": ["LMS-101"],
                "assignment": _to(placeholders=["ph-new-hire"]),
                "due_date": _after(1),
            },
            {
                "id": "t1-3",
                "type": "File Requirement",
                "display_order": 3,
                "title": "Upload Signed Handbook",
                "description": "Upload the final page of the employee handbook.",
                "requires_approval": True,
                "assignment": _to(placeholders=["ph-new-hire"]),
                "due_date": _after(2),
                "sop_link": "/sop/handbook-signing",
            },
        ],
    },
    {
        "id": "template-2",
        "name": "Hotel Front Desk Onboarding",
        "description": "Onboarding for all hotel front-of-house staff.",
        "applies_to_asset_type_ids": ["type-hotel"],
        "defined_placeholders": [
            {
                "id": "ph-hot-new-hire",
                "name": "New Hire",
                "description": "The new front desk employee.",
            }
        ],
        "access_permissions": {"position_ids": ["pos-hot-gm", "pos-hot-fdm"]},
        "tasks": [
            {
                "id": "t2-1",
                "type": "Task",
                "display_order": 1,
                "title": "Complete HR Paperwork",
                "assignment": _to(roles=["pos-hot-gm"]),
                "due_date": _after(0),
            },
            {
                "id": "t2-2",
                "type": "Learning Module",
                "display_order": 2,
                "title": "Property Management System (PMS) Training",
                "lms_course_ids": ["LMS-201", "LMS-202"],
                "assignment": _to(placeholders=["ph-hot-new-hire"]),
                "due_date": _after(2),
            },
            {
                "id": "t2-3",
                "type": "Task",
                "display_order": 3,
                "title": "Shadow a senior front desk agent",
                "description": "Minimum 4 hours of shadowing required.",
                "assignment": _to(placeholders=["ph-hot-new-hire"]),
                "due_date": _after(1, ref="Previous Step Completion"),
                "dependencies": ["t2-2"],
            },
        ],
    },
    {
        "id": "template-3",
        "name": "New Store Opening Playbook",
        "description": "Opening a new restaurant location from lease signing to grand opening.",
        "applies_to_asset_type_ids": ["type-restaurant"],
        "defined_placeholders": [
            {
                "id": "ph-nro-pm",
                "name": "Project Manager",
                "default_assignment": _to(users=["user-admin"]),
            },
            {"id": "ph-nro-cl", "name": "Construction Lead"},
        ],
        "asset_assignment_rule": {"type": "primary_district"},
        "access_permissions": {"user_ids": ["user-admin"]},
        "tasks": [
            {
                "id": "t3-1",
                "type": "Sub-Project",
                "display_order": 1,
                "title": "Phase 1: Pre-Construction",
                "sub_project_template_id": "template-pre-con-generic",
                "trigger": "Automatic",
                "assignment": _to(placeholders=["ph-nro-cl"]),
                "due_date": _after(0),
            },
            {
                "id": "t3-2",
                "type": "Recurring Task",
                "display_order": 2,
                "title": "Weekly Project Sync Meeting",
                "description": "All stakeholders to attend.",
                "recurrence": {"freq": "Weekly", "days_of_week": ["M"], "time": "10:00"},
                "assignment": _to(placeholders=["ph-nro-pm"]),
                "due_date": _after(1, unit="Weeks"),
            },
            {
                "id": "t3-3",
                "type": "Discussion",
                "display_order": 3,
                "title": "Finalize Grand Opening Marketing Plan",
                "prompt": "Post final versions of all marketing materials for approval.",
                "assignment": _to(placeholders=["ph-nro-pm"]),
                "due_date": _after(4, unit="Weeks", direction="Before", ref="Project End"),
            },
        ],
    },
]

_COURSES = [
    {
        "id": "LMS-101",
        "title": "Welcome to Lumina",
        "description": "Company culture, values and mission for all new employees.",
        "asset_type_relevance": ["type-restaurant", "type-hotel"],
        "modules": [
            {"id": "m101-1", "title": "Our Story", "module_type": "Video", "order": 1},
            {"id": "m101-2", "title": "Handbook Review", "module_type": "Document", "order": 2},
            {"id": "m101-3", "title": "Culture Quiz", "module_type": "Quiz", "order": 3},
        ],
    },
    {
        "id": "LMS-201",
        "title": "Property Management System (PMS) Basics",
        "description": "Check-ins, check-outs and reservation management.",
        "asset_type_relevance": ["type-hotel"],
        "recertification_rule": {"interval": 1, "unit": "year", "method": "refresher_exam"},
    },
    {
        "id": "LMS-202",
        "title": "Guest Service Excellence",
        "asset_type_relevance": ["type-hotel"],
    },
    {
        "id": "LMS-301",
        "title": "Food Safety & Handling",
        "description": "Safety and handling procedures for food service staff.",
        "asset_type_relevance": ["type-restaurant"],
        "recertification_rule": {"interval": 2, "unit": "year", "method": "full_course"},
    },
]

_LEARNING_PATHS = [
    {
        "id": "path-1",
        "title": "Restaurant Manager Certification",
        "description": "Become certified as a Store Manager.",
        "stages": [
            {
                "id": "ps-1-1",
                "title": "Phase 1: Foundational Skills",
                "order": 1,
                "requirements": [
                    {"type": "course", "course_id": "LMS-101"},
                    {"type": "course", "course_id": "LMS-301"},
                ],
            },
            {
                "id": "ps-1-2",
                "title": "Phase 2: Leadership Training",
                "order": 2,
                "requirements": [
                    {"type": "project", "project_template_id": "template-1"},
                    {"type": "manual_sign_off", "description": "Run a shift solo."},
                ],
            },
        ],
    },
    {
        "id": "path-2",
        "title": "Hotel General Manager Track",
        "unlock_prerequisites": {"required_certification_ids": ["cert-1"]},
    },
]


def seed_demo_data(workspace: Workspace) -> Workspace:
    """Populate an empty workspace with the demo organization."""
    now = workspace.now()

    for config in (_RESTAURANT, _HOTEL):
        workspace.save_asset_type_config(AssetTypeConfig.model_validate(config))
    for asset in _ASSETS:
        workspace.assets[asset.id] = asset.model_copy(deep=True)
    for data in _USERS:
        password = ADMIN_PASSWORD if data["id"] == "user-admin" else DEMO_PASSWORD
        workspace.save_user(User.model_validate(data), password=password)

    for data in _TEMPLATES:
        workspace.save_project_template(ProjectTemplate.model_validate(data))
    workspace.save_recurring_task_template(
        RecurringTaskTemplate(
            id="rectask-1",
            title="Weekly Store Cleanliness Audit",
            description="Complete the cleanliness checklist for all areas of the store.",
            recurrence_rule={"freq": "Weekly", "days_of_week": ["M"], "time": "09:00"},
            applies_to_asset_id="asset-store-0142",
            assignment=TaskAssignment(role_ids=["pos-res-sm"]),
        )
    )
    workspace.save_recurring_task_template(
        RecurringTaskTemplate(
            id="rectask-2",
            title="End of Day Cash Count",
            recurrence_rule={"freq": "Daily", "time": "22:00"},
            applies_to_asset_id="asset-store-0142",
            assignment=TaskAssignment(role_ids=["pos-res-sl"]),
        )
    )
    workspace.save_recurring_project_template(
        RecurringProjectTemplate(
            id="recproj-1",
            series_name="Monthly Financial Close",
            base_project_template_id="template-3",
            recurrence_rule={"freq": "Monthly", "day_of_month": 1, "time": "08:00"},
            default_lead=TaskAssignment(user_ids=["user-alex-chen"]),
        )
    )

    for data in _COURSES:
        workspace.save_course(UniversityCourse.model_validate(data))
    for data in _LEARNING_PATHS:
        workspace.save_learning_path(LearningPath.model_validate(data))

    workspace.enrollments = [
        UserEnrollment(
            id="enroll-1",
            user_id="user-maria-garcia",
            course_id="LMS-101",
            status="Completed",
            completion_date=now - timedelta(days=30),
            score=95,
            progress=100,
        ),
        UserEnrollment(
            id="enroll-2",
            user_id="user-maria-garcia",
            course_id="LMS-301",
            status="In Progress",
            progress=50,
        ),
        UserEnrollment(
            id="enroll-4",
            user_id="user-alex-chen",
            course_id="LMS-301",
            status="Completed",
            completion_date=now - timedelta(days=710),
            score=92,
            progress=100,
        ),
        UserEnrollment(id="enroll-5", user_id="user-sam-jones", course_id="LMS-201"),
    ]
    # Alex's food safety certification lapses inside the default expiry window
    workspace.certifications = [
        UserCertification(
            id="cert-1",
            user_id="user-alex-chen",
            course_id="LMS-301",
            issue_date=now - timedelta(days=710),
            expiration_date=now + timedelta(days=20),
        ),
        UserCertification(
            id="cert-2",
            user_id="user-maria-garcia",
            course_id="LMS-101",
            issue_date=now - timedelta(days=30),
        ),
    ]

    _seed_action_items(workspace, now)

    project = workspace.launch_project(
        "user-alex-chen",
        "template-1",
        "asset-store-0142",
        project_name="Onboard Maria Garcia",
        placeholder_choices={"ph-new-hire": TaskAssignment(user_ids=["user-maria-garcia"])},
    )
    workspace.toggle_task("user-alex-chen", project.id, "t1-1")

    logger.info(
        "Seeded demo workspace: %d users, %d assets, %d templates",
        len(workspace.users),
        len(workspace.assets),
        len(workspace.project_templates),
    )
    return workspace


def _seed_action_items(workspace: Workspace, now: datetime) -> None:
    items = [
        ActionItem(
            id="action-1",
            description="Fix leaking faucet in back sink.",
            source="Health inspection",
            due_date=now - timedelta(days=2),
            comment_count=2,
        ),
        ActionItem(
            id="action-2",
            description="Restock all front-of-house napkin dispensers.",
            source="Self-generated",
            due_date=now,
            source_type="recurring_task",
            sop_link="/sop/foh-stocking",
        ),
        ActionItem(
            id="action-3",
            description="Coach new hire on upselling combos.",
            source="DM Follow-up",
            due_date=now + timedelta(days=3),
        ),
        ActionItem(
            id="action-4",
            description="Clean the walk-in freezer floor.",
            source="Health inspection",
            due_date=now - timedelta(days=1),
            status=TaskStatus.COMPLETED,
            completed_at=now - timedelta(days=1),
        ),
    ]
    for item in items:
        workspace.action_items[item.id] = item
