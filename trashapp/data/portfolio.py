# Статичный контент витрины проекта, отдается как есть через /portfolio

logotext = "TrashApp"

meta = {
    "title": "TrashApp",
    "description": "Waste pickup scheduling and tracking for households and small businesses",
}

introdata = {
    "title": "Waste Pickup Made Simple",
    "animated": {
        "first": "Schedule pickups in minutes",
        "second": "Track your driver in real time",
        "third": "Set it once with recurring pickups",
    },
    "description": "TrashApp connects customers with collection drivers: book a pickup, "
    "follow its status and rate the service when it is done.",
    "your_img_url": "https://images.unsplash.com/photo-1532996122724-e3c354a0b15b",
}

dataabout = {
    "title": "About",
    "aboutme": "TrashApp is a waste management platform with three roles: customers request "
    "pickups, drivers complete them and admins assign work and watch the numbers. "
    "Pickups can be one-off or generated from weekly, biweekly and monthly schedules.",
}

worktimeline = [
    {"jobtitle": "Backend API", "where": "TrashApp", "date": "2024 - 2025"},
    {"jobtitle": "Recurring schedules", "where": "TrashApp", "date": "2025"},
    {"jobtitle": "Google sign-in", "where": "TrashApp", "date": "2025 - present"},
]

skills = [
    {"name": "Python", "value": 90},
    {"name": "FastAPI", "value": 85},
    {"name": "SQLAlchemy", "value": 80},
    {"name": "Pydantic", "value": 85},
    {"name": "SQLite", "value": 75},
    {"name": "OAuth 2.0", "value": 70},
    {"name": "pytest", "value": 80},
]

services = [
    {
        "title": "One-off Pickups",
        "description": "Book a pickup for general, recyclable or hazardous waste with an instant cost estimate.",
    },
    {
        "title": "Recurring Pickups",
        "description": "Weekly, biweekly or monthly schedules that create pickups automatically.",
    },
    {
        "title": "Pickup Tracking",
        "description": "Status history, driver contact and photos for every request.",
    },
]

dataportfolio = [
    {
        "id": "ecocollect",
        "title": "EcoCollect - Waste Management Platform",
        "img": "https://images.unsplash.com/photo-1503596476-1c12a8ba09a9?q=80&w=400&h=400&auto=format&fit=crop",
        "description": "A full-stack waste management platform that connects users with waste "
        "collection services: pickup requests, driver assignment and status tracking.",
        "shortDescription": "Full-stack waste management platform with pickup tracking",
        "technologies": ["Python", "FastAPI", "SQLAlchemy", "React", "JWT Authentication"],
        "challenge": "Handling customers, drivers and admins in one system while keeping the "
        "pickup lifecycle consistent.",
        "solution": "A small state machine for pickup statuses with a full history of updates, "
        "plus recurring schedules that generate pickups on their next date.",
        "features": [
            "Pickup requests with automatic cost estimate",
            "Recurring weekly, biweekly and monthly schedules",
            "Driver assignment and status history",
            "Photo uploads and ratings",
            "Email/password and Google sign-in",
        ],
        "deployedLink": "#",
        "githubLink": "#",
        "isDeployed": False,
        "isPublicRepo": False,
        "created": "2025-01-10",
        "gallery": [],
    },
    {
        "id": "route-planner",
        "title": "Driver Route Planner",
        "img": "https://images.unsplash.com/photo-1524661135-423995f22d0b?q=80&w=400&h=400&auto=format&fit=crop",
        "description": "Internal tool that groups the day's assigned pickups by time slot for each driver.",
        "shortDescription": "Daily pickup grouping for drivers",
        "technologies": ["Python", "FastAPI"],
        "challenge": "Drivers needed a single view of their morning, afternoon and evening pickups.",
        "solution": "A read-only view over assigned pickups ordered by date and time slot.",
        "features": ["Time slot grouping", "Pickup addresses and notes"],
        "deployedLink": "#",
        "githubLink": "#",
        "isDeployed": False,
        "isPublicRepo": False,
        "created": "2025-04-02",
        "gallery": [],
    },
]

contactConfig = {
    "YOUR_EMAIL": "support@trashapp.local",
    "YOUR_FONE": "+1 555 0100",
    "description": "Questions about pickups or partnerships? Get in touch.",
}

socialprofils = {
    "github": "#",
    "linkedin": "#",
    "twitter": "#",
}


def find_project(project_id: str):
    for project in dataportfolio:
        if project["id"] == project_id:
            return project
    return None
