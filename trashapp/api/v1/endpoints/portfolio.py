from fastapi import APIRouter

from trashapp.core import responses
from trashapp.core.errors import NotFoundError
from trashapp.data import portfolio

router = APIRouter()


@router.get("/")
async def get_portfolio():
    return responses.success(
        {
            "meta": portfolio.meta,
            "dataabout": portfolio.dataabout,
            "dataportfolio": portfolio.dataportfolio,
            "worktimeline": portfolio.worktimeline,
            "skills": portfolio.skills,
            "services": portfolio.services,
            "introdata": portfolio.introdata,
            "contactConfig": portfolio.contactConfig,
            "socialprofils": portfolio.socialprofils,
            "logotext": portfolio.logotext,
        },
        "Portfolio data retrieved successfully",
    )


@router.get("/projects")
async def get_projects():
    return responses.success(portfolio.dataportfolio, "Portfolio projects retrieved successfully")


@router.get("/projects/{project_id}")
async def get_project(project_id: str):
    project = portfolio.find_project(project_id)
    if project is None:
        raise NotFoundError("Project")
    return responses.success(project, "Portfolio project retrieved successfully")


@router.get("/skills")
async def get_skills():
    return responses.success(portfolio.skills, "Portfolio skills retrieved successfully")


@router.get("/services")
async def get_services():
    return responses.success(portfolio.services, "Portfolio services retrieved successfully")


@router.get("/intro")
async def get_intro():
    return responses.success(portfolio.introdata, "Portfolio intro data retrieved successfully")


@router.get("/contact")
async def get_contact_config():
    return responses.success(portfolio.contactConfig, "Portfolio contact config retrieved successfully")


@router.get("/social")
async def get_social_profiles():
    return responses.success(portfolio.socialprofils, "Portfolio social profils retrieved successfully")


@router.get("/logotext")
async def get_logotext():
    return responses.success(portfolio.logotext, "Portfolio logotext retrieved successfully")
