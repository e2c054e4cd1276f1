from fastapi import APIRouter

from ..config.catalog import ALL_SUBJECTS, COURSE_NAMES, COURSES, SEMESTERS

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("")
async def get_catalog():
    """Courses with their subjects, every subject, and the semester range"""
    return {
        "courses": COURSES,
        "course_names": COURSE_NAMES,
        "subjects": ALL_SUBJECTS,
        "semesters": SEMESTERS,
    }
