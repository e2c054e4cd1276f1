"""
Academic catalogue offered to clients for filters and quiz subjects.

Advisory only: uploads and listing filters accept any course/subject text.
"""
from typing import Dict, List

COURSES: List[Dict[str, object]] = [
    {
        "name": "BCA",
        "subjects": [
            "C Programming",
            "Digital Logic and Computer Design",
            "Accountancy",
            "Indian Constitutional Values",
            "Mathematics",
            "Discrete Structures",
            "Data Structures",
            "Operating Systems",
            "Computer Networks",
            "Software Engineering",
            "Database Management Systems",
            "Java Programming",
            "Python Programming",
            "Web Technologies",
        ],
    },
    {
        "name": "BCom",
        "subjects": [
            "Financial Accounting",
            "Business Management",
            "Corporate Accounting",
            "Business Law",
            "Economics",
            "Auditing",
            "Cost Accounting",
            "Income Tax",
            "Marketing Management",
            "Banking and Insurance",
        ],
    },
    {
        "name": "BSc",
        "subjects": [
            "Physics",
            "Chemistry",
            "Mathematics",
            "Botany",
            "Zoology",
            "Biotechnology",
            "Microbiology",
            "Electronics",
            "Statistics",
            "Environmental Science",
        ],
    },
    {
        "name": "BE/BTech",
        "subjects": [
            "Engineering Mathematics",
            "Engineering Physics",
            "Engineering Chemistry",
            "Basic Electrical Engineering",
            "Programming for Problem Solving",
            "Engineering Graphics",
            "Mechanics",
            "Thermodynamics",
            "Analog Electronics",
            "Digital Signal Processing",
            "Microprocessors",
            "Control Systems",
            "VLSI Design",
        ],
    },
]

ALL_SUBJECTS: List[str] = sorted({subject for course in COURSES for subject in course["subjects"]})
COURSE_NAMES: List[str] = [course["name"] for course in COURSES]
SEMESTERS: List[int] = [1, 2, 3, 4, 5, 6, 7, 8]


def get_course_subjects(course_name: str) -> List[str]:
    """Subjects for a course, empty when the course is unknown"""
    for course in COURSES:
        if course["name"] == course_name:
            return list(course["subjects"])
    return []
